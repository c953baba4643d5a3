"""CNR validation rules and court-type classification.

Provider variants do not agree on what a valid CNR looks like, so each rule
is kept separately and every provider names the one it applies:

- ``STRICT_CNR_RE``: the resolver's rule, exactly 16 letters, digits or
  hyphens.
- ``LOOSE_CNR_RE``: 10-20 letters or digits, used by the portal, judgments,
  third-party and manual-import providers.
- ``KHC_CNR_RE``: Karnataka High Court bench identifiers.
"""

import re

STRICT_CNR_RE = re.compile(r"^[A-Za-z0-9-]{16}$")
LOOSE_CNR_RE = re.compile(r"^[A-Za-z0-9]{10,20}$")
KHC_CNR_RE = re.compile(r"^KHC[A-Za-z0-9]{10,15}$", re.IGNORECASE)

DISTRICT = "district"
HIGH = "high"
SUPREME = "supreme"
NCLT = "nclt"
CAT = "cat"
CONSUMER = "consumer"

# Lookup cascade order; CAT has a search endpoint but no CNR lookup.
LOOKUP_COURT_TYPES = (DISTRICT, HIGH, SUPREME, NCLT, CONSUMER)

COURT_TYPE_SLUGS = {
    DISTRICT: "district-court",
    HIGH: "high-court",
    SUPREME: "supreme-court",
    NCLT: "nclt",
    CAT: "cat",
    CONSUMER: "consumer-forum",
}


def is_valid_cnr(cnr) -> bool:
    return isinstance(cnr, str) and bool(STRICT_CNR_RE.fullmatch(cnr))


def is_valid_loose_cnr(cnr) -> bool:
    return isinstance(cnr, str) and bool(LOOSE_CNR_RE.fullmatch(cnr))


def is_valid_khc_cnr(cnr) -> bool:
    return isinstance(cnr, str) and bool(KHC_CNR_RE.fullmatch(cnr))


def classify_court_type(cnr: str) -> str:
    """Guess the court type from substrings of the CNR.

    Only used to pick the first endpoint to try; a wrong guess costs extra
    calls, never a failed lookup.
    """
    upper = cnr.upper()
    if "HC" in upper:
        return HIGH
    if "SC" in upper:
        return SUPREME
    if "NCLT" in upper or "NCLAT" in upper:
        return NCLT
    if "CF" in upper or "CONSUMER" in upper:
        return CONSUMER
    return DISTRICT


def cascade_order(first: str) -> list[str]:
    """*first*, then the remaining lookup court types in fixed order."""
    rest = [ct for ct in LOOKUP_COURT_TYPES if ct != first]
    if first in COURT_TYPE_SLUGS:
        return [first] + rest
    return rest
