"""Map upstream case payloads to :class:`~ecourts_resolver.models.CanonicalCase`.

Upstream sources disagree on field names (and the same vendor changes them
between account tiers), so every canonical field is read through an ordered
chain of accessors. Accessors are tried left to right and the first one that
yields a usable value wins. A chain never raises; a missing or malformed
value simply falls through to the next accessor and finally to the field's
sentinel.

Three families are supported:

- :func:`normalize_official`: flat NAPIX / API Setu / eCourts JSON.
- :func:`normalize_kleopatra`: Kleopatra's nested ``data.parties``,
  ``data.status``, ``data.details`` layout. eCourts case-status pages parsed
  by :func:`~ecourts_resolver.providers.scraper_common.parse_case_status_html`
  are shaped the same way.
- :func:`normalize_third_party`: Surepass / Legalkart style, snake_case or
  camelCase, little nesting.
"""

import re
from datetime import date, datetime
from typing import Any, Callable, Iterable

from ecourts_resolver.models import (
    ActsAndSections,
    Advocate,
    CanonicalCase,
    CaseDetails,
    CaseOrder,
    Hearing,
    Judge,
    Party,
    PartyType,
)

Accessor = Callable[[Any], Any]

EPOCH = date(1970, 1, 1)

_PARTY_TYPE_ALIASES = {
    "PLAINTIFF": PartyType.PLAINTIFF,
    "PETITIONER": PartyType.PETITIONER,
    "APPELLANT": PartyType.PETITIONER,
    "APPLICANT": PartyType.PETITIONER,
    "COMPLAINANT": PartyType.PETITIONER,
    "DEFENDANT": PartyType.DEFENDANT,
    "RESPONDENT": PartyType.RESPONDENT,
    "RESPONDENT_APPEAL": PartyType.RESPONDENT,
    "ACCUSED": PartyType.RESPONDENT,
    "OPPOSITE_PARTY": PartyType.RESPONDENT,
}

_NUMERIC_DATE_RE = re.compile(r"^(\d{1,2})[-/.](\d{1,2})[-/.](\d{4})$")
_ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")
_ORDINAL_RE = re.compile(r"(\d{1,2})(st|nd|rd|th)\b", re.IGNORECASE)


# --- accessor primitives ---


def dig(data: Any, path: str) -> Any:
    """Follow a dotted *path* through nested dicts; ``None`` if any hop fails."""
    current = data
    for part in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(part)
    return current


def key(path: str) -> Accessor:
    return lambda d: dig(d, path)


def keys(*paths: str) -> list[Accessor]:
    return [key(p) for p in paths]


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def first_of(
    data: Any,
    accessors: Iterable[Accessor],
    default: Any = None,
    accept: Callable[[Any], bool] = _present,
) -> Any:
    """Return the first accessor result that passes *accept*, else *default*."""
    for accessor in accessors:
        try:
            value = accessor(data)
        except (AttributeError, IndexError, KeyError, TypeError, ValueError):
            continue
        if accept(value):
            return value
    return default


def _is_text(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    return isinstance(value, str) and bool(value.strip())


def first_text(data: Any, paths: Iterable[str], default: str = "") -> str:
    value = first_of(data, keys(*paths), accept=_is_text)
    if value is None:
        return default
    return str(value).strip()


def first_date(data: Any, paths: Iterable[str]) -> date | None:
    accessors = [lambda d, p=p: parse_date(dig(d, p)) for p in paths]
    return first_of(data, accessors)


# --- value coercion ---


def parse_date(value: Any) -> date | None:
    """Parse the date spellings seen across upstream sources.

    Accepts ISO dates and datetimes, ``DD-MM-YYYY`` (``/`` and ``.`` also),
    and the eCourts long form ``15th January 2024``. Returns ``None`` for
    anything else.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    try:
        match = _ISO_DATE_RE.match(text)
        if match:
            return date(int(match[1]), int(match[2]), int(match[3]))
        match = _NUMERIC_DATE_RE.match(text)
        if match:
            return date(int(match[3]), int(match[2]), int(match[1]))
    except ValueError:
        return None
    cleaned = _ORDINAL_RE.sub(r"\1", text).replace(",", " ")
    cleaned = " ".join(cleaned.split())
    for fmt in ("%d %B %Y", "%d %b %Y", "%B %d %Y", "%b %d %Y"):
        try:
            return datetime.strptime(cleaned, fmt).date()
        except ValueError:
            continue
    return None


def decision_date(value: Any) -> date | None:
    """Like :func:`parse_date` but maps the 1970-01-01 placeholder to ``None``."""
    parsed = parse_date(value)
    if parsed == EPOCH:
        return None
    return parsed


def first_decision_date(data: Any, paths: Iterable[str]) -> date | None:
    """First decision date along *paths*, skipping 1970-01-01 placeholders."""
    return first_of(data, [lambda d, p=p: decision_date(dig(d, p)) for p in paths])


def to_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.replace(",", "").strip())
        except ValueError:
            return None
    return None


def _as_list(value: Any) -> list:
    if isinstance(value, list):
        return value
    if isinstance(value, tuple):
        return list(value)
    return []


def _unwrap(payload: Any) -> dict:
    if not isinstance(payload, dict):
        return {}
    inner = payload.get("data")
    if isinstance(inner, dict) and inner:
        return inner
    return payload


def coerce_party_type(raw: Any, default: PartyType) -> PartyType:
    if not isinstance(raw, str):
        return default
    return _PARTY_TYPE_ALIASES.get(raw.strip().upper().replace(" ", "_"), default)


def _party(item: Any, default_type: PartyType) -> Party | None:
    if isinstance(item, str):
        name = item.strip()
        return Party(name=name, type=default_type) if name else None
    if not isinstance(item, dict):
        return None
    name = first_text(item, ("name", "partyName", "party_name"))
    if not name:
        return None
    return Party(
        name=name,
        type=coerce_party_type(item.get("type") or item.get("role"), default_type),
        address=first_text(item, ("address",)) or None,
        phone=first_text(item, ("phone", "mobile")) or None,
        email=first_text(item, ("email",)) or None,
    )


def parties_from(items: Any, default_type: PartyType) -> list[Party]:
    parties = []
    for item in _as_list(items):
        party = _party(item, default_type)
        if party is not None:
            parties.append(party)
    return parties


def advocates_from(items: Any, side: str | None = None) -> list[Advocate]:
    advocates = []
    for item in _as_list(items):
        if isinstance(item, str):
            if item.strip():
                advocates.append(Advocate(name=item.strip(), type=side))
            continue
        if not isinstance(item, dict):
            continue
        name = first_text(item, ("name", "advocateName", "advocate_name"))
        if not name:
            continue
        advocates.append(
            Advocate(
                name=name,
                type=first_text(item, ("type", "side")) or side,
                bar_number=first_text(item, ("barNumber", "bar_number", "enrollmentNumber"))
                or None,
                phone=first_text(item, ("phone", "mobile")) or None,
                email=first_text(item, ("email",)) or None,
                address=first_text(item, ("address",)) or None,
            )
        )
    return advocates


def judges_from(value: Any, court: str = "") -> list[Judge]:
    if isinstance(value, str):
        value = [value] if value.strip() else []
    elif isinstance(value, dict):
        value = [value]
    judges = []
    for item in _as_list(value):
        if isinstance(item, str) and item.strip():
            judges.append(Judge(name=item.strip(), court=court))
        elif isinstance(item, dict):
            name = first_text(item, ("name", "judgeName", "judge_name"))
            if name:
                judges.append(
                    Judge(
                        name=name,
                        designation=first_text(item, ("designation", "title")),
                        court=first_text(item, ("court",), court),
                    )
                )
    return judges


def hearings_from(items: Any) -> list[Hearing]:
    hearings = []
    for item in _as_list(items):
        if not isinstance(item, dict):
            continue
        hearings.append(
            Hearing(
                date=first_date(item, ("date", "hearingDate", "hearing_date", "businessDate")),
                purpose=first_text(item, ("purpose", "subject", "description"), "Hearing"),
                judge=first_text(item, ("judge", "judgeName", "judge_name"), "Unknown Judge"),
                status=first_text(item, ("status", "outcome")),
            )
        )
    return hearings


def _order_number(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def orders_from(items: Any) -> list[CaseOrder]:
    """Map order entries, numbering them 1-based where upstream gives no number."""
    orders = []
    for index, item in enumerate(_as_list(items)):
        if not isinstance(item, dict):
            continue
        position = index + 1
        number = first_of(
            item,
            [
                lambda d: _order_number(d.get("orderNumber")),
                lambda d: _order_number(d.get("number")),
            ],
            default=position,
        )
        orders.append(
            CaseOrder(
                number=number,
                name=first_text(
                    item, ("orderName", "name", "description"), f"Order {position}"
                ),
                date=first_date(item, ("orderDate", "date", "order_date")),
                url=first_text(item, ("url", "pdfUrl", "downloadUrl", "pdf_url")) or None,
            )
        )
    return orders


def _joined(value: Any, field_names: tuple[str, ...]) -> str:
    if isinstance(value, list):
        parts = []
        for entry in value:
            text = first_text(entry, field_names) if isinstance(entry, dict) else entry
            if isinstance(text, str) and text.strip():
                parts.append(text.strip())
        return ", ".join(parts)
    if _is_text(value):
        return str(value).strip()
    return ""


def acts_from(value: Any) -> ActsAndSections | None:
    """Build acts/sections; a bare ``","`` for sections counts as empty."""
    if isinstance(value, list):
        acts = _joined(value, ("act", "acts", "actName"))
        sections = _joined(value, ("section", "sections", "sectionNumbers"))
    elif isinstance(value, dict):
        acts = first_text(value, ("acts", "actName", "act"))
        sections = first_text(value, ("sections", "sectionNumbers", "section"))
    else:
        return None
    if sections == ",":
        sections = ""
    if not acts and not sections:
        return None
    return ActsAndSections(acts=acts, sections=sections)


def fallback_case_number(prefix: str, cnr: str, index: int | None = None) -> str:
    suffix = cnr[-6:] if cnr else "UNKNOWN"
    number = f"{prefix}-{suffix}"
    if index is not None:
        number += f"-{index + 1}"
    return number


def case_payload(response: Any) -> dict | None:
    """Pick the case record out of a vendor response, or ``None``.

    A dict counts when it has a title, parties, or a CNR (directly or under
    ``data``); a list counts by its first element.
    """
    if isinstance(response, list):
        return case_payload(response[0]) if response else None
    if not isinstance(response, dict):
        return None
    data = _unwrap(response)
    if any(data.get(k) and _present(data.get(k)) for k in ("title", "parties", "cnr")):
        return response
    return None


def _resolve_cnr(data: dict, requested_cnr: Any) -> str:
    if isinstance(requested_cnr, str) and requested_cnr.strip():
        return requested_cnr.strip()
    return first_text(data, ("cnr", "cnrNumber", "cnr_number", "details.cnr"))


# --- families ---


def normalize_official(payload: Any, requested_cnr: str) -> CanonicalCase:
    """Map a flat government API payload."""
    data = _unwrap(payload)
    cnr = _resolve_cnr(data, requested_cnr)
    court = first_text(data, ("court", "courtName", "court_name"), "Unknown Court")
    return CanonicalCase(
        cnr=cnr,
        case_number=first_text(
            data,
            ("caseNumber", "case_number", "registrationNumber"),
            fallback_case_number("CASE", cnr),
        ),
        filing_number=first_text(data, ("filingNumber", "filing_number")) or None,
        title=first_text(data, ("title", "caseTitle", "case_title"), "Unknown Case"),
        court=court,
        court_location=first_text(
            data, ("courtLocation", "location", "court_location"), "Unknown Location"
        ),
        hall_number=first_text(data, ("hallNumber", "hall"), "Not specified"),
        case_type=first_text(data, ("caseType", "case_type"), "CIVIL"),
        case_status=first_text(data, ("status", "caseStatus", "case_status"), "PENDING"),
        filing_date=first_date(data, ("filingDate", "dateOfFiling", "filing_date")),
        last_hearing_date=first_date(data, ("lastHearingDate", "last_hearing_date")),
        next_hearing_date=first_date(data, ("nextHearingDate", "next_hearing_date")),
        registration_number=first_text(data, ("registrationNumber",)),
        registration_date=first_date(data, ("registrationDate",)),
        decision_date=first_decision_date(data, ("decisionDate", "disposalDate")),
        parties=parties_from(data.get("parties"), PartyType.PETITIONER),
        advocates=advocates_from(data.get("advocates")),
        judges=judges_from(data.get("judges"), court),
        case_details=CaseDetails(
            subject_matter=first_text(data, ("subjectMatter", "subject_matter")),
            case_description=first_text(data, ("description", "caseDescription")),
            relief_sought=first_text(data, ("reliefSought", "relief_sought")),
            case_value=to_number(first_of(data, keys("caseValue", "case_value"))),
            jurisdiction=first_text(data, ("jurisdiction",)),
        ),
    )


def _kleopatra_parties(data: dict) -> list[Party]:
    block = data.get("parties")
    if isinstance(block, list):
        return parties_from(block, PartyType.PETITIONER)
    return parties_from(dig(data, "parties.petitioners"), PartyType.PLAINTIFF) + parties_from(
        dig(data, "parties.respondents"), PartyType.DEFENDANT
    )


def _kleopatra_advocates(data: dict) -> list[Advocate]:
    if isinstance(data.get("advocates"), list) and not isinstance(data.get("parties"), dict):
        return advocates_from(data.get("advocates"))
    return advocates_from(
        dig(data, "parties.petitionerAdvocates"), PartyType.PETITIONER.value
    ) + advocates_from(dig(data, "parties.respondentAdvocates"), PartyType.RESPONDENT.value)


def normalize_kleopatra(
    payload: Any, requested_cnr: str, index: int | None = None
) -> CanonicalCase:
    """Map Kleopatra's nested case payload.

    *index* is the position in a search result list; it keeps synthesized
    case numbers distinct across results that share no CNR.
    """
    data = _unwrap(payload)
    cnr = _resolve_cnr(data, requested_cnr)
    court = first_text(
        data,
        ("status.courtNumberAndJudge", "court_name", "court", "jurisdiction"),
        "Unknown Court",
    )
    return CanonicalCase(
        cnr=cnr,
        case_number=first_text(
            data,
            (
                "registrationNumber",
                "regNumber",
                "caseNumber",
                "case_number",
                "details.registrationNumber",
            ),
            fallback_case_number("REG", cnr, index),
        ),
        filing_number=first_text(
            data, ("filingNumber", "filingNo", "details.filingNumber", "filing_number")
        )
        or None,
        title=first_text(data, ("title", "case_title", "subject_matter"), "Unknown Case"),
        court=court,
        court_location=first_text(
            data, ("location", "court_location", "district"), "Unknown Location"
        ),
        hall_number=first_text(data, ("hall_number", "hall", "court_hall"), "Not specified"),
        case_type=first_text(
            data, ("details.type", "case_type", "type", "category"), "CIVIL"
        ),
        case_status=first_text(
            data, ("status.caseStage", "status", "case_status", "current_status"), "PENDING"
        ),
        filing_date=first_date(
            data,
            (
                "details.filingDate",
                "details.registrationDate",
                "filing_date",
                "date_of_filing",
                "registration_date",
            ),
        ),
        last_hearing_date=first_date(
            data,
            (
                "status.lastHearingDate",
                "status.firstHearingDate",
                "last_hearing_date",
                "previous_hearing_date",
            ),
        ),
        next_hearing_date=first_date(
            data, ("status.nextHearingDate", "next_hearing_date", "upcoming_hearing_date")
        ),
        registration_number=first_text(
            data, ("registrationNumber", "regNumber", "details.registrationNumber")
        ),
        registration_date=first_date(
            data, ("registrationDate", "regDate", "details.registrationDate")
        ),
        first_hearing_date=first_date(
            data, ("firstHearingDate", "firstHearing.date", "status.firstHearingDate")
        ),
        decision_date=first_decision_date(
            data, ("decisionDate", "disposalDate", "status.decisionDate")
        ),
        nature_of_disposal=first_text(
            data, ("natureOfDisposal", "disposalType", "status.natureOfDisposal")
        ),
        parties=_kleopatra_parties(data),
        advocates=_kleopatra_advocates(data),
        judges=judges_from(
            first_of(data, keys("judges", "bench", "magistrate"), default=[]), court
        ),
        hearing_history=hearings_from(
            first_of(
                data,
                keys("history.hearings", "hearingHistory", "history"),
                accept=lambda v: isinstance(v, list),
                default=[],
            )
        ),
        orders=orders_from(data.get("orders")),
        acts_and_sections=acts_from(
            first_of(data, keys("actsAndSections", "acts"), default=None)
        ),
        case_details=CaseDetails(
            subject_matter=first_text(
                data, ("title", "subject_matter", "subjectMatter", "nature_of_case")
            ),
            case_description=first_text(
                data, ("description", "case_description", "facts")
            ),
            relief_sought=first_text(data, ("relief_sought", "reliefSought", "prayer")),
            case_value=to_number(
                first_of(data, keys("case_value", "caseValue", "amount_involved"))
            ),
            jurisdiction=first_text(data, ("jurisdiction", "territorial_jurisdiction")),
        ),
    )


def normalize_third_party(
    payload: Any, requested_cnr: str, index: int | None = None
) -> CanonicalCase:
    """Map a Surepass / Legalkart style payload."""
    data = _unwrap(payload)
    cnr = _resolve_cnr(data, requested_cnr)
    court = first_text(data, ("court", "court_name", "courtName"), "Unknown Court")
    return CanonicalCase(
        cnr=cnr,
        case_number=first_text(
            data,
            ("registrationNumber", "caseNumber", "case_number", "registration_number"),
            fallback_case_number("REG", cnr, index),
        ),
        filing_number=first_text(data, ("filingNumber", "filingNo", "filing_number"))
        or None,
        title=first_text(data, ("title", "case_title"), "Unknown Case"),
        court=court,
        court_location=first_text(
            data, ("location", "court_location"), "Unknown Location"
        ),
        hall_number=first_text(data, ("hall_number", "hallNumber"), "Not specified"),
        case_type=first_text(data, ("type", "case_type", "caseType"), "CIVIL"),
        case_status=first_text(data, ("status", "case_status", "caseStatus"), "PENDING"),
        filing_date=first_date(data, ("filing_date", "date_of_filing", "filingDate")),
        last_hearing_date=first_date(data, ("last_hearing_date", "lastHearingDate")),
        next_hearing_date=first_date(data, ("next_hearing_date", "nextHearingDate")),
        registration_number=first_text(
            data, ("registrationNumber", "registration_number")
        ),
        registration_date=first_date(data, ("registration_date", "registrationDate")),
        decision_date=first_decision_date(data, ("decision_date", "decisionDate")),
        parties=parties_from(data.get("parties"), PartyType.PETITIONER),
        advocates=advocates_from(data.get("advocates")),
        judges=judges_from(data.get("judges"), court),
        case_details=CaseDetails(
            subject_matter=first_text(data, ("subject_matter", "subjectMatter")),
            case_description=first_text(data, ("description", "case_description")),
            relief_sought=first_text(data, ("relief_sought", "reliefSought")),
            case_value=to_number(first_of(data, keys("case_value", "caseValue"))),
            jurisdiction=first_text(data, ("jurisdiction",)),
        ),
    )


NORMALIZERS = {
    "official": normalize_official,
    "kleopatra": normalize_kleopatra,
    "third_party": normalize_third_party,
}
