"""Canonical case record and the supporting value types.

Every provider and normalizer produces :class:`CanonicalCase` instances.
Display helpers at the bottom of the module derive the single-value fields
consumers show (petitioner, respondent, cleaned status, sections).
"""

import dataclasses
import enum
import re
from datetime import date


class PartyType(str, enum.Enum):
    PLAINTIFF = "PLAINTIFF"
    PETITIONER = "PETITIONER"
    DEFENDANT = "DEFENDANT"
    RESPONDENT = "RESPONDENT"


PETITIONER_SIDE = (PartyType.PLAINTIFF, PartyType.PETITIONER)
RESPONDENT_SIDE = (PartyType.DEFENDANT, PartyType.RESPONDENT)


@dataclasses.dataclass
class Party:
    name: str
    type: PartyType
    address: str | None = None
    phone: str | None = None
    email: str | None = None


@dataclasses.dataclass
class Advocate:
    name: str
    type: str | None = None
    bar_number: str | None = None
    phone: str | None = None
    email: str | None = None
    address: str | None = None


@dataclasses.dataclass
class Judge:
    name: str
    designation: str = ""
    court: str = ""


@dataclasses.dataclass
class Hearing:
    date: date | None
    purpose: str
    judge: str
    status: str | None = None


@dataclasses.dataclass
class CaseOrder:
    number: int
    name: str
    date: date | None
    url: str | None = None


@dataclasses.dataclass
class ActsAndSections:
    acts: str
    sections: str


@dataclasses.dataclass
class CaseDetails:
    subject_matter: str = ""
    case_description: str = ""
    relief_sought: str = ""
    case_value: float | None = None
    jurisdiction: str = ""


@dataclasses.dataclass
class CanonicalCase:
    """Normalized case record.

    ``case_number`` is the court registration number and the primary display
    identifier. ``filing_number`` is the number assigned at filing time; the
    two are kept apart even when an upstream source only sends one of them.
    """

    cnr: str
    case_number: str
    title: str = "Unknown Case"
    court: str = "Unknown Court"
    court_location: str = "Unknown Location"
    hall_number: str = "Not specified"
    case_type: str = ""
    case_status: str = ""
    filing_number: str | None = None
    filing_date: date | None = None
    last_hearing_date: date | None = None
    next_hearing_date: date | None = None
    registration_number: str = ""
    registration_date: date | None = None
    first_hearing_date: date | None = None
    decision_date: date | None = None
    nature_of_disposal: str = ""
    parties: list[Party] = dataclasses.field(default_factory=list)
    advocates: list[Advocate] = dataclasses.field(default_factory=list)
    judges: list[Judge] = dataclasses.field(default_factory=list)
    hearing_history: list[Hearing] = dataclasses.field(default_factory=list)
    orders: list[CaseOrder] = dataclasses.field(default_factory=list)
    acts_and_sections: ActsAndSections | None = None
    case_details: CaseDetails = dataclasses.field(default_factory=CaseDetails)

    def to_dict(self) -> dict:
        """Serialize to the camelCase JSON shape consumed by the UI layer."""
        return _camelize(dataclasses.asdict(self))


@dataclasses.dataclass
class SearchFilters:
    """Sparse search criteria. Every field is optional."""

    cnr: str | None = None
    case_number: str | None = None
    filing_number: str | None = None
    party_name: str | None = None
    advocate_name: str | None = None
    court: str | None = None
    court_type: str | None = None
    filing_date_from: str | None = None
    filing_date_to: str | None = None
    hearing_date_from: str | None = None
    hearing_date_to: str | None = None
    case_type: str | None = None
    case_status: str | None = None
    year: int | None = None
    limit: int | None = None
    offset: int | None = None

    def to_payload(self) -> dict:
        """Vendor search payload: snake_case keys, empty fields omitted."""
        payload = {}
        for field in dataclasses.fields(self):
            if field.name in ("court_type", "year"):
                continue
            value = getattr(self, field.name)
            if value not in (None, ""):
                payload[field.name] = value
        return payload


@dataclasses.dataclass
class SearchPage:
    cases: list[CanonicalCase]
    total: int
    page: int = 1
    limit: int = 20
    has_more: bool = False
    next_page_token: str | None = None

    def to_dict(self) -> dict:
        return {
            "cases": [c.to_dict() for c in self.cases],
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "hasMore": self.has_more,
            "nextPageToken": self.next_page_token,
        }


@dataclasses.dataclass
class OrderRecord:
    id: str
    cnr: str
    order_date: date | None
    order_type: str
    order_text: str = ""
    judge: Judge | None = None
    order_number: str | None = None
    pdf_url: str | None = None
    is_downloadable: bool = False

    def to_dict(self) -> dict:
        return _camelize(dataclasses.asdict(self))


@dataclasses.dataclass
class CauseListItem:
    item_number: int
    case_number: str
    cnr: str
    title: str
    parties: list[str] = dataclasses.field(default_factory=list)
    advocates: list[str] = dataclasses.field(default_factory=list)
    hearing_time: str | None = None
    purpose: str = "Hearing"
    judge: Judge | None = None


@dataclasses.dataclass
class CauseList:
    id: str
    court: str
    date: date
    items: list[CauseListItem] = dataclasses.field(default_factory=list)

    def to_dict(self) -> dict:
        return _camelize(dataclasses.asdict(self))


@dataclasses.dataclass(frozen=True)
class ProviderCapabilities:
    supports_cnr_lookup: bool
    supports_case_search: bool
    supports_cause_list: bool
    supports_order_listing: bool
    supports_pdf_download: bool
    supports_real_time_sync: bool
    max_concurrent_requests: int
    rate_limit_per_minute: int
    supported_courts: tuple[str, ...]
    supported_case_types: tuple[str, ...]


@dataclasses.dataclass(frozen=True)
class ProviderConfig:
    """Provider settings. Immutable; use :meth:`merged` for per-call overrides."""

    api_endpoint: str | None = None
    api_key: str | None = None
    username: str | None = None
    password: str | None = None
    court_code: str | None = None
    bench_code: str | None = None
    timeout: float | None = None
    retry_attempts: int | None = None

    def merged(self, override: "ProviderConfig | None") -> "ProviderConfig":
        """Return a new config with the non-empty fields of *override* applied."""
        if override is None:
            return self
        changes = {
            f.name: getattr(override, f.name)
            for f in dataclasses.fields(override)
            if getattr(override, f.name) not in (None, "")
        }
        return dataclasses.replace(self, **changes)


# --- display helpers ---

_STATUS_MARKUP_RE = re.compile(r"<br\s*/?>|<b>|</b>", re.IGNORECASE)


def _find_party(case: CanonicalCase, side: tuple[PartyType, ...]) -> Party | None:
    for party in case.parties:
        if party.type in side:
            return party
    return None


def petitioner_name(case: CanonicalCase) -> str:
    party = _find_party(case, PETITIONER_SIDE)
    return party.name if party else "Unknown Petitioner"


def respondent_name(case: CanonicalCase) -> str:
    party = _find_party(case, RESPONDENT_SIDE)
    return party.name if party else "Unknown Respondent"


def clean_status(status: str | None) -> str:
    """Strip the ``<br>``/``<b>`` markup some portals embed in status text."""
    if not status:
        return "Unknown"
    return " ".join(_STATUS_MARKUP_RE.sub(" ", status).split()) or "Unknown"


def display_sections(acts: ActsAndSections | None) -> str:
    if acts is None:
        return ""
    sections = acts.sections.strip()
    if sections == ",":
        return ""
    return sections


def recent_hearings(case: CanonicalCase, limit: int = 5) -> list[Hearing]:
    return case.hearing_history[:limit]


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _camelize(value):
    if isinstance(value, dict):
        return {_camel(k): _camelize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_camelize(v) for v in value]
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    return value
