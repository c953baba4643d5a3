"""Manual import provider.

Serves cases that a person fetched from the official portal by hand (the
portal sits behind CAPTCHAs) and imported, either as ready-made
:class:`CanonicalCase` objects or as the saved HTML of a case-status page.
"""

import logging
from datetime import date
from typing import Callable

from ecourts_resolver.cnr import is_valid_loose_cnr
from ecourts_resolver.context import (
    SYNC_ACTION_REQUIRED,
    SYNC_COMPLETED,
    SYNC_FAILED,
    SYNC_PENDING,
    ResolverContext,
)
from ecourts_resolver.models import (
    CanonicalCase,
    CauseList,
    CauseListItem,
    OrderRecord,
    ProviderCapabilities,
    ProviderConfig,
    SearchFilters,
    SearchPage,
)
from ecourts_resolver.normalizers import fallback_case_number, normalize_kleopatra, parse_date
from ecourts_resolver.providers.base import DEFAULT_SEARCH_LIMIT, CourtProvider
from ecourts_resolver.providers.scraper_common import parse_case_status_html
from ecourts_resolver.responses import ActionRequired, ErrorCode, Success

logger = logging.getLogger(__name__)

DEFAULT_PORTAL_URL = "https://ecourts.gov.in"
DEFAULT_HEARING_TIME = "10:00"

DomParser = Callable[[str], list[CanonicalCase]]
SyncCallback = Callable[[str, str], None]


class PortalAvailability:
    """Tells whether the official portal is currently blocking automated access.

    The default reports it open; callers that know better (a recent CAPTCHA,
    an operator switch) pass their own instance.
    """

    def __init__(self, blocked: bool = False):
        self.blocked = blocked

    def is_blocked(self, cnr: str) -> bool:
        return self.blocked


class ManualImportProvider(CourtProvider):
    NAME = "Manual Import Provider"
    SOURCE = {"name": "Manual import", "homepage": DEFAULT_PORTAL_URL}
    CAPABILITIES = ProviderCapabilities(
        supports_cnr_lookup=True,
        supports_case_search=True,
        supports_cause_list=True,
        supports_order_listing=True,
        supports_pdf_download=False,
        supports_real_time_sync=False,
        max_concurrent_requests=100,
        rate_limit_per_minute=1000,
        supported_courts=("ALL",),
        supported_case_types=("ALL",),
    )

    def __init__(
        self,
        config: ProviderConfig | None = None,
        context: ResolverContext | None = None,
        portal_url: str | None = None,
        portal_availability: PortalAvailability | None = None,
        dom_parser: DomParser | None = None,
        sync_status_callback: SyncCallback | None = None,
    ):
        super().__init__(config, context)
        self.portal_url = portal_url or DEFAULT_PORTAL_URL
        self.portal_availability = portal_availability or PortalAvailability()
        self.dom_parser = dom_parser
        self.sync_status_callback = sync_status_callback

    @property
    def store(self):
        return self.context.store

    def _set_sync_status(self, cnr: str, status: str) -> None:
        self.store.set_sync_status(cnr, status)
        if self.sync_status_callback is not None:
            self.sync_status_callback(cnr, status)

    # --- provider operations ---

    def _get_case_by_cnr(self, cnr: str, config: ProviderConfig):
        if not is_valid_loose_cnr(cnr):
            return self._failure(ErrorCode.INVALID_CNR, "Invalid CNR format")
        case = self.store.cases.get(cnr)
        if case is not None:
            return Success(data=case, provider=self.NAME)
        if self.portal_availability.is_blocked(cnr):
            self._set_sync_status(cnr, SYNC_ACTION_REQUIRED)
            return ActionRequired(
                captcha_url=self.portal_url,
                session_id=cnr,
                provider=self.NAME,
                message=(
                    "Manual fetch required due to captcha/blocking. "
                    "Please complete the process in the official portal."
                ),
                portal_url=self.portal_url,
                requires_manual=True,
            )
        return self._failure(
            ErrorCode.NOT_FOUND,
            "Case not found in imported data. Please import the case first.",
        )

    def _search_case(self, filters: SearchFilters, config: ProviderConfig):
        matches = [case for case in self.store.cases.values() if _matches(case, filters)]
        offset = filters.offset or 0
        limit = filters.limit or DEFAULT_SEARCH_LIMIT
        page = SearchPage(
            cases=matches[offset : offset + limit],
            total=len(matches),
            page=offset // limit + 1,
            limit=limit,
            has_more=offset + limit < len(matches),
        )
        return Success(data=page, provider=self.NAME)

    def _get_cause_list(self, court: str, on_date, config: ProviderConfig):
        day = parse_date(on_date)
        if day is None:
            return self._failure(ErrorCode.INVALID_INPUT, f"Invalid date: {on_date!r}")
        items = []
        for case in self.store.cases.values():
            if case.next_hearing_date != day:
                continue
            if court.lower() not in case.court.lower():
                continue
            items.append(
                CauseListItem(
                    item_number=len(items) + 1,
                    case_number=case.case_number,
                    cnr=case.cnr,
                    title=case.title,
                    parties=[p.name for p in case.parties],
                    advocates=[a.name for a in case.advocates],
                    hearing_time=DEFAULT_HEARING_TIME,
                    purpose="Hearing",
                    judge=case.judges[0] if case.judges else None,
                )
            )
        cause_list = CauseList(
            id=f"manual-cause-list-{court}-{day.isoformat()}",
            court=court,
            date=day,
            items=items,
        )
        return Success(data=cause_list, provider=self.NAME)

    def _list_orders(self, cnr: str, config: ProviderConfig):
        return Success(data=list(self.store.orders.get(cnr, [])), provider=self.NAME)

    def _download_order_pdf(self, order_id: str, config: ProviderConfig):
        return self._failure(
            ErrorCode.NOT_SUPPORTED,
            "PDF download not supported in manual import mode. "
            "Please upload PDF files manually.",
        )

    def _test_connection(self, config: ProviderConfig):
        return Success(data=True, provider=self.NAME)

    # --- import ---

    def import_case(self, case: CanonicalCase) -> Success:
        self.store.put_case(case)
        self._set_sync_status(case.cnr, SYNC_COMPLETED)
        logger.info("Imported case %s", case.cnr)
        return Success(data=True, provider=self.NAME)

    def import_orders(self, cnr: str, orders: list[OrderRecord]) -> Success:
        self.store.put_orders(cnr, orders)
        logger.info("Imported %d order(s) for %s", len(orders), cnr)
        return Success(data=True, provider=self.NAME)

    def parse_portal_html(self, html: str, cnr: str):
        """Parse a saved case-status page and import the case it describes."""
        self._set_sync_status(cnr, SYNC_PENDING)
        try:
            if self.dom_parser is not None:
                parsed = self.dom_parser(html)
                case = parsed[0] if parsed else CanonicalCase(
                    cnr=cnr, case_number=fallback_case_number("REG", cnr)
                )
            else:
                case = normalize_kleopatra(parse_case_status_html(html, self.portal_url), cnr)
        except Exception as e:
            logger.exception("Failed to parse portal HTML for %s", cnr)
            self._set_sync_status(cnr, SYNC_FAILED)
            return self._failure(
                ErrorCode.INVALID_INPUT, f"Failed to parse portal HTML: {e}"
            )
        self.import_case(case)
        return Success(data=case, provider=self.NAME)

    def get_sync_status(self, cnr: str) -> str:
        return self.store.sync_status.get(cnr, SYNC_PENDING)

    def get_all_imported_cases(self) -> list[CanonicalCase]:
        return list(self.store.cases.values())

    def clear_imported_data(self) -> None:
        self.store.cases.clear()
        self.store.orders.clear()


def _contains(haystack: str | None, needle: str) -> bool:
    return needle.lower() in (haystack or "").lower()


def _matches(case: CanonicalCase, filters: SearchFilters) -> bool:
    if filters.cnr and not _contains(case.cnr, filters.cnr):
        return False
    if filters.case_number and not _contains(case.case_number, filters.case_number):
        return False
    if filters.filing_number and not _contains(case.filing_number, filters.filing_number):
        return False
    if filters.year and (case.filing_date is None or case.filing_date.year != filters.year):
        return False
    if filters.court and not _contains(case.court, filters.court):
        return False
    if filters.case_type and not _contains(case.case_type, filters.case_type):
        return False
    if filters.case_status and not _contains(case.case_status, filters.case_status):
        return False
    if filters.party_name and not any(
        _contains(p.name, filters.party_name) for p in case.parties
    ):
        return False
    if filters.advocate_name and not any(
        _contains(a.name, filters.advocate_name) for a in case.advocates
    ):
        return False
    for start, end, value in (
        (filters.filing_date_from, filters.filing_date_to, case.filing_date),
        (filters.hearing_date_from, filters.hearing_date_to, case.next_hearing_date),
    ):
        if not _in_range(value, parse_date(start), parse_date(end)):
            return False
    return True


def _in_range(value: date | None, start: date | None, end: date | None) -> bool:
    if start is None and end is None:
        return True
    if value is None:
        return False
    if start is not None and value < start:
        return False
    if end is not None and value > end:
        return False
    return True
