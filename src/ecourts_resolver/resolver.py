"""Resolution orchestrator: one lookup API over many upstream sources.

The configured mode picks a fixed cascade:

- ``official``: NAPIX, then API Setu, then the manual portal path. Without an
  API key the government APIs are skipped.
- ``manual``: the district portal, then the high court portal. A portal page
  that asks for a CAPTCHA ends the lookup with :class:`ActionRequired`.
- ``third_party``: each configured vendor in turn (Kleopatra, Surepass,
  Legalkart). Court-type templated vendors are tried with the court type
  guessed from the CNR first and then with every other court type.

Attempts run one after another in that order. Failures inside a cascade are
logged and skipped; only the final outcome is returned.
"""

import dataclasses
import logging
import time
import uuid

import requests

from ecourts_resolver.cnr import cascade_order, classify_court_type, is_valid_cnr
from ecourts_resolver.context import ResolverContext
from ecourts_resolver.models import SearchFilters, SearchPage
from ecourts_resolver.normalizers import NORMALIZERS, normalize_kleopatra, normalize_official
from ecourts_resolver.providers.base import DEFAULT_SEARCH_LIMIT, search_page_from
from ecourts_resolver.providers.captcha import CaptchaChallenge
from ecourts_resolver.providers.http_client import DEFAULT_RETRY_ATTEMPTS, DEFAULT_TIMEOUT
from ecourts_resolver.responses import (
    ActionRequired,
    ErrorCode,
    Failure,
    ProviderResult,
    Success,
    with_timing,
)
from ecourts_resolver.sources import (
    KleopatraSource,
    LegalkartSource,
    OfficialApiSource,
    PortalSource,
    SurepassSource,
    VendorSource,
    api_setu_source,
    district_portal,
    high_court_portal,
    napix_source,
)

logger = logging.getLogger(__name__)

RESOLVER_NAME = "eCourts Resolver"
MODES = ("official", "manual", "third_party")

# Errors that move a cascade on to its next attempt.
_CASCADE_ERRORS = (requests.RequestException, ValueError)


@dataclasses.dataclass(frozen=True)
class ResolverConfig:
    mode: str = "official"
    api_key: str | None = None
    base_url: str | None = None
    timeout: float = DEFAULT_TIMEOUT
    retry_attempts: int = DEFAULT_RETRY_ATTEMPTS
    portal_url: str | None = None
    surepass_api_key: str | None = None
    legalkart_api_key: str | None = None

    def __post_init__(self):
        if self.mode not in MODES:
            raise ValueError(
                f"Invalid provider mode {self.mode!r}; expected one of {', '.join(MODES)}"
            )

    @classmethod
    def from_settings(cls) -> "ResolverConfig":
        from ecourts_resolver import settings

        try:
            timeout = float(settings.ECOURTS_TIMEOUT)
            retry_attempts = int(settings.ECOURTS_RETRY_ATTEMPTS)
        except ValueError as e:
            raise ValueError(f"Invalid ECOURTS_TIMEOUT or ECOURTS_RETRY_ATTEMPTS: {e}") from e

        return cls(
            mode=settings.ECOURTS_PROVIDER or "official",
            api_key=settings.ECOURTS_API_KEY or None,
            base_url=settings.ECOURTS_BASE_URL or None,
            timeout=timeout,
            retry_attempts=retry_attempts,
            portal_url=settings.ECOURTS_PORTAL_URL or None,
            surepass_api_key=settings.SUREPASS_API_KEY or None,
            legalkart_api_key=settings.LEGALKART_API_KEY or None,
        )


@dataclasses.dataclass
class ConnectivityReport:
    success: bool
    working_endpoints: list[str]
    error: str | None = None

    def to_dict(self) -> dict:
        out = {"success": self.success, "workingEndpoints": self.working_endpoints}
        if self.error:
            out["error"] = self.error
        return out


class ECourtsResolver:
    """Resolve cases by CNR or search filters according to ``config.mode``.

    Sources are built from the config unless passed in; tests and embedders
    pass their own ``official_sources``, ``portals`` and ``vendors``.
    """

    def __init__(
        self,
        config: ResolverConfig | None = None,
        context: ResolverContext | None = None,
        official_sources: list[OfficialApiSource] | None = None,
        portals: list[PortalSource] | None = None,
        vendors: list[VendorSource] | None = None,
    ):
        self.config = config or ResolverConfig()
        self.context = context if context is not None else ResolverContext()
        client_kwargs = {
            "timeout": self.config.timeout,
            "retry_attempts": self.config.retry_attempts,
        }
        if official_sources is None:
            official_sources = []
            if self.config.api_key:
                official_sources = [
                    napix_source(self.config.api_key, **client_kwargs),
                    api_setu_source(self.config.api_key, **client_kwargs),
                ]
        if portals is None:
            portals = [
                district_portal(self.config.portal_url, **client_kwargs),
                high_court_portal(**client_kwargs),
            ]
        if vendors is None:
            vendors = [
                KleopatraSource(self.config.api_key, self.config.base_url, **client_kwargs),
                SurepassSource(
                    self.config.surepass_api_key or self.config.api_key, **client_kwargs
                ),
                LegalkartSource(
                    self.config.legalkart_api_key or self.config.api_key, **client_kwargs
                ),
            ]
        self.official_sources = official_sources
        self.portals = portals
        self.vendors = vendors

    @classmethod
    def from_settings(cls, context: ResolverContext | None = None) -> "ECourtsResolver":
        return cls(ResolverConfig.from_settings(), context=context)

    def close(self) -> None:
        for source in [*self.official_sources, *self.portals, *self.vendors]:
            source.close()

    def _failure(self, error: ErrorCode, message: str, **kwargs) -> Failure:
        return Failure(error=error, message=message, provider=RESOLVER_NAME, **kwargs)

    def _timed(self, operation: str, fn, *args) -> ProviderResult:
        started = time.monotonic()
        try:
            result = fn(*args)
        except Exception as e:
            logger.exception("%s raised", operation)
            result = self._failure(ErrorCode.UPSTREAM_UNAVAILABLE, f"Unexpected error: {e}")
        return with_timing(result, int((time.monotonic() - started) * 1000))

    # --- lookup by CNR ---

    def get_case_by_cnr(self, cnr: str) -> ProviderResult:
        return self._timed("get_case_by_cnr", self._get_case_by_cnr, cnr)

    def _get_case_by_cnr(self, cnr: str) -> ProviderResult:
        if not is_valid_cnr(cnr):
            return self._failure(
                ErrorCode.INVALID_CNR,
                "CNR must be exactly 16 characters and contain only letters, "
                "digits, and hyphens",
            )
        court_type = classify_court_type(cnr)
        logger.info("Resolving %s (mode=%s, court type=%s)", cnr, self.config.mode, court_type)
        if self.config.mode == "official":
            return self._from_official(cnr)
        if self.config.mode == "manual":
            return self._from_portals(cnr)
        return self._from_vendors(cnr, court_type)

    def _from_official(self, cnr: str) -> ProviderResult:
        for source in self.official_sources:
            try:
                payload = source.fetch_case(cnr)
            except _CASCADE_ERRORS as e:
                logger.warning("%s failed for %s: %s", source.name, cnr, e)
                continue
            if payload is not None:
                logger.info("%s returned %s", source.name, cnr)
                return Success(data=normalize_official(payload, cnr), provider=source.name)
            logger.warning("%s returned no data for %s", source.name, cnr)
        return self._from_portals(cnr)

    def _from_portals(self, cnr: str) -> ProviderResult:
        for portal in self.portals:
            try:
                outcome = portal.lookup(cnr)
            except _CASCADE_ERRORS as e:
                logger.warning("%s not accessible: %s", portal.name, e)
                continue
            if isinstance(outcome, CaptchaChallenge):
                return self._suspend(portal, outcome)
            if outcome is not None:
                return Success(data=normalize_kleopatra(outcome, cnr), provider=portal.name)
            logger.warning("Unable to parse %s data for %s", portal.name, cnr)
        return self._failure(
            ErrorCode.CAPTCHA_REQUIRED,
            "Manual intervention required due to CAPTCHA or access restrictions",
            requires_manual=True,
            requires_captcha=True,
        )

    def _suspend(self, portal: PortalSource, challenge: CaptchaChallenge) -> ActionRequired:
        session_id = challenge.session_id or uuid.uuid4().hex
        self.context.captcha_sessions.record(session_id, portal.name, challenge.captcha_url)
        logger.info("CAPTCHA required on %s", portal.name)
        return ActionRequired(
            captcha_url=challenge.captcha_url,
            session_id=session_id,
            provider=portal.name,
            message=f"CAPTCHA required on {portal.name}",
            portal_url=portal.url,
            requires_manual=True,
        )

    def _from_vendors(self, cnr: str, court_type: str) -> ProviderResult:
        for vendor in self.vendors:
            if not vendor.api_key:
                logger.debug("Skipping %s: no API key", vendor.name)
                continue
            court_types = cascade_order(court_type) if vendor.templated else [None]
            normalize = NORMALIZERS[vendor.family]
            for attempt in court_types:
                label = f"{vendor.name} ({attempt})" if attempt else vendor.name
                try:
                    payload = vendor.fetch_case(cnr, attempt)
                except _CASCADE_ERRORS as e:
                    logger.warning("%s failed for %s: %s", label, cnr, e)
                    continue
                if payload is not None:
                    logger.info("%s returned %s", label, cnr)
                    return Success(data=normalize(payload, cnr), provider=label)
                logger.warning("%s returned no usable data for %s", label, cnr)
        return self._failure(
            ErrorCode.ALL_PROVIDERS_UNAVAILABLE,
            "All third-party APIs are not accessible. "
            "Please check API keys or try manual provider.",
            requires_manual=True,
        )

    # --- search ---

    def search_cases(self, filters: SearchFilters | None = None) -> ProviderResult:
        return self._timed("search_cases", self._search_cases, filters or SearchFilters())

    def _search_cases(self, filters: SearchFilters) -> ProviderResult:
        if not filters.court_type:
            filters = dataclasses.replace(filters, court_type="district")
        if self.config.mode != "third_party":
            return Success(
                data=SearchPage(cases=[], total=0, limit=filters.limit or DEFAULT_SEARCH_LIMIT),
                provider=RESOLVER_NAME,
                message=f"Search is not available in {self.config.mode} mode",
            )
        vendor = self._search_vendor()
        if vendor is None:
            return self._failure(
                ErrorCode.MISSING_CONFIG, "API key required for third-party search"
            )
        try:
            response = vendor.search(filters)
        except _CASCADE_ERRORS as e:
            logger.warning("%s search failed: %s", vendor.name, e)
            return self._failure(
                ErrorCode.API_UNAVAILABLE,
                "All court API endpoints are currently unavailable. Please try again later.",
            )
        page = search_page_from(response, normalize_kleopatra, filters)
        logger.info("%s search returned %d case(s)", vendor.name, len(page.cases))
        return Success(data=page, provider=vendor.name)

    def _search_vendor(self) -> KleopatraSource | None:
        for vendor in self.vendors:
            if vendor.api_key and vendor.templated:
                return vendor
        return None

    def search_by_cnr(self, cnr: str) -> ProviderResult:
        return self.get_case_by_cnr(cnr)

    def search_by_case_number(self, case_number: str, court_type: str = "district"):
        return self.search_cases(
            SearchFilters(case_number=case_number, court_type=court_type, limit=10)
        )

    def search_by_party_name(self, party_name: str, court_type: str | None = None):
        return self.search_cases(
            SearchFilters(party_name=party_name, court_type=court_type, limit=20)
        )

    def search_by_advocate(self, advocate_name: str, court_type: str | None = None):
        return self.search_cases(
            SearchFilters(advocate_name=advocate_name, court_type=court_type, limit=20)
        )

    def search_by_filing_number(self, filing_number: str, court_type: str | None = None):
        return self.search_cases(
            SearchFilters(filing_number=filing_number, court_type=court_type, limit=20)
        )

    def search_by_court_and_date(
        self, court: str, date_from: str, date_to: str, court_type: str | None = None
    ):
        return self.search_cases(
            SearchFilters(
                court=court,
                filing_date_from=date_from,
                filing_date_to=date_to,
                court_type=court_type,
                limit=50,
            )
        )

    # --- diagnostics ---

    def test_connection(self) -> ProviderResult:
        return self._timed("test_connection", self._test_connection)

    def _test_connection(self) -> ProviderResult:
        if self.config.mode == "third_party":
            vendor = self._search_vendor()
            if vendor is None:
                return self._failure(ErrorCode.MISSING_CONFIG, "API key required")
            name, probe = vendor.name, vendor.health
        elif self.config.mode == "official" and self.official_sources:
            name, probe = self.official_sources[0].name, self.official_sources[0].probe
        elif self.portals:
            name, probe = self.portals[0].name, self.portals[0].probe
        else:
            return self._failure(ErrorCode.MISSING_CONFIG, "No source configured")
        try:
            status = probe()
        except requests.RequestException as e:
            logger.warning("%s not accessible: %s", name, e)
            return self._failure(ErrorCode.UPSTREAM_UNAVAILABLE, f"{name} not accessible: {e}")
        if status >= 400:
            return self._failure(
                ErrorCode.UPSTREAM_UNAVAILABLE, f"{name} not accessible (HTTP {status})"
            )
        return Success(data=True, provider=name, message=f"{name} accessible")

    def test_api_connectivity(self) -> ConnectivityReport:
        """Probe every court-type case endpoint of the templated vendors."""
        if not self.config.api_key:
            return ConnectivityReport(False, [], "No API key provided")
        working = []
        for vendor in self.vendors:
            if vendor.templated and vendor.api_key:
                working += vendor.probe_case_endpoints()
        return ConnectivityReport(
            success=bool(working),
            working_endpoints=working,
            error=None if working else "No working endpoints found",
        )
