"""Karnataka High Court provider (Bengaluru, Dharwad and Kalaburagi benches).

The bench portal intermittently demands a CAPTCHA. Every operation except
:meth:`test_connection` asks the injected :class:`CaptchaGate` first and
suspends with :class:`ActionRequired` when a challenge is open; the challenge
is recorded in the context's CAPTCHA sessions so a UI can pick it up.
"""

import logging
import uuid

from ecourts_resolver.cnr import is_valid_khc_cnr
from ecourts_resolver.context import ResolverContext
from ecourts_resolver.models import (
    CanonicalCase,
    ProviderCapabilities,
    ProviderConfig,
    SearchFilters,
)
from ecourts_resolver.normalizers import first_text, normalize_official, parse_date
from ecourts_resolver.providers.base import (
    HttpCourtProvider,
    cause_list_from,
    order_records_from,
    search_page_from,
)
from ecourts_resolver.providers.captcha import CaptchaGate, HtmlCaptchaGate
from ecourts_resolver.responses import ActionRequired, ErrorCode, Success

logger = logging.getLogger(__name__)

BENCH_LOCATIONS = {
    "bengaluru": "Bengaluru",
    "dharwad": "Dharwad",
    "kalaburagi": "Kalaburagi",
}
DEFAULT_BENCH = "bengaluru"


def bench_court(bench: str) -> str:
    return f"KARNATAKA HIGH COURT - {bench.upper()}"


class KarnatakaHighCourtProvider(HttpCourtProvider):
    NAME = "Karnataka High Court Provider"
    SOURCE = {"name": "High Court of Karnataka", "homepage": "https://karnatakajudiciary.kar.nic.in/"}
    CAPABILITIES = ProviderCapabilities(
        supports_cnr_lookup=True,
        supports_case_search=True,
        supports_cause_list=True,
        supports_order_listing=True,
        supports_pdf_download=True,
        supports_real_time_sync=True,
        max_concurrent_requests=8,
        rate_limit_per_minute=40,
        supported_courts=tuple(bench_court(b) for b in BENCH_LOCATIONS),
        supported_case_types=("WRIT", "APPEAL", "CRIMINAL", "CIVIL", "CONSTITUTIONAL"),
    )
    DEFAULT_CONFIG = ProviderConfig(bench_code=DEFAULT_BENCH)

    def __init__(
        self,
        config: ProviderConfig | None = None,
        context: ResolverContext | None = None,
        captcha_gate: CaptchaGate | None = None,
    ):
        super().__init__(config, context)
        self.captcha_gate = captcha_gate or HtmlCaptchaGate()

    # --- preconditions ---

    def _bench(self, config: ProviderConfig) -> str:
        return (config.bench_code or "").lower()

    def _check_config(self, config: ProviderConfig):
        if not config.api_endpoint:
            return self._failure(ErrorCode.MISSING_CONFIG, "API endpoint is required")
        bench = self._bench(config)
        if not bench:
            return self._failure(
                ErrorCode.MISSING_CONFIG,
                "Bench is required for Karnataka High Court provider",
            )
        if bench not in BENCH_LOCATIONS:
            return self._failure(
                ErrorCode.INVALID_INPUT,
                f"Unknown bench {bench!r}; expected one of {', '.join(BENCH_LOCATIONS)}",
            )
        return None

    def _captcha(self, config: ProviderConfig) -> ActionRequired | None:
        portal_url = config.api_endpoint or ""
        challenge = self.captcha_gate.check(self, portal_url)
        if challenge is None:
            return None
        session_id = challenge.session_id or f"khc-session-{uuid.uuid4().hex[:12]}"
        self.context.captcha_sessions.record(session_id, self.NAME, challenge.captcha_url)
        return ActionRequired(
            captcha_url=challenge.captcha_url,
            session_id=session_id,
            provider=self.NAME,
            portal_url=portal_url,
        )

    def _preconditions(self, config: ProviderConfig):
        return self._check_config(config) or self._captcha(config)

    def _localize(self, case: CanonicalCase, config: ProviderConfig) -> CanonicalCase:
        bench = self._bench(config)
        if case.court == "Unknown Court":
            case.court = bench_court(bench)
        if case.court_location == "Unknown Location":
            case.court_location = BENCH_LOCATIONS[bench]
        return case

    # --- provider operations ---

    def _get_case_by_cnr(self, cnr: str, config: ProviderConfig):
        if not is_valid_khc_cnr(cnr):
            return self._failure(ErrorCode.INVALID_CNR, "Invalid Karnataka High Court CNR")
        blocked = self._preconditions(config)
        if blocked:
            return blocked
        payload = self._api_get_json(config, f"/cases/{cnr}", bench=self._bench(config))
        if not isinstance(payload, dict) or not payload:
            return self._failure(ErrorCode.NO_DATA, "No case data returned")
        case = self._localize(normalize_official(payload, cnr), config)
        return Success(data=case, provider=self.NAME)

    def _search_case(self, filters: SearchFilters, config: ProviderConfig):
        blocked = self._preconditions(config)
        if blocked:
            return blocked
        payload = dict(filters.to_payload(), bench=self._bench(config))
        response = self._api_post_json(config, "/cases/search", payload)
        page = search_page_from(
            response,
            lambda item, cnr, index: self._localize(normalize_official(item, cnr), config),
            filters,
        )
        return Success(data=page, provider=self.NAME)

    def _get_cause_list(self, court: str, on_date, config: ProviderConfig):
        day = parse_date(on_date)
        if day is None:
            return self._failure(ErrorCode.INVALID_INPUT, f"Invalid date: {on_date!r}")
        blocked = self._preconditions(config)
        if blocked:
            return blocked
        bench = self._bench(config)
        payload = self._api_get_json(
            config, "/cause-list", bench=bench, court=court, date=day.isoformat()
        )
        cause_list = cause_list_from(payload, bench_court(bench), day)
        if not isinstance(payload, dict) or "id" not in payload:
            cause_list.id = f"khc-cause-list-{bench}-{day.isoformat()}"
        return Success(data=cause_list, provider=self.NAME)

    def _list_orders(self, cnr: str, config: ProviderConfig):
        if not is_valid_khc_cnr(cnr):
            return self._failure(ErrorCode.INVALID_CNR, "Invalid Karnataka High Court CNR")
        blocked = self._preconditions(config)
        if blocked:
            return blocked
        payload = self._api_get_json(config, f"/cases/{cnr}/orders", bench=self._bench(config))
        return Success(data=order_records_from(payload, cnr), provider=self.NAME)

    def _download_order_pdf(self, order_id: str, config: ProviderConfig):
        if not order_id:
            return self._failure(ErrorCode.INVALID_INPUT, "Order id is required")
        blocked = self._preconditions(config)
        if blocked:
            return blocked
        content = self._api_get_content(config, f"/orders/{order_id}/pdf")
        if not content:
            return self._failure(ErrorCode.NO_DATA, "Empty PDF returned")
        return Success(data=content, provider=self.NAME)

    def _test_connection(self, config: ProviderConfig):
        failure = self._check_config(config)
        if failure:
            return failure
        status = self._probe(self._api_url(config, "/health"))
        if status >= 400:
            return self._failure(
                ErrorCode.UPSTREAM_UNAVAILABLE, f"Health check returned {status}"
            )
        return Success(
            data={"status": "connected", "bench": self._bench(config)}, provider=self.NAME
        )

    # --- bench-specific operations ---

    def get_khc_case_by_number(self, case_number: str, config: ProviderConfig | None = None):
        """Look a case up by its bench registration number (e.g. ``WP 1234/2023``)."""
        return self._call(
            "get_khc_case_by_number", self._get_khc_case_by_number, case_number, config=config
        )

    def _get_khc_case_by_number(self, case_number: str, config: ProviderConfig):
        if not case_number or not case_number.strip():
            return self._failure(ErrorCode.INVALID_INPUT, "Case number is required")
        blocked = self._preconditions(config)
        if blocked:
            return blocked
        payload = self._api_get_json(
            config, "/cases/by-number", caseNumber=case_number.strip(), bench=self._bench(config)
        )
        if not isinstance(payload, dict) or not payload:
            return self._failure(ErrorCode.NO_DATA, f"No case found for {case_number}")
        case = normalize_official(payload, payload.get("cnr") or "")
        if not first_text(payload, ("caseNumber", "case_number", "registrationNumber")):
            case.case_number = case_number.strip()
        return Success(data=self._localize(case, config), provider=self.NAME)

    def list_khc_orders(self, case_number: str, config: ProviderConfig | None = None):
        """List the orders of a case addressed by its bench registration number."""
        return self._call(
            "list_khc_orders", self._list_khc_orders, case_number, config=config
        )

    def _list_khc_orders(self, case_number: str, config: ProviderConfig):
        if not case_number or not case_number.strip():
            return self._failure(ErrorCode.INVALID_INPUT, "Case number is required")
        blocked = self._preconditions(config)
        if blocked:
            return blocked
        payload = self._api_get_json(
            config,
            "/cases/by-number/orders",
            caseNumber=case_number.strip(),
            bench=self._bench(config),
        )
        cnr = first_text(payload, ("cnr",)) or case_number.strip()
        return Success(data=order_records_from(payload, cnr), provider=self.NAME)

    def search_khc_cases(
        self,
        filters: SearchFilters | None = None,
        bench: str | None = None,
        config: ProviderConfig | None = None,
    ):
        """Search one bench; *bench* overrides the configured one for this call."""
        if bench:
            config = (config or ProviderConfig()).merged(ProviderConfig(bench_code=bench))
        return self.search_case(filters, config=config)
