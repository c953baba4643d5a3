"""Provider interface and the helpers shared by provider variants."""

import logging
import time
from datetime import date

import requests

from ecourts_resolver.context import ResolverContext
from ecourts_resolver.models import (
    CauseList,
    CauseListItem,
    Judge,
    OrderRecord,
    ProviderCapabilities,
    ProviderConfig,
    SearchFilters,
    SearchPage,
)
from ecourts_resolver.normalizers import dig, first_text, parse_date
from ecourts_resolver.providers.http_client import (
    DEFAULT_RETRY_ATTEMPTS,
    DEFAULT_TIMEOUT,
    bearer_headers,
)
from ecourts_resolver.providers.scraper_common import ScraperBaseClient
from ecourts_resolver.responses import ErrorCode, Failure, ProviderResult, with_timing

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT = 20


def elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


class CourtProvider:
    """Base class for court data providers.

    Public operations never raise. Subclasses implement the ``_``-prefixed
    hooks, which receive the effective config (provider defaults merged
    with the per-call override) and may raise ``requests`` exceptions or
    ``ValueError``; :meth:`_call` turns those into :class:`Failure` values
    and stamps ``response_time`` on every result.
    """

    NAME = ""
    SOURCE: dict = {"name": "", "homepage": ""}
    CAPABILITIES: ProviderCapabilities
    DEFAULT_CONFIG = ProviderConfig()

    def __init__(
        self, config: ProviderConfig | None = None, context: ResolverContext | None = None
    ):
        self.config = self.DEFAULT_CONFIG.merged(config)
        self.context = context if context is not None else ResolverContext()

    # --- public operations ---

    def get_case_by_cnr(self, cnr: str, config: ProviderConfig | None = None) -> ProviderResult:
        return self._call("get_case_by_cnr", self._get_case_by_cnr, cnr, config=config)

    def search_case(
        self, filters: SearchFilters | None = None, config: ProviderConfig | None = None
    ) -> ProviderResult:
        return self._call(
            "search_case", self._search_case, filters or SearchFilters(), config=config
        )

    def get_cause_list(
        self, court: str, on_date: date | str, config: ProviderConfig | None = None
    ) -> ProviderResult:
        return self._call(
            "get_cause_list", self._get_cause_list, court, on_date, config=config
        )

    def list_orders(self, cnr: str, config: ProviderConfig | None = None) -> ProviderResult:
        return self._call("list_orders", self._list_orders, cnr, config=config)

    def download_order_pdf(
        self, order_id: str, config: ProviderConfig | None = None
    ) -> ProviderResult:
        return self._call(
            "download_order_pdf", self._download_order_pdf, order_id, config=config
        )

    def test_connection(self, config: ProviderConfig | None = None) -> ProviderResult:
        return self._call("test_connection", self._test_connection, config=config)

    def get_capabilities(self) -> ProviderCapabilities:
        return self.CAPABILITIES

    # --- hooks ---

    def _get_case_by_cnr(self, cnr: str, config: ProviderConfig) -> ProviderResult:
        raise NotImplementedError

    def _search_case(self, filters: SearchFilters, config: ProviderConfig) -> ProviderResult:
        raise NotImplementedError

    def _get_cause_list(self, court: str, on_date, config: ProviderConfig) -> ProviderResult:
        raise NotImplementedError

    def _list_orders(self, cnr: str, config: ProviderConfig) -> ProviderResult:
        raise NotImplementedError

    def _download_order_pdf(self, order_id: str, config: ProviderConfig) -> ProviderResult:
        return self._failure(
            ErrorCode.NOT_SUPPORTED, f"{self.NAME} does not support PDF download"
        )

    def _test_connection(self, config: ProviderConfig) -> ProviderResult:
        raise NotImplementedError

    # --- helpers ---

    def _failure(self, error: ErrorCode, message: str, **kwargs) -> Failure:
        return Failure(error=error, message=message, provider=self.NAME, **kwargs)

    def _call(self, operation: str, hook, *args, config: ProviderConfig | None = None):
        started = time.monotonic()
        effective = self.config.merged(config)
        try:
            result = hook(*args, effective)
        except NotImplementedError:
            raise
        except requests.HTTPError as e:
            if e.response is not None and e.response.status_code == 404:
                logger.info("%s %s: not found upstream", self.NAME, operation)
                result = self._failure(ErrorCode.NOT_FOUND, "Not found upstream")
            else:
                logger.warning("%s %s failed: %s", self.NAME, operation, e)
                result = self._failure(
                    ErrorCode.UPSTREAM_UNAVAILABLE, f"Upstream request failed: {e}"
                )
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", self.NAME, operation, e)
            result = self._failure(
                ErrorCode.UPSTREAM_UNAVAILABLE, f"Upstream request failed: {e}"
            )
        except Exception as e:
            logger.exception("%s %s raised", self.NAME, operation)
            result = self._failure(
                ErrorCode.UPSTREAM_UNAVAILABLE, f"Unexpected error: {e}"
            )
        return with_timing(result, elapsed_ms(started))


class HttpCourtProvider(ScraperBaseClient, CourtProvider):
    """Court provider talking to an HTTP API at ``config.api_endpoint``.

    The endpoint, key and timeouts are taken from the effective config of
    each call, so one instance serves per-call overrides without rebuilding
    its session.
    """

    def __init__(
        self, config: ProviderConfig | None = None, context: ResolverContext | None = None
    ):
        CourtProvider.__init__(self, config, context)
        ScraperBaseClient.__init__(
            self,
            base_url=self.config.api_endpoint or "",
            timeout=self.config.timeout or DEFAULT_TIMEOUT,
            retry_attempts=(
                self.config.retry_attempts
                if self.config.retry_attempts is not None
                else DEFAULT_RETRY_ATTEMPTS
            ),
        )
        self.session.headers["Accept"] = "application/json"

    def _missing_endpoint(self, config: ProviderConfig) -> Failure | None:
        if not config.api_endpoint:
            return self._failure(
                ErrorCode.MISSING_CONFIG, "API endpoint is required"
            )
        return None

    def _auth_headers(self, config: ProviderConfig) -> dict:
        return bearer_headers(config.api_key)

    def _request_kwargs(self, config: ProviderConfig) -> dict:
        kwargs = {"headers": self._auth_headers(config)}
        if config.timeout:
            kwargs["timeout"] = config.timeout
        if config.retry_attempts is not None:
            kwargs["retries"] = config.retry_attempts
        return kwargs

    def _api_url(self, config: ProviderConfig, path: str) -> str:
        return f"{(config.api_endpoint or '').rstrip('/')}{path}"

    def _api_get_json(self, config: ProviderConfig, path: str, **params):
        return self._get(
            self._api_url(config, path), params=params, **self._request_kwargs(config)
        ).json()

    def _api_post_json(self, config: ProviderConfig, path: str, payload: dict):
        return self._post(
            self._api_url(config, path), json=payload, **self._request_kwargs(config)
        ).json()

    def _api_get_content(self, config: ProviderConfig, path: str) -> bytes:
        return self._get(self._api_url(config, path), **self._request_kwargs(config)).content


# --- payload mapping shared by the JSON API providers ---


def search_page_from(payload, normalize, filters: SearchFilters) -> SearchPage:
    """Build a :class:`SearchPage` from a list or ``{cases, total, ...}`` payload.

    Anything else is an empty page. *normalize* is called as
    ``normalize(item, cnr, index)``.
    """
    limit = filters.limit or DEFAULT_SEARCH_LIMIT
    page = 1
    token = None
    if isinstance(payload, list):
        items, total = payload, len(payload)
    elif isinstance(payload, dict) and isinstance(payload.get("cases"), list):
        items = payload["cases"]
        total = payload.get("total") if isinstance(payload.get("total"), int) else len(items)
        page = payload.get("page") if isinstance(payload.get("page"), int) else 1
        limit = payload.get("limit") if isinstance(payload.get("limit"), int) else limit
        token = first_text(payload, ("nextPageToken", "next_page_token")) or None
    else:
        items, total = [], 0
    cases = [
        normalize(item, first_text(item, ("cnr", "cnrNumber", "cnr_number")), index)
        for index, item in enumerate(items)
        if isinstance(item, dict)
    ]
    return SearchPage(
        cases=cases,
        total=total,
        page=page,
        limit=limit,
        has_more=page * limit < total,
        next_page_token=token,
    )


def _judge_from(value) -> Judge | None:
    if isinstance(value, str) and value.strip():
        return Judge(name=value.strip())
    if isinstance(value, dict):
        name = first_text(value, ("name", "judgeName"))
        if name:
            return Judge(
                name=name,
                designation=first_text(value, ("designation",)),
                court=first_text(value, ("court",)),
            )
    return None


def order_records_from(payload, cnr: str) -> list[OrderRecord]:
    items = payload if isinstance(payload, list) else dig(payload, "orders")
    records = []
    for index, item in enumerate(items if isinstance(items, list) else []):
        if not isinstance(item, dict):
            continue
        pdf_url = first_text(item, ("pdfUrl", "pdf_url", "url", "downloadUrl")) or None
        downloadable = item.get("isDownloadable")
        records.append(
            OrderRecord(
                id=first_text(item, ("id", "orderId", "order_id"), f"{cnr}-order-{index + 1}"),
                cnr=cnr,
                order_date=parse_date(
                    item.get("orderDate") or item.get("order_date") or item.get("date")
                ),
                order_type=first_text(item, ("orderType", "order_type", "type"), "ORDER"),
                order_text=first_text(item, ("orderText", "order_text", "text")),
                judge=_judge_from(item.get("judge")),
                order_number=first_text(item, ("orderNumber", "order_number", "number"))
                or str(index + 1),
                pdf_url=pdf_url,
                is_downloadable=(
                    downloadable if isinstance(downloadable, bool) else pdf_url is not None
                ),
            )
        )
    return records


def _str_list(value) -> list[str]:
    if isinstance(value, str):
        return [value] if value.strip() else []
    out = []
    for entry in value if isinstance(value, list) else []:
        if isinstance(entry, str) and entry.strip():
            out.append(entry.strip())
        elif isinstance(entry, dict):
            name = first_text(entry, ("name",))
            if name:
                out.append(name)
    return out


def cause_list_from(payload, court: str, on_date: date) -> CauseList:
    items = payload if isinstance(payload, list) else dig(payload, "items")
    entries = []
    for index, item in enumerate(items if isinstance(items, list) else []):
        if not isinstance(item, dict):
            continue
        number = item.get("itemNumber") or item.get("serialNumber")
        entries.append(
            CauseListItem(
                item_number=number if isinstance(number, int) else index + 1,
                case_number=first_text(item, ("caseNumber", "case_number")),
                cnr=first_text(item, ("cnr",)),
                title=first_text(item, ("title", "caseTitle"), "Unknown Case"),
                parties=_str_list(item.get("parties")),
                advocates=_str_list(item.get("advocates")),
                hearing_time=first_text(item, ("hearingTime", "time")) or None,
                purpose=first_text(item, ("purpose",), "Hearing"),
                judge=_judge_from(item.get("judge")),
            )
        )
    return CauseList(
        id=first_text(payload, ("id",), f"{court}-{on_date.isoformat()}"),
        court=first_text(payload, ("court",), court),
        date=on_date,
        items=entries,
    )
