"""Paid third-party court data provider (Kleopatra-compatible API).

Endpoints are templated by court type::

    POST {base}/api/core/live/{slug}/case        {"cnr": ...}
    POST {base}/api/core/live/{slug}/search      filter payload
    POST {base}/api/core/live/{slug}/cause-list  {"court": ..., "date": ...}
    GET  {base}/health

where *slug* is ``district-court``, ``high-court``, ``supreme-court``,
``nclt``, ``cat`` or ``consumer-forum``.
"""

import logging

import requests

from ecourts_resolver.cnr import (
    COURT_TYPE_SLUGS,
    DISTRICT,
    cascade_order,
    classify_court_type,
    is_valid_loose_cnr,
)
from ecourts_resolver.models import (
    CanonicalCase,
    OrderRecord,
    ProviderCapabilities,
    ProviderConfig,
    SearchFilters,
)
from ecourts_resolver.normalizers import case_payload, normalize_kleopatra, parse_date
from ecourts_resolver.providers.base import (
    HttpCourtProvider,
    cause_list_from,
    search_page_from,
)
from ecourts_resolver.responses import ErrorCode, Success

logger = logging.getLogger(__name__)


def live_path(court_type: str, operation: str) -> str:
    slug = COURT_TYPE_SLUGS.get(court_type, COURT_TYPE_SLUGS[DISTRICT])
    return f"/api/core/live/{slug}/{operation}"


def orders_of(case: CanonicalCase) -> list[OrderRecord]:
    return [
        OrderRecord(
            id=f"{case.cnr}-order-{order.number}",
            cnr=case.cnr,
            order_date=order.date,
            order_type="ORDER",
            order_number=str(order.number),
            order_text=order.name,
            pdf_url=order.url,
            is_downloadable=order.url is not None,
        )
        for order in case.orders
    ]


class ThirdPartyProvider(HttpCourtProvider):
    NAME = "Third Party Provider"
    SOURCE = {"name": "Kleopatra Court API", "homepage": "https://court-api.kleopatra.io"}
    CAPABILITIES = ProviderCapabilities(
        supports_cnr_lookup=True,
        supports_case_search=True,
        supports_cause_list=True,
        supports_order_listing=True,
        supports_pdf_download=True,
        supports_real_time_sync=True,
        max_concurrent_requests=15,
        rate_limit_per_minute=100,
        supported_courts=(
            "THIRD_PARTY_COURT",
            "COMMERCIAL_COURT",
            "FAMILY_COURT",
            "LABOR_COURT",
        ),
        supported_case_types=(
            "CIVIL",
            "CRIMINAL",
            "COMMERCIAL",
            "FAMILY",
            "LABOR",
            "CONSUMER",
        ),
    )

    def _missing_config(self, config: ProviderConfig):
        if not config.api_endpoint or not config.api_key:
            return self._failure(
                ErrorCode.MISSING_CONFIG, "API endpoint and API key are required"
            )
        return None

    def _fetch_case(self, cnr: str, config: ProviderConfig) -> CanonicalCase | None:
        """Try the classified court type first, then the others in order.

        A failing endpoint moves on to the next court type. When no endpoint
        answered at all the last error is raised.
        """
        last_error = None
        answered = False
        for court_type in cascade_order(classify_court_type(cnr)):
            try:
                response = self._api_post_json(
                    config, live_path(court_type, "case"), {"cnr": cnr}
                )
            except requests.HTTPError as e:
                if e.response is not None and e.response.status_code == 404:
                    logger.debug("%s: %s not found as %s case", self.NAME, cnr, court_type)
                    answered = True
                    continue
                logger.warning("%s: %s lookup failed: %s", self.NAME, court_type, e)
                last_error = e
                continue
            except (requests.RequestException, ValueError) as e:
                logger.warning("%s: %s lookup failed: %s", self.NAME, court_type, e)
                last_error = e
                continue
            answered = True
            payload = case_payload(response)
            if payload is not None:
                logger.info("%s: %s found as %s case", self.NAME, cnr, court_type)
                return normalize_kleopatra(payload, cnr)
            logger.debug("%s: no %s case for %s", self.NAME, court_type, cnr)
        if not answered and last_error is not None:
            raise last_error
        return None

    def _get_case_by_cnr(self, cnr: str, config: ProviderConfig):
        if not is_valid_loose_cnr(cnr):
            return self._failure(ErrorCode.INVALID_CNR, "Invalid CNR format")
        failure = self._missing_config(config)
        if failure:
            return failure
        case = self._fetch_case(cnr, config)
        if case is None:
            return self._failure(ErrorCode.NO_DATA, f"No data found for CNR {cnr}")
        return Success(data=case, provider=self.NAME)

    def _search_case(self, filters: SearchFilters, config: ProviderConfig):
        failure = self._missing_config(config)
        if failure:
            return failure
        path = live_path(filters.court_type or DISTRICT, "search")
        response = self._api_post_json(config, path, filters.to_payload())
        page = search_page_from(response, normalize_kleopatra, filters)
        return Success(data=page, provider=self.NAME)

    def _get_cause_list(self, court: str, on_date, config: ProviderConfig):
        day = parse_date(on_date)
        if day is None:
            return self._failure(ErrorCode.INVALID_INPUT, f"Invalid date: {on_date!r}")
        failure = self._missing_config(config)
        if failure:
            return failure
        response = self._api_post_json(
            config,
            live_path(config.court_code or DISTRICT, "cause-list"),
            {"court": court, "date": day.isoformat()},
        )
        return Success(data=cause_list_from(response, court, day), provider=self.NAME)

    def _list_orders(self, cnr: str, config: ProviderConfig):
        if not is_valid_loose_cnr(cnr):
            return self._failure(ErrorCode.INVALID_CNR, "Invalid CNR format")
        failure = self._missing_config(config)
        if failure:
            return failure
        case = self._fetch_case(cnr, config)
        if case is None:
            return self._failure(ErrorCode.NO_DATA, f"No data found for CNR {cnr}")
        return Success(data=orders_of(case), provider=self.NAME)

    def _download_order_pdf(self, order_id: str, config: ProviderConfig):
        """*order_id* is the order's PDF URL as listed by :meth:`list_orders`."""
        if not order_id or not order_id.startswith("http"):
            return self._failure(
                ErrorCode.INVALID_INPUT, "Orders are addressed by their PDF URL"
            )
        failure = self._missing_config(config)
        if failure:
            return failure
        content = self._get(order_id, **self._request_kwargs(config)).content
        if not content:
            return self._failure(ErrorCode.NO_DATA, "Empty PDF returned")
        return Success(data=content, provider=self.NAME)

    def _test_connection(self, config: ProviderConfig):
        failure = self._missing_config(config)
        if failure:
            return failure
        status = self._probe(self._api_url(config, "/health"))
        if status >= 400:
            return self._failure(
                ErrorCode.UPSTREAM_UNAVAILABLE, f"Health check returned {status}"
            )
        return Success(
            data={"status": "connected", "statusCode": status}, provider=self.NAME
        )
