"""District and high court provider over the eCourts-style JSON API."""

import logging

from ecourts_resolver.cnr import is_valid_loose_cnr
from ecourts_resolver.models import ProviderCapabilities, ProviderConfig, SearchFilters
from ecourts_resolver.normalizers import normalize_official, parse_date
from ecourts_resolver.providers.base import (
    HttpCourtProvider,
    cause_list_from,
    order_records_from,
    search_page_from,
)
from ecourts_resolver.responses import ErrorCode, Success

logger = logging.getLogger(__name__)


class DistrictHighCourtProvider(HttpCourtProvider):
    """Case lookup, search, cause lists and orders from ``config.api_endpoint``.

    Endpoints::

        GET  /cases/{cnr}
        POST /cases/search
        GET  /cause-list?court=..&date=YYYY-MM-DD
        GET  /cases/{cnr}/orders
        GET  /orders/{id}/pdf
        GET  /health
    """

    NAME = "District High Court Provider"
    SOURCE = {"name": "eCourts Services", "homepage": "https://services.ecourts.gov.in/"}
    CAPABILITIES = ProviderCapabilities(
        supports_cnr_lookup=True,
        supports_case_search=True,
        supports_cause_list=True,
        supports_order_listing=True,
        supports_pdf_download=True,
        supports_real_time_sync=True,
        max_concurrent_requests=10,
        rate_limit_per_minute=60,
        supported_courts=("DISTRICT COURT", "HIGH COURT", "SESSIONS COURT"),
        supported_case_types=("CIVIL", "CRIMINAL", "WRIT", "APPEAL"),
    )

    def _validate_cnr(self, cnr: str):
        if not is_valid_loose_cnr(cnr):
            return self._failure(ErrorCode.INVALID_CNR, "Invalid CNR format")
        return None

    def _get_case_by_cnr(self, cnr: str, config: ProviderConfig):
        failure = self._validate_cnr(cnr) or self._missing_endpoint(config)
        if failure:
            return failure
        payload = self._api_get_json(config, f"/cases/{cnr}")
        if not isinstance(payload, dict) or not payload:
            return self._failure(ErrorCode.NO_DATA, "No case data returned")
        case = normalize_official(payload, cnr)
        if config.court_code and case.court == "Unknown Court":
            case.court = config.court_code
        logger.info("%s: fetched %s", self.NAME, cnr)
        return Success(data=case, provider=self.NAME)

    def _search_case(self, filters: SearchFilters, config: ProviderConfig):
        failure = self._missing_endpoint(config)
        if failure:
            return failure
        payload = self._api_post_json(config, "/cases/search", filters.to_payload())
        page = search_page_from(
            payload, lambda item, cnr, index: normalize_official(item, cnr), filters
        )
        logger.info("%s: search returned %d case(s)", self.NAME, len(page.cases))
        return Success(data=page, provider=self.NAME)

    def _get_cause_list(self, court: str, on_date, config: ProviderConfig):
        day = parse_date(on_date)
        if day is None:
            return self._failure(ErrorCode.INVALID_INPUT, f"Invalid date: {on_date!r}")
        failure = self._missing_endpoint(config)
        if failure:
            return failure
        payload = self._api_get_json(
            config, "/cause-list", court=court, date=day.isoformat()
        )
        return Success(data=cause_list_from(payload, court, day), provider=self.NAME)

    def _list_orders(self, cnr: str, config: ProviderConfig):
        failure = self._validate_cnr(cnr) or self._missing_endpoint(config)
        if failure:
            return failure
        payload = self._api_get_json(config, f"/cases/{cnr}/orders")
        return Success(data=order_records_from(payload, cnr), provider=self.NAME)

    def _download_order_pdf(self, order_id: str, config: ProviderConfig):
        if not order_id:
            return self._failure(ErrorCode.INVALID_INPUT, "Order id is required")
        failure = self._missing_endpoint(config)
        if failure:
            return failure
        content = self._api_get_content(config, f"/orders/{order_id}/pdf")
        if not content:
            return self._failure(ErrorCode.NO_DATA, "Empty PDF returned")
        return Success(data=content, provider=self.NAME)

    def _test_connection(self, config: ProviderConfig):
        failure = self._missing_endpoint(config)
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
