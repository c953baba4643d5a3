"""Judgments archive provider.

Historical data only; the archive is not kept in sync with live dockets.
Order listings carry the text of each judgment, extracted from its PDF.
"""

import logging

import requests

from ecourts_resolver.models import ProviderCapabilities, ProviderConfig
from ecourts_resolver.providers.base import order_records_from
from ecourts_resolver.providers.district_high_court import DistrictHighCourtProvider
from ecourts_resolver.responses import Success

logger = logging.getLogger(__name__)


class JudgmentsProvider(DistrictHighCourtProvider):
    NAME = "Judgments Provider"
    SOURCE = {"name": "eCourts Judgments", "homepage": "https://judgments.ecourts.gov.in/"}
    CAPABILITIES = ProviderCapabilities(
        supports_cnr_lookup=True,
        supports_case_search=True,
        supports_cause_list=True,
        supports_order_listing=True,
        supports_pdf_download=True,
        supports_real_time_sync=False,
        max_concurrent_requests=5,
        rate_limit_per_minute=30,
        supported_courts=("SUPREME COURT", "HIGH COURT", "CONSTITUTIONAL COURT"),
        supported_case_types=("CONSTITUTIONAL", "CRIMINAL", "CIVIL", "WRIT", "APPEAL"),
    )

    def _list_orders(self, cnr: str, config: ProviderConfig):
        failure = self._validate_cnr(cnr) or self._missing_endpoint(config)
        if failure:
            return failure
        payload = self._api_get_json(config, f"/cases/{cnr}/orders")
        orders = order_records_from(payload, cnr)
        for order in orders:
            if order.order_text or not order.pdf_url:
                continue
            try:
                order.order_text = self._extract_text_from_pdf(order.pdf_url)
            except (requests.RequestException, RuntimeError) as e:
                logger.warning("Could not fetch order PDF %s: %s", order.pdf_url, e)
        return Success(data=orders, provider=self.NAME)
