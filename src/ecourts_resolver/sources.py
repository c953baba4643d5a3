"""Upstream sources the resolver cascades through.

Each source wraps one remote service and exposes the single call the
resolver needs from it. Sources raise ``requests`` exceptions on transport
errors and return ``None`` when the service answered without a usable case;
the resolver decides what happens next.
"""

import logging

import requests

from ecourts_resolver.cnr import COURT_TYPE_SLUGS, DISTRICT, LOOKUP_COURT_TYPES
from ecourts_resolver.models import SearchFilters
from ecourts_resolver.normalizers import case_payload
from ecourts_resolver.providers.captcha import CaptchaChallenge
from ecourts_resolver.providers.http_client import (
    PROBE_TIMEOUT,
    HttpBaseClient,
    api_key_headers,
    bearer_headers,
)
from ecourts_resolver.providers.scraper_common import (
    ScraperBaseClient,
    find_captcha,
    parse_case_status_html,
)

logger = logging.getLogger(__name__)

NAPIX_URL = "https://napix.gov.in/api/ecourts"
API_SETU_URL = "https://apisetu.gov.in/api/ecourts"
DISTRICT_PORTAL_URL = "https://services.ecourts.gov.in/"
HIGH_COURT_PORTAL_URL = "https://hcservices.ecourts.gov.in/"

KLEOPATRA_URL = "https://court-api.kleopatra.io"
SUREPASS_URL = "https://surepass.io/api/ecourt-cnr-search"
LEGALKART_URL = "https://www.legalkart.com/api/ecourts"


def _official_payload(response) -> dict | None:
    if isinstance(response, list):
        return _official_payload(response[0]) if response else None
    if isinstance(response, dict) and response:
        return response
    return None


# --- government APIs ---


class OfficialApiSource(HttpBaseClient):
    """NAPIX or API Setu: ``GET {base}/cases/{cnr}``."""

    def __init__(self, name: str, base_url: str, headers: dict, **kwargs):
        super().__init__(base_url=base_url, headers=headers, **kwargs)
        self.name = name

    def fetch_case(self, cnr: str) -> dict | None:
        return _official_payload(self._get_json(f"/cases/{cnr}"))

    def probe(self) -> int:
        return self._probe(self.base_url)


def napix_source(api_key: str, **kwargs) -> OfficialApiSource:
    return OfficialApiSource("NAPIX", NAPIX_URL, bearer_headers(api_key), **kwargs)


def api_setu_source(api_key: str, **kwargs) -> OfficialApiSource:
    return OfficialApiSource("API Setu", API_SETU_URL, api_key_headers(api_key), **kwargs)


# --- eCourts portals ---


class PortalSource(ScraperBaseClient):
    """An eCourts services portal page, scraped as HTML.

    :meth:`lookup` returns a :class:`CaptchaChallenge` when the page demands
    one, the parsed case payload when the page shows the requested case, and
    ``None`` otherwise.
    """

    def __init__(self, name: str, url: str, **kwargs):
        super().__init__(base_url=url, **kwargs)
        self.name = name
        self.url = url
        self.session.headers["User-Agent"] = (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
        )

    def lookup(self, cnr: str) -> CaptchaChallenge | dict | None:
        tree = self._get_html_tree(self.url)
        captcha_url = find_captcha(tree, self.url)
        if captcha_url is not None:
            return CaptchaChallenge(captcha_url=captcha_url, session_id=self.session_id())
        payload = parse_case_status_html(tree, self.url)
        if payload.get("cnr", "").upper() != cnr.upper():
            logger.debug("%s: page does not show %s", self.name, cnr)
            return None
        return payload

    def probe(self) -> int:
        return self._probe(self.url)


def district_portal(url: str | None = None, **kwargs) -> PortalSource:
    return PortalSource("District Portal", url or DISTRICT_PORTAL_URL, **kwargs)


def high_court_portal(url: str | None = None, **kwargs) -> PortalSource:
    return PortalSource("High Court Portal", url or HIGH_COURT_PORTAL_URL, **kwargs)


# --- paid vendors ---


class VendorSource(HttpBaseClient):
    """Paid court-data vendor.

    ``templated`` vendors expose one endpoint per court type and are tried
    once per court type; the others are called once with the bare CNR.
    ``family`` names the normalizer their payloads go through.
    """

    name = ""
    family = "third_party"
    templated = False

    def __init__(self, api_key: str | None, base_url: str = "", **kwargs):
        super().__init__(base_url=base_url, **kwargs)
        self.api_key = api_key

    def fetch_case(self, cnr: str, court_type: str | None = None) -> dict | None:
        raise NotImplementedError


class KleopatraSource(VendorSource):
    name = "Kleopatra"
    family = "kleopatra"
    templated = True

    def __init__(self, api_key: str | None, base_url: str | None = None, **kwargs):
        super().__init__(api_key, base_url or KLEOPATRA_URL, **kwargs)
        self.session.headers.update(bearer_headers(api_key))

    def endpoint(self, court_type: str, operation: str) -> str:
        slug = COURT_TYPE_SLUGS.get(court_type, COURT_TYPE_SLUGS[DISTRICT])
        return f"{self.base_url}/api/core/live/{slug}/{operation}"

    def fetch_case(self, cnr: str, court_type: str | None = None) -> dict | None:
        url = self.endpoint(court_type or DISTRICT, "case")
        return case_payload(self._post_json(url, {"cnr": cnr}))

    def search(self, filters: SearchFilters):
        url = self.endpoint(filters.court_type or DISTRICT, "search")
        return self._post_json(url, filters.to_payload())

    def health(self) -> int:
        return self._probe(f"{self.base_url}/health")

    def probe_case_endpoints(self) -> list[str]:
        """Case endpoints that answer a dummy lookup with 200 or 404."""
        working = []
        for court_type in LOOKUP_COURT_TYPES:
            url = self.endpoint(court_type, "case")
            try:
                resp = self.session.post(url, json={"cnr": "test"}, timeout=PROBE_TIMEOUT)
            except requests.RequestException as e:
                logger.debug("Probe of %s failed: %s", url, e)
                continue
            if resp.status_code in (200, 404):
                working.append(url)
        return working


class SurepassSource(VendorSource):
    name = "Surepass"

    def __init__(self, api_key: str | None, base_url: str | None = None, **kwargs):
        super().__init__(api_key, base_url or SUREPASS_URL, **kwargs)
        self.session.headers.update(bearer_headers(api_key))

    def fetch_case(self, cnr: str, court_type: str | None = None) -> dict | None:
        return case_payload(self._post_json(self.base_url, {"cnr": cnr}))


class LegalkartSource(VendorSource):
    name = "Legalkart"

    def __init__(self, api_key: str | None, base_url: str | None = None, **kwargs):
        super().__init__(api_key, base_url or LEGALKART_URL, **kwargs)
        self.session.headers.update(api_key_headers(api_key))

    def fetch_case(self, cnr: str, court_type: str | None = None) -> dict | None:
        return case_payload(self._get_json(f"/cnr/{cnr}"))
