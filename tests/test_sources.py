import lxml.html
import requests

from ecourts_resolver.models import SearchFilters
from ecourts_resolver.providers.captcha import CaptchaChallenge
from ecourts_resolver.providers.http_client import HttpBaseClient
from ecourts_resolver.sources import (
    KLEOPATRA_URL,
    KleopatraSource,
    LegalkartSource,
    OfficialApiSource,
    PortalSource,
    SurepassSource,
    api_setu_source,
    district_portal,
    napix_source,
)

CNR = "DLHC010011762021"


class FakeJsonResp:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def json(self):
        return self.payload


# --- government APIs ---


def test_official_sources_auth_headers():
    assert napix_source("k").session.headers["Authorization"] == "Bearer k"
    assert api_setu_source("k").session.headers["X-API-KEY"] == "k"


def test_official_fetch_case(monkeypatch):
    paths = []

    def fake_get_json(self, path, **params):
        paths.append(path)
        return [{"caseNumber": "CS 1/2020"}]

    monkeypatch.setattr(OfficialApiSource, "_get_json", fake_get_json)
    assert napix_source("k").fetch_case(CNR) == {"caseNumber": "CS 1/2020"}
    assert paths == [f"/cases/{CNR}"]


def test_official_fetch_case_empty(monkeypatch):
    monkeypatch.setattr(OfficialApiSource, "_get_json", lambda self, path, **p: {})
    assert napix_source("k").fetch_case(CNR) is None


# --- portals ---


def _portal_with_page(monkeypatch, html):
    monkeypatch.setattr(
        PortalSource, "_get_html_tree", lambda self, url, **p: lxml.html.fromstring(html)
    )
    return district_portal("https://services.example/")


def test_portal_lookup_captcha(monkeypatch):
    portal = _portal_with_page(
        monkeypatch, '<html><body><img src="/captcha.php"></body></html>'
    )
    portal.session.cookies.set("PHPSESSID", "p1")
    outcome = portal.lookup(CNR)
    assert outcome == CaptchaChallenge("https://services.example/captcha.php", "p1")


def test_portal_lookup_matching_case(monkeypatch):
    portal = _portal_with_page(
        monkeypatch,
        f"<html><body><table><tr><td>CNR Number</td><td>{CNR}</td></tr></table></body></html>",
    )
    assert portal.lookup(CNR.lower())["cnr"] == CNR


def test_portal_lookup_other_page(monkeypatch):
    portal = _portal_with_page(monkeypatch, "<html><body><p>Welcome</p></body></html>")
    assert portal.lookup(CNR) is None


def test_portal_uses_browser_user_agent():
    assert district_portal().session.headers["User-Agent"].startswith("Mozilla/5.0")
    assert district_portal().session.headers["Accept"].startswith("text/html")


# --- vendors ---


def test_kleopatra_endpoints():
    source = KleopatraSource("k")
    assert source.endpoint("high", "case") == f"{KLEOPATRA_URL}/api/core/live/high-court/case"
    assert source.endpoint("consumer", "search").endswith("/consumer-forum/search")
    assert source.endpoint("unknown", "case").endswith("/district-court/case")
    assert source.session.headers["Authorization"] == "Bearer k"


def test_kleopatra_fetch_case(monkeypatch):
    posted = []

    def fake_post_json(self, url, payload):
        posted.append((url, payload))
        return {"data": {"cnr": CNR}}

    monkeypatch.setattr(KleopatraSource, "_post_json", fake_post_json)
    source = KleopatraSource("k", "https://kleo.example")

    assert source.fetch_case(CNR, "supreme") == {"data": {"cnr": CNR}}
    assert posted == [("https://kleo.example/api/core/live/supreme-court/case", {"cnr": CNR})]


def test_vendor_posts_go_through_retrying_client(monkeypatch):
    calls = []

    def fake_request(self, method, url, **kwargs):
        calls.append((method, url, kwargs["json"]))
        return FakeJsonResp({"data": {"cnr": CNR}})

    monkeypatch.setattr(HttpBaseClient, "_request_with_retry", fake_request)

    assert KleopatraSource("k", "https://kleo.example").fetch_case(CNR, "high")
    assert SurepassSource("k", "https://surepass.example").fetch_case(CNR)
    assert calls == [
        ("POST", "https://kleo.example/api/core/live/high-court/case", {"cnr": CNR}),
        ("POST", "https://surepass.example", {"cnr": CNR}),
    ]


def test_kleopatra_fetch_case_unrecognized(monkeypatch):
    monkeypatch.setattr(
        KleopatraSource, "_post_json", lambda self, url, payload: {"error": "nope"}
    )
    assert KleopatraSource("k").fetch_case(CNR, "district") is None


def test_kleopatra_search_posts_payload(monkeypatch):
    posted = []

    def fake_post_json(self, url, payload):
        posted.append((url, payload))
        return []

    monkeypatch.setattr(KleopatraSource, "_post_json", fake_post_json)
    KleopatraSource("k").search(SearchFilters(party_name="Sharma", court_type="nclt"))
    assert posted == [(f"{KLEOPATRA_URL}/api/core/live/nclt/search", {"party_name": "Sharma"})]


def test_kleopatra_probe_case_endpoints():
    statuses = {"district-court": 200, "high-court": 404, "supreme-court": 500}

    def fake_post(self, url, **kwargs):
        assert kwargs["json"] == {"cnr": "test"}
        for slug, status in statuses.items():
            if f"/{slug}/" in url:
                return FakeJsonResp(None, status)
        raise requests.ConnectionError("down")

    source = KleopatraSource("k")
    source.session = type("S", (), {"post": fake_post})()
    working = source.probe_case_endpoints()

    assert working == [source.endpoint("district", "case"), source.endpoint("high", "case")]


def test_surepass_and_legalkart(monkeypatch):
    monkeypatch.setattr(
        SurepassSource, "_post_json", lambda self, url, payload: {"title": "A vs B"}
    )
    assert SurepassSource("k").fetch_case(CNR) == {"title": "A vs B"}

    paths = []

    def fake_get_json(self, path, **params):
        paths.append(path)
        return {"data": {"cnr": CNR}}

    monkeypatch.setattr(LegalkartSource, "_get_json", fake_get_json)
    source = LegalkartSource("k")
    assert source.fetch_case(CNR) == {"data": {"cnr": CNR}}
    assert paths == [f"/cnr/{CNR}"]
    assert source.session.headers["X-API-KEY"] == "k"
    assert not source.templated
