import pytest
import requests

from ecourts_resolver.providers.http_client import (
    INITIAL_BACKOFF,
    PROBE_TIMEOUT,
    HttpBaseClient,
    _retry_delay,
    api_key_headers,
    bearer_headers,
)


def _session(fake_request):
    return type("S", (), {"request": lambda self, *a, **kw: fake_request(*a, **kw)})()


class FakeRespOK:
    status_code = 200
    headers = {}

    def raise_for_status(self):
        pass

    def json(self):
        return {"ok": True}


# --- construction ---


def test_client_strips_trailing_slash():
    client = HttpBaseClient(base_url="https://api.example.com/")
    assert client.base_url == "https://api.example.com"
    assert client.session.headers["Accept"] == "application/json"


def test_client_extra_headers():
    client = HttpBaseClient(headers=bearer_headers("tok"))
    assert client.session.headers["Authorization"] == "Bearer tok"


def test_auth_header_helpers_skip_empty_key():
    assert bearer_headers(None) == {}
    assert api_key_headers("") == {}
    assert api_key_headers("k") == {"X-API-KEY": "k"}


def test_url_keeps_absolute_urls():
    client = HttpBaseClient(base_url="https://api.example.com")
    assert client._url("/cases/X") == "https://api.example.com/cases/X"
    assert client._url("https://other.example.com/a") == "https://other.example.com/a"


# --- _request_with_retry ---


def test_request_with_retry_success(no_sleep):
    client = HttpBaseClient()
    client.session = _session(lambda method, url, **kw: FakeRespOK())
    resp = client._request_with_retry("GET", "http://example.com")
    assert resp.status_code == 200


def test_request_with_retry_sets_default_timeout(no_sleep):
    seen = {}

    def fake_request(method, url, **kwargs):
        seen.update(kwargs)
        return FakeRespOK()

    client = HttpBaseClient(timeout=12)
    client.session = _session(fake_request)
    client._request_with_retry("GET", "http://example.com")
    assert seen["timeout"] == 12
    assert "retries" not in seen


def test_request_with_retry_503_then_success(no_sleep):
    call_count = [0]

    class FakeResp503:
        status_code = 503
        headers = {}

        def raise_for_status(self):
            pass

    def fake_request(method, url, **kwargs):
        call_count[0] += 1
        if call_count[0] == 1:
            return FakeResp503()
        return FakeRespOK()

    client = HttpBaseClient()
    client.session = _session(fake_request)
    resp = client._request_with_retry("GET", "http://example.com")
    assert resp.status_code == 200
    assert call_count[0] == 2


def test_request_with_retry_429_uses_retry_after(monkeypatch):
    sleeps = []
    monkeypatch.setattr(
        "ecourts_resolver.providers.http_client.time.sleep", lambda s: sleeps.append(s)
    )
    call_count = [0]

    class FakeResp429:
        status_code = 429
        headers = {"Retry-After": "3"}

        def raise_for_status(self):
            pass

    def fake_request(method, url, **kwargs):
        call_count[0] += 1
        if call_count[0] == 1:
            return FakeResp429()
        return FakeRespOK()

    client = HttpBaseClient()
    client.session = _session(fake_request)
    resp = client._request_with_retry("GET", "http://example.com")
    assert resp.status_code == 200
    assert sleeps == [3.0]


def test_request_with_retry_connection_error_then_success(no_sleep):
    call_count = [0]

    def fake_request(method, url, **kwargs):
        call_count[0] += 1
        if call_count[0] == 1:
            raise requests.ConnectionError("fail")
        return FakeRespOK()

    client = HttpBaseClient()
    client.session = _session(fake_request)
    resp = client._request_with_retry("GET", "http://example.com")
    assert resp.status_code == 200


def test_request_with_retry_connection_error_exhausted(no_sleep):
    call_count = [0]

    def fake_request(method, url, **kwargs):
        call_count[0] += 1
        raise requests.ConnectionError("fail")

    client = HttpBaseClient(retry_attempts=1)
    client.session = _session(fake_request)
    with pytest.raises(requests.ConnectionError):
        client._request_with_retry("GET", "http://example.com")
    assert call_count[0] == 2


def test_request_with_retry_per_call_retries(no_sleep):
    call_count = [0]

    def fake_request(method, url, **kwargs):
        call_count[0] += 1
        raise requests.ConnectionError("fail")

    client = HttpBaseClient(retry_attempts=5)
    client.session = _session(fake_request)
    with pytest.raises(requests.ConnectionError):
        client._request_with_retry("GET", "http://example.com", retries=0)
    assert call_count[0] == 1


def test_request_with_retry_timeout_not_retried(no_sleep):
    call_count = [0]

    def fake_request(method, url, **kwargs):
        call_count[0] += 1
        raise requests.Timeout("slow")

    client = HttpBaseClient(retry_attempts=3)
    client.session = _session(fake_request)
    with pytest.raises(requests.Timeout):
        client._request_with_retry("GET", "http://example.com")
    assert call_count[0] == 1


def test_request_with_retry_non_retryable_error(no_sleep):
    class FakeResp404:
        status_code = 404
        headers = {}

        def raise_for_status(self):
            raise requests.HTTPError(response=self)

    client = HttpBaseClient()
    client.session = _session(lambda method, url, **kw: FakeResp404())
    with pytest.raises(requests.HTTPError):
        client._request_with_retry("GET", "http://example.com")


# --- helpers ---


def test_get_json_uses_retry(monkeypatch):
    calls = []

    def mock_request(self, method, url, **kwargs):
        calls.append((method, url, kwargs))
        return FakeRespOK()

    monkeypatch.setattr(HttpBaseClient, "_request_with_retry", mock_request)

    client = HttpBaseClient(base_url="https://api.example.com")
    assert client._get_json("/cases", court="X") == {"ok": True}
    assert calls == [("GET", "https://api.example.com/cases", {"params": {"court": "X"}})]


def test_post_json_sends_payload(monkeypatch):
    calls = []

    def mock_request(self, method, url, **kwargs):
        calls.append((method, url, kwargs))
        return FakeRespOK()

    monkeypatch.setattr(HttpBaseClient, "_request_with_retry", mock_request)

    client = HttpBaseClient(base_url="https://api.example.com")
    client._post_json("/cases/search", {"party_name": "Sharma"})
    assert calls[0][0] == "POST"
    assert calls[0][2] == {"json": {"party_name": "Sharma"}}


def test_probe_returns_status_without_raising():
    seen = {}

    class FakeResp500:
        status_code = 500

    def fake_get(self, url, **kwargs):
        seen["url"] = url
        seen.update(kwargs)
        return FakeResp500()

    client = HttpBaseClient(base_url="https://api.example.com")
    client.session = type("S", (), {"get": fake_get})()
    assert client._probe("/health") == 500
    assert seen == {"url": "https://api.example.com/health", "timeout": PROBE_TIMEOUT}


# --- _retry_delay ---


def test_retry_delay_uses_retry_after_header():
    class FakeResp:
        headers = {"Retry-After": "5"}

    assert _retry_delay(FakeResp(), attempt=0) == 5.0


def test_retry_delay_retry_after_minimum_1():
    class FakeResp:
        headers = {"Retry-After": "0.5"}

    assert _retry_delay(FakeResp(), attempt=0) == 1.0


def test_retry_delay_invalid_retry_after_falls_back():
    class FakeResp:
        headers = {"Retry-After": "not-a-number"}

    assert _retry_delay(FakeResp(), attempt=2) == INITIAL_BACKOFF * 4
