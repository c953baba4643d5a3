"""HTTP client with retry, auth headers, and per-client timeouts."""

import logging
import time

import requests
from requests import Response

logger = logging.getLogger(__name__)

USER_AGENT = "ecourts-resolver/0.1.0"
DEFAULT_TIMEOUT = 30  # seconds
PROBE_TIMEOUT = 5  # seconds
DEFAULT_RETRY_ATTEMPTS = 2
INITIAL_BACKOFF = 1  # seconds

# HTTP status codes that trigger a retry
_RETRYABLE_STATUS_CODES = (429, 503)


def _retry_delay(resp: Response, attempt: int) -> float:
    """Compute wait time from Retry-After header or exponential backoff."""
    retry_after = resp.headers.get("Retry-After")
    if retry_after is not None:
        try:
            return max(float(retry_after), 1)
        except (ValueError, TypeError):
            pass
    return INITIAL_BACKOFF * (2**attempt)


def bearer_headers(api_key: str | None) -> dict:
    if not api_key:
        return {}
    return {"Authorization": f"Bearer {api_key}"}


def api_key_headers(api_key: str | None) -> dict:
    if not api_key:
        return {}
    return {"X-API-KEY": api_key}


class HttpBaseClient:
    """Generic HTTP client with retry and session management.

    Wraps a requests.Session. Requests are retried on 429/503 responses and
    connection errors with exponential backoff, up to ``retry_attempts``
    extra attempts; a Retry-After header overrides the backoff. Timeouts are
    not retried: in a cascade a timeout means "move on to the next source".
    """

    def __init__(
        self,
        base_url: str = "",
        timeout: float = DEFAULT_TIMEOUT,
        retry_attempts: int = DEFAULT_RETRY_ATTEMPTS,
        headers: dict | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_attempts = retry_attempts
        self.session = requests.Session()
        self.session.headers["User-Agent"] = USER_AGENT
        self.session.headers["Accept"] = "application/json"
        if headers:
            self.session.headers.update(headers)

    def close(self) -> None:
        self.session.close()

    def _url(self, url_or_path: str) -> str:
        if url_or_path.startswith("http"):
            return url_or_path
        return f"{self.base_url}{url_or_path}"

    def _request_with_retry(self, method: str, url: str, **kwargs) -> Response:
        """Execute HTTP request with retry on 429/503 and connection errors.

        If the response includes a Retry-After header its value is used as
        wait time; otherwise exponential backoff is applied (1s, 2s, 4s, ...).
        """
        kwargs.setdefault("timeout", self.timeout)
        retries = kwargs.pop("retries", None)
        if retries is None:
            retries = self.retry_attempts
        for attempt in range(retries + 1):
            try:
                resp = self.session.request(method, url, **kwargs)
                if (
                    resp.status_code in _RETRYABLE_STATUS_CODES
                    and attempt < retries
                ):
                    delay = _retry_delay(resp, attempt)
                    logger.warning(
                        "%d on %s, retrying in %ds (attempt %d/%d)",
                        resp.status_code,
                        url,
                        delay,
                        attempt + 1,
                        retries,
                    )
                    time.sleep(delay)
                    continue
                resp.raise_for_status()
                return resp
            except requests.ConnectionError:
                if attempt < retries:
                    delay = INITIAL_BACKOFF * (2**attempt)
                    logger.warning(
                        "Connection error on %s, retrying in %ds (attempt %d/%d)",
                        url,
                        delay,
                        attempt + 1,
                        retries,
                    )
                    time.sleep(delay)
                    continue
                raise
        # Unreachable in practice -- the last attempt either returns or raises
        raise requests.ConnectionError(
            f"Failed after {retries} retries: {url}"
        )

    def _get(self, url_or_path: str, **kwargs) -> Response:
        """GET request, prepending base_url if path doesn't start with http."""
        url = self._url(url_or_path)
        logger.debug("GET %s kwargs=%s", url, kwargs or "")
        return self._request_with_retry("GET", url, **kwargs)

    def _post(self, url_or_path: str, **kwargs) -> Response:
        """POST request, prepending base_url if path doesn't start with http."""
        url = self._url(url_or_path)
        logger.debug("POST %s", url)
        return self._request_with_retry("POST", url, **kwargs)

    def _get_json(self, path: str, **params):
        """GET JSON from base_url + path."""
        resp = self._get(path, params=params)
        return resp.json()

    def _post_json(self, path: str, payload: dict):
        """POST *payload* as JSON and decode the JSON response."""
        resp = self._post(path, json=payload)
        return resp.json()

    def _probe(self, path: str) -> int:
        """Single short request without retries; returns the status code.

        Any status counts as a response; only network errors propagate.
        """
        url = self._url(path)
        logger.debug("PROBE %s", url)
        resp = self.session.get(url, timeout=PROBE_TIMEOUT)
        return resp.status_code
