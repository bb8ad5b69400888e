"""Event registry API client.

All requests go through `EventRegistryApiClient.exec_query`, which paces
requests per client instance, retries transient failures and decodes the
multi-section response body.
"""

from __future__ import annotations

import random
import threading
import time
from typing import Any, Mapping, Protocol, Sequence

import requests

from NewsTracker import __version__
from NewsTracker.core.errors import FatalDispatchError, RetryableTransportError
from NewsTracker.core.models import QueryResponse
from NewsTracker.core.results import RequestedResult
from NewsTracker.sources.eventregistry.parser import decode_response
from NewsTracker.utils.log import log

DEFAULT_HOST = "https://eventregistry.org"
DEFAULT_TIMEOUT = 60.0
DEFAULT_MIN_DELAY = 0.5
DEFAULT_REPEAT_COUNT = 2
BASE_PAUSE = 1.0
MAX_SLEEP = 20.0
RETRYABLE_STATUS = {429, 500, 502, 503, 504}

HEADERS = {
    "User-Agent": f"news-tracker/{__version__}",
    "Accept": "application/json",
}


class DispatchableQuery(Protocol):
    path: str

    def build_payload(self, results: Sequence[RequestedResult] | None = None) -> dict[str, Any]: ...

    def extract_sections(self, body: Mapping[str, Any]) -> Mapping[str, Any]: ...


class RequestPacer:
    """Enforce a minimum delay between consecutive requests.

    Callers sharing one pacer are serialized: each `wait` returns no earlier
    than `min_delay` seconds after the previous one returned.
    """

    def __init__(self, min_delay: float) -> None:
        if min_delay < 0:
            raise ValueError("min_delay must be >= 0")
        self.min_delay = float(min_delay)
        self._lock = threading.Lock()
        self._next_allowed: float | None = None

    def wait(self) -> float:
        """Block until the next request may be sent.

        Returns:
            Seconds slept.
        """
        with self._lock:
            now = time.monotonic()
            slept = 0.0
            if self._next_allowed is not None and now < self._next_allowed:
                slept = self._next_allowed - now
                time.sleep(slept)
                now = time.monotonic()
            self._next_allowed = now + self.min_delay
            return slept


class EventRegistryApiClient:
    """Low-level HTTP client for the event registry API."""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        host: str = DEFAULT_HOST,
        min_delay_between_requests: float = DEFAULT_MIN_DELAY,
        repeat_failed_request_count: int = DEFAULT_REPEAT_COUNT,
        timeout: float = DEFAULT_TIMEOUT,
        verbose_output: bool = False,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize the client with a reusable HTTP session.

        Args:
            api_key: Key sent as ``apiKey`` with every request.
            host: Service base URL.
            min_delay_between_requests: Minimum seconds between two requests.
            repeat_failed_request_count: Retries after the first failed attempt.
            timeout: Per-request timeout in seconds.
            verbose_output: Log one INFO line per request when enabled.
            session: Optional preconfigured session.
        """
        if repeat_failed_request_count < 0:
            raise ValueError("repeat_failed_request_count must be >= 0")
        self.api_key = api_key
        self.host = host.rstrip("/")
        self.repeat_failed_request_count = repeat_failed_request_count
        self.timeout = timeout
        self.verbose_output = verbose_output
        self._pacer = RequestPacer(min_delay_between_requests)
        self._session = session or requests.Session()

    def close(self) -> None:
        """Close the underlying HTTP session.
        """
        self._session.close()

    def __enter__(self) -> EventRegistryApiClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def exec_query(
        self,
        query: DispatchableQuery,
        *,
        results: Sequence[RequestedResult] | None = None,
    ) -> QueryResponse:
        """Send a query and decode every returned result section.

        Args:
            query: Builder providing ``path``, ``build_payload`` and ``extract_sections``.
            results: Sections to request instead of the builder's configured ones.

        Returns:
            Decoded response.

        Raises:
            FatalDispatchError: When the request fails permanently or all
                attempts are exhausted.
        """
        payload = query.build_payload(results)
        body = self.json_request(query.path, payload)
        return decode_response(query.extract_sections(body), body)

    def json_request(self, path: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        """POST a JSON body with pacing and retries.

        Returns:
            The decoded JSON object.

        Raises:
            FatalDispatchError: See `exec_query`.
        """
        url = f"{self.host}{path}"
        body = dict(payload)
        if self.api_key:
            body["apiKey"] = self.api_key

        attempts = self.repeat_failed_request_count + 1
        for attempt in range(1, attempts + 1):
            self._pacer.wait()
            started = time.monotonic()
            try:
                data = self._post_once(url, body, attempt)
            except RetryableTransportError as error:
                if attempt == attempts:
                    log.warning("Request failed after %d attempts: path=%s error=%s", attempts, path, error)
                    raise FatalDispatchError(
                        f"Request to {path} failed after {attempts} attempts: {error}",
                        attempts=attempts,
                        status_code=error.status_code,
                    ) from error
                delay = min(BASE_PAUSE * (2 ** (attempt - 1)) + random.uniform(0, 0.3), MAX_SLEEP)
                log.debug("Request retry path=%s attempt=%d/%d delay=%.2fs error=%s", path, attempt, attempts, delay, error)
                time.sleep(delay)
                continue

            elapsed = time.monotonic() - started
            level_log = log.info if self.verbose_output else log.debug
            level_log("Request path=%s resultType=%s attempt=%d took %.2fs", path, payload.get("resultType"), attempt, elapsed)
            return data

        raise FatalDispatchError(f"Request to {path} was not attempted", attempts=0)

    def _post_once(self, url: str, body: Mapping[str, Any], attempt: int) -> dict[str, Any]:
        """Issue one POST and classify its outcome."""
        try:
            response = self._session.post(url, json=body, headers=HEADERS, timeout=self.timeout)
        except (requests.exceptions.InvalidURL, requests.exceptions.MissingSchema, requests.exceptions.InvalidSchema) as error:
            raise FatalDispatchError(f"Invalid request URL {url}: {error}", attempts=attempt) from error
        except requests.RequestException as error:
            raise RetryableTransportError(f"{type(error).__name__}: {error}") from error

        status = response.status_code
        if status in RETRYABLE_STATUS:
            raise RetryableTransportError(f"HTTP {status}", status_code=status)
        if status >= 400:
            raise FatalDispatchError(f"HTTP {status}: {_snippet(response.text)}", attempts=attempt, status_code=status)

        try:
            data = response.json()
        except ValueError as error:
            raise RetryableTransportError("Malformed response: body is not JSON", status_code=status) from error
        if not isinstance(data, dict):
            raise RetryableTransportError("Malformed response: expected a JSON object", status_code=status)
        if "error" in data:
            raise FatalDispatchError(f"Service error: {data['error']}", attempts=attempt, status_code=status)
        return data


def _snippet(text: str, limit: int = 200) -> str:
    text = (text or "").strip()
    return text if len(text) <= limit else text[:limit] + "..."
