"""Blocking HTTP downloads used to fill cache misses."""

from __future__ import annotations

import logging
import time
from typing import Protocol

from requests import Response, Session
from requests.exceptions import HTTPError, RequestException

from .errors import FetchError

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Accept": "*/*",
    "User-Agent": "urlcache/0.1 (+python-requests)",
}
RETRIABLE_STATUSES = {408, 425, 429, 500, 502, 503, 504}


class Fetcher(Protocol):
    def fetch(self, url: str) -> bytes: ...


class HttpFetcher:
    """Download URLs with a shared :class:`requests.Session`.

    Retriable statuses, dropped connections and truncated bodies are tried
    again up to *max_retries* times in total. Every other failure, and the
    last attempt, raises :class:`~urlcache.errors.FetchError`.
    """

    def __init__(
        self,
        session: Session | None = None,
        *,
        max_retries: int = 3,
        backoff_factor: float = 0.5,
        timeout: tuple[float, float] = (15.0, 90.0),
    ) -> None:
        self.max_retries = max(1, max_retries)
        self.backoff_factor = max(backoff_factor, 0.0)
        self.timeout = timeout
        self._session_owner = session is None
        if session is None:
            session = Session()
            session.headers.update(DEFAULT_HEADERS)
        self._session = session

    def __enter__(self) -> "HttpFetcher":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def close(self) -> None:
        if self._session_owner:
            self._session.close()

    def fetch(self, url: str) -> bytes:
        for attempt in range(1, self.max_retries + 1):
            try:
                response = self._session.get(url, timeout=self.timeout)
                response.raise_for_status()
                # A truncated body raises here and is retried like a failed request.
                return response.content
            except RequestException as exc:
                retriable = not isinstance(exc, HTTPError) or (
                    exc.response is not None and exc.response.status_code in RETRIABLE_STATUSES
                )
                if not retriable or attempt == self.max_retries:
                    raise FetchError(url, str(exc)) from exc
                delay = self._retry_delay(attempt, exc.response if isinstance(exc, HTTPError) else None)
                logger.debug("Retrying %s in %.1fs after %s (attempt %d)", url, delay, exc, attempt)
                if delay > 0:
                    time.sleep(delay)
        raise AssertionError("unreachable")  # pragma: no cover

    def _retry_delay(self, attempt: int, response: Response | None = None) -> float:
        if response is not None:
            retry_after = response.headers.get("Retry-After", "")
            try:
                return max(float(retry_after), 0.0)
            except ValueError:
                pass
        return self.backoff_factor * (2 ** (attempt - 1))


__all__ = ["DEFAULT_HEADERS", "Fetcher", "HttpFetcher", "RETRIABLE_STATUSES"]
