from __future__ import annotations

import unittest
from unittest import mock

from requests.exceptions import ChunkedEncodingError, HTTPError
from requests.exceptions import ConnectionError as RequestsConnectionError

from urlcache.errors import FetchError
from urlcache.fetcher import HttpFetcher


class _Response:
    def __init__(self, status_code: int, payload: bytes = b"", headers: dict[str, str] | None = None) -> None:
        self.status_code = status_code
        self.payload = payload
        self.headers = headers or {}
        self.fail_read = False

    @property
    def content(self) -> bytes:
        if self.fail_read:
            raise ChunkedEncodingError("Response ended prematurely")
        return self.payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise HTTPError(f"{self.status_code} error", response=self)


class _ScriptedSession:
    def __init__(self, outcomes: list[object]) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[str] = []
        self.closed = False

    def get(self, url: str, timeout: tuple[float, float] | None = None):
        del timeout
        self.calls.append(url)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def close(self) -> None:
        self.closed = True


class HttpFetcherTest(unittest.TestCase):
    url = "https://example.com/data.json"

    def make_fetcher(self, session: _ScriptedSession, max_retries: int = 3) -> HttpFetcher:
        return HttpFetcher(session, max_retries=max_retries, backoff_factor=0)

    def test_returns_body_bytes(self) -> None:
        session = _ScriptedSession([_Response(200, b"{}")])
        fetcher = self.make_fetcher(session)

        self.assertEqual(fetcher.fetch(self.url), b"{}")
        self.assertEqual(session.calls, [self.url])

    def test_retries_retriable_status(self) -> None:
        session = _ScriptedSession([_Response(503), _Response(200, b"ok")])

        self.assertEqual(self.make_fetcher(session).fetch(self.url), b"ok")
        self.assertEqual(len(session.calls), 2)

    def test_retries_broken_stream(self) -> None:
        broken = _Response(200, b"partial")
        broken.fail_read = True
        session = _ScriptedSession([broken, _Response(200, b"full")])

        self.assertEqual(self.make_fetcher(session).fetch(self.url), b"full")
        self.assertEqual(len(session.calls), 2)

    def test_client_error_is_not_retried(self) -> None:
        session = _ScriptedSession([_Response(404)])

        with self.assertRaises(FetchError) as ctx:
            self.make_fetcher(session).fetch(self.url)
        self.assertIsInstance(ctx.exception.__cause__, HTTPError)
        self.assertEqual(ctx.exception.url, self.url)
        self.assertEqual(len(session.calls), 1)

    def test_gives_up_after_max_retries(self) -> None:
        session = _ScriptedSession([RequestsConnectionError("refused")] * 3)

        with self.assertRaises(FetchError):
            self.make_fetcher(session, max_retries=3).fetch(self.url)
        self.assertEqual(len(session.calls), 3)

    def test_retry_after_header_sets_delay(self) -> None:
        fetcher = self.make_fetcher(_ScriptedSession([]))
        self.assertEqual(fetcher._retry_delay(1, _Response(429, headers={"Retry-After": "7"})), 7.0)
        self.assertEqual(fetcher._retry_delay(1, _Response(429, headers={"Retry-After": "soon"})), 0.0)

    def test_default_session_is_owned_and_identified(self) -> None:
        fetcher = HttpFetcher()
        session = fetcher._session
        self.assertTrue(session.headers["User-Agent"].startswith("urlcache/"))
        with mock.patch.object(session, "close") as close:
            fetcher.close()
        close.assert_called_once_with()

    def test_close_leaves_supplied_session_open(self) -> None:
        session = _ScriptedSession([])
        with self.make_fetcher(session):
            pass
        self.assertFalse(session.closed)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
