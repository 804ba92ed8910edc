"""Tests for the retry helper and logging utilities."""

import logging
from unittest.mock import MagicMock

import pytest
import requests

from common.http_client import safe_request, with_retries
from common.logging_utils import StructuredFormatter, extra_context, safe_url, Timer


class Flaky(Exception):
    pass


def failing(errors, result="ok"):
    calls = []

    def func():
        calls.append(1)
        if errors:
            raise errors.pop(0)
        return result

    return func, calls


class TestWithRetries:
    """Bounded exponential backoff."""

    def test_backoff_doubles(self):
        delays = []
        func, calls = failing([Flaky(), Flaky()])
        result = with_retries(func, is_transient=lambda e: isinstance(e, Flaky),
                              base_delay=0.5, sleep=delays.append)
        assert result == "ok"
        assert len(calls) == 3
        assert delays == [0.5, 1.0]

    def test_gives_up_after_attempts(self):
        delays = []
        func, calls = failing([Flaky(), Flaky(), Flaky(), Flaky()])
        with pytest.raises(Flaky):
            with_retries(func, is_transient=lambda e: True, attempts=3, base_delay=0.1, sleep=delays.append)
        assert len(calls) == 3
        assert len(delays) == 2

    def test_non_transient_raises_immediately(self):
        func, calls = failing([ValueError("bad")])
        with pytest.raises(ValueError):
            with_retries(func, is_transient=lambda e: isinstance(e, Flaky), sleep=lambda _: None)
        assert len(calls) == 1

    def test_abort_stops_retrying(self):
        func, calls = failing([Flaky(), Flaky()])
        with pytest.raises(Flaky):
            with_retries(func, is_transient=lambda e: True, sleep=lambda _: None, should_abort=lambda: True)
        assert len(calls) == 1


class TestSafeRequest:
    """Timeouts and error propagation."""

    def test_sets_default_timeout(self):
        session = MagicMock()
        session.request.return_value = MagicMock(status_code=200)
        safe_request(session, "GET", "https://repo.example.com/x", context="test")
        assert session.request.call_args[1]["timeout"] == (10, 30)

    def test_timeout_propagates(self):
        session = MagicMock()
        session.request.side_effect = requests.Timeout("slow")
        with pytest.raises(requests.Timeout):
            safe_request(session, "GET", "https://repo.example.com/x", context="test")


class TestLoggingUtils:
    """Redaction and structured fields."""

    def test_safe_url_strips_userinfo(self):
        assert safe_url("https://user:pw@repo.example.com/m2") == "https://[REDACTED]@repo.example.com/m2"

    def test_safe_url_masks_tokens(self):
        masked = safe_url("https://repo.example.com/m2?token=abc&page=2")
        assert "abc" not in masked
        assert "page=2" in masked

    def test_extra_context_drops_none(self):
        assert extra_context(event="x", target=None) == {"event": "x"}

    def test_structured_formatter(self):
        record = logging.LogRecord("n", logging.INFO, __file__, 1, "hello", None, None)
        record.event = "resolve"
        record.count = 3
        assert StructuredFormatter("%(message)s").format(record) == "hello (event=resolve count=3)"

    def test_timer(self):
        with Timer() as timer:
            pass
        assert timer.duration_ms() >= 0
