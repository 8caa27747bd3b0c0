# ==============================================
# Tests for RetryPolicy / RetryingFetcher
# ==============================================

import logging

import pytest

from prtg_stream.errors import ProtocolError, TransportError
from prtg_stream.request.query import Content, Page, Query
from prtg_stream.request.retry import RetryingFetcher, RetryPolicy


class FlakyFetcher:
    """Fails with `error` for the first `failures` calls, then succeeds."""

    def __init__(self, failures, error=None):
        self.failures = failures
        self.error = error or TransportError("timed out")
        self.calls = 0

    def fetch(self, query):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return Page(records=[{"objid": 1}], total=1)


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def query():
    return Query.create(Content.SENSORS)


# ==============================================
# Retry Tests
# ==============================================

class TestRetryPolicy:
    """Transport errors are retried with a growing delay."""

    def test_success_without_retry(self, sleeps, query):
        fetcher = RetryingFetcher(FlakyFetcher(0), RetryPolicy(2, 3.0, sleep=sleeps.append))
        assert len(fetcher.fetch(query)) == 1
        assert sleeps == []

    def test_recovers_within_budget(self, sleeps, query):
        inner = FlakyFetcher(2)
        fetcher = RetryingFetcher(inner, RetryPolicy(2, 3.0, sleep=sleeps.append))

        page = fetcher.fetch(query)

        assert page.total == 1
        assert inner.calls == 3
        assert sleeps == [3.0, 6.0]

    def test_exhausted_budget_raises_last_error(self, sleeps, query):
        inner = FlakyFetcher(5)
        fetcher = RetryingFetcher(inner, RetryPolicy(2, 1.0, sleep=sleeps.append))

        with pytest.raises(TransportError):
            fetcher.fetch(query)
        assert inner.calls == 3

    def test_protocol_error_not_retried(self, sleeps, query):
        inner = FlakyFetcher(1, error=ProtocolError("bad body"))
        fetcher = RetryingFetcher(inner, RetryPolicy(3, 1.0, sleep=sleeps.append))

        with pytest.raises(ProtocolError):
            fetcher.fetch(query)
        assert inner.calls == 1
        assert sleeps == []

    def test_zero_retries(self, sleeps, query):
        inner = FlakyFetcher(1)
        with pytest.raises(TransportError):
            RetryingFetcher(inner, RetryPolicy(0, 1.0, sleep=sleeps.append)).fetch(query)
        assert inner.calls == 1

    def test_negative_retry_count_rejected(self):
        with pytest.raises(ValueError):
            RetryPolicy(-1)

    def test_each_fetch_has_its_own_budget(self, sleeps, query):
        inner = FlakyFetcher(1)
        fetcher = RetryingFetcher(inner, RetryPolicy(1, 1.0, sleep=sleeps.append))
        fetcher.fetch(query)
        inner.calls = 0
        fetcher.fetch(query)
        assert sleeps == [1.0, 1.0]


class TestRetryNotices:
    """Every retry is announced."""

    def test_on_retry_callback(self, sleeps, query):
        notices = []
        policy = RetryPolicy(2, 1.0, on_retry=lambda *args: notices.append(args), sleep=sleeps.append)
        RetryingFetcher(FlakyFetcher(2), policy).fetch(query)

        assert [(attempt, remaining) for attempt, remaining, _ in notices] == [(1, 1), (2, 0)]
        assert all(isinstance(error, TransportError) for _, _, error in notices)

    def test_warning_logged(self, sleeps, query, caplog):
        with caplog.at_level(logging.WARNING, logger="prtg_stream.request.retry"):
            RetryingFetcher(FlakyFetcher(1), RetryPolicy(1, 1.0, sleep=sleeps.append)).fetch(query)
        assert "Retries remaining: 0" in caplog.text
