# ==============================================
# Pytest Configuration and Fixtures
# ==============================================
#
# Shared fakes and fixtures for all tests.
#
# FAKES:
# ------
# - FakeTableFetcher   → serves a fixed list of rows page by page and
#                        records every (start, count) it was asked for
# - ScriptedLogFetcher → replays a scripted list of log polls, then
#                        cancels the stream's token
# - RecordingRenderer  → keeps every ProgressRecord written and every
#                        completed record id
#
# FIXTURES:
# ---------
# - rows(n)             → factory for n sensor-like rows
# - table_fetcher       → factory for FakeTableFetcher
# - renderer            → a fresh RecordingRenderer
# - token               → a fresh CancellationToken
# - app_config          → an AppConfig that never touches the environment
# ==============================================

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import pytest

from prtg_stream.config import AppConfig, RetryConfig, ServerConfig, StreamConfig
from prtg_stream.errors import TransportError
from prtg_stream.progress.renderer import ProgressRenderer
from prtg_stream.progress.state import ProgressRecord
from prtg_stream.request.query import Page, Query, to_ole_date
from prtg_stream.streaming.cancellation import CancellationToken


BASE_TIME = datetime(2024, 3, 1, 12, 0, 0)


def make_rows(count: int) -> List[Dict[str, Any]]:
    return [{"objid": 1000 + i, "name": f"Sensor {i}", "status": "Up"} for i in range(count)]


def log_row(name: str, minutes: float, **extra) -> Dict[str, Any]:
    """A log row stamped BASE_TIME + minutes."""
    row = {
        "objid": 2000,
        "name": name,
        "datetime_raw": to_ole_date(BASE_TIME + timedelta(minutes=minutes)),
        "message": f"{name} happened",
    }
    row.update(extra)
    return row


class FakeTableFetcher:
    """Serves `rows` like the table API would, honouring start/count."""

    def __init__(self, rows: List[Dict[str, Any]], total: Optional[int] = None,
                 fail_at: Optional[int] = None, error: Optional[Exception] = None):
        self.rows = rows
        self.total = len(rows) if total is None else total
        self.fail_at = fail_at
        self.error = error or TransportError("connection reset")
        self.calls: List[tuple] = []
        self.queries: List[Query] = []

    def fetch(self, query: Query) -> Page:
        start = query.start or 0
        self.calls.append((start, query.count))
        self.queries.append(query)
        if self.fail_at is not None and len(self.calls) == self.fail_at:
            raise self.error
        return Page(records=self.rows[start:start + query.count], total=self.total)


class ScriptedLogFetcher:
    """
    Returns one scripted poll per fetch (each a newest-first list).

    Once the script runs out, the token is cancelled and empty pages
    are returned, so the stream stops at its next sleep.
    """

    def __init__(self, polls: List[List[Dict[str, Any]]], token: CancellationToken):
        self.polls = list(polls)
        self.token = token
        self.queries: List[Query] = []

    def fetch(self, query: Query) -> Page:
        self.queries.append(query)
        if not self.polls:
            self.token.cancel()
            return Page(records=[], total=0)
        rows = self.polls.pop(0)
        return Page(records=list(rows), total=len(rows))

    @property
    def cursors(self) -> List[datetime]:
        return [q.filter_value("dstart") for q in self.queries]


class RecordingRenderer(ProgressRenderer):

    def __init__(self):
        self.records: List[ProgressRecord] = []
        self.completed: List[int] = []

    def write(self, record: ProgressRecord) -> None:
        self.records.append(record)

    def complete(self, record_id: int) -> None:
        self.completed.append(record_id)

    def for_record(self, record_id: int) -> List[ProgressRecord]:
        return [r for r in self.records if r.record_id == record_id]

    def percents(self, record_id: int) -> List[int]:
        return [r.percent_complete for r in self.for_record(record_id)]


@pytest.fixture
def rows():
    return make_rows


@pytest.fixture
def table_fetcher():
    return FakeTableFetcher


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def token():
    return CancellationToken()


@pytest.fixture
def app_config():
    return AppConfig(
        server=ServerConfig(url="https://prtg.example.com", username="admin", passhash="12345678"),
        retry=RetryConfig(retry_count=2, retry_delay_seconds=3.0),
        stream=StreamConfig(page_size=500, log_poll_interval_seconds=0.0),
    )
