# ==============================================
# TimeCursorLogStream
# ==============================================
#
# PURPOSE:
#   An unbounded "tail" over the PRTG message log. Each poll asks
#   for every message at or after the cursor; new messages are
#   emitted oldest → newest and the cursor moves forward.
#
# POLL LOOP:
# ----------
#   1. Poll: content=messages, count=*, start=1,
#      filter_dstart=<cursor as OLE date>.
#   2. Rows arrive newest-first → reverse, stable-sort by timestamp.
#   3. Drop rows older than the cursor and rows at the cursor
#      timestamp that were already emitted.
#   4. Nothing left → sleep poll_interval, poll again with the
#      SAME cursor.
#   5. Otherwise emit one at a time; the cursor follows the emitted
#      timestamps; poll again immediately.
#
#   Example:
#     cursor=t0
#     poll 1 → [C(t3), B(t2), A(t1)]   emits A, B, C   cursor=t3
#     poll 2 → []                      sleep           cursor=t3
#     poll 3 → [E(t5), D(t4)]          emits D, E      cursor=t5
#
# BOUNDARY DEDUP:
# ---------------
#   filter_dstart is inclusive, so the newest emitted row comes
#   back on the next poll. Rows sharing the cursor timestamp are
#   tracked by identity (default: the full row content) in a
#   boundary set that resets whenever the cursor moves forward.
#   Two distinct rows with the same timestamp are both emitted.
#
# RULES:
# ------
#   - A poll error is terminal; only an empty successful poll is
#     retried (after the sleep).
#   - Cancellation is checked before each poll, before each
#     emitted record, and during the sleep.
#   - The cursor never moves backward.
#
# ==============================================

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Hashable, Iterator, List, Optional, Set

from prtg_stream.errors import ProtocolError
from prtg_stream.request.query import ALL, Content, Query, as_naive_utc, from_ole_date
from prtg_stream.streaming.cancellation import NEVER, CancellationToken

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1.0

Record = Dict[str, Any]


def default_identity(record: Record) -> Hashable:
    """Identity of a log row: its full content."""
    return tuple(sorted((key, repr(value)) for key, value in record.items()))


def default_timestamp(record: Record) -> datetime:
    """
    Timestamp of a log row, read from the raw OLE date column.

    Raises:
        ProtocolError: if the row carries no usable timestamp
    """
    raw = record.get("datetime_raw")
    if raw is None or raw == "":
        raise ProtocolError(f"Log record has no datetime_raw: {record!r}")
    try:
        return from_ole_date(raw)
    except (TypeError, ValueError) as exc:
        raise ProtocolError(f"Log record has an invalid datetime_raw {raw!r}") from exc


def build_log_query(cursor: datetime, filters: Optional[Dict[str, Any]] = None) -> Query:
    """The poll query for a given cursor."""
    query = Query.create(Content.MESSAGES, filters=filters, count=ALL)
    return query.page(1, ALL).with_filter(dstart=cursor)


class TimeCursorLogStream:
    """
    Infinite, time-ordered sequence of log records.

    Attributes:
        cursor: Timestamp of the newest emitted record (or the start time)
        polls: Number of polls issued
    """

    def __init__(
        self,
        fetcher,
        start: Optional[datetime] = None,
        filters: Optional[Dict[str, Any]] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        token: Optional[CancellationToken] = None,
        identity: Callable[[Record], Hashable] = default_identity,
        timestamp: Callable[[Record], datetime] = default_timestamp
    ):
        """
        Args:
            fetcher: Anything with fetch(query) -> Page
            start: Initial cursor (default: now). Aware values are
                converted to naive UTC, as in to_ole_date.
            filters: Extra filters applied to every poll
            poll_interval: Seconds to sleep after an empty poll
            token: Optional cancellation token
            identity: Stable per-record identity used for boundary dedup
            timestamp: Extracts a record's timestamp
        """
        self._fetcher = fetcher
        # row timestamps decode to naive datetimes
        self.cursor = as_naive_utc(start) if start is not None else datetime.now()
        self._filters = filters
        self.poll_interval = poll_interval
        self._token = token or NEVER
        self._identity = identity
        self._timestamp = timestamp

        self._boundary: Set[Hashable] = set()
        self.polls = 0
        # no treesize applies to an unbounded feed
        self.total = None

        self._records = self._generate()

    def __iter__(self) -> Iterator[Record]:
        return self._records

    def __next__(self) -> Record:
        return next(self._records)

    def _poll(self) -> List[Record]:
        self._token.raise_if_cancelled()
        self.polls += 1
        page = self._fetcher.fetch(build_log_query(self.cursor, self._filters))

        # newest-first on the wire; reversed + stable sort keeps
        # same-timestamp rows in their original relative order
        stamped = [(self._timestamp(record), record) for record in reversed(page.records)]
        stamped.sort(key=lambda pair: pair[0])

        fresh = []
        for ts, record in stamped:
            if ts < self.cursor:
                continue
            if ts == self.cursor and self._identity(record) in self._boundary:
                continue
            fresh.append((ts, record))

        logger.debug("Poll %d at %s: %d rows, %d new",
                     self.polls, self.cursor, len(page), len(fresh))
        return fresh

    def _generate(self) -> Iterator[Record]:
        while True:
            fresh = self._poll()
            if not fresh:
                self._token.wait(self.poll_interval)
                continue

            for ts, record in fresh:
                self._token.raise_if_cancelled()
                if ts > self.cursor:
                    self.cursor = ts
                    self._boundary = {self._identity(record)}
                else:
                    self._boundary.add(self._identity(record))
                yield record
