# ==============================================
# PagedStream
# ==============================================
#
# PURPOSE:
#   Turns a paginated query into ONE lazy, finite sequence of
#   records. Consumers iterate it like a list; pages are only
#   fetched when the consumer pulls past the end of the last one.
#
# PAGING ALGORITHM:
# -----------------
#   1. First fetch: offset 0 (start omitted), size P.
#   2. Total T is read from the first page.
#   3. Next fetch: offset = fetched, size = min(P, T - fetched).
#   4. Stop when fetched == T, or a page comes back short.
#
#   Example (T=1600, P=500):
#     fetch #1  start=-    count=500   → 500 rows  (T=1600)
#     fetch #2  start=500  count=500   → 500 rows
#     fetch #3  start=1000 count=500   → 500 rows
#     fetch #4  start=1500 count=100   → 100 rows  → done
#
#   T=0 costs exactly one probing fetch.
#
# RULES:
# ------
#   - Single pass. Iterating twice continues the same generator;
#     build a new PagedStream to start over.
#   - A fetch error aborts the stream; rows of the failed page are
#     never yielded, rows already yielded are never retracted.
#   - Cancellation is checked before each fetch and before each
#     record. A cancelled stream raises CancellationError and does
#     NOT issue the pending fetch.
#
# ==============================================

import logging
from typing import Any, Dict, Iterator, Optional

from prtg_stream.errors import ProtocolError
from prtg_stream.request.query import Page, Query
from prtg_stream.streaming.cancellation import NEVER, CancellationToken

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 500


class PagedStream:
    """
    Lazy record sequence over a paginated query.

    Attributes:
        total: Server-reported match count (None until the first page)
        fetched: Rows received so far
        requests_made: Fetches issued so far
    """

    def __init__(
        self,
        fetcher,
        query: Query,
        page_size: int = DEFAULT_PAGE_SIZE,
        token: Optional[CancellationToken] = None
    ):
        """
        Args:
            fetcher: Anything with fetch(query) -> Page
            query: Base query; start/count are overridden per page
            page_size: Maximum rows per fetch (P)
            token: Optional cancellation token
        """
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self._fetcher = fetcher
        self._query = query
        self.page_size = page_size
        self._token = token or NEVER

        self.total: Optional[int] = None
        self.fetched = 0
        self.requests_made = 0

        self._records = self._generate()

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        return self._records

    def __next__(self) -> Dict[str, Any]:
        return next(self._records)

    def _fetch(self, start: Optional[int], count: int) -> Page:
        self._token.raise_if_cancelled()
        self.requests_made += 1
        page = self._fetcher.fetch(self._query.page(start, count))
        if len(page) > count:
            raise ProtocolError(f"Requested {count} rows but received {len(page)}")
        logger.debug("Page %d: start=%s count=%d → %d rows (total %d)",
                      self.requests_made, start, count, len(page), page.total)
        return page

    def _generate(self) -> Iterator[Dict[str, Any]]:
        page = self._fetch(None, self.page_size)
        self.total = page.total
        requested = self.page_size

        while True:
            self.fetched += len(page)
            for record in page.records:
                self._token.raise_if_cancelled()
                yield record

            if len(page) < requested or self.fetched >= self.total:
                break

            requested = min(self.page_size, self.total - self.fetched)
            page = self._fetch(self.fetched, requested)

        logger.debug("Stream complete: %d of %d records in %d requests",
                     self.fetched, self.total, self.requests_made)
