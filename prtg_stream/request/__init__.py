# ==============================================
# TOPIC 1: REQUEST
# ==============================================
#
# This package handles a single round trip to the PRTG
# table API: building the query, fetching one page, and the
# retry policy wrapped around the fetch.
#
# Modules:
# --------
# - query.py    → Query / Page data classes, Content enum, OLE date encoding
# - fetcher.py  → PageFetcher (requests), one query per page
# - retry.py    → RetryPolicy / RetryingFetcher for transient failures
#
# ==============================================

from .query import ALL, Content, Page, Query, from_ole_date, to_ole_date
from .fetcher import PageFetcher
from .retry import RetryPolicy, RetryingFetcher

__all__ = [
    "ALL",
    "Content",
    "Page",
    "Query",
    "from_ole_date",
    "to_ole_date",
    "PageFetcher",
    "RetryPolicy",
    "RetryingFetcher",
]
