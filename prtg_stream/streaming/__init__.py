# ==============================================
# TOPIC 2: STREAMING
# ==============================================
#
# This package turns single page fetches into record sequences
# that downstream pipeline stages can pull from lazily.
#
# Modules:
# --------
# - cancellation.py  → CancellationToken (threading.Event based)
# - paged_stream.py  → PagedStream: finite, offset-paged sequence
# - log_stream.py    → TimeCursorLogStream: infinite, polling log tail
#
# ==============================================

from .cancellation import NEVER, CancellationToken
from .paged_stream import DEFAULT_PAGE_SIZE, PagedStream
from .log_stream import (
    DEFAULT_POLL_INTERVAL,
    TimeCursorLogStream,
    build_log_query,
    default_identity,
    default_timestamp,
)

__all__ = [
    "NEVER",
    "CancellationToken",
    "DEFAULT_PAGE_SIZE",
    "PagedStream",
    "DEFAULT_POLL_INTERVAL",
    "TimeCursorLogStream",
    "build_log_query",
    "default_identity",
    "default_timestamp",
]
