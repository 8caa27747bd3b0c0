# ==============================================
# Error Taxonomy
# ==============================================
#
# PURPOSE:
#   The four failure categories surfaced by the retrieval engine
#   and the progress coordinator. Streams never reinterpret
#   errors beyond these categories.
#
# CLASSES:
# --------
# - PrtgStreamError        → Base class for everything below
# - TransportError         → Timeout / connection failure / HTTP 5xx (transient, retried)
# - ProtocolError          → Malformed or error response body (never retried)
# - ScenarioError          → Unclassifiable pipeline shape (programming error)
# - CancellationError      → Cooperative cancellation was observed
#
# ==============================================

from typing import Optional


class PrtgStreamError(Exception):
    """Base error for all prtg_stream operations."""


class TransportError(PrtgStreamError):
    """
    The request never produced a usable response.

    Raised on timeouts, connection failures and server-side (5xx) errors.
    These are transient and may be retried by a RetryPolicy.
    """

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class ProtocolError(PrtgStreamError):
    """
    The server answered, but the answer cannot be used.

    Raised on client (4xx) errors, non-JSON bodies, missing keys
    and pages larger than requested. Never retried.
    """

    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class ScenarioError(PrtgStreamError):
    """
    A pipeline shape has no entry in the progress classification table.

    Always fatal; callers must not catch and suppress it.
    """


class CancellationError(PrtgStreamError):
    """Raised when a cooperative cancellation signal is observed."""
