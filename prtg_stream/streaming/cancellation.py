# ==============================================
# CancellationToken
# ==============================================
#
# PURPOSE:
#   Cooperative cancellation shared between a consumer and the
#   streams it drives. Streams check the token before every fetch
#   and before every yielded record; the log stream also uses it
#   to sleep between empty polls so that a cancel wakes it up
#   instead of waiting out the interval.
#
# CLASS: CancellationToken
# ------------------------
#   - cancel()                  → signal; idempotent, thread-safe
#   - is_cancelled -> bool
#   - raise_if_cancelled()      → CancellationError when signalled
#   - wait(seconds)             → sleep, raising CancellationError
#                                 as soon as the token is signalled
#
# ==============================================

import threading

from prtg_stream.errors import CancellationError


class CancellationToken:
    """Thread-safe cancellation flag backed by threading.Event."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise CancellationError("Operation was cancelled")

    def wait(self, seconds: float) -> None:
        """
        Sleep up to `seconds`, returning early (with an error) on cancel.

        Raises:
            CancellationError: if the token is, or becomes, cancelled
        """
        if self._event.wait(timeout=seconds):
            raise CancellationError("Operation was cancelled")


# Shared token for callers that never cancel
class _NeverCancelled(CancellationToken):

    def cancel(self) -> None:
        raise RuntimeError("The shared NEVER token cannot be cancelled")


NEVER = _NeverCancelled()
