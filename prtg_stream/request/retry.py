# ==============================================
# RetryPolicy & RetryingFetcher
# ==============================================
#
# PURPOSE:
#   The client-level retry collaborator that wraps PageFetcher.
#   Transient failures (TransportError) are retried a bounded
#   number of times; everything else surfaces immediately.
#
# RULES:
# ------
#   - Only TransportError is retried. ProtocolError, ScenarioError
#     and CancellationError propagate on the first occurrence.
#   - attempt N (1-based) waits retry_delay * N seconds, so the
#     delay grows with each failure of the same request.
#   - Every retry logs a warning and calls on_retry(attempt,
#     remaining, error) when given, so a CLI or pipeline can show
#     an advisory notice.
#   - Each fetch() gets its own retry budget.
#   - Once the budget is spent, the last TransportError surfaces.
#
# ==============================================

import logging
import time
from typing import Callable, Optional, TypeVar

from prtg_stream.errors import TransportError
from prtg_stream.request.query import Page, Query

logger = logging.getLogger(__name__)

T = TypeVar("T")

RetryCallback = Callable[[int, int, TransportError], None]


class RetryPolicy:
    """
    Bounded retry with a linearly growing delay.
    """

    def __init__(
        self,
        retry_count: int = 1,
        retry_delay: float = 3.0,
        on_retry: Optional[RetryCallback] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Args:
            retry_count: How many times to retry after the first failure
            retry_delay: Base delay in seconds
            on_retry: Optional callback(attempt, remaining, error)
            sleep: Sleep function (injectable for tests)
        """
        if retry_count < 0:
            raise ValueError("retry_count cannot be negative")
        self.retry_count = retry_count
        self.retry_delay = retry_delay
        self.on_retry = on_retry
        self._sleep = sleep

    def delay_for(self, attempt: int) -> float:
        """Delay before retry number `attempt` (1-based)."""
        return self.retry_delay * attempt

    def call(self, func: Callable[..., T], *args, **kwargs) -> T:
        """
        Invoke func, retrying on TransportError.

        Returns:
            Whatever func returns
        """
        attempt = 0
        while True:
            try:
                return func(*args, **kwargs)
            except TransportError as exc:
                if attempt >= self.retry_count:
                    raise
                attempt += 1
                remaining = self.retry_count - attempt
                logger.warning(
                    "%s. Retries remaining: %d (retrying in %.1fs)",
                    exc, remaining, self.delay_for(attempt)
                )
                if self.on_retry:
                    self.on_retry(attempt, remaining, exc)
                self._sleep(self.delay_for(attempt))


class RetryingFetcher:
    """
    Wraps any object with fetch(query) -> Page in a RetryPolicy.
    """

    def __init__(self, fetcher, policy: RetryPolicy):
        self._fetcher = fetcher
        self.policy = policy

    def fetch(self, query: Query) -> Page:
        return self.policy.call(self._fetcher.fetch, query)

    def close(self) -> None:
        close = getattr(self._fetcher, "close", None)
        if close:
            close()
