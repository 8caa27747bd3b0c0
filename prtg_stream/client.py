# ==============================================
# PrtgClient — Facade
# ==============================================
#
# PURPOSE:
#   The class users interact with. It ties the four topics
#   together: configuration in, record sequences and pipelines out.
#
# HOW IT CONNECTS THE 4 TOPICS:
#
#   ┌──────────────────────────────────────────────────────────┐
#   │                       PrtgClient                         │
#   │                                                          │
#   │  ┌──────────────────────────────────────────────┐        │
#   │  │ TOPIC 1: REQUEST                             │        │
#   │  │  PageFetcher → RetryingFetcher(RetryPolicy)  │        │
#   │  └──────────────┬───────────────────────────────┘        │
#   │                 │ fetch(query) -> Page                   │
#   │                 ▼                                        │
#   │  ┌──────────────────────────────────────────────┐        │
#   │  │ TOPIC 2: STREAMING                           │        │
#   │  │  PagedStream / TimeCursorLogStream           │        │
#   │  └──────────────┬───────────────────────────────┘        │
#   │                 │ records                                │
#   │                 ▼                                        │
#   │  ┌──────────────────────────────────────────────┐        │
#   │  │ TOPIC 4: PIPELINE                            │        │
#   │  │  Stage → PipelineStageAdapter → ...          │        │
#   │  └──────────────┬───────────────────────────────┘        │
#   │                 │ triggers                               │
#   │                 ▼                                        │
#   │  ┌──────────────────────────────────────────────┐        │
#   │  │ TOPIC 3: PROGRESS                            │        │
#   │  │  ProgressCoordinator → ProgressRenderer      │        │
#   │  └──────────────────────────────────────────────┘        │
#   └──────────────────────────────────────────────────────────┘
#
#
# CLASS: PrtgClient
# -----------------
#
#   Constructor:
#   ------------
#   - __init__(config=None, fetcher=None, on_retry=None, sleep=time.sleep)
#
#   Public Methods:
#   ---------------
#   - stream(content, columns=None, filters=None, sort_by=None,
#            page_size=None, token=None) -> PagedStream
#   - get(content, ...) -> list[dict]
#   - get_sensors / get_devices / get_groups / get_probes(**filters)
#   - stream_logs(since=None, filters=None, poll_interval=None,
#                 token=None) -> TimeCursorLogStream
#   - pipeline(content, *stages, filters=None, sort_by=None, page_size=None,
#              renderer=None, progress=None, token=None) -> Pipeline
#   - close()
#
# USAGE:
# ------
#   with PrtgClient() as client:
#       for sensor in client.stream(Content.SENSORS, filters={"status": 5}):
#           print(sensor["name"])
#
# ==============================================

import logging
import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from prtg_stream.config import AppConfig, get_config
from prtg_stream.pipeline.runner import Pipeline
from prtg_stream.pipeline.stages import Stage
from prtg_stream.progress.renderer import NullRenderer, ProgressRenderer
from prtg_stream.request.fetcher import PageFetcher
from prtg_stream.request.query import Content, Query
from prtg_stream.request.retry import RetryCallback, RetryingFetcher, RetryPolicy
from prtg_stream.streaming.cancellation import CancellationToken
from prtg_stream.streaming.log_stream import TimeCursorLogStream
from prtg_stream.streaming.paged_stream import PagedStream

logger = logging.getLogger(__name__)


TYPE_DESCRIPTIONS: Dict[Content, str] = {
    Content.SENSORS: "Sensor",
    Content.DEVICES: "Device",
    Content.GROUPS: "Group",
    Content.PROBES: "Probe",
    Content.MESSAGES: "Log",
}


class PrtgClient:
    """
    Entry point for retrieving PRTG objects and logs.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        fetcher=None,
        on_retry: Optional[RetryCallback] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Args:
            config: Application configuration. If None, loads from environment.
            fetcher: Anything with fetch(query) -> Page. If None, a
                PageFetcher is built from config.server.
            on_retry: Called on every retried request
            sleep: Sleep function used between retries
        """
        self._config = config or get_config()

        if fetcher is None:
            server = self._config.server
            fetcher = PageFetcher(
                server=server.url,
                username=server.username,
                passhash=server.passhash,
                timeout=server.timeout_seconds
            )

        self.retry_policy = RetryPolicy(
            retry_count=self._config.retry.retry_count,
            retry_delay=self._config.retry.retry_delay_seconds,
            on_retry=on_retry,
            sleep=sleep
        )
        self.fetcher = RetryingFetcher(fetcher, self.retry_policy)

    # ------------------------------------------
    # Objects
    # ------------------------------------------

    def stream(
        self,
        content: Content,
        columns: Optional[List[str]] = None,
        filters: Optional[Dict[str, Any]] = None,
        sort_by: Optional[str] = None,
        page_size: Optional[int] = None,
        token: Optional[CancellationToken] = None
    ) -> PagedStream:
        """
        Lazily stream every object matching the filters.

        Returns:
            A single-pass PagedStream
        """
        page_size = page_size or self._config.stream.page_size
        query = Query.create(content, columns=columns, filters=filters,
                             sort_by=sort_by, count=page_size)
        return PagedStream(self.fetcher, query, page_size=page_size, token=token)

    def get(self, content: Content, **kwargs) -> List[Dict[str, Any]]:
        """Retrieve every matching object into a list."""
        return list(self.stream(content, **kwargs))

    def get_sensors(self, **filters) -> List[Dict[str, Any]]:
        return self.get(Content.SENSORS, filters=filters or None)

    def get_devices(self, **filters) -> List[Dict[str, Any]]:
        return self.get(Content.DEVICES, filters=filters or None)

    def get_groups(self, **filters) -> List[Dict[str, Any]]:
        return self.get(Content.GROUPS, filters=filters or None)

    def get_probes(self, **filters) -> List[Dict[str, Any]]:
        return self.get(Content.PROBES, filters=filters or None)

    # ------------------------------------------
    # Logs
    # ------------------------------------------

    def stream_logs(
        self,
        since: Optional[datetime] = None,
        filters: Optional[Dict[str, Any]] = None,
        poll_interval: Optional[float] = None,
        token: Optional[CancellationToken] = None
    ) -> TimeCursorLogStream:
        """
        Tail the log from `since` (default: now) indefinitely.

        Returns:
            An infinite TimeCursorLogStream; stop it with a token
            or by abandoning the iteration
        """
        if poll_interval is None:
            poll_interval = self._config.stream.log_poll_interval_seconds
        return TimeCursorLogStream(
            self.fetcher,
            start=since,
            filters=filters,
            poll_interval=poll_interval,
            token=token
        )

    # ------------------------------------------
    # Pipelines
    # ------------------------------------------

    def pipeline(
        self,
        content: Content,
        *stages,
        filters: Optional[Dict[str, Any]] = None,
        sort_by: Optional[str] = None,
        page_size: Optional[int] = None,
        renderer: Optional[ProgressRenderer] = None,
        progress: Optional[bool] = None,
        token: Optional[CancellationToken] = None
    ) -> Pipeline:
        """
        Build a Pipeline whose head streams `content` from the server.

        Args:
            content: What the head stage retrieves
            *stages: Downstream Stage / TakeLast / SkipLast objects
            filters: Filters for the head query
            sort_by: Sort field for the head query
            page_size: Page size for the head query
            renderer: Progress renderer (default: none)
            progress: Override config.progress.enabled
        """
        if progress is None:
            progress = self._config.progress.enabled

        head = Stage(
            name=content.value,
            source=lambda: self.stream(content, filters=filters, sort_by=sort_by,
                                       page_size=page_size, token=token),
            type_description=TYPE_DESCRIPTIONS[content],
        )
        return Pipeline(
            [head, *stages],
            renderer=renderer or NullRenderer(),
            progress_enabled=progress,
        )

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.fetcher.close()
        logger.debug("Client closed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
