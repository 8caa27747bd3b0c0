# ==============================================
# Pipeline Stages
# ==============================================
#
# PURPOSE:
#   The building blocks of a Pipeline.
#
# CLASSES:
# --------
# - Stage (dataclass)
#     A processing stage. The head stage either has a `source`
#     (callable returning a sequence, e.g. a PagedStream) or is fed
#     from a variable; every other stage has a `process` callable
#     mapping one record to an iterable of output records.
#
# - TakeLast(n) / SkipLast(n) (dataclasses)
#     Blocking transforms. They drain their entire upstream into a
#     buffer before emitting anything, so the stage after them sees
#     a materialized collection with a known size.
#
# - MaterializedSequence
#     A list that exposes `total`; used for variables and buffers.
#
# - BufferedSequence
#     Lazily drains an upstream iterable through a blocking
#     transform on first iteration.
#
# - ProcessedSequence
#     Flat-maps `process` over an upstream iterable, passing its
#     `total` through. Progress counts the records piped in, via
#     the `on_input` hook.
#
# ==============================================

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, List, Optional

from prtg_stream.progress.scenario import BlockingKind


@dataclass
class Stage:
    """
    One processing stage of a Pipeline.

    Attributes:
        name: Used in log messages
        source: Head only; returns the records this stage produces
        process: Non-head; maps one input record to output records
        type_description: Singular object type shown in progress
        streaming: The source is a live stream (head only)
    """
    name: str
    source: Optional[Callable[[], Iterable[Any]]] = None
    process: Optional[Callable[[Any], Iterable[Any]]] = None
    type_description: str = "Object"
    streaming: bool = True


@dataclass
class TakeLast:
    """Keep only the last `count` records."""
    count: int
    kind = BlockingKind.TAKE_LAST

    def select(self, records: List[Any]) -> List[Any]:
        if self.count <= 0:
            return []
        return records[-self.count:]


@dataclass
class SkipLast:
    """Drop the last `count` records."""
    count: int
    kind = BlockingKind.SKIP_LAST

    def select(self, records: List[Any]) -> List[Any]:
        if self.count <= 0:
            return list(records)
        return records[:-self.count]


BLOCKING_STAGES = (TakeLast, SkipLast)


def is_blocking(stage: Any) -> bool:
    return isinstance(stage, BLOCKING_STAGES)


class MaterializedSequence:
    """A fully materialized collection of records with a known total."""

    def __init__(self, records: Iterable[Any]):
        self.records = list(records)

    @property
    def total(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)


class BufferedSequence:
    """
    Drains `upstream` through a blocking transform on first iteration.

    total is None until the buffer has been filled.
    """

    def __init__(self, upstream: Iterable[Any], transform):
        self._upstream = upstream
        self._transform = transform
        self._buffer: Optional[List[Any]] = None

    @property
    def total(self) -> Optional[int]:
        if self._buffer is None:
            return None
        return len(self._buffer)

    def __iter__(self) -> Iterator[Any]:
        if self._buffer is None:
            self._buffer = self._transform.select(list(self._upstream))
        return iter(self._buffer)


class ProcessedSequence:
    """
    Applies a stage's `process` to each upstream record.

    total counts upstream records, not outputs. on_input, when set,
    is called with every upstream record before it is processed.
    """

    def __init__(self, process: Callable[[Any], Iterable[Any]], upstream: Iterable[Any]):
        self._process = process
        self._upstream = upstream
        self.on_input: Optional[Callable[[Any], None]] = None

    @property
    def total(self) -> Optional[int]:
        return getattr(self._upstream, "total", None)

    def __iter__(self) -> Iterator[Any]:
        upstream = iter(self._upstream)
        try:
            for record in upstream:
                if self.on_input is not None:
                    self.on_input(record)
                for output in self._process(record):
                    yield output
        finally:
            close = getattr(upstream, "close", None)
            if close:
                close()
