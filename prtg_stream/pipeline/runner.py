# ==============================================
# Pipeline
# ==============================================
#
# PURPOSE:
#   The host pipeline: chains stages lazily, gives every processing
#   stage its own ProgressCoordinator and PipelineStageAdapter, and
#   wires adjacent adapters together with HandoffChannels.
#
# SHAPES:
# -------
#   head → stage → stage ...             (head has a source)
#   variable → stage → stage ...         (head is fed a list)
#   ... → stage → TakeLast(n) → stage    (blocking transforms in between)
#
#   Positions count processing stages only; a blocking transform
#   shows up in its neighbours' PipelineGraphs instead.
#
# CLASS: Pipeline
# ---------------
#   - __init__(stages, renderer=None, progress_enabled=True, variable=None)
#   - graphs -> list[PipelineGraph]
#   - run() -> Iterator          → lazily yields the final stage's records
#   - __iter__                   → same as run()
#
#   On any error every stage's progress is completed prematurely and
#   the error propagates unchanged.
#
# ==============================================

import logging
from typing import Any, Iterable, Iterator, List, Optional, Sequence

from prtg_stream.pipeline.stage_adapter import HandoffChannel, PipelineStageAdapter
from prtg_stream.pipeline.stages import (
    BufferedSequence,
    MaterializedSequence,
    ProcessedSequence,
    is_blocking,
)
from prtg_stream.progress.coordinator import ProgressCoordinator
from prtg_stream.progress.renderer import NullRenderer, ProgressRenderer
from prtg_stream.progress.scenario import InputKind, PipelineGraph

logger = logging.getLogger(__name__)


class Pipeline:
    """
    A lazily evaluated chain of stages with coordinated progress.

    Example:
        pipeline = Pipeline(
            [Stage("sensors", source=lambda: client.stream(Content.SENSORS), type_description="Sensor"),
             TakeLast(10),
             Stage("names", process=lambda r: [r["name"]])],
            renderer=ConsoleRenderer(),
        )
        for name in pipeline:
            print(name)
    """

    def __init__(
        self,
        stages: Sequence[Any],
        renderer: Optional[ProgressRenderer] = None,
        progress_enabled: bool = True,
        variable: Optional[Iterable[Any]] = None
    ):
        self.stages = list(stages)
        self.renderer = renderer or NullRenderer()
        self.progress_enabled = progress_enabled
        self.variable = None if variable is None else MaterializedSequence(variable)
        self.coordinators: List[ProgressCoordinator] = []

        self._validate()
        self.graphs = self._build_graphs()

    def _validate(self) -> None:
        processing = [s for s in self.stages if not is_blocking(s)]
        if not processing:
            raise ValueError("A pipeline needs at least one processing stage")
        if is_blocking(self.stages[0]):
            raise ValueError("A blocking transform needs an upstream stage")

        head = self.stages[0]
        if self.variable is None and head.source is None:
            raise ValueError(f"Head stage '{head.name}' needs a source")
        if self.variable is not None and head.process is None:
            raise ValueError(f"Head stage '{head.name}' needs a process function to consume a variable")
        for stage in processing[1:]:
            if stage.process is None:
                raise ValueError(f"Stage '{stage.name}' needs a process function")

    def _build_graphs(self) -> List[PipelineGraph]:
        length = sum(1 for s in self.stages if not is_blocking(s))
        graphs = []
        position = 0
        for index, stage in enumerate(self.stages):
            if is_blocking(stage):
                continue
            before = self.stages[index - 1] if index > 0 else None
            after = self.stages[index + 1] if index + 1 < len(self.stages) else None

            if position == 0:
                input_kind = InputKind.VARIABLE if self.variable is not None else InputKind.NONE
            else:
                input_kind = InputKind.STREAM

            graphs.append(PipelineGraph(
                input_kind=input_kind,
                position=position,
                length=length,
                upstream_blocking=before.kind if is_blocking(before) else None,
                downstream_blocking=after.kind if is_blocking(after) else None,
                blocking_further_upstream=any(is_blocking(s) for s in self.stages[:max(index - 1, 0)]),
                streaming=position == 0 and self.variable is None and stage.streaming,
                progress_enabled=self.progress_enabled,
            ))
            position += 1
        return graphs

    def _chain(self) -> Iterator[Any]:
        self.coordinators = []
        graphs = iter(self.graphs)
        upstream: Optional[Iterable[Any]] = None
        inbox: Optional[HandoffChannel] = None

        for stage in self.stages:
            if is_blocking(stage):
                upstream = BufferedSequence(upstream, stage)
                continue

            graph = next(graphs)
            coordinator = ProgressCoordinator(graph, self.renderer, stage.type_description)
            outbox = HandoffChannel()
            adapter = PipelineStageAdapter(coordinator, inbox=inbox, outbox=outbox)
            self.coordinators.append(coordinator)

            if graph.position == 0 and self.variable is None:
                sequence = stage.source()
            elif graph.position == 0:
                sequence = ProcessedSequence(stage.process, self.variable)
            else:
                sequence = ProcessedSequence(stage.process, upstream)

            upstream = adapter.run(sequence)
            inbox = outbox

        return upstream

    def run(self) -> Iterator[Any]:
        """
        Yield the records produced by the last stage.

        Raises:
            Whatever a stage or source raises (after completing
            every stage's progress prematurely)
        """
        records = self._chain()
        try:
            for record in records:
                yield record
        except GeneratorExit:
            close = getattr(records, "close", None)
            if close:
                close()
            raise
        except Exception:
            logger.debug("Pipeline failed; completing %d stages prematurely", len(self.coordinators))
            for coordinator in self.coordinators:
                coordinator.complete_prematurely()
            raise

    def __iter__(self) -> Iterator[Any]:
        return self.run()
