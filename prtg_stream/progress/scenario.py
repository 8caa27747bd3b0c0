# ==============================================
# Progress Scenario Classification
# ==============================================
#
# PURPOSE:
#   Decides, from a stage's position in the pipeline, which
#   progress scenario it belongs to and therefore who owns the
#   progress count for the records flowing through it.
#
# ENUMS:
# ------
# - ProgressScenario(Enum)   → closed set of eight scenarios
# - InputKind(Enum)          → NONE (head), VARIABLE, STREAM
# - BlockingKind(Enum)       → TAKE_LAST, SKIP_LAST
#
# CLASSES:
# --------
# - PipelineGraph (frozen dataclass)
#     What a stage can see of its pipeline.
#
# FUNCTIONS:
# ----------
# - classify(graph) -> ProgressScenario
# - resolve_scenario(graph, scenario) -> ProgressScenario
#     Replaces SELECT_LAST / SELECT_SKIP_LAST with the scenario
#     that actually drives behavior.
#
# CLASSIFICATION TABLE (first match wins):
# ----------------------------------------
#   1. progress disabled                       → NO_PROGRESS
#   2. blocking transform directly upstream    → SELECT_LAST / SELECT_SKIP_LAST
#   3. VARIABLE input                          → VARIABLE_TO_SINGLE_CMDLET (last)
#                                                VARIABLE_TO_MULTIPLE_CMDLETS
#   4. STREAM input, blocking further upstream → MULTIPLE_CMDLETS_FROM_BLOCKING_SELECT
#   5. STREAM input                            → STREAM_PROGRESS (last)
#                                                MULTIPLE_CMDLETS
#   6. NONE input                              → MULTIPLE_CMDLETS (not last)
#                                                STREAM_PROGRESS (last, streaming)
#                                                NO_PROGRESS
#
#   Anything the table cannot place raises ScenarioError.
#
# ==============================================

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from prtg_stream.errors import ScenarioError


class ProgressScenario(Enum):
    """
    Every pipeline shape a stage's progress can be in.

    - NO_PROGRESS: nothing to show
    - STREAM_PROGRESS: a lone stage pulling from a live source
    - MULTIPLE_CMDLETS: one of several stages, counting its own records
    - VARIABLE_TO_SINGLE_CMDLET: a variable piped into a single stage
    - VARIABLE_TO_MULTIPLE_CMDLETS: a variable piped into a chain
    - MULTIPLE_CMDLETS_FROM_BLOCKING_SELECT: downstream of a buffered
      transform that is not directly upstream
    - SELECT_LAST / SELECT_SKIP_LAST: directly after a TakeLast /
      SkipLast; resolved before any behavior runs
    """
    NO_PROGRESS = "no_progress"
    STREAM_PROGRESS = "stream_progress"
    MULTIPLE_CMDLETS = "multiple_cmdlets"
    VARIABLE_TO_SINGLE_CMDLET = "variable_to_single_cmdlet"
    VARIABLE_TO_MULTIPLE_CMDLETS = "variable_to_multiple_cmdlets"
    MULTIPLE_CMDLETS_FROM_BLOCKING_SELECT = "multiple_cmdlets_from_blocking_select"
    SELECT_LAST = "select_last"
    SELECT_SKIP_LAST = "select_skip_last"


BLOCKING_SCENARIOS = (ProgressScenario.SELECT_LAST, ProgressScenario.SELECT_SKIP_LAST)


class InputKind(Enum):
    """Where a stage's records come from."""
    NONE = "none"          # head of the pipeline; produces its own records
    VARIABLE = "variable"  # a pre-materialized collection
    STREAM = "stream"      # a live upstream stage


class BlockingKind(Enum):
    """Transforms that buffer their entire input before emitting."""
    TAKE_LAST = "take_last"
    SKIP_LAST = "skip_last"


@dataclass(frozen=True)
class PipelineGraph:
    """
    A stage's view of the pipeline it runs in.

    Attributes:
        input_kind: Where this stage's records come from
        position: 0-based index of this stage in the chain
        length: Number of processing stages in the chain
        upstream_blocking: Blocking transform directly before this stage
        downstream_blocking: Blocking transform directly after this stage
        blocking_further_upstream: A blocking transform sits somewhere
            before the stage directly upstream
        streaming: This stage's own source is a live stream
        progress_enabled: Progress display is switched on
    """
    input_kind: InputKind
    position: int = 0
    length: int = 1
    upstream_blocking: Optional[BlockingKind] = None
    downstream_blocking: Optional[BlockingKind] = None
    blocking_further_upstream: bool = False
    streaming: bool = False
    progress_enabled: bool = True

    @property
    def is_first(self) -> bool:
        return self.position == 0

    @property
    def is_last(self) -> bool:
        # a buffering transform absorbs this stage's output
        return self.position == self.length - 1 or self.downstream_blocking is not None

    @property
    def downstream_count(self) -> int:
        return self.length - self.position - 1

    def without_blocking(self) -> "PipelineGraph":
        """
        The same graph with the directly-upstream blocking transform removed.

        The buffered records reach this stage as a materialized
        collection, so the input becomes VARIABLE.
        """
        return replace(self, upstream_blocking=None, input_kind=InputKind.VARIABLE)


def _validate(graph: PipelineGraph) -> None:
    if graph.length < 1:
        raise ScenarioError(f"Pipeline length must be positive, got {graph.length}")
    if not 0 <= graph.position < graph.length:
        raise ScenarioError(
            f"Position {graph.position} is outside a pipeline of length {graph.length}"
        )
    if graph.input_kind == InputKind.NONE and not graph.is_first:
        raise ScenarioError(f"Stage {graph.position} has no input but is not the head")
    if graph.is_first and graph.input_kind == InputKind.STREAM:
        raise ScenarioError("The head stage cannot consume a stream")
    if graph.is_first and (graph.upstream_blocking or graph.blocking_further_upstream):
        raise ScenarioError("The head stage cannot follow a blocking transform")
    if graph.upstream_blocking and graph.input_kind == InputKind.NONE:
        raise ScenarioError("A stage after a blocking transform must have input")


def classify(graph: PipelineGraph) -> ProgressScenario:
    """
    Place a stage in exactly one ProgressScenario.

    Args:
        graph: The stage's view of the pipeline

    Returns:
        The scenario (may be SELECT_LAST / SELECT_SKIP_LAST)

    Raises:
        ScenarioError: if the graph is inconsistent
    """
    _validate(graph)

    if not graph.progress_enabled:
        return ProgressScenario.NO_PROGRESS

    if graph.upstream_blocking == BlockingKind.TAKE_LAST:
        return ProgressScenario.SELECT_LAST
    if graph.upstream_blocking == BlockingKind.SKIP_LAST:
        return ProgressScenario.SELECT_SKIP_LAST

    if graph.input_kind == InputKind.VARIABLE:
        if graph.is_last:
            return ProgressScenario.VARIABLE_TO_SINGLE_CMDLET
        return ProgressScenario.VARIABLE_TO_MULTIPLE_CMDLETS

    if graph.input_kind == InputKind.STREAM:
        if graph.blocking_further_upstream:
            return ProgressScenario.MULTIPLE_CMDLETS_FROM_BLOCKING_SELECT
        if graph.is_last:
            return ProgressScenario.STREAM_PROGRESS
        return ProgressScenario.MULTIPLE_CMDLETS

    if graph.input_kind == InputKind.NONE:
        if not graph.is_last:
            return ProgressScenario.MULTIPLE_CMDLETS
        if graph.streaming:
            return ProgressScenario.STREAM_PROGRESS
        return ProgressScenario.NO_PROGRESS

    raise ScenarioError(f"No progress scenario for {graph!r}")


def resolve_scenario(graph: PipelineGraph, scenario: ProgressScenario) -> ProgressScenario:
    """
    Map a blocking scenario onto the scenario whose behavior applies.

    Non-blocking scenarios are returned unchanged.
    """
    if scenario not in BLOCKING_SCENARIOS:
        return scenario

    # VARIABLE input: VARIABLE_TO_SINGLE_CMDLET or VARIABLE_TO_MULTIPLE_CMDLETS
    resolved = classify(graph.without_blocking())

    if scenario == ProgressScenario.SELECT_SKIP_LAST and graph.is_last:
        resolved = ProgressScenario.VARIABLE_TO_SINGLE_CMDLET

    return resolved
