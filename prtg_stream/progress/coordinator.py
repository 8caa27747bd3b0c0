# ==============================================
# ProgressCoordinator
# ==============================================
#
# PURPOSE:
#   The per-stage progress state machine. A stage drives it with
#   three triggers and the coordinator decides, from the stage's
#   scenario, what (if anything) to show.
#
# TRIGGERS:
# ---------
#   - pre_loop(handoff)   → once, before the first record is pulled
#   - before_each(record) → once per record, before it goes downstream
#   - post_loop()         → once, after the last record (or early stop)
#                           returns the Handoff for the next stage
#
#   Plus:
#   - receive(handoff)        → upstream hand-off arrived late
#   - set_total(n)            → total becomes known (first page, buffer)
#   - complete_prematurely()  → failure / cancellation / no observers
#   - finalize()              → complete this stage (called by the last
#                               stage once the whole chain is done)
#
# STATE MACHINE:
# --------------
#   UNINITIALIZED --first trigger--> CLASSIFYING --> ACTIVE
#   ACTIVE --> COMPLETED | COMPLETED_PREMATURELY
#   Terminal states are sticky; every later trigger is a no-op.
#
# DISPATCH:
# ---------
#   _HANDLERS maps every ProgressScenario to a handler method name.
#   SELECT_LAST / SELECT_SKIP_LAST dispatch through _handle_blocking,
#   which resolves them to the scenario that applies.
#
# ==============================================

import logging
from typing import Any, Dict, Optional

from prtg_stream.errors import ScenarioError
from prtg_stream.progress.renderer import NullRenderer, ProgressRenderer
from prtg_stream.progress.scenario import (
    PipelineGraph,
    ProgressScenario,
    classify,
    resolve_scenario,
)
from prtg_stream.progress.state import Handoff, ProgressStage, ProgressState, StageStatus

logger = logging.getLogger(__name__)


def pluralize(word: str) -> str:
    """sensor → sensors, probe → probes, entry → entries, entries → entries."""
    word = word.lower()
    if word.endswith("ies"):
        return word
    if word.endswith("y"):
        return word[:-1] + "ies"
    return word + "s"


_HANDLERS: Dict[ProgressScenario, str] = {
    ProgressScenario.NO_PROGRESS: "_handle_no_progress",
    ProgressScenario.STREAM_PROGRESS: "_handle_counting",
    ProgressScenario.MULTIPLE_CMDLETS: "_handle_counting",
    ProgressScenario.VARIABLE_TO_SINGLE_CMDLET: "_handle_variable_to_single",
    ProgressScenario.VARIABLE_TO_MULTIPLE_CMDLETS: "_handle_counting",
    ProgressScenario.MULTIPLE_CMDLETS_FROM_BLOCKING_SELECT: "_handle_from_blocking_select",
    ProgressScenario.SELECT_LAST: "_handle_blocking",
    ProgressScenario.SELECT_SKIP_LAST: "_handle_blocking",
}


class ProgressCoordinator:
    """
    Drives one stage's ProgressState through its lifecycle.

    Example:
        coordinator = ProgressCoordinator(graph, renderer, "Sensor")
        coordinator.pre_loop(handoff)
        for record in records:
            coordinator.before_each(record)
        next_handoff = coordinator.post_loop()
    """

    def __init__(
        self,
        graph: PipelineGraph,
        renderer: Optional[ProgressRenderer] = None,
        type_description: str = "Object",
        name_field: str = "name"
    ):
        """
        Args:
            graph: This stage's view of the pipeline
            renderer: Where progress records are shown
            type_description: Singular object type, e.g. "Sensor"
            name_field: Record key shown as the current operation
        """
        self.graph = graph
        self.renderer = renderer or NullRenderer()
        self.type_description = type_description
        self.name_field = name_field

        self.state = ProgressState(
            record_id=graph.position + 1,
            parent_id=graph.position if graph.position else None,
        )
        self.scenario: Optional[ProgressScenario] = None
        self._incoming: Optional[Handoff] = None
        self._initial_description = ""

    # ------------------------------------------
    # Classification
    # ------------------------------------------

    @property
    def effective_scenario(self) -> ProgressScenario:
        """The scenario whose behavior applies (blocking scenarios resolved)."""
        return resolve_scenario(self.graph, self._classify())

    @property
    def owns_count(self) -> bool:
        return self.effective_scenario in (
            ProgressScenario.STREAM_PROGRESS,
            ProgressScenario.MULTIPLE_CMDLETS,
            ProgressScenario.VARIABLE_TO_MULTIPLE_CMDLETS,
        )

    def _classify(self) -> ProgressScenario:
        if self.scenario is None:
            # a stage completed before its first trigger stays completed
            fresh = self.state.status == StageStatus.UNINITIALIZED
            if fresh:
                self.state.status = StageStatus.CLASSIFYING
            self.scenario = classify(self.graph)
            if fresh:
                self.state.status = StageStatus.ACTIVE
            logger.debug("Stage %d classified as %s", self.graph.position, self.scenario.name)
        return self.scenario

    def _dispatch(self, stage: ProgressStage, record: Any = None) -> Optional[Handoff]:
        scenario = self._classify()
        if self.state.is_terminal:
            return None
        self.state.last_stage = stage
        handler = getattr(self, _HANDLERS[scenario])
        return handler(scenario, stage, record)

    # ------------------------------------------
    # Triggers
    # ------------------------------------------

    def receive(self, handoff: Optional[Handoff]) -> None:
        """
        Accept the upstream stage's Handoff.

        In a lazy chain the upstream Post-loop runs after this stage's
        Pre-loop, so the hand-off can arrive at either point.
        """
        if handoff is None:
            return
        self._incoming = handoff
        self.state.previous_operation = handoff.summary

    def pre_loop(self, handoff: Optional[Handoff] = None) -> None:
        self.receive(handoff)
        self._dispatch(ProgressStage.PRE_LOOP)

    def before_each(self, record: Any) -> None:
        self._dispatch(ProgressStage.BEFORE_EACH, record)

    def post_loop(self) -> Optional[Handoff]:
        return self._dispatch(ProgressStage.POST_LOOP)

    def set_total(self, total: Optional[int]) -> None:
        if total is None or self.state.is_terminal:
            return
        self.state.total = total
        self._update_status()
        self._render()

    def complete_prematurely(self) -> None:
        """Abandon this stage's progress; idempotent."""
        if self.state.is_terminal:
            return
        self.state.status = StageStatus.COMPLETED_PREMATURELY
        if self.state.visible:
            self.renderer.complete(self.state.record_id)

    def finalize(self) -> None:
        """Complete this stage at 100%; idempotent."""
        if self.state.is_terminal:
            return
        self.state.status = StageStatus.COMPLETED
        self.state.last_percent = 100
        if self.state.visible:
            self.renderer.write(self.state.snapshot())
            self.renderer.complete(self.state.record_id)

    # ------------------------------------------
    # Scenario handlers
    # ------------------------------------------

    def _handle_no_progress(self, scenario, stage, record):
        if stage == ProgressStage.PRE_LOOP:
            self._clear_stale()
        elif stage == ProgressStage.POST_LOOP:
            self.finalize()
            self._finalize_upstream()
        return None

    def _handle_counting(self, scenario, stage, record):
        if stage == ProgressStage.PRE_LOOP:
            self._clear_stale()
            self.state.activity = f"PRTG {self.type_description} Search"
            if scenario == ProgressScenario.VARIABLE_TO_MULTIPLE_CMDLETS:
                self._initial_description = f"Processing {self._types}"
            else:
                self._initial_description = f"Retrieving all {self._types}"
            self.state.visible = True
            self._update_status()
            self._render()
        elif stage == ProgressStage.BEFORE_EACH:
            self.state.processed += 1
            self.state.current_operation = self._describe(record)
            self._update_status()
            self._render()
        else:
            return self._finish_or_handoff()
        return None

    def _handle_variable_to_single(self, scenario, stage, record):
        if stage == ProgressStage.PRE_LOOP:
            self._clear_stale()
        elif stage == ProgressStage.BEFORE_EACH:
            # nothing downstream observes a single stage fed from a variable
            self.complete_prematurely()
        else:
            self.finalize()
            self._finalize_upstream()
        return None

    def _handle_from_blocking_select(self, scenario, stage, record):
        if stage == ProgressStage.PRE_LOOP:
            self._clear_stale()
            self.state.activity = f"PRTG {self.type_description} Search"
            self._initial_description = self.state.previous_operation or f"Processing {self._types}"
            self.state.status_description = self._initial_description
            self.state.visible = True
            self._render()
        elif stage == ProgressStage.BEFORE_EACH:
            self.state.processed += 1
            self.state.current_operation = self._describe(record)
            self._render()
        else:
            return self._finish_or_handoff()
        return None

    def _handle_blocking(self, scenario, stage, record):
        resolved = resolve_scenario(self.graph, scenario)
        if resolved in (ProgressScenario.SELECT_LAST, ProgressScenario.SELECT_SKIP_LAST):
            raise ScenarioError(f"{scenario.name} did not resolve to a concrete scenario")
        handler = getattr(self, _HANDLERS[resolved])
        return handler(resolved, stage, record)

    # ------------------------------------------
    # Helpers
    # ------------------------------------------

    @property
    def _types(self) -> str:
        return pluralize(self.type_description)

    def _describe(self, record: Any) -> Optional[str]:
        if isinstance(record, dict) and record.get(self.name_field) is not None:
            return f"{self.type_description} '{record[self.name_field]}'"
        return None

    def _clear_stale(self) -> None:
        self.state.current_operation = None
        self.state.status_description = ""

    def _update_status(self) -> None:
        if not self._initial_description:
            return
        if self.state.total is not None:
            self.state.status_description = (
                f"{self._initial_description} ({self.state.processed}/{self.state.total})"
            )
        else:
            self.state.status_description = self._initial_description

    def _render(self) -> None:
        if not self.state.visible or self.state.is_terminal:
            return
        self.state.last_percent = self.state.percent
        self.renderer.write(self.state.snapshot())

    def _finalize_upstream(self) -> None:
        if self._incoming is None:
            return
        for finalizer in self._incoming.finalizers:
            finalizer()

    def _finish_or_handoff(self) -> Optional[Handoff]:
        if self.graph.is_last:
            self.finalize()
            self._finalize_upstream()
            return None

        upstream = self._incoming.finalizers if self._incoming else ()
        self.state.current_operation = None
        self._render()
        return Handoff(
            summary=f"Retrieved {self.state.processed} {self._types}",
            parent_id=self.state.record_id,
            finalizers=upstream + (self.finalize,),
        )
