# ==============================================
# Progress State (Data Classes)
# ==============================================
#
# PURPOSE:
#   Data classes for the progress of ONE pipeline stage: the
#   mutable ProgressState owned by its coordinator, the frozen
#   ProgressRecord snapshot handed to the renderer, and the
#   Handoff message passed from one stage to the next.
#
# WHY THIS FILE EXISTS:
#   Stages never touch each other's state. Everything a stage
#   needs to know about its predecessor arrives in a Handoff, and
#   everything the host renders arrives as a ProgressRecord.
#
# ENUMS:
# ------
# - StageStatus(Enum): UNINITIALIZED, CLASSIFYING, ACTIVE,
#                      COMPLETED, COMPLETED_PREMATURELY
# - ProgressStage(Enum): PRE_LOOP, BEFORE_EACH, POST_LOOP
#
# CLASSES:
# --------
# - ProgressState (dataclass)
#     - percent: int (property)      → floor(processed * 100 / total), ≤ 99
#     - is_terminal: bool (property)
#     - snapshot() -> ProgressRecord
#
# - ProgressRecord (frozen dataclass)
# - Handoff (frozen dataclass)
#
# ==============================================

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Tuple


class StageStatus(Enum):
    """
    Lifecycle of a stage's progress.

    UNINITIALIZED → CLASSIFYING → ACTIVE → COMPLETED
                                         ↘ COMPLETED_PREMATURELY
    """
    UNINITIALIZED = "uninitialized"
    CLASSIFYING = "classifying"
    ACTIVE = "active"
    COMPLETED = "completed"
    COMPLETED_PREMATURELY = "completed_prematurely"


TERMINAL_STATUSES = (StageStatus.COMPLETED, StageStatus.COMPLETED_PREMATURELY)


class ProgressStage(Enum):
    """The lifecycle trigger that last touched a ProgressState."""
    PRE_LOOP = "pre_loop"
    BEFORE_EACH = "before_each"
    POST_LOOP = "post_loop"


@dataclass(frozen=True)
class ProgressRecord:
    """Immutable view of a ProgressState, as rendered by the host."""
    record_id: int
    parent_id: Optional[int]
    activity: str
    status_description: str
    current_operation: Optional[str]
    percent_complete: int
    completed: bool = False


@dataclass(frozen=True)
class Handoff:
    """
    Message from a stage's Post-loop to the next stage.

    finalizers complete the upstream stages that are still on
    screen; they run when the last stage in the chain completes.
    """
    summary: str
    parent_id: Optional[int]
    finalizers: Tuple[Callable[[], None], ...] = ()


@dataclass
class ProgressState:
    """
    Progress of one stage invocation. Mutated only by its coordinator.
    """

    record_id: int
    parent_id: Optional[int] = None

    # --- Display text ---
    activity: str = ""
    status_description: str = ""
    current_operation: Optional[str] = None
    previous_operation: Optional[str] = None  # hand-off text from the upstream stage

    # --- Counting ---
    processed: int = 0
    total: Optional[int] = None
    last_percent: int = 0

    # --- Lifecycle ---
    status: StageStatus = StageStatus.UNINITIALIZED
    last_stage: Optional[ProgressStage] = None
    visible: bool = field(default=False)

    @property
    def percent(self) -> int:
        """
        Percent complete: 100 once completed, otherwise capped at 99
        and never below a previously reported value.
        """
        if self.status == StageStatus.COMPLETED:
            return 100
        computed = 0
        if self.total:
            computed = min(99, self.processed * 100 // self.total)
        return max(self.last_percent, computed)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def snapshot(self) -> ProgressRecord:
        return ProgressRecord(
            record_id=self.record_id,
            parent_id=self.parent_id,
            activity=self.activity,
            status_description=self.status_description,
            current_operation=self.current_operation,
            percent_complete=self.percent,
            completed=self.is_terminal,
        )
