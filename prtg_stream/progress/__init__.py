# ==============================================
# TOPIC 3: PROGRESS
# ==============================================
#
# This package coordinates progress display across a chain of
# pipeline stages that cannot see each other. Each stage owns one
# ProgressCoordinator; the coordinator classifies the stage's
# position in the pipeline and decides who counts what.
#
# Modules:
# --------
# - state.py        → ProgressState, ProgressRecord, Handoff, enums
# - scenario.py     → ProgressScenario, PipelineGraph, classify()
# - renderer.py     → ProgressRenderer, NullRenderer, ConsoleRenderer
# - coordinator.py  → ProgressCoordinator (per-stage state machine)
#
# ==============================================

from .state import Handoff, ProgressRecord, ProgressStage, ProgressState, StageStatus
from .scenario import (
    BlockingKind,
    InputKind,
    PipelineGraph,
    ProgressScenario,
    classify,
    resolve_scenario,
)
from .renderer import ConsoleRenderer, NullRenderer, ProgressRenderer
from .coordinator import ProgressCoordinator, pluralize

__all__ = [
    "Handoff",
    "ProgressRecord",
    "ProgressStage",
    "ProgressState",
    "StageStatus",
    "BlockingKind",
    "InputKind",
    "PipelineGraph",
    "ProgressScenario",
    "classify",
    "resolve_scenario",
    "ConsoleRenderer",
    "NullRenderer",
    "ProgressRenderer",
    "ProgressCoordinator",
    "pluralize",
]
