# ==============================================
# TOPIC 4: PIPELINE
# ==============================================
#
# This package is the host pipeline that progress is coordinated
# across: stages pulling lazily from one another, blocking
# transforms that buffer, and the adapter that connects each
# stage to its ProgressCoordinator.
#
# Modules:
# --------
# - stage_adapter.py  → PipelineStageAdapter, HandoffChannel
# - stages.py         → Stage, TakeLast, SkipLast and sequence wrappers
# - runner.py         → Pipeline
#
# ==============================================

from .stage_adapter import HandoffChannel, PipelineStageAdapter
from .stages import (
    BufferedSequence,
    MaterializedSequence,
    ProcessedSequence,
    SkipLast,
    Stage,
    TakeLast,
    is_blocking,
)
from .runner import Pipeline

__all__ = [
    "HandoffChannel",
    "PipelineStageAdapter",
    "BufferedSequence",
    "MaterializedSequence",
    "ProcessedSequence",
    "SkipLast",
    "Stage",
    "TakeLast",
    "is_blocking",
    "Pipeline",
]
