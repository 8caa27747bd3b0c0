# ==============================================
# PipelineStageAdapter & HandoffChannel
# ==============================================
#
# PURPOSE:
#   The seam between a pipeline stage, the sequence it pulls from,
#   and that stage's ProgressCoordinator. Wrapping a sequence in
#   run() fires the coordinator's triggers at the right moments:
#
#     run(sequence)
#       pre_loop(inbox)        → before the first pull
#       for record in sequence:
#         set_total(...)       → once, when the sequence knows its size
#         before_each(record)  → per input record for a ProcessedSequence
#         yield record
#       post_loop()            → end of sequence OR consumer stopped early
#       outbox.put(handoff)
#
#   An error from the sequence completes the stage prematurely and
#   propagates unchanged; no Post-loop runs.
#
# CLASSES:
# --------
# - HandoffChannel        → single-slot mailbox between two adjacent stages
# - PipelineStageAdapter  → run(sequence) generator
#
# ==============================================

import logging
from typing import Any, Iterable, Iterator, Optional

from prtg_stream.progress.coordinator import ProgressCoordinator
from prtg_stream.progress.state import Handoff

logger = logging.getLogger(__name__)


class HandoffChannel:
    """Single-slot mailbox carrying a Handoff from one stage to the next."""

    def __init__(self):
        self._handoff: Optional[Handoff] = None

    def put(self, handoff: Optional[Handoff]) -> None:
        self._handoff = handoff

    def take(self) -> Optional[Handoff]:
        handoff, self._handoff = self._handoff, None
        return handoff


class PipelineStageAdapter:
    """
    Drives a ProgressCoordinator from the records flowing through a stage.
    """

    def __init__(
        self,
        coordinator: ProgressCoordinator,
        inbox: Optional[HandoffChannel] = None,
        outbox: Optional[HandoffChannel] = None
    ):
        self.coordinator = coordinator
        self.inbox = inbox or HandoffChannel()
        self.outbox = outbox or HandoffChannel()

    def run(self, sequence: Iterable[Any]) -> Iterator[Any]:
        """
        Yield every record of `sequence`, firing progress triggers around them.

        Args:
            sequence: Any iterable; an optional `total` attribute is fed
                to the coordinator once it becomes known. A sequence
                with an `on_input` hook reports the records piped into
                it, and those are counted instead of the ones it yields.
        """
        self.coordinator.pre_loop(self.inbox.take())

        self._sequence = sequence
        self._total_known = False
        counts_inputs = hasattr(sequence, "on_input")
        if counts_inputs:
            sequence.on_input = self._before_each

        iterator = iter(sequence)
        try:
            for record in iterator:
                if not counts_inputs:
                    self._before_each(record)
                yield record
        except GeneratorExit:
            # consumer stopped early; stop the upstream so its own
            # hand-off lands in our inbox before we finish
            close = getattr(iterator, "close", None)
            if close:
                close()
            self._finish()
            raise
        except Exception:
            logger.debug("Stage %d failed; completing prematurely",
                         self.coordinator.graph.position)
            self.coordinator.complete_prematurely()
            raise

        self._finish()

    def _before_each(self, record: Any) -> None:
        if not self._total_known:
            total = getattr(self._sequence, "total", None)
            if total is not None:
                self.coordinator.set_total(total)
                self._total_known = True
        self.coordinator.before_each(record)

    def _finish(self) -> None:
        self.coordinator.receive(self.inbox.take())
        self.outbox.put(self.coordinator.post_loop())
