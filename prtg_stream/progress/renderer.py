# ==============================================
# Progress Renderers
# ==============================================
#
# PURPOSE:
#   The host side of progress: whatever actually shows a
#   ProgressRecord to the user. Coordinators only ever call
#   write(record) and complete(record_id).
#
# CLASSES:
# --------
# - ProgressRenderer   → base class (interface)
# - NullRenderer       → discards everything
# - ConsoleRenderer    → one "\r"-rewritten line per record on a stream
#
# ==============================================

import sys
from typing import Dict, Optional, TextIO

from prtg_stream.progress.state import ProgressRecord


class ProgressRenderer:
    """Interface for anything that can display progress records."""

    def write(self, record: ProgressRecord) -> None:
        raise NotImplementedError

    def complete(self, record_id: int) -> None:
        raise NotImplementedError


class NullRenderer(ProgressRenderer):

    def write(self, record: ProgressRecord) -> None:
        pass

    def complete(self, record_id: int) -> None:
        pass


class ConsoleRenderer(ProgressRenderer):
    """
    Renders progress on a text stream (stderr by default).

    Nested records are indented under their parent. Each write
    rewrites the current line; completing a record ends the line.
    """

    BAR_WIDTH = 20

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stderr
        self._depth: Dict[int, int] = {}
        self._open_line = False

    def _format(self, record: ProgressRecord) -> str:
        depth = self._depth.get(record.parent_id, -1) + 1 if record.parent_id else 0
        self._depth[record.record_id] = depth

        filled = record.percent_complete * self.BAR_WIDTH // 100
        bar = "#" * filled + "-" * (self.BAR_WIDTH - filled)
        line = f"{'  ' * depth}{record.activity}: [{bar}] {record.percent_complete:3d}% {record.status_description}"
        if record.current_operation:
            line += f" - {record.current_operation}"
        return line

    def write(self, record: ProgressRecord) -> None:
        print(f"\r{self._format(record)}", end="", file=self.stream, flush=True)
        self._open_line = True

    def complete(self, record_id: int) -> None:
        self._depth.pop(record_id, None)
        if self._open_line:
            print(file=self.stream, flush=True)
            self._open_line = False
