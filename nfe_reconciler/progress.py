"""
Progress events for the batch loop.
"""

from typing import Callable

from .config import PROGRESS_CHECKPOINT
from .schemas import ProgressMessage


class ProgressReporter:
    """
    Emit a progress message every ``checkpoint`` documents and on the last one.

    ``emit`` must return promptly; the reporter never waits on it. Each
    checkpoint index produces at most one message.
    """

    def __init__(self, total: int, emit: Callable[[ProgressMessage], None], checkpoint: int = PROGRESS_CHECKPOINT):
        self.total = total
        self.checkpoint = max(1, checkpoint)
        self._emit = emit
        self._last_index = -1

    def document_done(self, index: int) -> bool:
        """
        Notify that the document at ``index`` (0-based) has been processed.

        Returns:
            True if a progress message was emitted
        """
        processed = index + 1
        at_checkpoint = processed % self.checkpoint == 0 or processed == self.total
        if not at_checkpoint or index <= self._last_index:
            return False

        self._last_index = index
        self._emit(ProgressMessage(
            percent=min(100, processed * 100 // self.total) if self.total else 100,
            processed=processed,
            total=self.total,
            status=f"Processing... ({processed}/{self.total})",
        ))
        return True
