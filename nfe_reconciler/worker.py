"""
Background execution context for the reconciliation engine.

A ReconciliationWorker runs one batch on its own thread and communicates with
its host only through messages: one inbound payload via ``post`` and the
engine's outbound messages read back via ``messages``.
"""

import queue
import threading
from collections.abc import Iterator
from typing import Any, Optional

from .config import logger
from .engine import ReconciliationEngine
from .schemas import CompletedMessage, FailedMessage, OutboundMessage, ReportLog


class ReconciliationWorker:
    """Run one batch off the caller's thread."""

    def __init__(self, engine: Optional[ReconciliationEngine] = None):
        self._engine = engine or ReconciliationEngine()
        self._outbox: queue.Queue = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._terminated = threading.Event()

    def post(self, payload: Any, log: Optional[ReportLog] = None) -> None:
        """
        Start processing an inbound message.

        Raises:
            RuntimeError: If this worker has already been given a batch
        """
        if self._thread is not None:
            raise RuntimeError("Worker already received a batch")
        self._thread = threading.Thread(
            target=self._run,
            args=(payload, log),
            name="nfe-reconciler-worker",
            daemon=True,
        )
        self._thread.start()

    def _run(self, payload: Any, log: Optional[ReportLog]) -> None:
        try:
            self._engine.handle_message(payload, self._outbox.put, log, self._terminated.is_set)
        except Exception as e:
            logger.exception("Worker crashed")
            self._outbox.put(FailedMessage(message=str(e) or "Unknown worker error"))

    def messages(self, timeout: Optional[float] = None) -> Iterator[OutboundMessage]:
        """
        Yield outbound messages until the terminal one.

        Args:
            timeout: Seconds to wait for each message; None waits indefinitely

        Raises:
            queue.Empty: If no message arrives within ``timeout``
        """
        while not self._terminated.is_set():
            message = self._outbox.get(timeout=timeout)
            yield message
            if isinstance(message, (CompletedMessage, FailedMessage)):
                return

    def terminate(self) -> None:
        """
        Stop delivering messages and abandon the batch.

        The engine checks for termination between documents, so the document
        in flight finishes first. No partial report is produced.
        """
        self._terminated.set()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the batch thread to exit. Returns True if it has."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()
