class ReconciliationError(Exception):
    """Base exception for all reconciliation errors."""


class InvalidBatchError(ReconciliationError):
    """Raised when the inbound message does not carry a document list."""


class ReconciliationCancelled(ReconciliationError):
    """Raised inside the batch loop once the host has asked it to stop."""
