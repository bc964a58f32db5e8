"""Exceptions raised by the reconciliation engine and its collaborators."""


class ReconciliationError(Exception):
    """Base class for reconciliation failures."""


class NormalizationError(ReconciliationError):
    """A raw platform record lacks a field every scoring signal depends on."""

    def __init__(self, source: str, record_id: str | None, message: str):
        self.source = source
        self.record_id = record_id
        super().__init__(f"{source} record {record_id or '<unknown>'}: {message}")


class InvalidRangeError(ReconciliationError):
    """The requested reconciliation window is empty or inverted."""


class SyncFailure(ReconciliationError):
    """A platform could not be synced for the requested window."""

    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(f"{source} sync failed: {message}")


class RunNotFoundError(ReconciliationError):
    """No reconciliation run exists with the requested id."""
