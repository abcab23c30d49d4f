"""Data access exceptions for fleet-commons."""

from typing import Any, Optional

from .base import FleetCommonsError


def _describe(cause: Optional[BaseException]) -> str:
    if cause is None:
        return "unknown error"
    text = str(cause)
    return text or cause.__class__.__name__


class DataAccessError(FleetCommonsError):
    """Base class for unified data access errors."""
    pass


class QueryFailed(DataAccessError):
    """Raised when a remote read fails or times out."""

    def __init__(self, table: str, cause: Optional[BaseException] = None):
        self.table = table
        self.cause = cause
        super().__init__(
            f"Query on '{table}' failed: {_describe(cause)}",
            details={"table": table, "cause": _describe(cause)},
        )


class MutationFailed(DataAccessError):
    """Raised when a remote write fails or times out."""

    def __init__(self, table: str, operation: str, cause: Optional[BaseException] = None):
        self.table = table
        self.operation = operation
        self.cause = cause
        super().__init__(
            f"{operation} on '{table}' failed: {_describe(cause)}",
            details={"table": table, "operation": operation, "cause": _describe(cause)},
        )


class ValidationFailed(DataAccessError):
    """Raised when pre-write content validation rejects a payload."""

    def __init__(self, table: str, reason: Optional[str] = None):
        self.table = table
        self.reason = reason or "payload rejected"
        super().__init__(
            f"Validation failed for '{table}': {self.reason}",
            details={"table": table, "reason": self.reason},
        )


class UnsupportedOperation(DataAccessError):
    """Raised for a mutation kind outside insert/update/upsert/delete."""

    def __init__(self, operation: Any):
        self.operation = operation
        super().__init__(
            f"Unsupported operation: {operation!r}",
            details={"operation": str(operation)},
        )


class SubscriptionFailed(DataAccessError):
    """Raised when an upstream change channel cannot be opened."""

    def __init__(self, table: str, cause: Optional[BaseException] = None):
        self.table = table
        self.cause = cause
        super().__init__(
            f"Subscription on '{table}' failed: {_describe(cause)}",
            details={"table": table, "cause": _describe(cause)},
        )


class EnrichmentDegraded(DataAccessError):
    """Non-fatal: text-analysis enrichment was skipped.

    Never surfaced to callers of query/mutate/subscribe; logged and absorbed.
    """

    def __init__(self, stage: str, cause: Optional[BaseException] = None):
        self.stage = stage
        self.cause = cause
        super().__init__(
            f"Enrichment skipped during {stage}: {_describe(cause)}",
            details={"stage": stage, "cause": _describe(cause)},
        )


class TextAnalysisError(FleetCommonsError):
    """Raised when the text analysis provider cannot be reached."""

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.cause = cause
        super().__init__(
            f"Text analysis {operation} unavailable: {_describe(cause)}",
            details={"operation": operation, "cause": _describe(cause)},
        )
