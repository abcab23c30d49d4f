"""Data access entities and protocols."""

from .filters import Filter, FilterOperator, OrderBy, escape_like, normalize_filters
from .query_spec import QuerySpec
from .mutation_spec import MutationOperation, MutationSpec
from .audit_event import AuditEvent
from .change_event import ChangeEvent, ChangeType
from .results import (
    BatchItemResult,
    DeduplicationError,
    DeduplicationReport,
    RequestMetrics,
    SearchOptions,
)
from .protocols import AuditSink, ChangeChannel, ChangeHandler, Record, RemoteStore

__all__ = [
    "Filter",
    "FilterOperator",
    "OrderBy",
    "escape_like",
    "normalize_filters",
    "QuerySpec",
    "MutationOperation",
    "MutationSpec",
    "AuditEvent",
    "ChangeEvent",
    "ChangeType",
    "BatchItemResult",
    "DeduplicationError",
    "DeduplicationReport",
    "RequestMetrics",
    "SearchOptions",
    "AuditSink",
    "ChangeChannel",
    "ChangeHandler",
    "Record",
    "RemoteStore",
]
