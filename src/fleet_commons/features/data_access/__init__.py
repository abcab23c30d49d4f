"""Unified data access feature for fleet-commons.

- entities/: query and mutation specs, filters, results, store protocols
- services/: query, mutation, batch, search and deduplication services,
  and the UnifiedDataService facade
"""

from .entities import (
    AuditEvent,
    AuditSink,
    BatchItemResult,
    ChangeEvent,
    ChangeType,
    DeduplicationReport,
    Filter,
    FilterOperator,
    MutationOperation,
    MutationSpec,
    OrderBy,
    QuerySpec,
    RemoteStore,
    RequestMetrics,
    SearchOptions,
)
from .services import UnifiedDataService

__all__ = [
    "AuditEvent",
    "AuditSink",
    "BatchItemResult",
    "ChangeEvent",
    "ChangeType",
    "DeduplicationReport",
    "Filter",
    "FilterOperator",
    "MutationOperation",
    "MutationSpec",
    "OrderBy",
    "QuerySpec",
    "RemoteStore",
    "RequestMetrics",
    "SearchOptions",
    "UnifiedDataService",
]
