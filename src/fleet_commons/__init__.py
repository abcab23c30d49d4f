"""Fleet-Commons - unified data access layer for fleet operations.

Query caching, mutation-driven cache invalidation, deduplicated change
subscriptions, batch execution, search ranking and record deduplication
over a remote relational store.
"""

from .__version__ import __version__

from .config import DataAccessSettings, get_settings, setup_logging, get_logger

from .core.exceptions import (
    FleetCommonsError,
    DataAccessError,
    QueryFailed,
    MutationFailed,
    ValidationFailed,
    UnsupportedOperation,
    SubscriptionFailed,
    EnrichmentDegraded,
    TextAnalysisError,
    create_error_response,
)

from .features.cache import CacheKey, CacheStore, MemoryCacheStore
from .features.text_analysis import AnalysisResult, HttpTextAnalysisGateway, TextAnalysisGateway
from .features.data_access import (
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
    UnifiedDataService,
)
from .features.subscriptions import SubscriptionHandle
from .features.database import PostgresRemoteStore, StoreAuditSink
from .factory import create_unified_data_service

__all__ = [
    "__version__",
    # Configuration
    "DataAccessSettings",
    "get_settings",
    "setup_logging",
    "get_logger",
    # Exceptions
    "FleetCommonsError",
    "DataAccessError",
    "QueryFailed",
    "MutationFailed",
    "ValidationFailed",
    "UnsupportedOperation",
    "SubscriptionFailed",
    "EnrichmentDegraded",
    "TextAnalysisError",
    "create_error_response",
    # Cache
    "CacheKey",
    "CacheStore",
    "MemoryCacheStore",
    # Text analysis
    "AnalysisResult",
    "HttpTextAnalysisGateway",
    "TextAnalysisGateway",
    # Data access
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
    "SubscriptionHandle",
    # PostgreSQL
    "PostgresRemoteStore",
    "StoreAuditSink",
    "create_unified_data_service",
]
