"""Data access services."""

from .query_service import QueryService
from .mutation_service import MutationService
from .batch_executor import BatchExecutor, BatchItem
from .search_service import SearchService
from .deduplicator import Deduplicator
from .unified_data_service import UnifiedDataService

__all__ = [
    "QueryService",
    "MutationService",
    "BatchExecutor",
    "BatchItem",
    "SearchService",
    "Deduplicator",
    "UnifiedDataService",
]
