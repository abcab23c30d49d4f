"""Features module for fleet-commons.

Import order matters: data_access services depend on the subscriptions
feature, whose registry depends on data_access entities.
"""

# Cache features
from .cache import MemoryCacheStore

# Text analysis features
from .text_analysis import HttpTextAnalysisGateway, RecordEnricher

# Unified data access
from .data_access import UnifiedDataService

# Subscriptions
from .subscriptions import SubscriptionHandle, SubscriptionRegistry

# PostgreSQL remote store
from .database import PostgresRemoteStore, StoreAuditSink

__all__ = [
    "MemoryCacheStore",
    "HttpTextAnalysisGateway",
    "RecordEnricher",
    "UnifiedDataService",
    "SubscriptionHandle",
    "SubscriptionRegistry",
    "PostgresRemoteStore",
    "StoreAuditSink",
]
