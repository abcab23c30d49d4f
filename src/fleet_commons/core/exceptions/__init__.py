"""Exceptions module for fleet-commons."""

from .base import FleetCommonsError, create_error_response
from .data_access import (
    DataAccessError,
    QueryFailed,
    MutationFailed,
    ValidationFailed,
    UnsupportedOperation,
    SubscriptionFailed,
    EnrichmentDegraded,
    TextAnalysisError,
)

__all__ = [
    "FleetCommonsError",
    "create_error_response",
    "DataAccessError",
    "QueryFailed",
    "MutationFailed",
    "ValidationFailed",
    "UnsupportedOperation",
    "SubscriptionFailed",
    "EnrichmentDegraded",
    "TextAnalysisError",
]
