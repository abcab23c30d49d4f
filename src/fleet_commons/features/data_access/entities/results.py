"""Result entities returned by the unified data access layer."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .mutation_spec import MutationSpec
from .query_spec import QuerySpec


@dataclass(frozen=True)
class BatchItemResult:
    """Outcome of a single batch item, in input position."""

    index: int
    spec: Union[QuerySpec, MutationSpec]
    data: Optional[List[Dict[str, Any]]] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class DeduplicationError:
    """A duplicate that could not be deleted."""

    record_id: Any
    error: str
    error_code: Optional[str] = None


@dataclass
class DeduplicationReport:
    """Summary of a deduplication run."""

    found: int = 0
    removed: int = 0
    errors: List[DeduplicationError] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "found": self.found,
            "removed": self.removed,
            "errors": [
                {"record": e.record_id, "error": e.error, "error_code": e.error_code}
                for e in self.errors
            ],
        }


@dataclass(frozen=True)
class SearchOptions:
    """Options for text search."""

    limit: Optional[int] = None
    fuzzy: bool = False
    multilingual: bool = True
    semantic: bool = True


@dataclass(frozen=True)
class RequestMetrics:
    """Diagnostic counters; derived, not authoritative."""

    cache_size: int
    cache_hit_rate: float
    active_subscriptions: int
    duplicate_requests_blocked: int
    cache_hits: int = 0
    cache_misses: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cacheSize": self.cache_size,
            "cacheHitRate": self.cache_hit_rate,
            "activeSubscriptions": self.active_subscriptions,
            "duplicateRequestsBlocked": self.duplicate_requests_blocked,
            "cacheHits": self.cache_hits,
            "cacheMisses": self.cache_misses,
        }
