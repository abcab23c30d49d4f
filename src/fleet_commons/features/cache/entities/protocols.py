"""Cache protocols for fleet-commons."""

from abc import abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol, runtime_checkable

from .cache_entry import CacheEntry
from .cache_key import CacheKey


@dataclass(frozen=True)
class CacheStats:
    """Cache counters."""

    size: int
    hits: int
    misses: int

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0


@runtime_checkable
class CacheStore(Protocol):
    """Protocol for the query result cache."""

    @abstractmethod
    async def start(self) -> None:
        """Start background maintenance (expired entry sweep)."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Stop background maintenance and drop all entries."""
        ...

    @abstractmethod
    async def get(self, key: CacheKey) -> Optional[Any]:
        """Get cached data, or None when absent or expired."""
        ...

    @abstractmethod
    async def set(
        self,
        key: CacheKey,
        data: Any,
        ttl: Optional[float] = None,
        generation: Optional[int] = None,
    ) -> bool:
        """Store data.

        When ``generation`` is given and the key's table has been invalidated
        since, the write is dropped and False is returned.
        """
        ...

    @abstractmethod
    async def generation(self, table: str) -> int:
        """Current invalidation generation of a table."""
        ...

    @abstractmethod
    async def invalidate_table(self, table: str) -> int:
        """Remove every entry derived from a query against ``table``."""
        ...

    @abstractmethod
    async def invalidate(self, predicate: Callable[[CacheEntry], bool]) -> int:
        """Remove every entry matching ``predicate``."""
        ...

    @abstractmethod
    async def cleanup_expired(self) -> int:
        """Remove expired entries."""
        ...

    @abstractmethod
    async def size(self) -> int:
        """Number of stored entries, including not-yet-swept expired ones."""
        ...

    @abstractmethod
    async def clear(self) -> None:
        ...

    @abstractmethod
    async def stats(self) -> CacheStats:
        ...

    @abstractmethod
    async def reset_stats(self) -> None:
        ...
