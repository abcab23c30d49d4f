"""Cache entry entity."""

from dataclasses import dataclass
from typing import Any


@dataclass
class CacheEntry:
    """Cached query result with insertion time and TTL.

    An entry is logically absent once ``now - inserted_at > ttl``; physical
    removal happens on read or during the background sweep.
    """

    key: str
    table: str
    data: Any
    inserted_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        """Check if entry has outlived its TTL."""
        return now - self.inserted_at > self.ttl

    def age(self, now: float) -> float:
        return max(0.0, now - self.inserted_at)
