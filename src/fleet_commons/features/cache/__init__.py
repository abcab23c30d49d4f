"""Cache feature for fleet-commons.

- entities/: cache entry, key derivation, and the CacheStore protocol
- adapters/: in-memory cache implementation
"""

from .entities import CacheEntry, CacheKey, CacheStats, CacheStore, derive_signature
from .adapters import MemoryCacheStore

__all__ = [
    "CacheEntry",
    "CacheKey",
    "CacheStats",
    "CacheStore",
    "derive_signature",
    "MemoryCacheStore",
]
