"""Cache entities and protocols."""

from .cache_entry import CacheEntry
from .cache_key import CacheKey, content_digest, derive_signature
from .protocols import CacheStats, CacheStore

__all__ = [
    "CacheEntry",
    "CacheKey",
    "content_digest",
    "derive_signature",
    "CacheStats",
    "CacheStore",
]
