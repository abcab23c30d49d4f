"""In-memory query cache for fleet-commons."""

import asyncio
import copy
import logging
import time
from collections import defaultdict
from typing import Any, Callable, Dict, Optional, Set

from ..entities.cache_entry import CacheEntry
from ..entities.cache_key import CacheKey
from ..entities.protocols import CacheStats, CacheStore

logger = logging.getLogger(__name__)


class MemoryCacheStore(CacheStore):
    """Process-local cache with expiry-on-read, table-level invalidation and a
    periodic background sweep.

    All state is guarded by a single asyncio.Lock. Stored data is deep-copied
    on the way in and out so callers cannot mutate cached results.
    """

    def __init__(
        self,
        default_ttl: float = 300.0,
        sweep_interval: float = 600.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if default_ttl <= 0:
            raise ValueError("default_ttl must be > 0")
        if sweep_interval <= 0:
            raise ValueError("sweep_interval must be > 0")

        self.default_ttl = default_ttl
        self.sweep_interval = sweep_interval
        self._clock = clock

        self._store: Dict[str, CacheEntry] = {}
        self._table_index: Dict[str, Set[str]] = defaultdict(set)
        self._generations: Dict[str, int] = defaultdict(int)
        self._lock = asyncio.Lock()

        self._hits = 0
        self._misses = 0

        self._sweep_task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        """Start the background sweep."""
        if self._sweep_task is None or self._sweep_task.done():
            self._sweep_task = asyncio.create_task(self._background_sweep())
            logger.info(f"Memory cache sweep started (interval={self.sweep_interval}s)")

    async def stop(self) -> None:
        """Stop the background sweep and drop all entries."""
        if self._sweep_task:
            self._sweep_task.cancel()
            try:
                await self._sweep_task
            except asyncio.CancelledError:
                pass
            self._sweep_task = None
        await self.clear()

    async def get(self, key: CacheKey) -> Optional[Any]:
        async with self._lock:
            entry = self._store.get(key.value)

            if entry is None:
                self._misses += 1
                logger.debug(f"Cache miss: {key.value}")
                return None

            if entry.is_expired(self._clock()):
                self._remove_entry(key.value)
                self._misses += 1
                logger.debug(f"Cache expired: {key.value}")
                return None

            self._hits += 1
            logger.debug(f"Cache hit: {key.value}")
            return copy.deepcopy(entry.data)

    async def set(
        self,
        key: CacheKey,
        data: Any,
        ttl: Optional[float] = None,
        generation: Optional[int] = None,
    ) -> bool:
        ttl = ttl if ttl is not None else self.default_ttl
        if ttl <= 0:
            raise ValueError("ttl must be > 0")

        async with self._lock:
            if generation is not None and generation != self._generations[key.table]:
                logger.debug(f"Dropping stale cache write for {key.value}")
                return False

            self._store[key.value] = CacheEntry(
                key=key.value,
                table=key.table,
                data=copy.deepcopy(data),
                inserted_at=self._clock(),
                ttl=ttl,
            )
            self._table_index[key.table].add(key.value)
            return True

    async def generation(self, table: str) -> int:
        async with self._lock:
            return self._generations[table]

    async def invalidate_table(self, table: str) -> int:
        async with self._lock:
            self._generations[table] += 1
            keys = self._table_index.pop(table, set())
            for key in keys:
                self._store.pop(key, None)

        if keys:
            logger.debug(f"Invalidated {len(keys)} cache entries for table {table}")
        return len(keys)

    async def invalidate(self, predicate: Callable[[CacheEntry], bool]) -> int:
        async with self._lock:
            matching = [entry for entry in self._store.values() if predicate(entry)]
            for entry in matching:
                self._generations[entry.table] += 1
                self._remove_entry(entry.key)
            return len(matching)

    async def cleanup_expired(self) -> int:
        async with self._lock:
            return self._cleanup_expired()

    async def size(self) -> int:
        async with self._lock:
            return len(self._store)

    async def clear(self) -> None:
        async with self._lock:
            for table in self._table_index:
                self._generations[table] += 1
            self._store.clear()
            self._table_index.clear()

    async def stats(self) -> CacheStats:
        async with self._lock:
            return CacheStats(size=len(self._store), hits=self._hits, misses=self._misses)

    async def reset_stats(self) -> None:
        async with self._lock:
            self._hits = 0
            self._misses = 0

    def _remove_entry(self, key: str) -> None:
        entry = self._store.pop(key, None)
        if entry is None:
            return
        keys = self._table_index.get(entry.table)
        if keys is not None:
            keys.discard(key)
            if not keys:
                del self._table_index[entry.table]

    def _cleanup_expired(self) -> int:
        now = self._clock()
        expired = [key for key, entry in self._store.items() if entry.is_expired(now)]
        for key in expired:
            self._remove_entry(key)
        return len(expired)

    async def _background_sweep(self) -> None:
        while True:
            try:
                await asyncio.sleep(self.sweep_interval)
                removed = await self.cleanup_expired()
                if removed:
                    logger.debug(f"Cache sweep removed {removed} expired entries")
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in cache sweep: {e}")
