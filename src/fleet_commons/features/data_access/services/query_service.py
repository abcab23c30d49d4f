"""Query execution with read-through caching."""

import asyncio
import logging
from typing import List, Optional

from ....core.exceptions import EnrichmentDegraded, QueryFailed
from ...cache.entities import CacheKey, CacheStore
from ...text_analysis.services import RecordEnricher
from ..entities import QuerySpec, Record, RemoteStore

logger = logging.getLogger(__name__)


class QueryService:
    """Resolves reads against the cache first, then the remote store.

    On a miss the result is optionally enriched and then stored under the
    spec's cache key. A read that started before a table invalidation does
    not populate the cache.
    """

    def __init__(
        self,
        store: RemoteStore,
        cache: CacheStore,
        enricher: Optional[RecordEnricher] = None,
        default_ttl: float = 300.0,
        timeout_seconds: float = 10.0,
    ):
        self._store = store
        self._cache = cache
        self._enricher = enricher
        self._default_ttl = default_ttl
        self._timeout = timeout_seconds

    async def query(self, spec: QuerySpec, enrich: bool = True) -> List[Record]:
        """Execute a read.

        Args:
            spec: Read description
            enrich: Run the enrichment stage on a cache miss

        Raises:
            QueryFailed: the remote read failed or timed out
        """
        key = CacheKey.for_query(spec) if spec.cached else None
        if key is not None:
            cached = await self._cache.get(key)
            if cached is not None:
                return cached

        generation = await self._cache.generation(spec.table)

        if spec.matches_nothing:
            # Empty membership filter, no round trip needed
            records: List[Record] = []
        else:
            records = await self._read(spec)

        if enrich and self._enricher is not None and records:
            try:
                records = await self._enricher.enrich(records, stage="query")
            except EnrichmentDegraded as e:
                logger.warning(f"{e.message}; returning unenriched records from {spec.table}")

        if key is not None:
            ttl = spec.cache_ttl if spec.cache_ttl is not None else self._default_ttl
            await self._cache.set(key, records, ttl=ttl, generation=generation)

        return records

    async def _read(self, spec: QuerySpec) -> List[Record]:
        try:
            records = await asyncio.wait_for(
                self._store.read(
                    spec.table,
                    select=spec.select,
                    filters=spec.filters,
                    order_by=spec.order_by,
                    limit=spec.limit,
                ),
                timeout=self._timeout,
            )
        except Exception as e:
            logger.error(f"Query on {spec.table} failed: {e!r}")
            raise QueryFailed(spec.table, e) from e
        return list(records or [])
