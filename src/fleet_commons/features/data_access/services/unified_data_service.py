"""Unified data access facade.

Single entry point for application code: cached queries, audited
mutations, deduplicated change subscriptions, batches, search and record
deduplication. One instance is created at process start, shared by
injection, and torn down with ``shutdown()``.
"""

import asyncio
import logging
from typing import Any, Iterable, List, Optional, Sequence

from ....config.settings import DataAccessSettings
from ...cache.adapters import MemoryCacheStore
from ...cache.entities import CacheStore
from ...subscriptions.entities import SubscriptionHandle
from ...subscriptions.services import SubscriptionCallback, SubscriptionRegistry
from ...text_analysis.entities import TextAnalysisGateway
from ...text_analysis.services import RecordEnricher
from ..entities import (
    AuditSink,
    BatchItemResult,
    DeduplicationReport,
    MutationSpec,
    QuerySpec,
    Record,
    RemoteStore,
    RequestMetrics,
    SearchOptions,
)
from .batch_executor import BatchExecutor, BatchItem
from .deduplicator import Deduplicator
from .mutation_service import MutationService
from .query_service import QueryService
from .search_service import SearchService

logger = logging.getLogger(__name__)


class UnifiedDataService:
    """Facade over the unified data access layer."""

    def __init__(
        self,
        store: RemoteStore,
        cache: Optional[CacheStore] = None,
        gateway: Optional[TextAnalysisGateway] = None,
        audit_sink: Optional[AuditSink] = None,
        settings: Optional[DataAccessSettings] = None,
        resources: Sequence[Any] = (),
    ):
        """Wire the layer's components.

        Args:
            store: Remote relational store
            cache: Query cache, an in-memory store by default
            gateway: Optional text analysis gateway for enrichment,
                validation, keyword expansion and ranking
            audit_sink: Optional audit log for mutations
            settings: Layer settings
            resources: Objects with an async ``close()`` released on shutdown
        """
        self.settings = settings or DataAccessSettings()
        s = self.settings

        self._store = store
        self._cache = cache or MemoryCacheStore(
            default_ttl=s.cache_ttl_default,
            sweep_interval=s.cache_sweep_interval,
        )
        self._gateway = gateway
        self._resources = list(resources)

        enricher = None
        if gateway is not None and s.enrichment_enabled:
            enricher = RecordEnricher(
                gateway,
                min_length=s.text_min_length,
                timeout_seconds=s.text_analysis_timeout,
            )

        self._queries = QueryService(
            store,
            self._cache,
            enricher=enricher,
            default_ttl=s.cache_ttl_default,
            timeout_seconds=s.remote_timeout_seconds,
        )
        self._mutations = MutationService(
            store,
            self._cache,
            gateway=gateway if s.validation_enabled else None,
            audit_sink=audit_sink,
            min_length=s.text_min_length,
            timeout_seconds=s.remote_timeout_seconds,
            validation_timeout=s.text_analysis_timeout,
            audit_module=s.audit_module,
        )
        self._subscriptions = SubscriptionRegistry(
            store,
            self._cache,
            enricher=enricher,
            open_timeout=s.remote_timeout_seconds,
        )
        self._batch = BatchExecutor(
            self._queries,
            self._mutations,
            read_concurrency=s.batch_read_concurrency,
        )
        self._search = SearchService(
            store,
            gateway=gateway,
            default_limit=s.search_default_limit,
            timeout_seconds=s.remote_timeout_seconds,
            analysis_timeout=s.text_analysis_timeout,
        )
        self._deduplicator = Deduplicator(self._queries, self._mutations)

        self._metrics_task: Optional[asyncio.Task] = None
        self._started = False

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.shutdown()

    @property
    def cache(self) -> CacheStore:
        return self._cache

    @property
    def subscriptions(self) -> SubscriptionRegistry:
        return self._subscriptions

    async def start(self) -> None:
        """Start background maintenance: cache sweep and metrics reset."""
        if self._started:
            return
        await self._cache.start()
        self._metrics_task = asyncio.create_task(self._metrics_reset_loop())
        self._started = True
        logger.info("Unified data service started")

    async def shutdown(self) -> None:
        """Close every subscription, drop the cache and release resources."""
        if self._metrics_task is not None:
            self._metrics_task.cancel()
            try:
                await self._metrics_task
            except asyncio.CancelledError:
                pass
            self._metrics_task = None

        await self._subscriptions.close_all()
        await self._cache.stop()

        for resource in self._resources:
            try:
                await resource.close()
            except Exception as e:
                logger.error(f"Error closing {type(resource).__name__}: {e}")

        self._started = False
        logger.info("Unified data service shutdown completed")

    async def query(self, spec: QuerySpec) -> List[Record]:
        return await self._queries.query(spec)

    async def mutate(self, spec: MutationSpec) -> List[Record]:
        return await self._mutations.mutate(spec)

    async def subscribe(self, spec: QuerySpec, callback: SubscriptionCallback) -> SubscriptionHandle:
        return await self._subscriptions.subscribe(spec, callback)

    async def batch(self, items: Iterable[BatchItem]) -> List[BatchItemResult]:
        return await self._batch.execute(items)

    async def search(
        self,
        table: str,
        term: str,
        columns: Sequence[str],
        options: Optional[SearchOptions] = None,
    ) -> List[Record]:
        return await self._search.search(table, term, columns, options)

    async def deduplicate(
        self,
        table: str,
        key_fields: Sequence[str],
        order_by: Optional[str] = None,
        id_field: Optional[str] = None,
    ) -> DeduplicationReport:
        return await self._deduplicator.deduplicate(table, key_fields, order_by, id_field)

    async def stats(self) -> RequestMetrics:
        """Current diagnostic counters.

        Duplicate requests blocked counts cache hits plus subscriptions that
        reused an existing upstream channel, since the last metrics reset.
        """
        cache_stats = await self._cache.stats()
        return RequestMetrics(
            cache_size=cache_stats.size,
            cache_hit_rate=cache_stats.hit_rate,
            active_subscriptions=self._subscriptions.active_subscriptions,
            duplicate_requests_blocked=cache_stats.hits + self._subscriptions.duplicates_blocked,
            cache_hits=cache_stats.hits,
            cache_misses=cache_stats.misses,
        )

    async def reset_metrics(self) -> None:
        await self._cache.reset_stats()
        self._subscriptions.reset_metrics()

    async def _metrics_reset_loop(self) -> None:
        while True:
            try:
                await asyncio.sleep(self.settings.metrics_reset_interval)
                await self.reset_metrics()
                logger.debug("Request metrics reset")
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error resetting request metrics: {e}")
