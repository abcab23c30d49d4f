"""Production wiring for the unified data access layer."""

import logging
from typing import Optional

from .config.settings import DataAccessSettings, get_settings
from .features.cache import MemoryCacheStore
from .features.data_access import UnifiedDataService
from .features.database import PostgresRemoteStore, StoreAuditSink
from .features.text_analysis import HttpTextAnalysisGateway

logger = logging.getLogger(__name__)


def create_unified_data_service(settings: Optional[DataAccessSettings] = None) -> UnifiedDataService:
    """Create a UnifiedDataService backed by PostgreSQL.

    The text analysis gateway is wired only when ``text_analysis_url`` is
    configured. Call ``start()`` (or use ``async with``) before use; the
    pool is created lazily on the first remote call.
    """
    settings = settings or get_settings()

    store = PostgresRemoteStore.from_settings(settings)
    resources = [store]

    gateway = None
    if settings.text_analysis_configured:
        api_key = settings.text_analysis_api_key
        gateway = HttpTextAnalysisGateway(
            base_url=settings.text_analysis_url,
            function_name=settings.text_analysis_function,
            api_key=api_key.get_secret_value() if api_key else None,
            timeout_seconds=settings.text_analysis_timeout,
        )
        resources.insert(0, gateway)
    else:
        logger.info("Text analysis not configured; enrichment, validation and ranking disabled")

    return UnifiedDataService(
        store,
        cache=MemoryCacheStore(
            default_ttl=settings.cache_ttl_default,
            sweep_interval=settings.cache_sweep_interval,
        ),
        gateway=gateway,
        audit_sink=StoreAuditSink(store, table=settings.audit_table),
        settings=settings,
        resources=resources,
    )
