"""Mutation execution: validate, write, invalidate, audit."""

import asyncio
import logging
from typing import List, Optional

from ....core.exceptions import MutationFailed, ValidationFailed
from ...cache.entities import CacheStore
from ...text_analysis.entities import TextAnalysisGateway
from ...text_analysis.services import contains_text_data, serialize_payload
from ..entities import AuditEvent, AuditSink, MutationSpec, Record, RemoteStore

logger = logging.getLogger(__name__)


class MutationService:
    """Executes writes against the remote store.

    Cache invalidation for the mutated table happens after the remote write
    succeeds and before ``mutate`` returns. Audit failures are logged and
    never fail the mutation.
    """

    VALIDATION_CONTEXT = "database_mutation"

    def __init__(
        self,
        store: RemoteStore,
        cache: CacheStore,
        gateway: Optional[TextAnalysisGateway] = None,
        audit_sink: Optional[AuditSink] = None,
        min_length: int = 10,
        timeout_seconds: float = 10.0,
        validation_timeout: float = 15.0,
        audit_module: str = "unified_data_service",
    ):
        self._store = store
        self._cache = cache
        self._gateway = gateway
        self._audit_sink = audit_sink
        self._min_length = min_length
        self._timeout = timeout_seconds
        self._validation_timeout = validation_timeout
        self._audit_module = audit_module

    async def mutate(self, spec: MutationSpec) -> List[Record]:
        """Execute a write and return the affected records.

        Raises:
            ValidationFailed: content validation rejected the payload
            MutationFailed: the remote write failed or timed out
        """
        await self._validate(spec)

        operation = spec.operation.value
        try:
            records = await asyncio.wait_for(
                self._store.write(
                    spec.table,
                    spec.operation,
                    data=spec.data,
                    filters=spec.filters,
                    returning=spec.returning,
                    on_conflict=spec.on_conflict,
                ),
                timeout=self._timeout,
            )
        except Exception as e:
            logger.error(f"{operation} on {spec.table} failed: {e!r}")
            raise MutationFailed(spec.table, operation, e) from e

        records = list(records or [])
        await self._cache.invalidate_table(spec.table)
        await self._audit(spec, len(records))

        logger.debug(f"{operation} on {spec.table} affected {len(records)} records")
        return records

    async def _validate(self, spec: MutationSpec) -> None:
        if self._gateway is None or not contains_text_data(spec.data, self._min_length):
            return

        try:
            result = await asyncio.wait_for(
                self._gateway.validate(serialize_payload(spec.data), self.VALIDATION_CONTEXT),
                timeout=self._validation_timeout,
            )
        except Exception as e:
            logger.warning(f"Content validation unavailable for {spec.table}, skipping: {e!r}")
            return

        if not result.success:
            logger.info(f"Content validation rejected {spec.operation.value} on {spec.table}: {result.error}")
            raise ValidationFailed(spec.table, result.error)

    async def _audit(self, spec: MutationSpec, record_count: int) -> None:
        if self._audit_sink is None:
            return

        event = AuditEvent.for_mutation(
            spec.table, spec.operation.value, record_count, self._audit_module
        )
        try:
            await asyncio.wait_for(self._audit_sink.append(event), timeout=self._timeout)
        except Exception as e:
            logger.warning(f"Audit log append failed for {event.type} on {spec.table}: {e!r}")
