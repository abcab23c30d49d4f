"""Audit sink that appends events to a table of the remote store."""

import logging

from ...data_access.entities import AuditEvent, AuditSink, MutationOperation, RemoteStore

logger = logging.getLogger(__name__)


class StoreAuditSink(AuditSink):
    """Writes audit events straight to the store.

    Goes around the mutation path so audit rows never trigger validation,
    cache invalidation or further audit events.
    """

    def __init__(self, store: RemoteStore, table: str = "analytics_events"):
        self._store = store
        self._table = table

    async def append(self, event: AuditEvent) -> None:
        await self._store.write(self._table, MutationOperation.INSERT, data=event.to_row())
        logger.debug(f"Audit event {event.type} appended to {self._table}")
