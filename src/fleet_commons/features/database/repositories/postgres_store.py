"""PostgreSQL implementation of the remote relational store.

Reads and writes go through an asyncpg pool. Change channels share a single
LISTEN connection; rows are published by the ``fleet_notify_change``
trigger (see ``install_change_trigger``) and filtered client-side.
"""

import asyncio
import json
import logging
import uuid
from datetime import date, datetime, time
from typing import Any, Callable, Dict, List, Optional, Sequence, Set

import asyncpg

from ...data_access.entities import (
    ChangeChannel,
    ChangeEvent,
    ChangeHandler,
    Filter,
    MutationOperation,
    OrderBy,
    Record,
    RemoteStore,
)
from ..utils.queries import CREATE_CHANGE_TRIGGER, DROP_CHANGE_TRIGGER, HEALTH_CHECK, NOTIFY_CHANGE_FUNCTION
from ..utils.sql_builder import (
    build_delete,
    build_insert,
    build_select,
    build_update,
    build_upsert,
    quote_identifier,
    validate_identifier,
)

logger = logging.getLogger(__name__)


def _dumps(value: Any) -> str:
    return json.dumps(value, default=str)


async def _init_connection(connection: asyncpg.Connection) -> None:
    for type_name in ("json", "jsonb"):
        await connection.set_type_codec(
            type_name, encoder=_dumps, decoder=json.loads, schema="pg_catalog"
        )


# row_to_json renders these as strings; datetime must precede its base class date
_JSON_TEXT_DECODERS = (
    (uuid.UUID, uuid.UUID),
    (datetime, datetime.fromisoformat),
    (date, date.fromisoformat),
    (time, time.fromisoformat),
)


def _text_decoder_for(value: Any) -> Optional[Callable[[str], Any]]:
    """Decoder turning a JSON string back into the type of a filter value."""
    sample = value[0] if isinstance(value, tuple) and value else value
    for kind, decode in _JSON_TEXT_DECODERS:
        if isinstance(sample, kind):
            return decode
    return None


class PostgresChangeChannel(ChangeChannel):
    """One change subscription fed from the shared LISTEN connection.

    Events are queued and handed to the handler one at a time, in
    notification order. Notification rows arrive as JSON, so filtered
    columns holding UUIDs or temporal values are decoded back to the filter
    value's type before matching.
    """

    def __init__(self, table: str, filters: Sequence[Filter], handler: ChangeHandler):
        self._table = table
        self._bare_table = table.split(".")[-1]
        self._filters = tuple(filters)
        self._decoders: Dict[str, Callable[[str], Any]] = {}
        for f in self._filters:
            decoder = _text_decoder_for(f.value)
            if decoder is not None:
                self._decoders[f.column] = decoder
        self._handler = handler
        self._queue: "asyncio.Queue[ChangeEvent]" = asyncio.Queue()
        self._open = True
        self._task = asyncio.create_task(self._consume())

    @property
    def table(self) -> str:
        return self._table

    @property
    def is_open(self) -> bool:
        return self._open

    def accepts(self, event: ChangeEvent) -> bool:
        """Whether the event's table and old or new row match this channel.

        Partial events (rows too wide for a notification) cannot be filtered
        and are accepted by every channel on the table.
        """
        if event.table != self._bare_table:
            return False
        if event.partial:
            return True
        rows = [self._decode(row) for row in (event.new, event.old) if row is not None]
        if not rows:
            return not self._filters
        return any(all(f.matches(row) for f in self._filters) for row in rows)

    def _decode(self, row: Record) -> Record:
        if not self._decoders:
            return row
        decoded = dict(row)
        for column, decode in self._decoders.items():
            value = decoded.get(column)
            if not isinstance(value, str):
                continue
            try:
                decoded[column] = decode(value)
            except ValueError:
                logger.debug(f"Could not decode {column}={value!r} on {self._table}")
        return decoded

    def deliver(self, event: ChangeEvent) -> None:
        if self._open:
            self._queue.put_nowait(event)

    async def close(self) -> None:
        if not self._open:
            return
        self._open = False
        if self._task is asyncio.current_task():
            # Closed from inside the handler; the consumer stops after this event
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass

    async def _consume(self) -> None:
        while self._open:
            event = await self._queue.get()
            if not self._open:
                break
            try:
                await self._handler(event)
            except Exception as e:
                logger.error(f"Change handler failed for {self._table}: {e}")


class PostgresRemoteStore(RemoteStore):
    """asyncpg-backed remote store."""

    def __init__(
        self,
        dsn: Optional[str] = None,
        pool: Optional[asyncpg.Pool] = None,
        min_size: int = 1,
        max_size: int = 10,
        command_timeout: float = 30.0,
        change_channel: str = "fleet_changes",
    ):
        if dsn is None and pool is None:
            raise ValueError("PostgresRemoteStore requires a dsn or a pool")

        self._dsn = dsn
        self._pool = pool
        self._owns_pool = pool is None
        self._min_size = min_size
        self._max_size = max_size
        self._command_timeout = command_timeout
        self.change_channel = validate_identifier(change_channel)

        self._pool_lock = asyncio.Lock()
        self._listen_lock = asyncio.Lock()
        self._listener: Optional[asyncpg.Connection] = None
        self._channels: Set[PostgresChangeChannel] = set()

    @classmethod
    def from_settings(cls, settings) -> "PostgresRemoteStore":
        if not settings.database_url:
            raise ValueError("FLEET_DATABASE_URL is not configured")
        return cls(
            dsn=settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
            command_timeout=settings.db_command_timeout,
            change_channel=settings.change_channel,
        )

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def connect(self) -> asyncpg.Pool:
        """Create the pool if needed."""
        if self._pool is None:
            async with self._pool_lock:
                if self._pool is None:
                    self._pool = await asyncpg.create_pool(
                        dsn=self._dsn,
                        min_size=self._min_size,
                        max_size=self._max_size,
                        command_timeout=self._command_timeout,
                        init=_init_connection,
                    )
                    logger.info(
                        f"Created remote store pool: min={self._min_size}, max={self._max_size}"
                    )
        return self._pool

    async def close(self) -> None:
        """Close all change channels, the listener connection and an owned pool."""
        for channel in list(self._channels):
            await self.close_channel(channel)

        async with self._pool_lock:
            if self._pool is not None and self._owns_pool:
                await self._pool.close()
                self._pool = None
                logger.info("Closed remote store pool")

    async def health_check(self) -> bool:
        try:
            pool = await self.connect()
            async with pool.acquire() as connection:
                await connection.fetchval(HEALTH_CHECK)
            return True
        except Exception as e:
            logger.warning(f"Remote store health check failed: {e}")
            return False

    async def read(
        self,
        table: str,
        select: str = "*",
        filters: Sequence[Filter] = (),
        order_by: Sequence[OrderBy] = (),
        limit: Optional[int] = None,
        any_of: Sequence[Filter] = (),
    ) -> List[Record]:
        sql, params = build_select(table, select, filters, order_by, limit, any_of)
        return await self._fetch(sql, params)

    async def write(
        self,
        table: str,
        operation: MutationOperation,
        data: Any = None,
        filters: Sequence[Filter] = (),
        returning: str = "*",
        on_conflict: Sequence[str] = ("id",),
    ) -> List[Record]:
        operation = MutationOperation.parse(operation)
        rows = [data] if isinstance(data, dict) else list(data or [])

        if operation is MutationOperation.INSERT:
            sql, params = build_insert(table, rows, returning)
        elif operation is MutationOperation.UPSERT:
            sql, params = build_upsert(table, rows, on_conflict, returning)
        elif operation is MutationOperation.UPDATE:
            sql, params = build_update(table, data, filters, returning)
        else:
            sql, params = build_delete(table, filters, returning)

        return await self._fetch(sql, params)

    async def open_change_channel(
        self,
        table: str,
        filters: Sequence[Filter],
        handler: ChangeHandler,
    ) -> ChangeChannel:
        quote_identifier(table)
        channel = PostgresChangeChannel(table, filters, handler)
        async with self._listen_lock:
            try:
                await self._ensure_listener()
            except Exception:
                await channel.close()
                raise
            self._channels.add(channel)
        logger.debug(f"Opened change channel on {table}")
        return channel

    async def close_channel(self, channel: ChangeChannel) -> None:
        if isinstance(channel, PostgresChangeChannel):
            await channel.close()
        async with self._listen_lock:
            self._channels.discard(channel)
            if not self._channels:
                await self._release_listener()

    async def install_change_trigger(self, table: str) -> None:
        """Install the change notification trigger on ``table``."""
        quoted = quote_identifier(table)
        pool = await self.connect()
        async with pool.acquire() as connection:
            async with connection.transaction():
                await connection.execute(NOTIFY_CHANGE_FUNCTION)
                await connection.execute(DROP_CHANGE_TRIGGER.format(table=quoted))
                await connection.execute(
                    CREATE_CHANGE_TRIGGER.format(table=quoted, channel=self.change_channel)
                )
        logger.info(f"Installed change trigger on {table} (channel {self.change_channel})")

    async def _fetch(self, sql: str, params: List[Any]) -> List[Record]:
        pool = await self.connect()
        async with pool.acquire() as connection:
            rows = await connection.fetch(sql, *params)
        return [dict(row) for row in rows]

    async def _ensure_listener(self) -> None:
        if self._listener is not None and not self._listener.is_closed():
            return
        pool = await self.connect()
        if self._listener is not None:
            stale, self._listener = self._listener, None
            logger.warning(f"Listener connection for {self.change_channel} dropped; reconnecting")
            try:
                await pool.release(stale)
            except Exception as e:
                logger.error(f"Error releasing dropped listener connection: {e}")
        connection = await pool.acquire()
        try:
            await connection.add_listener(self.change_channel, self._on_notification)
        except Exception:
            await pool.release(connection)
            raise
        self._listener = connection
        logger.info(f"Listening for changes on {self.change_channel}")

    async def _release_listener(self) -> None:
        connection, self._listener = self._listener, None
        if connection is None:
            return
        try:
            if not connection.is_closed():
                await connection.remove_listener(self.change_channel, self._on_notification)
        finally:
            await self._pool.release(connection)
        logger.info(f"Stopped listening on {self.change_channel}")

    def _on_notification(self, connection, pid, channel, payload) -> None:
        try:
            event = ChangeEvent.from_payload(json.loads(payload))
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring malformed change notification on {channel}: {e}")
            return
        for subscription in list(self._channels):
            if subscription.accepts(event):
                subscription.deliver(event)
