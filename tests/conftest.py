"""Pytest configuration and fixtures for fleet-commons tests."""

import copy
import itertools
from typing import Any, Dict, List, Optional, Sequence
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from fleet_commons.config import DataAccessSettings
from fleet_commons.features.cache import MemoryCacheStore
from fleet_commons.features.data_access import UnifiedDataService
from fleet_commons.features.data_access.entities import (
    ChangeEvent,
    Filter,
    MutationOperation,
)
from fleet_commons.features.text_analysis import AnalysisResult


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeChannel:
    def __init__(self, table: str, filters: Sequence[Filter], handler):
        self.table_name = table
        self.filters = tuple(filters)
        self.handler = handler
        self.open = True

    @property
    def table(self) -> str:
        return self.table_name

    @property
    def is_open(self) -> bool:
        return self.open


class FakeRemoteStore:
    """In-memory remote store evaluating filters with ``Filter.matches``."""

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.reads: List[Dict[str, Any]] = []
        self.writes: List[Dict[str, Any]] = []
        self.channels: List[FakeChannel] = []
        self.closed_channels: List[FakeChannel] = []
        self.read_error: Optional[Exception] = None
        self.write_errors: List[Optional[Exception]] = []
        self.open_error: Optional[Exception] = None
        self._ids = itertools.count(1000)

    def seed(self, table: str, rows: List[Dict[str, Any]]) -> None:
        self.tables[table] = [dict(r) for r in rows]

    @property
    def read_count(self) -> int:
        return len(self.reads)

    async def read(self, table, select="*", filters=(), order_by=(), limit=None, any_of=()):
        self.reads.append({
            "table": table, "select": select, "filters": tuple(filters),
            "order_by": tuple(order_by), "limit": limit, "any_of": tuple(any_of),
        })
        if self.read_error is not None:
            raise self.read_error

        rows = [
            r for r in self.tables.get(table, [])
            if all(f.matches(r) for f in filters)
            and (not any_of or any(f.matches(r) for f in any_of))
        ]
        for order in reversed(tuple(order_by)):
            rows.sort(key=lambda r: r.get(order.column), reverse=not order.ascending)
        if limit is not None:
            rows = rows[:limit]
        return copy.deepcopy(rows)

    async def write(self, table, operation, data=None, filters=(), returning="*", on_conflict=("id",)):
        self.writes.append({
            "table": table, "operation": MutationOperation.parse(operation),
            "data": copy.deepcopy(data), "filters": tuple(filters),
        })
        if self.write_errors:
            error = self.write_errors.pop(0)
            if error is not None:
                raise error

        operation = MutationOperation.parse(operation)
        rows = self.tables.setdefault(table, [])

        if operation is MutationOperation.INSERT:
            new_rows = [dict(d) for d in ([data] if isinstance(data, dict) else data)]
            for row in new_rows:
                row.setdefault("id", next(self._ids))
            rows.extend(new_rows)
            return copy.deepcopy(new_rows)

        if operation is MutationOperation.UPSERT:
            affected = []
            for item in ([data] if isinstance(data, dict) else data):
                existing = next(
                    (r for r in rows if all(r.get(c) == item.get(c) for c in on_conflict)), None
                )
                if existing is None:
                    existing = dict(item)
                    rows.append(existing)
                else:
                    existing.update(item)
                affected.append(existing)
            return copy.deepcopy(affected)

        matched = [r for r in rows if all(f.matches(r) for f in filters)]
        if operation is MutationOperation.UPDATE:
            for row in matched:
                row.update(data)
            return copy.deepcopy(matched)

        self.tables[table] = [r for r in rows if r not in matched]
        return copy.deepcopy(matched)

    async def open_change_channel(self, table, filters, handler):
        if self.open_error is not None:
            raise self.open_error
        channel = FakeChannel(table, filters, handler)
        self.channels.append(channel)
        return channel

    async def close_channel(self, channel):
        if channel.open:
            channel.open = False
            self.closed_channels.append(channel)

    @property
    def open_channels(self) -> List[FakeChannel]:
        return [c for c in self.channels if c.open]

    async def emit(self, event: ChangeEvent) -> None:
        """Deliver an event to every open channel on its table."""
        for channel in list(self.open_channels):
            if channel.table == event.table:
                await channel.handler(event)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def remote_store():
    return FakeRemoteStore()


@pytest.fixture
def cache(clock):
    return MemoryCacheStore(default_ttl=300.0, sweep_interval=600.0, clock=clock)


@pytest.fixture
def settings():
    return DataAccessSettings(
        _env_file=None,
        remote_timeout_seconds=1.0,
        text_analysis_timeout=1.0,
        batch_read_concurrency=2,
    )


@pytest.fixture
def mock_gateway():
    """Text analysis gateway that accepts everything."""
    gateway = MagicMock()
    gateway.validate = AsyncMock(
        side_effect=lambda text, context: AnalysisResult(
            success=True, result=text.strip(), confidence=0.95, language="en"
        )
    )
    gateway.analyze = AsyncMock(
        return_value=AnalysisResult(success=True, result={"keywords": []}, confidence=0.5)
    )
    return gateway


@pytest.fixture
def audit_sink():
    sink = MagicMock()
    sink.append = AsyncMock(return_value=None)
    return sink


@pytest.fixture
def equipment_rows():
    return [
        {"id": "E1", "yacht_id": "Y1", "name": "Anchor winch", "status": "broken"},
        {"id": "E2", "yacht_id": "Y1", "name": "Bilge pump", "status": "ok"},
        {"id": "E3", "yacht_id": "Y2", "name": "Radar", "status": "ok"},
    ]


@pytest_asyncio.fixture
async def service(remote_store, cache, audit_sink, settings, equipment_rows):
    remote_store.seed("equipment", equipment_rows)
    data_service = UnifiedDataService(
        remote_store, cache=cache, audit_sink=audit_sink, settings=settings
    )
    yield data_service
    await data_service.shutdown()


