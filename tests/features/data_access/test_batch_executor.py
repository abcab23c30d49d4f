"""Tests for batch execution."""

import asyncio

import pytest

from fleet_commons.core.exceptions import MutationFailed, UnsupportedOperation
from fleet_commons.features.data_access.entities import MutationSpec, QuerySpec
from fleet_commons.features.data_access.services import BatchExecutor, MutationService, QueryService


@pytest.fixture
def executor(remote_store, cache, equipment_rows):
    remote_store.seed("equipment", equipment_rows)
    queries = QueryService(remote_store, cache)
    mutations = MutationService(remote_store, cache)
    return BatchExecutor(queries, mutations, read_concurrency=2)


class TestBatchExecutor:
    """Ordering and partial-failure semantics."""

    @pytest.mark.asyncio
    async def test_partial_failure_reports_per_item(self, executor, remote_store):
        items = [
            QuerySpec(table="equipment", filters={"yacht_id": "Y1"}),
            MutationSpec(table="equipment", operation="update", data={"status": "a"}, filters={"id": "E1"}),
            QuerySpec(table="equipment", filters={"yacht_id": "Y2"}),
            MutationSpec(table="equipment", operation="update", data={"status": "b"}, filters={"id": "E2"}),
            QuerySpec(table="crew"),
        ]
        remote_store.write_errors = [RuntimeError("deadlock detected"), None]

        results = await executor.execute(items)

        assert len(results) == 5
        assert [r.index for r in results] == [0, 1, 2, 3, 4]
        assert [r.failed for r in results] == [False, True, False, False, False]
        assert isinstance(results[1].error, MutationFailed)
        assert results[3].data[0]["status"] == "b"
        assert len(results[0].data) == 2

    @pytest.mark.asyncio
    async def test_reads_run_before_mutations(self, executor, remote_store):
        items = [
            MutationSpec(table="equipment", operation="delete", filters={"id": "E1"}),
            QuerySpec(table="equipment", filters={"id": "E1"}),
        ]

        results = await executor.execute(items)

        assert results[1].data[0]["id"] == "E1"
        assert results[0].data[0]["id"] == "E1"

    @pytest.mark.asyncio
    async def test_mutations_run_in_input_order(self, executor, remote_store):
        items = [
            MutationSpec(table="equipment", operation="update", data={"status": "first"}, filters={"id": "E1"}),
            MutationSpec(table="equipment", operation="update", data={"status": "second"}, filters={"id": "E1"}),
        ]

        await executor.execute(items)

        assert [w["data"]["status"] for w in remote_store.writes] == ["first", "second"]
        assert remote_store.tables["equipment"][0]["status"] == "second"

    @pytest.mark.asyncio
    async def test_read_concurrency_is_bounded(self, executor, remote_store):
        in_flight = 0
        peak = 0
        original_read = remote_store.read

        async def tracking_read(*args, **kwargs):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return await original_read(*args, **kwargs)

        remote_store.read = tracking_read
        items = [QuerySpec(table="equipment", limit=n) for n in range(1, 6)]

        results = await executor.execute(items)

        assert all(r.ok for r in results)
        assert peak == 2

    @pytest.mark.asyncio
    async def test_unknown_item_is_reported(self, executor):
        results = await executor.execute(["not a spec"])

        assert isinstance(results[0].error, UnsupportedOperation)

    @pytest.mark.asyncio
    async def test_empty_batch(self, executor):
        assert await executor.execute([]) == []
