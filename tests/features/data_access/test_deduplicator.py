"""Tests for record deduplication."""

import pytest

from fleet_commons.features.data_access.services import Deduplicator, MutationService, QueryService


@pytest.fixture
def deduplicator(remote_store, cache, audit_sink):
    queries = QueryService(remote_store, cache)
    mutations = MutationService(remote_store, cache, audit_sink=audit_sink)
    return Deduplicator(queries, mutations)


@pytest.fixture
def skus(remote_store):
    remote_store.seed("inventory", [
        {"id": 2, "sku": "A", "created_at": 2},
        {"id": 1, "sku": "A", "created_at": 1},
        {"id": 3, "sku": "B", "created_at": 3},
    ])
    return remote_store


class TestDeduplicator:
    """Grouping, keeper selection and failure reporting."""

    @pytest.mark.asyncio
    async def test_keeps_oldest_record(self, deduplicator, skus):
        report = await deduplicator.deduplicate("inventory", ["sku"])

        assert report.found == 1
        assert report.removed == 1
        assert report.errors == []
        assert sorted(r["id"] for r in skus.tables["inventory"]) == [1, 3]

    @pytest.mark.asyncio
    async def test_second_run_is_a_no_op(self, deduplicator, skus):
        await deduplicator.deduplicate("inventory", ["sku"])
        report = await deduplicator.deduplicate("inventory", ["sku"])

        assert (report.found, report.removed) == (0, 0)

    @pytest.mark.asyncio
    async def test_scan_is_ordered_by_creation_and_uncached(self, deduplicator, skus, cache):
        await deduplicator.deduplicate("inventory", ["sku"])

        read = skus.reads[0]
        assert read["order_by"][0].column == "created_at"
        assert read["order_by"][0].ascending is True
        assert (await cache.stats()).hits == 0

    @pytest.mark.asyncio
    async def test_composite_keys(self, deduplicator, remote_store):
        remote_store.seed("crew_certs", [
            {"id": 1, "crew_id": "C1", "cert": "STCW", "created_at": 1},
            {"id": 2, "crew_id": "C1", "cert": "ENG1", "created_at": 2},
            {"id": 3, "crew_id": "C1", "cert": "STCW", "created_at": 3},
            {"id": 4, "crew_id": "C2", "cert": "STCW", "created_at": 4},
        ])

        report = await deduplicator.deduplicate("crew_certs", ["crew_id", "cert"])

        assert (report.found, report.removed) == (1, 1)
        assert sorted(r["id"] for r in remote_store.tables["crew_certs"]) == [1, 2, 4]

    @pytest.mark.asyncio
    async def test_missing_key_values_are_not_grouped(self, deduplicator, remote_store):
        remote_store.seed("inventory", [
            {"id": 1, "sku": None, "created_at": 1},
            {"id": 2, "sku": None, "created_at": 2},
        ])

        report = await deduplicator.deduplicate("inventory", ["sku"])

        assert report.found == 0
        assert len(remote_store.tables["inventory"]) == 2

    @pytest.mark.asyncio
    async def test_delete_failures_are_collected(self, deduplicator, remote_store):
        remote_store.seed("inventory", [
            {"id": 1, "sku": "A", "created_at": 1},
            {"id": 2, "sku": "A", "created_at": 2},
            {"id": 3, "sku": "A", "created_at": 3},
        ])
        remote_store.write_errors = [RuntimeError("foreign key violation"), None]

        report = await deduplicator.deduplicate("inventory", ["sku"])

        assert report.found == 1
        assert report.removed == 1
        assert len(report.errors) == 1
        assert report.errors[0].record_id == 2
        assert report.errors[0].error_code == "MutationFailed"
        assert report.to_dict()["errors"][0]["record"] == 2

    @pytest.mark.asyncio
    async def test_deletions_are_audited(self, deduplicator, skus, audit_sink):
        await deduplicator.deduplicate("inventory", ["sku"])

        assert audit_sink.append.await_args.args[0].type == "data_delete"

    @pytest.mark.asyncio
    async def test_key_fields_required(self, deduplicator):
        with pytest.raises(ValueError):
            await deduplicator.deduplicate("inventory", [])

    def test_group_duplicates(self):
        records = [{"id": 1, "k": "x"}, {"id": 2, "k": "y"}, {"id": 3, "k": "x"}]

        groups = Deduplicator.group_duplicates(records, ["k"])

        assert groups == [[{"id": 1, "k": "x"}, {"id": 3, "k": "x"}]]
