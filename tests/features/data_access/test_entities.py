"""Tests for data access entities."""

import pytest

from fleet_commons.core.exceptions import UnsupportedOperation
from fleet_commons.features.data_access.entities import (
    AuditEvent,
    ChangeEvent,
    ChangeType,
    Filter,
    FilterOperator,
    MutationOperation,
    MutationSpec,
    QuerySpec,
    RequestMetrics,
    escape_like,
)


class TestFilter:
    """Raw value normalization and in-process matching."""

    def test_scalar_becomes_equality(self):
        f = Filter.from_value("status", "ok")
        assert f.operator is FilterOperator.EQ
        assert f.matches({"status": "ok"})
        assert not f.matches({"status": "broken"})

    def test_list_becomes_membership(self):
        f = Filter.from_value("id", ["E1", "E2"])
        assert f.operator is FilterOperator.IN
        assert f.value == ("E1", "E2")
        assert f.matches({"id": "E2"})
        assert not f.matches({"id": "E3"})

    def test_set_membership_is_ordered(self):
        assert Filter.from_value("id", {"b", "a"}).value == ("a", "b")

    def test_operator_mapping(self):
        f = Filter.from_value("hours", {"operator": "gte", "value": 100})
        assert f.operator is FilterOperator.GTE
        assert f.matches({"hours": 100})
        assert not f.matches({"hours": 99})
        assert not f.matches({"hours": None})

    def test_unknown_operator_is_rejected(self):
        with pytest.raises(ValueError):
            Filter.from_value("hours", {"operator": "between", "value": 1})

    def test_empty_membership_matches_nothing(self):
        f = Filter.from_value("id", [])
        assert f.matches_nothing
        assert not f.matches({"id": "E1"})

    def test_none_equality_is_null_check(self):
        f = Filter.from_value("deleted_at", None)
        assert f.matches({"deleted_at": None})
        assert f.matches({})
        assert not f.matches({"deleted_at": "2024-01-01"})

    def test_like_and_ilike(self):
        like = Filter("name", FilterOperator.LIKE, "%pump%")
        ilike = Filter("name", FilterOperator.ILIKE, "%PUMP%")

        assert like.matches({"name": "Bilge pump"})
        assert not like.matches({"name": "Bilge PUMP"})
        assert ilike.matches({"name": "Bilge pump"})

    def test_escaped_wildcards_match_literally(self):
        f = Filter("code", FilterOperator.LIKE, f"%{escape_like('50%_off')}%")

        assert f.matches({"code": "promo 50%_off now"})
        assert not f.matches({"code": "promo 50 off now"})


class TestQuerySpec:
    def test_filters_are_order_independent(self):
        a = QuerySpec(table="equipment", filters={"a": 1, "b": 2})
        b = QuerySpec(table="equipment", filters={"b": 2, "a": 1})
        assert a == b

    def test_matches_nothing(self):
        assert QuerySpec(table="equipment", filters={"id": []}).matches_nothing
        assert not QuerySpec(table="equipment", filters={"id": ["E1"]}).matches_nothing

    def test_order_by_accepts_strings_and_pairs(self):
        spec = QuerySpec(table="equipment", order_by=["name", ("created_at", False)])
        assert [(o.column, o.ascending) for o in spec.order_by] == [
            ("name", True), ("created_at", False)
        ]

    @pytest.mark.parametrize("kwargs", [
        {"table": ""},
        {"table": "equipment", "limit": -1},
        {"table": "equipment", "cache_ttl": 0},
    ])
    def test_invalid_specs(self, kwargs):
        with pytest.raises(ValueError):
            QuerySpec(**kwargs)


class TestMutationSpec:
    def test_operation_is_parsed(self):
        spec = MutationSpec(table="equipment", operation="INSERT", data={"name": "Radar"})
        assert spec.operation is MutationOperation.INSERT
        assert spec.rows == [{"name": "Radar"}]

    def test_unsupported_operation(self):
        with pytest.raises(UnsupportedOperation) as exc_info:
            MutationSpec(table="equipment", operation="truncate")
        assert exc_info.value.error_code == "UnsupportedOperation"

    def test_update_requires_filters(self):
        with pytest.raises(ValueError):
            MutationSpec(table="equipment", operation="update", data={"status": "ok"})

    def test_delete_requires_filters(self):
        with pytest.raises(ValueError):
            MutationSpec(table="equipment", operation="delete")

    def test_insert_requires_data(self):
        with pytest.raises(ValueError):
            MutationSpec(table="equipment", operation="insert")

    def test_upsert_defaults_to_id_conflict(self):
        spec = MutationSpec(table="equipment", operation="upsert", data=[{"id": "E1"}])
        assert spec.on_conflict == ("id",)


class TestEvents:
    def test_audit_event_for_mutation(self):
        event = AuditEvent.for_mutation("equipment", "update", 2, "unified_data_service")
        row = event.to_row()

        assert row["event_type"] == "data_update"
        assert row["severity"] == "info"
        assert row["module"] == "unified_data_service"
        assert row["metadata"]["table"] == "equipment"
        assert row["metadata"]["record_count"] == 2
        assert "timestamp" in row["metadata"]

    def test_change_event_from_payload(self):
        event = ChangeEvent.from_payload(
            {"table": "equipment", "type": "delete", "old": {"id": "E1"}}
        )
        assert event.event_type is ChangeType.DELETE
        assert event.record == {"id": "E1"}
        assert event.with_record({"id": "E9"}).old == {"id": "E9"}
        assert not event.partial

    def test_partial_change_event_from_payload(self):
        deleted = ChangeEvent.from_payload(
            {"table": "documents", "type": "DELETE", "id": "D1", "partial": True}
        )
        inserted = ChangeEvent.from_payload(
            {"table": "documents", "type": "INSERT", "id": "D2", "partial": True}
        )

        assert deleted.partial and inserted.partial
        assert deleted.new is None and deleted.old == {"id": "D1"}
        assert inserted.new == {"id": "D2"} and inserted.old is None
        assert deleted.with_record({"id": "D1", "title": "Survey"}).partial

    def test_request_metrics_dict(self):
        metrics = RequestMetrics(
            cache_size=3, cache_hit_rate=0.5, active_subscriptions=1, duplicate_requests_blocked=4
        )
        assert metrics.to_dict()["duplicateRequestsBlocked"] == 4
        assert metrics.to_dict()["cacheSize"] == 3
