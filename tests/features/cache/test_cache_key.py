"""Tests for cache key and subscription signature derivation."""

from decimal import Decimal

from fleet_commons.features.cache import CacheKey, derive_signature
from fleet_commons.features.data_access.entities import Filter, FilterOperator, OrderBy, QuerySpec


class TestCacheKey:
    """Determinism and collision behavior."""

    def test_identical_specs_share_a_key(self):
        a = QuerySpec(table="equipment", filters={"yacht_id": "Y1", "status": "ok"}, limit=10)
        b = QuerySpec(table="equipment", filters={"status": "ok", "yacht_id": "Y1"}, limit=10)

        assert CacheKey.for_query(a) == CacheKey.for_query(b)

    def test_key_is_readable_by_table(self):
        key = CacheKey.for_query(QuerySpec(table="equipment"))

        assert key.value.startswith("query:equipment:")
        assert str(key) == key.value

    def test_limit_changes_the_key(self):
        a = QuerySpec(table="equipment", limit=10)
        b = QuerySpec(table="equipment", limit=20)

        assert CacheKey.for_query(a) != CacheKey.for_query(b)

    def test_select_and_ordering_change_the_key(self):
        base = QuerySpec(table="equipment")

        assert CacheKey.for_query(base) != CacheKey.for_query(QuerySpec(table="equipment", select="id"))
        assert CacheKey.for_query(base) != CacheKey.for_query(
            QuerySpec(table="equipment", order_by=(OrderBy("name"),))
        )

    def test_caching_policy_does_not_change_the_key(self):
        a = QuerySpec(table="equipment", cache_ttl=60)
        b = QuerySpec(table="equipment", cache_ttl=120)

        assert CacheKey.for_query(a) == CacheKey.for_query(b)

    def test_value_types_do_not_collide(self):
        as_str = QuerySpec(table="equipment", filters={"id": "1"})
        as_int = QuerySpec(table="equipment", filters={"id": 1})
        as_decimal = QuerySpec(table="equipment", filters={"id": Decimal("1")})

        keys = {CacheKey.for_query(s) for s in (as_str, as_int, as_decimal)}
        assert len(keys) == 3

    def test_scalar_and_membership_filters_differ(self):
        scalar = QuerySpec(table="equipment", filters={"id": "E1"})
        membership = QuerySpec(table="equipment", filters={"id": ["E1"]})

        assert CacheKey.for_query(scalar) != CacheKey.for_query(membership)

    def test_operator_filters_differ_from_equality(self):
        eq = QuerySpec(table="equipment", filters={"hours": 5})
        gt = QuerySpec(table="equipment", filters=[Filter("hours", FilterOperator.GT, 5)])

        assert CacheKey.for_query(eq) != CacheKey.for_query(gt)


class TestSubscriptionSignature:
    def test_signature_ignores_select_order_and_limit(self):
        a = QuerySpec(table="equipment", filters={"yacht_id": "Y1"})
        b = QuerySpec(table="equipment", select="id", filters={"yacht_id": "Y1"}, limit=5)

        assert derive_signature(a) == derive_signature(b)
        assert derive_signature(a).startswith("subscription:equipment:")

    def test_signature_depends_on_filters(self):
        a = QuerySpec(table="equipment", filters={"yacht_id": "Y1"})
        b = QuerySpec(table="equipment", filters={"yacht_id": "Y2"})

        assert derive_signature(a) != derive_signature(b)
