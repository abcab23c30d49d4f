"""Filter value objects for declarative reads and writes.

A raw filter value is one of:
- a scalar, meaning equality
- a list/tuple/set, meaning membership ("IN")
- a mapping ``{"operator": ..., "value": ...}``, meaning comparison

Raw values are normalized into ``Filter`` instances carrying a member of the
closed ``FilterOperator`` enum, so every consumer (SQL builder, in-process
matcher, cache key derivation) matches operators explicitly.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Tuple, Union


class FilterOperator(str, Enum):
    """Supported filter operators."""
    EQ = "eq"
    NEQ = "neq"
    IN = "in"
    LT = "lt"
    LTE = "lte"
    GT = "gt"
    GTE = "gte"
    LIKE = "like"
    ILIKE = "ilike"


_COMPARISONS = {
    FilterOperator.LT: lambda a, b: a < b,
    FilterOperator.LTE: lambda a, b: a <= b,
    FilterOperator.GT: lambda a, b: a > b,
    FilterOperator.GTE: lambda a, b: a >= b,
}


def _sort_key(value: Any) -> Tuple[str, str]:
    return (type(value).__name__, repr(value))


def like_to_regex(pattern: str, case_insensitive: bool = False) -> "re.Pattern[str]":
    """Translate a SQL LIKE pattern (with backslash escapes) to a regex."""
    parts = []
    escaped = False
    for char in pattern:
        if escaped:
            parts.append(re.escape(char))
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == "%":
            parts.append(".*")
        elif char == "_":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    if escaped:
        parts.append(re.escape("\\"))
    flags = re.DOTALL | (re.IGNORECASE if case_insensitive else 0)
    return re.compile("^" + "".join(parts) + "$", flags)


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so a term matches literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass(frozen=True)
class Filter:
    """A single column predicate."""

    column: str
    operator: FilterOperator
    value: Any = None

    def __post_init__(self):
        if not self.column or not isinstance(self.column, str):
            raise ValueError("Filter column must be a non-empty string")
        if not isinstance(self.operator, FilterOperator):
            object.__setattr__(self, "operator", FilterOperator(str(self.operator).lower()))
        if self.operator is FilterOperator.IN:
            if isinstance(self.value, (str, bytes)) or not isinstance(self.value, Iterable):
                raise ValueError(f"'in' filter on '{self.column}' requires a collection")
            values = self.value
            if isinstance(values, (set, frozenset)):
                values = sorted(values, key=_sort_key)
            object.__setattr__(self, "value", tuple(values))

    @classmethod
    def from_value(cls, column: str, value: Any) -> "Filter":
        """Normalize a raw filter value into a Filter."""
        if isinstance(value, Filter):
            return value
        if isinstance(value, Mapping) and "operator" in value:
            return cls(column, FilterOperator(str(value["operator"]).lower()), value.get("value"))
        if isinstance(value, (list, tuple, set, frozenset)):
            return cls(column, FilterOperator.IN, value)
        return cls(column, FilterOperator.EQ, value)

    @property
    def matches_nothing(self) -> bool:
        """An empty membership list never matches."""
        return self.operator is FilterOperator.IN and len(self.value) == 0

    def matches(self, record: Mapping[str, Any]) -> bool:
        """Evaluate the predicate against a record, with SQL NULL semantics."""
        actual = record.get(self.column)
        op = self.operator

        if op is FilterOperator.EQ:
            if self.value is None:
                return actual is None
            return actual is not None and actual == self.value
        if op is FilterOperator.NEQ:
            if self.value is None:
                return actual is not None
            return actual is not None and actual != self.value
        if op is FilterOperator.IN:
            return actual is not None and actual in self.value
        if op in _COMPARISONS:
            if actual is None or self.value is None:
                return False
            try:
                return _COMPARISONS[op](actual, self.value)
            except TypeError:
                return False
        if op in (FilterOperator.LIKE, FilterOperator.ILIKE):
            if not isinstance(actual, str) or not isinstance(self.value, str):
                return False
            regex = like_to_regex(self.value, case_insensitive=op is FilterOperator.ILIKE)
            return regex.match(actual) is not None

        raise ValueError(f"Unhandled filter operator: {op}")

    def canonical(self) -> list:
        """Stable, serializable form used for key derivation."""
        value = list(self.value) if isinstance(self.value, tuple) else self.value
        return [self.column, self.operator.value, value]


RawFilters = Union[Mapping[str, Any], Iterable[Filter], None]


def normalize_filters(filters: RawFilters) -> Tuple[Filter, ...]:
    """Normalize raw filters into a deterministically ordered tuple."""
    if not filters:
        return ()
    if isinstance(filters, Mapping):
        normalized = [Filter.from_value(column, value) for column, value in filters.items()]
    else:
        normalized = []
        for item in filters:
            if not isinstance(item, Filter):
                raise TypeError(f"Expected Filter, got {type(item).__name__}")
            normalized.append(item)
    return tuple(sorted(
        normalized,
        key=lambda f: (f.column, f.operator.value, repr(f.value))
    ))


@dataclass(frozen=True)
class OrderBy:
    """Ordering clause."""

    column: str
    ascending: bool = True

    @classmethod
    def from_value(cls, value: Any) -> "OrderBy":
        if isinstance(value, OrderBy):
            return value
        if isinstance(value, Mapping):
            return cls(value["column"], bool(value.get("ascending", True)))
        if isinstance(value, str):
            return cls(value)
        column, ascending = value
        return cls(column, bool(ascending))


def normalize_order_by(order_by: Optional[Iterable[Any]]) -> Tuple[OrderBy, ...]:
    """Normalize ordering clauses, preserving their significance order."""
    if not order_by:
        return ()
    if isinstance(order_by, (str, Mapping, OrderBy)):
        order_by = [order_by]
    return tuple(OrderBy.from_value(item) for item in order_by)
