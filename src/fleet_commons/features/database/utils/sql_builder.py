"""Parameterized SQL construction for the PostgreSQL remote store.

Identifiers are validated against a strict pattern and double-quoted;
values are always bound as ``$n`` parameters.
"""

import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ...data_access.entities import Filter, FilterOperator, OrderBy

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_COMPARISON_SQL = {
    FilterOperator.EQ: "=",
    FilterOperator.NEQ: "<>",
    FilterOperator.LT: "<",
    FilterOperator.LTE: "<=",
    FilterOperator.GT: ">",
    FilterOperator.GTE: ">=",
    FilterOperator.LIKE: "LIKE",
    FilterOperator.ILIKE: "ILIKE",
}

Statement = Tuple[str, List[Any]]


def validate_identifier(name: str) -> str:
    if not isinstance(name, str) or not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return name


def quote_identifier(name: str) -> str:
    """Quote a possibly schema-qualified identifier (``schema.table``)."""
    if not isinstance(name, str):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return ".".join(f'"{validate_identifier(part)}"' for part in name.split("."))


def column_list(select: str) -> str:
    """Render a select/returning list: ``*`` or comma-separated columns."""
    select = (select or "*").strip()
    if select == "*":
        return "*"
    return ", ".join(quote_identifier(column.strip()) for column in select.split(","))


class _Params:
    def __init__(self):
        self.values: List[Any] = []

    def add(self, value: Any) -> str:
        self.values.append(value)
        return f"${len(self.values)}"


def _predicate(f: Filter, params: _Params) -> str:
    column = quote_identifier(f.column)
    op = f.operator

    if op is FilterOperator.IN:
        if not f.value:
            return "FALSE"
        return f"{column} = ANY({params.add(list(f.value))})"
    if f.value is None:
        if op is FilterOperator.EQ:
            return f"{column} IS NULL"
        if op is FilterOperator.NEQ:
            return f"{column} IS NOT NULL"
        return "FALSE"
    return f"{column} {_COMPARISON_SQL[op]} {params.add(f.value)}"


def _where(filters: Sequence[Filter], any_of: Sequence[Filter], params: _Params) -> str:
    clauses = [_predicate(f, params) for f in filters]
    if any_of:
        clauses.append("(" + " OR ".join(_predicate(f, params) for f in any_of) + ")")
    return f" WHERE {' AND '.join(clauses)}" if clauses else ""


def _returning(returning: str) -> str:
    return f" RETURNING {column_list(returning)}" if returning else ""


def build_select(
    table: str,
    select: str = "*",
    filters: Sequence[Filter] = (),
    order_by: Sequence[OrderBy] = (),
    limit: Optional[int] = None,
    any_of: Sequence[Filter] = (),
) -> Statement:
    params = _Params()
    sql = f"SELECT {column_list(select)} FROM {quote_identifier(table)}"
    sql += _where(filters, any_of, params)
    if order_by:
        sql += " ORDER BY " + ", ".join(
            f"{quote_identifier(o.column)} {'ASC' if o.ascending else 'DESC'}" for o in order_by
        )
    if limit is not None:
        sql += f" LIMIT {params.add(int(limit))}"
    return sql, params.values


def _values(rows: Sequence[Dict[str, Any]], params: _Params) -> Tuple[List[str], str]:
    columns: List[str] = []
    for row in rows:
        for column in row:
            if column not in columns:
                columns.append(validate_identifier(column))
    if not columns:
        raise ValueError("insert requires at least one column")

    tuples = []
    for row in rows:
        cells = [params.add(row[c]) if c in row else "DEFAULT" for c in columns]
        tuples.append("(" + ", ".join(cells) + ")")
    return columns, ", ".join(tuples)


def build_insert(table: str, rows: Sequence[Dict[str, Any]], returning: str = "*") -> Statement:
    params = _Params()
    columns, values = _values(rows, params)
    sql = (
        f"INSERT INTO {quote_identifier(table)} "
        f"({', '.join(quote_identifier(c) for c in columns)}) VALUES {values}"
    )
    return sql + _returning(returning), params.values


def build_upsert(
    table: str,
    rows: Sequence[Dict[str, Any]],
    on_conflict: Sequence[str] = ("id",),
    returning: str = "*",
) -> Statement:
    params = _Params()
    columns, values = _values(rows, params)
    conflict = [validate_identifier(c) for c in on_conflict]
    updates = [c for c in columns if c not in conflict]

    sql = (
        f"INSERT INTO {quote_identifier(table)} "
        f"({', '.join(quote_identifier(c) for c in columns)}) VALUES {values} "
        f"ON CONFLICT ({', '.join(quote_identifier(c) for c in conflict)}) "
    )
    if updates:
        sql += "DO UPDATE SET " + ", ".join(
            f"{quote_identifier(c)} = EXCLUDED.{quote_identifier(c)}" for c in updates
        )
    else:
        sql += "DO NOTHING"
    return sql + _returning(returning), params.values


def build_update(
    table: str,
    data: Dict[str, Any],
    filters: Sequence[Filter],
    returning: str = "*",
) -> Statement:
    if not data:
        raise ValueError("update requires at least one column")
    if not filters:
        raise ValueError("update requires filters")
    params = _Params()
    assignments = ", ".join(
        f"{quote_identifier(column)} = {params.add(value)}" for column, value in data.items()
    )
    sql = f"UPDATE {quote_identifier(table)} SET {assignments}"
    sql += _where(filters, (), params)
    return sql + _returning(returning), params.values


def build_delete(table: str, filters: Sequence[Filter], returning: str = "*") -> Statement:
    if not filters:
        raise ValueError("delete requires filters")
    params = _Params()
    sql = f"DELETE FROM {quote_identifier(table)}"
    sql += _where(filters, (), params)
    return sql + _returning(returning), params.values
