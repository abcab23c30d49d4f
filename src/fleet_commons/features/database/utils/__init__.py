"""Database utilities."""

from .sql_builder import (
    build_delete,
    build_insert,
    build_select,
    build_update,
    build_upsert,
    column_list,
    quote_identifier,
    validate_identifier,
)

__all__ = [
    "build_delete",
    "build_insert",
    "build_select",
    "build_update",
    "build_upsert",
    "column_list",
    "quote_identifier",
    "validate_identifier",
]
