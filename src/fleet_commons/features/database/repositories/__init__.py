"""Database repositories."""

from .audit_sink import StoreAuditSink
from .postgres_store import PostgresChangeChannel, PostgresRemoteStore

__all__ = ["StoreAuditSink", "PostgresChangeChannel", "PostgresRemoteStore"]
