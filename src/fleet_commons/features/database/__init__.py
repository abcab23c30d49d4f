"""Database feature for fleet-commons.

PostgreSQL implementation of the remote relational store:

- repositories/: asyncpg store with LISTEN/NOTIFY change channels, audit sink
- utils/: parameterized SQL builder and SQL constants
"""

from .repositories import PostgresChangeChannel, PostgresRemoteStore, StoreAuditSink

__all__ = ["PostgresChangeChannel", "PostgresRemoteStore", "StoreAuditSink"]
