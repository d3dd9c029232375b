"""
Infrastructure package for the record store.

Centralizes database connectivity concerns (connection sources, pooling,
named-source lookup, scoped transactions). Keep this layer focused on I/O and
resource management, decoupled from query translation and store logic.
"""

from recordstore.infrastructure.connection import (
    ConnectionSource,
    DataSourceRegistry,
    PsycopgConnectionSource,
    SqliteConnectionSource,
    rollback_connection,
    transaction,
)

__all__ = [
    "ConnectionSource",
    "DataSourceRegistry",
    "PsycopgConnectionSource",
    "SqliteConnectionSource",
    "rollback_connection",
    "transaction",
]
