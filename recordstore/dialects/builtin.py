"""
Built-in dialect descriptors.

Each record table has the same physical shape on every backend: a string
primary key, an indexed BIGINT-compatible timestamp and a blob holding the
encoded values. The bootstrap tables back the path/data bookkeeping the store
keeps alongside the record tables.

Adding a backend means adding a descriptor here (or building one at runtime
with DialectDescriptor.build); the store engine does not change.
"""

from __future__ import annotations

from typing import Callable, Dict, List

from recordstore.dialects.descriptor import DialectDescriptor
from recordstore.errors import ConfigurationError

SYSTEM_PATH_TABLE = "AN_FS_PATH"
SYSTEM_DATA_TABLE = "AN_FS_DATA"


def _sqlite() -> DialectDescriptor:
    return DialectDescriptor.build(
        name="sqlite",
        param_marker="?",
        record_insert=(
            "INSERT OR REPLACE INTO {{TABLE_NAME}} (record_id, timestamp, data) VALUES (?, ?, ?)"
        ),
        record_retrieval=(
            "SELECT record_id, timestamp, data FROM {{TABLE_NAME}} "
            "WHERE timestamp >= ? AND timestamp < ? ORDER BY timestamp, record_id LIMIT ?, ?"
        ),
        record_retrieval_with_ids=(
            "SELECT record_id, timestamp, data FROM {{TABLE_NAME}} "
            "WHERE record_id IN ({{RECORD_IDS}})"
        ),
        record_deletion="DELETE FROM {{TABLE_NAME}} WHERE timestamp >= ? AND timestamp < ?",
        record_deletion_with_ids="DELETE FROM {{TABLE_NAME}} WHERE record_id IN ({{RECORD_IDS}})",
        record_table_init=(
            "CREATE TABLE {{TABLE_NAME}} "
            "(record_id VARCHAR(50) NOT NULL PRIMARY KEY, timestamp INTEGER NOT NULL, data BLOB)",
            "CREATE INDEX {{TABLE_NAME}}_TS ON {{TABLE_NAME}} (timestamp)",
        ),
        record_table_delete=("DROP TABLE {{TABLE_NAME}}",),
        system_table_init=(
            f"CREATE TABLE {SYSTEM_PATH_TABLE} (path VARCHAR(256) NOT NULL PRIMARY KEY, "
            "is_directory BOOLEAN NOT NULL, length INTEGER, parent_path VARCHAR(256))",
            f"CREATE INDEX {SYSTEM_PATH_TABLE}_PARENT ON {SYSTEM_PATH_TABLE} (parent_path)",
            f"CREATE TABLE {SYSTEM_DATA_TABLE} (path VARCHAR(256) NOT NULL, "
            "sequence INTEGER NOT NULL, data BLOB NOT NULL, PRIMARY KEY (path, sequence))",
        ),
        system_table_check=(
            f"SELECT name FROM sqlite_master WHERE type = 'table' AND name = '{SYSTEM_PATH_TABLE}'"
        ),
        list_tables="SELECT name FROM sqlite_master WHERE type = 'table'",
    )


def _postgresql() -> DialectDescriptor:
    return DialectDescriptor.build(
        name="postgresql",
        param_marker="%s",
        record_insert=(
            "INSERT INTO {{TABLE_NAME}} (record_id, timestamp, data) VALUES (%s, %s, %s) "
            "ON CONFLICT (record_id) DO UPDATE "
            "SET timestamp = EXCLUDED.timestamp, data = EXCLUDED.data"
        ),
        record_retrieval=(
            "SELECT record_id, timestamp, data FROM {{TABLE_NAME}} "
            "WHERE timestamp >= %s AND timestamp < %s ORDER BY timestamp, record_id "
            "OFFSET %s LIMIT %s"
        ),
        record_retrieval_with_ids=(
            "SELECT record_id, timestamp, data FROM {{TABLE_NAME}} "
            "WHERE record_id IN ({{RECORD_IDS}})"
        ),
        record_deletion="DELETE FROM {{TABLE_NAME}} WHERE timestamp >= %s AND timestamp < %s",
        record_deletion_with_ids="DELETE FROM {{TABLE_NAME}} WHERE record_id IN ({{RECORD_IDS}})",
        record_table_init=(
            "CREATE TABLE {{TABLE_NAME}} "
            "(record_id VARCHAR(50) NOT NULL PRIMARY KEY, timestamp BIGINT NOT NULL, data BYTEA)",
            "CREATE INDEX {{TABLE_NAME}}_TS ON {{TABLE_NAME}} (timestamp)",
        ),
        record_table_delete=("DROP TABLE {{TABLE_NAME}}",),
        system_table_init=(
            f"CREATE TABLE {SYSTEM_PATH_TABLE} (path VARCHAR(256) NOT NULL PRIMARY KEY, "
            "is_directory BOOLEAN NOT NULL, length BIGINT, parent_path VARCHAR(256))",
            f"CREATE INDEX {SYSTEM_PATH_TABLE}_PARENT ON {SYSTEM_PATH_TABLE} (parent_path)",
            f"CREATE TABLE {SYSTEM_DATA_TABLE} (path VARCHAR(256) NOT NULL, "
            "sequence BIGINT NOT NULL, data BYTEA NOT NULL, PRIMARY KEY (path, sequence))",
        ),
        system_table_check=(
            "SELECT 1 FROM information_schema.tables "
            f"WHERE table_schema = current_schema() AND table_name = '{SYSTEM_PATH_TABLE.lower()}'"
        ),
        list_tables=(
            "SELECT table_name FROM information_schema.tables "
            "WHERE table_schema = current_schema()"
        ),
    )


def _mysql() -> DialectDescriptor:
    return DialectDescriptor.build(
        name="mysql",
        param_marker="%s",
        record_insert=(
            "REPLACE INTO {{TABLE_NAME}} (record_id, timestamp, data) VALUES (%s, %s, %s)"
        ),
        record_retrieval=(
            "SELECT record_id, timestamp, data FROM {{TABLE_NAME}} "
            "WHERE timestamp >= %s AND timestamp < %s ORDER BY timestamp, record_id LIMIT %s, %s"
        ),
        record_retrieval_with_ids=(
            "SELECT record_id, timestamp, data FROM {{TABLE_NAME}} "
            "WHERE record_id IN ({{RECORD_IDS}})"
        ),
        record_deletion="DELETE FROM {{TABLE_NAME}} WHERE timestamp >= %s AND timestamp < %s",
        record_deletion_with_ids="DELETE FROM {{TABLE_NAME}} WHERE record_id IN ({{RECORD_IDS}})",
        record_table_init=(
            "CREATE TABLE {{TABLE_NAME}} (record_id VARCHAR(50) NOT NULL PRIMARY KEY, "
            "timestamp BIGINT NOT NULL, data LONGBLOB, INDEX (timestamp))",
        ),
        record_table_delete=("DROP TABLE {{TABLE_NAME}}",),
        system_table_init=(
            f"CREATE TABLE {SYSTEM_PATH_TABLE} (path VARCHAR(256) NOT NULL PRIMARY KEY, "
            "is_directory BOOLEAN NOT NULL, length BIGINT, parent_path VARCHAR(256), "
            "INDEX (parent_path))",
            f"CREATE TABLE {SYSTEM_DATA_TABLE} (path VARCHAR(256) NOT NULL, "
            "sequence BIGINT NOT NULL, data LONGBLOB NOT NULL, PRIMARY KEY (path, sequence))",
        ),
        system_table_check=(
            "SELECT 1 FROM information_schema.tables "
            f"WHERE table_schema = DATABASE() AND table_name = '{SYSTEM_PATH_TABLE}'"
        ),
        list_tables=(
            "SELECT table_name FROM information_schema.tables WHERE table_schema = DATABASE()"
        ),
    )


def _dialect_factories() -> Dict[str, Callable[[], DialectDescriptor]]:
    """Registry of built-in dialects."""
    return {
        "sqlite": _sqlite,
        "postgresql": _postgresql,
        "mysql": _mysql,
    }


def available_dialects() -> List[str]:
    """List built-in dialect names."""
    return sorted(_dialect_factories().keys())


def get_dialect(name: str) -> DialectDescriptor:
    """
    Resolve a built-in dialect by name (case-insensitive).

    Raises
    ------
    ConfigurationError
        If no built-in dialect has that name.
    """
    factories = _dialect_factories()
    key = name.strip().lower()
    if key not in factories:
        raise ConfigurationError(
            f"Unknown dialect '{name}'. Available: {', '.join(available_dialects())}"
        )
    return factories[key]()


__all__ = [
    "available_dialects",
    "get_dialect",
    "SYSTEM_PATH_TABLE",
    "SYSTEM_DATA_TABLE",
]
