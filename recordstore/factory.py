"""
Factory functions for building record stores.

`create_record_store` implements the initialization contract: a properties
mapping naming the connection source to resolve, plus optional dialect and
empty-id-read settings. `build_registry` plays the surrounding system: it
registers the connection source described by the environment settings under
the configured data source name.
"""

from __future__ import annotations

from typing import Mapping, Optional

from recordstore.codec import RecordCodec
from recordstore.config import Settings, get_settings
from recordstore.dialects.builtin import get_dialect
from recordstore.dialects.descriptor import DialectDescriptor
from recordstore.engine import RecordStore
from recordstore.errors import ConfigurationError
from recordstore.infrastructure.connection import (
    ConnectionSource,
    DataSourceRegistry,
    PsycopgConnectionSource,
    SqliteConnectionSource,
)
from recordstore.utils.logging import get_logger

log = get_logger(__name__)

DATASOURCE_PROPERTY = "datasource"
DIALECT_PROPERTY = "dialect"
EMPTY_ID_READS_PROPERTY = "empty_id_reads"


def build_source(settings: Settings) -> ConnectionSource:
    """
    Build the connection source described by settings.

    A configured SQLite path wins over the PostgreSQL fields.
    """
    if settings.sqlite_path:
        return SqliteConnectionSource(settings.sqlite_path)
    return PsycopgConnectionSource(
        conninfo=settings.dsn,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        connect_attempts=settings.db_connect_attempts,
    )


def build_registry(settings: Optional[Settings] = None) -> DataSourceRegistry:
    """Registry holding the settings-defined source under `settings.datasource`."""
    settings = settings or get_settings()
    registry = DataSourceRegistry()
    registry.register(settings.datasource, build_source(settings))
    return registry


def create_record_store(
    properties: Mapping[str, str],
    registry: DataSourceRegistry,
    dialect: Optional[DialectDescriptor] = None,
    codec: Optional[RecordCodec] = None,
    bootstrap: bool = True,
) -> RecordStore:
    """
    Initialize a RecordStore from properties.

    Parameters
    ----------
    properties : Mapping[str, str]
        Must contain "datasource". May contain "dialect" (built-in dialect
        name; defaults to the settings dialect, which follows the configured
        source when unset) and "empty_id_reads" ("empty"/"reject").
    registry : DataSourceRegistry
        Where the named data source is resolved.
    dialect : DialectDescriptor, optional
        Explicit descriptor; takes precedence over the "dialect" property.
    codec : RecordCodec, optional
        Value codec; JSON when omitted.
    bootstrap : bool
        Whether to create the system tables before returning.

    Raises
    ------
    ConfigurationError
        If "datasource" is missing, cannot be resolved, or the dialect or
        empty-id-read setting is unknown.
    """
    ds_name = properties.get(DATASOURCE_PROPERTY)
    if not ds_name:
        raise ConfigurationError(f"The property '{DATASOURCE_PROPERTY}' is required")
    source = registry.lookup(ds_name)

    if dialect is None:
        dialect = get_dialect(properties.get(DIALECT_PROPERTY) or get_settings().dialect_name)

    empty_id_reads = properties.get(EMPTY_ID_READS_PROPERTY, "empty")
    if empty_id_reads not in ("empty", "reject"):
        raise ConfigurationError(
            f"The property '{EMPTY_ID_READS_PROPERTY}' must be 'empty' or 'reject', "
            f"got '{empty_id_reads}'"
        )

    store = RecordStore(
        source=source,
        dialect=dialect,
        codec=codec,
        properties=properties,
        empty_id_reads=empty_id_reads,  # type: ignore[arg-type]
    )
    log.info(
        "Record store initialized",
        extra={"datasource": ds_name, "dialect": dialect.name},
    )
    if bootstrap:
        store.bootstrap()
    return store


__all__ = [
    "DATASOURCE_PROPERTY",
    "DIALECT_PROPERTY",
    "EMPTY_ID_READS_PROPERTY",
    "build_source",
    "build_registry",
    "create_record_store",
]
