"""
recordstore - dialect-agnostic relational storage for analytics records.

Records are schema-less rows (id, timestamp, named values) grouped into
logical tables that are partitioned by a numeric category. The package maps
record operations onto any SQL backend described by a dialect descriptor:

- Dialect descriptors carrying query templates and pagination conventions
- A pure query translator (table naming, IN-lists, pagination offsets)
- A record store engine running each operation as one transaction
- Pluggable connection sources (psycopg pool, SQLite file) and value codecs
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from recordstore.codec import JsonRecordCodec, RecordCodec
from recordstore.config import Settings, get_settings
from recordstore.dialects import DialectDescriptor, available_dialects, get_dialect
from recordstore.domain import PaginationRequest, Record
from recordstore.engine import RecordStore
from recordstore.errors import (
    ConfigurationError,
    DialectValidationError,
    EmptyIdListError,
    ErrorKind,
    ExecutionError,
    InvalidArgumentError,
    InvalidTableNameError,
    RecordStoreError,
    ValueEncodingError,
)
from recordstore.factory import build_registry, create_record_store
from recordstore.infrastructure import (
    DataSourceRegistry,
    PsycopgConnectionSource,
    SqliteConnectionSource,
)
from recordstore.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Store
    "RecordStore",
    "create_record_store",
    "build_registry",
    # Dialects
    "DialectDescriptor",
    "available_dialects",
    "get_dialect",
    # Domain
    "Record",
    "PaginationRequest",
    # Codec
    "RecordCodec",
    "JsonRecordCodec",
    # Connections
    "DataSourceRegistry",
    "PsycopgConnectionSource",
    "SqliteConnectionSource",
    # Errors
    "ErrorKind",
    "RecordStoreError",
    "ConfigurationError",
    "DialectValidationError",
    "ExecutionError",
    "InvalidArgumentError",
    "InvalidTableNameError",
    "EmptyIdListError",
    "ValueEncodingError",
    # Logging
    "configure_logging",
    "get_logger",
]
