"""
Connection sources and scoped transaction handling for the record store.

A connection source hands out DB-API connections through a context manager
that always gives the connection back, whatever happens inside the block.
The store receives a source at construction; resolving a source by name is
the job of the surrounding system, modelled here by DataSourceRegistry.

Includes retry logic for transient failures while opening a PostgreSQL pool
using tenacity. Statement execution itself is never retried.
"""

from __future__ import annotations

import sqlite3
import threading
from contextlib import closing, contextmanager
from typing import Any, ContextManager, Dict, Generator, List, Optional, Protocol, runtime_checkable

import psycopg
from psycopg_pool import ConnectionPool, PoolTimeout
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from recordstore.errors import ConfigurationError
from recordstore.utils.logging import get_logger

log = get_logger(__name__)


@runtime_checkable
class ConnectionSource(Protocol):
    """
    Anything that can lend out a DB-API connection for the span of a block.
    """

    def connection(self) -> ContextManager[Any]:
        ...


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((PoolTimeout, psycopg.OperationalError)),
    reraise=True,
)
def _open_pool(conninfo: str, min_size: int, max_size: int, timeout: float) -> ConnectionPool:
    """
    Open a pool and wait until `min_size` connections are ready.

    Retries with exponential backoff while the server is unreachable. A pool
    that fails to fill is closed by psycopg_pool, so each attempt builds a
    fresh one.
    """
    pool = ConnectionPool(conninfo=conninfo, min_size=min_size, max_size=max_size, open=False)
    pool.open(wait=True, timeout=timeout)
    return pool


class PsycopgConnectionSource:
    """
    PostgreSQL connection source backed by a psycopg ConnectionPool.

    The pool is opened lazily on first use, so building a source never blocks.
    """

    def __init__(
        self,
        conninfo: str,
        min_size: int = 1,
        max_size: int = 10,
        connect_attempts: int = 3,
        open_timeout: float = 30.0,
    ) -> None:
        self._conninfo = conninfo
        self.min_size = min_size
        self.max_size = max_size
        self.connect_attempts = connect_attempts
        self.open_timeout = open_timeout
        self._pool: Optional[ConnectionPool] = None
        self._lock = threading.Lock()

    def _get_pool(self) -> ConnectionPool:
        with self._lock:
            if self._pool is None:
                opener = _open_pool.retry_with(stop=stop_after_attempt(self.connect_attempts))
                self._pool = opener(self._conninfo, self.min_size, self.max_size, self.open_timeout)
                log.info(
                    "Connection pool opened",
                    extra={"min_size": self.min_size, "max_size": self.max_size},
                )
            return self._pool

    @contextmanager
    def connection(self) -> Generator[psycopg.Connection, None, None]:
        """
        Borrow a pooled connection; it goes back to the pool on exit.
        """
        with self._get_pool().connection() as conn:
            yield conn

    def close(self) -> None:
        with self._lock:
            if self._pool is not None:
                self._pool.close()
                self._pool = None


class SqliteConnectionSource:
    """
    SQLite file connection source. Opens one connection per borrow.

    In-memory databases are not supported: every borrow would see a new,
    empty database.

    The sqlite3 module's implicit transaction handling commits before DDL, so
    connections run in autocommit mode and each borrow opens its own explicit
    transaction. DDL then commits or rolls back with the rest of the block.
    """

    def __init__(self, path: str, timeout: float = 5.0) -> None:
        if path == ":memory:":
            raise ConfigurationError("SQLite source needs a file path, not ':memory:'")
        self.path = path
        self.timeout = timeout

    @contextmanager
    def connection(self) -> Generator[sqlite3.Connection, None, None]:
        with closing(
            sqlite3.connect(self.path, timeout=self.timeout, isolation_level=None)
        ) as conn:
            conn.execute("BEGIN")
            yield conn


def rollback_connection(conn: Any) -> None:
    """
    Roll back the connection's open transaction.

    A failed rollback is logged and dropped so the error that triggered it is
    the one that reaches the caller.
    """
    try:
        conn.rollback()
    except Exception:  # noqa: BLE001 - the original failure is already propagating
        log.warning("Rollback failed", exc_info=True)


@contextmanager
def transaction(source: ConnectionSource) -> Generator[Any, None, None]:
    """
    Run a block as one unit of work on one borrowed connection.

    Commits when the block completes, rolls back when it raises. The
    connection is released on every path.

    Example
    -------
        with transaction(source) as conn:
            with closing(conn.cursor()) as cur:
                cur.execute("DELETE FROM t")
    """
    with source.connection() as conn:
        try:
            yield conn
        except BaseException:
            rollback_connection(conn)
            raise
        conn.commit()


class DataSourceRegistry:
    """
    Thread-safe registry of named connection sources.

    Stands in for the process-wide lookup of the surrounding system; the
    store never consults it itself.
    """

    def __init__(self) -> None:
        self._sources: Dict[str, ConnectionSource] = {}
        self._lock = threading.Lock()

    def register(self, name: str, source: ConnectionSource) -> None:
        with self._lock:
            self._sources[name] = source

    def lookup(self, name: str) -> ConnectionSource:
        """
        Resolve a source by name.

        Raises
        ------
        ConfigurationError
            If nothing is registered under that name.
        """
        with self._lock:
            source = self._sources.get(name)
        if source is None:
            raise ConfigurationError(f"Error in looking up data source: '{name}' is not registered")
        return source

    def names(self) -> List[str]:
        with self._lock:
            return sorted(self._sources)

    def close_all(self) -> None:
        """Close every registered source that supports closing."""
        with self._lock:
            sources = list(self._sources.values())
            self._sources.clear()
        for source in sources:
            close = getattr(source, "close", None)
            if callable(close):
                close()


__all__ = [
    "ConnectionSource",
    "PsycopgConnectionSource",
    "SqliteConnectionSource",
    "DataSourceRegistry",
    "rollback_connection",
    "transaction",
]
