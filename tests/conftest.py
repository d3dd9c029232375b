"""
Pytest configuration for the record store.

Provides fixtures for:
- SQLite-backed stores on a per-test database file
- Fake DB-API connections for transaction and cleanup assertions
- PostgreSQL settings for integration tests
"""

from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Generator, List, Optional, Sequence, Tuple

import psycopg
import pytest

from recordstore.config import Settings, get_settings
from recordstore.dialects import get_dialect
from recordstore.engine import RecordStore
from recordstore.infrastructure.connection import SqliteConnectionSource


@pytest.fixture(autouse=True)
def _reset_settings_cache() -> Generator[None, None, None]:
    """Settings are cached process-wide; keep tests from seeing each other's env."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sqlite_path(tmp_path: Path) -> Path:
    return tmp_path / "records.db"


@pytest.fixture
def sqlite_source(sqlite_path: Path) -> SqliteConnectionSource:
    return SqliteConnectionSource(str(sqlite_path))


@pytest.fixture
def store(sqlite_source: SqliteConnectionSource) -> RecordStore:
    """Bootstrapped SQLite store returning [] for empty id reads."""
    record_store = RecordStore(sqlite_source, get_dialect("sqlite"))
    record_store.bootstrap()
    return record_store


@pytest.fixture
def raw_sqlite(sqlite_path: Path) -> Generator[sqlite3.Connection, None, None]:
    """Direct connection to the store's database, for out-of-band checks."""
    conn = sqlite3.connect(str(sqlite_path))
    try:
        yield conn
    finally:
        conn.close()


class FakeCursor:
    def __init__(self, conn: "FakeConnection") -> None:
        self._conn = conn
        self.closed = False
        self.rowcount = -1
        self._rows: List[Tuple] = []

    def execute(self, query: str, params: Optional[Sequence[Any]] = None) -> None:
        self._conn.executed.append((query, None if params is None else tuple(params)))
        if self._conn.fail_on and self._conn.fail_on in query:
            raise sqlite3.OperationalError(f"boom: {self._conn.fail_on}")
        self._rows = list(self._conn.rows)
        self.rowcount = len(self._rows)

    def executemany(self, query: str, seq_of_params: Sequence[Sequence[Any]]) -> None:
        for params in seq_of_params:
            self.execute(query, params)

    def fetchall(self) -> List[Tuple]:
        return self._rows

    def close(self) -> None:
        self.closed = True


class FakeConnection:
    """DB-API connection double that records statements and transaction calls."""

    def __init__(
        self,
        rows: Sequence[Tuple] = (),
        fail_on: Optional[str] = None,
        fail_rollback: bool = False,
    ) -> None:
        self.rows = rows
        self.fail_on = fail_on
        self.fail_rollback = fail_rollback
        self.executed: List[Tuple[str, Optional[Tuple]]] = []
        self.cursors: List[FakeCursor] = []
        self.commits = 0
        self.rollbacks = 0

    def cursor(self) -> FakeCursor:
        cur = FakeCursor(self)
        self.cursors.append(cur)
        return cur

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1
        if self.fail_rollback:
            raise sqlite3.OperationalError("connection lost")


class FakeSource:
    """Connection source lending out one FakeConnection and counting borrows."""

    def __init__(self, conn: FakeConnection) -> None:
        self.conn = conn
        self.borrowed = 0
        self.released = 0
        self.closed = False

    @contextmanager
    def connection(self) -> Generator[FakeConnection, None, None]:
        self.borrowed += 1
        try:
            yield self.conn
        finally:
            self.released += 1

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def make_fake_source() -> Callable[..., FakeSource]:
    """Factory for fake sources; keyword arguments go to FakeConnection."""

    def _make(**kwargs: Any) -> FakeSource:
        return FakeSource(FakeConnection(**kwargs))

    return _make


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "recordstore"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    return test_settings.dsn


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False
