from __future__ import annotations

import pytest

from recordstore.config import Settings
from recordstore.errors import ConfigurationError, ErrorKind
from recordstore.factory import build_registry, build_source, create_record_store
from recordstore.infrastructure.connection import (
    DataSourceRegistry,
    PsycopgConnectionSource,
    SqliteConnectionSource,
)


@pytest.fixture
def registry(sqlite_source: SqliteConnectionSource) -> DataSourceRegistry:
    reg = DataSourceRegistry()
    reg.register("analytics", sqlite_source)
    return reg


def test_missing_datasource_property_is_configuration_error(registry):
    with pytest.raises(ConfigurationError) as excinfo:
        create_record_store({}, registry)
    assert "'datasource' is required" in str(excinfo.value)
    assert excinfo.value.kind is ErrorKind.CONFIGURATION


def test_unresolvable_datasource_is_configuration_error(registry):
    with pytest.raises(ConfigurationError) as excinfo:
        create_record_store({"datasource": "warehouse", "dialect": "sqlite"}, registry)
    assert "warehouse" in str(excinfo.value)


def test_unknown_dialect_is_configuration_error(registry):
    with pytest.raises(ConfigurationError):
        create_record_store({"datasource": "analytics", "dialect": "db2"}, registry)


def test_unknown_empty_id_contract_is_configuration_error(registry):
    with pytest.raises(ConfigurationError):
        create_record_store(
            {"datasource": "analytics", "dialect": "sqlite", "empty_id_reads": "maybe"}, registry
        )


def test_creates_bootstrapped_store(registry, raw_sqlite):
    properties = {"datasource": "analytics", "dialect": "sqlite", "empty_id_reads": "reject"}
    store = create_record_store(properties, registry)
    assert store.dialect.name == "sqlite"
    assert dict(store.properties) == properties
    tables = {row[0] for row in raw_sqlite.execute("SELECT name FROM sqlite_master")}
    assert "AN_FS_PATH" in tables


def test_dialect_defaults_to_settings(registry, monkeypatch):
    monkeypatch.setenv("RECORDSTORE_DIALECT", "sqlite")
    store = create_record_store({"datasource": "analytics"}, registry, bootstrap=False)
    assert store.dialect.name == "sqlite"


def test_sqlite_path_alone_selects_sqlite_dialect(registry, monkeypatch, sqlite_path):
    monkeypatch.delenv("RECORDSTORE_DIALECT", raising=False)
    monkeypatch.setenv("RECORDSTORE_SQLITE_PATH", str(sqlite_path))
    store = create_record_store({"datasource": "analytics"}, registry)
    assert store.dialect.name == "sqlite"
    assert store.table_exists(1, "events") is False


def test_build_source_prefers_sqlite_path(tmp_path):
    settings = Settings(sqlite_path=str(tmp_path / "x.db"))
    assert isinstance(build_source(settings), SqliteConnectionSource)


def test_build_source_defaults_to_lazy_postgres_pool():
    settings = Settings(sqlite_path=None, db_pool_min_size=2, db_pool_max_size=4)
    source = build_source(settings)
    assert isinstance(source, PsycopgConnectionSource)
    assert (source.min_size, source.max_size) == (2, 4)


def test_build_registry_registers_configured_name(tmp_path):
    settings = Settings(datasource="events_db", sqlite_path=str(tmp_path / "x.db"))
    registry = build_registry(settings)
    assert registry.names() == ["events_db"]


def test_registry_close_all_closes_sources(make_fake_source):
    source = make_fake_source()
    registry = DataSourceRegistry()
    registry.register("fake", source)
    registry.close_all()
    assert source.closed is True
    assert registry.names() == []


def test_sqlite_source_rejects_memory_database():
    with pytest.raises(ConfigurationError):
        SqliteConnectionSource(":memory:")
