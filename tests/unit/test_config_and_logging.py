from __future__ import annotations

import json
import logging

from recordstore import config
from recordstore.utils.logging import _json_formatter

EXPECTED_ROWS = 10


def _log_record() -> logging.LogRecord:
    return logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="hello",
        args=(),
        exc_info=None,
    )


def test_settings_defaults(monkeypatch):
    for var in ("DB_HOST", "DB_PORT", "RECORDSTORE_DIALECT", "RECORDSTORE_SQLITE_PATH"):
        monkeypatch.delenv(var, raising=False)
    settings = config.Settings(_env_file=None)
    assert settings.db_host == "localhost"
    assert settings.db_port == 5432
    assert settings.datasource == "default"
    assert settings.dialect is None
    assert settings.dialect_name == "postgresql"
    assert settings.sqlite_path is None
    assert settings.db_pool_min_size <= settings.db_pool_max_size


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("RECORDSTORE_DIALECT", "mysql")
    monkeypatch.setenv("DB_PORT", "6543")
    settings = config.get_settings()
    assert settings.dialect == "mysql"
    assert settings.db_port == 6543


def test_sqlite_path_selects_sqlite_dialect_by_default(tmp_path):
    settings = config.Settings(sqlite_path=str(tmp_path / "x.db"), dialect=None, _env_file=None)
    assert settings.dialect_name == "sqlite"


def test_explicit_dialect_wins_over_source(tmp_path):
    settings = config.Settings(
        sqlite_path=str(tmp_path / "x.db"), dialect="mysql", _env_file=None
    )
    assert settings.dialect_name == "mysql"


def test_get_settings_is_cached():
    assert config.get_settings() is config.get_settings()


def test_dsn_is_composed_from_fields():
    settings = config.Settings(
        db_user="u", db_password="p", db_host="h", db_port=1, db_name="d", _env_file=None
    )
    assert settings.dsn == "postgresql://u:p@h:1/d"


def test_json_formatter_promotes_extra_fields() -> None:
    record = _log_record()
    record.rows = EXPECTED_ROWS
    record.operation = "put"

    payload = json.loads(_json_formatter(record))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "test.logger"
    assert payload["message"] == "hello"
    assert payload["rows"] == EXPECTED_ROWS
    assert payload["operation"] == "put"
    assert "lineno" not in payload


def test_json_formatter_supports_nested_extra_field() -> None:
    record = _log_record()
    record.extra = {"table": "ANX_1_events"}

    payload = json.loads(_json_formatter(record))

    assert payload["table"] == "ANX_1_events"
