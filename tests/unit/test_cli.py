from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from recordstore.main import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def sqlite_env(monkeypatch, sqlite_path: Path) -> Path:
    monkeypatch.setenv("RECORDSTORE_SQLITE_PATH", str(sqlite_path))
    monkeypatch.delenv("RECORDSTORE_DIALECT", raising=False)
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    return sqlite_path


def _invoke(*args: str, input: str | None = None):
    result = runner.invoke(app, list(args), input=input)
    assert result.exit_code == 0, result.output
    return result


def test_info_shows_sqlite_target(sqlite_env):
    result = _invoke("info")
    assert f"sqlite:{sqlite_env}" in result.output
    assert "dialect=sqlite" in result.output


def test_sqlite_path_alone_drives_the_dialect(sqlite_env):
    result = _invoke("bootstrap")
    assert "created" in result.output
    assert "dialect=sqlite" in _invoke("info").output


def test_bootstrap_is_idempotent():
    assert "created" in _invoke("bootstrap").output
    assert "already present" in _invoke("bootstrap").output


def test_table_commands():
    _invoke("create-table", "1", "events")
    assert "yes" in _invoke("exists", "1", "events").output
    assert "EVENTS" in _invoke("list-tables", "1").output

    _invoke("drop-table", "1", "events")
    result = runner.invoke(app, ["exists", "1", "events"])
    assert result.exit_code == 1
    assert "no" in result.output


def test_put_get_delete_round_trip(tmp_path: Path):
    _invoke("create-table", "1", "events")
    payload = [
        {"id": "r1", "timestamp": 1000, "values": {"x": 1}},
        {"id": "r2", "timestamp": 2000, "values": {"x": 2}},
    ]
    source = tmp_path / "records.json"
    source.write_text(json.dumps(payload), encoding="utf-8")

    assert "Wrote 2 record(s)." in _invoke("put", "1", "events", "--file", str(source)).output

    records = json.loads(_invoke("get", "1", "events", "--json").output)
    assert [r["id"] for r in records] == ["r1", "r2"]

    records = json.loads(_invoke("get", "1", "events", "--id", "r2", "--json").output)
    assert records[0]["values"] == {"x": 2}

    assert "Deleted 1 record(s)." in _invoke("delete", "1", "events", "--id", "r1").output
    records = json.loads(_invoke("get", "1", "events", "--json").output)
    assert [r["id"] for r in records] == ["r2"]


def test_put_reads_stdin():
    _invoke("create-table", "3", "clicks")
    body = json.dumps({"id": "c1", "timestamp": 5, "values": {"page": "home"}})
    assert "Wrote 1 record(s)." in _invoke("put", "3", "clicks", input=body).output
