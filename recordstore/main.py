from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import List, Optional

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from recordstore.config import get_settings
from recordstore.domain.models import Record
from recordstore.engine import RecordStore
from recordstore.errors import RecordStoreError
from recordstore.factory import DATASOURCE_PROPERTY, build_registry, create_record_store
from recordstore.utils.logging import configure_logging

app = typer.Typer(help="Analytics record store CLI.")


def _open_store(bootstrap: bool = False) -> RecordStore:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    registry = build_registry(settings)
    return create_record_store({DATASOURCE_PROPERTY: settings.datasource}, registry, bootstrap=bootstrap)


def _print_records(records: List[Record]) -> None:
    console = Console()
    if not records:
        console.print("[yellow]No records found.[/yellow]")
        return

    table = Table(box=box.ROUNDED, caption=f"{len(records)} record(s)")
    table.add_column("Id", style="cyan", no_wrap=True)
    table.add_column("Timestamp", justify="right", style="magenta")
    table.add_column("Values", style="green")
    for record in records:
        values = json.dumps(dict(record.values), default=str)
        table.add_row(record.id, str(record.timestamp), values)
    console.print(table)


def _load_records(path: Optional[Path], category_id: int, table_name: str) -> List[Record]:
    raw = path.read_text(encoding="utf-8") if path else sys.stdin.read()
    payload = json.loads(raw)
    if isinstance(payload, dict):
        payload = [payload]
    return [
        Record(
            id=str(item["id"]),
            category_id=category_id,
            table_name=table_name,
            timestamp=int(item["timestamp"]),
            values=item.get("values", {}),
        )
        for item in payload
    ]


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    if settings.sqlite_path:
        target = f"sqlite:{settings.sqlite_path}"
    else:
        target = f"{settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    typer.echo(
        f"DB={target} | datasource={settings.datasource} dialect={settings.dialect_name} "
        f"pool=({settings.db_pool_min_size},{settings.db_pool_max_size})"
    )


@app.command()
def bootstrap() -> None:
    """
    Create the system tables if they are missing.
    """
    with _open_store() as store:
        created = store.bootstrap()
    typer.echo("System tables created." if created else "System tables already present.")


@app.command("create-table")
def create_table(category_id: int, table_name: str) -> None:
    """Create a record table."""
    with _open_store(bootstrap=True) as store:
        store.create_table(category_id, table_name)
    typer.echo(f"Created {table_name.upper()} in category {category_id}.")


@app.command("drop-table")
def drop_table(category_id: int, table_name: str) -> None:
    """Drop a record table and its records."""
    with _open_store() as store:
        store.drop_table(category_id, table_name)
    typer.echo(f"Dropped {table_name.upper()} in category {category_id}.")


@app.command()
def exists(category_id: int, table_name: str) -> None:
    """
    Exit with status 0 if the table exists, 1 otherwise.
    """
    with _open_store() as store:
        found = store.table_exists(category_id, table_name)
    typer.echo("yes" if found else "no")
    if not found:
        raise typer.Exit(code=1)


@app.command("list-tables")
def list_tables(category_id: int) -> None:
    """List the tables of a category."""
    with _open_store() as store:
        names = store.list_tables(category_id)
    console = Console()
    if not names:
        console.print(f"[yellow]No tables in category {category_id}.[/yellow]")
        return
    table = Table(title=f"Category {category_id}", box=box.ROUNDED)
    table.add_column("Table", style="cyan")
    for name in names:
        table.add_row(name)
    console.print(table)


@app.command()
def put(
    category_id: int,
    table_name: str,
    file: Optional[Path] = typer.Option(
        None,
        "--file",
        "-f",
        help="JSON file with a record or list of records ({id, timestamp, values}); stdin if omitted.",
    ),
) -> None:
    """
    Write records read as JSON.
    """
    records = _load_records(file, category_id, table_name)
    with _open_store() as store:
        written = store.put(records)
    typer.echo(f"Wrote {written} record(s).")


@app.command()
def get(
    category_id: int,
    table_name: str,
    ids: Optional[List[str]] = typer.Option(None, "--id", help="Record id (repeatable)."),
    columns: Optional[List[str]] = typer.Option(None, "--column", "-c", help="Value name to keep."),
    time_from: int = typer.Option(-1, "--from-time", help="Inclusive lower timestamp, -1 for none."),
    time_to: int = typer.Option(-1, "--to-time", help="Exclusive upper timestamp, -1 for none."),
    start: int = typer.Option(-1, "--start", help="0-indexed first row, -1 for none."),
    count: int = typer.Option(-1, "--count", help="Row count, -1 for all."),
    as_json: bool = typer.Option(False, "--json", help="Print records as JSON."),
) -> None:
    """
    Read records by id or by time range.
    """
    with _open_store() as store:
        if ids:
            records = store.get_records_by_ids(category_id, table_name, ids, columns)
        else:
            records = store.get_records(
                category_id, table_name, columns, time_from, time_to, start, count
            )
    if as_json:
        typer.echo(json.dumps([r.model_dump() for r in records], indent=2, default=str))
    else:
        _print_records(records)


@app.command()
def delete(
    category_id: int,
    table_name: str,
    ids: Optional[List[str]] = typer.Option(None, "--id", help="Record id (repeatable)."),
    time_from: int = typer.Option(-1, "--from-time", help="Inclusive lower timestamp, -1 for none."),
    time_to: int = typer.Option(-1, "--to-time", help="Exclusive upper timestamp, -1 for none."),
) -> None:
    """
    Delete records by id or by time range.
    """
    with _open_store() as store:
        if ids:
            deleted = store.delete_by_ids(category_id, table_name, ids)
        else:
            deleted = store.delete_range(category_id, table_name, time_from, time_to)
    typer.echo(f"Deleted {deleted} record(s).")


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
    except RecordStoreError as exc:
        typer.echo(f"{exc.kind.value}: {exc}", err=True)
        sys.exit(2)


if __name__ == "__main__":
    main()
