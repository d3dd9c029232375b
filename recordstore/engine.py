"""
Record store engine: runs each public operation as one unit of work.

Every public method borrows exactly one connection from the injected source,
executes the translated statements, and commits or rolls back before it
returns. There is no state shared between calls beyond the read-only dialect
descriptor, the codec and a frozen copy of the initialization properties, so
a single store can serve concurrent callers; isolation between them is the
backend's business.

Driver failures are rolled back and re-raised as a single ExecutionError
naming the operation and physical table, with the driver exception chained.

Scalability note: table_exists and list_tables scan the backend catalog, which
costs O(total tables in the backend). They are administrative calls and should
stay off hot paths.
"""

from __future__ import annotations

from contextlib import closing, contextmanager
from types import MappingProxyType
from typing import (
    Any,
    Dict,
    Generator,
    Iterable,
    List,
    Literal,
    Mapping,
    Optional,
    Sequence,
    Set,
    Tuple,
)

from pydantic import ValidationError

from recordstore import translator
from recordstore.codec import JsonRecordCodec, RecordCodec
from recordstore.dialects.descriptor import DialectDescriptor
from recordstore.domain.models import PaginationRequest, Record
from recordstore.errors import (
    EmptyIdListError,
    ExecutionError,
    InvalidArgumentError,
    RecordStoreError,
    ValueEncodingError,
)
from recordstore.infrastructure.connection import ConnectionSource, transaction
from recordstore.utils.logging import get_logger

log = get_logger(__name__)

EmptyIdReads = Literal["empty", "reject"]


class RecordStore:
    """
    Dialect-agnostic store for analytics records.

    Parameters
    ----------
    source : ConnectionSource
        Lends out DB-API connections; resolved by the caller.
    dialect : DialectDescriptor
        Templates and pagination conventions of the backend behind `source`.
    codec : RecordCodec, optional
        Encodes record values to the blob column. Defaults to JSON.
    properties : Mapping[str, str], optional
        Initialization properties, kept read-only for introspection.
    empty_id_reads : {"empty", "reject"}
        What get_records_by_ids does with an empty id list: return no records
        without touching the backend, or raise EmptyIdListError.
    """

    def __init__(
        self,
        source: ConnectionSource,
        dialect: DialectDescriptor,
        codec: Optional[RecordCodec] = None,
        properties: Optional[Mapping[str, str]] = None,
        empty_id_reads: EmptyIdReads = "empty",
    ) -> None:
        if empty_id_reads not in ("empty", "reject"):
            raise ValueError(f"empty_id_reads must be 'empty' or 'reject', got {empty_id_reads!r}")
        self._source = source
        self._dialect = dialect
        self._codec: RecordCodec = codec or JsonRecordCodec()
        self._properties: Mapping[str, str] = MappingProxyType(dict(properties or {}))
        self._empty_id_reads = empty_id_reads

    @property
    def dialect(self) -> DialectDescriptor:
        return self._dialect

    @property
    def properties(self) -> Mapping[str, str]:
        return self._properties

    @property
    def source(self) -> ConnectionSource:
        return self._source

    # ------------------------------------------------------------------ #
    # Plumbing
    # ------------------------------------------------------------------ #

    @contextmanager
    def _unit_of_work(
        self, operation: str, table: Optional[str] = None
    ) -> Generator[Any, None, None]:
        """
        Borrow a connection for one transaction and translate driver failures.
        """
        try:
            with transaction(self._source) as conn:
                yield conn
        except RecordStoreError:
            raise
        except Exception as exc:
            log.error(
                f"Error in {operation}",
                exc_info=True,
                extra={"operation": operation, "table": table},
            )
            raise ExecutionError(operation, str(exc), table) from exc

    @staticmethod
    def _execute_update(conn: Any, query: str, params: Optional[Sequence[Any]] = None) -> int:
        with closing(conn.cursor()) as cur:
            if params is None:
                cur.execute(query)
            else:
                cur.execute(query, params)
            return cur.rowcount

    @staticmethod
    def _fetch_all(conn: Any, query: str, params: Optional[Sequence[Any]] = None) -> List[Tuple]:
        with closing(conn.cursor()) as cur:
            if params is None:
                cur.execute(query)
            else:
                cur.execute(query, params)
            return list(cur.fetchall())

    def _catalog_tables(self, conn: Any) -> List[str]:
        return [row[0] for row in self._fetch_all(conn, self._dialect.list_tables)]

    def _system_tables_exist(self, conn: Any) -> bool:
        return len(self._fetch_all(conn, self._dialect.system_table_check)) > 0

    def _encode(self, record: Record) -> bytes:
        try:
            return self._codec.encode(record.values)
        except (TypeError, ValueError) as exc:
            raise ValueEncodingError(
                f"Cannot encode values of record '{record.id}': {exc}"
            ) from exc

    def _decode_rows(
        self,
        category_id: int,
        table_name: str,
        rows: Iterable[Tuple],
        columns: Optional[Iterable[str]],
    ) -> List[Record]:
        column_set: Optional[Set[str]] = set(columns) if columns else None
        return [
            Record(
                id=record_id,
                category_id=category_id,
                table_name=table_name,
                timestamp=int(timestamp),
                values=self._codec.decode(data, column_set),
            )
            for record_id, timestamp, data in rows
        ]

    # ------------------------------------------------------------------ #
    # Tables
    # ------------------------------------------------------------------ #

    def bootstrap(self) -> bool:
        """
        Create the bookkeeping tables unless they already exist.

        Safe to call on every startup.

        Returns
        -------
        bool
            True if the tables were created by this call.
        """
        with self._unit_of_work("creating system tables") as conn:
            if self._system_tables_exist(conn):
                log.debug("System tables present", extra={"operation": "bootstrap"})
                return False
            for query in self._dialect.system_table_init:
                self._execute_update(conn, query)
        log.info(
            "System tables created",
            extra={"operation": "bootstrap", "dialect": self._dialect.name},
        )
        return True

    def create_table(self, category_id: int, table_name: str) -> None:
        """
        Create a record table. Fails if any statement fails; nothing is cleaned up.
        """
        queries = translator.record_table_init_queries(self._dialect, category_id, table_name)
        physical = translator.physical_table_name(category_id, table_name)
        with self._unit_of_work("creating table", physical) as conn:
            for query in queries:
                self._execute_update(conn, query)
        log.info("Table created", extra={"operation": "create_table", "table": physical})

    def drop_table(self, category_id: int, table_name: str) -> None:
        queries = translator.record_table_delete_queries(self._dialect, category_id, table_name)
        physical = translator.physical_table_name(category_id, table_name)
        with self._unit_of_work("deleting table", physical) as conn:
            for query in queries:
                self._execute_update(conn, query)
        log.info("Table dropped", extra={"operation": "drop_table", "table": physical})

    def table_exists(self, category_id: int, table_name: str) -> bool:
        """
        Whether a managed table exists in the category (case-insensitive).

        Scans the whole backend catalog.
        """
        translator.physical_table_name(category_id, table_name)
        wanted = translator.normalize_table_name(table_name)
        with self._unit_of_work("checking table existence") as conn:
            catalog = self._catalog_tables(conn)
        return any(
            translator.logical_table_name(name, category_id) == wanted for name in catalog
        )

    def list_tables(self, category_id: int) -> List[str]:
        """
        List logical (uppercased) table names of one category.

        Scans the whole backend catalog; tables outside the category's managed
        prefix are ignored.
        """
        translator.table_prefix(category_id)
        with self._unit_of_work("listing tables") as conn:
            catalog = self._catalog_tables(conn)
        names = (translator.logical_table_name(name, category_id) for name in catalog)
        return sorted(name for name in names if name is not None)

    # ------------------------------------------------------------------ #
    # Records
    # ------------------------------------------------------------------ #

    def put(self, records: Iterable[Record]) -> int:
        """
        Insert records as one transaction.

        Records are batched per target table; if any batch fails, nothing is
        committed. A record whose id already exists in its table replaces it.

        Returns
        -------
        int
            Number of records written.
        """
        batches: Dict[Tuple[int, str], List[Record]] = {}
        for record in records:
            batches.setdefault((record.category_id, record.table_name), []).append(record)
        if not batches:
            return 0

        statements = [
            (
                translator.record_insert_query(self._dialect, category_id, table_name),
                [(r.id, r.timestamp, self._encode(r)) for r in batch],
            )
            for (category_id, table_name), batch in batches.items()
        ]
        total = sum(len(params) for _, params in statements)
        with self._unit_of_work("adding records") as conn:
            for query, params in statements:
                with closing(conn.cursor()) as cur:
                    cur.executemany(query, params)
        log.debug(
            "Records added",
            extra={"operation": "put", "rows": total, "tables": len(statements)},
        )
        return total

    def get_records(
        self,
        category_id: int,
        table_name: str,
        columns: Optional[Iterable[str]] = None,
        time_from: int = -1,
        time_to: int = -1,
        records_from: int = -1,
        records_count: int = -1,
    ) -> List[Record]:
        """
        Read records with time_from <= timestamp < time_to, ordered by timestamp.

        Parameters
        ----------
        category_id, table_name : int, str
            Logical table to read.
        columns : iterable[str], optional
            Value names to keep; None or empty keeps all.
        time_from, time_to : int
            Epoch-millisecond bounds; -1 leaves that side open.
        records_from, records_count : int
            0-indexed first row and row count; -1 leaves that side open.
        """
        try:
            page = PaginationRequest(records_from=records_from, records_count=records_count)
        except ValidationError as exc:
            raise InvalidArgumentError(
                f"Invalid pagination ({records_from}, {records_count}): "
                "bounds must be >= 0, or -1 for unbounded"
            ) from exc
        query = translator.record_retrieval_query(self._dialect, category_id, table_name)
        physical = translator.physical_table_name(category_id, table_name)
        time_from, time_to = translator.normalize_time_range(time_from, time_to)
        offset, count = translator.normalize_pagination(
            self._dialect, page.records_from, page.records_count
        )
        with self._unit_of_work("retrieving records", physical) as conn:
            rows = self._fetch_all(conn, query, (time_from, time_to, offset, count))
            result = self._decode_rows(category_id, table_name, rows, columns)
        log.debug(
            "Records retrieved",
            extra={"operation": "get_records", "table": physical, "rows": len(result)},
        )
        return result

    def get_records_by_ids(
        self,
        category_id: int,
        table_name: str,
        ids: Sequence[str],
        columns: Optional[Iterable[str]] = None,
    ) -> List[Record]:
        """
        Read the records with the given ids; unknown ids are skipped.

        Raises
        ------
        EmptyIdListError
            If `ids` is empty and the store was built with empty_id_reads="reject".
        """
        ids = list(ids)
        if not ids:
            if self._empty_id_reads == "reject":
                raise EmptyIdListError("get_records_by_ids needs at least one id")
            return []
        query = translator.record_retrieval_with_ids_query(
            self._dialect, category_id, table_name, len(ids)
        )
        physical = translator.physical_table_name(category_id, table_name)
        with self._unit_of_work("retrieving records", physical) as conn:
            rows = self._fetch_all(conn, query, ids)
            return self._decode_rows(category_id, table_name, rows, columns)

    def delete_range(
        self, category_id: int, table_name: str, time_from: int = -1, time_to: int = -1
    ) -> int:
        """
        Delete records with time_from <= timestamp < time_to (-1 leaves a side open).

        Returns the number of rows the backend reports as deleted.
        """
        query = translator.record_deletion_query(self._dialect, category_id, table_name)
        physical = translator.physical_table_name(category_id, table_name)
        time_from, time_to = translator.normalize_time_range(time_from, time_to)
        with self._unit_of_work("deleting records", physical) as conn:
            deleted = self._execute_update(conn, query, (time_from, time_to))
        log.debug(
            "Records deleted",
            extra={"operation": "delete_range", "table": physical, "rows": deleted},
        )
        return deleted

    def delete_by_ids(self, category_id: int, table_name: str, ids: Sequence[str]) -> int:
        """
        Delete the records with the given ids. An empty id list is a no-op.
        """
        ids = list(ids)
        if not ids:
            return 0
        query = translator.record_deletion_with_ids_query(
            self._dialect, category_id, table_name, len(ids)
        )
        physical = translator.physical_table_name(category_id, table_name)
        with self._unit_of_work("deleting records", physical) as conn:
            deleted = self._execute_update(conn, query, ids)
        log.debug(
            "Records deleted",
            extra={"operation": "delete_by_ids", "table": physical, "rows": deleted},
        )
        return deleted

    # ------------------------------------------------------------------ #
    # Extensions and lifecycle
    # ------------------------------------------------------------------ #

    def get_lock_provider(self) -> None:
        """Distributed locking is not available on this store."""
        return None

    def close(self) -> None:
        """Close the connection source if it supports closing."""
        close = getattr(self._source, "close", None)
        if callable(close):
            close()

    def __enter__(self) -> "RecordStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = ["RecordStore", "EmptyIdReads"]
