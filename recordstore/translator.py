"""
Query translation: pure functions over dialect templates.

Turns a dialect template into concrete statement text for one table and one
id-set size, and maps the store's public pagination contract onto the
dialect's own indexing convention. Nothing here touches a connection.

Physical table naming
---------------------
A logical table `name` in category `c` lives in the physical table
``ANX_<c>_<name>``. Names compare case-insensitively (uppercased) because
backends disagree on identifier folding: PostgreSQL folds unquoted names to
lower case, SQLite keeps them as written.
"""

from __future__ import annotations

import re
from typing import Optional, Tuple

from recordstore.dialects.descriptor import (
    RECORD_IDS_PLACEHOLDER,
    TABLE_NAME_PLACEHOLDER,
    DialectDescriptor,
)
from recordstore.domain.models import (
    MAX_RECORDS_COUNT,
    MAX_TIMESTAMP,
    MIN_TIMESTAMP,
    UNBOUNDED,
)
from recordstore.errors import InvalidTableNameError

MANAGED_TABLE_PREFIX = "ANX"

_TABLE_NAME_RE = re.compile(r"^[A-Za-z0-9_]+$")


def table_prefix(category_id: int) -> str:
    """Physical prefix shared by every table of a category, e.g. ``ANX_3_``."""
    if isinstance(category_id, bool) or not isinstance(category_id, int) or category_id < 0:
        raise InvalidTableNameError(f"category id must be a non-negative integer, got {category_id!r}")
    return f"{MANAGED_TABLE_PREFIX}_{category_id}_"


def physical_table_name(category_id: int, table_name: str) -> str:
    """
    Derive the physical table name for a logical table.

    Raises
    ------
    InvalidTableNameError
        If the category id is negative or the name is not a plain identifier.
        The name is spliced into SQL text, so nothing else is accepted.
    """
    if not isinstance(table_name, str) or not _TABLE_NAME_RE.match(table_name):
        raise InvalidTableNameError(
            f"table name must match {_TABLE_NAME_RE.pattern}, got {table_name!r}"
        )
    return table_prefix(category_id) + table_name


def normalize_table_name(table_name: str) -> str:
    return table_name.upper()


def logical_table_name(physical_name: str, category_id: int) -> Optional[str]:
    """
    Map a catalog entry back to its logical name within `category_id`.

    Returns None for tables that are not managed tables of that category,
    including unrelated tables sharing the backend.
    """
    prefix = table_prefix(category_id)
    candidate = normalize_table_name(physical_name)
    if not candidate.startswith(prefix) or len(candidate) == len(prefix):
        return None
    return candidate[len(prefix):]


def with_table_name(template: str, category_id: int, table_name: str) -> str:
    """Replace the table name token with the physical table name."""
    return template.replace(TABLE_NAME_PLACEHOLDER, physical_table_name(category_id, table_name))


def dynamic_params(count: int, marker: str = "?") -> str:
    """
    Build a ``?,?,?`` style fragment of `count` markers.

    Raises
    ------
    ValueError
        If count is not positive; an empty IN list is malformed SQL.
    """
    if count <= 0:
        raise ValueError(f"dynamic parameter count must be positive, got {count}")
    return ",".join([marker] * count)


def with_id_params(template: str, count: int, marker: str = "?") -> str:
    """Replace the record ids token with `count` comma-joined markers."""
    return template.replace(RECORD_IDS_PLACEHOLDER, dynamic_params(count, marker))


def normalize_time_range(time_from: int, time_to: int) -> Tuple[int, int]:
    """Map -1 sentinels to the widest representable timestamps."""
    if time_from == UNBOUNDED:
        time_from = MIN_TIMESTAMP
    if time_to == UNBOUNDED:
        time_to = MAX_TIMESTAMP
    return time_from, time_to


def normalize_pagination(
    descriptor: DialectDescriptor, records_from: int, records_count: int
) -> Tuple[int, int]:
    """
    Convert caller pagination into the values bound to the dialect's query.

    Callers use 0-indexed, inclusive-of-from, count-of-rows semantics with -1
    meaning unbounded. The start bound is shifted by one for a 1-indexed
    backend and by one more for an exclusive bound. The second value is a row
    count passed through unchanged unless the dialect treats it as an end
    position, in which case the same shifts apply using the second-parameter
    flags. An unbounded count is never shifted.

    Parameters
    ----------
    descriptor : DialectDescriptor
        Supplies the pagination flags.
    records_from : int
        First row to return, or -1 for the start.
    records_count : int
        Number of rows to return, or -1 for all.

    Returns
    -------
    tuple[int, int]
        (adjusted_from, adjusted_count) to bind in that order.
    """
    if records_from == UNBOUNDED:
        records_from = 0
    if records_count == UNBOUNDED:
        records_count = MAX_RECORDS_COUNT

    if not descriptor.pagination_first_zero_indexed:
        records_from += 1
    if not descriptor.pagination_first_inclusive:
        records_from += 1

    if not descriptor.pagination_second_length and records_count != MAX_RECORDS_COUNT:
        if not descriptor.pagination_second_zero_indexed:
            records_count += 1
        if not descriptor.pagination_second_inclusive:
            records_count += 1
    return records_from, records_count


def record_retrieval_query(descriptor: DialectDescriptor, category_id: int, table_name: str) -> str:
    return with_table_name(descriptor.record_retrieval, category_id, table_name)


def record_retrieval_with_ids_query(
    descriptor: DialectDescriptor, category_id: int, table_name: str, id_count: int
) -> str:
    query = with_table_name(descriptor.record_retrieval_with_ids, category_id, table_name)
    return with_id_params(query, id_count, descriptor.param_marker)


def record_deletion_query(descriptor: DialectDescriptor, category_id: int, table_name: str) -> str:
    return with_table_name(descriptor.record_deletion, category_id, table_name)


def record_deletion_with_ids_query(
    descriptor: DialectDescriptor, category_id: int, table_name: str, id_count: int
) -> str:
    query = with_table_name(descriptor.record_deletion_with_ids, category_id, table_name)
    return with_id_params(query, id_count, descriptor.param_marker)


def record_insert_query(descriptor: DialectDescriptor, category_id: int, table_name: str) -> str:
    return with_table_name(descriptor.record_insert, category_id, table_name)


def record_table_init_queries(
    descriptor: DialectDescriptor, category_id: int, table_name: str
) -> Tuple[str, ...]:
    return tuple(
        with_table_name(query, category_id, table_name) for query in descriptor.record_table_init
    )


def record_table_delete_queries(
    descriptor: DialectDescriptor, category_id: int, table_name: str
) -> Tuple[str, ...]:
    return tuple(
        with_table_name(query, category_id, table_name) for query in descriptor.record_table_delete
    )


__all__ = [
    "MANAGED_TABLE_PREFIX",
    "table_prefix",
    "physical_table_name",
    "normalize_table_name",
    "logical_table_name",
    "with_table_name",
    "dynamic_params",
    "with_id_params",
    "normalize_time_range",
    "normalize_pagination",
    "record_retrieval_query",
    "record_retrieval_with_ids_query",
    "record_deletion_query",
    "record_deletion_with_ids_query",
    "record_insert_query",
    "record_table_init_queries",
    "record_table_delete_queries",
]
