"""
Dialect descriptor: the per-backend configuration bundle.

A descriptor holds every SQL template the store needs plus the flags that
describe how the backend's pagination parameters are indexed. Polymorphism
over backends is data: the store engine is a single implementation
parameterized by one of these, never subclassed per backend.

Templates may only contain two placeholder tokens:

- ``{{TABLE_NAME}}``: replaced with the physical table name.
- ``{{RECORD_IDS}}``: replaced with a ``?,?,?`` style list sized to an id set.

Any other ``{{...}}`` token is rejected when the descriptor is built, so a
typo in a template surfaces at startup rather than as malformed SQL.
"""

from __future__ import annotations

import re
from typing import Iterator, Tuple

from pydantic import BaseModel, ValidationError, field_validator, model_validator

from recordstore.errors import DialectValidationError

TABLE_NAME_PLACEHOLDER = "{{TABLE_NAME}}"
RECORD_IDS_PLACEHOLDER = "{{RECORD_IDS}}"
SUPPORTED_PLACEHOLDERS = frozenset({TABLE_NAME_PLACEHOLDER, RECORD_IDS_PLACEHOLDER})

_TOKEN_RE = re.compile(r"\{\{[^}]*\}\}")

# Templates bound to a record table; all of them need the table name token.
_RECORD_TEMPLATES = (
    "record_insert",
    "record_retrieval",
    "record_retrieval_with_ids",
    "record_deletion",
    "record_deletion_with_ids",
)
_RECORD_TEMPLATE_LISTS = ("record_table_init", "record_table_delete")
_ID_LIST_TEMPLATES = ("record_retrieval_with_ids", "record_deletion_with_ids")


class DialectDescriptor(BaseModel):
    """
    Immutable description of one SQL backend.

    Attributes
    ----------
    name : str
        Short machine-friendly identifier (e.g. "postgresql").
    param_marker : str
        Positional placeholder the driver expects: "?" (qmark) or "%s" (format).
    record_insert : str
        Insert of one (record_id, timestamp, data) row.
    record_retrieval : str
        Range select bound with (time_from, time_to, records_from, records_count).
    record_retrieval_with_ids / record_deletion_with_ids : str
        Id-set select/delete; must contain the record ids token.
    record_deletion : str
        Range delete bound with (time_from, time_to).
    record_table_init / record_table_delete : tuple[str, ...]
        Ordered DDL run by create_table / drop_table.
    system_table_init : tuple[str, ...]
        Ordered bootstrap DDL for the store's bookkeeping tables.
    system_table_check : str
        Probe returning at least one row iff the bookkeeping tables exist.
    list_tables : str
        Catalog query whose first column is a table name.
    pagination_first_zero_indexed, pagination_first_inclusive : bool
        Convention of the start-of-range parameter.
    pagination_second_length : bool
        Whether the second range parameter is a row count rather than an end.
    pagination_second_zero_indexed, pagination_second_inclusive : bool
        Convention of the end parameter; ignored when it is a length.
    """

    name: str
    param_marker: str = "?"

    record_insert: str
    record_retrieval: str
    record_retrieval_with_ids: str
    record_deletion: str
    record_deletion_with_ids: str
    record_table_init: Tuple[str, ...]
    record_table_delete: Tuple[str, ...]
    system_table_init: Tuple[str, ...] = ()
    system_table_check: str
    list_tables: str

    pagination_first_zero_indexed: bool = True
    pagination_first_inclusive: bool = True
    pagination_second_length: bool = True
    pagination_second_zero_indexed: bool = True
    pagination_second_inclusive: bool = True

    model_config = {
        "frozen": True,
        "extra": "forbid",
    }

    @field_validator("param_marker")
    @classmethod
    def _check_marker(cls, value: str) -> str:
        if value not in ("?", "%s"):
            raise ValueError(f"unsupported param marker '{value}'")
        return value

    def templates(self) -> Iterator[Tuple[str, str]]:
        """Yield (field name, template) for every SQL template, lists flattened."""
        for field_name in (
            *_RECORD_TEMPLATES,
            "record_table_init",
            "record_table_delete",
            "system_table_init",
            "system_table_check",
            "list_tables",
        ):
            value = getattr(self, field_name)
            if isinstance(value, tuple):
                for index, query in enumerate(value):
                    yield f"{field_name}[{index}]", query
            else:
                yield field_name, value

    @model_validator(mode="after")
    def _check_templates(self) -> "DialectDescriptor":
        for field_name, query in self.templates():
            unknown = set(_TOKEN_RE.findall(query)) - SUPPORTED_PLACEHOLDERS
            if unknown:
                raise ValueError(
                    f"{field_name} uses unsupported placeholder(s): {', '.join(sorted(unknown))}"
                )
        for field_name in _RECORD_TEMPLATES:
            if TABLE_NAME_PLACEHOLDER not in getattr(self, field_name):
                raise ValueError(f"{field_name} must reference {TABLE_NAME_PLACEHOLDER}")
        for field_name in _RECORD_TEMPLATE_LISTS:
            queries = getattr(self, field_name)
            if not queries:
                raise ValueError(f"{field_name} needs at least one statement")
        for field_name in _ID_LIST_TEMPLATES:
            if RECORD_IDS_PLACEHOLDER not in getattr(self, field_name):
                raise ValueError(f"{field_name} must reference {RECORD_IDS_PLACEHOLDER}")
        return self

    @classmethod
    def build(cls, **fields: object) -> "DialectDescriptor":
        """
        Construct a descriptor, reporting problems as DialectValidationError.
        """
        try:
            return cls(**fields)
        except ValidationError as exc:
            name = fields.get("name", "<unnamed>")
            raise DialectValidationError(f"Invalid dialect '{name}': {exc}") from exc


__all__ = [
    "DialectDescriptor",
    "TABLE_NAME_PLACEHOLDER",
    "RECORD_IDS_PLACEHOLDER",
    "SUPPORTED_PLACEHOLDERS",
]
