"""
Domain models for the record store.

A Record is an opaque, schema-less row: an id that is unique within its
logical table, the category (tenant/namespace) and logical table it belongs
to, an epoch-millisecond timestamp, and an ordered mapping of named values.
Records are immutable once constructed and only live for the duration of the
call that produces or consumes them.
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Any, Dict, Mapping, Tuple

from pydantic import BaseModel, Field, field_serializer, field_validator

UNBOUNDED = -1
MAX_RECORDS_COUNT = 2**31 - 1
MIN_TIMESTAMP = -(2**63)
MAX_TIMESTAMP = 2**63 - 1


class Record(BaseModel):
    """
    Representation of a single analytics record.

    `values` is exposed as a read-only mapping; the values themselves are
    stored as given.
    """

    id: str = Field(..., min_length=1, description="Caller-assigned id, unique within a table.")
    category_id: int = Field(..., description="Numeric namespace the table belongs to.")
    table_name: str = Field(..., description="Logical (unprefixed) table name.")
    timestamp: int = Field(..., description="Epoch milliseconds.")
    values: Mapping[str, Any] = Field(default_factory=dict, description="Named record values.")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "arbitrary_types_allowed": False,
    }

    @field_validator("values", mode="after")
    @classmethod
    def _freeze_values(cls, values: Mapping[str, Any]) -> Mapping[str, Any]:
        return MappingProxyType(dict(values))

    @field_serializer("values")
    def _dump_values(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        return dict(values)

    @property
    def identity(self) -> Tuple[int, str, str]:
        """(category_id, uppercased table_name, id); table names compare case-insensitively."""
        return (self.category_id, self.table_name.upper(), self.id)


class PaginationRequest(BaseModel):
    """
    Caller-side pagination: 0-indexed, inclusive `records_from`, row count.

    `-1` in either field means unbounded.
    """

    records_from: int = UNBOUNDED
    records_count: int = UNBOUNDED

    model_config = {"frozen": True}

    @field_validator("records_from", "records_count")
    @classmethod
    def _check_bound(cls, value: int) -> int:
        if value < UNBOUNDED:
            raise ValueError("pagination bounds must be >= 0, or -1 for unbounded")
        return value


__all__ = [
    "Record",
    "PaginationRequest",
    "UNBOUNDED",
    "MAX_RECORDS_COUNT",
    "MIN_TIMESTAMP",
    "MAX_TIMESTAMP",
]
