"""
Domain package for the record store.

Exports the record and pagination models shared by the translator, the store
engine and the CLI. Keep this package focused on data definitions.
"""

from recordstore.domain.models import (
    MAX_RECORDS_COUNT,
    MAX_TIMESTAMP,
    MIN_TIMESTAMP,
    UNBOUNDED,
    PaginationRequest,
    Record,
)

__all__ = [
    "Record",
    "PaginationRequest",
    "UNBOUNDED",
    "MAX_RECORDS_COUNT",
    "MIN_TIMESTAMP",
    "MAX_TIMESTAMP",
]
