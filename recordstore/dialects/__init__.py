"""
Dialects package for the record store.

Re-exports the descriptor type and the built-in dialect registry so callers
can import from `recordstore.dialects` directly.
"""

from recordstore.dialects.builtin import available_dialects, get_dialect
from recordstore.dialects.descriptor import (
    RECORD_IDS_PLACEHOLDER,
    TABLE_NAME_PLACEHOLDER,
    DialectDescriptor,
)

__all__ = [
    "DialectDescriptor",
    "RECORD_IDS_PLACEHOLDER",
    "TABLE_NAME_PLACEHOLDER",
    "available_dialects",
    "get_dialect",
]
