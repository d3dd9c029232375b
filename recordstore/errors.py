"""
Error taxonomy for the record store.

Every failed public call raises exactly one RecordStoreError subclass. The
`kind` attribute lets callers branch on the failure class without matching on
concrete exception types, and driver exceptions are always chained as the
`__cause__` of the translated error.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    EXECUTION = "execution"
    INVALID_ARGUMENT = "invalid_argument"


class RecordStoreError(Exception):
    """Base class for all record store failures."""

    kind: ErrorKind = ErrorKind.EXECUTION


class ConfigurationError(RecordStoreError):
    """A required property is missing or a named resource cannot be resolved."""

    kind = ErrorKind.CONFIGURATION


class DialectValidationError(ConfigurationError):
    """A dialect descriptor carries malformed or unsupported templates."""


class ExecutionError(RecordStoreError):
    """
    A backend failure during statement execution.

    The in-flight transaction has already been rolled back when this is raised.
    """

    kind = ErrorKind.EXECUTION

    def __init__(self, operation: str, message: str, table: Optional[str] = None) -> None:
        self.operation = operation
        self.table = table
        self.message = message
        target = f" on '{table}'" if table else ""
        super().__init__(f"Error in {operation}{target}: {message}")


class InvalidArgumentError(RecordStoreError, ValueError):
    """A caller-supplied argument was rejected before reaching the backend."""

    kind = ErrorKind.INVALID_ARGUMENT


class InvalidTableNameError(InvalidArgumentError):
    pass


class EmptyIdListError(InvalidArgumentError):
    """Raised for id-based reads with no ids when the store rejects them."""


class ValueEncodingError(InvalidArgumentError):
    """Record values the codec cannot encode."""


__all__ = [
    "ErrorKind",
    "RecordStoreError",
    "ConfigurationError",
    "DialectValidationError",
    "ExecutionError",
    "InvalidArgumentError",
    "InvalidTableNameError",
    "EmptyIdListError",
    "ValueEncodingError",
]
