"""
Utilities package for the record store.

Exports shared helpers for cross-cutting concerns. Keep this package
lightweight and free of storage logic.
"""

from recordstore.utils.logging import JsonFormatter, configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
    "JsonFormatter",
]
