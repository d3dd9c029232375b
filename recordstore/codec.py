"""
Record value codec.

The store moves a record's values to and from a single blob column and never
looks inside it. The codec is the only component that knows the encoding, and
column projection happens here on decode rather than in SQL.

JSON has no binary or tuple type, so JsonRecordCodec tags them as
single-key objects (``{"$bytes": "<base64>"}``, ``{"$tuple": [...]}``). A
mapping value that happens to look like a tag is wrapped in ``{"$map": ...}``
so it decodes back unchanged.
"""

from __future__ import annotations

import base64
import json
from typing import Any, Dict, Mapping, Optional, Protocol, Set, runtime_checkable

_BYTES_TAG = "$bytes"
_TUPLE_TAG = "$tuple"
_MAP_TAG = "$map"
_TAGS = frozenset((_BYTES_TAG, _TUPLE_TAG, _MAP_TAG))


@runtime_checkable
class RecordCodec(Protocol):
    """Encodes a value mapping to bytes and back."""

    def encode(self, values: Mapping[str, Any]) -> bytes:
        """
        Raises TypeError or ValueError for values the codec cannot represent.
        """
        ...

    def decode(self, data: bytes, columns: Optional[Set[str]] = None) -> Dict[str, Any]:
        """
        Decode a blob, keeping only `columns` when given (None or empty keeps all).
        """
        ...


def _to_json(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return {_BYTES_TAG: base64.b64encode(bytes(value)).decode("ascii")}
    if isinstance(value, tuple):
        return {_TUPLE_TAG: [_to_json(item) for item in value]}
    if isinstance(value, list):
        return [_to_json(item) for item in value]
    if isinstance(value, Mapping):
        encoded = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"value keys must be strings, got {type(key).__name__}")
            encoded[key] = _to_json(item)
        if len(encoded) == 1 and next(iter(encoded)) in _TAGS:
            return {_MAP_TAG: encoded}
        return encoded
    if value is None or isinstance(value, (str, int, float)):
        return value
    raise TypeError(f"values of type {type(value).__name__} cannot be encoded")


def _from_json(value: Any) -> Any:
    if isinstance(value, list):
        return [_from_json(item) for item in value]
    if isinstance(value, dict):
        if len(value) == 1:
            tag, payload = next(iter(value.items()))
            if tag == _BYTES_TAG:
                return base64.b64decode(payload)
            if tag == _TUPLE_TAG:
                return tuple(_from_json(item) for item in payload)
            if tag == _MAP_TAG:
                return {key: _from_json(item) for key, item in payload.items()}
        return {key: _from_json(item) for key, item in value.items()}
    return value


class JsonRecordCodec:
    """
    UTF-8 JSON codec. Key order is preserved on the round trip.

    Supports None, bool, int, finite float, str, bytes, and lists, tuples and
    string-keyed mappings of those. Anything else is rejected on encode.
    """

    def encode(self, values: Mapping[str, Any]) -> bytes:
        payload = {key: _to_json(value) for key, value in values.items()}
        return json.dumps(
            payload, separators=(",", ":"), ensure_ascii=False, allow_nan=False
        ).encode("utf-8")

    def decode(self, data: bytes, columns: Optional[Set[str]] = None) -> Dict[str, Any]:
        # psycopg returns bytea as memoryview
        if isinstance(data, memoryview):
            data = data.tobytes()
        values: Dict[str, Any] = (
            {key: _from_json(value) for key, value in json.loads(data.decode("utf-8")).items()}
            if data
            else {}
        )
        if not columns:
            return values
        return {name: value for name, value in values.items() if name in columns}


__all__ = ["RecordCodec", "JsonRecordCodec"]
