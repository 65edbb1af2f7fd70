"""
JSON serialization utilities for sqlaccess types.

This module provides utilities for JSON serialization of values that come
out of SQL rows but are not natively JSON-serializable, such as binary ids,
UUIDs, decimals and datetimes. It is used to build cache keys and to render
queries and parameters in log lines.

Example:
    >>> from sqlaccess.serialization import json_dumps
    >>>
    >>> json_dumps({"id": b"\\x01\\x02"})
    '{"id": "0102"}'
"""

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlaccess.types import UNSET


class SqlAccessJSONEncoder(json.JSONEncoder):
    """
    Custom JSON encoder for SQL values.

    Serializes:
    - bytes/bytearray/memoryview: lowercase hex string
    - UUID objects: string representation
    - datetime/date objects: ISO 8601 format string
    - Decimal: string representation (no precision loss)
    - sets/frozensets: sorted lists
    - UNSET: the string "UNSET" (log output only)
    """

    def default(self, obj: Any) -> Any:
        """
        Convert non-serializable objects to JSON-serializable formats.

        Raises:
            TypeError: If object type is not supported
        """
        if obj is UNSET:
            return "UNSET"
        if isinstance(obj, (bytes, bytearray, memoryview)):
            return bytes(obj).hex()
        if isinstance(obj, UUID):
            return str(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, Decimal):
            return str(obj)
        if isinstance(obj, (set, frozenset)):
            return sorted(obj, key=repr)
        return super().default(obj)


def json_dumps(obj: Any) -> str:
    """
    Serialize object to JSON string with SQL value support.

    Key order is preserved, so two mappings with the same items in a
    different order produce different strings.
    """
    return json.dumps(obj, cls=SqlAccessJSONEncoder)


def json_loads(s: str) -> Any:
    """
    Deserialize JSON string to Python object.

    Hex strings are NOT converted back to bytes; that's the caller's job.
    """
    return json.loads(s)


__all__ = [
    "SqlAccessJSONEncoder",
    "json_dumps",
    "json_loads",
]
