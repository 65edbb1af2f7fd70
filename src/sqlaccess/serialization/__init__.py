"""
Serialization utilities for sqlaccess.

JSON serialization with support for binary ids, UUIDs, decimals and
datetimes, used for cache keys and log output.

Example:
    >>> from sqlaccess.serialization import json_dumps
    >>> json_dumps({"id": "abcde"})
    '{"id": "abcde"}'
"""

from sqlaccess.serialization.json import (
    SqlAccessJSONEncoder,
    json_dumps,
    json_loads,
)

__all__ = [
    "SqlAccessJSONEncoder",
    "json_dumps",
    "json_loads",
]
