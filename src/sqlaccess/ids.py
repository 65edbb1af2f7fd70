"""
Identifier codec.

Converts between compact binary identifiers (as stored in ``BINARY(16)``
columns) and their human-readable dashed UUID or plain hex text forms.

Example:
    >>> raw = text_to_id("0123456789abcdef0123456789abcdef")
    >>> id_to_text(raw)
    '01234567-89ab-cdef-0123-456789abcdef'
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Mapping
from typing import Any, Literal, overload
from uuid import uuid4

from sqlaccess.types import DefaultsSpec, Row

_NON_HEX = re.compile(r"[^a-fA-F0-9]")

_BINARY_TYPES = (bytes, bytearray, memoryview)


def is_binary(value: Any) -> bool:
    """Return True if value is a binary (buffer-like) value."""
    return isinstance(value, _BINARY_TYPES)


def id_to_text(value: bytes | bytearray | memoryview) -> str:
    """
    Render a binary identifier as dashed UUID text.

    No validation is performed. The first ten bytes are split 4-2-2-2 and
    everything after byte ten becomes the last group, so a value longer than
    16 bytes yields a longer last group and a shorter one yields short (or
    empty) groups.

    Args:
        value: Binary identifier

    Returns:
        Lowercase hex text with dashes at byte offsets 4, 6, 8 and 10
    """
    b = bytes(value)
    return f"{b[0:4].hex()}-{b[4:6].hex()}-{b[6:8].hex()}-{b[8:10].hex()}-{b[10:].hex()}"


def text_to_id(text: str) -> bytes:
    """
    Convert hex text (with or without dashes) to bytes.

    Raises:
        ValueError: If the text without dashes is not valid hex
    """
    return bytes.fromhex(text.replace("-", ""))


def buffers_to_hex(
    row: Mapping[str, Any],
    *,
    not_uuid: bool | Iterable[str] = False,
    exclude: Iterable[str] = (),
) -> Row:
    """
    Convert every binary field of a record to text.

    16-byte values become dashed UUID text unless ``not_uuid`` is True or
    names the field; all other binary values become plain hex.

    Args:
        row: Record to convert (not mutated)
        not_uuid: True to never format as UUID, or field names to skip UUID formatting for
        exclude: Field names to leave as binary

    Returns:
        A new dict with converted values
    """
    excluded = set(exclude)
    no_uuid_fields: set[str] = set() if isinstance(not_uuid, bool) else set(not_uuid)
    result = dict(row)
    for key, value in result.items():
        if not is_binary(value) or key in excluded:
            continue
        raw = bytes(value)
        if len(raw) == 16 and not_uuid is not True and key not in no_uuid_fields:
            result[key] = id_to_text(raw)
        else:
            result[key] = raw.hex()
    return result


def looks_like_hex(value: str) -> bool:
    """
    Return True if a string is hex-decodable after removing dashes.

    Any non-empty, even-length string of hex digits qualifies, so business
    values such as ``"1234"`` or ``"cafe"`` match too.
    """
    stripped = value.replace("-", "")
    return bool(stripped) and len(stripped) % 2 == 0 and _NON_HEX.search(stripped) is None


def hex_to_buffers(row: Mapping[str, Any]) -> Row:
    """
    Convert every hex-looking string field of a record to bytes.

    This is a heuristic: a numeric string or any other value made only of
    hex digits is converted as well. Use it only on records whose string
    fields are known not to collide with that alphabet.
    """
    result = dict(row)
    for key, value in result.items():
        if isinstance(value, str) and looks_like_hex(value):
            result[key] = text_to_id(value)
    return result


@overload
def new_id(kind: Literal["bytes"] = "bytes") -> bytes: ...


@overload
def new_id(kind: Literal["str"]) -> str: ...


def new_id(kind: Literal["bytes", "str"] = "bytes") -> bytes | str:
    """Generate a fresh random UUID identifier as 16 bytes or dashed text."""
    value = uuid4()
    return str(value) if kind == "str" else value.bytes


def bytes_id_default() -> dict[str, Callable[[], bytes]]:
    """Defaults spec generating a binary ``id`` for new resources."""
    return {"id": lambda: new_id("bytes")}


def str_id_default() -> dict[str, Callable[[], str]]:
    """Defaults spec generating a text ``id`` for new resources."""
    return {"id": lambda: new_id("str")}


def merge_defaults(*specs: DefaultsSpec) -> dict[str, Any]:
    """
    Combine defaults specs left to right; later specs win.

    Example:
        >>> defaults = merge_defaults(bytes_id_default(), {"created_ms": now_ms})
    """
    merged: dict[str, Any] = {}
    for spec in specs:
        merged.update(spec)
    return merged


__all__ = [
    "is_binary",
    "id_to_text",
    "text_to_id",
    "buffers_to_hex",
    "hex_to_buffers",
    "looks_like_hex",
    "new_id",
    "bytes_id_default",
    "str_id_default",
    "merge_defaults",
]
