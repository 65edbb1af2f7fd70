"""Common type definitions for the sqlaccess library."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Final, TypeAlias


class _Unset:
    """
    Sentinel type for "no value supplied".

    Distinct from ``None``: ``None`` means SQL ``NULL`` while ``UNSET``
    means the caller did not constrain the field at all.
    """

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "UNSET"


UNSET: Final = _Unset()

# Scalar values a driver can bind
SqlPrimitive: TypeAlias = (
    str | int | float | bool | bytes | Decimal | datetime | date | None
)

# A database row / resource record
Row: TypeAlias = dict[str, Any]
Resource: TypeAlias = Mapping[str, Any]

# Default spec values: a literal or a zero-argument generator
DefaultValue: TypeAlias = SqlPrimitive | Callable[[], Any]
DefaultsSpec: TypeAlias = Mapping[str, DefaultValue]

# Per-call logger: a stdlib logger or adapter
LoggerLike: TypeAlias = logging.Logger | logging.LoggerAdapter  # type: ignore[type-arg]


__all__ = [
    "UNSET",
    "SqlPrimitive",
    "Row",
    "Resource",
    "DefaultValue",
    "DefaultsSpec",
    "LoggerLike",
]
