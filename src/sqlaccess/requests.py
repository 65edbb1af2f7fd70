"""
Request values for store reads.

A read is described by one ``GetRequest``: a filter (zero or more matches),
a constraint (at most one match), or neither (the whole collection), plus
optional collection params, a throw flag and a per-call logger.

``GetRequest.from_args`` accepts the older positional call shapes, where
the same argument slot could hold a logger, collection params, a filter or
a constraint, and works out which is which.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from sqlaccess.pagination import CollectionParams
from sqlaccess.translate import FILTER_TAG, FILTER_TAG_VALUE
from sqlaccess.types import UNSET, LoggerLike

ReadMode = Literal["collection", "constraint"]

_LOGGER_METHODS = ("debug", "info", "warning", "error")
_COLLECTION_PARAM_KEYS = ("__pg", "__sort")


@dataclass(frozen=True)
class Filter:
    """
    Domain filter matching zero or more resources.

    Field values follow the translator rules: ``None`` matches SQL NULL,
    sequences match any member, and ``UNSET`` fields are ignored.

    Example:
        >>> Filter.of(status="active", deletedMs=None)
    """

    fields: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def of(cls, **fields: Any) -> Filter:
        return cls(fields=fields)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Filter:
        """Build from a tagged mapping such as ``{"_t": "filter", "status": "active"}``."""
        return cls(fields={k: v for k, v in data.items() if k != FILTER_TAG})

    def active_fields(self) -> list[tuple[str, Any]]:
        """Fields that constrain the query, in declaration order."""
        return [
            (k, v) for k, v in self.fields.items() if k != FILTER_TAG and v is not UNSET
        ]


@dataclass(frozen=True)
class Constraint:
    """
    Unique constraint matching at most one resource, e.g. ``{"id": ...}``.

    A value of ``UNSET`` makes the constraint incomplete: it cannot address
    any resource.
    """

    fields: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def of(cls, **fields: Any) -> Constraint:
        return cls(fields=fields)

    @property
    def is_complete(self) -> bool:
        return all(v is not UNSET for v in self.fields.values())


@dataclass(frozen=True)
class GetRequest:
    """
    A single read against the store.

    Attributes:
        filter: Filter for a collection read
        constraint: Constraint for a single-resource read
        params: Pagination and sorting (collection reads only)
        throw: Raise NotFoundError instead of returning None (constraint reads only)
        logger: Logger for this call; the module logger when None
    """

    filter: Filter | None = None
    constraint: Constraint | None = None
    params: CollectionParams | None = None
    throw: bool = False
    logger: LoggerLike | None = None

    def __post_init__(self) -> None:
        if self.filter is not None and self.constraint is not None:
            raise ValueError("A request takes either a filter or a constraint, not both")

    @property
    def mode(self) -> ReadMode:
        """``constraint`` for single-resource reads, ``collection`` otherwise."""
        return "constraint" if self.constraint is not None else "collection"

    @classmethod
    def from_args(cls, *args: Any) -> GetRequest:
        """
        Build a request from a legacy positional call.

        Supported shapes::

            (logger,)
            (params, logger)
            (filter, logger)
            (filter, params, logger)
            (constraint, logger)
            (constraint, logger, throw)

        The logger is found by shape. Of the remaining arguments, a value
        tagged ``_t == "filter"`` is a filter, a value that looks like
        collection params (empty, or has ``__pg``/``__sort``) is params,
        and anything else is a constraint. A boolean in the last slot is
        the throw flag.
        """
        slots = (list(args) + [None, None, None])[:3]
        if is_logger(slots[0]):
            log_index = 0
        elif is_logger(slots[1]):
            log_index = 1
        else:
            log_index = 2
        logger = slots[log_index] if is_logger(slots[log_index]) else None
        first, second = [s for i, s in enumerate(slots) if i != log_index]

        throw = second if isinstance(second, bool) else False

        if first is None and (second is None or isinstance(second, bool)):
            return cls(throw=throw, logger=logger)

        if is_filter(first):
            params = None
            if second is not None and not isinstance(second, bool):
                params = _as_collection_params(second)
            return cls(filter=_as_filter(first), params=params, throw=throw, logger=logger)

        if is_collection_params(first):
            return cls(params=_as_collection_params(first), throw=throw, logger=logger)

        return cls(constraint=_as_constraint(first), throw=throw, logger=logger)


def is_logger(value: Any) -> bool:
    """Return True if value has the leveled methods of a logger."""
    return value is not None and all(
        callable(getattr(value, name, None)) for name in _LOGGER_METHODS
    )


def is_filter(value: Any) -> bool:
    """Return True if value is a Filter or a mapping tagged as one."""
    if isinstance(value, Filter):
        return True
    return isinstance(value, Mapping) and value.get(FILTER_TAG) == FILTER_TAG_VALUE


def is_collection_params(value: Any) -> bool:
    """Return True if value is CollectionParams or a mapping shaped like them."""
    if isinstance(value, CollectionParams):
        return True
    if not isinstance(value, Mapping):
        return False
    return len(value) == 0 or any(key in value for key in _COLLECTION_PARAM_KEYS)


def _as_filter(value: Filter | Mapping[str, Any]) -> Filter:
    return value if isinstance(value, Filter) else Filter.from_mapping(value)


def _as_constraint(value: Constraint | Mapping[str, Any]) -> Constraint:
    return value if isinstance(value, Constraint) else Constraint(fields=dict(value))


def _as_collection_params(value: CollectionParams | Mapping[str, Any]) -> CollectionParams:
    if isinstance(value, CollectionParams):
        return value
    return CollectionParams.from_mapping(value)


__all__ = [
    "ReadMode",
    "Filter",
    "Constraint",
    "GetRequest",
    "is_logger",
    "is_filter",
    "is_collection_params",
]
