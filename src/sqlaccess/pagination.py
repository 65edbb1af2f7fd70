"""
Pagination and sort parsing for collection reads.

Cursors are opaque base64 tokens wrapping ``num:<page>``, where pages are
1-based. They are stateless: the next cursor is always ``num:<page + 1>``
and it is up to the store to drop it when a short page signals the end of
the collection.

Sort strings are comma-separated clauses such as ``"-createdMs,name"``: a
leading ``-`` sorts descending, a leading ``+`` or no sign ascending.
"""

from __future__ import annotations

import base64
import binascii
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from typing import Any, Literal, NamedTuple

from sqlaccess.exceptions import BadRequestError
from sqlaccess.query import QueryFragment
from sqlaccess.translate import sanitize_field_name

SortDirection = Literal["ASC", "DESC"]
SortClause = tuple[str, SortDirection]

# (resource_type, sort_string) -> clauses
SortParser = Callable[[str, str], list[SortClause]]

DEFAULT_PAGE_SIZE = 25

_CURSOR_PATTERN = re.compile(r"num:([1-9][0-9]*)")
_SORT_CLAUSE_PATTERN = re.compile(r"([+-]?)(.+)")
_SORT_SPLIT_PATTERN = re.compile(r"\s*,\s*")

_SORT_DIRECTIONS: dict[str, SortDirection] = {
    "": "ASC",
    "+": "ASC",
    "-": "DESC",
}


@dataclass(frozen=True)
class PageParams:
    """
    Requested page of a collection.

    Attributes:
        size: Page size; None or non-positive means the store default
        cursor: Opaque cursor from a previous page's ``next_cursor``
    """

    size: int | None = None
    cursor: str | None = None


@dataclass(frozen=True)
class CollectionParams:
    """
    Pagination and sorting for a collection read.

    Attributes:
        page: Page request, or None for the first page at the default size
        sort: Sort string, e.g. "-createdMs,name"
    """

    page: PageParams | None = None
    sort: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> CollectionParams:
        """
        Build from the wire shape ``{"__pg": {"size", "cursor"}, "__sort": str}``.

        Example:
            >>> CollectionParams.from_mapping({"__pg": {"size": 10}, "__sort": "-name"})
            CollectionParams(page=PageParams(size=10, cursor=None), sort='-name')
        """
        pg = data.get("__pg")
        page = None
        if pg is not None:
            page = PageParams(size=pg.get("size"), cursor=pg.get("cursor"))
        return cls(page=page, sort=data.get("__sort"))


@dataclass(frozen=True)
class PageMeta:
    """
    Page information returned alongside a collection.

    Attributes:
        size: Page size used for the read
        sort: Sort string used, if any
        prev_cursor: The cursor the caller passed in (echoed back)
        next_cursor: Cursor for the following page; None at end of collection
    """

    size: int
    sort: str | None = None
    prev_cursor: str | None = None
    next_cursor: str | None = None

    def end_of_collection(self) -> PageMeta:
        """Return a copy with the next cursor cleared."""
        return replace(self, next_cursor=None)


class CollectionQuery(NamedTuple):
    """Query fragment and page metadata derived from collection params."""

    fragment: QueryFragment
    meta: PageMeta


def encode_cursor(page: int) -> str:
    """Encode a 1-based page number as an opaque cursor."""
    return base64.b64encode(f"num:{page}".encode()).decode("ascii")


def decode_cursor(cursor: str) -> int:
    """
    Decode an opaque cursor to its 1-based page number.

    Raises:
        BadRequestError: If the cursor is not base64 for ``num:<positive int>``
    """
    try:
        decoded = base64.b64decode(cursor, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError):
        decoded = ""

    match = _CURSOR_PATTERN.fullmatch(decoded)
    if not match:
        raise BadRequestError(
            f"Invalid cursor: '{cursor}'. Cursors are expected to be base64-encoded "
            f"strings matching the regex /^num:[1-9][0-9]*$/."
        )
    return int(match.group(1))


def paginate(
    page: PageParams | None,
    default_page_size: int = DEFAULT_PAGE_SIZE,
) -> tuple[QueryFragment, PageMeta]:
    """
    Turn a page request into a LIMIT fragment and page metadata.

    Page ``n`` of size ``s`` yields ``LIMIT (n-1)*s,s``. The returned
    ``next_cursor`` always points at page ``n + 1``.

    Raises:
        BadRequestError: If the cursor cannot be decoded
    """
    number = 1
    size = default_page_size
    cursor = None

    if page is not None:
        if page.size and page.size > 0:
            size = page.size
        cursor = page.cursor or None
        if cursor:
            number = decode_cursor(cursor)

    fragment = QueryFragment(limit=f"{(number - 1) * size},{size}")
    meta = PageMeta(size=size, prev_cursor=cursor, next_cursor=encode_cursor(number + 1))
    return fragment, meta


def parse_sort(sort: str) -> list[SortClause]:
    """
    Parse a sort string into (field, direction) clauses.

    Field names are returned as given; they are NOT validated against the
    resource and NOT sanitized here.

    Example:
        >>> parse_sort("-name, +type")
        [('name', 'DESC'), ('type', 'ASC')]

    Raises:
        BadRequestError: If a clause does not match ``^([+-]?)(.+)$``
    """
    clauses: list[SortClause] = []
    for clause in _SORT_SPLIT_PATTERN.split(sort.strip()):
        if clause == "":
            continue
        match = _SORT_CLAUSE_PATTERN.fullmatch(clause)
        if not match:
            raise BadRequestError(
                f"Invalid sort clause: '{clause}'. Sort must be a comma-separated list of "
                f"clauses matching the regex /^([+-]?)(.+)$/"
            )
        clauses.append((match.group(2), _SORT_DIRECTIONS[match.group(1)]))
    return clauses


def default_sort_parser(resource_type: str, sort: str) -> list[SortClause]:
    """Sort parser used when a resource type registers none."""
    return parse_sort(sort)


def process_collection_params(
    resource_type: str,
    params: CollectionParams | None,
    default_page_size: int = DEFAULT_PAGE_SIZE,
    sort_parser: SortParser = default_sort_parser,
) -> CollectionQuery:
    """
    Combine pagination and sorting into one query fragment.

    Sort field names are sanitized before being embedded into ORDER BY,
    since identifiers cannot be bound as parameters.
    """
    fragment, meta = paginate(params.page if params else None, default_page_size)

    sort = params.sort.strip() if params and params.sort else None
    if sort:
        order = tuple(
            f"`{sanitize_field_name(field)}` {direction}"
            for field, direction in sort_parser(resource_type, sort)
        )
        fragment = replace(fragment, sort=order)
        meta = replace(meta, sort=sort)

    return CollectionQuery(fragment=fragment, meta=meta)


# (resource_type, params, default_page_size, sort_parser) -> CollectionQuery
CollectionParamsProcessor = Callable[
    [str, CollectionParams | None, int, SortParser], CollectionQuery
]


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "SortDirection",
    "SortClause",
    "SortParser",
    "PageParams",
    "CollectionParams",
    "PageMeta",
    "CollectionQuery",
    "CollectionParamsProcessor",
    "encode_cursor",
    "decode_cursor",
    "paginate",
    "parse_sort",
    "default_sort_parser",
    "process_collection_params",
]
