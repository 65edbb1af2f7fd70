"""
Query intermediate representation and composer.

A deliberately small model of a single-table SELECT or DELETE statement.
Translators and paginators produce ``QueryFragment`` values which are merged
into a base ``SqlQuery`` and finally rendered into query text with
positional ``?`` parameters.

Each section holds raw SQL text without its keyword, so ``limit`` is
``"20,10"`` rather than ``"LIMIT 20,10"``.

Example:
    >>> query = SqlQuery.select_from("`users` AS `us`", ["`us`.*"])
    >>> query = query.merge(QueryFragment(where=("`email` = ?",), params=("a@b.c",)))
    >>> compose_sql(query)
    RenderedQuery(text='SELECT `us`.* FROM `users` AS `us` WHERE (`email` = ?)', params=('a@b.c',))
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Literal, NamedTuple

from sqlaccess.exceptions import QueryCompositionError

QueryKind = Literal["select", "delete"]


@dataclass(frozen=True)
class QueryFragment:
    """
    A partial query to be merged into a base statement.

    Every section is optional. ``select``, ``join``, ``group_by`` and
    ``having`` only apply to SELECT statements.

    Attributes:
        select: Extra select-list entries
        join: Raw JOIN fragments (without the JOIN keyword)
        where: Boolean expressions, each ANDed with the rest
        params: Positional parameters for placeholders in this fragment
        group_by: GROUP BY entries
        having: HAVING expressions, each ANDed with the rest
        sort: ORDER BY entries (e.g. "`name` DESC")
        limit: "<offset>,<count>" or "<count>"; replaces any existing limit
    """

    select: tuple[str, ...] = ()
    join: tuple[str, ...] = ()
    where: tuple[str, ...] = ()
    params: tuple[Any, ...] = ()
    group_by: tuple[str, ...] = ()
    having: tuple[str, ...] = ()
    sort: tuple[str, ...] = ()
    limit: str | None = None

    @property
    def is_empty(self) -> bool:
        """True if merging this fragment would change nothing."""
        return self == EMPTY_FRAGMENT


EMPTY_FRAGMENT = QueryFragment()


@dataclass(frozen=True)
class SqlQuery:
    """
    A complete SELECT or DELETE statement.

    Invariant: the ``?`` placeholders across select, join, where and having
    (in render order) line up one to one with ``params``.

    Attributes:
        kind: "select" or "delete"
        source: Table expression, e.g. "`users` AS `us`"
        select: Select list (SELECT only)
        join: JOIN fragments (SELECT only)
        where: WHERE expressions
        params: Positional parameters
        group_by: GROUP BY entries (SELECT only)
        having: HAVING expressions (SELECT only)
        sort: ORDER BY entries
        limit: LIMIT text
    """

    kind: QueryKind
    source: str
    select: tuple[str, ...] = ()
    join: tuple[str, ...] = ()
    where: tuple[str, ...] = ()
    params: tuple[Any, ...] = ()
    group_by: tuple[str, ...] = ()
    having: tuple[str, ...] = ()
    sort: tuple[str, ...] = ()
    limit: str | None = None

    @classmethod
    def select_from(cls, source: str, select: list[str] | tuple[str, ...] = ("*",)) -> SqlQuery:
        """Create a SELECT statement over ``source``."""
        return cls(kind="select", source=source, select=tuple(select))

    @classmethod
    def delete_from(cls, source: str, limit: int | str | None = None) -> SqlQuery:
        """Create a DELETE statement over ``source``, optionally limited."""
        return cls(
            kind="delete",
            source=source,
            limit=str(limit) if limit is not None else None,
        )

    def merge(self, fragment: QueryFragment) -> SqlQuery:
        """Return a new query with ``fragment`` merged in. See ``merge_query``."""
        return merge_query(self, fragment)

    def render(self) -> RenderedQuery:
        """Render to query text and parameters. See ``compose_sql``."""
        return compose_sql(self)


class RenderedQuery(NamedTuple):
    """Final query text and positional parameters (None when there are none)."""

    text: str
    params: tuple[Any, ...] | None


def merge_query(base: SqlQuery, fragment: QueryFragment) -> SqlQuery:
    """
    Merge a fragment into a query.

    ``where``, ``params`` and ``sort`` are concatenated with the fragment's
    entries after the base's. A fragment ``limit`` replaces the base limit.
    For SELECT statements ``select``, ``join``, ``group_by`` and ``having``
    are concatenated as well; for DELETE statements they are ignored.

    Nothing is deduplicated: merging the same fragment twice yields the
    clause twice.
    """
    changes: dict[str, Any] = {
        "where": base.where + fragment.where,
        "params": base.params + fragment.params,
        "sort": base.sort + fragment.sort,
    }
    if fragment.limit:
        changes["limit"] = fragment.limit

    if base.kind == "select":
        changes["select"] = base.select + fragment.select
        changes["join"] = base.join + fragment.join
        changes["group_by"] = base.group_by + fragment.group_by
        changes["having"] = base.having + fragment.having

    return replace(base, **changes)


def _and_join(parts: tuple[str, ...]) -> str:
    return "(" + ") AND (".join(parts) + ")"


def compose_sql(query: SqlQuery) -> RenderedQuery:
    """
    Render a query to SQL text with positional parameters.

    SELECT renders as::

        SELECT <cols> FROM <source> [JOIN ...] [WHERE (w1) AND (w2)]
        [GROUP BY ...] [HAVING (h1) AND (h2)] [ORDER BY ...] [LIMIT ...]

    DELETE renders the same without select, join, group and having. Each
    WHERE/HAVING expression is parenthesized on its own, so an expression
    may contain an OR safely.

    Raises:
        QueryCompositionError: If the number of ``?`` placeholders in the
            rendered text differs from the number of parameters
    """
    if query.kind == "select":
        parts = [f"SELECT {', '.join(query.select)} FROM {query.source}"]
        if query.join:
            parts.append("JOIN " + " JOIN ".join(query.join))
        if query.where:
            parts.append("WHERE " + _and_join(query.where))
        if query.group_by:
            parts.append("GROUP BY " + ", ".join(query.group_by))
        if query.having:
            parts.append("HAVING " + _and_join(query.having))
    else:
        parts = [f"DELETE FROM {query.source}"]
        if query.where:
            parts.append("WHERE " + _and_join(query.where))

    if query.sort:
        parts.append("ORDER BY " + ", ".join(query.sort))
    if query.limit:
        parts.append(f"LIMIT {query.limit}")

    text = " ".join(parts)
    placeholder_count = text.count("?")
    if placeholder_count != len(query.params):
        raise QueryCompositionError(text, placeholder_count, len(query.params))

    return RenderedQuery(text=text, params=query.params or None)


__all__ = [
    "QueryKind",
    "QueryFragment",
    "EMPTY_FRAGMENT",
    "SqlQuery",
    "RenderedQuery",
    "merge_query",
    "compose_sql",
]
