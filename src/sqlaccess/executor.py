"""
SQL executors.

The store talks to the database through the small ``SqlExecutor`` protocol:
query text with positional ``?`` placeholders plus a parameter sequence in,
rows as dicts out. ``SQLAlchemyExecutor`` implements it on top of an
``AsyncEngine`` or ``AsyncConnection``.

Parameter binding:
- Each ``?`` is bound to the matching positional parameter
- A list or tuple parameter is expanded, so ``IN (?)`` bound to
  ``[1, 2, 3]`` becomes ``IN (1, 2, 3)`` and ``VALUES (?)`` bound to a
  row's values becomes one placeholder per value
- Literal colons in query text are escaped so they are not read as bind names
"""

from __future__ import annotations

import itertools
import re
from collections.abc import AsyncIterator, Sequence
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any, Protocol, runtime_checkable

from sqlalchemy import TextClause, bindparam, text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from sqlaccess.observability import Tracer, create_tracer
from sqlaccess.observability.attributes import ATTR_DB_OPERATION, ATTR_DB_SYSTEM
from sqlaccess.types import Row

_PLACEHOLDER = re.compile(r"\(\s*\?\s*\)|\?")
_FIRST_KEYWORD = re.compile(r"\s*(\w+)")


@runtime_checkable
class SqlExecutor(Protocol):
    """Protocol for running positional-parameter SQL."""

    async def execute(self, query: str, params: Sequence[Any] | None = None) -> list[Row]:
        """
        Execute a statement.

        Args:
            query: Query text with ``?`` placeholders
            params: Positional parameters, or None when there are none

        Returns:
            Result rows as dicts; an empty list for statements without rows
        """
        ...


@runtime_checkable
class TransactionalSqlExecutor(SqlExecutor, Protocol):
    """Executor that can scope a series of statements to one transaction."""

    def transaction(self) -> AbstractAsyncContextManager[SqlExecutor]:
        """Context manager yielding an executor bound to one transaction."""
        ...


def statement_operation(query: str) -> str:
    """First keyword of a statement, uppercased (e.g. 'SELECT')."""
    match = _FIRST_KEYWORD.match(query)
    return match.group(1).upper() if match else ""


def to_text_clause(
    query: str,
    params: Sequence[Any] | None,
) -> tuple[TextClause, dict[str, Any]]:
    """
    Convert positional query text to a SQLAlchemy text clause.

    Each ``?`` becomes a named bind ``:p<index>``; list and tuple parameters
    become expanding binds. SQLAlchemy renders an expanding bind with its
    own parentheses, so a ``(?)`` bound to a sequence loses its parentheses.

    Raises:
        ValueError: If the number of placeholders differs from the number of params
    """
    values = list(params or ())
    counter = itertools.count()

    def _name(match: re.Match[str]) -> str:
        index = next(counter)
        name = f":p{index}"
        if match.group(0) == "?":
            return name
        if index < len(values) and isinstance(values[index], (list, tuple)):
            return name
        return f"({name})"

    escaped = query.replace(":", "\\:")
    converted = _PLACEHOLDER.sub(_name, escaped)
    count = next(counter)
    if count != len(values):
        raise ValueError(
            f"Query has {count} placeholder(s) but {len(values)} parameter(s): {query}"
        )

    clause = text(converted)
    expanding = [
        bindparam(f"p{i}", expanding=True)
        for i, value in enumerate(values)
        if isinstance(value, (list, tuple))
    ]
    if expanding:
        clause = clause.bindparams(*expanding)

    bound = {
        f"p{i}": list(value) if isinstance(value, tuple) else value
        for i, value in enumerate(values)
    }
    return clause, bound


@asynccontextmanager
async def execute_with_connection(
    conn: AsyncConnection | AsyncEngine,
    transactional: bool = True,
) -> AsyncIterator[AsyncConnection]:
    """
    Yield a connection for a unit of work.

    An ``AsyncEngine`` opens a new connection, inside a transaction when
    ``transactional`` is True. An ``AsyncConnection`` is yielded as-is and
    the caller owns its transaction.
    """
    if isinstance(conn, AsyncEngine):
        if transactional:
            async with conn.begin() as connection:
                yield connection
        else:
            async with conn.connect() as connection:
                yield connection
    else:
        yield conn


class SQLAlchemyExecutor:
    """
    SqlExecutor backed by SQLAlchemy's async engine.

    Reads run on a plain connection; writes run inside a transaction that
    commits when the statement succeeds. When constructed with an
    ``AsyncConnection`` every statement runs on it and the caller owns the
    transaction.

    Example:
        >>> from sqlalchemy.ext.asyncio import create_async_engine
        >>> engine = create_async_engine("mysql+aiomysql://user:pw@localhost/app")
        >>> executor = SQLAlchemyExecutor(engine)
        >>> rows = await executor.execute("SELECT * FROM `users` WHERE `id` IN (?)", [[1, 2]])
    """

    def __init__(
        self,
        conn: AsyncEngine | AsyncConnection,
        *,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        """
        Initialize the executor.

        Args:
            conn: Engine or connection to run statements on
            tracer: Optional tracer (if not provided, one will be created)
            enable_tracing: Whether to enable OpenTelemetry tracing (default True)
        """
        self._conn = conn
        self._tracer = tracer if tracer is not None else create_tracer(__name__, enable_tracing)

    @property
    def dialect_name(self) -> str:
        return str(self._conn.dialect.name)

    async def execute(self, query: str, params: Sequence[Any] | None = None) -> list[Row]:
        operation = statement_operation(query)
        clause, bound = to_text_clause(query, params)

        with self._tracer.span(
            "sqlaccess.executor.execute",
            {
                ATTR_DB_SYSTEM: self.dialect_name,
                ATTR_DB_OPERATION: operation,
            },
        ):
            async with execute_with_connection(
                self._conn, transactional=operation != "SELECT"
            ) as conn:
                result = await conn.execute(clause, bound)
                if not result.returns_rows:
                    return []
                return [dict(row) for row in result.mappings().all()]

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[SQLAlchemyExecutor]:
        """
        Run a series of statements in one transaction.

        The transaction commits when the block exits normally and rolls back
        when it raises. On an ``AsyncConnection`` that is already in a
        transaction, a SAVEPOINT is used instead.
        """
        if isinstance(self._conn, AsyncEngine):
            async with self._conn.begin() as connection:
                yield SQLAlchemyExecutor(connection, tracer=self._tracer)
        elif self._conn.in_transaction():
            async with self._conn.begin_nested():
                yield self
        else:
            async with self._conn.begin():
                yield self


__all__ = [
    "SqlExecutor",
    "TransactionalSqlExecutor",
    "SQLAlchemyExecutor",
    "execute_with_connection",
    "statement_operation",
    "to_text_clause",
]
