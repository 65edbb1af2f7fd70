"""
Resource store.

``ResourceStore`` gives every configured resource type uniform ``get``,
``save``, ``update`` and ``delete`` operations on top of a SQL executor:

- reads build a query from a filter or a constraint, paginate and sort
  collections, and cache constraint lookups per resource type
- writes reconcile the incoming resource against the stored one, issue a
  minimal INSERT or UPDATE, invalidate the type's cached lookups and emit
  audit records and resource events
- deletes consume matching resources in batches so that every deleted
  resource gets its own audit record and event

Side effects after a write are best-effort: the database write is the
source of truth, and a failure to publish an event is logged, not raised.

Example:
    >>> store = ResourceStore(
    ...     SQLAlchemyExecutor(engine),
    ...     StoreConfig(resources={"users": ResourceConfig(defaults=str_id_default())}),
    ...     cache=InMemoryCache(),
    ...     publisher=InMemoryPublisher(),
    ... )
    >>> user = await store.save("users", {"name": "Jo"}, auth)
    >>> same = await store.get_one("users", {"id": user["id"]}, throw=True)
    >>> page = await store.get_collection("users", Filter.of(name="Jo"))
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Iterator, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

from sqlaccess.audit import AuditClient
from sqlaccess.bus import Publisher
from sqlaccess.cache import Cache, NullCache
from sqlaccess.config import ResourceConfig, StoreConfig
from sqlaccess.events import ResourceAction, ResourceEvent
from sqlaccess.exceptions import BadRequestError, InternalServerError, NotFoundError
from sqlaccess.executor import SqlExecutor
from sqlaccess.ids import buffers_to_hex, id_to_text, is_binary
from sqlaccess.observability import Tracer, create_tracer
from sqlaccess.observability.attributes import (
    ATTR_BATCH_SIZE,
    ATTR_CHANGE_COUNT,
    ATTR_DB_OPERATION,
    ATTR_PAGE_SIZE,
    ATTR_QUERY_FILTER_COUNT,
    ATTR_QUERY_MODE,
    ATTR_RESOURCE_ID,
    ATTR_RESOURCE_TYPE,
)
from sqlaccess.pagination import CollectionParams, PageMeta, PageParams
from sqlaccess.query import QueryFragment, SqlQuery, compose_sql
from sqlaccess.reconcile import Changes, changes_to_dict, reconcile
from sqlaccess.requests import Constraint, Filter, GetRequest, is_filter
from sqlaccess.serialization import json_dumps
from sqlaccess.types import UNSET, LoggerLike, Resource, Row

logger = logging.getLogger(__name__)

# Opaque auth context of the caller, passed through to the audit client
AuthContext = Any


@dataclass(frozen=True)
class CollectionMeta:
    """Metadata for a collection read."""

    pg: PageMeta


@dataclass(frozen=True)
class CollectionPage:
    """
    One page of a collection.

    Attributes:
        data: Resources on this page
        meta: Page metadata; ``meta.pg.next_cursor`` is None at the end
    """

    data: list[Row] = field(default_factory=list)
    meta: CollectionMeta = field(default_factory=lambda: CollectionMeta(pg=PageMeta(size=0)))

    def __len__(self) -> int:
        return len(self.data)

    def __iter__(self) -> Iterator[Row]:
        return iter(self.data)


def _resolve_logger(override: LoggerLike | None) -> LoggerLike:
    return override if override is not None else logger


def format_id(value: Any) -> str:
    """Render a primary key for log lines and messages."""
    return id_to_text(value) if is_binary(value) else f"{value}"


def _delete_selector(target: Filter | Constraint | Mapping[str, Any]) -> Filter | Constraint:
    if isinstance(target, (Filter, Constraint)):
        return target
    if is_filter(target):
        return Filter.from_mapping(target)
    return Constraint(fields=dict(target))


class ResourceStore:
    """
    Uniform access to SQL-backed resources.

    Resource types are plain string tags configured through ``StoreConfig``.
    Per-type behavior (table, primary key, defaults, relationships and query
    strategies) comes from the type's ``ResourceConfig``.

    Every operation accepts an optional ``logger`` that replaces this
    module's logger for that call, so request-scoped loggers or adapters
    carry their context into the store's log lines.
    """

    def __init__(
        self,
        executor: SqlExecutor,
        config: StoreConfig | None = None,
        *,
        cache: Cache | None = None,
        audit: AuditClient | None = None,
        publisher: Publisher | None = None,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        """
        Initialize the store.

        Args:
            executor: Runs SQL statements
            config: Store configuration (defaults to StoreConfig())
            cache: Cache for constraint lookups (defaults to a pass-through cache)
            audit: Optional audit client; when set every mutation is audited
            publisher: Optional publisher; when set every mutation is published
            tracer: Optional tracer (if not provided, one will be created)
            enable_tracing: Whether to enable OpenTelemetry tracing (default True)
        """
        self._executor = executor
        self._config = config if config is not None else StoreConfig()
        self._cache: Cache = cache if cache is not None else NullCache()
        self._audit = audit
        self._publisher = publisher
        self._tracer = tracer if tracer is not None else create_tracer(__name__, enable_tracing)

    @property
    def config(self) -> StoreConfig:
        return self._config

    @property
    def executor(self) -> SqlExecutor:
        return self._executor

    # =========================================================================
    # Reads
    # =========================================================================

    async def get(
        self,
        resource_type: str,
        request: GetRequest | None = None,
    ) -> CollectionPage | Row | None:
        """
        Read resources.

        A request with a constraint returns one resource (or None, or raises
        NotFoundError when ``throw`` is set). Any other request returns a
        ``CollectionPage``.

        Args:
            resource_type: Type tag of the resources to read
            request: What to read; None reads the first page of the collection

        Raises:
            BadRequestError: If the cursor or sort string is malformed
            NotFoundError: If a throwing constraint read finds nothing
            InternalServerError: If the constraint has no fields
        """
        request = request or GetRequest()
        log = _resolve_logger(request.logger)

        attributes: dict[str, Any] = {
            ATTR_RESOURCE_TYPE: resource_type,
            ATTR_QUERY_MODE: request.mode,
            ATTR_DB_OPERATION: "SELECT",
        }
        if request.filter is not None:
            attributes[ATTR_QUERY_FILTER_COUNT] = len(request.filter.active_fields())
        if request.params is not None and request.params.page is not None:
            page_size = request.params.page.size or self._config.default_page_size
            attributes[ATTR_PAGE_SIZE] = page_size

        with self._tracer.span("sqlaccess.store.get", attributes):
            if request.constraint is not None:
                return await self._read_one(
                    resource_type, request.constraint.fields, throw=request.throw, log=log
                )
            return await self._read_collection(
                resource_type, request.filter, request.params, log=log
            )

    async def get_one(
        self,
        resource_type: str,
        constraint: Constraint | Mapping[str, Any],
        *,
        throw: bool = False,
        logger: LoggerLike | None = None,
    ) -> Row | None:
        """
        Read one resource by unique constraint.

        Example:
            >>> user = await store.get_one("users", {"email": "jo@example.com"}, throw=True)
        """
        if not isinstance(constraint, Constraint):
            constraint = Constraint(fields=dict(constraint))
        result = await self.get(
            resource_type, GetRequest(constraint=constraint, throw=throw, logger=logger)
        )
        return result  # type: ignore[return-value]

    async def get_collection(
        self,
        resource_type: str,
        filter: Filter | Mapping[str, Any] | None = None,
        params: CollectionParams | None = None,
        *,
        logger: LoggerLike | None = None,
    ) -> CollectionPage:
        """
        Read a page of resources, optionally filtered and sorted.

        Example:
            >>> page = await store.get_collection(
            ...     "users",
            ...     Filter.of(status=["active", "invited"]),
            ...     CollectionParams(page=PageParams(size=50), sort="-createdMs"),
            ... )
            >>> page.meta.pg.next_cursor
        """
        if filter is not None and not isinstance(filter, Filter):
            filter = Filter.from_mapping(filter)
        result = await self.get(
            resource_type, GetRequest(filter=filter, params=params, logger=logger)
        )
        return result  # type: ignore[return-value]

    async def _read_collection(
        self,
        resource_type: str,
        filter: Filter | None,
        params: CollectionParams | None,
        *,
        log: LoggerLike,
    ) -> CollectionPage:
        config = self._config.resource(resource_type)
        fields = dict(filter.active_fields()) if filter is not None else {}
        log.debug(f"Getting {resource_type} by filter '{json_dumps(fields)}'")

        query = self._select_base(resource_type, config)
        query = self._apply_filter(query, resource_type, config, filter)

        processed = config.process_collection_params(
            resource_type, params, self._config.default_page_size, config.parse_sort
        )
        query = query.merge(processed.fragment)

        rows = await self._execute(query, log)
        log.debug(f"Returning {len(rows)} {resource_type}")

        data = [self._convert(row) for row in rows]
        meta = processed.meta
        if len(data) < meta.size:
            meta = meta.end_of_collection()
        return CollectionPage(data=data, meta=CollectionMeta(pg=meta))

    async def _read_one(
        self,
        resource_type: str,
        constraint: Mapping[str, Any],
        *,
        throw: bool,
        log: LoggerLike,
        raw: bool = False,
    ) -> Row | None:
        """
        Look up one resource by constraint through the cache.

        The cache holds rows as the driver returned them; every caller gets
        its own copy, converted for output unless ``raw`` is set. Writes
        compare against the raw row so binary columns match byte for byte.
        """
        config = self._config.resource(resource_type)
        fragment = config.translate_constraint(resource_type, constraint)

        if not fragment.where:
            raise InternalServerError(
                f"No constraints passed for resource '{resource_type}'. "
                f"Constraint: {json_dumps(dict(constraint))}"
            )

        described = json_dumps({"where": list(fragment.where), "params": list(fragment.params)})
        log.debug(f"Getting {resource_type} using {described} from database")

        if any(value is UNSET for value in fragment.params):
            log.info(f"Constraint is incomplete. Cannot use. {described}")
            if throw:
                raise NotFoundError(
                    f"No constraint value passed for {resource_type}, "
                    f"so the resource cannot be found."
                )
            return None

        query = self._select_base(resource_type, config).merge(fragment)

        async def populate() -> Row | None:
            rows = await self._execute(query, log)
            if not rows:
                return None
            if len(rows) > 1:
                rendered = compose_sql(query)
                log.warning(
                    f"More than one {resource_type} found when searching with constraint: "
                    f"Query: {rendered.text}; Params: {json_dumps(rendered.params)}",
                    extra={"resource_type": resource_type, "row_count": len(rows)},
                )
            return rows[0]

        found = await self._cache.get(
            f"{resource_type}-{described}",
            populate,
            self._config.cache_ttl,
            namespace=resource_type,
        )
        if found is None:
            if throw:
                raise NotFoundError(f"{resource_type} not found for the given parameters")
            return None
        return dict(found) if raw else self._convert(found)

    # =========================================================================
    # Writes
    # =========================================================================

    async def update(
        self,
        resource_type: str,
        pk_value: Any,
        resource: Resource,
        auth: AuthContext = None,
        *,
        logger: LoggerLike | None = None,
    ) -> Row:
        """
        Apply a partial update to an existing resource.

        The primary key in ``resource`` is ignored; it cannot be changed
        through this path.

        Args:
            resource_type: Type tag of the resource
            pk_value: Primary key of the resource to update
            resource: Fields to change
            auth: Caller's auth context, passed to the audit client
            logger: Logger for this call

        Returns:
            The updated resource

        Raises:
            NotFoundError: If no resource has the given primary key. The
                error code is ``RESOURCE-NOT-FOUND.<TYPE>``.
        """
        log = _resolve_logger(logger)
        pk = self._config.resource(resource_type).primary_key
        pk_text = format_id(pk_value)
        log.info(f"Updating {resource_type}:'{pk_text}'")

        with self._tracer.span(
            "sqlaccess.store.update",
            {ATTR_RESOURCE_TYPE: resource_type, ATTR_RESOURCE_ID: pk_text},
        ):
            current = await self._read_one(
                resource_type, {pk: pk_value}, throw=False, log=log, raw=True
            )
            if current is None:
                raise NotFoundError(
                    f"Resource of type '{resource_type}', {pk} '{pk_text}', was not found.",
                    code=f"RESOURCE-NOT-FOUND.{resource_type.upper()}",
                )

            incoming = {k: v for k, v in resource.items() if k != pk}
            return await self.save(
                resource_type, {**current, **incoming}, auth, current=current, logger=log
            )

    async def save(
        self,
        resource_type: str,
        resource: Resource,
        auth: AuthContext = None,
        *,
        current: Resource | None = None,
        logger: LoggerLike | None = None,
    ) -> Row:
        """
        Create or update a resource.

        When ``current`` is not given and ``resource`` carries its primary
        key, the stored resource is looked up to decide between insert and
        update. New resources are filled in from the type's defaults;
        defaults are never applied to existing resources. The comparison runs
        against the unconverted row, so binary columns match byte for byte.

        Saving a resource identical to its stored state is a no-op: nothing
        is written, invalidated, audited or published.

        Args:
            resource_type: Type tag of the resource
            resource: Full or partial resource
            auth: Caller's auth context, passed to the audit client
            current: Stored row as the driver returns it, when the caller already has it
            logger: Logger for this call

        Returns:
            The resource as stored
        """
        log = _resolve_logger(logger)
        config = self._config.resource(resource_type)
        pk = config.primary_key
        pk_value = resource.get(pk)
        log.info(
            f"Saving resource '{resource_type}"
            f"{':' + format_id(pk_value) if pk_value is not None else ''}'"
        )

        with self._tracer.span(
            "sqlaccess.store.save",
            {ATTR_RESOURCE_TYPE: resource_type},
        ) as span:
            if current is None and pk_value is not None and pk_value is not UNSET:
                current = await self._read_one(
                    resource_type, {pk: pk_value}, throw=False, log=log, raw=True
                )

            result = reconcile(
                current,
                resource,
                defaults=config.defaults,
                relationships=config.relationships,
            )

            if result.is_noop:
                log.info(f"No changes to {resource_type}; nothing to save")
                return result.resource

            if span:
                span.set_attribute(ATTR_CHANGE_COUNT, len(result.changes))
                span.set_attribute(ATTR_DB_OPERATION, "INSERT" if result.is_new else "UPDATE")

            table = config.table_for(resource_type)
            if result.is_new:
                columns = list(result.changes)
                statement = (
                    f"INSERT INTO `{table}` "
                    f"(`{'`, `'.join(columns)}`) VALUES (?)"
                )
                params: list[Any] = [[result.resource[k] for k in columns]]
            else:
                columns = [k for k in result.changes if k != pk]
                if not columns:
                    raise BadRequestError(
                        f"The {pk} of '{resource_type}' resources cannot be changed"
                    )
                statement = (
                    f"UPDATE `{table}` "
                    f"SET {', '.join(f'`{k}` = ?' for k in columns)} "
                    f"WHERE `{pk}` = ?"
                )
                params = [result.resource[k] for k in columns] + [result.resource[pk]]

            log.debug(f"Final query: {statement}; Params: {json_dumps(params)}")
            await self._executor.execute(statement, params)

            await self._cache.invalidate_namespace(resource_type)

            await self._emit_saved(
                resource_type, result.resource, result.changes, result.is_new, pk, auth, log
            )
            return result.resource

    async def _emit_saved(
        self,
        resource_type: str,
        resource: Row,
        changes: Changes,
        is_new: bool,
        pk: str,
        auth: AuthContext,
        log: LoggerLike,
    ) -> None:
        pending: list[Awaitable[None]] = []

        if self._audit is not None:
            pk_value = resource.get(pk)
            target_id = bytes(pk_value).hex() if is_binary(pk_value) else f"{pk_value}"
            log.debug("Publishing audit message")
            if is_new:
                pending.append(
                    self._audit.record_create(
                        auth=auth, target_type=resource_type, target_id=target_id
                    )
                )
            else:
                pending.append(
                    self._audit.record_update(
                        auth=auth,
                        target_type=resource_type,
                        target_id=target_id,
                        changes=changes_to_dict(changes),
                    )
                )

        if self._publisher is not None:
            log.debug("Publishing domain message")
            action = ResourceAction.CREATED if is_new else ResourceAction.UPDATED
            pending.append(self._publish(self._publisher, action, resource_type, resource, log))

        await self._gather(pending)

    # =========================================================================
    # Deletes
    # =========================================================================

    async def delete(
        self,
        resource_type: str,
        target: Filter | Constraint | Mapping[str, Any],
        auth: AuthContext = None,
        *,
        logger: LoggerLike | None = None,
    ) -> int:
        """
        Delete the resources matching a filter, or the one matching a constraint.

        Filtered deletes run in rounds: fetch the first ``delete_batch_size``
        matching resources, delete up to that many with the same predicate,
        emit one audit record and one event per fetched resource, and repeat
        while a round fetched a full batch. Rounds are not isolated in a
        transaction; run inside ``transaction()`` when that matters.

        Args:
            resource_type: Type tag of the resources
            target: Filter (``Filter`` or a mapping tagged ``_t: "filter"``) or constraint
            auth: Caller's auth context, passed to the audit client
            logger: Logger for this call

        Returns:
            Number of resources fetched for deletion across all rounds

        Raises:
            InternalServerError: If a constraint has no fields
        """
        log = _resolve_logger(logger)
        config = self._config.resource(resource_type)
        batch_size = self._config.delete_batch_size
        selector = _delete_selector(target)
        table = config.table_for(resource_type)

        deleted = 0
        with self._tracer.span(
            "sqlaccess.store.delete",
            {
                ATTR_RESOURCE_TYPE: resource_type,
                ATTR_QUERY_MODE: "collection" if isinstance(selector, Filter) else "constraint",
                ATTR_BATCH_SIZE: batch_size,
                ATTR_DB_OPERATION: "DELETE",
            },
        ):
            more = True
            while more:
                query = SqlQuery.delete_from(f"`{table}`", limit=batch_size)
                if isinstance(selector, Filter):
                    log.debug("Getting resource(s) to delete by filter")
                    page = await self._read_collection(
                        resource_type,
                        selector,
                        CollectionParams(page=PageParams(size=batch_size)),
                        log=log,
                    )
                    resources = page.data
                    more = len(resources) >= batch_size
                    query = self._apply_filter(query, resource_type, config, selector)
                else:
                    log.debug("Getting resource to delete by constraint")
                    found = await self._read_one(
                        resource_type, selector.fields, throw=False, log=log
                    )
                    resources = [found] if found is not None else []
                    more = False
                    query = query.merge(
                        config.translate_constraint(resource_type, selector.fields)
                    )

                if not resources:
                    log.info("Resource(s) not found. Nothing to delete.")
                    break

                log.debug(f"Deleting {len(resources)} {resource_type}")
                await self._execute(query, log)

                log.debug("Resource(s) deleted; publishing messages")
                await self._cache.invalidate_namespace(resource_type)
                await self._emit_deleted(resource_type, resources, config.primary_key, auth, log)
                deleted += len(resources)

        return deleted

    async def _emit_deleted(
        self,
        resource_type: str,
        resources: list[Row],
        pk: str,
        auth: AuthContext,
        log: LoggerLike,
    ) -> None:
        pending: list[Awaitable[None]] = []
        for resource in resources:
            if self._audit is not None:
                log.debug("Publishing audit message")
                pending.append(
                    self._audit.record_delete(
                        auth=auth,
                        target_type=resource_type,
                        target_id=format_id(resource.get(pk)),
                    )
                )
            if self._publisher is not None:
                log.debug("Publishing domain message")
                pending.append(
                    self._publish(
                        self._publisher, ResourceAction.DELETED, resource_type, resource, log
                    )
                )
        await self._gather(pending)

    # =========================================================================
    # Transactions
    # =========================================================================

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[ResourceStore]:
        """
        Run store operations on one transaction.

        Yields a store sharing this store's configuration and collaborators
        but bound to a transaction-scoped executor. Events and audit records
        are still emitted per operation, not at commit.

        Raises:
            NotImplementedError: If the executor does not support transactions
        """
        begin = getattr(self._executor, "transaction", None)
        if begin is None:
            raise NotImplementedError(
                f"{type(self._executor).__name__} does not support transactions"
            )
        async with begin() as executor:
            yield ResourceStore(
                executor,
                self._config,
                cache=self._cache,
                audit=self._audit,
                publisher=self._publisher,
                tracer=self._tracer,
            )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _select_base(self, resource_type: str, config: ResourceConfig) -> SqlQuery:
        table = config.table_for(resource_type)
        alias = table[:2]
        return SqlQuery.select_from(f"`{table}` AS `{alias}`", [f"`{alias}`.*"])

    def _apply_filter(
        self,
        query: SqlQuery,
        resource_type: str,
        config: ResourceConfig,
        filter: Filter | None,
    ) -> SqlQuery:
        if filter is None:
            return query
        for name, value in filter.active_fields():
            fragment: QueryFragment = config.translate_filter_field(resource_type, name, value)
            query = query.merge(fragment)
        return query

    async def _execute(self, query: SqlQuery, log: LoggerLike) -> list[Row]:
        rendered = compose_sql(query)
        log.debug(f"Final query: {rendered.text}; Params: {json_dumps(rendered.params)}")
        return await self._executor.execute(rendered.text, rendered.params)

    def _convert(self, row: Row) -> Row:
        return buffers_to_hex(row) if self._config.convert_ids else dict(row)

    async def _publish(
        self,
        publisher: Publisher,
        action: ResourceAction,
        resource_type: str,
        resource: Row,
        log: LoggerLike,
    ) -> None:
        try:
            await publisher.publish(
                ResourceEvent.for_resource(action, resource_type, dict(resource))
            )
        except Exception as e:
            log.error(
                f"Couldn't publish domain message for '{action.value}' resource: "
                f"{json_dumps(dict(resource))}",
                exc_info=True,
                extra={
                    "resource_type": resource_type,
                    "action": action.value,
                    "error": str(e),
                },
            )

    @staticmethod
    async def _gather(pending: list[Awaitable[None]]) -> None:
        """Await all side effects together, then raise the first failure."""
        if not pending:
            return
        results = await asyncio.gather(*pending, return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException):
                raise result


__all__ = [
    "AuthContext",
    "CollectionMeta",
    "CollectionPage",
    "ResourceStore",
    "format_id",
]
