"""
Read-through caches for constraint lookups.

The store caches single-resource reads under a key derived from the
resource type and constraint, tagged with the resource type as namespace.
Every write to a type invalidates that type's namespace.

Implementations:
- InMemoryCache: Process-local cache with TTL and single-flight population
- NullCache: Pass-through cache that always populates
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar, runtime_checkable

logger = logging.getLogger(__name__)

T = TypeVar("T")


@runtime_checkable
class Cache(Protocol):
    """
    Protocol for read-through caches.

    ``get`` must guarantee at most one concurrent population per key: while
    one caller is populating, other callers for the same key wait for its
    result instead of populating themselves.
    """

    async def get(
        self,
        key: str,
        populate: Callable[[], Awaitable[T]],
        ttl: float | None = None,
        *,
        namespace: str | None = None,
    ) -> T:
        """
        Get a cached value, populating it on a miss.

        Args:
            key: Cache key
            populate: Zero-argument coroutine function producing the value
            ttl: Seconds to keep the value (None = implementation default)
            namespace: Tag for bulk invalidation

        Returns:
            The cached or freshly populated value

        Raises:
            Exception: Whatever ``populate`` raises; failures are not cached
        """
        ...

    async def invalidate(self, key: str) -> None:
        """Remove one key."""
        ...

    async def invalidate_namespace(self, namespace: str) -> None:
        """Remove every key tagged with ``namespace``."""
        ...


@dataclass
class _Entry:
    value: Any
    expires_at: float | None
    namespace: str | None


class InMemoryCache:
    """
    Process-local read-through cache.

    Features:
    - Optional TTL per entry (monotonic clock)
    - Single-flight population: concurrent misses share one populate call
    - Failed populations are not cached; every waiter sees the error
    - Namespace invalidation
    - An invalidation racing an in-flight population prevents it from being stored

    Example:
        >>> cache = InMemoryCache(default_ttl=60)
        >>> user = await cache.get("users-1", lambda: load_user(1), namespace="users")
        >>> await cache.invalidate_namespace("users")
    """

    def __init__(
        self,
        *,
        default_ttl: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize an empty cache.

        Args:
            default_ttl: TTL in seconds when ``get`` is called without one (None = forever)
            clock: Monotonic clock, injectable for tests
        """
        if default_ttl is not None and default_ttl <= 0:
            raise ValueError(f"default_ttl must be positive or None, got {default_ttl}.")
        self._default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._inflight: dict[str, asyncio.Future[Any]] = {}
        self._generation = 0
        self._stats = {
            "hits": 0,
            "misses": 0,
            "populate_errors": 0,
            "invalidations": 0,
        }

    async def get(
        self,
        key: str,
        populate: Callable[[], Awaitable[T]],
        ttl: float | None = None,
        *,
        namespace: str | None = None,
    ) -> T:
        entry = self._entries.get(key)
        if entry is not None:
            if entry.expires_at is None or entry.expires_at > self._clock():
                self._stats["hits"] += 1
                return entry.value  # type: ignore[no-any-return]
            del self._entries[key]

        inflight = self._inflight.get(key)
        if inflight is not None:
            self._stats["hits"] += 1
            return await asyncio.shield(inflight)  # type: ignore[no-any-return]

        self._stats["misses"] += 1
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._inflight[key] = future
        generation = self._generation
        try:
            value = await populate()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            self._stats["populate_errors"] += 1
            future.set_exception(e)
            # Mark retrieved so an error with no waiters is not reported at GC
            future.exception()
            raise
        else:
            if generation == self._generation:
                effective_ttl = ttl if ttl is not None else self._default_ttl
                expires_at = self._clock() + effective_ttl if effective_ttl is not None else None
                self._entries[key] = _Entry(value, expires_at, namespace)
            else:
                logger.debug(
                    f"Cache entry '{key}' invalidated during population; not storing",
                    extra={"key": key, "namespace": namespace},
                )
            future.set_result(value)
            return value
        finally:
            self._inflight.pop(key, None)

    async def invalidate(self, key: str) -> None:
        self._generation += 1
        self._stats["invalidations"] += 1
        self._entries.pop(key, None)

    async def invalidate_namespace(self, namespace: str) -> None:
        self._generation += 1
        self._stats["invalidations"] += 1
        stale = [k for k, entry in self._entries.items() if entry.namespace == namespace]
        for key in stale:
            del self._entries[key]
        logger.debug(
            f"Invalidated {len(stale)} cache entr{'y' if len(stale) == 1 else 'ies'} "
            f"in namespace '{namespace}'",
            extra={"namespace": namespace, "count": len(stale)},
        )

    def clear(self) -> None:
        """Remove all entries. Useful between tests."""
        self._generation += 1
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get_stats(self) -> dict[str, int]:
        """Get a copy of cache statistics."""
        return dict(self._stats)


class NullCache:
    """Pass-through cache: every ``get`` calls ``populate``."""

    async def get(
        self,
        key: str,
        populate: Callable[[], Awaitable[T]],
        ttl: float | None = None,
        *,
        namespace: str | None = None,
    ) -> T:
        return await populate()

    async def invalidate(self, key: str) -> None:
        pass

    async def invalidate_namespace(self, namespace: str) -> None:
        pass


__all__ = [
    "Cache",
    "InMemoryCache",
    "NullCache",
]
