"""
Tracers used by the store, the executor and the in-memory publisher.

Components take a ``Tracer`` at construction and open spans through it.
``create_tracer`` picks OpenTelemetry when it is installed and tracing is
enabled; tests pass a ``MockTracer`` and assert on the recorded spans.

Example:
    >>> tracer = create_tracer(__name__, enable_tracing=True)
    >>> with tracer.span("sqlaccess.store.get", {"sqlaccess.resource.type": "users"}):
    ...     rows = await executor.execute(query, params)
"""

from __future__ import annotations

import contextlib
from collections.abc import Generator
from contextlib import AbstractContextManager
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from opentelemetry.trace import Span

from sqlaccess.observability.tracing import get_tracer, should_trace


@runtime_checkable
class Tracer(Protocol):
    """Opens spans around store and executor operations."""

    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> AbstractContextManager[Span | None]:
        """
        Open a span.

        Args:
            name: Span name, e.g. "sqlaccess.store.save"
            attributes: Initial span attributes

        Returns:
            Context manager yielding the live span, or None when nothing is recorded
        """
        ...

    @property
    def enabled(self) -> bool:
        """True when spans are actually recorded."""
        ...


class NullTracer:
    """Tracer used when tracing is off; spans yield None."""

    @contextlib.contextmanager
    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> Generator[None, None, None]:
        yield None

    @property
    def enabled(self) -> bool:
        return False


class OpenTelemetryTracer:
    """
    Tracer backed by the global OpenTelemetry tracer provider.

    Raises:
        ImportError: If OpenTelemetry is not installed
    """

    def __init__(self, tracer_name: str) -> None:
        tracer = get_tracer(tracer_name)
        if tracer is None:
            raise ImportError("opentelemetry-api is required for OpenTelemetryTracer")
        self._tracer = tracer

    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> AbstractContextManager[Span | None]:
        return self._tracer.start_as_current_span(name, attributes=attributes or {})

    @property
    def enabled(self) -> bool:
        return True


class MockTracer:
    """
    Records span names and attributes for test assertions.

    Example:
        >>> tracer = MockTracer()
        >>> store = ResourceStore(executor, tracer=tracer)
        >>> await store.get_one("users", {"id": "u1"})
        >>> tracer.span_names
        ['sqlaccess.store.get']
    """

    def __init__(self) -> None:
        self.spans: list[tuple[str, dict[str, Any] | None]] = []

    @contextlib.contextmanager
    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> Generator[None, None, None]:
        self.spans.append((name, attributes))
        yield None

    @property
    def enabled(self) -> bool:
        return True

    @property
    def span_names(self) -> list[str]:
        return [name for name, _ in self.spans]

    def clear(self) -> None:
        self.spans.clear()


def create_tracer(name: str, enable_tracing: bool = True) -> Tracer:
    """Return an OpenTelemetry tracer when available and enabled, else a NullTracer."""
    if should_trace(enable_tracing):
        return OpenTelemetryTracer(name)
    return NullTracer()


__all__ = [
    "Tracer",
    "NullTracer",
    "OpenTelemetryTracer",
    "MockTracer",
    "create_tracer",
]
