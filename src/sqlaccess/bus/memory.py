"""In-memory publisher implementation.

Delivers resource events to handlers registered in the same process.
Suitable for development, testing, and single-instance deployments where
other components react to mutations directly.
"""

import asyncio
import logging
import threading
from collections import defaultdict
from typing import Any

from sqlaccess.bus.interface import (
    ResourceEventHandler,
    ResourceEventHandlerFunc,
    SubscribablePublisher,
)
from sqlaccess.events import ResourceAction, ResourceEvent
from sqlaccess.observability import Tracer, create_tracer
from sqlaccess.observability.attributes import (
    ATTR_EVENT_ACTION,
    ATTR_HANDLER_COUNT,
    ATTR_HANDLER_NAME,
    ATTR_HANDLER_SUCCESS,
    ATTR_RESOURCE_TYPE,
)

logger = logging.getLogger(__name__)


def get_handler_name(handler: Any) -> str:
    """Get a descriptive name for a handler for logging."""
    if hasattr(handler, "__class__") and handler.__class__.__name__ != "function":
        return str(handler.__class__.__name__)
    elif hasattr(handler, "__name__"):
        return str(handler.__name__)
    else:
        return repr(handler)


class _Handler:
    """Normalizes sync/async callables and handler objects to one async call."""

    def __init__(self, handler: Any) -> None:
        target = handler.handle if hasattr(handler, "handle") else handler
        if not callable(target):
            raise TypeError(
                f"Handler must have a handle() method or be callable, got {type(handler)}"
            )
        self.original = handler
        self.name = get_handler_name(handler)
        self._target = target

    async def handle(self, event: ResourceEvent) -> None:
        result = self._target(event)
        if asyncio.iscoroutine(result):
            await result

    def __eq__(self, other: object) -> bool:
        if isinstance(other, _Handler):
            return self.original is other.original
        return self.original is other

    def __hash__(self) -> int:
        return id(self.original)


class InMemoryPublisher(SubscribablePublisher):
    """
    In-memory publisher for resource events.

    Features:
    - Sync and async handlers (functions or objects with ``handle()``)
    - Per-action and wildcard subscriptions
    - Error isolation (handler failures don't stop other handlers)
    - Optional OpenTelemetry tracing
    - Keeps every published event for inspection

    Example:
        >>> publisher = InMemoryPublisher()
        >>> publisher.subscribe(ResourceAction.CREATED, send_welcome_email)
        >>> await publisher.publish(event)
        >>> publisher.published
        [ResourceEvent(...)]
    """

    def __init__(
        self,
        *,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        """
        Initialize the publisher with an empty handler registry.

        Args:
            tracer: Optional custom Tracer instance
            enable_tracing: If True and OpenTelemetry is available, emit traces.
                Ignored if tracer is explicitly provided.
        """
        self._subscribers: dict[ResourceAction, list[_Handler]] = defaultdict(list)
        self._all_event_handlers: list[_Handler] = []
        self._lock = threading.RLock()
        self.published: list[ResourceEvent] = []
        self._stats = {
            "events_published": 0,
            "handlers_invoked": 0,
            "handler_errors": 0,
        }

        self._tracer = tracer if tracer is not None else create_tracer(__name__, enable_tracing)

    async def publish(self, event: ResourceEvent) -> None:
        """
        Record the event and dispatch it to all matching handlers.

        Handler failures are logged and counted but never raised.
        """
        self.published.append(event)
        self._stats["events_published"] += 1

        with self._lock:
            handlers = list(self._subscribers.get(event.action, [])) + list(
                self._all_event_handlers
            )

        if not handlers:
            logger.debug(
                f"No handlers registered for {event.action.value} events",
                extra={"action": event.action.value, "resource_type": event.resource_type},
            )
            return

        with self._tracer.span(
            "sqlaccess.publisher.dispatch",
            {
                ATTR_EVENT_ACTION: event.action.value,
                ATTR_RESOURCE_TYPE: event.resource_type,
                ATTR_HANDLER_COUNT: len(handlers),
            },
        ):
            await asyncio.gather(
                *(self._safe_handle(handler, event) for handler in handlers),
                return_exceptions=True,
            )

    async def _safe_handle(self, handler: _Handler, event: ResourceEvent) -> None:
        """Execute a handler, catching and logging exceptions."""
        with self._tracer.span(
            "sqlaccess.publisher.handle",
            {
                ATTR_EVENT_ACTION: event.action.value,
                ATTR_RESOURCE_TYPE: event.resource_type,
                ATTR_HANDLER_NAME: handler.name,
            },
        ) as span:
            try:
                await handler.handle(event)
                if span:
                    span.set_attribute(ATTR_HANDLER_SUCCESS, True)
                self._stats["handlers_invoked"] += 1
            except Exception as e:
                if span:
                    span.set_attribute(ATTR_HANDLER_SUCCESS, False)
                    span.record_exception(e)
                self._stats["handler_errors"] += 1
                logger.error(
                    f"Handler {handler.name} failed processing {event}: {e}",
                    exc_info=True,
                    extra={
                        "handler": handler.name,
                        "action": event.action.value,
                        "resource_type": event.resource_type,
                        "error": str(e),
                    },
                )

    def subscribe(
        self,
        action: ResourceAction,
        handler: ResourceEventHandler | ResourceEventHandlerFunc,
    ) -> None:
        adapter = _Handler(handler)
        with self._lock:
            self._subscribers[action].append(adapter)

        logger.info(
            f"Registered handler {adapter.name} for {action.value} events",
            extra={"handler": adapter.name, "action": action.value},
        )

    def unsubscribe(
        self,
        action: ResourceAction,
        handler: ResourceEventHandler | ResourceEventHandlerFunc,
    ) -> bool:
        with self._lock:
            adapters = self._subscribers.get(action, [])
            for i, adapter in enumerate(adapters):
                if adapter == handler:
                    adapters.pop(i)
                    logger.info(
                        f"Unsubscribed handler {adapter.name} from {action.value} events",
                        extra={"handler": adapter.name, "action": action.value},
                    )
                    return True
        return False

    def subscribe_to_all_events(
        self,
        handler: ResourceEventHandler | ResourceEventHandlerFunc,
    ) -> None:
        adapter = _Handler(handler)
        with self._lock:
            self._all_event_handlers.append(adapter)

        logger.info(
            f"Registered wildcard handler {adapter.name}",
            extra={"handler": adapter.name},
        )

    def clear_subscribers(self) -> None:
        """Remove all handlers. Useful between tests."""
        with self._lock:
            self._subscribers.clear()
            self._all_event_handlers.clear()

    def get_subscriber_count(self, action: ResourceAction | None = None) -> int:
        """
        Count handlers for an action, or across all actions when None.

        Wildcard handlers are included in both cases.
        """
        with self._lock:
            wildcard = len(self._all_event_handlers)
            if action is None:
                return sum(len(h) for h in self._subscribers.values()) + wildcard
            return len(self._subscribers.get(action, [])) + wildcard

    def get_stats(self) -> dict[str, int]:
        """Get a copy of publishing statistics."""
        return dict(self._stats)


__all__ = [
    "InMemoryPublisher",
    "get_handler_name",
]
