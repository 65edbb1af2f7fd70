"""Publisher interface definitions.

The store hands every resource mutation to a ``Publisher`` as a
``ResourceEvent``. Publishing is fire-and-forget from the store's point of
view: failures are logged by the store and never roll back the write.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any, Protocol, runtime_checkable

from sqlaccess.events import ResourceAction, ResourceEvent

# Type alias for simple function-based handlers
ResourceEventHandlerFunc = Callable[[ResourceEvent], Awaitable[None] | None]


@runtime_checkable
class ResourceEventHandler(Protocol):
    """Object handling resource events; ``handle`` may be sync or async."""

    def handle(self, event: ResourceEvent) -> Any: ...


class Publisher(ABC):
    """
    Abstract publisher of resource events.

    Implementations deliver events to a message bus, a queue, or in-process
    handlers. ``publish`` may raise; callers decide whether that is fatal.

    Example:
        >>> publisher = InMemoryPublisher()
        >>> publisher.subscribe(ResourceAction.DELETED, on_deleted)
        >>> store = ResourceStore(executor, publisher=publisher)
    """

    @abstractmethod
    async def publish(self, event: ResourceEvent) -> None:
        """
        Publish a single resource event.

        Args:
            event: The event to publish

        Raises:
            Exception: If the event could not be handed to the transport
        """
        pass


class SubscribablePublisher(Publisher):
    """Publisher that also delivers events to registered handlers."""

    @abstractmethod
    def subscribe(
        self,
        action: ResourceAction,
        handler: ResourceEventHandler | ResourceEventHandlerFunc,
    ) -> None:
        """
        Subscribe a handler to events with the given action.

        Args:
            action: Action to listen for
            handler: Object with handle() method or callable
        """
        pass

    @abstractmethod
    def unsubscribe(
        self,
        action: ResourceAction,
        handler: ResourceEventHandler | ResourceEventHandlerFunc,
    ) -> bool:
        """
        Unsubscribe a handler.

        Returns:
            True if the handler was found and removed, False otherwise
        """
        pass

    @abstractmethod
    def subscribe_to_all_events(
        self,
        handler: ResourceEventHandler | ResourceEventHandlerFunc,
    ) -> None:
        """Subscribe a handler to every published event."""
        pass


__all__ = [
    "Publisher",
    "SubscribablePublisher",
    "ResourceEventHandler",
    "ResourceEventHandlerFunc",
]
