"""Publishers for resource events.

Available Implementations:
- InMemoryPublisher: In-process delivery to registered handlers (development/testing)

Any object with an ``async publish(event)`` method can be passed to the
store; subclass ``Publisher`` to bridge to a real message bus.

Example:
    >>> from sqlaccess.bus import InMemoryPublisher
    >>> from sqlaccess.events import ResourceAction
    >>>
    >>> publisher = InMemoryPublisher()
    >>> publisher.subscribe(ResourceAction.DELETED, lambda e: print(e.resource["id"]))
"""

from sqlaccess.bus.interface import (
    Publisher,
    ResourceEventHandler,
    ResourceEventHandlerFunc,
    SubscribablePublisher,
)
from sqlaccess.bus.memory import InMemoryPublisher

__all__ = [
    "Publisher",
    "SubscribablePublisher",
    "ResourceEventHandler",
    "ResourceEventHandlerFunc",
    "InMemoryPublisher",
]
