"""
Domain messages describing resource mutations.

The store publishes one ``ResourceEvent`` per created, updated or deleted
resource. A common way to route them is by subject, e.g.
``"<domain>.<action>.<resource_type>"``.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class ResourceAction(str, Enum):
    """What happened to a resource."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


class ResourceEvent(BaseModel):
    """
    A resource was created, updated or deleted.

    Attributes:
        event_id: Unique identifier for this message
        action: What happened
        resource_type: Type tag of the resource
        resource: The full resource, including a ``type`` key
        occurred_at: When the mutation was committed (UTC)

    Example:
        >>> event = ResourceEvent(
        ...     action=ResourceAction.CREATED,
        ...     resource_type="users",
        ...     resource={"type": "users", "id": "abc", "name": "Jo"},
        ... )
        >>> event.subject("accounts")
        'accounts.created.users'
    """

    model_config = ConfigDict(frozen=True)

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique message identifier",
    )
    action: ResourceAction = Field(
        ...,
        description="Mutation that happened",
    )
    resource_type: str = Field(
        ...,
        description="Type tag of the resource (e.g., 'users')",
    )
    resource: dict[str, Any] = Field(
        default_factory=dict,
        description="Full resource state with a 'type' key",
    )
    occurred_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="When the mutation happened (UTC)",
    )

    @classmethod
    def for_resource(
        cls,
        action: ResourceAction,
        resource_type: str,
        resource: dict[str, Any],
    ) -> ResourceEvent:
        """Build an event, tagging the resource payload with its type."""
        return cls(
            action=action,
            resource_type=resource_type,
            resource={"type": resource_type, **resource},
        )

    def subject(self, domain: str) -> str:
        """Routing subject ``<domain>.<action>.<resource_type>``."""
        return f"{domain}.{self.action.value}.{self.resource_type}"

    def __str__(self) -> str:
        return f"ResourceEvent({self.action.value} {self.resource_type}, id={self.event_id})"


__all__ = [
    "ResourceAction",
    "ResourceEvent",
]
