"""
Audit collaborator.

When an audit client is configured, the store records one audit entry per
created, updated or deleted resource. Audit failures are not swallowed:
they propagate to the caller of the write.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class AuditAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class AuditRecord(BaseModel):
    """
    One recorded audit entry.

    Attributes:
        action: create, update or delete
        auth: Opaque auth context of the caller that made the change
        target_type: Resource type tag
        target_id: Resource primary key rendered as text
        changes: Field-level changes (updates only)
        recorded_at: When the entry was recorded (UTC)
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    action: AuditAction
    auth: Any = None
    target_type: str
    target_id: str
    changes: dict[str, dict[str, Any]] | None = None
    recorded_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


@runtime_checkable
class AuditClient(Protocol):
    """Protocol for audit clients."""

    async def record_create(self, *, auth: Any, target_type: str, target_id: str) -> None:
        """Record that a resource was created."""
        ...

    async def record_update(
        self,
        *,
        auth: Any,
        target_type: str,
        target_id: str,
        changes: dict[str, dict[str, Any]],
    ) -> None:
        """Record that a resource was updated, with its field-level changes."""
        ...

    async def record_delete(self, *, auth: Any, target_type: str, target_id: str) -> None:
        """Record that a resource was deleted."""
        ...


class InMemoryAuditClient:
    """
    Audit client keeping records in memory.

    Example:
        >>> audit = InMemoryAuditClient()
        >>> store = ResourceStore(executor, audit=audit)
        >>> await store.save("users", {"name": "Jo"}, auth=request_auth)
        >>> [r.action for r in audit.records]
        [<AuditAction.CREATE: 'create'>]
    """

    def __init__(self) -> None:
        self.records: list[AuditRecord] = []

    async def record_create(self, *, auth: Any, target_type: str, target_id: str) -> None:
        self._record(AuditAction.CREATE, auth, target_type, target_id)

    async def record_update(
        self,
        *,
        auth: Any,
        target_type: str,
        target_id: str,
        changes: dict[str, dict[str, Any]],
    ) -> None:
        self._record(AuditAction.UPDATE, auth, target_type, target_id, changes)

    async def record_delete(self, *, auth: Any, target_type: str, target_id: str) -> None:
        self._record(AuditAction.DELETE, auth, target_type, target_id)

    def _record(
        self,
        action: AuditAction,
        auth: Any,
        target_type: str,
        target_id: str,
        changes: dict[str, dict[str, Any]] | None = None,
    ) -> None:
        record = AuditRecord(
            action=action,
            auth=auth,
            target_type=target_type,
            target_id=target_id,
            changes=changes,
        )
        self.records.append(record)
        logger.debug(
            f"Recorded audit {action.value} for {target_type}:{target_id}",
            extra={"action": action.value, "target_type": target_type, "target_id": target_id},
        )

    def records_for(self, target_type: str, target_id: str | None = None) -> list[AuditRecord]:
        """Records for a resource type, optionally narrowed to one resource."""
        return [
            r
            for r in self.records
            if r.target_type == target_type and (target_id is None or r.target_id == target_id)
        ]

    def clear(self) -> None:
        self.records.clear()


__all__ = [
    "AuditAction",
    "AuditRecord",
    "AuditClient",
    "InMemoryAuditClient",
]
