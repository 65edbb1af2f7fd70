"""
Resource reconciliation.

Computes the minimal field-level change set between the stored state of a
resource and an incoming (possibly partial) version of it. Each changed
field becomes either an ``AttributeChange`` or, for fields declared as
relationships, a ``RelationshipChange`` tagged added/changed/deleted.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from sqlaccess.ids import is_binary
from sqlaccess.types import DefaultsSpec, Row


class ChangeAction(str, Enum):
    """How a relationship field changed."""

    ADDED = "added"
    CHANGED = "changed"
    DELETED = "deleted"


@dataclass(frozen=True)
class AttributeChange:
    """A plain field going from ``prev`` to ``next``."""

    prev: Any
    next: Any

    def to_dict(self) -> dict[str, Any]:
        return {"t": "attr", "prev": self.prev, "next": self.next}


@dataclass(frozen=True)
class RelationshipChange:
    """
    A relationship field pointing at a different related resource.

    Attributes:
        action: added, changed or deleted
        rel_type: Type tag of the related resource
        rel_id: The new related id as text (hex for binary ids), or None
    """

    action: ChangeAction
    rel_type: str
    rel_id: str | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "t": "rel",
            "action": self.action.value,
            "relType": self.rel_type,
            "relId": self.rel_id,
        }


Change = AttributeChange | RelationshipChange

# Field name -> change, in resource field order
Changes = dict[str, Change]


@dataclass(frozen=True)
class Reconciliation:
    """
    Outcome of reconciling an incoming resource against its stored state.

    Attributes:
        resource: The full resource as it should be stored
        changes: Changed fields in resource field order
        is_new: True if there was no stored state (an insert)
    """

    resource: Row
    changes: Changes = field(default_factory=dict)
    is_new: bool = False

    @property
    def is_noop(self) -> bool:
        """True when an existing resource would not change at all."""
        return not self.is_new and not self.changes


def evaluate_defaults(spec: DefaultsSpec | None) -> Row:
    """
    Resolve a defaults spec into concrete values.

    Callable defaults are invoked once per call, so generators such as
    timestamps or ids produce fresh values each time.
    """
    if not spec:
        return {}
    return {key: value() if callable(value) else value for key, value in spec.items()}


def relationship_id(value: Any) -> str | None:
    """Render a related id for a change entry: hex for binary, text otherwise."""
    if value is None:
        return None
    if is_binary(value):
        return bytes(value).hex()
    return str(value)


def classify_relationship_action(
    current: Mapping[str, Any] | None,
    key: str,
    value: Any,
) -> ChangeAction:
    """
    Classify a relationship change.

    Without stored state every relationship is ``added``. Otherwise a field
    going from missing/None to a value is ``added``, from a value to None is
    ``deleted``, and anything else is ``changed``.
    """
    if current is None:
        return ChangeAction.ADDED
    previous = current.get(key)
    if previous is None and value is not None:
        return ChangeAction.ADDED
    if previous is not None and value is None:
        return ChangeAction.DELETED
    return ChangeAction.CHANGED


def reconcile(
    current: Mapping[str, Any] | None,
    incoming: Mapping[str, Any],
    *,
    defaults: DefaultsSpec | None = None,
    relationships: Mapping[str, str] | None = None,
) -> Reconciliation:
    """
    Reconcile an incoming resource against its stored state.

    With no stored state the resource is built from evaluated defaults
    overlaid with ``incoming``, and every field counts as changed. With
    stored state the resource is ``current`` overlaid with ``incoming`` and
    fields equal to their stored value are skipped.

    Equality is plain ``==`` on stored values; ``bytes`` compare by content.

    Args:
        current: Stored resource, or None for a new resource
        incoming: Incoming fields
        defaults: Defaults spec, only applied to new resources
        relationships: Map of relationship field name to related type tag

    Returns:
        Reconciliation with the merged resource and the change set

    Example:
        >>> result = reconcile({"id": 1, "name": "a"}, {"name": "b"})
        >>> result.changes
        {'name': AttributeChange(prev='a', next='b')}
    """
    if current is None:
        resource: Row = {**evaluate_defaults(defaults), **incoming}
    else:
        resource = {**current, **incoming}

    rels = relationships or {}
    changes: Changes = {}
    for key, value in resource.items():
        if current is not None and key in current and current[key] == value:
            continue

        if key in rels:
            changes[key] = RelationshipChange(
                action=classify_relationship_action(current, key, value),
                rel_type=rels[key],
                rel_id=relationship_id(value),
            )
        else:
            changes[key] = AttributeChange(
                prev=current.get(key) if current is not None else None,
                next=value,
            )

    return Reconciliation(resource=resource, changes=changes, is_new=current is None)


def changes_to_dict(changes: Changes) -> dict[str, dict[str, Any]]:
    """Render a change set as plain dicts for audit payloads."""
    return {key: change.to_dict() for key, change in changes.items()}


__all__ = [
    "ChangeAction",
    "AttributeChange",
    "RelationshipChange",
    "Change",
    "Changes",
    "Reconciliation",
    "evaluate_defaults",
    "relationship_id",
    "classify_relationship_action",
    "reconcile",
    "changes_to_dict",
]
