"""
Unit tests for resource reconciliation.
"""

from sqlaccess.reconcile import (
    AttributeChange,
    ChangeAction,
    RelationshipChange,
    changes_to_dict,
    classify_relationship_action,
    evaluate_defaults,
    reconcile,
    relationship_id,
)

RELS = {"userId": "users"}


class TestNewResources:
    """Tests for reconciling without stored state."""

    def test_defaults_are_overlaid_by_incoming(self) -> None:
        result = reconcile(
            None, {"name": "Jo", "status": "invited"}, defaults={"id": "u1", "status": "active"}
        )
        assert result.is_new
        assert result.resource == {"id": "u1", "status": "invited", "name": "Jo"}

    def test_every_field_is_a_change(self) -> None:
        result = reconcile(None, {"name": "Jo"}, defaults={"id": "u1"})
        assert result.changes == {
            "id": AttributeChange(prev=None, next="u1"),
            "name": AttributeChange(prev=None, next="Jo"),
        }
        assert not result.is_noop

    def test_relationships_are_added(self) -> None:
        result = reconcile(None, {"userId": None}, relationships=RELS)
        assert result.changes["userId"] == RelationshipChange(
            action=ChangeAction.ADDED, rel_type="users", rel_id=None
        )

    def test_callable_defaults_evaluated_per_call(self) -> None:
        counter = iter(range(100))
        defaults = {"seq": lambda: next(counter)}
        assert reconcile(None, {}, defaults=defaults).resource["seq"] == 0
        assert reconcile(None, {}, defaults=defaults).resource["seq"] == 1


class TestExistingResources:
    """Tests for reconciling against stored state."""

    def test_unchanged_fields_are_skipped(self) -> None:
        current = {"id": "u1", "name": "Jo", "status": "active"}
        result = reconcile(current, {"name": "Jane", "status": "active"})
        assert result.changes == {"name": AttributeChange(prev="Jo", next="Jane")}
        assert result.resource == {"id": "u1", "name": "Jane", "status": "active"}
        assert not result.is_new

    def test_identical_incoming_is_noop(self) -> None:
        current = {"id": "u1", "name": "Jo"}
        result = reconcile(current, dict(current))
        assert result.changes == {}
        assert result.is_noop

    def test_defaults_not_applied(self) -> None:
        result = reconcile({"id": "u1"}, {}, defaults={"status": "active"})
        assert "status" not in result.resource
        assert result.is_noop

    def test_binary_values_compare_by_content(self) -> None:
        current = {"id": bytes(range(16))}
        result = reconcile(current, {"id": bytes(bytearray(range(16)))})
        assert result.is_noop

    def test_new_field_with_none_is_a_change(self) -> None:
        result = reconcile({"id": "u1"}, {"deletedMs": None})
        assert result.changes == {"deletedMs": AttributeChange(prev=None, next=None)}

    def test_changes_follow_resource_field_order(self) -> None:
        current = {"a": 1, "b": 2, "c": 3}
        result = reconcile(current, {"c": 30, "a": 10})
        assert list(result.changes) == ["a", "c"]


class TestRelationshipChanges:
    """Tests for relationship classification."""

    def test_value_to_none_is_deleted(self) -> None:
        result = reconcile({"id": 1, "userId": "u1"}, {"userId": None}, relationships=RELS)
        assert result.changes["userId"] == RelationshipChange(
            action=ChangeAction.DELETED, rel_type="users", rel_id=None
        )

    def test_none_to_value_is_added(self) -> None:
        result = reconcile({"id": 1, "userId": None}, {"userId": "u2"}, relationships=RELS)
        assert result.changes["userId"].action == ChangeAction.ADDED  # type: ignore[union-attr]

    def test_absent_to_value_is_added(self) -> None:
        result = reconcile({"id": 1}, {"userId": "u2"}, relationships=RELS)
        assert result.changes["userId"].action == ChangeAction.ADDED  # type: ignore[union-attr]

    def test_value_to_value_is_changed(self) -> None:
        result = reconcile({"id": 1, "userId": "u1"}, {"userId": "u2"}, relationships=RELS)
        assert result.changes["userId"] == RelationshipChange(
            action=ChangeAction.CHANGED, rel_type="users", rel_id="u2"
        )

    def test_binary_rel_id_is_hex(self) -> None:
        result = reconcile({"id": 1, "userId": None}, {"userId": b"\xab\xcd"}, relationships=RELS)
        assert result.changes["userId"].rel_id == "abcd"  # type: ignore[union-attr]

    def test_classify_without_current(self) -> None:
        assert classify_relationship_action(None, "userId", None) == ChangeAction.ADDED

    def test_relationship_id(self) -> None:
        assert relationship_id(None) is None
        assert relationship_id(42) == "42"
        assert relationship_id(bytearray(b"\x01")) == "01"


class TestHelpers:
    """Tests for evaluate_defaults and changes_to_dict."""

    def test_evaluate_defaults(self) -> None:
        assert evaluate_defaults(None) == {}
        assert evaluate_defaults({"a": 1, "b": lambda: 2}) == {"a": 1, "b": 2}

    def test_changes_to_dict(self) -> None:
        changes = {
            "name": AttributeChange(prev="Jo", next="Jane"),
            "userId": RelationshipChange(ChangeAction.DELETED, "users", None),
        }
        assert changes_to_dict(changes) == {
            "name": {"t": "attr", "prev": "Jo", "next": "Jane"},
            "userId": {"t": "rel", "action": "deleted", "relType": "users", "relId": None},
        }
