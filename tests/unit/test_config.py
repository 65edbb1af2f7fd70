"""
Unit tests for store configuration.
"""

from dataclasses import FrozenInstanceError

import pytest

from sqlaccess.config import ResourceConfig, StoreConfig
from sqlaccess.exceptions import UnknownResourceTypeError
from sqlaccess.pagination import default_sort_parser, process_collection_params
from sqlaccess.query import QueryFragment
from sqlaccess.translate import translate_constraint, translate_filter_field


class TestResourceConfig:
    """Tests for ResourceConfig defaults and validation."""

    def test_defaults(self) -> None:
        config = ResourceConfig()
        assert config.primary_key == "id"
        assert config.table is None
        assert dict(config.defaults) == {}
        assert dict(config.relationships) == {}

    def test_table_defaults_to_sanitized_type(self) -> None:
        assert ResourceConfig().table_for("users") == "users"
        assert ResourceConfig().table_for("us`ers") == "users"

    def test_explicit_table(self) -> None:
        assert ResourceConfig(table="user_accounts").table_for("users") == "user_accounts"

    def test_empty_primary_key_rejected(self) -> None:
        with pytest.raises(ValueError, match="primary_key"):
            ResourceConfig(primary_key="")

    def test_empty_table_rejected(self) -> None:
        with pytest.raises(ValueError, match="table"):
            ResourceConfig(table="")

    def test_empty_relationship_target_rejected(self) -> None:
        with pytest.raises(ValueError, match="userId"):
            ResourceConfig(relationships={"userId": ""})

    def test_strategies_fall_back_to_defaults(self) -> None:
        config = ResourceConfig()
        assert config.translate_filter_field is translate_filter_field
        assert config.translate_constraint is translate_constraint
        assert config.parse_sort is default_sort_parser
        assert config.process_collection_params is process_collection_params

    def test_strategy_override(self) -> None:
        def custom(resource_type: str, field: str, value: object) -> QueryFragment:
            return QueryFragment()

        assert ResourceConfig(filter_translator=custom).translate_filter_field is custom

    def test_frozen(self) -> None:
        with pytest.raises(FrozenInstanceError):
            ResourceConfig().primary_key = "uuid"  # type: ignore[misc]


class TestStoreConfig:
    """Tests for StoreConfig defaults and validation."""

    def test_defaults(self) -> None:
        config = StoreConfig()
        assert config.default_page_size == 25
        assert config.delete_batch_size == 1000
        assert config.convert_ids is True
        assert config.cache_ttl is None
        assert config.strict_types is False

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"default_page_size": 0},
            {"delete_batch_size": 0},
            {"cache_ttl": 0},
            {"cache_ttl": -1.5},
        ],
    )
    def test_invalid_values_rejected(self, kwargs: dict[str, int | float]) -> None:
        with pytest.raises(ValueError):
            StoreConfig(**kwargs)  # type: ignore[arg-type]

    def test_resource_values_must_be_resource_configs(self) -> None:
        with pytest.raises(ValueError, match="ResourceConfig"):
            StoreConfig(resources={"users": {"table": "users"}})  # type: ignore[dict-item]

    def test_resources_are_frozen(self) -> None:
        source = {"users": ResourceConfig()}
        config = StoreConfig(resources=source)
        source["orders"] = ResourceConfig()
        assert "orders" not in config.resources
        with pytest.raises(TypeError):
            config.resources["orders"] = ResourceConfig()  # type: ignore[index]

    def test_resource_lookup(self) -> None:
        users = ResourceConfig(table="user_accounts")
        config = StoreConfig(resources={"users": users})
        assert config.resource("users") is users

    def test_unknown_type_uses_default_when_lenient(self) -> None:
        config = StoreConfig()
        assert config.resource("widgets") == ResourceConfig()

    def test_unknown_type_raises_when_strict(self) -> None:
        config = StoreConfig(strict_types=True)
        with pytest.raises(UnknownResourceTypeError) as exc_info:
            config.resource("widgets")
        assert exc_info.value.resource_type == "widgets"
