"""
Configuration classes for resource stores.

This module provides:
- ResourceConfig: Per-resource-type table, key, defaults, relationships and strategies
- StoreConfig: Store-wide settings and the resource type registry

Configuration is immutable and set once when the store is constructed.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from sqlaccess.exceptions import UnknownResourceTypeError
from sqlaccess.pagination import (
    DEFAULT_PAGE_SIZE,
    CollectionParamsProcessor,
    SortParser,
    default_sort_parser,
    process_collection_params,
)
from sqlaccess.translate import (
    ConstraintTranslator,
    FilterFieldTranslator,
    sanitize_field_name,
    translate_constraint,
    translate_filter_field,
)
from sqlaccess.types import DefaultsSpec


@dataclass(frozen=True)
class ResourceConfig:
    """
    Configuration for one resource type.

    Attributes:
        table: Table name; defaults to the sanitized type tag
        primary_key: Primary key column (compound keys are not supported)
        defaults: Values for fields omitted when creating a resource.
            Each value is a literal or a zero-argument callable.
        relationships: Relationship field name -> related type tag.
            Changes to these fields are reported as relationship changes.
        filter_translator: Override for filter field translation
        constraint_translator: Override for constraint translation
        sort_parser: Override for sort string parsing
        collection_params_processor: Override for pagination and sorting

    Example:
        >>> users = ResourceConfig(
        ...     table="user_accounts",
        ...     defaults=merge_defaults(bytes_id_default(), {"createdMs": now_ms}),
        ...     relationships={"bestFriendId": "users"},
        ... )
    """

    table: str | None = None
    primary_key: str = "id"
    defaults: DefaultsSpec = field(default_factory=dict)
    relationships: Mapping[str, str] = field(default_factory=dict)

    # Strategies
    filter_translator: FilterFieldTranslator | None = None
    constraint_translator: ConstraintTranslator | None = None
    sort_parser: SortParser | None = None
    collection_params_processor: CollectionParamsProcessor | None = None

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if not self.primary_key:
            raise ValueError("primary_key must be a non-empty column name.")

        if self.table is not None and not self.table:
            raise ValueError("table must be a non-empty name, or None to use the type tag.")

        for name, rel_type in self.relationships.items():
            if not isinstance(rel_type, str) or not rel_type:
                raise ValueError(
                    f"Relationship '{name}' must map to a non-empty type tag, got {rel_type!r}."
                )

    def table_for(self, resource_type: str) -> str:
        """Table name for the given type tag."""
        return self.table or sanitize_field_name(resource_type)

    @property
    def translate_filter_field(self) -> FilterFieldTranslator:
        return self.filter_translator or translate_filter_field

    @property
    def translate_constraint(self) -> ConstraintTranslator:
        return self.constraint_translator or translate_constraint

    @property
    def parse_sort(self) -> SortParser:
        return self.sort_parser or default_sort_parser

    @property
    def process_collection_params(self) -> CollectionParamsProcessor:
        return self.collection_params_processor or process_collection_params


_DEFAULT_RESOURCE_CONFIG = ResourceConfig()


@dataclass(frozen=True)
class StoreConfig:
    """
    Configuration for a resource store.

    Attributes:
        resources: Type tag -> ResourceConfig for every known resource type
        default_page_size: Page size when a read does not request one
        convert_ids: Render binary columns of returned rows as UUID/hex text
        delete_batch_size: Rows fetched and deleted per round of a filtered delete
        cache_ttl: TTL in seconds for cached constraint reads (None = cache default)
        strict_types: Reject resource types missing from ``resources``

    Example:
        >>> config = StoreConfig(
        ...     resources={"users": ResourceConfig(defaults=str_id_default())},
        ...     default_page_size=50,
        ...     strict_types=True,
        ... )
    """

    resources: Mapping[str, ResourceConfig] = field(default_factory=dict)
    default_page_size: int = DEFAULT_PAGE_SIZE
    convert_ids: bool = True
    delete_batch_size: int = 1000
    cache_ttl: float | None = None
    strict_types: bool = False

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.default_page_size < 1:
            raise ValueError(
                f"default_page_size must be positive, got {self.default_page_size}. "
                "Use a value like 25 (default)."
            )

        if self.delete_batch_size < 1:
            raise ValueError(
                f"delete_batch_size must be positive, got {self.delete_batch_size}. "
                "Use a value like 1000 (default)."
            )

        if self.cache_ttl is not None and self.cache_ttl <= 0:
            raise ValueError(f"cache_ttl must be positive or None, got {self.cache_ttl}.")

        for resource_type, resource in self.resources.items():
            if not resource_type:
                raise ValueError("Resource type tags must be non-empty strings.")
            if not isinstance(resource, ResourceConfig):
                raise ValueError(
                    f"Resource '{resource_type}' must be configured with a ResourceConfig, "
                    f"got {type(resource).__name__}."
                )

        # Freeze the registry so it cannot be mutated behind the store's back
        object.__setattr__(self, "resources", MappingProxyType(dict(self.resources)))

    def resource(self, resource_type: str) -> ResourceConfig:
        """
        Get the configuration for a resource type.

        Raises:
            UnknownResourceTypeError: If strict_types is set and the type is unknown
        """
        config = self.resources.get(resource_type)
        if config is not None:
            return config
        if self.strict_types:
            raise UnknownResourceTypeError(resource_type)
        return _DEFAULT_RESOURCE_CONFIG


__all__ = [
    "ResourceConfig",
    "StoreConfig",
]
