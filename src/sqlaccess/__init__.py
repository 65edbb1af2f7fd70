"""
sqlaccess - Uniform data access for SQL-backed resources.

This library provides:
- A resource store with get, save, update and delete for any configured type
- Filter and constraint translation to parameterized SQL
- Cursor pagination and sort parsing for collections
- Change reconciliation with minimal INSERT/UPDATE statements
- Per-type read caching with invalidation on writes
- Audit records and resource events for every mutation
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("sqlaccess-py")
except PackageNotFoundError:
    # Package not installed (running from source without install)
    __version__ = "0.0.0.dev0"

# Audit
from sqlaccess.audit import AuditAction, AuditClient, AuditRecord, InMemoryAuditClient

# Publishing
from sqlaccess.bus import (
    InMemoryPublisher,
    Publisher,
    ResourceEventHandler,
    ResourceEventHandlerFunc,
    SubscribablePublisher,
)

# Caching
from sqlaccess.cache import Cache, InMemoryCache, NullCache

# Configuration
from sqlaccess.config import ResourceConfig, StoreConfig

# Events
from sqlaccess.events import ResourceAction, ResourceEvent

# Exceptions
from sqlaccess.exceptions import (
    BadRequestError,
    HttpError,
    InternalServerError,
    NotFoundError,
    QueryCompositionError,
    SqlAccessError,
    UnknownResourceTypeError,
)

# Executors
from sqlaccess.executor import (
    SqlExecutor,
    SQLAlchemyExecutor,
    TransactionalSqlExecutor,
    execute_with_connection,
)

# Identifiers
from sqlaccess.ids import (
    buffers_to_hex,
    bytes_id_default,
    hex_to_buffers,
    id_to_text,
    is_binary,
    merge_defaults,
    new_id,
    str_id_default,
    text_to_id,
)

# Pagination
from sqlaccess.pagination import (
    DEFAULT_PAGE_SIZE,
    CollectionParams,
    PageMeta,
    PageParams,
    SortClause,
    SortDirection,
    decode_cursor,
    encode_cursor,
    parse_sort,
)

# Queries
from sqlaccess.query import EMPTY_FRAGMENT, QueryFragment, SqlQuery, compose_sql, merge_query

# Reconciliation
from sqlaccess.reconcile import (
    AttributeChange,
    ChangeAction,
    Reconciliation,
    RelationshipChange,
    reconcile,
)

# Requests
from sqlaccess.requests import Constraint, Filter, GetRequest

# Store
from sqlaccess.store import CollectionMeta, CollectionPage, ResourceStore

# Translation
from sqlaccess.translate import translate_constraint, translate_filter_field

# Types
from sqlaccess.types import UNSET, Resource, Row

__all__ = [
    "__version__",
    # Store
    "ResourceStore",
    "CollectionPage",
    "CollectionMeta",
    # Configuration
    "StoreConfig",
    "ResourceConfig",
    # Requests
    "Filter",
    "Constraint",
    "GetRequest",
    # Types
    "UNSET",
    "Row",
    "Resource",
    # Exceptions
    "SqlAccessError",
    "HttpError",
    "BadRequestError",
    "NotFoundError",
    "InternalServerError",
    "QueryCompositionError",
    "UnknownResourceTypeError",
    # Executors
    "SqlExecutor",
    "TransactionalSqlExecutor",
    "SQLAlchemyExecutor",
    "execute_with_connection",
    # Queries
    "QueryFragment",
    "EMPTY_FRAGMENT",
    "SqlQuery",
    "merge_query",
    "compose_sql",
    # Translation
    "translate_filter_field",
    "translate_constraint",
    # Pagination
    "DEFAULT_PAGE_SIZE",
    "PageParams",
    "CollectionParams",
    "PageMeta",
    "SortClause",
    "SortDirection",
    "encode_cursor",
    "decode_cursor",
    "parse_sort",
    # Reconciliation
    "reconcile",
    "Reconciliation",
    "ChangeAction",
    "AttributeChange",
    "RelationshipChange",
    # Identifiers
    "is_binary",
    "id_to_text",
    "text_to_id",
    "buffers_to_hex",
    "hex_to_buffers",
    "new_id",
    "bytes_id_default",
    "str_id_default",
    "merge_defaults",
    # Caching
    "Cache",
    "InMemoryCache",
    "NullCache",
    # Audit
    "AuditAction",
    "AuditRecord",
    "AuditClient",
    "InMemoryAuditClient",
    # Events
    "ResourceAction",
    "ResourceEvent",
    # Publishing
    "Publisher",
    "SubscribablePublisher",
    "ResourceEventHandler",
    "ResourceEventHandlerFunc",
    "InMemoryPublisher",
]
