"""
Standard span attributes for sqlaccess.

Attribute names follow OpenTelemetry semantic conventions where one exists
(``db.*``) and use the ``sqlaccess.`` prefix otherwise.
"""

# =============================================================================
# Resource Attributes
# =============================================================================

ATTR_RESOURCE_TYPE = "sqlaccess.resource.type"
"""Resource type tag the operation targets (e.g., 'users')."""

ATTR_RESOURCE_ID = "sqlaccess.resource.id"
"""Primary key of the resource, rendered as text."""

ATTR_CHANGE_COUNT = "sqlaccess.change.count"
"""Number of fields changed by a save (integer)."""

ATTR_BATCH_SIZE = "sqlaccess.batch.size"
"""Number of resources handled in one delete page (integer)."""

# =============================================================================
# Query Attributes
# =============================================================================

ATTR_QUERY_MODE = "sqlaccess.query.mode"
"""How a get was addressed: 'constraint' or 'collection'."""

ATTR_QUERY_FILTER_COUNT = "sqlaccess.query.filter_count"
"""Number of filter fields with a value (integer)."""

ATTR_PAGE_SIZE = "sqlaccess.query.page_size"
"""Requested page size for collection reads (integer)."""

# =============================================================================
# Publisher Attributes
# =============================================================================

ATTR_EVENT_ACTION = "sqlaccess.event.action"
"""Action of a published resource event ('created', 'updated', 'deleted')."""

ATTR_HANDLER_NAME = "sqlaccess.handler.name"
"""Name of the publisher handler being invoked."""

ATTR_HANDLER_COUNT = "sqlaccess.handler.count"
"""Number of handlers an event is dispatched to (integer)."""

ATTR_HANDLER_SUCCESS = "sqlaccess.handler.success"
"""Whether the handler completed without raising (boolean)."""

# =============================================================================
# Database Attributes (OTEL semantic conventions)
# =============================================================================

ATTR_DB_SYSTEM = "db.system"
"""Database system identifier (e.g., 'mysql', 'sqlite')."""

ATTR_DB_OPERATION = "db.operation"
"""Database operation name (e.g., 'SELECT', 'INSERT')."""


__all__ = [
    "ATTR_RESOURCE_TYPE",
    "ATTR_RESOURCE_ID",
    "ATTR_CHANGE_COUNT",
    "ATTR_BATCH_SIZE",
    "ATTR_QUERY_MODE",
    "ATTR_QUERY_FILTER_COUNT",
    "ATTR_PAGE_SIZE",
    "ATTR_EVENT_ACTION",
    "ATTR_HANDLER_NAME",
    "ATTR_HANDLER_COUNT",
    "ATTR_HANDLER_SUCCESS",
    "ATTR_DB_SYSTEM",
    "ATTR_DB_OPERATION",
]
