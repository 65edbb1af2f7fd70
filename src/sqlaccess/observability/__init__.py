"""
Observability utilities for sqlaccess.

Tracing and standard attribute definitions for consistent observability
across store operations.

Note:
    OpenTelemetry is an optional dependency. All utilities in this module
    gracefully handle the case where OpenTelemetry is not installed.
"""

from sqlaccess.observability.attributes import (
    ATTR_BATCH_SIZE,
    ATTR_CHANGE_COUNT,
    ATTR_DB_OPERATION,
    ATTR_DB_SYSTEM,
    ATTR_EVENT_ACTION,
    ATTR_HANDLER_COUNT,
    ATTR_HANDLER_NAME,
    ATTR_HANDLER_SUCCESS,
    ATTR_PAGE_SIZE,
    ATTR_QUERY_FILTER_COUNT,
    ATTR_QUERY_MODE,
    ATTR_RESOURCE_ID,
    ATTR_RESOURCE_TYPE,
)
from sqlaccess.observability.tracer import (
    MockTracer,
    NullTracer,
    OpenTelemetryTracer,
    Tracer,
    create_tracer,
)
from sqlaccess.observability.tracing import (
    OTEL_AVAILABLE,
    get_tracer,
    should_trace,
)

__all__ = [
    "OTEL_AVAILABLE",
    "get_tracer",
    "should_trace",
    "Tracer",
    "NullTracer",
    "OpenTelemetryTracer",
    "MockTracer",
    "create_tracer",
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
