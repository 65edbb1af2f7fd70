"""Library exceptions for the sqlaccess package.

Errors that reach API callers carry an HTTP-style ``status`` so a web layer
can map them directly: BadRequest (400), NotFound (404) and
InternalServerError (500).
"""

from __future__ import annotations


class SqlAccessError(Exception):
    """Base exception for sqlaccess library."""

    pass


class HttpError(SqlAccessError):
    """
    Base for errors that map onto an HTTP status.

    Attributes:
        status: HTTP status code for the error
        code: Optional machine-readable error code (e.g. ``RESOURCE-NOT-FOUND.USERS``)
    """

    status: int = 500

    def __init__(self, message: str, code: str | None = None) -> None:
        self.code = code
        super().__init__(message)


class BadRequestError(HttpError):
    """Raised when caller input (cursor, sort string) is malformed."""

    status = 400


class NotFoundError(HttpError):
    """Raised when a requested resource cannot be found and the caller asked to throw."""

    status = 404


class InternalServerError(HttpError):
    """Raised when the calling code passes something structurally unusable."""

    status = 500


class QueryCompositionError(InternalServerError):
    """Raised when a composed query's placeholders do not line up with its parameters."""

    def __init__(self, query: str, placeholder_count: int, param_count: int) -> None:
        self.query = query
        self.placeholder_count = placeholder_count
        self.param_count = param_count
        super().__init__(
            f"Query has {placeholder_count} placeholder(s) but {param_count} "
            f"parameter(s): {query}"
        )


class UnknownResourceTypeError(InternalServerError):
    """Raised when a strict store is asked about a resource type it was not configured with."""

    def __init__(self, resource_type: str) -> None:
        self.resource_type = resource_type
        super().__init__(f"Unknown resource type: '{resource_type}'")


__all__ = [
    "SqlAccessError",
    "HttpError",
    "BadRequestError",
    "NotFoundError",
    "InternalServerError",
    "QueryCompositionError",
    "UnknownResourceTypeError",
]
