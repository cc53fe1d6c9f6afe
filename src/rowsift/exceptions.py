"""Exception hierarchy for Rowsift.

Every error carries a human readable ``message`` and the HTTP status the route layer answers with.
"""

from __future__ import annotations

from typing import Any


class RowsiftError(Exception):
    """Base class for all Rowsift errors."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class InvalidParameterError(RowsiftError):
    """A request parameter has a value the pipeline cannot serve."""

    status_code = 400
    code = "VALIDATION_ERROR"

    def __init__(self, parameter: str, value: Any, reason: str = "") -> None:
        message = f"Invalid value for parameter '{parameter}': {value!r}"
        if reason:
            message = f"{message}. {reason}"
        super().__init__(message, details=[{"parameter": parameter, "value": value}])
        self.parameter = parameter
        self.value = value


class MalformedFilterError(RowsiftError):
    """A filter condition cannot be compiled.

    Never propagated to callers; the condition is dropped and reported as ignored.
    """

    status_code = 400
    code = "VALIDATION_ERROR"


class NotFoundError(RowsiftError):
    """A database or table referenced by the request does not exist."""

    status_code = 404
    code = "NOT_FOUND"
    entity = "Entity"

    def __init__(self, entity_id: int | str) -> None:
        super().__init__(f"{self.entity} not found")
        self.entity_id = entity_id


class DatabaseNotFoundError(NotFoundError):
    """Database absent or owned by another tenant."""

    entity = "Database"


class TableNotFoundError(NotFoundError):
    """Table absent or not part of the requested database."""

    entity = "Table"


class AuthorizationError(RowsiftError):
    """Raised by the access gate; 401 for unauthenticated, 403 for missing permission."""

    code = "UNAUTHORIZED"

    def __init__(self, message: str = "Unauthorized", status_code: int = 401) -> None:
        super().__init__(message)
        self.status_code = status_code
