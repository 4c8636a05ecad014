"""
Vitrine Backend — Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions for each failure class of the
       item/visit operations.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered in main.py) map them to
       HTTP status codes and structured JSON error bodies.
Who:   Raised by services and store clients; caught by global handlers.

Exception Hierarchy:
    VitrineError (base)
    ├── ValidationError   → 400 Bad Request (missing input, caught before any network call)
    ├── NotFoundError     → 404 Not Found (domain absence: zero matching rows)
    ├── StorageError      → 500 Internal Server Error (blob store call failed or timed out)
    └── RecordError       → 500 Internal Server Error (record store call failed or timed out)

Transport failures (timeouts, connection errors) are not a separate class:
they surface as StorageError or RecordError depending on which store was
being called.
"""

from typing import Any, Dict, Optional


class VitrineError(Exception):
    """
    Base exception for all Vitrine application errors.

    Attributes:
        message:  User-facing error description
        context:  Additional debug info (upstream status, payload, path, ...)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(VitrineError):
    """
    Raised when client input fails a presence check.

    When:    Create called without image bytes.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "Image required.",
            "details": {"field": "image"}
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(VitrineError):
    """
    Raised when a requested item does not exist.

    When:    read/update/delete on an id with zero matching rows, including
             the loser of two concurrent deletes.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class StorageError(VitrineError):
    """
    Raised when a blob store operation fails.

    When:    Upload rejected, network error, timeout, unexpected status.
    HTTP:    500 Internal Server Error

    The context carries the upstream status code and payload when the
    store answered, so operators can see the raw store error.
    """

    def __init__(
        self,
        message: str = "Blob storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RecordError(VitrineError):
    """
    Raised when a record store (SQL) operation fails.

    When:    Connection lost, constraint violation, statement timeout,
             missing singleton stats row.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
