"""
Notes API — Custom Exception Hierarchy
=======================================

What:  Application-specific exceptions for the error scenarios of the service.
Why:   Services raise these; global handlers (registered in main.py) map them
       to HTTP status codes and a consistent JSON error envelope.
How:   Each exception class carries a message and optional context dict.

Exception Hierarchy:
    NotesAPIError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── NotFoundError            → 404 Not Found
    ├── RateLimitExceededError   → 429 Too Many Requests
    └── DatabaseError            → 500 Internal Server Error
"""

from typing import Any, Dict, Optional

from starlette.responses import JSONResponse


class NotesAPIError(Exception):
    """
    Base exception for all Notes API errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(NotesAPIError):
    """
    Raised when client input fails validation.

    When:    Title or content too long, malformed note ID, unparseable body.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "Title exceeds maximum length of: 100 characters",
            "details": {"field": "title", "max_length": 100}
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


class NotFoundError(NotesAPIError):
    """
    Raised when a requested resource does not exist.

    When:    GET/PUT/DELETE /notes/{id} with an id that has no row.
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
            message = f"{resource.capitalize()} {resource_id} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class DatabaseError(NotesAPIError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:    500 Internal Server Error

    The message returned to the client is always generic; the context
    (statement kind, driver error type) is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(NotesAPIError):
    """
    Raised when the admission gate has no token for a write request.

    HTTP:    429 Too Many Requests, with a Retry-After header.
    """

    def __init__(
        self,
        retry_after: int = 1,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please retry in {retry_after} second"
            f"{'' if retry_after == 1 else 's'}."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


def error_response(
    status_code: int,
    error: str,
    message: str,
    request_id: str = "",
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """
    Render the ErrorResponse envelope shared by the exception handlers and
    RequestIDMiddleware.
    """
    content: Dict[str, Any] = {
        "error": error,
        "message": message,
        "request_id": request_id,
    }
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)
