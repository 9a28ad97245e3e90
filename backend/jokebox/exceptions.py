"""
Jokebox Backend: Custom Exception Hierarchy
============================================

What:  Application-specific exceptions for every failure a request can hit.
How:   Each exception carries a user-facing message and an optional context
       dict. Global exception handlers (registered in main.py) catch these and
       return structured JSON responses with the right HTTP status code.
Who:   Raised by services and auth dependencies; caught by global handlers.

Exception Hierarchy:
    JokeboxError (base)
    ├── BadRequestError          → 400 Bad Request (unsupported intent, etc.)
    ├── FormValidationError      → 400 Bad Request (field errors, re-display)
    ├── UnauthenticatedError     → 401 Unauthorized
    ├── ForbiddenError           → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── RateLimitExceededError   → 429 Too Many Requests
    └── DatabaseError            → 500 Internal Server Error

Services never build HTTP responses themselves. The mapping from exception
to status code lives in one place: main.register_exception_handlers().
"""

from typing import Any, Dict, Mapping, Optional


class JokeboxError(Exception):
    """
    Base exception for all Jokebox application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class BadRequestError(JokeboxError):
    """
    Raised when a request is malformed or asks for an unsupported action.

    When:    A joke action form posts an intent other than "delete".
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "What you're trying to do is not allowed.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FormValidationError(JokeboxError):
    """
    Raised when a submitted form fails validation.

    This is the only recoverable member of the hierarchy: it carries the
    per-field messages and the submitted values so the client can re-display
    the form with errors next to each field.

    Attributes:
        field_errors: One slot per field, None where the field is valid.
                      None altogether when the form itself was malformed.
        fields:       The submitted values, echoed back for the retry form.
        form_error:   A form-level message (malformed body, bad credentials).

    Example response:
        {
            "fieldErrors": {"name": "That joke's name is too short", "content": null},
            "fields": {"name": "ab", "content": "Why did the chicken..."},
            "formError": null
        }
    """

    def __init__(
        self,
        field_errors: Optional[Mapping[str, Optional[str]]] = None,
        fields: Optional[Mapping[str, Any]] = None,
        form_error: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.field_errors = dict(field_errors) if field_errors is not None else None
        self.fields = dict(fields) if fields is not None else None
        self.form_error = form_error
        super().__init__(message=form_error or "Form validation failed", context=context)


class UnauthenticatedError(JokeboxError):
    """
    Raised when an operation requires a logged-in user and there is none.

    When:    Creating or deleting a joke without a valid session cookie.
    HTTP:    401 Unauthorized
    """

    def __init__(
        self,
        message: str = "Unauthorized",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(JokeboxError):
    """
    Raised when the caller is authenticated but does not own the resource.

    HTTP:    403 Forbidden
    """

    def __init__(
        self,
        message: str = "You are not allowed to do that.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(JokeboxError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; services convert that into
    this exception so the global handler can answer with 404.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"The requested {resource} was not found"
            if resource_id:
                message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class DatabaseError(JokeboxError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic. Details (SQL,
    constraint names) are logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(JokeboxError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP:    429 Too Many Requests, with a Retry-After header.
    """

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Too many requests. Please wait {retry_after} seconds before retrying."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
