"""
Blog API — Custom Exception Hierarchy
=======================================

What:  Application-specific exceptions, one per failure category.
Why:   Services raise these; global handlers in main.py map them to HTTP
       status codes so no route needs its own try/except.
How:   Each exception carries a user-facing message and a context dict.
       Context is logged and, for client errors, returned as `details`.

Exception Hierarchy:
    BlogAPIError (base)
    ├── ValidationError          → 400 Bad Request
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── MediaServiceError        → 500 (underlying message surfaced)
    │   └── CircuitBreakerOpenError
    └── DatabaseError            → 500 (generic message, context logged only)
"""

from typing import Any, Dict, List, Optional


class BlogAPIError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description
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


class ValidationError(BlogAPIError):
    """
    Raised when client input fails validation.

    HTTP: 400. `errors` holds field-level detail in the
    `[{"field": ..., "message": ...}]` shape used for every 400 response,
    whether it came from a service rule or from pydantic.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        errors: Optional[List[Dict[str, str]]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        self.errors = errors or ([{"field": field, "message": message}] if field else [])
        if self.errors:
            ctx["errors"] = self.errors
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(BlogAPIError):
    """
    Raised when an id has no matching row (or comment).

    SQLAlchemy hands back None / zero affected rows for a missing record; the
    service layer converts that into this exception and the handler into 404.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource.capitalize()} not found"
        if resource_id:
            message = f"{resource.capitalize()} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource = resource


class ConflictError(BlogAPIError):
    """
    Raised when a versioned comment write keeps losing to concurrent writers.

    HTTP: 409. The client may simply retry.
    """

    def __init__(
        self,
        message: str = "The resource was modified concurrently. Please retry.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(BlogAPIError):
    """
    Raised when a client exceeds a per-IP rate limit.

    HTTP: 429 with a Retry-After header.
    """

    def __init__(
        self,
        retry_after: int = 60,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = message or (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class MediaServiceError(BlogAPIError):
    """
    Raised when image compression or the media host fails.

    HTTP: 500. Unlike DatabaseError, the underlying message is returned in
    `details` so operators can diagnose upload failures from the client side.
    """

    def __init__(
        self,
        message: str = "Failed to upload image",
        detail: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if detail:
            ctx["detail"] = detail
        super().__init__(message=message, context=ctx)
        self.detail = detail


class CircuitBreakerOpenError(MediaServiceError):
    """
    Raised without calling the media host while its circuit is OPEN.

    CLOSED → (N consecutive failures) → OPEN → (recovery timeout) → HALF_OPEN
    → one trial call → CLOSED on success, OPEN again on failure.
    """

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(
            message="Image service is temporarily unavailable due to repeated failures",
            detail=f"Retry in approximately {recovery_time} seconds",
            context=ctx,
        )
        self.recovery_time = recovery_time


class DatabaseError(BlogAPIError):
    """
    Raised when a store operation fails unexpectedly.

    The client only sees a generic message; statement details stay in the logs.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
