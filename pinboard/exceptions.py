"""
Pinboard API: Custom Exception Hierarchy
==========================================

What:  Application-specific exceptions for the error scenarios the API knows.
Why:   Services raise these instead of building HTTP responses; the global
       handlers registered in main.py turn them into JSON with the right code.
How:   Each exception carries a user-safe message and an optional context dict.

Exception Hierarchy:
    PinboardError (base)
    ├── ValidationError          → 400 Bad Request (bad input, duplicates)
    ├── AuthenticationError      → 401 Unauthorized
    ├── PermissionDeniedError    → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── TaggingServiceError      → 503 Service Unavailable (retry later)
    ├── CircuitBreakerOpenError  → 503 Service Unavailable (circuit open)
    ├── FileStorageError         → 500 Internal Server Error
    └── DatabaseError            → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class PinboardError(Exception):
    """
    Base exception for all Pinboard application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (only returned for 4xx responses)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(PinboardError):
    """
    Raised when client input fails a business rule.

    Covers malformed values as well as state conflicts the client caused:
    liking a pin twice, following yourself, saving a pin already saved.
    HTTP: 400 Bad Request. Schema-level errors stay FastAPI's 422.
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


class AuthenticationError(PinboardError):
    """Missing, malformed or expired bearer token, or the user no longer exists."""

    def __init__(
        self,
        message: str = "Not authorized, token missing or invalid",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PermissionDeniedError(PinboardError):
    """
    Authenticated, but not allowed to do this.

    Raised for ownership violations (editing someone else's pin) and for
    accounts that are deleted or deactivated.
    """

    def __init__(
        self,
        message: str = "You do not have permission to perform this action",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(PinboardError):
    """
    Raised when a requested resource does not exist or is hidden.

    Content owned by deactivated or deleted accounts is reported as not
    found so its existence is not revealed.
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


class FileStorageError(PinboardError):
    """
    Raised when file system operations fail (disk full, permission denied).

    HTTP: 500. The client gets a generic message; paths are logged only.
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class TaggingServiceError(PinboardError):
    """
    Raised when the vision model fails after all retries.

    Pin creation catches this and proceeds without AI tags; it only reaches
    the client from explicit retagging calls.
    """

    def __init__(
        self,
        message: str = "AI tagging service is temporarily unavailable",
        retry_after: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if retry_after:
            ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class CircuitBreakerOpenError(PinboardError):
    """
    Raised when the circuit breaker is in OPEN state.

    How circuit breaker works:
        CLOSED (normal) → failures increment counter
        → After threshold failures → OPEN (reject all calls for recovery_time)
        → After recovery_time → HALF-OPEN (allow one test call)
        → If test succeeds → CLOSED
        → If test fails → OPEN again
    """

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"AI service is temporarily unavailable due to repeated failures. "
            f"The service will automatically retry in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time


class DatabaseError(PinboardError):
    """
    Raised when database operations fail unexpectedly.

    Security Note:
        The message returned to the client is always generic. Constraint
        names and SQL are logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(PinboardError):
    """Raised when a client exceeds the per-IP request rate limit."""

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
