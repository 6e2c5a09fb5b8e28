"""
BookCourier Backend — Custom Exception Hierarchy
==================================================

What:  Application-specific exceptions for every error the API reports.
How:   Each exception carries a user-facing message and an optional context
       dict. Global exception handlers (registered in main.py) map them to
       HTTP status codes and the `{"message": ...}` error envelope.
Who:   Raised by the authorization gate, services and middleware.

Exception Hierarchy:
    BookCourierError (base)
    ├── UnauthorizedError        → 401 Unauthorized
    ├── ForbiddenError           → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── ValidationError          → 400 Bad Request
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── IdentityServiceError     → 503 Service Unavailable
    └── CircuitBreakerOpenError  → 503 Service Unavailable
"""

from typing import Any, Dict, Optional


class BookCourierError(Exception):
    """
    Base exception for all BookCourier application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    status_code = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class UnauthorizedError(BookCourierError):
    """
    Raised when the bearer credential is missing, malformed or rejected by
    the identity provider.

    The message is always the bare "Unauthorized": the reason is kept in
    `context` so callers cannot probe which check failed.
    """

    status_code = 401

    def __init__(self, reason: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        if reason:
            ctx["reason"] = reason
        super().__init__(message="Unauthorized", context=ctx)


class ForbiddenError(BookCourierError):
    """Raised when an authenticated caller lacks the role or ownership required."""

    status_code = 403

    def __init__(self, message: str = "Forbidden", context: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, context=context)


class NotFoundError(BookCourierError):
    """
    Raised when a referenced document does not exist.

    The driver returns None for missing documents; services convert that
    into this exception so routes stay free of existence checks.
    """

    status_code = 404

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=f"{resource} not found", context=ctx)


class ValidationError(BookCourierError):
    """
    Raised when client input fails validation.

    When: malformed ObjectId strings, empty update bodies, business rules
    such as paying a cancelled order.
    """

    status_code = 400

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


class RateLimitExceededError(BookCourierError):
    """Raised when a client exceeds the per-IP request rate limit."""

    status_code = 429

    def __init__(self, retry_after: int = 60, context: Optional[Dict[str, Any]] = None):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class IdentityServiceError(BookCourierError):
    """
    Raised when the identity provider cannot be reached after all retries.

    A provider outage says nothing about the caller's credential, so this
    is a 503 rather than a 401.
    """

    status_code = 503

    def __init__(
        self,
        message: str = "Authentication service is temporarily unavailable",
        retry_after: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if retry_after:
            ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class CircuitBreakerOpenError(BookCourierError):
    """
    Raised when the identity provider circuit breaker is OPEN.

    CLOSED → (threshold consecutive failures) → OPEN
    OPEN → (recovery timeout elapsed) → HALF_OPEN → success → CLOSED
                                                  → failure → OPEN
    """

    status_code = 503

    def __init__(self, recovery_time: int = 30, context: Optional[Dict[str, Any]] = None):
        message = (
            "Authentication service is temporarily unavailable. "
            f"Please retry in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time
