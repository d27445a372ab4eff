"""
Scavenger Hunt Backend - Custom Exception Hierarchy
====================================================

What:  Application-specific exceptions, one per failure category.
How:   Each exception carries a user-facing message and an optional context
       dict. Global handlers registered in main.py map each type to exactly
       one HTTP status code and a JSON error body.
Who:   Raised by the validation layer, the temporal store, services and the
       authorization gate; caught by the global handlers.

Exception Hierarchy:
    ScavengerError (base)
    ├── ValidationError          → 400 Bad Request (never reaches the store)
    ├── AuthenticationError      → 401 Unauthorized (missing/invalid token)
    │   └── UnauthorizedError    → 401 Unauthorized (bad credentials)
    ├── AuthorizationError       → 403 Forbidden (insufficient role)
    ├── NotFoundError            → 404 Not Found (no active entity for key)
    ├── ConflictError            → 409 Conflict (active entity already exists)
    ├── RateLimitExceededError   → 429 Too Many Requests
    └── DatabaseError            → 500 Internal Server Error
"""

from typing import Any, Dict, List, Optional


class ScavengerError(Exception):
    """
    Base exception for all application errors.

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


class ValidationError(ScavengerError):
    """
    Raised when client input fails validation.

    Carries every violation found, not just the first one:

        {
            "error": "validation_error",
            "message": "3 validation errors",
            "details": {"violations": [
                {"field": "waypoint_name", "rule": "string_too_short", "message": "..."},
                ...
            ]}
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        violations: Optional[List[Dict[str, str]]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if violations is None:
            violations = [{"field": field or "", "rule": "invalid", "message": message}]
        ctx["violations"] = violations
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field
        self.violations = violations


class AuthenticationError(ScavengerError):
    """Missing, malformed, expired or forged bearer token. HTTP 401."""

    def __init__(
        self,
        message: str = "missing or invalid token",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UnauthorizedError(AuthenticationError):
    """Username/password pair did not match. HTTP 401."""

    def __init__(
        self,
        message: str = "invalid credentials",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthorizationError(ScavengerError):
    """
    Authenticated identity lacks the role an operation requires.

    HTTP: 403 Forbidden
    """

    def __init__(
        self,
        message: str = "insufficient permissions",
        required_role: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if required_role:
            ctx["required_role"] = required_role
        super().__init__(message=message, context=ctx)
        self.required_role = required_role


class NotFoundError(ScavengerError):
    """
    Raised when no active entity exists for a natural key.

    The store returns None for absent rows; services convert that into this
    exception where absence is an error.
    HTTP: 404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        key: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource} not found"
        if key:
            message = f"{resource} '{key}' not found"
        ctx = context or {}
        ctx["resource"] = resource
        if key:
            ctx["key"] = key
        super().__init__(message=message, context=ctx)
        self.resource = resource
        self.key = key


class ConflictError(ScavengerError):
    """
    Raised when an active entity already exists for a natural key.

    HTTP: 409 Conflict
    """

    def __init__(
        self,
        message: str = "resource already exists",
        key: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if key:
            ctx["key"] = key
        super().__init__(message=message, context=ctx)
        self.key = key


class DatabaseError(ScavengerError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic. The original
    driver error is logged server-side only. Not retried by this layer.
    HTTP: 500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(ScavengerError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP: 429 Too Many Requests, with a Retry-After header.
    """

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
