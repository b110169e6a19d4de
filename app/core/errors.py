"""Application-level exception types.

This module defines the errors raised across the HTTP layer, enabling
consistent error handling, logging, and API responses. Each subclass pins a
stable machine-readable code and the HTTP status it maps to.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    hint: str
    limit: int
    retry_after: int
    reset_at: int
    timeout_s: float
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        status_code: HTTP status the error maps to.
        details: Optional structured details for debugging/observability.
        headers: Optional response headers to send with the error.
    """

    code: str
    message: str
    status_code: int = 500
    details: ErrorDetails | None = None
    headers: dict[str, str] | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


@dataclass
class BadRequestError(AppError):
    """Raised when the request is malformed."""

    code: str = "BAD_REQUEST"
    message: str = "Bad request"
    status_code: int = 400


@dataclass
class UnauthorizedError(AppError):
    """Raised when credentials are missing or invalid."""

    code: str = "UNAUTHORIZED"
    message: str = "Unauthorized"
    status_code: int = 401


@dataclass
class ForbiddenError(AppError):
    """Raised when the caller may not access the resource."""

    code: str = "FORBIDDEN"
    message: str = "Forbidden"
    status_code: int = 403


@dataclass
class NotFoundError(AppError):
    """Raised when a resource does not exist."""

    code: str = "NOT_FOUND"
    message: str = "Resource not found"
    status_code: int = 404


@dataclass
class RateLimitExceededError(AppError):
    """Raised when a client has used up its request quota."""

    code: str = "RATE_LIMIT_EXCEEDED"
    message: str = "Rate limit exceeded"
    status_code: int = 429


@dataclass
class RequestTimeoutError(AppError):
    """Raised when a request exceeds the configured handling time."""

    code: str = "REQUEST_TIMEOUT"
    message: str = "Request timed out"
    status_code: int = 504


@dataclass
class InternalAppError(AppError):
    """Raised for server-side failures."""

    code: str = "INTERNAL_ERROR"
    message: str = "An unexpected error occurred"
    status_code: int = 500
