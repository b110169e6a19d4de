"""Rate limiting middleware for the HTTP layer.

This module wires the rate limiting adapter into the request pipeline.

Design goals:
- Minimal coupling: the middleware depends on ``AbstractRateLimiter`` only.
- Owned state: the limiter is built once per application and injected, its
  lifetime tied to the app (see ``build_rate_limiter``).
- Fail open: a request whose client cannot be identified is always admitted.

Rate limiting strategy:
- Sliding one-minute window per client IP.
- Every rate-limited response carries X-RateLimit-* headers; denied ones add
  Retry-After and a 429 error envelope.
"""

from __future__ import annotations

import logging

from fastapi import Request, Response

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from app.adapters.rate_limit.in_memory import LimiterRegistry
from app.core.client_ip import get_client_ip
from app.core.config import RateLimitSettings
from app.core.errors import RateLimitExceededError
from app.core.responses import error_response

logger = logging.getLogger(__name__)

# The configured capacity is per minute; the window is not configurable.
RATE_LIMIT_WINDOW_SECONDS = 60


def build_rate_limiter(rate_limit_settings: RateLimitSettings) -> AbstractRateLimiter:
    """Create the limiter owned by one application instance."""

    return LimiterRegistry(
        limit=rate_limit_settings.requests_per_minute,
        window_seconds=RATE_LIMIT_WINDOW_SECONDS,
    )


def rate_limit_headers(result: RateLimitResult, window_seconds: int) -> dict[str, str]:
    """Build the X-RateLimit-* headers for a consume result."""

    return {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(int(result.reset_at)),
        "X-RateLimit-Window": str(window_seconds),
    }


class RateLimitMiddleware:
    """HTTP middleware enforcing per-client request quotas.

    Usage:
        app.middleware("http")(RateLimitMiddleware(limiter, enabled=True))

    When disabled, every request is forwarded untouched and no headers are
    added. The middleware itself never raises: denial is expressed as a 429
    response and never reaches downstream handlers.
    """

    def __init__(self, limiter: AbstractRateLimiter, *, enabled: bool = True) -> None:
        self.limiter = limiter
        self.enabled = enabled

    async def __call__(self, request: Request, call_next) -> Response:
        if not self.enabled:
            return await call_next(request)

        client_ip = get_client_ip(request)
        if client_ip is None:
            logger.info(
                "rate_limit.unidentified_client",
                extra={"path": request.url.path},
            )
            return await call_next(request)

        result = self.limiter.consume(client_ip)
        headers = rate_limit_headers(result, self.limiter.window_seconds)

        if not result.allowed:
            retry_after = result.retry_after_seconds or 1
            logger.warning(
                "rate_limit.exceeded",
                extra={
                    "client_ip": client_ip,
                    "limit": result.limit,
                    "window_s": self.limiter.window_seconds,
                    "retry_after_s": retry_after,
                    "path": request.url.path,
                },
            )
            headers["Retry-After"] = str(retry_after)
            error = RateLimitExceededError(
                message=f"Rate limit exceeded. Try again in {retry_after} seconds.",
            )
            return error_response(
                error.status_code,
                error.code,
                error.message,
                headers=headers,
            )

        logger.debug(
            "rate_limit.allowed",
            extra={
                "client_ip": client_ip,
                "limit": result.limit,
                "remaining": result.remaining,
            },
        )
        response = await call_next(request)
        response.headers.update(headers)
        return response
