"""Rate limiting adapters.

This package provides a small abstraction layer so the service can start with
an in-memory sliding-window limiter and later migrate to Redis or another
shared store without changing the HTTP layer.
"""

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from app.adapters.rate_limit.in_memory import LimiterRegistry, WindowCounter, WindowDecision

__all__ = [
    "AbstractRateLimiter",
    "LimiterRegistry",
    "RateLimitResult",
    "WindowCounter",
    "WindowDecision",
]
