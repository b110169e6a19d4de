"""Rate limiter interfaces.

The HTTP layer depends on this abstraction (not the concrete implementation)
so the storage backend can be swapped later (e.g., Redis) with minimal changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit consume operation.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Remaining requests in the trailing window (0 when blocked).
        reset_at: UNIX epoch seconds when the window frees up again.
        retry_after_seconds: Whole seconds to wait before retrying (blocked only).
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after_seconds: int | None


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @property
    @abstractmethod
    def limit(self) -> int:
        """Maximum admissions per window."""

    @property
    @abstractmethod
    def window_seconds(self) -> int:
        """Length of the trailing window in seconds."""

    @abstractmethod
    def consume(self, key: str) -> RateLimitResult:
        """Record one request for a given key if it fits the budget.

        Args:
            key: Unique client identifier (e.g., IP address).

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError
