"""In-memory sliding-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: each client's counter has its own lock; the registry lock is
  only taken to create or evict counters, never on the admission hot path.
- Idle counters are evicted opportunistically from ``get_or_create`` instead
  of by a background thread.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections import deque
from typing import Callable, NamedTuple

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL_SECONDS = 300
# Counters idle for longer than this many windows are evicted
IDLE_WINDOWS = 2


class WindowDecision(NamedTuple):
    admitted: bool
    remaining: int
    reset_at: float


class WindowCounter:
    """Admission timestamps of one client within a trailing time window.

    Timestamps are kept oldest first, so expiring them is a prefix trim.
    """

    def __init__(
        self,
        *,
        capacity: int,
        window_seconds: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")

        self._capacity = capacity
        self._window = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._timestamps: deque[float] = deque()
        self._retired = False

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"WindowCounter(capacity={self._capacity}, window_seconds={self._window}, "
            f"used={len(self._timestamps)}, retired={self._retired})"
        )

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def window_seconds(self) -> float:
        return self._window

    def allow(self) -> WindowDecision | None:
        """Decide whether one more request fits in the trailing window.

        Admitted requests are recorded. A denied request is not, so a client
        hammering a full window does not push its own reset further out.

        Returns:
            WindowDecision with the admission flag, the quota left after this
            request, and the epoch time at which a slot is next free. None
            only once the counter has been evicted by its registry; callers
            must then resolve a fresh counter.
        """

        with self._lock:
            if self._retired:
                return None

            now = self._clock()
            cutoff = now - self._window
            while self._timestamps and self._timestamps[0] <= cutoff:
                self._timestamps.popleft()

            used = len(self._timestamps)
            if used < self._capacity:
                self._timestamps.append(now)
                return WindowDecision(True, self._capacity - used - 1, now + self._window)

            return WindowDecision(False, 0, self._timestamps[0] + self._window)

    def remaining(self) -> int:
        """Quota left right now, without recording a request."""

        with self._lock:
            cutoff = self._clock() - self._window
            used = sum(1 for ts in self._timestamps if ts > cutoff)
            return max(0, self._capacity - used)

    def is_idle(self, now: float, idle_after: float) -> bool:
        """True if nothing was admitted, or the newest admission is too old."""

        with self._lock:
            return not self._timestamps or now - self._timestamps[-1] > idle_after

    def retire_if_idle(self, now: float, idle_after: float) -> bool:
        """Mark the counter as evicted if it is still idle.

        Re-checked under the counter's own lock so a request admitted after
        the sweep's first pass keeps the counter alive.
        """

        with self._lock:
            if self._timestamps and now - self._timestamps[-1] <= idle_after:
                return False
            self._retired = True
            return True


class LimiterRegistry(AbstractRateLimiter):
    """Maps client identities to their WindowCounter.

    Counters are created lazily, exactly once per identity, and evicted once
    they have been idle for ``IDLE_WINDOWS`` windows. Eviction runs from
    ``get_or_create`` at most once per ``sweep_interval_seconds``.

    Important:
        This limiter is per-process only. If the API runs with multiple
        workers, each worker enforces its own independent limits.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: int,
        sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the registry.

        Args:
            limit: Maximum admitted requests per client per window.
            window_seconds: Length of the trailing window in seconds.
            sweep_interval_seconds: Minimum time between eviction passes.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If limit or window_seconds are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")

        self._limit = limit
        self._window_seconds = window_seconds
        self._sweep_interval = sweep_interval_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._sweep_lock = threading.Lock()
        self._counters: dict[str, WindowCounter] = {}
        self._last_sweep = clock()
        self._created = 0
        self._evicted = 0

    def __len__(self) -> int:
        return len(self._counters)

    def __contains__(self, client_id: object) -> bool:
        return client_id in self._counters

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> int:
        return self._window_seconds

    @property
    def last_sweep(self) -> float:
        return self._last_sweep

    def get_or_create(self, client_id: str) -> WindowCounter:
        """Return the counter for ``client_id``, creating it on first use.

        Concurrent first requests for the same identity all receive the same
        counter. May run an eviction pass first when one is due.
        """

        if self._clock() - self._last_sweep > self._sweep_interval:
            self._maybe_sweep()

        # dict lookups are atomic; the lock is only needed to insert
        counter = self._counters.get(client_id)
        if counter is not None:
            return counter

        with self._lock:
            counter = self._counters.get(client_id)
            if counter is None:
                counter = WindowCounter(
                    capacity=self._limit,
                    window_seconds=self._window_seconds,
                    clock=self._clock,
                )
                self._counters[client_id] = counter
                self._created += 1
            return counter

    def _maybe_sweep(self) -> None:
        # Only one thread sweeps; the others carry on with admission.
        if not self._sweep_lock.acquire(blocking=False):
            return
        try:
            if self._clock() - self._last_sweep > self._sweep_interval:
                self.sweep()
        finally:
            self._sweep_lock.release()

    def sweep(self) -> int:
        """Evict counters idle for longer than ``IDLE_WINDOWS`` windows.

        Idleness is checked one counter at a time, then the idle entries are
        removed in a single pass under the registry lock.

        Returns:
            Number of evicted counters.
        """

        now = self._clock()
        idle_after = self._window_seconds * IDLE_WINDOWS

        with self._lock:
            snapshot = list(self._counters.items())

        candidates = [
            (client_id, counter)
            for client_id, counter in snapshot
            if counter.is_idle(now, idle_after)
        ]

        evicted = 0
        with self._lock:
            for client_id, counter in candidates:
                if self._counters.get(client_id) is not counter:
                    continue
                if counter.retire_if_idle(now, idle_after):
                    del self._counters[client_id]
                    evicted += 1
            self._evicted += evicted
            remaining = len(self._counters)

        self._last_sweep = now

        logger.debug(
            "rate_limit.sweep",
            extra={
                "evicted": evicted,
                "active_clients": remaining,
            },
        )
        return evicted

    def consume(self, key: str) -> RateLimitResult:
        """Record one request for ``key`` if the trailing window has room.

        Raises:
            ValueError: If key is empty.
        """
        if not key:
            raise ValueError("key must be a non-empty string")

        decision = None
        while decision is None:
            # None means the counter was evicted between lookup and use
            decision = self.get_or_create(key).allow()

        if decision.admitted:
            return RateLimitResult(
                allowed=True,
                limit=self._limit,
                remaining=decision.remaining,
                reset_at=decision.reset_at,
                retry_after_seconds=None,
            )

        retry_after = max(1, int(math.ceil(decision.reset_at - self._clock())))
        return RateLimitResult(
            allowed=False,
            limit=self._limit,
            remaining=0,
            reset_at=decision.reset_at,
            retry_after_seconds=retry_after,
        )

    def stats(self) -> dict[str, int | float]:
        """Return lightweight registry metrics."""

        return {
            "limit": self._limit,
            "window_seconds": self._window_seconds,
            "active_clients": len(self._counters),
            "created": self._created,
            "evicted": self._evicted,
            "last_sweep": self._last_sweep,
        }
