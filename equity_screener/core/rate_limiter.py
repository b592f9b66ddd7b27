"""
Rate limiting utilities for the upstream market data quota.
Sliding-window request budget kept in process memory.
"""

import time
from collections import deque
from collections.abc import Callable

import structlog

from .exceptions import RateLimitedError

logger = structlog.get_logger()


class RateLimiter:
    """In-memory sliding-window rate limiter keyed by quota name."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        """
        Initialize rate limiter.

        Args:
            clock: Monotonic time source (injectable for tests)
        """
        self._clock = clock
        self._windows: dict[str, deque[float]] = {}

    def _prune(self, key: str, window_seconds: float) -> deque[float]:
        """Drop timestamps that have left the window."""
        calls = self._windows.setdefault(key, deque())
        cutoff = self._clock() - window_seconds
        while calls and calls[0] <= cutoff:
            calls.popleft()
        return calls

    def check_rate_limit(
        self,
        key: str,
        limit: int,
        window_seconds: float,
    ) -> tuple[bool, int, int]:
        """
        Check the budget and record the request if it is allowed.

        Args:
            key: Unique identifier for the quota (e.g., "alpha_vantage")
            limit: Maximum number of requests allowed
            window_seconds: Time window in seconds

        Returns:
            Tuple of (is_allowed, current_count, remaining)
        """
        calls = self._prune(key, window_seconds)

        if len(calls) >= limit:
            return False, len(calls), 0

        calls.append(self._clock())
        current = len(calls)
        return True, current, max(0, limit - current)

    def enforce_limit(
        self,
        key: str,
        limit: int,
        window_seconds: float,
    ) -> None:
        """
        Enforce rate limit or raise RateLimitedError.

        Raises:
            RateLimitedError: If the quota for ``key`` is used up
        """
        is_allowed, current, _remaining = self.check_rate_limit(
            key, limit, window_seconds
        )

        if not is_allowed:
            logger.warning(
                "Rate limit exceeded",
                key=key,
                current=current,
                limit=limit,
            )
            raise RateLimitedError(
                f"Rate limit exceeded. Maximum {limit} requests per {window_seconds:g} seconds.",
                quota=key,
            )
