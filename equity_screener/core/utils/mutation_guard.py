"""
Optimistic mutation guard for toggled user state (favorites, selection).

A key joins the pending set before its mutation starts and leaves it a short
grace delay after the write settles, success or failure. A second mutation
for a pending key is dropped, not queued or merged. Rapid double-toggles
therefore collapse into one toggle.

Eviction is lazy: membership checks purge keys whose grace delay has passed,
so no timers are involved.
"""

import time
from collections.abc import Awaitable, Callable

import structlog

logger = structlog.get_logger(__name__)

# Grace delay before a settled key accepts new mutations (50ms)
DEFAULT_GRACE_DELAY_SECONDS = 0.05


class PendingMutationGuard:
    """Process-wide pending-key set for one logical domain."""

    def __init__(
        self,
        name: str,
        grace_delay_seconds: float = DEFAULT_GRACE_DELAY_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.grace_delay_seconds = grace_delay_seconds
        self._clock = clock
        # key -> release deadline; None while the write is still running
        self._pending: dict[str, float | None] = {}

    def _evict_expired(self) -> None:
        now = self._clock()
        expired = [
            key
            for key, deadline in self._pending.items()
            if deadline is not None and deadline <= now
        ]
        for key in expired:
            del self._pending[key]

    def is_pending(self, key: str) -> bool:
        self._evict_expired()
        return key in self._pending

    def pending_keys(self) -> set[str]:
        self._evict_expired()
        return set(self._pending)

    def try_acquire(self, key: str) -> bool:
        """Claim ``key``; False if a mutation for it is still settling."""
        if self.is_pending(key):
            logger.debug("mutation_dropped", guard=self.name, key=key)
            return False

        self._pending[key] = None
        return True

    def release(self, key: str) -> None:
        """Start the grace delay for ``key``."""
        if key in self._pending:
            self._pending[key] = self._clock() + self.grace_delay_seconds

    async def run(
        self,
        key: str,
        apply: Callable[[], None],
        persist: Callable[[], Awaitable[None]],
    ) -> bool:
        """
        Apply an optimistic change and persist it, unless ``key`` is pending.

        Args:
            key: Logical key being mutated (e.g. a ticker)
            apply: Synchronous in-memory state change
            persist: Coroutine function writing the new state

        Returns:
            True if the mutation ran, False if it was dropped

        Raises:
            Exception: Whatever ``persist`` raised; the key is still released
        """
        if not self.try_acquire(key):
            return False

        try:
            apply()
            await persist()
        finally:
            self.release(key)

        return True

    def clear(self) -> None:
        self._pending.clear()
