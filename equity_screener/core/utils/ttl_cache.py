"""
Generic time-boxed cache with stale-data fallback.

Every data kind the dashboard shows (search results, quotes, news, ...) keeps
one long-lived ``CacheManager`` instance. Entries are stamped when written and
judged against a TTL when read, so the same entry can be "fresh" for one
caller and "expired" for another that passes a shorter TTL.

Usage:
    quotes = CacheManager[QuoteData](default_ttl_seconds=300, name="quote")

    quote = await quotes.get_or_fetch(
        "AAPL",
        lambda: client.get_quote("AAPL"),
        CacheOptions(allow_stale_on_error=True),
    )
"""

import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")

# Default cache expiry time (10 minutes)
DEFAULT_TTL_SECONDS = 10 * 60


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """A cached value and the time it was stored."""

    data: T
    stored_at: float

    def age(self, now: float) -> float:
        """Seconds elapsed since the entry was written."""
        return now - self.stored_at


@dataclass(frozen=True)
class CacheOptions:
    """Per-call cache behaviour."""

    # Overrides the cache's default TTL when set
    ttl_seconds: float | None = None
    # Return expired data from get() / after a failed fetch
    allow_stale_on_error: bool = False


class CacheManager(Generic[T]):
    """
    Keyed in-memory store with expiry and optional stale reads.

    Reads and writes never suspend; only ``get_or_fetch`` awaits, and only
    inside the producer it was given.
    """

    def __init__(
        self,
        default_ttl_seconds: float = DEFAULT_TTL_SECONDS,
        name: str = "cache",
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the cache.

        Args:
            default_ttl_seconds: TTL used when a call does not pass one
            name: Label used in log events
            clock: Time source (injectable for tests)
        """
        self._entries: dict[str, CacheEntry[T]] = {}
        self.default_ttl_seconds = default_ttl_seconds
        self.name = name
        self._clock = clock

    def resolve_ttl(self, options: CacheOptions | None = None) -> float:
        """TTL in effect for a call: the override if given, else the default."""
        if options is not None and options.ttl_seconds is not None:
            return options.ttl_seconds
        return self.default_ttl_seconds

    def get(self, key: str, options: CacheOptions | None = None) -> T | None:
        """
        Get an item from the cache.

        Args:
            key: Cache key
            options: TTL override and stale-read directive

        Returns:
            The cached item, or None if missing or expired. Expired data is
            returned anyway when ``allow_stale_on_error`` is set.
        """
        entry = self._entries.get(key)
        if entry is None:
            return None

        ttl = self.resolve_ttl(options)
        age = entry.age(self._clock())

        if age > ttl:
            if options is None or not options.allow_stale_on_error:
                return None

            logger.debug(
                "cache_stale_read", cache=self.name, key=key, age=round(age, 3)
            )

        return entry.data

    def set(self, key: str, data: T) -> CacheEntry[T]:
        """Store ``data`` under ``key``, replacing any previous entry."""
        entry = CacheEntry(data=data, stored_at=self._clock())
        self._entries[key] = entry
        return entry

    def has(self, key: str, options: CacheOptions | None = None) -> bool:
        """Whether a non-expired entry exists. Stale reads don't count."""
        entry = self._entries.get(key)
        if entry is None:
            return False

        return entry.age(self._clock()) <= self.resolve_ttl(options)

    def get_entry(self, key: str) -> CacheEntry[T] | None:
        """Raw entry regardless of age, for callers that judge age themselves."""
        return self._entries.get(key)

    async def get_or_fetch(
        self,
        key: str,
        producer: Callable[[], Awaitable[T]],
        options: CacheOptions | None = None,
    ) -> T:
        """
        Get a cached value or fetch, store and return a fresh one.

        Args:
            key: Cache key
            producer: Zero-argument coroutine function called on a miss
            options: TTL override and stale-on-error directive

        Returns:
            Cached or freshly produced value

        Raises:
            Exception: Whatever the producer raised, unless stale data was
                allowed and an entry (of any age) exists
        """
        if self.has(key, options):
            logger.debug("cache_hit", cache=self.name, key=key)
            return self._entries[key].data

        logger.debug("cache_miss", cache=self.name, key=key)

        try:
            data = await producer()
        except Exception as e:
            entry = self._entries.get(key)
            if options is not None and options.allow_stale_on_error and entry:
                logger.warning(
                    "cache_stale_after_error",
                    cache=self.name,
                    key=key,
                    error=str(e),
                )
                return entry.data
            raise

        self.set(key, data)
        return data

    def clear(self, key: str | None = None) -> None:
        """Clear one key, or the entire cache when no key is given."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def clear_expired(self, ttl_seconds: float | None = None) -> int:
        """
        Remove entries older than ``ttl_seconds`` (default TTL if omitted).

        Returns:
            Number of entries removed
        """
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        now = self._clock()

        expired = [k for k, e in self._entries.items() if e.age(now) > ttl]
        for key in expired:
            del self._entries[key]

        if expired:
            logger.debug("cache_expired_cleared", cache=self.name, count=len(expired))

        return len(expired)

    def keys(self) -> list[str]:
        return list(self._entries)

    def stats(self) -> dict[str, Any]:
        """Size and TTL summary for health output."""
        return {
            "name": self.name,
            "size": len(self._entries),
            "default_ttl_seconds": self.default_ttl_seconds,
        }

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
