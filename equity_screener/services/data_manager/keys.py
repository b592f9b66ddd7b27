"""
Cache key construction for the market data caches.

Each data kind has its own cache, so keys only need to identify the entity
within that kind:

- Single-entity lookups use the identifier exactly as the caller gave it
  (case preserved): ``AAPL``, ``apple``.
- Multi-symbol lookups use the sorted, comma-joined, de-duplicated symbol
  list, so ``["MSFT", "AAPL"]`` and ``["AAPL", "MSFT"]`` share an entry.
- Market news is a single fixed entry.
"""

from collections.abc import Iterable


class CacheKeys:
    """Centralized cache key generation."""

    MARKET_NEWS = "market-news"

    @staticmethod
    def entity(identifier: str) -> str:
        """
        Key for a single-entity lookup (symbol, search query).

        Examples:
            >>> CacheKeys.entity("AAPL")
            'AAPL'
        """
        return identifier

    @staticmethod
    def multi_symbol(symbols: Iterable[str]) -> str:
        """
        Order-insensitive key for a symbol list.

        Examples:
            >>> CacheKeys.multi_symbol(["MSFT", "AAPL", "MSFT"])
            'AAPL,MSFT'
        """
        return ",".join(sorted(set(symbols)))

    @staticmethod
    def split(key: str) -> list[str]:
        """Inverse of ``multi_symbol``."""
        return [part for part in key.split(",") if part]
