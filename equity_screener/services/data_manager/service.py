"""
Market Data Service - single entry point for every dashboard data surface.

For each data kind the service:
1. Consults the kind's TTL cache
2. Calls the live Alpha Vantage client (unless synthetic mode is on)
3. Writes successful live results through the cache
4. On quota or transport failure, serves stale live data if any exists,
   otherwise substitutes deterministic synthetic data
5. Lets malformed responses surface as hard failures

Callers never learn which path produced the data unless they ask
``source_of``; cached entries are tagged with their ``DataSource``.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, fields, replace
from typing import Any, Protocol, TypeVar

import structlog

from ...core.config import Settings
from ...core.exceptions import (
    MalformedResponseError,
    MarketDataError,
    SymbolNotFoundError,
    ValidationError,
)
from ...core.utils.ttl_cache import CacheManager, CacheOptions
from .keys import CacheKeys
from .types import (
    CompanyOverview,
    DataKind,
    DataSource,
    NewsArticle,
    QuoteData,
    SourcedData,
    SymbolMatch,
    TimeSeriesData,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")

# Fallback 52-week range when the series cannot be used: +/-20% of price
ESTIMATED_RANGE_FACTOR = 0.2


class LiveMarketDataClient(Protocol):
    """What the service needs from the live upstream client."""

    async def search_symbols(self, query: str) -> list[SymbolMatch]: ...

    async def get_monthly_time_series(self, symbol: str) -> TimeSeriesData: ...

    async def get_quote(self, symbol: str) -> QuoteData: ...

    async def get_company_overview(self, symbol: str) -> CompanyOverview: ...

    async def get_company_news(self, symbol: str) -> list[NewsArticle]: ...

    async def get_market_news(self) -> list[NewsArticle]: ...


class SyntheticSource(Protocol):
    """Deterministic stand-in producing data for any key."""

    async def search_symbols(self, query: str) -> list[SymbolMatch]: ...

    async def time_series(self, symbol: str) -> TimeSeriesData: ...

    async def quote(self, symbol: str) -> QuoteData: ...

    async def company_overview(self, symbol: str) -> CompanyOverview: ...

    async def company_news(self, symbol: str) -> list[NewsArticle]: ...

    async def market_news(self) -> list[NewsArticle]: ...


@dataclass
class MarketDataCaches:
    """One long-lived cache per data kind, shared by every caller."""

    search: CacheManager[SourcedData]
    time_series: CacheManager[SourcedData]
    quote: CacheManager[SourcedData]
    overview: CacheManager[SourcedData]
    company_news: CacheManager[SourcedData]
    market_news: CacheManager[SourcedData]
    multi_news: CacheManager[SourcedData]

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        clock: Callable[[], float] = time.time,
    ) -> "MarketDataCaches":
        """Build caches with the configured per-kind TTLs."""
        ttl = {
            DataKind.SEARCH: settings.cache_ttl_search,
            DataKind.TIME_SERIES: settings.cache_ttl_time_series,
            DataKind.QUOTE: settings.cache_ttl_quote,
            DataKind.OVERVIEW: settings.cache_ttl_overview,
            DataKind.COMPANY_NEWS: settings.cache_ttl_news,
            DataKind.MARKET_NEWS: settings.cache_ttl_news,
            DataKind.MULTI_NEWS: settings.cache_ttl_news,
        }
        return cls(
            **{
                kind.value: CacheManager(
                    default_ttl_seconds=seconds, name=kind.value, clock=clock
                )
                for kind, seconds in ttl.items()
            }
        )

    def for_kind(self, kind: DataKind) -> CacheManager[SourcedData]:
        return getattr(self, kind.value)

    def all(self) -> list[CacheManager[SourcedData]]:
        return [getattr(self, f.name) for f in fields(self)]

    def clear_all(self) -> None:
        for cache in self.all():
            cache.clear()

    def clear_expired(self) -> dict[str, int]:
        """Drop entries past each cache's default TTL; counts by kind."""
        return {cache.name: cache.clear_expired() for cache in self.all()}


class MarketDataService:
    """
    Cache-first market data facade with live/synthetic fallback.

    Args:
        live_client: Alpha Vantage client (or anything shaped like it)
        synthetic: Deterministic synthetic data source
        caches: Per-kind caches, injected so they outlive any one request
        use_synthetic_data: Skip the live client entirely
        synthetic_ttl_seconds: How long a synthetic entry is trusted while
            live mode is active
        news_limit: Default cap for multi-symbol news
    """

    def __init__(
        self,
        live_client: LiveMarketDataClient,
        synthetic: SyntheticSource,
        caches: MarketDataCaches,
        *,
        use_synthetic_data: bool = False,
        synthetic_ttl_seconds: float = 60.0,
        news_limit: int = 20,
    ):
        self._live = live_client
        self._synthetic = synthetic
        self.caches = caches
        self._use_synthetic_data = use_synthetic_data
        self.synthetic_ttl_seconds = synthetic_ttl_seconds
        self.news_limit = news_limit

        logger.info(
            "market_data_service_initialized",
            use_synthetic_data=use_synthetic_data,
        )

    # =========================================================================
    # Runtime controls
    # =========================================================================

    @property
    def use_synthetic_data(self) -> bool:
        return self._use_synthetic_data

    def set_use_synthetic_data(self, enabled: bool) -> None:
        """Switch between live-preferred and synthetic-only mode."""
        if enabled != self._use_synthetic_data:
            logger.info("synthetic_mode_changed", enabled=enabled)
        self._use_synthetic_data = enabled

    # =========================================================================
    # Operations
    # =========================================================================

    async def search_symbols(
        self, query: str, options: CacheOptions | None = None
    ) -> list[SymbolMatch]:
        """
        Search for symbols by ticker or company name.

        A blank query returns an empty list without touching the upstream.
        """
        if not query or not query.strip():
            return []

        async def live() -> list[SymbolMatch]:
            try:
                return await self._live.search_symbols(query)
            except SymbolNotFoundError:
                return []

        matches = await self._fetch(
            DataKind.SEARCH,
            CacheKeys.entity(query),
            live,
            lambda: self._synthetic.search_symbols(query),
            options,
        )
        return list(matches)

    async def fetch_time_series(
        self, symbol: str, options: CacheOptions | None = None
    ) -> TimeSeriesData:
        """Monthly price history, newest point first."""
        _require_symbol(symbol)
        return await self._fetch(
            DataKind.TIME_SERIES,
            CacheKeys.entity(symbol),
            lambda: self._live.get_monthly_time_series(symbol),
            lambda: self._synthetic.time_series(symbol),
            options,
        )

    async def fetch_quote(
        self, symbol: str, options: CacheOptions | None = None
    ) -> QuoteData:
        """
        Latest quote with a 52-week range.

        The live quote endpoint has no 52-week range, so it is derived from
        the live monthly series. If the series is unavailable or synthetic,
        the range is estimated from the price instead of failing the quote.
        """
        _require_symbol(symbol)

        async def live() -> QuoteData:
            quote = await self._live.get_quote(symbol)
            return await self._enrich_quote(quote)

        return await self._fetch(
            DataKind.QUOTE,
            CacheKeys.entity(symbol),
            live,
            lambda: self._synthetic.quote(symbol),
            options,
        )

    async def fetch_company_overview(
        self, symbol: str, options: CacheOptions | None = None
    ) -> CompanyOverview:
        """Company fundamentals; missing 52-week fields come from the quote."""
        _require_symbol(symbol)

        async def live() -> CompanyOverview:
            overview = await self._live.get_company_overview(symbol)
            return await self._enrich_overview(overview)

        return await self._fetch(
            DataKind.OVERVIEW,
            CacheKeys.entity(symbol),
            live,
            lambda: self._synthetic.company_overview(symbol),
            options,
        )

    async def fetch_company_news(
        self, symbol: str, options: CacheOptions | None = None
    ) -> list[NewsArticle]:
        _require_symbol(symbol)
        articles = await self._fetch(
            DataKind.COMPANY_NEWS,
            CacheKeys.entity(symbol),
            lambda: self._live.get_company_news(symbol),
            lambda: self._synthetic.company_news(symbol),
            options,
        )
        return list(articles)

    async def fetch_market_news(
        self, options: CacheOptions | None = None
    ) -> list[NewsArticle]:
        articles = await self._fetch(
            DataKind.MARKET_NEWS,
            CacheKeys.MARKET_NEWS,
            self._live.get_market_news,
            self._synthetic.market_news,
            options,
        )
        return list(articles)

    async def fetch_multi_symbol_news(
        self,
        symbols: Iterable[str],
        limit: int | None = None,
        options: CacheOptions | None = None,
    ) -> list[NewsArticle]:
        """
        Merged news for several symbols, newest first.

        Per-symbol lists are fetched concurrently through
        ``fetch_company_news`` (so each has its own cache and fallback),
        de-duplicated by URL and capped at ``limit`` (a negative limit is 0).
        When no symbol yields a list, market news is returned instead.
        """
        limit = max(self.news_limit if limit is None else limit, 0)
        wanted = sorted({s.strip() for s in symbols if s and s.strip()})

        if not wanted:
            return (await self.fetch_market_news(options))[:limit]

        key = CacheKeys.multi_symbol(wanted)
        cache = self.caches.multi_news

        cached = cache.get(key, self._read_options(cache, key, options))
        if cached is not None:
            return list(cached.data[:limit])

        results = await asyncio.gather(
            *(self.fetch_company_news(symbol, options) for symbol in wanted),
            return_exceptions=True,
        )

        lists: list[list[NewsArticle]] = []
        all_live = True
        for symbol, result in zip(wanted, results, strict=True):
            if isinstance(result, BaseException):
                logger.warning(
                    "multi_news_symbol_failed", symbol=symbol, error=str(result)
                )
                continue
            lists.append(result)
            if self.source_of(DataKind.COMPANY_NEWS, symbol) is not DataSource.LIVE:
                all_live = False

        if not lists:
            logger.warning("multi_news_degraded_to_market_news", key=key)
            return (await self.fetch_market_news(options))[:limit]

        merged = _merge_news(lists)
        source = DataSource.LIVE if all_live else DataSource.SYNTHETIC
        cache.set(key, SourcedData(merged, source))

        logger.info(
            "multi_news_merged", key=key, news_count=len(merged), source=source.value
        )

        return merged[:limit]

    async def symbol_exists(self, symbol: str) -> bool:
        """Whether a search for ``symbol`` returns that exact ticker (case-sensitive)."""
        if not symbol or not symbol.strip():
            return False

        try:
            matches = await self.search_symbols(symbol)
        except Exception as e:
            logger.warning("symbol_exists_check_failed", symbol=symbol, error=str(e))
            return False

        wanted = symbol.strip()
        return any(m.symbol == wanted for m in matches)

    # =========================================================================
    # Diagnostics and housekeeping
    # =========================================================================

    def source_of(self, kind: DataKind, key: str) -> DataSource | None:
        """Origin of the entry currently cached under ``key``, if any."""
        entry = self.caches.for_kind(kind).get_entry(key)
        return entry.data.source if entry else None

    def clear_cache(self, kind: DataKind | None = None) -> None:
        if kind is None:
            self.caches.clear_all()
        else:
            self.caches.for_kind(kind).clear()
        logger.info("cache_cleared", kind=kind.value if kind else "all")

    def purge_expired(self) -> dict[str, int]:
        removed = self.caches.clear_expired()
        total = sum(removed.values())
        if total:
            logger.info("cache_purged", removed=total, by_kind=removed)
        return removed

    def cache_stats(self) -> dict[str, Any]:
        stats: dict[str, Any] = {}
        for cache in self.caches.all():
            entries = [cache.get_entry(k) for k in cache.keys()]
            live = sum(1 for e in entries if e and e.data.is_live)
            stats[cache.name] = {
                **cache.stats(),
                "live": live,
                "synthetic": len(entries) - live,
            }
        return stats

    # =========================================================================
    # Internals
    # =========================================================================

    def _read_options(
        self,
        cache: CacheManager[SourcedData],
        key: str,
        options: CacheOptions | None,
    ) -> CacheOptions:
        """
        Freshness rule for reading ``key``.

        In live mode a synthetic placeholder is only fresh for
        ``synthetic_ttl_seconds``, so live data is retried once it ages out.
        Stale reads are never delegated to the cache; ``_fetch`` decides them.
        """
        ttl = cache.resolve_ttl(options)

        entry = cache.get_entry(key)
        if entry is not None and not entry.data.is_live and not self._use_synthetic_data:
            ttl = min(ttl, self.synthetic_ttl_seconds)

        return CacheOptions(ttl_seconds=ttl)

    async def _fetch(
        self,
        kind: DataKind,
        key: str,
        live: Callable[[], Awaitable[T]],
        synthetic: Callable[[], Awaitable[T]],
        options: CacheOptions | None = None,
    ) -> T:
        cache = self.caches.for_kind(kind)
        read = self._read_options(cache, key, options)

        if self._use_synthetic_data:
            sourced = await cache.get_or_fetch(
                key, lambda: _tagged(synthetic, DataSource.SYNTHETIC), read
            )
            return sourced.data

        try:
            sourced = await cache.get_or_fetch(
                key, lambda: _tagged(live, DataSource.LIVE), read
            )
        except MarketDataError as e:
            logger.warning(
                "live_fetch_failed",
                kind=kind.value,
                key=key,
                error_kind=e.kind.value,
                error=e.message,
            )

            entry = cache.get_entry(key)
            stale_live = entry if entry is not None and entry.data.is_live else None

            if e.is_recoverable:
                if stale_live is not None:
                    logger.info("stale_live_served", kind=kind.value, key=key)
                    return stale_live.data.data
                logger.info("synthetic_fallback", kind=kind.value, key=key)
                return await self._serve_synthetic(cache, key, synthetic)

            allow_stale = options is not None and options.allow_stale_on_error
            if allow_stale and stale_live is not None:
                logger.info("stale_live_served", kind=kind.value, key=key)
                return stale_live.data.data
            raise

        return sourced.data

    async def _serve_synthetic(
        self,
        cache: CacheManager[SourcedData],
        key: str,
        synthetic: Callable[[], Awaitable[T]],
    ) -> T:
        data = await synthetic()
        cache.set(key, SourcedData(data, DataSource.SYNTHETIC))
        logger.debug("synthetic_served", cache=cache.name, key=key)
        return data

    async def _enrich_quote(self, quote: QuoteData) -> QuoteData:
        """Attach a 52-week range from the live monthly series."""
        if quote.high_52_week is not None and quote.low_52_week is not None:
            return quote

        try:
            series = await self.fetch_time_series(quote.symbol)
            if self.source_of(DataKind.TIME_SERIES, quote.symbol) is not DataSource.LIVE:
                raise MalformedResponseError(
                    "Monthly series is synthetic", symbol=quote.symbol
                )
            week_range = series.fifty_two_week_range()
            if week_range is None:
                raise MalformedResponseError(
                    "Monthly series is empty", symbol=quote.symbol
                )
        except Exception as e:
            logger.warning(
                "quote_range_estimated", symbol=quote.symbol, reason=str(e)
            )
            week_range = _estimate_range(quote.price)

        high, low = week_range
        return replace(quote, high_52_week=high, low_52_week=low)

    async def _enrich_overview(self, overview: CompanyOverview) -> CompanyOverview:
        """Fill a missing 52-week range from the live quote."""
        if (
            overview.fifty_two_week_high is not None
            and overview.fifty_two_week_low is not None
        ):
            return overview

        try:
            quote = await self.fetch_quote(overview.symbol)
        except Exception as e:
            logger.warning(
                "overview_range_unavailable", symbol=overview.symbol, error=str(e)
            )
            return overview

        if self.source_of(DataKind.QUOTE, overview.symbol) is not DataSource.LIVE:
            logger.info("overview_range_skipped_synthetic", symbol=overview.symbol)
            return overview

        high, low = quote.high_52_week, quote.low_52_week
        if high is None or low is None:
            high, low = _estimate_range(quote.price)

        if overview.fifty_two_week_high is not None:
            high = overview.fifty_two_week_high
        if overview.fifty_two_week_low is not None:
            low = overview.fifty_two_week_low
        return replace(overview, fifty_two_week_high=high, fifty_two_week_low=low)


async def _tagged(
    producer: Callable[[], Awaitable[T]], source: DataSource
) -> SourcedData:
    return SourcedData(await producer(), source)


def _require_symbol(symbol: str) -> None:
    if not symbol or not symbol.strip():
        raise ValidationError("Symbol cannot be empty")


def _estimate_range(price: float) -> tuple[float, float]:
    return (
        round(price * (1 + ESTIMATED_RANGE_FACTOR), 2),
        round(price * (1 - ESTIMATED_RANGE_FACTOR), 2),
    )


def _merge_news(lists: list[list[NewsArticle]]) -> list[NewsArticle]:
    """De-duplicate by URL (first wins) and order newest first."""
    seen: set[str] = set()
    merged: list[NewsArticle] = []
    for articles in lists:
        for article in articles:
            if article.url in seen:
                continue
            seen.add(article.url)
            merged.append(article)

    merged.sort(key=lambda a: a.published_at, reverse=True)
    return merged
