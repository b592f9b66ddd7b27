"""
Unit tests for MarketDataService.

Tests cover:
- Cache-first reads and write-through
- Synthetic fallback on quota and transport failures
- Stale live data preferred over synthetic data
- Hard failures for malformed responses
- 52-week range enrichment for quotes and overviews
- Multi-symbol news merging and its order-insensitive cache key
- Runtime synthetic mode and housekeeping
- Cached values shared between callers staying unchanged
"""

from dataclasses import FrozenInstanceError
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, Mock, patch

import pytest

from equity_screener.core.config import Settings
from equity_screener.core.exceptions import (
    MalformedResponseError,
    RateLimitedError,
    SymbolNotFoundError,
    UpstreamError,
    ValidationError,
)
from equity_screener.core.utils.ttl_cache import CacheOptions
from equity_screener.services.data_manager import (
    CompanyOverview,
    DataKind,
    DataSource,
    MarketDataCaches,
    MarketDataService,
    NewsArticle,
    QuoteData,
    SymbolMatch,
    TimeSeriesData,
    TimeSeriesPoint,
)
from equity_screener.services.synthetic import SyntheticDataGenerator

NOW = datetime(2025, 1, 10, 16, 0, tzinfo=UTC)


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_quote(symbol: str = "AAPL", price: float = 150.0) -> QuoteData:
    return QuoteData(
        symbol=symbol,
        price=price,
        open=148.0,
        high=151.0,
        low=147.0,
        volume=1000,
        latest_trading_day="2025-01-10",
        previous_close=147.0,
        change=3.0,
        change_percent=0.0204,
    )


def make_series(symbol: str = "AAPL") -> TimeSeriesData:
    points = [
        TimeSeriesPoint(
            date=datetime(2025, 1, 1, tzinfo=UTC) - timedelta(days=31 * i),
            open=100.0,
            high=110.0 + i,
            low=90.0 - i,
            close=105.0,
            volume=10,
        )
        for i in range(14)
    ]
    return TimeSeriesData(
        symbol=symbol, last_updated=NOW, time_zone="US/Eastern", points=tuple(points)
    )


def make_article(url: str, hours_ago: int, title: str = "headline") -> NewsArticle:
    return NewsArticle(
        title=title,
        url=url,
        summary="",
        source="Reuters",
        published_at=NOW - timedelta(hours=hours_ago),
    )


# ===== Fixtures =====


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def live():
    """Live client double; every method succeeds unless a test says otherwise."""
    client = Mock()
    client.search_symbols = AsyncMock(
        return_value=[SymbolMatch(symbol="AAPL", name="Apple Inc", match_score=1.0)]
    )
    client.get_quote = AsyncMock(side_effect=lambda symbol: make_quote(symbol))
    client.get_monthly_time_series = AsyncMock(side_effect=lambda symbol: make_series(symbol))
    client.get_company_overview = AsyncMock(
        side_effect=lambda symbol: CompanyOverview(symbol=symbol, name=f"{symbol} Inc")
    )
    client.get_company_news = AsyncMock(return_value=[])
    client.get_market_news = AsyncMock(return_value=[make_article("https://m/1", 1)])
    return client


@pytest.fixture
def synthetic():
    return SyntheticDataGenerator(clock=lambda: NOW)


@pytest.fixture
def caches(clock):
    return MarketDataCaches.from_settings(Settings(), clock=clock)


@pytest.fixture
def service(live, synthetic, caches):
    return MarketDataService(live, synthetic, caches, synthetic_ttl_seconds=60.0)


# ===== Caches =====


class TestMarketDataCaches:
    """Test per-kind cache construction."""

    def test_default_ttls(self, caches):
        assert caches.search.default_ttl_seconds == 1800
        assert caches.time_series.default_ttl_seconds == 43200
        assert caches.quote.default_ttl_seconds == 300
        assert caches.overview.default_ttl_seconds == 86400
        assert caches.multi_news.default_ttl_seconds == 600

    def test_for_kind(self, caches):
        assert caches.for_kind(DataKind.MARKET_NEWS) is caches.market_news
        assert len(caches.all()) == len(DataKind)


# ===== Cache-first behavior =====


class TestCacheFirst:
    """Live results are written through and reused."""

    @pytest.mark.asyncio
    async def test_second_call_served_from_cache(self, service, live):
        first = await service.fetch_time_series("AAPL")
        second = await service.fetch_time_series("AAPL")

        assert first is second
        live.get_monthly_time_series.assert_awaited_once()
        assert service.source_of(DataKind.TIME_SERIES, "AAPL") is DataSource.LIVE

    @pytest.mark.asyncio
    async def test_expired_entry_refetched(self, service, live, clock):
        await service.fetch_company_news("AAPL")
        clock.advance(601)
        await service.fetch_company_news("AAPL")

        assert live.get_company_news.await_count == 2

    @pytest.mark.asyncio
    async def test_keys_preserve_case(self, service, live):
        await service.fetch_company_news("aapl")
        await service.fetch_company_news("AAPL")

        assert live.get_company_news.await_count == 2

    @pytest.mark.asyncio
    async def test_ttl_override(self, service, live, clock):
        await service.fetch_company_news("AAPL")
        clock.advance(30)
        await service.fetch_company_news("AAPL", CacheOptions(ttl_seconds=10))

        assert live.get_company_news.await_count == 2


# ===== Fallback =====


class TestSyntheticFallback:
    """Quota and transport failures never reach the caller."""

    @pytest.mark.asyncio
    async def test_rate_limited_quote_returns_synthetic(self, service, live, synthetic):
        """Live quote for MSFT hits API_LIMIT_REACHED: a synthetic quote comes back."""
        live.get_quote.side_effect = RateLimitedError("Thank you for using Alpha Vantage!")

        quote = await service.fetch_quote("MSFT")

        assert quote == await synthetic.quote("MSFT")
        assert service.source_of(DataKind.QUOTE, "MSFT") is DataSource.SYNTHETIC

    @pytest.mark.asyncio
    async def test_transport_failure_returns_synthetic(self, service, live):
        live.get_company_news.side_effect = UpstreamError("connection reset")

        articles = await service.fetch_company_news("AAPL")

        assert len(articles) == 10
        assert service.source_of(DataKind.COMPANY_NEWS, "AAPL") is DataSource.SYNTHETIC

    @pytest.mark.asyncio
    async def test_synthetic_entry_reused_within_synthetic_ttl(self, service, live, clock):
        live.get_quote.side_effect = RateLimitedError("quota")
        await service.fetch_quote("MSFT")

        clock.advance(30)
        await service.fetch_quote("MSFT")

        assert live.get_quote.await_count == 1

    @pytest.mark.asyncio
    async def test_live_retried_after_synthetic_ttl(self, service, live, clock):
        live.get_monthly_time_series.side_effect = RateLimitedError("quota")
        await service.fetch_time_series("MSFT")

        live.get_monthly_time_series.side_effect = lambda symbol: make_series(symbol)
        clock.advance(61)
        await service.fetch_time_series("MSFT")

        assert live.get_monthly_time_series.await_count == 2
        assert service.source_of(DataKind.TIME_SERIES, "MSFT") is DataSource.LIVE

    @pytest.mark.asyncio
    async def test_stale_live_preferred_over_synthetic(self, service, live, clock):
        original = await service.fetch_time_series("AAPL")
        clock.advance(43201)
        live.get_monthly_time_series.side_effect = RateLimitedError("quota")

        result = await service.fetch_time_series("AAPL")

        assert result is original
        assert service.source_of(DataKind.TIME_SERIES, "AAPL") is DataSource.LIVE


class TestHardFailures:
    """Malformed responses surface unless stale data was allowed."""

    @pytest.mark.asyncio
    async def test_malformed_without_entry_raises(self, service, live):
        live.get_company_overview.side_effect = MalformedResponseError("no Symbol")

        with pytest.raises(MalformedResponseError):
            await service.fetch_company_overview("AAPL")

    @pytest.mark.asyncio
    async def test_malformed_with_stale_entry_and_allow_stale(self, service, live, clock):
        original = await service.fetch_company_news("AAPL")
        clock.advance(601)
        live.get_company_news.side_effect = MalformedResponseError("bad feed")

        result = await service.fetch_company_news(
            "AAPL", CacheOptions(allow_stale_on_error=True)
        )

        assert result == original

    @pytest.mark.asyncio
    async def test_malformed_with_stale_entry_without_allow_stale(self, service, live, clock):
        await service.fetch_company_news("AAPL")
        clock.advance(601)
        live.get_company_news.side_effect = MalformedResponseError("bad feed")

        with pytest.raises(MalformedResponseError):
            await service.fetch_company_news("AAPL")

    @pytest.mark.asyncio
    async def test_not_found_symbol_raises(self, service, live):
        live.get_company_overview.side_effect = SymbolNotFoundError("nothing")

        with pytest.raises(SymbolNotFoundError):
            await service.fetch_company_overview("NOPE")

    @pytest.mark.asyncio
    async def test_blank_symbol_rejected(self, service, live):
        with pytest.raises(ValidationError):
            await service.fetch_quote(" ")
        live.get_quote.assert_not_awaited()


# ===== Per-kind rules =====


class TestSearch:
    """Test symbol search rules."""

    @pytest.mark.asyncio
    async def test_blank_query_returns_empty_without_calls(self, service, live):
        assert await service.search_symbols("  ") == []
        live.search_symbols.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_not_found_is_empty_list(self, service, live):
        live.search_symbols.side_effect = SymbolNotFoundError("no matches")

        assert await service.search_symbols("zzzz") == []
        assert service.source_of(DataKind.SEARCH, "zzzz") is DataSource.LIVE

    @pytest.mark.asyncio
    async def test_symbol_exists(self, service):
        assert await service.symbol_exists("AAPL") is True
        assert await service.symbol_exists("MSFT") is False
        assert await service.symbol_exists("") is False

    @pytest.mark.asyncio
    async def test_symbol_exists_never_raises(self, service, live):
        live.search_symbols.side_effect = MalformedResponseError("bad")

        assert await service.symbol_exists("AAPL") is False


class TestQuoteEnrichment:
    """Quotes get a 52-week range from the monthly series."""

    @pytest.mark.asyncio
    async def test_range_from_newest_twelve_points(self, service):
        quote = await service.fetch_quote("AAPL")

        # highs 110..121 and lows 90..79 over the newest 12 points
        assert quote.high_52_week == 121.0
        assert quote.low_52_week == 79.0

    @pytest.mark.asyncio
    async def test_malformed_series_estimates_range(self, service, live):
        live.get_monthly_time_series.side_effect = MalformedResponseError("bad")

        quote = await service.fetch_quote("AAPL")

        assert quote.high_52_week == 180.0
        assert quote.low_52_week == 120.0
        assert service.source_of(DataKind.QUOTE, "AAPL") is DataSource.LIVE

    @pytest.mark.asyncio
    async def test_synthetic_series_not_used_for_live_quote(self, service, live):
        live.get_monthly_time_series.side_effect = RateLimitedError("quota")

        quote = await service.fetch_quote("AAPL")

        assert (quote.high_52_week, quote.low_52_week) == (180.0, 120.0)


class TestOverviewEnrichment:
    """Missing overview range is filled from the quote."""

    @pytest.mark.asyncio
    async def test_missing_range_filled_from_quote(self, service):
        overview = await service.fetch_company_overview("AAPL")

        assert overview.fifty_two_week_high == 121.0
        assert overview.fifty_two_week_low == 79.0

    @pytest.mark.asyncio
    async def test_existing_range_kept(self, service, live):
        live.get_company_overview.side_effect = lambda symbol: CompanyOverview(
            symbol=symbol, name="x", fifty_two_week_high=1.0, fifty_two_week_low=0.5
        )

        overview = await service.fetch_company_overview("AAPL")

        assert overview.fifty_two_week_high == 1.0
        live.get_quote.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_quote_failure_leaves_range_empty(self, service, live):
        live.get_quote.side_effect = MalformedResponseError("bad")

        overview = await service.fetch_company_overview("AAPL")

        assert overview.fifty_two_week_high is None
        assert overview.name == "AAPL Inc"


class TestMultiSymbolNews:
    """Merged news for a symbol selection."""

    @pytest.fixture
    def news_by_symbol(self, live):
        news = {
            "AAPL": [make_article("https://n/a1", 1), make_article("https://n/shared", 5)],
            "MSFT": [make_article("https://n/shared", 5), make_article("https://n/m1", 3)],
        }
        live.get_company_news.side_effect = lambda symbol: list(news[symbol])
        return news

    @pytest.mark.asyncio
    async def test_merge_dedup_and_sort(self, service, news_by_symbol):
        articles = await service.fetch_multi_symbol_news(["MSFT", "AAPL"])

        assert [a.url for a in articles] == [
            "https://n/a1",
            "https://n/m1",
            "https://n/shared",
        ]
        assert service.source_of(DataKind.MULTI_NEWS, "AAPL,MSFT") is DataSource.LIVE

    @pytest.mark.asyncio
    async def test_key_is_order_insensitive(self, service, live, news_by_symbol):
        await service.fetch_multi_symbol_news(["MSFT", "AAPL"])
        live.get_company_news.reset_mock()
        service.clear_cache(DataKind.COMPANY_NEWS)

        await service.fetch_multi_symbol_news(["AAPL", "MSFT"])

        live.get_company_news.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_limit(self, service, news_by_symbol):
        articles = await service.fetch_multi_symbol_news(["AAPL", "MSFT"], limit=2)

        assert len(articles) == 2

    @pytest.mark.asyncio
    async def test_failed_symbol_dropped(self, service, live):
        def news(symbol):
            if symbol == "BAD":
                raise MalformedResponseError("bad feed")
            return [make_article("https://n/a1", 1)]

        live.get_company_news.side_effect = news

        articles = await service.fetch_multi_symbol_news(["AAPL", "BAD"])

        assert [a.url for a in articles] == ["https://n/a1"]

    @pytest.mark.asyncio
    async def test_all_failed_degrades_to_market_news(self, service, live):
        live.get_company_news.side_effect = MalformedResponseError("bad feed")

        articles = await service.fetch_multi_symbol_news(["AAPL", "MSFT"])

        assert [a.url for a in articles] == ["https://m/1"]
        assert service.source_of(DataKind.MULTI_NEWS, "AAPL,MSFT") is None

    @pytest.mark.asyncio
    async def test_empty_symbols_returns_market_news(self, service, live):
        articles = await service.fetch_multi_symbol_news([])

        assert [a.url for a in articles] == ["https://m/1"]

    @pytest.mark.asyncio
    async def test_synthetic_contribution_marks_entry_synthetic(self, service, live):
        def news(symbol):
            if symbol == "MSFT":
                raise RateLimitedError("quota")
            return [make_article("https://n/a1", 1)]

        live.get_company_news.side_effect = news

        articles = await service.fetch_multi_symbol_news(["AAPL", "MSFT"], limit=50)

        assert len(articles) == 11
        assert service.source_of(DataKind.MULTI_NEWS, "AAPL,MSFT") is DataSource.SYNTHETIC


# ===== Runtime controls =====


class TestSyntheticMode:
    """Synthetic mode bypasses the live client."""

    @pytest.mark.asyncio
    async def test_constructed_in_synthetic_mode(self, live, synthetic, caches):
        service = MarketDataService(live, synthetic, caches, use_synthetic_data=True)

        results = await service.search_symbols("apple")

        assert [r.symbol for r in results] == ["AAPL"]
        live.search_symbols.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_synthetic_entries_trusted_in_synthetic_mode(self, service, live, clock):
        service.set_use_synthetic_data(True)
        await service.fetch_market_news()
        clock.advance(120)

        await service.fetch_market_news()

        assert service.source_of(DataKind.MARKET_NEWS, "market-news") is DataSource.SYNTHETIC
        live.get_market_news.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_toggle_back_to_live(self, service, live):
        service.set_use_synthetic_data(True)
        await service.fetch_quote("AAPL")
        service.set_use_synthetic_data(False)
        service.clear_cache()

        await service.fetch_quote("AAPL")

        assert service.use_synthetic_data is False
        live.get_quote.assert_awaited_once()


class TestHousekeeping:
    """Test purge and stats."""

    @pytest.mark.asyncio
    async def test_purge_expired(self, service, clock):
        await service.fetch_company_news("AAPL")
        await service.fetch_time_series("AAPL")
        clock.advance(601)

        removed = service.purge_expired()

        assert removed["company_news"] == 1
        assert removed["time_series"] == 0

    @pytest.mark.asyncio
    async def test_cache_stats_split_by_source(self, service, live):
        live.get_company_news.side_effect = RateLimitedError("quota")
        await service.fetch_company_news("AAPL")
        await service.fetch_time_series("AAPL")

        stats = service.cache_stats()

        assert stats["company_news"]["synthetic"] == 1
        assert stats["time_series"]["live"] == 1
        assert stats["quote"]["size"] == 0


# ===== Cache integration =====


class TestCacheIntegration:
    """Every read goes through the cache's own read-through helpers."""

    @pytest.mark.asyncio
    async def test_live_fetch_uses_get_or_fetch(self, service, caches, live):
        with patch.object(
            caches.quote, "get_or_fetch", wraps=caches.quote.get_or_fetch
        ) as get_or_fetch:
            await service.fetch_quote("AAPL")
            await service.fetch_quote("AAPL")

        assert get_or_fetch.await_count == 2
        live.get_quote.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_synthetic_mode_uses_get_or_fetch(self, service, caches):
        service.set_use_synthetic_data(True)

        with patch.object(
            caches.market_news, "get_or_fetch", wraps=caches.market_news.get_or_fetch
        ) as get_or_fetch:
            await service.fetch_market_news()

        get_or_fetch.assert_awaited_once()
        assert service.source_of(DataKind.MARKET_NEWS, "market-news") is DataSource.SYNTHETIC


class TestSharedValues:
    """A caller changing its result never changes what the next caller gets."""

    @pytest.mark.asyncio
    async def test_quote_cannot_be_modified(self, service):
        quote = await service.fetch_quote("IBM")

        with pytest.raises(FrozenInstanceError):
            quote.price = 0.0

        again = await service.fetch_quote("IBM")
        assert again.price == 150.0

    @pytest.mark.asyncio
    async def test_enriched_overview_is_a_new_value(self, service, live):
        raw = CompanyOverview(symbol="IBM", name="IBM Inc")
        live.get_company_overview.side_effect = None
        live.get_company_overview.return_value = raw

        overview = await service.fetch_company_overview("IBM")

        assert overview.fifty_two_week_high == 121.0
        assert raw.fifty_two_week_high is None

    @pytest.mark.asyncio
    async def test_news_list_changes_stay_local(self, service, live):
        live.get_company_news.return_value = [make_article("https://n/a1", 1)]

        first = await service.fetch_company_news("AAPL")
        first.clear()
        second = await service.fetch_company_news("AAPL")

        assert [a.url for a in second] == ["https://n/a1"]
        live.get_company_news.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_multi_news_list_changes_stay_local(self, service):
        service.set_use_synthetic_data(True)

        first = await service.fetch_multi_symbol_news(["AAPL"], limit=50)
        first.pop()
        second = await service.fetch_multi_symbol_news(["AAPL"], limit=50)

        assert len(second) == 10


class TestMultiSymbolNewsInput:
    """Symbol lists and limits are normalized before use."""

    @pytest.mark.asyncio
    async def test_padded_symbols_share_the_cache_entry(self, service, live):
        live.get_company_news.side_effect = lambda symbol: [
            make_article(f"https://n/{symbol}", 1)
        ]

        await service.fetch_multi_symbol_news([" AAPL", "MSFT "])
        await service.fetch_multi_symbol_news(["AAPL", "MSFT"])

        assert live.get_company_news.await_count == 2
        assert service.caches.multi_news.keys() == ["AAPL,MSFT"]

    @pytest.mark.asyncio
    async def test_negative_limit_returns_nothing(self, service, live):
        live.get_company_news.side_effect = lambda symbol: [
            make_article(f"https://n/{symbol}", 1)
        ]

        assert await service.fetch_multi_symbol_news(["AAPL", "MSFT"], limit=-1) == []
        assert len(await service.fetch_multi_symbol_news(["AAPL", "MSFT"])) == 2

    @pytest.mark.asyncio
    async def test_symbol_exists_is_case_sensitive(self, service):
        assert await service.symbol_exists("aapl") is False
        assert await service.symbol_exists(" AAPL ") is True
