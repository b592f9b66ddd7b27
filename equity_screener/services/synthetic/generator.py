"""
Deterministic synthetic market data.

Used when the live quota is exhausted or synthetic mode is switched on.
Every value is drawn from a ``random.Random`` seeded with the CRC32 of the
request key, so the same key yields the same data in every process.
"""

import asyncio
import random
import zlib
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import structlog

from ..data_manager.types import (
    CompanyOverview,
    NewsArticle,
    QuoteData,
    SymbolMatch,
    TimeSeriesData,
    TimeSeriesPoint,
)
from .catalog import (
    COMPANY_DESCRIPTIONS,
    COMPANY_NAMES,
    COMPANY_NEWS_TEMPLATES,
    EXCHANGES,
    MARKET_NEWS_TEMPLATES,
    NEWS_SOURCES,
    SECTORS,
    SYMBOL_UNIVERSE,
)

logger = structlog.get_logger(__name__)

SERIES_MONTHS = 60
NEWS_BASE_URL = "https://example.com/news"


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _rng(*parts: str) -> random.Random:
    seed = zlib.crc32(":".join(parts).encode("utf-8"))
    return random.Random(seed)


def _months_back(anchor: datetime, months: int) -> datetime:
    total = anchor.year * 12 + (anchor.month - 1) - months
    return anchor.replace(year=total // 12, month=total % 12 + 1)


def base_price(symbol: str) -> float:
    """Anchor price derived from the first two characters of the ticker."""
    first = ord(symbol[0]) if symbol else 0
    second = ord(symbol[1]) if len(symbol) > 1 else 0
    return (first * 2 + second * 1.5) % 200 + 50


class SyntheticDataGenerator:
    """
    Produces plausible market data for any key without network access.

    Args:
        delay_seconds: Artificial latency per call, to mimic a remote source
        clock: Returns "now" as an aware datetime; dates are laid out from it
    """

    def __init__(
        self,
        delay_seconds: float = 0.0,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.delay_seconds = delay_seconds
        self._clock = clock

    async def _delay(self) -> None:
        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)

    async def search_symbols(self, query: str) -> list[SymbolMatch]:
        await self._delay()

        needle = query.strip().lower()
        if not needle:
            return []

        matches = [
            SymbolMatch(
                symbol=symbol,
                name=name,
                type="Equity",
                region="United States",
                currency="USD",
                match_score=score,
                market_open="09:30",
                market_close="16:00",
                timezone="UTC-04",
            )
            for symbol, name, score in SYMBOL_UNIVERSE
            if needle in symbol.lower() or needle in name.lower()
        ]
        matches.sort(key=lambda m: m.match_score, reverse=True)

        logger.debug("synthetic_search", query=query, results_count=len(matches))
        return matches

    async def time_series(self, symbol: str) -> TimeSeriesData:
        await self._delay()
        return self._build_time_series(symbol)

    async def quote(self, symbol: str) -> QuoteData:
        await self._delay()
        return self._build_quote(symbol)

    async def company_overview(self, symbol: str) -> CompanyOverview:
        await self._delay()

        rng = _rng("overview", symbol)
        value = sum(ord(c) for c in symbol)
        quote = self._build_quote(symbol)

        name = COMPANY_NAMES.get(symbol, f"{symbol} Corporation")
        sector = SECTORS[value % len(SECTORS)]
        description = COMPANY_DESCRIPTIONS.get(
            symbol,
            f"{name} is a publicly traded company operating in the {sector.lower()} sector.",
        )

        return CompanyOverview(
            symbol=symbol,
            name=name,
            description=description,
            exchange=EXCHANGES[value % len(EXCHANGES)],
            currency="USD",
            country="USA",
            sector=sector,
            industry=f"{sector} Services",
            market_capitalization=float((value % 1000 + 1) * 1_000_000_000)
            + round(rng.uniform(0, 1e9)),
            pe_ratio=round(10 + value % 40 + rng.random(), 2),
            dividend_yield=round((value % 5) / 100, 4),
            eps=round(quote.price / (10 + value % 40), 2),
            beta=round(0.5 + (value % 20) / 10, 2),
            fifty_two_week_high=quote.high_52_week,
            fifty_two_week_low=quote.low_52_week,
        )

    async def company_news(self, symbol: str) -> list[NewsArticle]:
        await self._delay()

        name = COMPANY_NAMES.get(symbol, f"{symbol} Corporation")
        short = name.split()[0].rstrip(",")
        templates = [
            (title.format(name=name, short=short, symbol=symbol),
             summary.format(name=name, short=short, symbol=symbol))
            for title, summary in COMPANY_NEWS_TEMPLATES
        ]
        return self._build_news(f"company:{symbol}", symbol.lower(), templates)

    async def market_news(self) -> list[NewsArticle]:
        await self._delay()
        return self._build_news("market", "market", MARKET_NEWS_TEMPLATES)

    def _build_time_series(self, symbol: str) -> TimeSeriesData:
        rng = _rng("series", symbol)
        now = self._clock()
        anchor = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

        # Walk forward from the oldest month so the newest close lands near base
        close = base_price(symbol) * rng.uniform(0.4, 0.8)
        chronological = []
        for offset in range(SERIES_MONTHS - 1, -1, -1):
            open_ = close
            close = max(1.0, open_ * (1 + rng.gauss(0.01, 0.07)))
            high = max(open_, close) * (1 + rng.uniform(0, 0.05))
            low = min(open_, close) * (1 - rng.uniform(0, 0.05))
            chronological.append(
                TimeSeriesPoint(
                    date=_months_back(anchor, offset),
                    open=round(open_, 2),
                    high=round(high, 2),
                    low=round(low, 2),
                    close=round(close, 2),
                    volume=rng.randint(5_000_000, 80_000_000),
                )
            )

        return TimeSeriesData(
            symbol=symbol,
            last_updated=anchor,
            time_zone="US/Eastern",
            points=tuple(reversed(chronological)),
        )

    def _build_quote(self, symbol: str) -> QuoteData:
        rng = _rng("quote", symbol)
        base = base_price(symbol)

        previous_close = round(base, 2)
        change = round(rng.uniform(-5, 5), 2)
        price = round(previous_close + change, 2)

        return QuoteData(
            symbol=symbol,
            price=price,
            open=round(previous_close * (1 + rng.uniform(-0.01, 0.01)), 2),
            high=round(max(price, previous_close) * (1 + rng.uniform(0, 0.02)), 2),
            low=round(min(price, previous_close) * (1 - rng.uniform(0, 0.02)), 2),
            volume=rng.randint(1_000_000, 50_000_000),
            latest_trading_day=self._clock().date().isoformat(),
            previous_close=previous_close,
            change=change,
            change_percent=round(change / previous_close, 6),
            high_52_week=round(price * rng.uniform(1.05, 1.35), 2),
            low_52_week=round(price * rng.uniform(0.65, 0.95), 2),
        )

    def _build_news(
        self,
        seed: str,
        slug: str,
        templates: list[tuple[str, str]],
    ) -> list[NewsArticle]:
        rng = _rng("news", seed)
        published = self._clock().replace(microsecond=0)

        articles = []
        for index, (title, summary) in enumerate(templates, start=1):
            published -= timedelta(hours=rng.randint(1, 8), minutes=rng.randint(0, 59))
            articles.append(
                NewsArticle(
                    title=title,
                    url=f"{NEWS_BASE_URL}/{slug}-{index}",
                    summary=summary,
                    source=rng.choice(NEWS_SOURCES),
                    published_at=published,
                    image=f"{NEWS_BASE_URL}/images/{slug}-{index}.jpg",
                )
            )

        return articles
