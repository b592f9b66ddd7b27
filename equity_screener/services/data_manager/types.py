"""
Data types for the market data service.

These models define the structure of data returned by the facade, ensuring
consistent interfaces for every dashboard surface regardless of whether the
data came from Alpha Vantage or the synthetic generator. They are frozen:
cached values are shared between callers and never change in place.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class DataSource(str, Enum):
    """Where a cached value came from."""

    LIVE = "live"
    SYNTHETIC = "synthetic"


class DataKind(str, Enum):
    """One facade operation / one cache."""

    SEARCH = "search"
    TIME_SERIES = "time_series"
    QUOTE = "quote"
    OVERVIEW = "overview"
    COMPANY_NEWS = "company_news"
    MARKET_NEWS = "market_news"
    MULTI_NEWS = "multi_news"


@dataclass(frozen=True)
class SourcedData(Generic[T]):
    """Cached payload tagged with its origin, so diagnostics can tell them apart."""

    data: T
    source: DataSource

    @property
    def is_live(self) -> bool:
        return self.source is DataSource.LIVE


@dataclass(frozen=True)
class SymbolMatch:
    """One symbol search match."""

    symbol: str
    name: str
    type: str = "Equity"
    region: str = "United States"
    currency: str = "USD"
    match_score: float = 0.0
    market_open: str = ""
    market_close: str = ""
    timezone: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "symbol": self.symbol,
            "name": self.name,
            "type": self.type,
            "region": self.region,
            "currency": self.currency,
            "match_score": self.match_score,
            "market_open": self.market_open,
            "market_close": self.market_close,
            "timezone": self.timezone,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SymbolMatch":
        """Create from dictionary."""
        return cls(
            symbol=data["symbol"],
            name=data.get("name", ""),
            type=data.get("type", "Equity"),
            region=data.get("region", "United States"),
            currency=data.get("currency", "USD"),
            match_score=float(data.get("match_score", 0.0)),
            market_open=data.get("market_open", ""),
            market_close=data.get("market_close", ""),
            timezone=data.get("timezone", ""),
        )


@dataclass(frozen=True)
class TimeSeriesPoint:
    """OHLCV bar for one month."""

    date: datetime
    open: float
    high: float
    low: float
    close: float
    volume: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "date": self.date.isoformat(),
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
        }


@dataclass(frozen=True)
class TimeSeriesData:
    """Monthly price history for one symbol, newest point first."""

    symbol: str
    last_updated: datetime
    time_zone: str
    points: tuple[TimeSeriesPoint, ...] = ()

    def fifty_two_week_range(self) -> tuple[float, float] | None:
        """(high, low) over the newest 12 monthly bars, or None if empty."""
        recent = self.points[:12]
        if not recent:
            return None
        return max(p.high for p in recent), min(p.low for p in recent)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "symbol": self.symbol,
            "last_updated": self.last_updated.isoformat(),
            "time_zone": self.time_zone,
            "points": [p.to_dict() for p in self.points],
        }


@dataclass(frozen=True)
class QuoteData:
    """Latest quote from GLOBAL_QUOTE, optionally enriched with a 52-week range."""

    symbol: str
    price: float
    open: float
    high: float
    low: float
    volume: int
    latest_trading_day: str
    previous_close: float
    change: float
    change_percent: float  # fraction: 1.85% -> 0.0185
    high_52_week: float | None = None
    low_52_week: float | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "symbol": self.symbol,
            "price": self.price,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "volume": self.volume,
            "latest_trading_day": self.latest_trading_day,
            "previous_close": self.previous_close,
            "change": self.change,
            "change_percent": self.change_percent,
            "high_52_week": self.high_52_week,
            "low_52_week": self.low_52_week,
        }


@dataclass(frozen=True)
class CompanyOverview:
    """Company fundamentals from OVERVIEW."""

    symbol: str
    name: str
    description: str = ""
    exchange: str = ""
    currency: str = "USD"
    country: str = ""
    sector: str = ""
    industry: str = ""
    market_capitalization: float | None = None
    pe_ratio: float | None = None
    dividend_yield: float | None = None
    eps: float | None = None
    beta: float | None = None
    fifty_two_week_high: float | None = None
    fifty_two_week_low: float | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "symbol": self.symbol,
            "name": self.name,
            "description": self.description,
            "exchange": self.exchange,
            "currency": self.currency,
            "country": self.country,
            "sector": self.sector,
            "industry": self.industry,
            "market_capitalization": self.market_capitalization,
            "pe_ratio": self.pe_ratio,
            "dividend_yield": self.dividend_yield,
            "eps": self.eps,
            "beta": self.beta,
            "fifty_two_week_high": self.fifty_two_week_high,
            "fifty_two_week_low": self.fifty_two_week_low,
        }


@dataclass(frozen=True)
class NewsArticle:
    """A single news item."""

    title: str
    url: str
    summary: str
    source: str
    published_at: datetime
    image: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "title": self.title,
            "url": self.url,
            "summary": self.summary,
            "source": self.source,
            "published_at": self.published_at.isoformat(),
            "image": self.image,
        }
