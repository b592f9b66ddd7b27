"""
Market data layer - single source of truth for dashboard data access.

The ``MarketDataService`` facade answers every data request cache-first,
falls back from the live Alpha Vantage client to synthetic data, and tags
cached entries with their origin.

Usage:
    from equity_screener.services.data_manager import (
        MarketDataCaches,
        MarketDataService,
    )

    service = MarketDataService(
        live_client,
        synthetic,
        MarketDataCaches.from_settings(settings),
        use_synthetic_data=settings.prefers_synthetic,
    )
    quote = await service.fetch_quote("AAPL")

Cache Key Convention:
    One cache per data kind; keys are the identifier as given ("AAPL"),
    the sorted symbol list for multi-symbol news ("AAPL,MSFT"), or
    "market-news".
"""

from .keys import CacheKeys
from .service import (
    LiveMarketDataClient,
    MarketDataCaches,
    MarketDataService,
    SyntheticSource,
)
from .types import (
    CompanyOverview,
    DataKind,
    DataSource,
    NewsArticle,
    QuoteData,
    SourcedData,
    SymbolMatch,
    TimeSeriesData,
    TimeSeriesPoint,
)

__all__ = [
    "MarketDataService",
    "MarketDataCaches",
    "LiveMarketDataClient",
    "SyntheticSource",
    "CacheKeys",
    "DataKind",
    "DataSource",
    "SourcedData",
    "SymbolMatch",
    "TimeSeriesPoint",
    "TimeSeriesData",
    "QuoteData",
    "CompanyOverview",
    "NewsArticle",
]
