"""
Alpha Vantage client.
Provides symbol search, quotes, monthly bars, fundamentals and news.

This package is organized into the following components:
- base: Initialization, HTTP client, quota enforcement, failure normalization
- quotes: Symbol search and latest quotes
- bars: Monthly price bars
- fundamentals: Company overview and news
"""

from .bars import BarsMixin
from .base import QUOTA_KEY, AlphaVantageBase, parse_float
from .fundamentals import FundamentalsMixin
from .quotes import QuotesMixin

# Topic used for general market news
MARKET_NEWS_TOPIC = "financial_markets"


class AlphaVantageClient(
    QuotesMixin,
    BarsMixin,
    FundamentalsMixin,
    AlphaVantageBase,
):
    """
    Live market data client backed by the Alpha Vantage REST API.

    Every failure leaves this class as a MarketDataError subclass, so the
    data service only has to branch on ``kind``.
    """

    async def get_company_news(self, symbol: str, limit: int = 50):
        """News for one ticker."""
        return await self.get_news(tickers=symbol, limit=limit)

    async def get_market_news(self, limit: int = 50):
        """General market news."""
        return await self.get_news(topics=MARKET_NEWS_TOPIC, limit=limit)


__all__ = [
    "AlphaVantageClient",
    "AlphaVantageBase",
    "MARKET_NEWS_TOPIC",
    "QUOTA_KEY",
    "parse_float",
]
