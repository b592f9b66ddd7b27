"""
Company fundamentals and news for the Alpha Vantage client.
"""

from datetime import UTC, datetime
from typing import Any

import structlog

from ...core.exceptions import (
    MalformedResponseError,
    SymbolNotFoundError,
    ValidationError,
)
from ..data_manager.types import CompanyOverview, NewsArticle
from .base import AlphaVantageBase, parse_float

logger = structlog.get_logger()

# NEWS_SENTIMENT timestamps look like 20250110T143000
NEWS_TIME_FORMAT = "%Y%m%dT%H%M%S"


class FundamentalsMixin(AlphaVantageBase):
    """Methods for company overview and news sentiment."""

    async def get_company_overview(self, symbol: str) -> CompanyOverview:
        """
        Get company fundamentals using the OVERVIEW endpoint.

        Raises:
            ValidationError: If the symbol is blank
            SymbolNotFoundError: If the upstream answered with an empty object
            MalformedResponseError: If the payload has no Symbol field
        """
        if not symbol or not symbol.strip():
            raise ValidationError("Symbol cannot be empty")

        data = await self._request({"function": "OVERVIEW", "symbol": symbol})

        if not data:
            raise SymbolNotFoundError(
                f"No company overview data for symbol: {symbol}", symbol=symbol
            )
        if "Symbol" not in data:
            raise MalformedResponseError(
                f"Company overview for {symbol} has no Symbol field", symbol=symbol
            )

        overview = CompanyOverview(
            symbol=data["Symbol"],
            name=data.get("Name", ""),
            description=data.get("Description", ""),
            exchange=data.get("Exchange", ""),
            currency=data.get("Currency", "USD"),
            country=data.get("Country", ""),
            sector=data.get("Sector", ""),
            industry=data.get("Industry", ""),
            market_capitalization=parse_float(data.get("MarketCapitalization")),
            pe_ratio=parse_float(data.get("PERatio")),
            dividend_yield=parse_float(data.get("DividendYield")),
            eps=parse_float(data.get("EPS")),
            beta=parse_float(data.get("Beta")),
            fifty_two_week_high=parse_float(data.get("52WeekHigh")),
            fifty_two_week_low=parse_float(data.get("52WeekLow")),
        )

        logger.info(
            "Company overview fetched",
            symbol=symbol,
            company_name=overview.name or "N/A",
        )

        return overview

    async def get_news(
        self,
        tickers: str | None = None,
        topics: str | None = None,
        limit: int = 50,
    ) -> list[NewsArticle]:
        """
        Get news articles using the NEWS_SENTIMENT endpoint.

        Args:
            tickers: Comma-separated stock symbols (e.g., "AAPL,MSFT")
            topics: Comma-separated topics (e.g., "financial_markets")
            limit: Maximum number of news items

        Returns:
            Articles newest first; empty when the feed is missing or empty
        """
        params: dict[str, str | int] = {
            "function": "NEWS_SENTIMENT",
            "limit": limit,
            "sort": "LATEST",
        }

        filter_desc = ""
        if tickers:
            params["tickers"] = tickers
            filter_desc = f"tickers={tickers}"
        if topics:
            params["topics"] = topics
            filter_desc = f"topics={topics}" if not filter_desc else f"{filter_desc}, topics={topics}"

        data = await self._request(params)

        feed = data.get("feed")
        if not feed:
            logger.warning(
                "No news sentiment data",
                filter=filter_desc,
                response=self._sanitize_response(data),
            )
            return []

        try:
            articles = [self._to_article(item) for item in feed]
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedResponseError(
                f"News feed item is malformed: {e}", filter=filter_desc
            ) from e

        articles.sort(key=lambda a: a.published_at, reverse=True)

        logger.info("News fetched", filter=filter_desc, news_count=len(articles))

        return articles

    @staticmethod
    def _to_article(item: dict[str, Any]) -> NewsArticle:
        published = datetime.strptime(item["time_published"], NEWS_TIME_FORMAT)
        return NewsArticle(
            title=item["title"],
            url=item["url"],
            summary=item.get("summary", ""),
            source=item.get("source", ""),
            published_at=published.replace(tzinfo=UTC),
            image=item.get("banner_image") or None,
        )
