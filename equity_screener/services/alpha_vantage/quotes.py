"""
Symbol search and stock quote methods for the Alpha Vantage client.
"""

import structlog

from ...core.exceptions import (
    MalformedResponseError,
    SymbolNotFoundError,
    ValidationError,
)
from ..data_manager.types import QuoteData, SymbolMatch
from .base import AlphaVantageBase, parse_float

logger = structlog.get_logger()


class QuotesMixin(AlphaVantageBase):
    """Methods for symbol search and latest quotes."""

    async def search_symbols(self, query: str) -> list[SymbolMatch]:
        """
        Search for stock symbols using Alpha Vantage SYMBOL_SEARCH.

        Args:
            query: Search query (symbol or company name)

        Returns:
            Matches in upstream order; empty when nothing matched

        Raises:
            ValidationError: If the query is blank
        """
        if not query or not query.strip():
            raise ValidationError("Search query cannot be empty")

        data = await self._request({"function": "SYMBOL_SEARCH", "keywords": query})

        matches = data.get("bestMatches")
        if not matches:
            logger.info("No matches found", query=query)
            return []

        try:
            results = [
                SymbolMatch(
                    symbol=match["1. symbol"],
                    name=match["2. name"],
                    type=match.get("3. type", ""),
                    region=match.get("4. region", ""),
                    market_open=match.get("5. marketOpen", ""),
                    market_close=match.get("6. marketClose", ""),
                    timezone=match.get("7. timezone", ""),
                    currency=match.get("8. currency", ""),
                    match_score=parse_float(match.get("9. matchScore")) or 0.0,
                )
                for match in matches
            ]
        except (KeyError, TypeError) as e:
            raise MalformedResponseError(
                f"Symbol search match missing field: {e}", query=query
            ) from e

        logger.info(
            "Symbol search completed",
            query=query,
            results_count=len(results),
        )

        return results

    async def get_quote(self, symbol: str) -> QuoteData:
        """
        Get the latest quote using Alpha Vantage GLOBAL_QUOTE.

        The endpoint carries no 52-week range; those fields stay None.

        Raises:
            ValidationError: If the symbol is blank
            SymbolNotFoundError: If the upstream has no quote for the symbol
            MalformedResponseError: If the quote block or price is missing
        """
        if not symbol or not symbol.strip():
            raise ValidationError("Symbol cannot be empty")

        data = await self._request({"function": "GLOBAL_QUOTE", "symbol": symbol})

        # Standard: "Global Quote"; delayed: "Global Quote - DATA DELAYED BY 15 MINUTES"
        quote_key = next((k for k in data if k.startswith("Global Quote")), None)
        if quote_key is None:
            raise MalformedResponseError(
                f"Quote response missing 'Global Quote' for {symbol}", symbol=symbol
            )

        quote = data[quote_key]
        if not quote:
            raise SymbolNotFoundError(f"No quote data for symbol: {symbol}", symbol=symbol)

        price = parse_float(quote.get("05. price"))
        if price is None:
            raise MalformedResponseError(
                f"Quote for {symbol} has no price", symbol=symbol
            )

        change_percent = parse_float(quote.get("10. change percent")) or 0.0

        result = QuoteData(
            symbol=quote.get("01. symbol", symbol),
            price=price,
            open=parse_float(quote.get("02. open")) or 0.0,
            high=parse_float(quote.get("03. high")) or 0.0,
            low=parse_float(quote.get("04. low")) or 0.0,
            volume=int(parse_float(quote.get("06. volume")) or 0),
            latest_trading_day=quote.get("07. latest trading day", ""),
            previous_close=parse_float(quote.get("08. previous close")) or 0.0,
            change=parse_float(quote.get("09. change")) or 0.0,
            change_percent=change_percent / 100,
        )

        logger.info("Quote fetched", symbol=symbol, price=result.price)

        return result
