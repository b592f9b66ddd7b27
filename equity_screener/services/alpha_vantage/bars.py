"""
Monthly price bars for the Alpha Vantage client.
"""

import pandas as pd
import structlog

from ...core.exceptions import MalformedResponseError, ValidationError
from ..data_manager.types import TimeSeriesData, TimeSeriesPoint
from .base import AlphaVantageBase

logger = structlog.get_logger()


class BarsMixin(AlphaVantageBase):
    """Methods for fetching price bars."""

    async def get_monthly_time_series(self, symbol: str) -> TimeSeriesData:
        """
        Get monthly bars using TIME_SERIES_MONTHLY.

        Args:
            symbol: Stock symbol

        Returns:
            TimeSeriesData with points sorted newest first

        Raises:
            ValidationError: If the symbol is blank
            MalformedResponseError: If metadata or the series block is missing
        """
        if not symbol or not symbol.strip():
            raise ValidationError("Symbol cannot be empty")

        data = await self._request(
            {"function": "TIME_SERIES_MONTHLY", "symbol": symbol, "datatype": "json"}
        )

        meta = data.get("Meta Data")
        time_series = data.get("Monthly Time Series")
        if not meta or time_series is None:
            raise MalformedResponseError(
                f"No monthly time series for symbol: {symbol}", symbol=symbol
            )

        try:
            df = pd.DataFrame(
                [
                    {
                        "timestamp": pd.to_datetime(date_str),
                        "Open": float(values["1. open"]),
                        "High": float(values["2. high"]),
                        "Low": float(values["3. low"]),
                        "Close": float(values["4. close"]),
                        "Volume": int(values["5. volume"]),
                    }
                    for date_str, values in time_series.items()
                ],
                columns=["timestamp", "Open", "High", "Low", "Close", "Volume"],
            )
            last_refreshed = pd.to_datetime(meta["3. Last Refreshed"])
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedResponseError(
                f"Monthly time series for {symbol} is malformed: {e}", symbol=symbol
            ) from e

        df.set_index("timestamp", inplace=True)
        df.sort_index(ascending=False, inplace=True)  # Newest first

        points = tuple(
            TimeSeriesPoint(
                date=idx.to_pydatetime(),
                open=float(row["Open"]),
                high=float(row["High"]),
                low=float(row["Low"]),
                close=float(row["Close"]),
                volume=int(row["Volume"]),
            )
            for idx, row in df.iterrows()
        )

        logger.info(
            "Monthly bars fetched",
            symbol=symbol,
            bars_count=len(points),
        )

        return TimeSeriesData(
            symbol=meta.get("2. Symbol", symbol),
            last_updated=last_refreshed.to_pydatetime(),
            time_zone=meta.get("4. Time Zone", "US/Eastern"),
            points=points,
        )
