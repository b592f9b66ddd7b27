"""
Market data endpoints.

Thin wrappers over ``MarketDataService``: every response carries the data
and the origin of the cached entry (``live`` or ``synthetic``).
"""

from typing import Any

import structlog
from fastapi import APIRouter, Depends, Query

from ..core.utils.ttl_cache import CacheOptions
from ..services.data_manager import CacheKeys, DataKind, MarketDataService
from .dependencies import get_cache_options, get_market_data_service

router = APIRouter(prefix="/api/market", tags=["Market Data"])
logger = structlog.get_logger()


def _source(service: MarketDataService, kind: DataKind, key: str) -> str | None:
    source = service.source_of(kind, key)
    return source.value if source else None


@router.get("/search")
async def search_symbols(
    q: str = Query(..., max_length=50, description="Ticker or company name"),
    options: CacheOptions = Depends(get_cache_options),
    service: MarketDataService = Depends(get_market_data_service),
) -> dict[str, Any]:
    """Search for symbols; a blank query returns no results."""
    matches = await service.search_symbols(q, options)
    return {
        "query": q,
        "results": [m.to_dict() for m in matches],
        "source": _source(service, DataKind.SEARCH, CacheKeys.entity(q)),
    }


@router.get("/quote/{symbol}")
async def get_quote(
    symbol: str,
    options: CacheOptions = Depends(get_cache_options),
    service: MarketDataService = Depends(get_market_data_service),
) -> dict[str, Any]:
    quote = await service.fetch_quote(symbol, options)
    return {
        "symbol": symbol,
        "data": quote.to_dict(),
        "source": _source(service, DataKind.QUOTE, symbol),
    }


@router.get("/time-series/{symbol}")
async def get_time_series(
    symbol: str,
    options: CacheOptions = Depends(get_cache_options),
    service: MarketDataService = Depends(get_market_data_service),
) -> dict[str, Any]:
    series = await service.fetch_time_series(symbol, options)
    return {
        "symbol": symbol,
        "data": series.to_dict(),
        "source": _source(service, DataKind.TIME_SERIES, symbol),
    }


@router.get("/overview/{symbol}")
async def get_company_overview(
    symbol: str,
    options: CacheOptions = Depends(get_cache_options),
    service: MarketDataService = Depends(get_market_data_service),
) -> dict[str, Any]:
    overview = await service.fetch_company_overview(symbol, options)
    return {
        "symbol": symbol,
        "data": overview.to_dict(),
        "source": _source(service, DataKind.OVERVIEW, symbol),
    }


@router.get("/news")
async def get_market_news(
    options: CacheOptions = Depends(get_cache_options),
    service: MarketDataService = Depends(get_market_data_service),
) -> dict[str, Any]:
    articles = await service.fetch_market_news(options)
    return {
        "articles": [a.to_dict() for a in articles],
        "source": _source(service, DataKind.MARKET_NEWS, CacheKeys.MARKET_NEWS),
    }


# Declared before /news/{symbol} so "multi" is not taken as a ticker
@router.get("/news/multi")
async def get_multi_symbol_news(
    symbols: str = Query(..., description="Comma-separated tickers, e.g. AAPL,MSFT"),
    limit: int | None = Query(None, ge=1, le=100),
    options: CacheOptions = Depends(get_cache_options),
    service: MarketDataService = Depends(get_market_data_service),
) -> dict[str, Any]:
    """Merged news for several tickers, newest first."""
    wanted = [s.strip() for s in symbols.split(",") if s.strip()]
    articles = await service.fetch_multi_symbol_news(wanted, limit, options)
    key = CacheKeys.multi_symbol(wanted)
    return {
        "symbols": CacheKeys.split(key),
        "articles": [a.to_dict() for a in articles],
        "source": _source(service, DataKind.MULTI_NEWS, key),
    }


@router.get("/news/{symbol}")
async def get_company_news(
    symbol: str,
    options: CacheOptions = Depends(get_cache_options),
    service: MarketDataService = Depends(get_market_data_service),
) -> dict[str, Any]:
    articles = await service.fetch_company_news(symbol, options)
    return {
        "symbol": symbol,
        "articles": [a.to_dict() for a in articles],
        "source": _source(service, DataKind.COMPANY_NEWS, symbol),
    }


@router.post("/synthetic")
async def set_synthetic_mode(
    enabled: bool = Query(..., description="Serve synthetic data only"),
    service: MarketDataService = Depends(get_market_data_service),
) -> dict[str, bool]:
    """Switch synthetic mode at runtime (testing aid)."""
    service.set_use_synthetic_data(enabled)
    logger.info("Synthetic mode set via API", enabled=enabled)
    return {"use_synthetic_data": service.use_synthetic_data}
