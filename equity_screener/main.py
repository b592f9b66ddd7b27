"""
FastAPI application entry point for the Equity Screener backend.
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.favorites import router as favorites_router
from .api.health import router as health_router
from .api.market import router as market_router
from .api.selection import router as selection_router
from .core.config import get_settings
from .core.exceptions import AppError, MarketDataError
from .core.rate_limiter import RateLimiter
from .core.utils.mutation_guard import PendingMutationGuard
from .services.alpha_vantage import AlphaVantageClient
from .services.data_manager import MarketDataCaches, MarketDataService
from .services.favorites import FavoritesStore, JsonFileStore, SymbolSelection
from .services.selection_news import SelectionNewsFeed
from .services.synthetic import SyntheticDataGenerator

# Set the root logger level to INFO so we can see detailed logs
logging.basicConfig(level=logging.INFO)

logger = structlog.get_logger()


async def run_housekeeping(service: MarketDataService, interval_seconds: float) -> None:
    """Purge expired cache entries until cancelled."""
    while True:
        await asyncio.sleep(interval_seconds)
        service.purge_expired()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build long-lived services and the cache housekeeping task."""
    settings = get_settings()
    logger.info(
        "Starting Equity Screener backend",
        environment=settings.environment,
        use_synthetic_data=settings.prefers_synthetic,
    )

    live_client = AlphaVantageClient(settings, rate_limiter=RateLimiter())
    service = MarketDataService(
        live_client,
        SyntheticDataGenerator(delay_seconds=settings.synthetic_delay_seconds),
        MarketDataCaches.from_settings(settings),
        use_synthetic_data=settings.prefers_synthetic,
        synthetic_ttl_seconds=settings.synthetic_ttl_seconds,
        news_limit=settings.news_limit,
    )

    favorites = FavoritesStore(
        JsonFileStore(settings.favorites_path),
        PendingMutationGuard("favorites", settings.mutation_grace_seconds),
    )
    await favorites.load()

    selection = SymbolSelection(
        PendingMutationGuard("selection", settings.mutation_grace_seconds)
    )

    app.state.market_data = service
    app.state.favorites = favorites
    app.state.selection = selection
    app.state.selection_news = SelectionNewsFeed(service, selection)

    housekeeping = asyncio.create_task(
        run_housekeeping(service, settings.cache_housekeeping_interval)
    )
    logger.info(
        "Cache housekeeping started",
        interval_seconds=settings.cache_housekeeping_interval,
    )

    try:
        yield
    finally:
        housekeeping.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await housekeeping
        await live_client.close()
        logger.info("Equity Screener backend stopped")


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Equity Screener API",
        description="Cached market data with live and synthetic sources",
        version="0.1.0",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        """Render AppError subclasses with their own status code."""
        error_dict = exc.to_dict()

        logger.error(
            "Application error occurred",
            path=request.url.path,
            method=request.method,
            **error_dict,
        )

        content = {"detail": exc.message, **error_dict}
        if isinstance(exc, MarketDataError):
            content["error"] = exc.to_error_info()

        return JSONResponse(status_code=exc.status_code, content=content)

    app.include_router(health_router)
    app.include_router(market_router)
    app.include_router(favorites_router)
    app.include_router(selection_router)

    return app


app = create_app()
