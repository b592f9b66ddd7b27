"""
Health check endpoint for monitoring.
"""

from typing import Any

import structlog
from fastapi import APIRouter, Depends

from ..core.config import Settings, get_settings
from ..services.data_manager import MarketDataService
from .dependencies import get_market_data_service

logger = structlog.get_logger()

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(
    service: MarketDataService = Depends(get_market_data_service),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    """
    Report service status, data mode and cache occupancy.

    The service stays "ok" without an API key: it serves synthetic data.
    """
    logger.info("Health check requested")

    return {
        "status": "ok",
        "environment": settings.environment,
        "api_key_configured": settings.has_api_key,
        "use_synthetic_data": service.use_synthetic_data,
        "caches": service.cache_stats(),
    }
