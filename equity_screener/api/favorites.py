"""
Favorites endpoints.
"""

from typing import Any

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..services.data_manager import SymbolMatch
from ..services.favorites import FavoritesStore
from .dependencies import get_favorites_store

router = APIRouter(prefix="/api/favorites", tags=["Favorites"])
logger = structlog.get_logger()


class SymbolMatchRequest(BaseModel):
    """A symbol as returned by search."""

    symbol: str = Field(..., min_length=1, description="Stock symbol (e.g., AAPL)")
    name: str = Field(default="", description="Company name")
    type: str = Field(default="Equity", description="Security type")
    region: str = Field(default="United States", description="Listing region")
    currency: str = Field(default="USD")
    match_score: float = Field(default=0.0, ge=0.0, le=1.0)
    market_open: str = ""
    market_close: str = ""
    timezone: str = ""

    def to_match(self) -> SymbolMatch:
        return SymbolMatch.from_dict(self.model_dump())


def _payload(store: FavoritesStore) -> dict[str, Any]:
    return {
        "favorites": [f.to_dict() for f in store.favorites],
        "count": store.count,
    }


@router.get("")
async def list_favorites(
    store: FavoritesStore = Depends(get_favorites_store),
) -> dict[str, Any]:
    return _payload(store)


@router.post("/toggle")
async def toggle_favorite(
    request: SymbolMatchRequest,
    store: FavoritesStore = Depends(get_favorites_store),
) -> dict[str, Any]:
    """
    Add or remove a favorite.

    ``applied`` is False when a toggle for the same symbol was still
    settling and this one was dropped.
    """
    applied = await store.toggle(request.to_match())
    logger.info("Favorite toggled", symbol=request.symbol, applied=applied)
    return {
        **_payload(store),
        "symbol": request.symbol,
        "is_favorite": store.is_favorite(request.symbol),
        "applied": applied,
    }


@router.delete("")
async def clear_favorites(
    store: FavoritesStore = Depends(get_favorites_store),
) -> dict[str, Any]:
    await store.clear()
    return _payload(store)
