"""
Shared dependencies for the API routers.

Long-lived instances are created in the application lifespan and stored on
``app.state``; routers only read them.
"""

from fastapi import Query, Request

from ..core.utils.ttl_cache import CacheOptions
from ..services.data_manager import MarketDataService
from ..services.favorites import FavoritesStore, SymbolSelection
from ..services.selection_news import SelectionNewsFeed


def get_market_data_service(request: Request) -> MarketDataService:
    """Get the market data facade from app state."""
    service: MarketDataService = request.app.state.market_data
    return service


def get_favorites_store(request: Request) -> FavoritesStore:
    """Get the favorites store from app state."""
    store: FavoritesStore = request.app.state.favorites
    return store


def get_cache_options(
    allow_stale: bool = Query(
        False, description="Serve expired data if the upstream call fails"
    ),
) -> CacheOptions:
    """Per-request cache directive from the query string."""
    return CacheOptions(allow_stale_on_error=allow_stale)


def get_symbol_selection(request: Request) -> SymbolSelection:
    """Get the comparison selection from app state."""
    selection: SymbolSelection = request.app.state.selection
    return selection


def get_selection_news(request: Request) -> SelectionNewsFeed:
    """Get the selection's news feed from app state."""
    feed: SelectionNewsFeed = request.app.state.selection_news
    return feed
