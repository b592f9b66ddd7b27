"""
Comparison selection endpoints.

The selection holds up to five symbols; its news feed follows it.
"""

from typing import Any

import structlog
from fastapi import APIRouter, Depends, Query

from ..services.favorites import SymbolSelection
from ..services.selection_news import SelectionNewsFeed
from .dependencies import get_selection_news, get_symbol_selection
from .favorites import SymbolMatchRequest

router = APIRouter(prefix="/api/selection", tags=["Selection"])
logger = structlog.get_logger()


def _payload(selection: SymbolSelection) -> dict[str, Any]:
    return {
        "selected": [m.to_dict() for m in selection.selected],
        "count": len(selection.selected),
        "max_symbols": selection.max_symbols,
    }


@router.get("")
async def get_selection(
    selection: SymbolSelection = Depends(get_symbol_selection),
) -> dict[str, Any]:
    return _payload(selection)


@router.post("/toggle")
async def toggle_selection(
    request: SymbolMatchRequest,
    selection: SymbolSelection = Depends(get_symbol_selection),
) -> dict[str, Any]:
    """
    Select or deselect a symbol.

    ``applied`` is False when the selection is full or a toggle for the same
    symbol was still settling.
    """
    match = request.to_match()
    applied = selection.toggle(match)
    logger.info("Selection toggled", symbol=request.symbol, applied=applied)
    return {
        **_payload(selection),
        "symbol": request.symbol,
        "is_selected": selection.is_selected(match),
        "applied": applied,
    }


@router.delete("")
async def clear_selection(
    selection: SymbolSelection = Depends(get_symbol_selection),
) -> dict[str, Any]:
    selection.clear()
    return _payload(selection)


@router.get("/news")
async def get_selection_news_state(
    refresh: bool = Query(False, description="Fetch again even if unchanged"),
    selection: SymbolSelection = Depends(get_symbol_selection),
    feed: SelectionNewsFeed = Depends(get_selection_news),
) -> dict[str, Any]:
    """Merged news for the selection, with the feed's status and error."""
    state = await (feed.refresh() if refresh else feed.current())
    return {
        "symbols": selection.symbols(),
        "status": state.status.value,
        "articles": [a.to_dict() for a in state.data or []],
        "error": state.error.to_dict() if state.error else None,
    }
