"""
Merged news for the current comparison selection.

The feed is an ``AsyncOperation`` whose dependency is the selection's
composite key: reading it after the selection changed starts a new fetch,
reading it again without a change returns the settled state.
"""

import structlog

from ..core.utils.async_operation import AsyncOperation, AsyncState
from .data_manager import MarketDataService, NewsArticle
from .favorites import SymbolSelection

logger = structlog.get_logger(__name__)


class SelectionNewsFeed:
    """
    News panel state for a ``SymbolSelection``.

    An empty selection shows market news, as ``fetch_multi_symbol_news``
    does for an empty symbol list.
    """

    def __init__(
        self,
        service: MarketDataService,
        selection: SymbolSelection,
        limit: int | None = None,
    ):
        self._service = service
        self._selection = selection
        self.limit = limit
        self.operation: AsyncOperation[list[NewsArticle]] = AsyncOperation(
            self._load, initial_data=[]
        )

    async def _load(self) -> list[NewsArticle]:
        return await self._service.fetch_multi_symbol_news(
            self._selection.symbols(), limit=self.limit
        )

    async def current(self) -> AsyncState[list[NewsArticle]]:
        """State for the current selection, waiting for a fetch in flight."""
        self.operation.set_deps(self._selection.composite_key())

        if self.operation.is_idle:
            logger.debug("selection_news_refresh", key=self._selection.composite_key())
            self.operation.execute()

        return await self._settled()

    async def refresh(self) -> AsyncState[list[NewsArticle]]:
        """Fetch again even if the selection is unchanged (a "Retry" action)."""
        self.operation.set_deps(self._selection.composite_key())
        self.operation.execute()
        return await self._settled()

    async def _settled(self) -> AsyncState[list[NewsArticle]]:
        task = self.operation.current_task
        if self.operation.is_pending and task is not None:
            await task
        return self.operation.state
