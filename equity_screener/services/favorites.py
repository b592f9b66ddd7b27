"""
Favorites and comparison-selection stores.

Both are toggled from the UI and guarded by ``PendingMutationGuard`` so a
rapid double click collapses into one toggle. Favorites are persisted as a
single JSON blob through a small key-value store; the comparison selection
lives in memory only.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Protocol

import structlog

from ..core.utils.mutation_guard import PendingMutationGuard
from .data_manager.keys import CacheKeys
from .data_manager.types import SymbolMatch

logger = structlog.get_logger(__name__)

FAVORITES_STORAGE_KEY = "equity-screener-favorites"
MAX_SELECTED_SYMBOLS = 5


class KeyValueStore(Protocol):
    """Blob storage keyed by string."""

    async def load(self, key: str) -> Any | None: ...

    async def save(self, key: str, value: Any) -> None: ...


class InMemoryStore:
    """Key-value store for tests and ephemeral sessions."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self.data: dict[str, Any] = dict(initial or {})

    async def load(self, key: str) -> Any | None:
        return self.data.get(key)

    async def save(self, key: str, value: Any) -> None:
        self.data[key] = value


class JsonFileStore:
    """
    All keys in one JSON file.

    File I/O runs in a worker thread so the event loop never blocks on disk.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = asyncio.Lock()

    def _read_all(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        content = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(content, dict):
            raise ValueError(f"{self.path} does not contain a JSON object")
        return content

    def _write(self, key: str, value: Any) -> None:
        try:
            content = self._read_all()
        except ValueError:
            logger.warning("json_store_reset", path=str(self.path))
            content = {}
        content[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(content, indent=2), encoding="utf-8")

    async def load(self, key: str) -> Any | None:
        content = await asyncio.to_thread(self._read_all)
        return content.get(key)

    async def save(self, key: str, value: Any) -> None:
        async with self._lock:
            await asyncio.to_thread(self._write, key, value)


def _symbol_of(item: SymbolMatch | str) -> str:
    return item if isinstance(item, str) else item.symbol


class FavoritesStore:
    """
    The user's favorite symbols, persisted after every change.

    Mutations update memory first, then persist. A mutation for a ticker
    that is still pending is dropped and the call returns False.
    """

    def __init__(
        self,
        storage: KeyValueStore,
        guard: PendingMutationGuard,
        storage_key: str = FAVORITES_STORAGE_KEY,
    ):
        self._storage = storage
        self._guard = guard
        self.storage_key = storage_key
        self._favorites: list[SymbolMatch] = []

    async def load(self) -> list[SymbolMatch]:
        """Read favorites from storage; unreadable data loads as empty."""
        try:
            raw = await self._storage.load(self.storage_key)
            self._favorites = [SymbolMatch.from_dict(item) for item in raw or []]
        except (ValueError, TypeError, KeyError) as e:
            logger.error(
                "favorites_load_failed", storage_key=self.storage_key, error=str(e)
            )
            self._favorites = []

        logger.info("favorites_loaded", count=len(self._favorites))
        return self.favorites

    @property
    def favorites(self) -> list[SymbolMatch]:
        return list(self._favorites)

    @property
    def count(self) -> int:
        return len(self._favorites)

    def is_favorite(self, item: SymbolMatch | str) -> bool:
        symbol = _symbol_of(item)
        if not symbol:
            return False
        return any(f.symbol == symbol for f in self._favorites)

    async def add(self, match: SymbolMatch) -> bool:
        """Add ``match`` unless it is already a favorite or pending."""
        if self.is_favorite(match):
            return False

        def apply() -> None:
            if not self.is_favorite(match):
                self._favorites.append(match)

        return await self._guard.run(match.symbol, apply, self._persist)

    async def remove(self, item: SymbolMatch | str) -> bool:
        symbol = _symbol_of(item)

        def apply() -> None:
            self._favorites = [f for f in self._favorites if f.symbol != symbol]

        return await self._guard.run(symbol, apply, self._persist)

    async def toggle(self, match: SymbolMatch) -> bool:
        """
        Add or remove ``match`` depending on its current state.

        Returns:
            True if the toggle ran, False if it was dropped as a duplicate
        """

        def apply() -> None:
            if self.is_favorite(match):
                self._favorites = [
                    f for f in self._favorites if f.symbol != match.symbol
                ]
            else:
                self._favorites.append(match)

        return await self._guard.run(match.symbol, apply, self._persist)

    async def clear(self) -> None:
        self._favorites = []
        await self._persist()

    async def _persist(self) -> None:
        await self._storage.save(
            self.storage_key, [f.to_dict() for f in self._favorites]
        )


class SymbolSelection:
    """
    Symbols picked for side-by-side comparison, capped at ``max_symbols``.

    Entries are identified by (symbol, region), so the same ticker listed in
    two regions can be compared.
    """

    def __init__(
        self,
        guard: PendingMutationGuard,
        max_symbols: int = MAX_SELECTED_SYMBOLS,
    ):
        self._guard = guard
        self.max_symbols = max_symbols
        self._selected: list[SymbolMatch] = []

    @staticmethod
    def _key(match: SymbolMatch) -> str:
        return f"{match.symbol}|{match.region}"

    def _index(self, match: SymbolMatch) -> int | None:
        key = self._key(match)
        for i, selected in enumerate(self._selected):
            if self._key(selected) == key:
                return i
        return None

    @property
    def selected(self) -> list[SymbolMatch]:
        return list(self._selected)

    def symbols(self) -> list[str]:
        return [m.symbol for m in self._selected]

    def composite_key(self) -> str:
        """Cache key for the selection's merged news."""
        return CacheKeys.multi_symbol(self.symbols())

    def is_selected(self, match: SymbolMatch) -> bool:
        return self._index(match) is not None

    def add(self, match: SymbolMatch) -> bool:
        """Select ``match``; refused when full, already selected, or pending."""
        if self.is_selected(match):
            return False
        if len(self._selected) >= self.max_symbols:
            logger.info(
                "selection_full", symbol=match.symbol, max_symbols=self.max_symbols
            )
            return False
        return self._mutate(match, lambda: self._selected.append(match))

    def remove(self, match: SymbolMatch) -> bool:
        index = self._index(match)
        if index is None:
            return False
        return self._mutate(match, lambda: self._selected.pop(index))

    def toggle(self, match: SymbolMatch) -> bool:
        if self.is_selected(match):
            return self.remove(match)
        return self.add(match)

    def clear(self) -> None:
        self._selected.clear()

    def _mutate(self, match: SymbolMatch, apply) -> bool:
        key = self._key(match)
        if not self._guard.try_acquire(key):
            return False
        try:
            apply()
        finally:
            self._guard.release(key)
        return True
