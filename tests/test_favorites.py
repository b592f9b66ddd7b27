"""
Unit tests for FavoritesStore, SymbolSelection and the key-value stores.
"""

import json

import pytest

from equity_screener.core.utils.mutation_guard import PendingMutationGuard
from equity_screener.services.data_manager import SymbolMatch
from equity_screener.services.favorites import (
    FAVORITES_STORAGE_KEY,
    FavoritesStore,
    InMemoryStore,
    JsonFileStore,
    SymbolSelection,
)


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


# ===== Fixtures =====


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def guard(clock):
    return PendingMutationGuard("favorites", grace_delay_seconds=0.05, clock=clock)


@pytest.fixture
def storage():
    return InMemoryStore()


@pytest.fixture
def store(storage, guard):
    return FavoritesStore(storage, guard)


@pytest.fixture
def tsla():
    return SymbolMatch(symbol="TSLA", name="Tesla Inc", match_score=0.9)


@pytest.fixture
def aapl():
    return SymbolMatch(symbol="AAPL", name="Apple Inc", match_score=1.0)


# ===== FavoritesStore Tests =====


class TestFavoritesLoad:
    """Test loading persisted favorites."""

    @pytest.mark.asyncio
    async def test_load_empty_storage(self, store):
        assert await store.load() == []
        assert store.count == 0

    @pytest.mark.asyncio
    async def test_load_existing_blob(self, storage, guard, aapl):
        storage.data[FAVORITES_STORAGE_KEY] = [aapl.to_dict()]
        store = FavoritesStore(storage, guard)

        favorites = await store.load()

        assert [f.symbol for f in favorites] == ["AAPL"]
        assert store.is_favorite("AAPL")

    @pytest.mark.asyncio
    async def test_corrupt_blob_loads_as_empty(self, storage, guard):
        storage.data[FAVORITES_STORAGE_KEY] = [{"name": "no symbol field"}]
        store = FavoritesStore(storage, guard)

        assert await store.load() == []


class TestFavoritesMutations:
    """Test add/remove/toggle through the guard."""

    @pytest.mark.asyncio
    async def test_add_persists(self, store, storage, aapl):
        assert await store.add(aapl) is True

        assert store.is_favorite(aapl)
        assert storage.data[FAVORITES_STORAGE_KEY][0]["symbol"] == "AAPL"

    @pytest.mark.asyncio
    async def test_add_existing_is_noop(self, store, clock, aapl):
        await store.add(aapl)
        clock.now += 1

        assert await store.add(aapl) is False
        assert store.count == 1

    @pytest.mark.asyncio
    async def test_remove_by_symbol_string(self, store, clock, aapl):
        await store.add(aapl)
        clock.now += 1

        assert await store.remove("AAPL") is True
        assert store.count == 0

    @pytest.mark.asyncio
    async def test_double_toggle_within_grace_collapses(self, store, clock, tsla):
        """Two toggles 10ms apart: the second is dropped, TSLA ends up favorited."""
        first = await store.toggle(tsla)
        clock.now += 0.01
        second = await store.toggle(tsla)

        assert first is True
        assert second is False
        assert store.is_favorite("TSLA") is True

    @pytest.mark.asyncio
    async def test_toggle_after_grace_removes(self, store, clock, tsla):
        await store.toggle(tsla)
        clock.now += 0.06

        assert await store.toggle(tsla) is True
        assert store.is_favorite("TSLA") is False

    @pytest.mark.asyncio
    async def test_pending_key_does_not_block_other_symbols(self, store, tsla, aapl):
        await store.toggle(tsla)

        assert await store.toggle(aapl) is True
        assert store.count == 2

    @pytest.mark.asyncio
    async def test_clear(self, store, storage, clock, tsla, aapl):
        await store.add(tsla)
        await store.add(aapl)

        await store.clear()

        assert store.favorites == []
        assert storage.data[FAVORITES_STORAGE_KEY] == []

    def test_is_favorite_blank_symbol(self, store):
        assert store.is_favorite("") is False


class TestJsonFileStore:
    """Test the JSON blob store."""

    @pytest.mark.asyncio
    async def test_round_trip_through_file(self, tmp_path):
        path = tmp_path / "favorites.json"
        store = JsonFileStore(path)

        await store.save("k", [1, 2])

        assert await store.load("k") == [1, 2]
        assert json.loads(path.read_text()) == {"k": [1, 2]}

    @pytest.mark.asyncio
    async def test_missing_file_loads_none(self, tmp_path):
        store = JsonFileStore(tmp_path / "absent.json")

        assert await store.load("k") is None

    @pytest.mark.asyncio
    async def test_corrupt_file_makes_favorites_empty(self, tmp_path, guard):
        path = tmp_path / "favorites.json"
        path.write_text("{not json")
        favorites = FavoritesStore(JsonFileStore(path), guard)

        assert await favorites.load() == []

    @pytest.mark.asyncio
    async def test_save_over_corrupt_file_resets_it(self, tmp_path):
        path = tmp_path / "favorites.json"
        path.write_text("[1, 2, 3]")
        store = JsonFileStore(path)

        await store.save("k", "v")

        assert json.loads(path.read_text()) == {"k": "v"}


# ===== SymbolSelection Tests =====


def _match(symbol: str, region: str = "United States") -> SymbolMatch:
    return SymbolMatch(symbol=symbol, name=symbol, region=region)


class TestSymbolSelection:
    """Test the capped comparison selection."""

    @pytest.fixture
    def selection(self, clock):
        return SymbolSelection(PendingMutationGuard("selection", 0.05, clock=clock))

    def test_cap_at_five(self, selection):
        for symbol in ["A", "B", "C", "D", "E"]:
            assert selection.add(_match(symbol)) is True

        assert selection.add(_match("F")) is False
        assert selection.symbols() == ["A", "B", "C", "D", "E"]

    def test_same_ticker_different_region_is_distinct(self, selection):
        assert selection.add(_match("SHOP", "United States")) is True
        assert selection.add(_match("SHOP", "Toronto")) is True
        assert len(selection.selected) == 2

    def test_duplicate_add_refused(self, selection):
        selection.add(_match("AAPL"))
        assert selection.add(_match("AAPL")) is False

    def test_toggle_within_grace_dropped(self, selection, clock):
        assert selection.toggle(_match("AAPL")) is True
        assert selection.toggle(_match("AAPL")) is False
        assert selection.is_selected(_match("AAPL"))

        clock.now += 0.1
        assert selection.toggle(_match("AAPL")) is True
        assert not selection.is_selected(_match("AAPL"))

    def test_composite_key_is_order_insensitive(self, selection):
        selection.add(_match("MSFT"))
        selection.add(_match("AAPL"))

        assert selection.composite_key() == "AAPL,MSFT"

    def test_clear(self, selection):
        selection.add(_match("AAPL"))
        selection.clear()

        assert selection.symbols() == []
