"""Tests for WatchlistProjector: eviction, idempotence, best-effort failures."""

from unittest.mock import AsyncMock, MagicMock

from src.cl_common.enums import Collection
from src.cl_common.memory_store import MemoryDocumentStore
from src.cl_user.infrastructure.persistence import UserRepository
from src.cl_watchlist.domain.projector import WatchlistProjector


async def _watchlist(store: MemoryDocumentStore, user_id: str) -> list[str]:
    doc = await store.get_document(Collection.USERS.value, user_id)
    assert doc is not None
    return list(doc.get("watchlist") or [])


class TestProject:
    async def test_zero_quantity_evicts_from_every_watchlist(self, store, seed_user) -> None:
        await seed_user("u1", watchlist=["o1", "o2"])
        await seed_user("u2", watchlist=["o1", "o1"])
        await seed_user("u3", watchlist=["o2"])
        projector = WatchlistProjector(UserRepository(store))

        affected = await projector.project("o1", 0)

        assert affected == {"u1", "u2"}
        assert await _watchlist(store, "u1") == ["o2"]
        assert await _watchlist(store, "u2") == []
        assert await _watchlist(store, "u3") == ["o2"]

    async def test_eviction_is_idempotent(self, store, seed_user) -> None:
        await seed_user("u1", watchlist=["o1"])
        projector = WatchlistProjector(UserRepository(store))
        await projector.project("o1", 0)
        assert await projector.project("o1", 0) == set()
        assert await _watchlist(store, "u1") == []

    async def test_positive_quantity_writes_nothing(self, store, seed_user) -> None:
        await seed_user("u1", watchlist=["o1"])
        projector = WatchlistProjector(UserRepository(store))
        assert await projector.project("o1", 4) == {"u1"}
        assert await _watchlist(store, "u1") == ["o1"]

    async def test_negative_quantity_treated_as_sold_out(self, store, seed_user) -> None:
        await seed_user("u1", watchlist=["o1"])
        await WatchlistProjector(UserRepository(store)).project("o1", -1)
        assert await _watchlist(store, "u1") == []

    async def test_evict(self, store, seed_user) -> None:
        await seed_user("u1", watchlist=["o1"])
        assert await WatchlistProjector(UserRepository(store)).evict("o1") == {"u1"}

    async def test_failure_is_swallowed(self) -> None:
        users = MagicMock()
        users.list_watching = AsyncMock(side_effect=RuntimeError("store down"))
        assert await WatchlistProjector(users).project("o1", 0) == set()

    async def test_batch_failure_is_swallowed(self, store, seed_user) -> None:
        await seed_user("u1", watchlist=["o1"])
        users = UserRepository(store)
        users.remove_from_watchlists = AsyncMock(side_effect=RuntimeError("batch failed"))  # type: ignore[method-assign]
        assert await WatchlistProjector(users).project("o1", 0) == set()
        assert await _watchlist(store, "u1") == ["o1"]

    async def test_eviction_keeps_a_concurrent_user_edit(self, store, seed_user) -> None:
        await seed_user("u1", watchlist=["o1"])
        users = UserRepository(store)
        query = users.list_watching

        async def query_then_user_adds(offer_id: str):
            watchers = await query(offer_id)
            users.list_watching = query  # type: ignore[method-assign]
            # The user adds o2 after the projector has read their watchlist
            assert await users.replace_watchlist_if("u1", ["o1", "o2"], ["o1"])
            return watchers

        users.list_watching = query_then_user_adds  # type: ignore[method-assign]
        affected = await WatchlistProjector(users).project("o1", 0)

        assert affected == {"u1"}
        assert await _watchlist(store, "u1") == ["o2"]

    async def test_gives_up_after_repeated_conflicts(self, store, seed_user) -> None:
        await seed_user("u1", watchlist=["o1"])
        users = UserRepository(store)
        users.remove_from_watchlists = AsyncMock(return_value=False)  # type: ignore[method-assign]

        assert await WatchlistProjector(users, max_retries=3).project("o1", 0) == set()
        assert users.remove_from_watchlists.await_count == 3
        assert await _watchlist(store, "u1") == ["o1"]
