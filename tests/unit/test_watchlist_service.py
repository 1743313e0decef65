"""Tests for WatchlistService and NotificationService."""

import pytest

from src.cl_common.enums import Collection
from src.cl_common.errors import NotificationNotFoundError, OfferNotFoundError, OfferNotPurchasableError


async def _watchlist(store, user_id: str) -> list[str] | None:
    doc = await store.get_document(Collection.USERS.value, user_id)
    assert doc is not None
    return doc.get("watchlist")


class TestWatchlist:
    async def test_add_is_idempotent_and_notifies_once(self, services, store, seed_offer, seed_user) -> None:
        await seed_offer()
        await seed_user("u1")

        first = await services.watchlist.add("u1", "offer-1")
        second = await services.watchlist.add("u1", "offer-1")
        await services.dispatcher.drain()

        assert (first.changed, second.changed) == (True, False)
        assert await _watchlist(store, "u1") == ["offer-1"]
        notes = await store.query_documents(Collection.NOTIFICATIONS.value)
        assert [n.get("type") for n in notes] == ["watchlist"]

    async def test_add_requires_purchasable_offer(self, services, seed_offer, seed_user) -> None:
        await seed_offer(quantity=0, status="sold")
        await seed_user("u1")
        with pytest.raises(OfferNotPurchasableError):
            await services.watchlist.add("u1", "offer-1")
        with pytest.raises(OfferNotFoundError):
            await services.watchlist.add("u1", "ghost")

    async def test_sell_out_during_add_leaves_no_entry(self, services, store, seed_offer, seed_user) -> None:
        await seed_offer(quantity=10)
        await seed_user("u1")
        offers = services.watchlist._offers
        read_offer = offers.get_by_id

        async def read_then_sell_out(offer_id: str):
            offer = await read_offer(offer_id)
            offers.get_by_id = read_offer
            await services.reconciler.reconcile(offer_id, 10)
            return offer

        offers.get_by_id = read_then_sell_out
        with pytest.raises(OfferNotPurchasableError):
            await services.watchlist.add("u1", "offer-1")
        await services.dispatcher.drain()

        assert await _watchlist(store, "u1") == []
        assert await store.query_documents(Collection.NOTIFICATIONS.value) == []

    async def test_remove_drops_duplicates(self, services, store, seed_user) -> None:
        await seed_user("u1", watchlist=["o1", "o2", "o1"])
        resp = await services.watchlist.remove("u1", "o1")
        assert resp.changed is True
        assert await _watchlist(store, "u1") == ["o2"]
        assert (await services.watchlist.remove("u1", "o1")).changed is False

    async def test_list_dedupes_and_hides_unpurchasable(self, services, seed_offer, seed_user) -> None:
        await seed_offer("live")
        await seed_offer("gone", deleted=True, status="expired")
        await seed_user("u1", watchlist=["live", "gone", "live", "missing"])
        resp = await services.watchlist.list_watchlist("u1")
        assert resp.offer_ids == ["live"]
        assert resp.items[0].quantity == 10


class TestNotificationService:
    async def test_inbox_flow(self, services, seed_offer, seed_user) -> None:
        await seed_offer("a")
        await seed_offer("b")
        await seed_user("u1")
        await services.watchlist.add("u1", "a")
        await services.watchlist.add("u1", "b")
        await services.dispatcher.drain()

        inbox = await services.notifications.list_mine("u1", limit=10)
        assert len(inbox.items) == 2
        assert inbox.unread_count == 2

        read = await services.notifications.mark_read(inbox.items[0].id, "u1")
        assert read.is_read is True
        assert (await services.notifications.unread_count("u1")).unread_count == 1

        assert (await services.notifications.mark_all_read("u1")).marked == 1
        assert (await services.notifications.unread_count("u1")).unread_count == 0

    async def test_cannot_read_someone_elses(self, services, seed_offer, seed_user) -> None:
        await seed_offer()
        await seed_user("u1")
        await services.watchlist.add("u1", "offer-1")
        await services.dispatcher.drain()
        [note] = (await services.notifications.list_mine("u1", limit=10)).items
        with pytest.raises(NotificationNotFoundError):
            await services.notifications.mark_read(note.id, "u2")
