"""Tests for PurchaseService: checkout and every status transition."""

import pytest

from src.cl_common.enums import Collection
from src.cl_common.errors import (
    InsufficientInventoryError,
    InvalidPurchaseError,
    InvalidPurchaseTransitionError,
    OfferNotPurchasableError,
    PurchaseForbiddenError,
)
from src.cl_purchase.application.schemas import (
    ApproveRequest,
    CheckoutRequest,
    CloseRequest,
    ShipRequest,
)


@pytest.fixture
async def actors(seed_user, seed_offer, profile):
    await seed_offer(quantity=10, current_price_cents=3000)
    await seed_user("seller-1", company="Paper Co")
    await seed_user("buyer-1", company="Buyer Ltd")
    await seed_user("admin-1", role="admin")
    return {
        "seller": await profile("seller-1"),
        "buyer": await profile("buyer-1"),
        "admin": await profile("admin-1"),
    }


async def _offer(store) -> dict:
    doc = await store.get_document(Collection.OFFERS.value, "offer-1")
    assert doc is not None
    return doc.fields


async def _notifications(store, services, user_id: str) -> list[str]:
    await services.dispatcher.drain()
    docs = await store.query_documents(Collection.NOTIFICATIONS.value, order_by="created_at")
    return [d.get("title") for d in docs if d.get("user_id") == user_id]


async def _checkout(services, actors, quantity: int = 4):
    return await services.purchases.checkout(
        CheckoutRequest(offer_id="offer-1", quantity=quantity), actors["buyer"]
    )


class TestCheckout:
    async def test_prices_and_takes_inventory(self, services, store, actors) -> None:
        purchase = await _checkout(services, actors, 4)

        assert purchase.status == "pending"
        assert purchase.subtotal_cents == 12000
        assert purchase.platform_fee_cents == 360
        assert purchase.total_cents == 12360
        assert purchase.inventory_reconciled is True
        assert purchase.offer_number == "oid000001"
        assert [h.status for h in purchase.status_history] == ["pending"]
        assert (await _offer(store))["quantity"] == 6

    async def test_notifies_seller_and_buyer(self, services, store, actors) -> None:
        await _checkout(services, actors)
        assert await _notifications(store, services, "seller-1") == ["New order: buyer has paid"]
        assert await _notifications(store, services, "buyer-1") == ["Purchase placed"]

    async def test_cannot_buy_own_offer(self, services, actors) -> None:
        with pytest.raises(InvalidPurchaseError):
            await services.purchases.checkout(
                CheckoutRequest(offer_id="offer-1", quantity=1), actors["seller"]
            )

    async def test_minimum_order_enforced(self, services, store, actors) -> None:
        await store.set_fields(Collection.OFFERS.value, "offer-1", {"min_order_quantity": 5})
        with pytest.raises(InvalidPurchaseError):
            await _checkout(services, actors, 2)

    async def test_over_quantity_rejected_without_purchase(self, services, store, actors) -> None:
        with pytest.raises(InsufficientInventoryError):
            await _checkout(services, actors, 11)
        assert await store.query_documents(Collection.PURCHASES.value) == []

    async def test_sold_offer_not_purchasable(self, services, store, actors) -> None:
        await store.set_fields(Collection.OFFERS.value, "offer-1", {"quantity": 0, "status": "sold"})
        with pytest.raises(OfferNotPurchasableError):
            await _checkout(services, actors, 1)

    async def test_lost_inventory_race_closes_purchase(self, services, store, actors) -> None:
        original = services.purchases._offers.get_by_id

        async def stale_then_real(offer_id):
            offer = await original(offer_id)
            # Another buyer takes the stock between validation and reconciliation
            await store.set_fields(Collection.OFFERS.value, offer_id, {"quantity": 1})
            services.purchases._offers.get_by_id = original
            return offer

        services.purchases._offers.get_by_id = stale_then_real
        with pytest.raises(InsufficientInventoryError):
            await _checkout(services, actors, 4)

        [doc] = await store.query_documents(Collection.PURCHASES.value)
        assert doc.get("status") == "cancelled"
        assert doc.get("inventory_reconciled") is False
        assert (await _offer(store))["quantity"] == 1


class TestForwardTransitions:
    async def test_full_happy_path(self, services, store, actors) -> None:
        p = await _checkout(services, actors)
        p = await services.purchases.approve(p.id, ApproveRequest(notes="receipt ok"), actors["admin"])
        assert (p.status, p.payment_approval_status, p.admin_notes) == ("approved", "approved", "receipt ok")

        p = await services.purchases.ship(p.id, ShipRequest(photos=["https://img/1.jpg"]), actors["seller"])
        assert p.status == "shipped"
        assert p.delivery_reminder_active is True
        assert p.shipping_details["photos"] == ["https://img/1.jpg"]

        p = await services.purchases.confirm_delivery(p.id, actors["buyer"])
        assert p.status == "delivered"
        assert p.delivery_reminder_active is False
        assert p.shipping_details["delivery_confirmed_by"] == "buyer-1"

        p = await services.purchases.complete(p.id, actors["admin"])
        assert p.status == "completed"
        assert [h.status for h in p.status_history] == [
            "pending", "approved", "shipped", "delivered", "completed",
        ]
        # Completion does not take the stock a second time
        assert (await _offer(store))["quantity"] == 6

    async def test_delivery_notifies_seller_twice(self, services, store, actors) -> None:
        p = await _checkout(services, actors)
        await services.purchases.approve(p.id, ApproveRequest(), actors["admin"])
        await services.purchases.ship(p.id, ShipRequest(photos=["u"]), actors["seller"])
        await services.purchases.confirm_delivery(p.id, actors["buyer"])

        seller_titles = await _notifications(store, services, "seller-1")
        assert len(seller_titles) == 5
        assert {"Goods received", "Sale completed, payout pending"} <= set(seller_titles)

    async def test_only_seller_ships(self, services, actors) -> None:
        p = await _checkout(services, actors)
        await services.purchases.approve(p.id, ApproveRequest(), actors["admin"])
        with pytest.raises(PurchaseForbiddenError):
            await services.purchases.ship(p.id, ShipRequest(photos=["u"]), actors["buyer"])

    async def test_only_buyer_confirms_delivery(self, services, actors) -> None:
        p = await _checkout(services, actors)
        await services.purchases.approve(p.id, ApproveRequest(), actors["admin"])
        await services.purchases.ship(p.id, ShipRequest(photos=["u"]), actors["seller"])
        with pytest.raises(PurchaseForbiddenError):
            await services.purchases.confirm_delivery(p.id, actors["seller"])

    async def test_cannot_skip_states(self, services, actors) -> None:
        p = await _checkout(services, actors)
        with pytest.raises(InvalidPurchaseTransitionError):
            await services.purchases.ship(p.id, ShipRequest(photos=["u"]), actors["seller"])

    async def test_complete_reconciles_legacy_purchase(self, services, store, actors) -> None:
        p = await _checkout(services, actors, 4)
        # A purchase recorded before stock was taken at checkout
        await store.set_fields(
            Collection.PURCHASES.value, p.id, {"status": "delivered", "inventory_reconciled": False}
        )
        await services.purchases.complete(p.id, actors["admin"])
        assert (await _offer(store))["quantity"] == 2

    async def test_complete_lost_race_gives_legacy_stock_back(self, services, store, actors) -> None:
        p = await _checkout(services, actors, 4)
        await store.set_fields(
            Collection.PURCHASES.value, p.id, {"status": "delivered", "inventory_reconciled": False}
        )
        original = services.purchases._purchases.update_if

        async def reopened_meanwhile(purchase_id, fields, expected):
            if fields.get("status") == "completed":
                await store.set_fields(Collection.PURCHASES.value, purchase_id, {"status": "shipped"})
            return await original(purchase_id, fields, expected)

        services.purchases._purchases.update_if = reopened_meanwhile
        with pytest.raises(InvalidPurchaseTransitionError):
            await services.purchases.complete(p.id, actors["admin"])

        doc = await store.get_document(Collection.PURCHASES.value, p.id)
        assert doc is not None
        assert (doc.get("status"), doc.get("inventory_reconciled")) == ("shipped", False)
        assert (await _offer(store))["quantity"] == 6

    async def test_complete_reconciles_purchase_without_flag(self, services, store, actors) -> None:
        p = await _checkout(services, actors, 4)
        stored = await store.get_document(Collection.PURCHASES.value, p.id)
        assert stored is not None
        # Written before the inventory_reconciled field existed
        legacy = {k: v for k, v in stored.fields.items() if k != "inventory_reconciled"}
        legacy["status"] = "delivered"
        await store.add_document(Collection.PURCHASES.value, legacy, doc_id="legacy-1")

        completed = await services.purchases.complete("legacy-1", actors["admin"])

        assert completed.inventory_reconciled is True
        assert (await _offer(store))["quantity"] == 2


class TestRejectAndCancel:
    async def test_reject_restores_inventory(self, services, store, actors) -> None:
        p = await _checkout(services, actors, 10)
        assert (await _offer(store))["status"] == "sold"

        p = await services.purchases.reject(p.id, CloseRequest(reason="fake receipt"), actors["admin"])

        assert p.status == "rejected"
        assert p.payment_approval_status == "rejected"
        assert p.inventory_reconciled is False
        stored = await _offer(store)
        assert (stored["quantity"], stored["status"]) == (10, "active")
        assert await _notifications(store, services, "buyer-1") == ["Purchase placed", "Order rejected"]

    async def test_buyer_cancels_approved(self, services, store, actors) -> None:
        p = await _checkout(services, actors, 3)
        await services.purchases.approve(p.id, ApproveRequest(), actors["admin"])
        p = await services.purchases.cancel(p.id, CloseRequest(), actors["buyer"])
        assert p.status == "cancelled"
        assert (await _offer(store))["quantity"] == 10

    async def test_seller_cannot_cancel(self, services, actors) -> None:
        p = await _checkout(services, actors)
        with pytest.raises(PurchaseForbiddenError):
            await services.purchases.cancel(p.id, CloseRequest(), actors["seller"])

    async def test_cannot_reject_shipped(self, services, store, actors) -> None:
        p = await _checkout(services, actors, 4)
        await services.purchases.approve(p.id, ApproveRequest(), actors["admin"])
        await services.purchases.ship(p.id, ShipRequest(photos=["u"]), actors["seller"])
        with pytest.raises(InvalidPurchaseTransitionError):
            await services.purchases.reject(p.id, CloseRequest(), actors["admin"])
        assert (await _offer(store))["quantity"] == 6

    async def test_reject_twice_restores_once(self, services, store, actors) -> None:
        p = await _checkout(services, actors, 4)
        await services.purchases.reject(p.id, CloseRequest(), actors["admin"])
        with pytest.raises(InvalidPurchaseTransitionError):
            await services.purchases.reject(p.id, CloseRequest(), actors["admin"])
        assert (await _offer(store))["quantity"] == 10

    async def test_lost_status_race_takes_stock_back(self, services, store, actors) -> None:
        p = await _checkout(services, actors, 4)
        original = services.purchases._purchases.update_if

        async def approve_sneaks_in(purchase_id, fields, expected):
            if fields.get("status") == "rejected":
                await store.set_fields(Collection.PURCHASES.value, purchase_id, {"status": "approved"})
            return await original(purchase_id, fields, expected)

        services.purchases._purchases.update_if = approve_sneaks_in
        with pytest.raises(InvalidPurchaseTransitionError):
            await services.purchases.reject(p.id, CloseRequest(), actors["admin"])

        doc = await store.get_document(Collection.PURCHASES.value, p.id)
        assert doc is not None
        assert (doc.get("status"), doc.get("inventory_reconciled")) == ("approved", True)
        assert (await _offer(store))["quantity"] == 6


class TestQueries:
    async def test_visibility(self, services, seed_user, profile, actors) -> None:
        p = await _checkout(services, actors)
        await seed_user("stranger")
        for viewer in (actors["buyer"], actors["seller"], actors["admin"]):
            assert (await services.purchases.get_purchase(p.id, viewer)).id == p.id
        with pytest.raises(PurchaseForbiddenError):
            await services.purchases.get_purchase(p.id, await profile("stranger"))

    async def test_lists(self, services, actors) -> None:
        p = await _checkout(services, actors)
        assert [x.id for x in (await services.purchases.list_as_buyer(actors["buyer"])).items] == [p.id]
        assert [x.id for x in (await services.purchases.list_as_seller(actors["seller"])).items] == [p.id]
        assert (await services.purchases.list_all("pending")).total == 1
        assert (await services.purchases.list_all("completed")).total == 0
