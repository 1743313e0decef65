"""Tests for offer numbers and OfferRepository against the in-memory store."""

import asyncio

import pytest

from src.cl_common.enums import Collection
from src.cl_common.errors import ConcurrentUpdateError
from src.cl_common.memory_store import MemoryDocumentStore
from src.cl_offer.domain.sequence import format_offer_number, parse_offer_number
from src.cl_offer.infrastructure.persistence import OfferRepository


class TestOfferNumberFormat:
    def test_zero_padded(self) -> None:
        assert format_offer_number(3) == "oid000003"

    def test_grows_past_six_digits(self) -> None:
        assert format_offer_number(1234567) == "oid1234567"

    def test_rejects_non_positive(self) -> None:
        with pytest.raises(ValueError):
            format_offer_number(0)

    def test_parse(self) -> None:
        assert parse_offer_number("oid000042") == 42
        assert parse_offer_number("OID42") is None
        assert parse_offer_number("") is None


class TestNextOfferNumber:
    async def test_first_number_on_empty_store(self, store: MemoryDocumentStore) -> None:
        repo = OfferRepository(store)
        assert await repo.next_offer_number() == "oid000001"
        assert await repo.next_offer_number() == "oid000002"

    async def test_continues_after_existing_offers(self, store: MemoryDocumentStore, seed_offer) -> None:
        await seed_offer("a", offer_number="oid000007")
        await seed_offer("b", offer_number="legacy-1")
        repo = OfferRepository(store)
        assert await repo.next_offer_number() == "oid000008"

    async def test_concurrent_allocations_are_unique(self, store: MemoryDocumentStore) -> None:
        repo = OfferRepository(store, counter_max_retries=100)
        numbers = await asyncio.gather(*(repo.next_offer_number() for _ in range(25)))
        assert len(set(numbers)) == 25
        assert sorted(numbers) == [format_offer_number(i) for i in range(1, 26)]

    async def test_gives_up_when_counter_never_settles(self, store: MemoryDocumentStore) -> None:
        await store.add_document(Collection.COUNTERS.value, {"value": 1}, doc_id="offers")

        async def always_lose(*args, **kwargs) -> bool:
            return False

        store.update_if = always_lose  # type: ignore[method-assign]
        with pytest.raises(ConcurrentUpdateError):
            await OfferRepository(store, counter_max_retries=3).next_offer_number()


class TestListing:
    async def test_list_listed_only_purchasable(self, store: MemoryDocumentStore, seed_offer) -> None:
        await seed_offer("live")
        await seed_offer("sold", quantity=0, status="sold")
        await seed_offer("gone", deleted=True, status="expired")
        await seed_offer("other-city", location="Central")
        offers = await OfferRepository(store).list_listed(None, "Kowloon", verified_only=True)
        assert [o.id for o in offers] == ["live"]

    async def test_list_by_supplier_include_hidden(self, store: MemoryDocumentStore, seed_offer) -> None:
        await seed_offer("live")
        await seed_offer("gone", deleted=True, status="expired")
        repo = OfferRepository(store)
        assert {o.id for o in await repo.list_by_supplier("seller-1", include_hidden=True)} == {"live", "gone"}
        assert [o.id for o in await repo.list_by_supplier("seller-1", include_hidden=False)] == ["live"]
