"""OfferRepository — concrete implementation of OfferRepositoryProtocol.

Offers live in the `offers` collection. Offer numbers come from the
`counters/offers` document, advanced with compare-and-swap so two sellers
creating offers at the same time can never receive the same number.
"""

from dataclasses import asdict
from typing import Any

from src.cl_common.document_store import Document, DocumentStore, Filter
from src.cl_common.enums import Collection, OfferStatus
from src.cl_common.errors import ConcurrentUpdateError, DocumentExistsError
from src.cl_offer.domain.models import Offer
from src.cl_offer.domain.sequence import format_offer_number, parse_offer_number

_OFFERS = Collection.OFFERS.value
_COUNTERS = Collection.COUNTERS.value
_OFFER_COUNTER_ID = "offers"


def _doc_to_offer(doc: Document) -> Offer:
    f = doc.fields
    return Offer(
        id=doc.id,
        offer_number=f.get("offer_number", ""),
        title=f.get("title", ""),
        supplier_id=f.get("supplier_id", ""),
        quantity=int(f.get("quantity", 0)),
        current_price_cents=int(f.get("current_price_cents", 0)),
        original_price_cents=int(f.get("original_price_cents", 0)),
        description=f.get("description", ""),
        category=f.get("category", ""),
        location=f.get("location", ""),
        unit=f.get("unit", ""),
        min_order_quantity=int(f.get("min_order_quantity", 1)),
        tags=list(f.get("tags") or []),
        images=list(f.get("images") or []),
        supplier_company=f.get("supplier_company", ""),
        supplier_verified=bool(f.get("supplier_verified", False)),
        status=f.get("status", OfferStatus.ACTIVE.value),
        deleted=bool(f.get("deleted", False)),
        deleted_at=f.get("deleted_at"),
        created_at=f.get("created_at"),
        updated_at=f.get("updated_at"),
    )


def _offer_to_fields(offer: Offer) -> dict[str, Any]:
    fields = asdict(offer)
    fields.pop("id")
    return fields


class OfferRepository:
    def __init__(self, store: DocumentStore, counter_max_retries: int = 10) -> None:
        self._store = store
        self._counter_max_retries = counter_max_retries

    async def get_by_id(self, offer_id: str) -> Offer | None:
        doc = await self._store.get_document(_OFFERS, offer_id)
        return _doc_to_offer(doc) if doc else None

    async def next_offer_number(self) -> str:
        for _ in range(self._counter_max_retries):
            counter = await self._store.get_document(_COUNTERS, _OFFER_COUNTER_ID)
            if counter is None:
                # First allocation: continue after any offers created before the counter existed
                first = await self._highest_existing_sequence() + 1
                try:
                    await self._store.add_document(_COUNTERS, {"value": first}, doc_id=_OFFER_COUNTER_ID)
                except DocumentExistsError:
                    continue
                return format_offer_number(first)
            current = int(counter.get("value", 0))
            if await self._store.update_if(
                _COUNTERS, _OFFER_COUNTER_ID, {"value": current + 1}, {"value": current}
            ):
                return format_offer_number(current + 1)
        raise ConcurrentUpdateError(_COUNTERS, _OFFER_COUNTER_ID)

    async def _highest_existing_sequence(self) -> int:
        docs = await self._store.query_documents(_OFFERS)
        numbers = [parse_offer_number(d.get("offer_number", "")) for d in docs]
        return max((n for n in numbers if n is not None), default=0)

    async def create(self, offer: Offer) -> Offer:
        offer.id = await self._store.add_document(_OFFERS, _offer_to_fields(offer), doc_id=offer.id or None)
        return offer

    async def list_listed(
        self,
        category: str | None,
        location: str | None,
        verified_only: bool,
    ) -> list[Offer]:
        filters = [
            Filter("status", "==", OfferStatus.ACTIVE.value),
            Filter("deleted", "==", False),
            Filter("quantity", ">", 0),
        ]
        if category:
            filters.append(Filter("category", "==", category))
        if location:
            filters.append(Filter("location", "==", location))
        if verified_only:
            filters.append(Filter("supplier_verified", "==", True))
        docs = await self._store.query_documents(
            _OFFERS, filters, order_by="created_at", descending=True
        )
        return [_doc_to_offer(d) for d in docs]

    async def list_by_supplier(
        self, supplier_id: str, include_hidden: bool
    ) -> list[Offer]:
        filters = [Filter("supplier_id", "==", supplier_id)]
        if not include_hidden:
            filters += [
                Filter("status", "==", OfferStatus.ACTIVE.value),
                Filter("deleted", "==", False),
            ]
        docs = await self._store.query_documents(
            _OFFERS, filters, order_by="created_at", descending=True
        )
        return [_doc_to_offer(d) for d in docs]

    async def list_all(self) -> list[Offer]:
        docs = await self._store.query_documents(_OFFERS, order_by="created_at", descending=True)
        return [_doc_to_offer(d) for d in docs]

    async def update_fields(self, offer_id: str, fields: dict[str, Any]) -> None:
        await self._store.set_fields(_OFFERS, offer_id, fields)

    async def update_if(
        self, offer_id: str, fields: dict[str, Any], expected: dict[str, Any]
    ) -> bool:
        return await self._store.update_if(_OFFERS, offer_id, fields, expected)
