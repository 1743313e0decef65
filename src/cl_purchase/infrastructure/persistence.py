"""PurchaseRepository — purchases collection mapping."""

from dataclasses import asdict
from typing import Any

from src.cl_common.document_store import Document, DocumentStore, Filter
from src.cl_common.enums import ApprovalStatus, Collection, PurchaseStatus
from src.cl_purchase.domain.models import Purchase, StatusChange

_PURCHASES = Collection.PURCHASES.value


def _doc_to_purchase(doc: Document) -> Purchase:
    f = doc.fields
    return Purchase(
        id=doc.id,
        offer_id=f.get("offer_id", ""),
        buyer_id=f.get("buyer_id", ""),
        seller_id=f.get("seller_id", ""),
        quantity=int(f.get("quantity", 0)),
        unit_price_cents=int(f.get("unit_price_cents", 0)),
        subtotal_cents=int(f.get("subtotal_cents", 0)),
        platform_fee_cents=int(f.get("platform_fee_cents", 0)),
        total_cents=int(f.get("total_cents", 0)),
        payment_method=f.get("payment_method", "bank_transfer"),
        status=f.get("status", PurchaseStatus.PENDING.value),
        payment_approval_status=f.get("payment_approval_status", ApprovalStatus.PENDING.value),
        shipping_approval_status=f.get("shipping_approval_status", ApprovalStatus.PENDING.value),
        admin_notes=f.get("admin_notes", ""),
        shipping_details=dict(f.get("shipping_details") or {}),
        delivery_reminder_active=bool(f.get("delivery_reminder_active", False)),
        status_history=[StatusChange(**h) for h in f.get("status_history") or []],
        inventory_reconciled=bool(f.get("inventory_reconciled", False)),
        offer_title=f.get("offer_title", ""),
        offer_number=f.get("offer_number", ""),
        created_at=f.get("created_at"),
        updated_at=f.get("updated_at"),
    )


def purchase_to_fields(purchase: Purchase) -> dict[str, Any]:
    fields = asdict(purchase)
    fields.pop("id")
    return fields


class PurchaseRepository:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def get_by_id(self, purchase_id: str) -> Purchase | None:
        doc = await self._store.get_document(_PURCHASES, purchase_id)
        return _doc_to_purchase(doc) if doc else None

    async def create(self, purchase: Purchase) -> Purchase:
        purchase.id = await self._store.add_document(
            _PURCHASES, purchase_to_fields(purchase), doc_id=purchase.id or None
        )
        return purchase

    async def update_fields(self, purchase_id: str, fields: dict[str, Any]) -> None:
        await self._store.set_fields(_PURCHASES, purchase_id, fields)

    async def update_if(
        self, purchase_id: str, fields: dict[str, Any], expected: dict[str, Any]
    ) -> bool:
        return await self._store.update_if(_PURCHASES, purchase_id, fields, expected)

    async def list_by_buyer(self, buyer_id: str) -> list[Purchase]:
        return await self._list([Filter("buyer_id", "==", buyer_id)])

    async def list_by_seller(self, seller_id: str) -> list[Purchase]:
        return await self._list([Filter("seller_id", "==", seller_id)])

    async def list_all(self, status: str | None) -> list[Purchase]:
        return await self._list([Filter("status", "==", status)] if status else [])

    async def _list(self, filters: list[Filter]) -> list[Purchase]:
        docs = await self._store.query_documents(
            _PURCHASES, filters, order_by="created_at", descending=True
        )
        return [_doc_to_purchase(d) for d in docs]
