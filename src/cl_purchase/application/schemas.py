"""Pydantic schemas for cl_purchase requests and responses."""

from typing import Any

from pydantic import BaseModel, Field

from src.cl_common.cents import cents_to_display
from src.cl_purchase.domain.models import Purchase


class CheckoutRequest(BaseModel):
    offer_id: str
    quantity: int = Field(ge=1)
    payment_method: str = "bank_transfer"


class ApproveRequest(BaseModel):
    notes: str = ""


class ShipRequest(BaseModel):
    photos: list[str] = Field(min_length=1, description="Already-uploaded shipping photo URLs")
    remarks: str = ""


class CloseRequest(BaseModel):
    """Body of reject and cancel."""

    reason: str = ""


class StatusChangeOut(BaseModel):
    status: str
    timestamp: str
    updated_by: str
    notes: str


class PurchaseResponse(BaseModel):
    id: str
    offer_id: str
    offer_number: str
    offer_title: str
    buyer_id: str
    seller_id: str
    quantity: int
    unit_price_cents: int
    subtotal_cents: int
    platform_fee_cents: int
    total_cents: int
    total_display: str
    payment_method: str
    status: str
    payment_approval_status: str
    shipping_approval_status: str
    admin_notes: str
    shipping_details: dict[str, Any]
    delivery_reminder_active: bool
    status_history: list[StatusChangeOut]
    inventory_reconciled: bool
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_domain(cls, purchase: Purchase) -> "PurchaseResponse":
        return cls(
            id=purchase.id,
            offer_id=purchase.offer_id,
            offer_number=purchase.offer_number,
            offer_title=purchase.offer_title,
            buyer_id=purchase.buyer_id,
            seller_id=purchase.seller_id,
            quantity=purchase.quantity,
            unit_price_cents=purchase.unit_price_cents,
            subtotal_cents=purchase.subtotal_cents,
            platform_fee_cents=purchase.platform_fee_cents,
            total_cents=purchase.total_cents,
            total_display=cents_to_display(purchase.total_cents),
            payment_method=purchase.payment_method,
            status=purchase.status,
            payment_approval_status=purchase.payment_approval_status,
            shipping_approval_status=purchase.shipping_approval_status,
            admin_notes=purchase.admin_notes,
            shipping_details=purchase.shipping_details,
            delivery_reminder_active=purchase.delivery_reminder_active,
            status_history=[
                StatusChangeOut(
                    status=h.status, timestamp=h.timestamp, updated_by=h.updated_by, notes=h.notes
                )
                for h in purchase.status_history
            ],
            inventory_reconciled=purchase.inventory_reconciled,
            created_at=purchase.created_at,
            updated_at=purchase.updated_at,
        )


class PurchaseListResponse(BaseModel):
    items: list[PurchaseResponse]
    total: int
