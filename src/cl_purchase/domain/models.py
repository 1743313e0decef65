"""Purchase domain model — pure dataclass, no storage dependency."""
from dataclasses import dataclass, field
from typing import Any

from src.cl_common.enums import ApprovalStatus, PurchaseStatus


@dataclass
class StatusChange:
    status: str
    timestamp: str
    updated_by: str
    notes: str = ""


@dataclass
class Purchase:
    id: str
    offer_id: str
    buyer_id: str
    seller_id: str
    quantity: int                # fixed at checkout
    unit_price_cents: int
    subtotal_cents: int
    platform_fee_cents: int
    total_cents: int
    payment_method: str = "bank_transfer"
    status: str = PurchaseStatus.PENDING.value
    payment_approval_status: str = ApprovalStatus.PENDING.value
    shipping_approval_status: str = ApprovalStatus.PENDING.value
    admin_notes: str = ""
    shipping_details: dict[str, Any] = field(default_factory=dict)
    delivery_reminder_active: bool = False
    status_history: list[StatusChange] = field(default_factory=list)
    # Set once the purchase's units were taken out of the offer
    inventory_reconciled: bool = False
    offer_title: str = ""
    offer_number: str = ""
    created_at: str | None = None
    updated_at: str | None = None

    def is_party(self, user_id: str) -> bool:
        return user_id in (self.buyer_id, self.seller_id)
