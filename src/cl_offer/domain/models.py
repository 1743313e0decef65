"""Offer domain model — pure dataclass, no storage dependency."""
from dataclasses import dataclass, field

from src.cl_common.enums import OfferStatus


@dataclass
class Offer:
    id: str                      # storage document id, immutable
    offer_number: str            # human-facing "oid000123"
    title: str
    supplier_id: str
    quantity: int
    current_price_cents: int
    original_price_cents: int
    description: str = ""
    category: str = ""
    location: str = ""
    unit: str = ""
    min_order_quantity: int = 1
    tags: list[str] = field(default_factory=list)
    images: list[str] = field(default_factory=list)
    supplier_company: str = ""
    supplier_verified: bool = False
    status: str = OfferStatus.ACTIVE.value
    deleted: bool = False
    deleted_at: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def is_purchasable(self) -> bool:
        """The only state in which an offer is listed and can be bought."""
        return (
            self.status == OfferStatus.ACTIVE.value
            and not self.deleted
            and self.quantity > 0
        )

    @property
    def discount_bps(self) -> int:
        if self.original_price_cents <= 0:
            return 0
        saved = self.original_price_cents - self.current_price_cents
        return saved * 10000 // self.original_price_cents


def is_unpurchasable_state(quantity: int, status: str, deleted: bool) -> bool:
    """True when watchers must be evicted from an offer in this state."""
    return (
        quantity <= 0
        or status in (OfferStatus.SOLD.value, OfferStatus.EXPIRED.value)
        or deleted
    )
