"""Pydantic schemas for cl_offer requests and responses."""

from typing import Literal

from pydantic import BaseModel, Field

from src.cl_common.cents import cents_to_display
from src.cl_offer.domain.models import Offer


class CreateOfferRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = ""
    category: str = ""
    location: str = ""
    unit: str = ""
    original_price_cents: int = Field(gt=0)
    current_price_cents: int = Field(gt=0)
    quantity: int = Field(ge=1)
    min_order_quantity: int = Field(1, ge=1)
    tags: list[str] = []
    images: list[str] = []


class UpdateOfferRequest(BaseModel):
    """Partial edit by the owning seller; omitted fields stay unchanged."""

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    category: str | None = None
    location: str | None = None
    unit: str | None = None
    original_price_cents: int | None = Field(None, gt=0)
    current_price_cents: int | None = Field(None, gt=0)
    quantity: int | None = Field(None, ge=0)
    min_order_quantity: int | None = Field(None, ge=1)
    tags: list[str] | None = None
    images: list[str] | None = None


class ChangeOfferStatusRequest(BaseModel):
    status: Literal["active", "pending", "rejected", "expired", "sold"]


class OfferResponse(BaseModel):
    id: str
    offer_number: str
    title: str
    description: str
    category: str
    location: str
    unit: str
    supplier_id: str
    supplier_company: str
    supplier_verified: bool
    quantity: int
    min_order_quantity: int
    original_price_cents: int
    current_price_cents: int
    current_price_display: str
    discount_bps: int
    tags: list[str]
    images: list[str]
    status: str
    deleted: bool
    deleted_at: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_domain(cls, offer: Offer) -> "OfferResponse":
        return cls(
            id=offer.id,
            offer_number=offer.offer_number,
            title=offer.title,
            description=offer.description,
            category=offer.category,
            location=offer.location,
            unit=offer.unit,
            supplier_id=offer.supplier_id,
            supplier_company=offer.supplier_company,
            supplier_verified=offer.supplier_verified,
            quantity=offer.quantity,
            min_order_quantity=offer.min_order_quantity,
            original_price_cents=offer.original_price_cents,
            current_price_cents=offer.current_price_cents,
            current_price_display=cents_to_display(offer.current_price_cents),
            discount_bps=offer.discount_bps,
            tags=offer.tags,
            images=offer.images,
            status=offer.status,
            deleted=offer.deleted,
            deleted_at=offer.deleted_at,
            created_at=offer.created_at,
            updated_at=offer.updated_at,
        )


class OfferListResponse(BaseModel):
    items: list[OfferResponse]
    total: int
