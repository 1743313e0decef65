"""OfferService — offer creation, browsing, seller edits and admin moderation.

Any change that leaves an offer unpurchasable (sold out, deleted, expired,
moderated away) is followed by a watchlist eviction.
"""

import logging

from src.cl_common.datetime_utils import utc_now_iso
from src.cl_common.enums import OfferStatus
from src.cl_common.errors import InvalidOfferError, OfferForbiddenError, OfferNotFoundError
from src.cl_offer.application.schemas import (
    ChangeOfferStatusRequest,
    CreateOfferRequest,
    OfferListResponse,
    OfferResponse,
    UpdateOfferRequest,
)
from src.cl_offer.domain.models import Offer, is_unpurchasable_state
from src.cl_offer.domain.repository import OfferRepositoryProtocol
from src.cl_offer.domain.search import OfferQuery, matches, sort_offers
from src.cl_user.domain.models import UserProfile
from src.cl_watchlist.domain.projector import WatchlistProjector

logger = logging.getLogger(__name__)


def _validate_prices(original_cents: int, current_cents: int) -> None:
    if original_cents <= 0 or current_cents <= 0:
        raise InvalidOfferError("prices must be positive")
    if current_cents > original_cents:
        raise InvalidOfferError("current price cannot exceed the original price")


def _to_list(offers: list[Offer]) -> OfferListResponse:
    return OfferListResponse(items=[OfferResponse.from_domain(o) for o in offers], total=len(offers))


class OfferService:
    def __init__(self, repo: OfferRepositoryProtocol, projector: WatchlistProjector) -> None:
        self._repo = repo
        self._projector = projector

    async def _get(self, offer_id: str) -> Offer:
        offer = await self._repo.get_by_id(offer_id)
        if offer is None:
            raise OfferNotFoundError(offer_id)
        return offer

    async def create_offer(self, req: CreateOfferRequest, seller: UserProfile) -> OfferResponse:
        _validate_prices(req.original_price_cents, req.current_price_cents)
        if req.quantity < 1:
            raise InvalidOfferError("quantity must be at least 1")
        if req.min_order_quantity < 1 or req.min_order_quantity > req.quantity:
            raise InvalidOfferError("minimum order must be between 1 and the available quantity")

        now = utc_now_iso()
        offer = Offer(
            id="",
            offer_number=await self._repo.next_offer_number(),
            title=req.title.strip(),
            supplier_id=seller.id,
            quantity=req.quantity,
            current_price_cents=req.current_price_cents,
            original_price_cents=req.original_price_cents,
            description=req.description,
            category=req.category,
            location=req.location,
            unit=req.unit,
            min_order_quantity=req.min_order_quantity,
            tags=list(dict.fromkeys(req.tags)),
            images=req.images,
            supplier_company=seller.display_company,
            supplier_verified=seller.is_verified,
            created_at=now,
            updated_at=now,
        )
        offer = await self._repo.create(offer)
        logger.info("Offer %s (%s) created by %s", offer.offer_number, offer.id, seller.id)
        return OfferResponse.from_domain(offer)

    async def browse(self, query: OfferQuery) -> OfferListResponse:
        listed = await self._repo.list_listed(query.category, query.location, query.verified_only)
        hits = [o for o in listed if o.is_purchasable and matches(o, query)]
        return _to_list(sort_offers(hits, query.sort))

    async def get_offer(self, offer_id: str, viewer: UserProfile) -> OfferResponse:
        offer = await self._get(offer_id)
        # Deleted offers stay visible to their seller and to admins only
        if offer.deleted and offer.supplier_id != viewer.id and not viewer.is_admin:
            raise OfferNotFoundError(offer_id)
        return OfferResponse.from_domain(offer)

    async def list_my_offers(self, seller: UserProfile) -> OfferListResponse:
        offers = await self._repo.list_by_supplier(seller.id, include_hidden=True)
        return _to_list([o for o in offers if not o.deleted])

    async def list_supplier_offers(self, supplier_id: str) -> OfferListResponse:
        offers = await self._repo.list_by_supplier(supplier_id, include_hidden=False)
        return _to_list([o for o in offers if o.is_purchasable])

    async def update_offer(
        self, offer_id: str, req: UpdateOfferRequest, seller: UserProfile
    ) -> OfferResponse:
        offer = await self._get(offer_id)
        if offer.supplier_id != seller.id:
            raise OfferForbiddenError(offer_id)
        if offer.deleted:
            raise InvalidOfferError("a deleted offer cannot be edited")

        changes = req.model_dump(exclude_unset=True, exclude_none=True)
        _validate_prices(
            changes.get("original_price_cents", offer.original_price_cents),
            changes.get("current_price_cents", offer.current_price_cents),
        )
        if "tags" in changes:
            changes["tags"] = list(dict.fromkeys(changes["tags"]))
        quantity = changes.get("quantity", offer.quantity)
        if quantity <= 0:
            changes["status"] = OfferStatus.SOLD.value
        elif "quantity" in changes and offer.status == OfferStatus.SOLD.value:
            changes["status"] = OfferStatus.ACTIVE.value
        changes["updated_at"] = utc_now_iso()

        await self._repo.update_fields(offer_id, changes)
        for key, value in changes.items():
            setattr(offer, key, value)
        logger.info("Offer %s edited by seller: %s", offer_id, sorted(changes))

        if is_unpurchasable_state(offer.quantity, offer.status, offer.deleted):
            await self._projector.evict(offer_id)
        return OfferResponse.from_domain(offer)

    async def delete_offer(self, offer_id: str, seller: UserProfile) -> OfferResponse:
        """Soft delete: hidden from every listing, never removed from storage."""
        offer = await self._get(offer_id)
        if offer.supplier_id != seller.id:
            raise OfferForbiddenError(offer_id)
        if offer.deleted:
            return OfferResponse.from_domain(offer)

        now = utc_now_iso()
        fields = {
            "deleted": True,
            "status": OfferStatus.EXPIRED.value,
            "deleted_at": now,
            "updated_at": now,
        }
        await self._repo.update_fields(offer_id, fields)
        offer.deleted, offer.status, offer.deleted_at, offer.updated_at = True, fields["status"], now, now
        logger.info("Offer %s soft-deleted by %s", offer_id, seller.id)
        await self._projector.evict(offer_id)
        return OfferResponse.from_domain(offer)

    async def change_status(self, offer_id: str, req: ChangeOfferStatusRequest) -> OfferResponse:
        offer = await self._get(offer_id)
        if req.status == OfferStatus.ACTIVE.value and offer.quantity <= 0:
            raise InvalidOfferError("an offer without stock cannot be activated")

        now = utc_now_iso()
        await self._repo.update_fields(offer_id, {"status": req.status, "updated_at": now})
        logger.info("Offer %s status %s -> %s by admin", offer_id, offer.status, req.status)
        offer.status, offer.updated_at = req.status, now

        if req.status != OfferStatus.ACTIVE.value or offer.deleted:
            await self._projector.evict(offer_id)
        return OfferResponse.from_domain(offer)

    async def list_all(self) -> OfferListResponse:
        return _to_list(await self._repo.list_all())
