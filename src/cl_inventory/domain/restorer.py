"""Rejection Restorer — gives a rejected or cancelled purchase's units back.

Restoration re-lists the offer: quantity grows by the purchase quantity,
status returns to active and the deleted flag is cleared. Users who lost the
offer from their watchlist when it sold out are not re-subscribed.

Unlike notifications this path is never best-effort: a purchase marked
rejected while its units stay missing is a business error, so every failure
propagates to the caller.
"""

import logging

from src.cl_common.datetime_utils import utc_now_iso
from src.cl_common.enums import OfferStatus
from src.cl_common.errors import ConcurrentUpdateError, OfferNotFoundError, PurchaseNotFoundError
from src.cl_offer.domain.models import Offer
from src.cl_offer.domain.repository import OfferRepositoryProtocol
from src.cl_purchase.domain.repository import PurchaseRepositoryProtocol
from src.cl_watchlist.domain.projector import WatchlistProjector

logger = logging.getLogger(__name__)


class RejectionRestorer:
    def __init__(
        self,
        offers: OfferRepositoryProtocol,
        purchases: PurchaseRepositoryProtocol,
        projector: WatchlistProjector,
        max_retries: int = 5,
    ) -> None:
        self._offers = offers
        self._purchases = purchases
        self._projector = projector
        self._max_retries = max_retries

    async def restore(self, purchase_id: str) -> Offer | None:
        """Return the purchase's units to its offer.

        Returns the restored offer, or None when the purchase never took
        inventory (or was already restored) and there is nothing to give back.
        """
        purchase = await self._purchases.get_by_id(purchase_id)
        if purchase is None:
            raise PurchaseNotFoundError(purchase_id)
        if await self._offers.get_by_id(purchase.offer_id) is None:
            raise OfferNotFoundError(purchase.offer_id)

        released = await self._purchases.update_if(
            purchase_id,
            {"inventory_reconciled": False},
            {"inventory_reconciled": True},
        )
        if not released:
            logger.info("Purchase %s holds no inventory, nothing to restore", purchase_id)
            return None

        try:
            offer = await self._return_units(purchase.offer_id, purchase.quantity)
        except Exception:
            await self._purchases.update_fields(purchase_id, {"inventory_reconciled": True})
            raise

        await self._projector.project(offer.id, offer.quantity)
        return offer

    async def _return_units(self, offer_id: str, quantity: int) -> Offer:
        for _ in range(self._max_retries):
            offer = await self._offers.get_by_id(offer_id)
            if offer is None:
                raise OfferNotFoundError(offer_id)

            restored = offer.quantity + quantity
            if offer.deleted:
                logger.warning(
                    "Restoring offer %s that was deleted by its seller; it will be re-listed",
                    offer_id,
                )
            fields = {
                "quantity": restored,
                "status": OfferStatus.ACTIVE.value,
                "deleted": False,
                "updated_at": utc_now_iso(),
            }
            if await self._offers.update_if(offer_id, fields, {"quantity": offer.quantity}):
                logger.info(
                    "Offer %s restored: %d + %d = %d, status=active",
                    offer_id, offer.quantity, quantity, restored,
                )
                offer.quantity = restored
                offer.status = OfferStatus.ACTIVE.value
                offer.deleted = False
                return offer

        raise ConcurrentUpdateError("offers", offer_id)
