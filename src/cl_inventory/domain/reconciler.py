"""Inventory Reconciler — takes purchased units out of an offer.

The read-check-write on offer.quantity is an optimistic compare-and-swap:
the write only lands if quantity still equals the value the check was made
against, otherwise the offer is re-read and re-checked. Two concurrent
purchases can therefore never both spend the same units.

reconcile() is not idempotent on its own. reconcile_purchase() is: it claims
the purchase's `inventory_reconciled` flag with a compare-and-swap before
touching inventory, and releases the claim if the decrement fails.
"""

import logging

from src.cl_common.datetime_utils import utc_now_iso
from src.cl_common.enums import OfferStatus
from src.cl_common.errors import (
    ConcurrentUpdateError,
    InsufficientInventoryError,
    InvalidPurchaseError,
    OfferNotFoundError,
    PurchaseNotFoundError,
)
from src.cl_offer.domain.models import Offer
from src.cl_offer.domain.repository import OfferRepositoryProtocol
from src.cl_purchase.domain.repository import PurchaseRepositoryProtocol
from src.cl_watchlist.domain.projector import WatchlistProjector

logger = logging.getLogger(__name__)


class InventoryReconciler:
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

    async def reconcile(self, offer_id: str, purchased_quantity: int) -> Offer:
        """Decrement offer stock by purchased_quantity; marks the offer sold at zero.

        Raises:
            InvalidPurchaseError: purchased_quantity is not positive.
            OfferNotFoundError: the offer does not exist.
            InsufficientInventoryError: fewer units remain than requested.
            ConcurrentUpdateError: the offer kept changing under us.
        """
        if purchased_quantity <= 0:
            raise InvalidPurchaseError(
                f"purchased quantity must be positive, got {purchased_quantity}"
            )

        for attempt in range(1, self._max_retries + 1):
            offer = await self._offers.get_by_id(offer_id)
            if offer is None:
                raise OfferNotFoundError(offer_id)
            if offer.quantity < purchased_quantity:
                raise InsufficientInventoryError(offer_id, purchased_quantity, offer.quantity)

            remaining = offer.quantity - purchased_quantity
            fields: dict[str, object] = {"updated_at": utc_now_iso()}
            if remaining <= 0:
                remaining = 0
                fields.update(quantity=0, status=OfferStatus.SOLD.value)
            else:
                fields["quantity"] = remaining

            if await self._offers.update_if(offer_id, fields, {"quantity": offer.quantity}):
                logger.info(
                    "Offer %s reconciled: %d - %d = %d%s",
                    offer_id, offer.quantity, purchased_quantity, remaining,
                    " (sold)" if remaining == 0 else "",
                )
                offer.quantity = remaining
                if remaining == 0:
                    offer.status = OfferStatus.SOLD.value
                await self._projector.project(offer_id, remaining)
                return offer

            logger.debug(
                "Offer %s quantity changed during reconcile, retry %d/%d",
                offer_id, attempt, self._max_retries,
            )

        raise ConcurrentUpdateError("offers", offer_id)

    async def reconcile_purchase(self, purchase_id: str) -> Offer | None:
        """Reconcile a purchase exactly once; returns None when it already was."""
        purchase = await self._purchases.get_by_id(purchase_id)
        if purchase is None:
            raise PurchaseNotFoundError(purchase_id)

        if not await self._claim(purchase_id):
            logger.info("Purchase %s already reconciled, skipping", purchase_id)
            return None

        try:
            return await self.reconcile(purchase.offer_id, purchase.quantity)
        except Exception:
            await self._purchases.update_fields(purchase_id, {"inventory_reconciled": False})
            raise

    async def _claim(self, purchase_id: str) -> bool:
        # None matches documents written before the flag existed
        for unset in (False, None):
            if await self._purchases.update_if(
                purchase_id, {"inventory_reconciled": True}, {"inventory_reconciled": unset}
            ):
                return True
        return False
