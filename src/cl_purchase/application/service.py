"""PurchaseService — checkout and every purchase status transition.

Order of effects for each transition:
  1. the transition is checked against the state machine
  2. the inventory side effect runs (reconcile or restore), if any
  3. the new status is written with a compare-and-swap on the old status
  4. notifications are handed to the dispatcher

An inventory failure in step 2 leaves the status untouched. A lost status
race in step 3 undoes step 2 before reporting the conflict.
"""

import logging
from dataclasses import asdict
from typing import Any

from src.cl_common.cents import calculate_fee
from src.cl_common.datetime_utils import utc_now_iso
from src.cl_common.enums import ApprovalStatus, PurchaseStatus
from src.cl_common.errors import (
    InsufficientInventoryError,
    InvalidPurchaseError,
    InvalidPurchaseTransitionError,
    OfferNotFoundError,
    OfferNotPurchasableError,
    PurchaseForbiddenError,
    PurchaseNotFoundError,
)
from src.cl_inventory.domain.reconciler import InventoryReconciler
from src.cl_inventory.domain.restorer import RejectionRestorer
from src.cl_notification.application.dispatcher import NotificationDispatcher
from src.cl_notification.domain import messages
from src.cl_offer.domain.repository import OfferRepositoryProtocol
from src.cl_purchase.application.schemas import (
    ApproveRequest,
    CheckoutRequest,
    CloseRequest,
    PurchaseListResponse,
    PurchaseResponse,
    ShipRequest,
)
from src.cl_purchase.domain.models import Purchase, StatusChange
from src.cl_purchase.domain.repository import PurchaseRepositoryProtocol
from src.cl_purchase.domain.state_machine import ensure_transition
from src.cl_user.domain.models import UserProfile
from src.cl_user.infrastructure.persistence import UserRepository

logger = logging.getLogger(__name__)

_S = PurchaseStatus


def _to_list(purchases: list[Purchase]) -> PurchaseListResponse:
    return PurchaseListResponse(
        items=[PurchaseResponse.from_domain(p) for p in purchases], total=len(purchases)
    )


class PurchaseService:
    def __init__(
        self,
        purchases: PurchaseRepositoryProtocol,
        offers: OfferRepositoryProtocol,
        users: UserRepository,
        reconciler: InventoryReconciler,
        restorer: RejectionRestorer,
        dispatcher: NotificationDispatcher,
        fee_rate_bps: int = 300,
    ) -> None:
        self._purchases = purchases
        self._offers = offers
        self._users = users
        self._reconciler = reconciler
        self._restorer = restorer
        self._dispatcher = dispatcher
        self._fee_rate_bps = fee_rate_bps

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get(self, purchase_id: str) -> Purchase:
        purchase = await self._purchases.get_by_id(purchase_id)
        if purchase is None:
            raise PurchaseNotFoundError(purchase_id)
        return purchase

    async def _company(self, user_id: str) -> str:
        user = await self._users.get_by_id(user_id)
        return user.display_company if user else user_id

    async def _write_status(
        self,
        purchase: Purchase,
        target: _S,
        actor_id: str,
        notes: str = "",
        extra: dict[str, Any] | None = None,
    ) -> bool:
        """Compare-and-swap the status; False when another transition got there first."""
        now = utc_now_iso()
        history = [*purchase.status_history, StatusChange(target.value, now, actor_id, notes)]
        fields: dict[str, Any] = {
            "status": target.value,
            "status_history": [asdict(h) for h in history],
            "updated_at": now,
            **(extra or {}),
        }
        if not await self._purchases.update_if(purchase.id, fields, {"status": purchase.status}):
            return False
        previous = purchase.status
        purchase.status = target.value
        purchase.status_history = history
        purchase.updated_at = now
        for key, value in (extra or {}).items():
            setattr(purchase, key, value)
        logger.info("Purchase %s %s -> %s by %s", purchase.id, previous, target.value, actor_id)
        return True

    async def _conflict(self, purchase_id: str, target: _S) -> InvalidPurchaseTransitionError:
        fresh = await self._get(purchase_id)
        return InvalidPurchaseTransitionError(purchase_id, fresh.status, target.value)

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    async def checkout(self, req: CheckoutRequest, buyer: UserProfile) -> PurchaseResponse:
        offer = await self._offers.get_by_id(req.offer_id)
        if offer is None:
            raise OfferNotFoundError(req.offer_id)
        if not offer.is_purchasable:
            raise OfferNotPurchasableError(offer.id)
        if offer.supplier_id == buyer.id:
            raise InvalidPurchaseError("sellers cannot buy their own offer")
        if req.quantity < offer.min_order_quantity:
            raise InvalidPurchaseError(
                f"minimum order quantity is {offer.min_order_quantity}, got {req.quantity}"
            )
        if req.quantity > offer.quantity:
            raise InsufficientInventoryError(offer.id, req.quantity, offer.quantity)

        subtotal = offer.current_price_cents * req.quantity
        fee = calculate_fee(subtotal, self._fee_rate_bps)
        now = utc_now_iso()
        purchase = await self._purchases.create(
            Purchase(
                id="",
                offer_id=offer.id,
                buyer_id=buyer.id,
                seller_id=offer.supplier_id,
                quantity=req.quantity,
                unit_price_cents=offer.current_price_cents,
                subtotal_cents=subtotal,
                platform_fee_cents=fee,
                total_cents=subtotal + fee,
                payment_method=req.payment_method,
                status_history=[StatusChange(_S.PENDING.value, now, buyer.id, "checkout")],
                offer_title=offer.title,
                offer_number=offer.offer_number,
                created_at=now,
                updated_at=now,
            )
        )

        try:
            await self._reconciler.reconcile_purchase(purchase.id)
        except Exception as exc:
            # The purchase record stays for audit, closed without any stock taken
            await self._write_status(
                purchase, _S.CANCELLED, buyer.id, notes=f"checkout failed: {exc}"
            )
            raise
        purchase.inventory_reconciled = True

        logger.info(
            "Checkout %s: buyer=%s offer=%s qty=%d total=%d",
            purchase.id, buyer.id, offer.id, purchase.quantity, purchase.total_cents,
        )
        self._dispatcher.submit_all(messages.checkout_placed(purchase, buyer.display_company))
        return PurchaseResponse.from_domain(purchase)

    # ------------------------------------------------------------------
    # Forward transitions
    # ------------------------------------------------------------------

    async def approve(self, purchase_id: str, req: ApproveRequest, admin: UserProfile) -> PurchaseResponse:
        purchase = await self._get(purchase_id)
        ensure_transition(purchase_id, purchase.status, _S.APPROVED.value)
        extra = {"payment_approval_status": ApprovalStatus.APPROVED.value, "admin_notes": req.notes}
        if not await self._write_status(purchase, _S.APPROVED, admin.id, req.notes, extra):
            raise await self._conflict(purchase_id, _S.APPROVED)
        self._dispatcher.submit_all(
            messages.payment_approved(purchase, await self._company(purchase.buyer_id))
        )
        return PurchaseResponse.from_domain(purchase)

    async def ship(self, purchase_id: str, req: ShipRequest, seller: UserProfile) -> PurchaseResponse:
        purchase = await self._get(purchase_id)
        if purchase.seller_id != seller.id:
            raise PurchaseForbiddenError(purchase_id)
        ensure_transition(purchase_id, purchase.status, _S.SHIPPED.value)
        details = {
            **purchase.shipping_details,
            "photos": req.photos,
            "remarks": req.remarks,
            "shipped_at": utc_now_iso(),
        }
        extra = {"shipping_details": details, "delivery_reminder_active": True}
        if not await self._write_status(purchase, _S.SHIPPED, seller.id, req.remarks, extra):
            raise await self._conflict(purchase_id, _S.SHIPPED)
        self._dispatcher.submit_all(
            messages.shipped(purchase, seller.display_company, len(req.photos))
        )
        return PurchaseResponse.from_domain(purchase)

    async def confirm_delivery(self, purchase_id: str, buyer: UserProfile) -> PurchaseResponse:
        purchase = await self._get(purchase_id)
        if purchase.buyer_id != buyer.id:
            raise PurchaseForbiddenError(purchase_id)
        ensure_transition(purchase_id, purchase.status, _S.DELIVERED.value)
        details = {
            **purchase.shipping_details,
            "delivered_at": utc_now_iso(),
            "delivery_confirmed_by": buyer.id,
        }
        extra = {"shipping_details": details, "delivery_reminder_active": False}
        if not await self._write_status(purchase, _S.DELIVERED, buyer.id, extra=extra):
            raise await self._conflict(purchase_id, _S.DELIVERED)
        self._dispatcher.submit_all(messages.delivered(purchase, buyer.display_company))
        return PurchaseResponse.from_domain(purchase)

    async def complete(self, purchase_id: str, admin: UserProfile) -> PurchaseResponse:
        purchase = await self._get(purchase_id)
        ensure_transition(purchase_id, purchase.status, _S.COMPLETED.value)
        # Stock was taken at checkout; this only catches purchases that never were
        taken = await self._reconciler.reconcile_purchase(purchase_id)
        purchase.inventory_reconciled = True
        if not await self._write_status(purchase, _S.COMPLETED, admin.id):
            if taken is not None:
                await self._give_back(purchase_id)
            raise await self._conflict(purchase_id, _S.COMPLETED)
        self._dispatcher.submit_all(messages.payout_sent(purchase))
        return PurchaseResponse.from_domain(purchase)

    # ------------------------------------------------------------------
    # Side branch: reject / cancel
    # ------------------------------------------------------------------

    async def reject(self, purchase_id: str, req: CloseRequest, admin: UserProfile) -> PurchaseResponse:
        purchase = await self._get(purchase_id)
        extra = {
            "payment_approval_status": ApprovalStatus.REJECTED.value,
            "admin_notes": req.reason,
        }
        return await self._close(purchase, _S.REJECTED, admin.id, req.reason, extra)

    async def cancel(self, purchase_id: str, req: CloseRequest, actor: UserProfile) -> PurchaseResponse:
        purchase = await self._get(purchase_id)
        if purchase.buyer_id != actor.id and not actor.is_admin:
            raise PurchaseForbiddenError(purchase_id)
        return await self._close(purchase, _S.CANCELLED, actor.id, req.reason, {})

    async def _close(
        self,
        purchase: Purchase,
        target: _S,
        actor_id: str,
        reason: str,
        extra: dict[str, Any],
    ) -> PurchaseResponse:
        ensure_transition(purchase.id, purchase.status, target.value)
        restored = await self._restorer.restore(purchase.id)
        purchase.inventory_reconciled = False
        if not await self._write_status(purchase, target, actor_id, reason, extra):
            if restored is not None:
                await self._retake(purchase.id)
            raise await self._conflict(purchase.id, target)
        self._dispatcher.submit_all(messages.closed(purchase, reason))
        return PurchaseResponse.from_domain(purchase)

    async def _give_back(self, purchase_id: str) -> None:
        """Undo a completion-time decrement whose status write lost a race."""
        try:
            await self._restorer.restore(purchase_id)
        except Exception:
            logger.error(
                "Purchase %s: stock was taken on completion but the status write lost a race, "
                "and the stock could not be given back",
                purchase_id, exc_info=True,
            )
            raise

    async def _retake(self, purchase_id: str) -> None:
        """Undo a restoration whose status write lost a race."""
        try:
            await self._reconciler.reconcile_purchase(purchase_id)
        except Exception:
            logger.error(
                "Purchase %s: stock was restored but the status write lost a race, "
                "and the stock could not be taken back",
                purchase_id, exc_info=True,
            )
            raise

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_purchase(self, purchase_id: str, viewer: UserProfile) -> PurchaseResponse:
        purchase = await self._get(purchase_id)
        if not purchase.is_party(viewer.id) and not viewer.is_admin:
            raise PurchaseForbiddenError(purchase_id)
        return PurchaseResponse.from_domain(purchase)

    async def list_as_buyer(self, buyer: UserProfile) -> PurchaseListResponse:
        return _to_list(await self._purchases.list_by_buyer(buyer.id))

    async def list_as_seller(self, seller: UserProfile) -> PurchaseListResponse:
        return _to_list(await self._purchases.list_by_seller(seller.id))

    async def list_all(self, status: str | None) -> PurchaseListResponse:
        return _to_list(await self._purchases.list_all(status))
