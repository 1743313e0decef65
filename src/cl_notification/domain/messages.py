"""Notification content for each purchase and watchlist event.

Builders only produce NotificationRequest objects; delivery is the
dispatcher's job.
"""

from src.cl_common.cents import cents_to_display
from src.cl_common.enums import NotificationPriority, NotificationType
from src.cl_notification.domain.models import NotificationRequest
from src.cl_purchase.domain.models import Purchase

_HIGH = NotificationPriority.HIGH.value
_MEDIUM = NotificationPriority.MEDIUM.value


def _purchase_data(purchase: Purchase, **extra: object) -> dict[str, object]:
    data: dict[str, object] = {
        "purchase_id": purchase.id,
        "offer_id": purchase.offer_id,
        "offer_number": purchase.offer_number,
        "status": purchase.status,
    }
    data.update(extra)
    return data


def checkout_placed(purchase: Purchase, buyer_company: str) -> list[NotificationRequest]:
    total = cents_to_display(purchase.total_cents)
    return [
        NotificationRequest(
            user_id=purchase.seller_id,
            type=NotificationType.PURCHASE.value,
            title="New order: buyer has paid",
            message=(
                f"{buyer_company} bought {purchase.quantity} of \"{purchase.offer_title}\" "
                f"for {total}. Payment is awaiting ClearLot approval."
            ),
            data=_purchase_data(purchase, quantity=purchase.quantity, total_cents=purchase.total_cents),
            priority=_HIGH,
        ),
        NotificationRequest(
            user_id=purchase.buyer_id,
            type=NotificationType.PURCHASE.value,
            title="Purchase placed",
            message=f"Your order for \"{purchase.offer_title}\" ({total}) was placed and is pending approval.",
            data=_purchase_data(purchase, total_cents=purchase.total_cents),
            priority=_MEDIUM,
        ),
    ]


def payment_approved(purchase: Purchase, buyer_company: str) -> list[NotificationRequest]:
    return [
        NotificationRequest(
            user_id=purchase.seller_id,
            type=NotificationType.PAYMENT_APPROVED.value,
            title="Payment approved",
            message=(
                f"{buyer_company}'s payment of {cents_to_display(purchase.total_cents)} was approved. "
                f"Please prepare \"{purchase.offer_title}\" for shipping."
            ),
            data=_purchase_data(purchase, total_cents=purchase.total_cents),
            priority=_HIGH,
        )
    ]


def shipped(purchase: Purchase, seller_company: str, photo_count: int) -> list[NotificationRequest]:
    return [
        NotificationRequest(
            user_id=purchase.buyer_id,
            type=NotificationType.ORDER_STATUS.value,
            title="Your order has shipped",
            message=(
                f"{seller_company} shipped your order \"{purchase.offer_title}\" "
                f"with {photo_count} shipping photo(s)."
            ),
            data=_purchase_data(purchase, photo_count=photo_count),
            priority=_HIGH,
        ),
        NotificationRequest(
            user_id=purchase.seller_id,
            type=NotificationType.OFFER_SALES_STATUS.value,
            title="Shipping recorded",
            message=(
                f"You uploaded {photo_count} shipping photo(s) for \"{purchase.offer_title}\". "
                "The buyer has been notified."
            ),
            data=_purchase_data(purchase, photo_count=photo_count),
            priority=_MEDIUM,
        ),
    ]


def delivered(purchase: Purchase, buyer_company: str) -> list[NotificationRequest]:
    total = cents_to_display(purchase.total_cents)
    return [
        NotificationRequest(
            user_id=purchase.buyer_id,
            type=NotificationType.ORDER_STATUS.value,
            title="Delivery confirmed",
            message=f"Your order \"{purchase.offer_title}\" was received. Thank you for buying on ClearLot.",
            data=_purchase_data(purchase),
            priority=_HIGH,
        ),
        NotificationRequest(
            user_id=purchase.seller_id,
            type=NotificationType.OFFER_SALES_STATUS.value,
            title="Goods received",
            message=f"{buyer_company} confirmed delivery of \"{purchase.offer_title}\".",
            data=_purchase_data(purchase),
            priority=_HIGH,
        ),
        NotificationRequest(
            user_id=purchase.seller_id,
            type=NotificationType.PAYMENT.value,
            title="Sale completed, payout pending",
            message=f"The sale of \"{purchase.offer_title}\" is complete. ClearLot will send {total} shortly.",
            data=_purchase_data(purchase, total_cents=purchase.total_cents),
            priority=_HIGH,
        ),
    ]


def payout_sent(purchase: Purchase) -> list[NotificationRequest]:
    return [
        NotificationRequest(
            user_id=purchase.seller_id,
            type=NotificationType.PAYMENT.value,
            title="Payment sent",
            message=(
                f"ClearLot sent {cents_to_display(purchase.total_cents)} "
                f"for \"{purchase.offer_title}\"."
            ),
            data=_purchase_data(purchase, total_cents=purchase.total_cents),
            priority=_HIGH,
        )
    ]


def closed(purchase: Purchase, reason: str) -> list[NotificationRequest]:
    """Rejected or cancelled: both parties hear about it."""
    verb = purchase.status
    suffix = f" Reason: {reason}" if reason else ""
    return [
        NotificationRequest(
            user_id=user_id,
            type=NotificationType.ORDER_STATUS.value,
            title=f"Order {verb}",
            message=f"The order for \"{purchase.offer_title}\" was {verb}.{suffix}",
            data=_purchase_data(purchase, reason=reason),
            priority=_HIGH,
        )
        for user_id in (purchase.buyer_id, purchase.seller_id)
    ]


def watchlist_added(user_id: str, offer_id: str, offer_title: str) -> NotificationRequest:
    return NotificationRequest(
        user_id=user_id,
        type=NotificationType.WATCHLIST.value,
        title="Added to watchlist",
        message=f"\"{offer_title}\" was added to your watchlist.",
        data={"offer_id": offer_id},
        priority=NotificationPriority.LOW.value,
    )
