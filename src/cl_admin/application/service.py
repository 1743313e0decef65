"""Admin application service: dashboard stats and notification dead letters."""
from typing import Any

from src.cl_common.enums import PurchaseStatus
from src.cl_notification.application.dispatcher import NotificationDispatcher
from src.cl_purchase.domain.repository import PurchaseRepositoryProtocol


class AdminService:
    def __init__(
        self, purchases: PurchaseRepositoryProtocol, dispatcher: NotificationDispatcher
    ) -> None:
        self._purchases = purchases
        self._dispatcher = dispatcher

    async def stats(self) -> dict[str, Any]:
        purchases = await self._purchases.list_all(None)
        by_status = {s.value: 0 for s in PurchaseStatus}
        for p in purchases:
            by_status[p.status] = by_status.get(p.status, 0) + 1
        completed = [p for p in purchases if p.status == PurchaseStatus.COMPLETED.value]
        return {
            "total_purchases": len(purchases),
            "purchases_by_status": by_status,
            "completed_volume_cents": sum(p.subtotal_cents for p in completed),
            "platform_fee_total_cents": sum(p.platform_fee_cents for p in completed),
            "pending_notifications": self._dispatcher.pending,
            "dead_letter_count": len(self._dispatcher.dead_letters()),
        }

    def dead_letters(self) -> list[dict[str, Any]]:
        return [d.to_dict() for d in self._dispatcher.dead_letters()]
