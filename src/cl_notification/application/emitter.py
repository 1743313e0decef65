"""Notification Emitter — persist, then announce.

The document is written first so the local event always carries the id of a
notification that already exists; listeners may fetch it straight away.
"""

import logging
from dataclasses import asdict

from src.cl_common.datetime_utils import utc_now_iso
from src.cl_common.events import LocalEventBus
from src.cl_notification.domain.models import Notification, NotificationRequest
from src.cl_notification.infrastructure.persistence import NotificationRepository

logger = logging.getLogger(__name__)

NOTIFICATION_EVENT = "notification.created"


class NotificationEmitter:
    def __init__(self, repo: NotificationRepository, events: LocalEventBus) -> None:
        self._repo = repo
        self._events = events

    async def deliver(self, request: NotificationRequest) -> str:
        """Persist and publish one notification; raises on storage failure."""
        notification = await self._repo.add(
            Notification(
                id="",
                user_id=request.user_id,
                type=request.type,
                title=request.title,
                message=request.message,
                priority=request.priority,
                data=dict(request.data),
                created_at=utc_now_iso(),
            )
        )
        await self._events.publish({"event": NOTIFICATION_EVENT, "notification": asdict(notification)})
        logger.debug("Notification %s (%s) sent to %s", notification.id, notification.type, notification.user_id)
        return notification.id

    async def emit(self, request: NotificationRequest) -> str | None:
        """Best-effort deliver(): failures are logged and reported as None."""
        try:
            return await self.deliver(request)
        except Exception:
            logger.warning(
                "Failed to emit %s notification to %s", request.type, request.user_id, exc_info=True
            )
            return None
