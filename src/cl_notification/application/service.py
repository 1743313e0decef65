"""Notification read side: inbox listing and read flags."""

from dataclasses import asdict

from src.cl_common.errors import NotificationNotFoundError
from src.cl_notification.application.schemas import (
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from src.cl_notification.infrastructure.persistence import NotificationRepository


class NotificationService:
    def __init__(self, repo: NotificationRepository) -> None:
        self._repo = repo

    async def list_mine(self, user_id: str, limit: int) -> NotificationListResponse:
        items = await self._repo.list_for_user(user_id, limit)
        unread = await self._repo.list_unread(user_id)
        return NotificationListResponse(
            items=[NotificationResponse(**asdict(n)) for n in items],
            unread_count=len(unread),
        )

    async def unread_count(self, user_id: str) -> UnreadCountResponse:
        return UnreadCountResponse(unread_count=len(await self._repo.list_unread(user_id)))

    async def mark_read(self, notification_id: str, user_id: str) -> NotificationResponse:
        notification = await self._repo.get_by_id(notification_id)
        # Someone else's notification is reported as missing, not forbidden
        if notification is None or notification.user_id != user_id:
            raise NotificationNotFoundError(notification_id)
        if not notification.is_read:
            await self._repo.mark_read(notification_id)
            notification.is_read = True
        return NotificationResponse(**asdict(notification))

    async def mark_all_read(self, user_id: str) -> MarkAllReadResponse:
        return MarkAllReadResponse(marked=await self._repo.mark_all_read(user_id))
