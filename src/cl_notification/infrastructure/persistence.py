"""NotificationRepository — append-only notification documents.

Only `is_read` is ever mutated after creation.
"""

from dataclasses import asdict

from src.cl_common.document_store import Document, DocumentStore, FieldWrite, Filter
from src.cl_common.enums import Collection
from src.cl_notification.domain.models import Notification

_NOTIFICATIONS = Collection.NOTIFICATIONS.value


def _doc_to_notification(doc: Document) -> Notification:
    f = doc.fields
    return Notification(
        id=doc.id,
        user_id=f.get("user_id", ""),
        type=f.get("type", ""),
        title=f.get("title", ""),
        message=f.get("message", ""),
        is_read=bool(f.get("is_read", False)),
        priority=f.get("priority", "medium"),
        data=dict(f.get("data") or {}),
        created_at=f.get("created_at"),
    )


class NotificationRepository:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def add(self, notification: Notification) -> Notification:
        fields = asdict(notification)
        fields.pop("id")
        notification.id = await self._store.add_document(_NOTIFICATIONS, fields)
        return notification

    async def get_by_id(self, notification_id: str) -> Notification | None:
        doc = await self._store.get_document(_NOTIFICATIONS, notification_id)
        return _doc_to_notification(doc) if doc else None

    async def list_for_user(self, user_id: str, limit: int) -> list[Notification]:
        docs = await self._store.query_documents(
            _NOTIFICATIONS,
            [Filter("user_id", "==", user_id)],
            order_by="created_at",
            descending=True,
            limit=limit,
        )
        return [_doc_to_notification(d) for d in docs]

    async def list_unread(self, user_id: str) -> list[Notification]:
        docs = await self._store.query_documents(
            _NOTIFICATIONS,
            [Filter("user_id", "==", user_id), Filter("is_read", "==", False)],
        )
        return [_doc_to_notification(d) for d in docs]

    async def mark_read(self, notification_id: str) -> None:
        await self._store.set_fields(_NOTIFICATIONS, notification_id, {"is_read": True})

    async def mark_all_read(self, user_id: str) -> int:
        unread = await self.list_unread(user_id)
        await self._store.batch_set_fields(
            [FieldWrite(_NOTIFICATIONS, n.id, {"is_read": True}) for n in unread]
        )
        return len(unread)
