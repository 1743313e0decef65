"""Notification domain models."""
from dataclasses import dataclass, field
from typing import Any

from src.cl_common.enums import NotificationPriority


@dataclass
class Notification:
    id: str
    user_id: str
    type: str
    title: str
    message: str
    is_read: bool = False
    priority: str = NotificationPriority.MEDIUM.value
    data: dict[str, Any] = field(default_factory=dict)
    created_at: str | None = None


@dataclass
class NotificationRequest:
    """A notification that has not been persisted yet."""

    user_id: str
    type: str
    title: str
    message: str
    data: dict[str, Any] = field(default_factory=dict)
    priority: str = NotificationPriority.MEDIUM.value
    attempts: int = 0
