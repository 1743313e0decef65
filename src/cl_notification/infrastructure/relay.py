"""RedisNotificationRelay — fans local notification events out over Redis Pub/Sub.

Other processes (websocket gateways, mobile push workers) subscribe to
`notifications:{user_id}`. Publishing is best-effort: Redis errors are logged
and never reach the local event bus.
"""

import json
import logging
from collections.abc import Callable
from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from src.cl_common.events import LocalEventBus
from src.cl_notification.application.emitter import NOTIFICATION_EVENT

logger = logging.getLogger(__name__)


def notification_channel(user_id: str) -> str:
    return f"notifications:{user_id}"


class RedisNotificationRelay:
    def __init__(self, redis: aioredis.Redis) -> None:
        self._redis = redis
        self._unsubscribe: Callable[[], None] | None = None

    def attach(self, events: LocalEventBus) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = events.subscribe(self.forward)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def forward(self, payload: dict[str, Any]) -> None:
        if payload.get("event") != NOTIFICATION_EVENT:
            return
        notification = payload["notification"]
        channel = notification_channel(notification["user_id"])
        try:
            receivers = await self._redis.publish(channel, json.dumps(notification, default=str))
        except RedisError as e:
            logger.warning("Failed to relay notification %s to '%s': %s", notification.get("id"), channel, e)
            return
        logger.debug("Relayed notification %s to '%s' (%s subscribers)", notification.get("id"), channel, receivers)
