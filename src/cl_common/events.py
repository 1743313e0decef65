"""In-process pub/sub for local real-time events.

Handlers may be plain callables or coroutine functions. A failing handler is
logged and skipped; publish() itself never raises.
"""

import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)

EventHandler = Callable[[dict[str, Any]], Awaitable[None] | None]


class LocalEventBus:
    def __init__(self) -> None:
        self._handlers: list[EventHandler] = []

    def subscribe(self, handler: EventHandler) -> Callable[[], None]:
        """Register a handler; returns a callable that unsubscribes it."""
        self._handlers.append(handler)

        def _unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return _unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)

    async def publish(self, payload: dict[str, Any]) -> None:
        for handler in list(self._handlers):
            try:
                result = handler(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Event handler %r failed", handler)
