"""NotificationDispatcher — decouples notification delivery from business flows.

Architecture:
- submit(): enqueue on a bounded asyncio.Queue, never blocks, never raises
- worker tasks: drain the queue and call NotificationEmitter.deliver()
- retry: failed deliveries are retried with exponential backoff
- dead letters: requests that overflow the queue or exhaust their attempts are
  logged at ERROR and kept in a bounded deque for admin inspection

A purchase transition that already committed never fails because a
notification could not be written.
"""

import asyncio
import logging
from collections import deque
from dataclasses import asdict, dataclass
from typing import Any

from src.cl_common.datetime_utils import utc_now_iso
from src.cl_notification.application.emitter import NotificationEmitter
from src.cl_notification.domain.models import NotificationRequest

logger = logging.getLogger(__name__)


@dataclass
class DeadLetter:
    request: NotificationRequest
    reason: str
    failed_at: str

    def to_dict(self) -> dict[str, Any]:
        return {"request": asdict(self.request), "reason": self.reason, "failed_at": self.failed_at}


class NotificationDispatcher:
    def __init__(
        self,
        emitter: NotificationEmitter,
        queue_size: int = 1000,
        workers: int = 2,
        max_attempts: int = 3,
        backoff_base_seconds: float = 0.2,
        dead_letter_size: int = 500,
    ) -> None:
        self._emitter = emitter
        self._queue: asyncio.Queue[NotificationRequest] = asyncio.Queue(maxsize=queue_size)
        self._worker_count = workers
        self._max_attempts = max_attempts
        self._backoff_base = backoff_base_seconds
        self._dead_letters: deque[DeadLetter] = deque(maxlen=dead_letter_size)
        self._workers: list[asyncio.Task[None]] = []

    @property
    def running(self) -> bool:
        return bool(self._workers)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def dead_letters(self) -> list[DeadLetter]:
        return list(self._dead_letters)

    def start(self) -> None:
        if self._workers:
            return
        self._workers = [
            asyncio.create_task(self._worker(i), name=f"notify-worker-{i}")
            for i in range(self._worker_count)
        ]
        logger.info("Notification dispatcher started with %d workers", self._worker_count)

    async def stop(self, drain: bool = True) -> None:
        if drain and self._workers:
            await self._queue.join()
        for task in self._workers:
            task.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        logger.info("Notification dispatcher stopped (%d dead letters)", len(self._dead_letters))

    async def drain(self) -> None:
        """Wait until every submitted request was delivered or dead-lettered."""
        await self._queue.join()

    def submit(self, request: NotificationRequest) -> None:
        try:
            self._queue.put_nowait(request)
        except asyncio.QueueFull:
            self._dead_letter(request, "queue full")

    def submit_all(self, requests: list[NotificationRequest]) -> None:
        for request in requests:
            self.submit(request)

    async def _worker(self, index: int) -> None:
        while True:
            request = await self._queue.get()
            try:
                await self._deliver_with_retry(request)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Notification worker %d crashed on a request", index)
            finally:
                self._queue.task_done()

    async def _deliver_with_retry(self, request: NotificationRequest) -> None:
        while True:
            request.attempts += 1
            try:
                await self._emitter.deliver(request)
                return
            except Exception as exc:
                if request.attempts >= self._max_attempts:
                    self._dead_letter(request, f"{type(exc).__name__}: {exc}")
                    return
                delay = self._backoff_base * 2 ** (request.attempts - 1)
                logger.warning(
                    "Notification to %s failed (attempt %d/%d), retrying in %.2fs",
                    request.user_id, request.attempts, self._max_attempts, delay,
                )
                await asyncio.sleep(delay)

    def _dead_letter(self, request: NotificationRequest, reason: str) -> None:
        self._dead_letters.append(DeadLetter(request=request, reason=reason, failed_at=utc_now_iso()))
        logger.error(
            "Notification dead-lettered: user=%s type=%s title=%r reason=%s",
            request.user_id, request.type, request.title, reason,
        )
