"""In-process FIFO queue that defers notification emails off the request path."""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Deque, Iterable, Set

from anyio import from_thread

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationEmailJob:
    """Batch of notification ids whose emails should be sent together."""

    notification_ids: tuple[int, ...]


QueueProcessor = Callable[[NotificationEmailJob], Awaitable[Any]]


class NotificationEmailQueue:
    """Ordered job list drained by a single registered processor.

    Only one drain loop runs at a time. Enqueues made while a drain is active
    or already scheduled collapse into one follow-up drain. A job whose
    processor call fails is logged and dropped; jobs are not persisted, so
    anything still pending is lost when the process stops.
    """

    def __init__(self) -> None:
        self._jobs: Deque[NotificationEmailJob] = deque()
        self._processor: QueueProcessor | None = None
        self._draining = False
        self._pending_kick: asyncio.Task | None = None
        self._tasks: Set[asyncio.Task] = set()
        self._settled = asyncio.Event()

    @property
    def pending_count(self) -> int:
        return len(self._jobs)

    @property
    def is_draining(self) -> bool:
        return self._draining

    @property
    def has_processor(self) -> bool:
        return self._processor is not None

    def enqueue(self, notification_ids: Iterable[int]) -> None:
        """Append a job for ``notification_ids``; empty input is ignored.

        May be called from the event loop or from a worker thread started by
        anyio (e.g. a synchronous FastAPI endpoint).
        """

        ids = tuple(int(notification_id) for notification_id in notification_ids)
        if not ids:
            return

        job = NotificationEmailJob(notification_ids=ids)
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            from_thread.run_sync(self._append, job)
        else:
            self._append(job)

    def register_processor(self, processor: QueueProcessor) -> None:
        """Attach the coroutine function that handles jobs; allowed once.

        Must be called from the event loop. Jobs enqueued earlier are drained
        right away.
        """

        if self._processor is not None:
            raise RuntimeError("Notification email queue already has a processor.")

        self._processor = processor
        logger.info("Notification email worker registered.")
        self._request_drain()

    async def join(self) -> None:
        """Wait until no drain is scheduled or running and no runnable job remains."""

        while (
            self._pending_kick is not None
            or self._draining
            or (self._jobs and self._processor is not None)
        ):
            self._settled.clear()
            await self._settled.wait()

    def _append(self, job: NotificationEmailJob) -> None:
        self._jobs.append(job)
        logger.info(
            "Notification email job enqueued (count=%s, depth=%s)",
            len(job.notification_ids),
            len(self._jobs),
        )
        self._request_drain()

    def _request_drain(self) -> None:
        if self._pending_kick is not None:
            return
        loop = asyncio.get_running_loop()
        task = loop.create_task(self._kick())
        # Strong reference for as long as the task runs.
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self._pending_kick = task

    async def _kick(self) -> None:
        self._pending_kick = None
        try:
            await self._drain()
        finally:
            self._settled.set()

    async def _drain(self) -> None:
        if self._draining or self._processor is None:
            return

        self._draining = True
        try:
            while self._jobs and self._processor is not None:
                job = self._jobs.popleft()
                started_at = time.perf_counter()
                logger.debug(
                    "Starting notification email job (count=%s, remaining=%s)",
                    len(job.notification_ids),
                    len(self._jobs),
                )
                try:
                    await self._processor(job)
                except Exception:
                    logger.exception(
                        "Notification email job failed (ids=%s)", list(job.notification_ids)
                    )
                else:
                    logger.info(
                        "Notification email job completed in %.0fms (remainingDepth=%s)",
                        (time.perf_counter() - started_at) * 1000,
                        len(self._jobs),
                    )
        finally:
            self._draining = False

        if self._jobs:
            self._request_drain()


__all__ = ["NotificationEmailJob", "NotificationEmailQueue", "QueueProcessor"]
