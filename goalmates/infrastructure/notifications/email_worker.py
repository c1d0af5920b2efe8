"""Processor that turns queued notification ids into outbound emails."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Callable, Sequence

import anyio
from anyio import to_thread
from sqlalchemy.orm import Session

from goalmates.domain.entities import Notification, User
from goalmates.infrastructure.email import send_notification_email
from goalmates.infrastructure.repositories import NotificationRepository, UserRepository

from .email_queue import NotificationEmailJob, NotificationEmailQueue

logger = logging.getLogger(__name__)

NotificationMailer = Callable[..., bool]


@dataclass
class NotificationEmailReport:
    """Outcome of one job, by notification id."""

    sent: list[int] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)


class NotificationEmailWorker:
    """Resolve notifications and their receivers, then email eligible receivers.

    Registers itself as the processor of ``queue`` on construction. Each
    notification is delivered independently: a failing or ineligible receiver
    never prevents the other emails of the same job.
    """

    def __init__(
        self,
        queue: NotificationEmailQueue,
        session_factory: Callable[[], Session],
        *,
        mailer: NotificationMailer = send_notification_email,
        send_timeout: float | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._mailer = mailer
        self._send_timeout = send_timeout
        queue.register_processor(self.handle_job)

    async def handle_job(self, job: NotificationEmailJob) -> NotificationEmailReport:
        report = NotificationEmailReport()
        if not job.notification_ids:
            return report

        notifications, receivers = await to_thread.run_sync(
            self._load_records, job.notification_ids
        )
        if not notifications:
            logger.warning(
                "Notification email job ignored because %s notifications were missing",
                len(job.notification_ids),
            )
            return report

        deliveries = []
        for notification in notifications:
            receiver = receivers.get(notification.receiver_id)
            if receiver is None:
                logger.warning(
                    "Notification %s skipped because receiver %s was missing",
                    notification.id,
                    notification.receiver_id,
                )
                report.skipped.append(notification.id)
                continue
            if not self.should_send_email(receiver):
                logger.debug(
                    "Notification %s skipped because receiver %s is not verified",
                    notification.id,
                    receiver.id,
                )
                report.skipped.append(notification.id)
                continue
            deliveries.append((notification, receiver))

        results = await asyncio.gather(
            *(self._send(notification, receiver) for notification, receiver in deliveries),
            return_exceptions=True,
        )
        for (notification, receiver), result in zip(deliveries, results):
            if result is True:
                report.sent.append(notification.id)
                continue
            report.failed.append(notification.id)
            if isinstance(result, BaseException):
                logger.warning(
                    "Email for notification %s to user %s failed: %r",
                    notification.id,
                    receiver.id,
                    result,
                )
            else:
                logger.warning(
                    "Email for notification %s to user %s was not accepted",
                    notification.id,
                    receiver.id,
                )
        return report

    @staticmethod
    def should_send_email(receiver: User) -> bool:
        return receiver.is_email_verified

    def _load_records(
        self, notification_ids: Sequence[int]
    ) -> tuple[Sequence[Notification], dict[int, User]]:
        session = self._session_factory()
        try:
            notifications = NotificationRepository(session).list_by_ids(notification_ids)
            if not notifications:
                return notifications, {}
            receivers = UserRepository(session).get_map_by_ids(
                notification.receiver_id for notification in notifications
            )
            return notifications, receivers
        finally:
            session.close()

    async def _send(self, notification: Notification, receiver: User) -> bool:
        send = partial(
            self._mailer,
            to=receiver.email,
            username=receiver.display_name,
            title=notification.title,
            body=notification.body,
        )
        if self._send_timeout is None:
            return await to_thread.run_sync(send)
        with anyio.fail_after(self._send_timeout):
            return await to_thread.run_sync(send, abandon_on_cancel=True)


__all__ = ["NotificationEmailReport", "NotificationEmailWorker"]
