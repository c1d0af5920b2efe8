"""Tests for the notification email worker."""

from __future__ import annotations

import threading

import pytest

from goalmates.domain.entities import Notification
from goalmates.infrastructure import database
from goalmates.infrastructure.notifications import (
    NotificationEmailJob,
    NotificationEmailQueue,
    NotificationEmailWorker,
)
from goalmates.infrastructure.repositories import NotificationRepository

pytestmark = pytest.mark.anyio


class RecordingMailer:
    def __init__(self, *, fail_for: set[str] | None = None, accept: bool = True) -> None:
        self.sent: list[dict] = []
        self.fail_for = fail_for or set()
        self.accept = accept
        self._lock = threading.Lock()

    def __call__(self, **kwargs) -> bool:
        if kwargs["to"] in self.fail_for:
            raise ConnectionError("SMTP relay refused")
        with self._lock:
            self.sent.append(kwargs)
        return self.accept


def create_notifications(db_session, *receiver_ids: int) -> list[Notification]:
    return NotificationRepository(db_session).create_many(
        [
            Notification(
                id=None,
                sender_id=None,
                receiver_id=receiver_id,
                title=f"Match update {index}",
                body="Kick-off moved to 9pm",
            )
            for index, receiver_id in enumerate(receiver_ids)
        ]
    )


def make_worker(mailer, **kwargs) -> NotificationEmailWorker:
    return NotificationEmailWorker(
        NotificationEmailQueue(), database.SessionLocal, mailer=mailer, **kwargs
    )


async def test_unverified_receivers_are_skipped(db_session, make_user) -> None:
    verified = make_user(email="verified@example.com", first_name="Vera", is_email_verified=True)
    unverified = make_user(email="unverified@example.com")
    notifications = create_notifications(db_session, verified.id, unverified.id)
    mailer = RecordingMailer()

    report = await make_worker(mailer).handle_job(
        NotificationEmailJob(tuple(notification.id for notification in notifications))
    )

    assert report.sent == [notifications[0].id]
    assert report.skipped == [notifications[1].id]
    assert report.failed == []
    assert mailer.sent == [
        {
            "to": "verified@example.com",
            "username": "Vera",
            "title": "Match update 0",
            "body": "Kick-off moved to 9pm",
        }
    ]


async def test_failing_send_does_not_block_siblings(db_session, make_user, caplog) -> None:
    broken = make_user(email="broken@example.com", is_email_verified=True)
    healthy = make_user(email="healthy@example.com", is_email_verified=True)
    notifications = create_notifications(db_session, broken.id, healthy.id)
    mailer = RecordingMailer(fail_for={"broken@example.com"})

    with caplog.at_level("WARNING"):
        report = await make_worker(mailer).handle_job(
            NotificationEmailJob(tuple(notification.id for notification in notifications))
        )

    assert report.sent == [notifications[1].id]
    assert report.failed == [notifications[0].id]
    assert "SMTP relay refused" in caplog.text


async def test_rejected_send_counts_as_failure(db_session, make_user) -> None:
    receiver = make_user(is_email_verified=True)
    notifications = create_notifications(db_session, receiver.id)

    report = await make_worker(RecordingMailer(accept=False)).handle_job(
        NotificationEmailJob((notifications[0].id,))
    )

    assert report.failed == [notifications[0].id]


async def test_missing_notifications_are_ignored(caplog) -> None:
    mailer = RecordingMailer()

    with caplog.at_level("WARNING"):
        report = await make_worker(mailer).handle_job(NotificationEmailJob((404, 405)))

    assert report.sent == report.skipped == report.failed == []
    assert mailer.sent == []
    assert "missing" in caplog.text


async def test_worker_drains_the_queue_it_registers_with(db_session, make_user) -> None:
    receiver = make_user(is_email_verified=True)
    notifications = create_notifications(db_session, receiver.id, receiver.id)
    mailer = RecordingMailer()
    queue = NotificationEmailQueue()

    queue.enqueue([notification.id for notification in notifications])
    NotificationEmailWorker(queue, database.SessionLocal, mailer=mailer, send_timeout=5)
    await queue.join()

    assert sorted(entry["title"] for entry in mailer.sent) == [
        "Match update 0",
        "Match update 1",
    ]
    assert queue.has_processor
