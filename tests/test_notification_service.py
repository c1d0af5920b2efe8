"""Tests for :class:`NotificationService`."""

from __future__ import annotations

import pytest

from goalmates.application.use_cases.notifications import NotificationService
from goalmates.domain.entities import CreateNotificationPayload
from goalmates.domain.errors import NotFoundError, NotificationValidationError
from goalmates.infrastructure.repositories import NotificationRepository


class FakePublisher:
    def __init__(self) -> None:
        self.events: list[tuple] = []

    def publish_new(self, receiver_id, summary) -> None:
        self.events.append(("new", receiver_id, summary.id))

    def publish_update(self, user_id, summary) -> None:
        self.events.append(("update", user_id, summary.id, summary.is_read))

    def publish_unread_count(self, user_id, count) -> None:
        self.events.append(("count", user_id, count))


class FailingPublisher(FakePublisher):
    def publish_new(self, receiver_id, summary) -> None:
        raise RuntimeError("gateway unavailable")

    def publish_unread_count(self, user_id, count) -> None:
        raise RuntimeError("gateway unavailable")


class FakeQueue:
    def __init__(self) -> None:
        self.jobs: list[list[int]] = []

    def enqueue(self, notification_ids) -> None:
        self.jobs.append(list(notification_ids))


@pytest.fixture
def publisher() -> FakePublisher:
    return FakePublisher()


@pytest.fixture
def queue() -> FakeQueue:
    return FakeQueue()


@pytest.fixture
def service(db_session, publisher, queue) -> NotificationService:
    return NotificationService(db_session, publisher=publisher, email_queue=queue)


def test_notify_many_with_no_payloads_does_nothing(service, publisher, queue) -> None:
    assert service.notify_many([]) == []
    assert publisher.events == []
    assert queue.jobs == []


def test_notify_many_pushes_each_row_and_one_count_per_receiver(
    service, publisher, queue, make_user
) -> None:
    captain = make_user(username="captain")
    first = make_user()
    second = make_user()

    summaries = service.notify_many(
        [
            CreateNotificationPayload(first.id, "Match tonight", "Kick-off at 8", captain.id),
            CreateNotificationPayload(second.id, "Match tonight", "Kick-off at 8", captain.id),
            CreateNotificationPayload(first.id, "Bring a ball", "We only have one", captain.id),
        ]
    )

    assert [summary.receiver_id for summary in summaries] == [first.id, second.id, first.id]
    assert all(summary.sender.username == "captain" for summary in summaries)

    new_events = [event for event in publisher.events if event[0] == "new"]
    count_events = [event for event in publisher.events if event[0] == "count"]
    assert new_events == [("new", summary.receiver_id, summary.id) for summary in summaries]
    assert count_events == [("count", first.id, 2), ("count", second.id, 1)]
    assert publisher.events.index(count_events[0]) > publisher.events.index(new_events[-1])

    assert queue.jobs == [[summary.id for summary in summaries]]


def test_notify_many_trims_and_validates_before_writing(
    service, publisher, db_session, make_user
) -> None:
    receiver = make_user()

    with pytest.raises(NotificationValidationError):
        service.notify_many(
            [
                CreateNotificationPayload(receiver.id, "Valid", "Body"),
                CreateNotificationPayload(None, "Missing receiver", "Body"),
            ]
        )

    assert NotificationRepository(db_session).count_unread(receiver.id) == 0
    assert publisher.events == []

    summary = service.notify_many(
        [CreateNotificationPayload(receiver.id, "  Padded  ", "  text ")]
    )[0]
    assert (summary.title, summary.body) == ("Padded", "text")


@pytest.mark.parametrize(
    "payload",
    [
        CreateNotificationPayload(None, "Title", "Body"),
        CreateNotificationPayload(1, "x" * 161, "Body"),
    ],
)
def test_invalid_payloads_are_rejected(service, payload) -> None:
    with pytest.raises(NotificationValidationError):
        service.create_notification(payload)


def test_create_notification_pushes_but_does_not_email(
    service, publisher, queue, make_user
) -> None:
    receiver = make_user()

    summary = service.create_notification(
        CreateNotificationPayload(receiver.id, "Welcome", "Glad to have you")
    )

    assert summary.sender is None
    assert publisher.events == [
        ("new", receiver.id, summary.id),
        ("count", receiver.id, 1),
    ]
    assert queue.jobs == []


def test_list_for_user_returns_newest_first_and_respects_limit(
    db_session, publisher, make_user
) -> None:
    receiver = make_user()
    other = make_user()
    service = NotificationService(db_session, publisher=publisher, list_limit=2)
    service.notify_many(
        [
            CreateNotificationPayload(receiver.id, "First", "1"),
            CreateNotificationPayload(receiver.id, "Second", "2"),
            CreateNotificationPayload(receiver.id, "Third", "3"),
            CreateNotificationPayload(other.id, "Elsewhere", "4"),
        ]
    )

    listed = service.list_for_user(receiver.id)

    assert [summary.title for summary in listed] == ["Third", "Second"]


def test_set_read_status_updates_and_pushes_update_then_count(
    service, publisher, make_user
) -> None:
    receiver = make_user()
    created = service.notify_many(
        [
            CreateNotificationPayload(receiver.id, "One", "1"),
            CreateNotificationPayload(receiver.id, "Two", "2"),
        ]
    )
    publisher.events.clear()

    updated = service.set_read_status(receiver.id, created[0].id, True)

    assert updated.is_read is True
    assert publisher.events == [
        ("update", receiver.id, created[0].id, True),
        ("count", receiver.id, 1),
    ]
    assert service.unread_count(receiver.id) == 1


def test_set_read_status_on_foreign_notification_is_not_found(
    service, publisher, db_session, make_user
) -> None:
    owner = make_user()
    intruder = make_user()
    notification = service.create_notification(
        CreateNotificationPayload(owner.id, "Private", "Only for the owner")
    )
    publisher.events.clear()

    with pytest.raises(NotFoundError):
        service.set_read_status(intruder.id, notification.id, True)
    with pytest.raises(NotFoundError):
        service.set_read_status(owner.id, notification.id + 100, True)

    stored = NotificationRepository(db_session).get_for_receiver(
        notification.id, receiver_id=owner.id
    )
    assert stored.is_read is False
    assert publisher.events == []


def test_unread_count_is_stable_between_calls(service, make_user) -> None:
    receiver = make_user()
    service.create_notification(CreateNotificationPayload(receiver.id, "Hi", "there"))

    assert service.unread_count(receiver.id) == 1
    assert service.unread_count(receiver.id) == 1


def test_push_failures_do_not_undo_the_write(db_session, queue, make_user, caplog) -> None:
    receiver = make_user()
    service = NotificationService(
        db_session, publisher=FailingPublisher(), email_queue=queue
    )

    with caplog.at_level("ERROR"):
        summaries = service.notify_many(
            [CreateNotificationPayload(receiver.id, "Still saved", "even offline")]
        )

    assert service.unread_count(receiver.id) == 1
    assert queue.jobs == [[summaries[0].id]]
    assert "Realtime push" in caplog.text


def test_blank_text_is_trimmed_and_stored(service, db_session, make_user) -> None:
    receiver = make_user()

    created = service.create_notification(CreateNotificationPayload(receiver.id, "Title", "   "))
    batch = service.notify_many(
        [
            CreateNotificationPayload(receiver.id, "  ", "Reminder"),
            CreateNotificationPayload(receiver.id, "Kit check", ""),
        ]
    )

    assert created.body == ""
    assert [(summary.title, summary.body) for summary in batch] == [
        ("", "Reminder"),
        ("Kit check", ""),
    ]
    stored = NotificationRepository(db_session).get_for_receiver(
        created.id, receiver_id=receiver.id
    )
    assert stored.body == ""
    assert service.unread_count(receiver.id) == 3
