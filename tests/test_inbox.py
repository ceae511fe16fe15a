"""Tests for listing notifications and changing their read state."""

from datetime import timedelta

import pytest

from app.application.jobs import reap_expired_notifications
from app.application.use_cases.notifications import (
    NotificationFilter,
    delete_notification,
    get_notification_stats,
    list_notifications,
    list_unread_notifications,
    mark_all_notifications_as_read,
    mark_notification_as_read,
    mark_notifications_as_read,
)
from app.domain.entities import Notification, NotificationPriority, NotificationType
from app.infrastructure.models import NotificationModel
from app.infrastructure.repositories import NotificationRepository
from app.utils import now_in_app_timezone


@pytest.fixture
def store(session):
    repository = NotificationRepository(session)

    def factory(user, **overrides) -> Notification:
        values = {
            "id": None,
            "user_id": user.id,
            "type": NotificationType.MISSION_CREATED,
            "title": "Mission",
            "message": "A new mission was created",
        }
        values.update(overrides)
        return repository.create(Notification(**values))

    return factory


def _assert_read_state_consistent(session):
    session.expire_all()
    for row in session.query(NotificationModel).all():
        assert row.read == (row.read_at is not None)


def test_mark_several_as_read_uses_one_timestamp(session, make_user, store, recording_events):
    user = make_user()
    n1 = store(user)
    n2 = store(user)
    n3 = store(user)

    marked = mark_notifications_as_read(
        session, user_id=user.id, notification_ids=[n1.id, n2.id], events=recording_events
    )

    assert marked == [n1.id, n2.id]
    session.expire_all()
    rows = {row.id: row for row in session.query(NotificationModel).all()}
    assert rows[n1.id].read and rows[n2.id].read
    assert rows[n1.id].read_at == rows[n2.id].read_at
    assert rows[n3.id].read is False
    assert recording_events.events == [(user.id, "notifications-read", {"ids": [n1.id, n2.id]})]
    _assert_read_state_consistent(session)


def test_mark_as_read_ignores_other_users_notifications(session, make_user, store, recording_events):
    owner = make_user("Owner", email="owner@example.com")
    intruder = make_user("Intruder", email="intruder@example.com")
    notification = store(owner)

    marked = mark_notifications_as_read(
        session, user_id=intruder.id, notification_ids=[notification.id], events=recording_events
    )

    assert marked == []
    assert recording_events.events == []
    with pytest.raises(ValueError, match="Notification not found"):
        mark_notification_as_read(
            session, user_id=intruder.id, notification_id=notification.id, events=recording_events
        )
    assert delete_notification(
        session, user_id=intruder.id, notification_id=notification.id, events=recording_events
    ) is False
    assert NotificationRepository(session).get_for_user(notification.id, user_id=owner.id).read is False


def test_mark_single_and_all_as_read(session, make_user, store, recording_events):
    user = make_user()
    first = store(user)
    store(user)
    store(user)

    mark_notification_as_read(
        session, user_id=user.id, notification_id=first.id, events=recording_events
    )
    updated = mark_all_notifications_as_read(session, user_id=user.id, events=recording_events)

    assert updated == 2
    assert [event for _, event, _ in recording_events.events] == [
        "notification-read",
        "all-notifications-read",
    ]
    assert recording_events.events[0][2] == {"id": first.id}
    assert list_unread_notifications(session, user.id) == []
    _assert_read_state_consistent(session)


def test_marking_again_keeps_the_first_read_time(session, make_user, store, recording_events):
    user = make_user()
    notification = store(user)
    repository = NotificationRepository(session)
    first_read = now_in_app_timezone() - timedelta(hours=2)

    repository.mark_as_read([notification.id], user_id=user.id, read_at=first_read)
    repository.mark_as_read([notification.id], user_id=user.id)

    stored = repository.get_for_user(notification.id, user_id=user.id)
    assert stored.read_at.replace(microsecond=0) == first_read.replace(microsecond=0)


def test_delete_notification(session, make_user, store, recording_events):
    user = make_user()
    notification = store(user)

    assert delete_notification(
        session, user_id=user.id, notification_id=notification.id, events=recording_events
    ) is True
    assert recording_events.events == [(user.id, "notification-deleted", {"id": notification.id})]
    assert delete_notification(
        session, user_id=user.id, notification_id=notification.id, events=recording_events
    ) is False


def test_expired_notifications_are_hidden_then_reaped(session, make_user, store):
    user = make_user()
    now = now_in_app_timezone()
    expired = store(user, title="Expired", expires_at=now - timedelta(minutes=5))
    future = store(user, title="Future", expires_at=now + timedelta(days=1))
    forever = store(user, title="Forever")

    page = list_notifications(session, user.id)

    assert {item.id for item in page.items} == {future.id, forever.id}
    assert page.total == 2
    assert page.unread_count == 2

    assert reap_expired_notifications(session) == 1
    remaining = {row.id for row in session.query(NotificationModel).all()}
    assert remaining == {future.id, forever.id}
    assert expired.id not in remaining


def test_listing_is_newest_first_and_paginated(session, make_user, store):
    user = make_user()
    base = now_in_app_timezone() - timedelta(hours=1)
    created = [
        store(user, title=f"N{index}", created_at=base + timedelta(minutes=index))
        for index in range(5)
    ]

    first = list_notifications(session, user.id, NotificationFilter(page=1, limit=2))
    last = list_notifications(session, user.id, NotificationFilter(page=3, limit=2))

    assert [item.title for item in first.items] == ["N4", "N3"]
    assert [item.id for item in last.items] == [created[0].id]
    assert first.total == 5
    assert first.limit == 2


@pytest.mark.parametrize(("requested", "expected"), [(0, 1), (-3, 1), (500, 100), (40, 40)])
def test_page_size_is_clamped(requested, expected):
    assert NotificationFilter(limit=requested).normalized().limit == expected


def test_filters_combine(session, make_user, store, recording_events):
    user = make_user()
    now = now_in_app_timezone()
    match = store(
        user,
        type=NotificationType.APPROVAL_REQUIRED,
        priority=NotificationPriority.URGENT,
        created_at=now - timedelta(hours=2),
    )
    store(user, type=NotificationType.APPROVAL_REQUIRED, created_at=now - timedelta(hours=2))
    store(
        user,
        type=NotificationType.APPROVAL_REQUIRED,
        priority=NotificationPriority.URGENT,
        created_at=now - timedelta(days=3),
    )
    read = store(
        user,
        type=NotificationType.APPROVAL_REQUIRED,
        priority=NotificationPriority.URGENT,
        created_at=now - timedelta(hours=1),
    )
    mark_notification_as_read(session, user_id=user.id, notification_id=read.id, events=recording_events)

    page = list_notifications(
        session,
        user.id,
        NotificationFilter(
            unread_only=True,
            types=[NotificationType.APPROVAL_REQUIRED],
            priorities=["urgent"],
            start_date=now - timedelta(days=1),
            end_date=now,
        ),
    )

    assert [item.id for item in page.items] == [match.id]
    assert page.total == 1
    assert page.unread_count == 3


def test_stats_cover_every_type_and_priority(session, make_user, store):
    user = make_user()
    other = make_user("Other", email="other@example.com")
    store(user, type=NotificationType.ANNOUNCEMENT, priority=NotificationPriority.HIGH)
    store(user, type=NotificationType.ANNOUNCEMENT)
    store(user, type=NotificationType.LOGIN_ALERT, read_at=now_in_app_timezone())
    store(other, type=NotificationType.SYSTEM_ALERT)

    stats = get_notification_stats(session, user.id)

    assert stats.total == 3
    assert stats.unread == 2
    assert set(stats.by_type) == {kind.value for kind in NotificationType}
    assert stats.by_type["announcement"] == 2
    assert stats.by_type["login_alert"] == 1
    assert stats.by_type["system_alert"] == 0
    assert stats.by_priority == {"low": 0, "medium": 2, "high": 1, "urgent": 0}


def test_marking_a_read_or_expired_notification(session, make_user, store, recording_events):
    user = make_user()
    read = store(user, read_at=now_in_app_timezone())
    expired = store(user, expires_at=now_in_app_timezone() - timedelta(minutes=1))

    mark_notification_as_read(
        session, user_id=user.id, notification_id=read.id, events=recording_events
    )
    with pytest.raises(ValueError, match="Notification not found"):
        mark_notification_as_read(
            session, user_id=user.id, notification_id=expired.id, events=recording_events
        )

    assert recording_events.events == []
