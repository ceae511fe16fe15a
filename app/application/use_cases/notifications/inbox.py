"""Inbox operations: listing, statistics and read-state changes."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Sequence

from sqlalchemy.orm import Session

from app.domain.entities import Notification, NotificationPriority, NotificationType
from app.infrastructure.notifications import (
    ALL_NOTIFICATIONS_READ_EVENT,
    NOTIFICATION_DELETED_EVENT,
    NOTIFICATION_READ_EVENT,
    NOTIFICATIONS_READ_EVENT,
    RealtimeEventPublisher,
)
from app.infrastructure.repositories import NotificationRepository
from app.utils import now_in_app_timezone

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


@dataclass
class NotificationFilter:
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    unread_only: bool = False
    types: Sequence[NotificationType] = ()
    priorities: Sequence[NotificationPriority] = ()
    start_date: datetime | None = None
    end_date: datetime | None = None

    def normalized(self) -> "NotificationFilter":
        """Return a copy with ``page`` >= 1 and ``limit`` clamped to 1..100."""

        return NotificationFilter(
            page=max(1, int(self.page)),
            limit=min(MAX_PAGE_SIZE, max(1, int(self.limit))),
            unread_only=self.unread_only,
            types=tuple(NotificationType(kind) for kind in self.types),
            priorities=tuple(NotificationPriority(level) for level in self.priorities),
            start_date=self.start_date,
            end_date=self.end_date,
        )


@dataclass
class NotificationPage:
    items: list[Notification]
    total: int
    unread_count: int
    page: int
    limit: int


@dataclass
class NotificationStats:
    total: int
    unread: int
    by_type: dict[str, int] = field(default_factory=dict)
    by_priority: dict[str, int] = field(default_factory=dict)


def list_notifications(
    session: Session,
    user_id: int,
    filters: NotificationFilter | None = None,
) -> NotificationPage:
    """Return one page of the user's non-expired notifications, newest first."""

    criteria = (filters or NotificationFilter()).normalized()
    now = now_in_app_timezone()
    repository = NotificationRepository(session)
    items, total = repository.list_for_user(
        user_id,
        offset=(criteria.page - 1) * criteria.limit,
        limit=criteria.limit,
        unread_only=criteria.unread_only,
        types=criteria.types,
        priorities=criteria.priorities,
        start_date=criteria.start_date,
        end_date=criteria.end_date,
        now=now,
    )
    return NotificationPage(
        items=items,
        total=total,
        unread_count=repository.count_unread(user_id, now=now),
        page=criteria.page,
        limit=criteria.limit,
    )


def list_unread_notifications(
    session: Session, user_id: int, *, limit: int | None = 50
) -> list[Notification]:
    return list(NotificationRepository(session).list_unread_for_user(user_id, limit=limit))


def get_notification_stats(session: Session, user_id: int) -> NotificationStats:
    now = now_in_app_timezone()
    repository = NotificationRepository(session)
    counts_by_type = repository.count_by_type(user_id, now=now)
    counts_by_priority = repository.count_by_priority(user_id, now=now)
    return NotificationStats(
        total=repository.count_for_user(user_id, now=now),
        unread=repository.count_unread(user_id, now=now),
        by_type={kind.value: counts_by_type.get(kind.value, 0) for kind in NotificationType},
        by_priority={
            level.value: counts_by_priority.get(level.value, 0)
            for level in NotificationPriority
        },
    )


def mark_notification_as_read(
    session: Session,
    *,
    user_id: int,
    notification_id: int,
    events: RealtimeEventPublisher,
) -> None:
    """Mark one notification as read.

    Raises :class:`ValueError` when the notification is not a visible one of
    ``user_id``. No event is emitted for a notification that was already read.
    """

    repository = NotificationRepository(session)
    notification = repository.get_for_user(notification_id, user_id=user_id)
    if notification is None:
        raise ValueError("Notification not found")
    if notification.read:
        return
    repository.mark_as_read([notification_id], user_id=user_id)
    events.dispatch(user_id, event_type=NOTIFICATION_READ_EVENT, payload={"id": notification_id})


def mark_notifications_as_read(
    session: Session,
    *,
    user_id: int,
    notification_ids: Iterable[int],
    events: RealtimeEventPublisher,
) -> list[int]:
    """Mark several notifications as read with one shared timestamp.

    Ids that do not belong to ``user_id`` are ignored. Returns the ids that
    were marked.
    """

    repository = NotificationRepository(session)
    marked = repository.mark_as_read(
        notification_ids, user_id=user_id, read_at=now_in_app_timezone()
    )
    if marked:
        events.dispatch(user_id, event_type=NOTIFICATIONS_READ_EVENT, payload={"ids": marked})
    return marked


def mark_all_notifications_as_read(
    session: Session,
    *,
    user_id: int,
    events: RealtimeEventPublisher,
) -> int:
    repository = NotificationRepository(session)
    updated = repository.mark_all_as_read(user_id, read_at=now_in_app_timezone())
    logger.debug("Marked %d notifications of user %s as read", updated, user_id)
    events.dispatch(user_id, event_type=ALL_NOTIFICATIONS_READ_EVENT, payload={})
    return updated


def delete_notification(
    session: Session,
    *,
    user_id: int,
    notification_id: int,
    events: RealtimeEventPublisher,
) -> bool:
    repository = NotificationRepository(session)
    deleted = repository.delete_for_user(notification_id, user_id=user_id)
    if deleted:
        events.dispatch(
            user_id, event_type=NOTIFICATION_DELETED_EVENT, payload={"id": notification_id}
        )
    return deleted


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "NotificationFilter",
    "NotificationPage",
    "NotificationStats",
    "delete_notification",
    "get_notification_stats",
    "list_notifications",
    "list_unread_notifications",
    "mark_all_notifications_as_read",
    "mark_notification_as_read",
    "mark_notifications_as_read",
]
