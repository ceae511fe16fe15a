"""Persistence helpers for notification entities."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Iterable

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session

from app.domain.entities import (
    Notification,
    NotificationAction,
    NotificationPriority,
    NotificationType,
    category_for_type,
)
from app.infrastructure.models import NotificationModel
from app.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
)


class NotificationRepository:
    """Provide persistence operations for :class:`Notification` objects.

    Every read path hides rows whose ``expires_at`` is not in the future and
    every write path is scoped to the owning user.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, notification: Notification) -> Notification:
        model = NotificationModel()
        self._apply_entity_to_model(model, notification)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def get_for_user(
        self,
        notification_id: int,
        *,
        user_id: int,
        now: datetime | None = None,
    ) -> Notification | None:
        query = self._visible_query(user_id, now).filter(
            NotificationModel.id == notification_id
        )
        model = query.first()
        return self._to_entity(model) if model else None

    def list_for_user(
        self,
        user_id: int,
        *,
        offset: int = 0,
        limit: int | None = 20,
        unread_only: bool = False,
        types: Iterable[NotificationType] = (),
        priorities: Iterable[NotificationPriority] = (),
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        now: datetime | None = None,
    ) -> tuple[list[Notification], int]:
        """Return one page of notifications and the total matching count."""

        query = self._visible_query(user_id, now)
        if unread_only:
            query = query.filter(NotificationModel.read.is_(False))
        type_values = [NotificationType(kind).value for kind in types]
        if type_values:
            query = query.filter(NotificationModel.type.in_(type_values))
        priority_values = [NotificationPriority(level).value for level in priorities]
        if priority_values:
            query = query.filter(NotificationModel.priority.in_(priority_values))
        if start_date is not None:
            query = query.filter(
                NotificationModel.created_at >= ensure_app_naive_datetime(start_date)
            )
        if end_date is not None:
            query = query.filter(
                NotificationModel.created_at <= ensure_app_naive_datetime(end_date)
            )

        total = query.order_by(None).count()
        query = query.order_by(
            NotificationModel.created_at.desc(), NotificationModel.id.desc()
        ).offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()], total

    def list_unread_for_user(
        self, user_id: int, *, limit: int | None = 50, now: datetime | None = None
    ) -> Sequence[Notification]:
        query = (
            self._visible_query(user_id, now)
            .filter(NotificationModel.read.is_(False))
            .order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
        )
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def count_for_user(self, user_id: int, *, now: datetime | None = None) -> int:
        return self._visible_query(user_id, now).count()

    def count_unread(self, user_id: int, *, now: datetime | None = None) -> int:
        return (
            self._visible_query(user_id, now)
            .filter(NotificationModel.read.is_(False))
            .count()
        )

    def count_by_type(
        self, user_id: int, *, now: datetime | None = None
    ) -> dict[str, int]:
        return self._count_grouped(NotificationModel.type, user_id, now)

    def count_by_priority(
        self, user_id: int, *, now: datetime | None = None
    ) -> dict[str, int]:
        return self._count_grouped(NotificationModel.priority, user_id, now)

    def mark_as_read(
        self,
        notification_ids: Iterable[int],
        *,
        user_id: int,
        read_at: datetime | None = None,
    ) -> list[int]:
        """Mark the given notifications of ``user_id`` as read.

        Returns the ids that belong to the user. Rows that are already read
        keep their original ``read_at``.
        """

        ids = sorted({int(notification_id) for notification_id in notification_ids})
        if not ids:
            return []
        owned_ids = [
            notification_id
            for (notification_id,) in self.session.query(NotificationModel.id)
            .filter(
                NotificationModel.id.in_(ids),
                NotificationModel.user_id == user_id,
            )
            .all()
        ]
        if not owned_ids:
            return []

        timestamp = ensure_app_naive_datetime(read_at or now_in_app_timezone())
        self.session.query(NotificationModel).filter(
            NotificationModel.id.in_(owned_ids),
            NotificationModel.user_id == user_id,
            NotificationModel.read.is_(False),
        ).update(
            {
                NotificationModel.read: True,
                NotificationModel.read_at: timestamp,
                NotificationModel.updated_at: timestamp,
            },
            synchronize_session=False,
        )
        self.session.commit()
        return sorted(owned_ids)

    def mark_all_as_read(self, user_id: int, *, read_at: datetime | None = None) -> int:
        timestamp = ensure_app_naive_datetime(read_at or now_in_app_timezone())
        updated = (
            self.session.query(NotificationModel)
            .filter(
                NotificationModel.user_id == user_id,
                NotificationModel.read.is_(False),
            )
            .update(
                {
                    NotificationModel.read: True,
                    NotificationModel.read_at: timestamp,
                    NotificationModel.updated_at: timestamp,
                },
                synchronize_session=False,
            )
        )
        self.session.commit()
        return updated

    def delete_for_user(self, notification_id: int, *, user_id: int) -> bool:
        deleted = (
            self.session.query(NotificationModel)
            .filter(
                NotificationModel.id == notification_id,
                NotificationModel.user_id == user_id,
            )
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return bool(deleted)

    def delete_expired(self, cutoff: datetime) -> int:
        deleted = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.expires_at.is_not(None))
            .filter(NotificationModel.expires_at < ensure_app_naive_datetime(cutoff))
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return deleted

    def list_digest_candidates(
        self,
        user_id: int,
        *,
        before: datetime,
        now: datetime | None = None,
    ) -> list[Notification]:
        """Return unread notifications created before ``before`` not yet digested."""

        query = (
            self._visible_query(user_id, now)
            .filter(NotificationModel.read.is_(False))
            .filter(NotificationModel.created_at < ensure_app_naive_datetime(before))
            .order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
        )
        candidates: list[Notification] = []
        for model in query.all():
            data = model.data or {}
            if data.get("digestSent") is True:
                continue
            candidates.append(self._to_entity(model))
        return candidates

    def mark_digest_sent(self, notification_ids: Iterable[int], *, sent_at: datetime) -> int:
        """Flag each notification as included in a digest, keeping its other data."""

        ids = {int(notification_id) for notification_id in notification_ids}
        if not ids:
            return 0
        stamp = ensure_app_timezone(sent_at).isoformat()
        models = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.id.in_(ids))
            .all()
        )
        for model in models:
            data = dict(model.data or {})
            data["digestSent"] = True
            data["digestSentAt"] = stamp
            # JSON columns only notice reassignment.
            model.data = data
            self.session.add(model)
        self.session.commit()
        return len(models)

    def _visible_query(self, user_id: int, now: datetime | None) -> Query:
        cutoff = ensure_app_naive_datetime(now or now_in_app_timezone())
        return (
            self.session.query(NotificationModel)
            .filter(NotificationModel.user_id == user_id)
            .filter(
                or_(
                    NotificationModel.expires_at.is_(None),
                    NotificationModel.expires_at > cutoff,
                )
            )
        )

    def _count_grouped(self, column, user_id: int, now: datetime | None) -> dict[str, int]:
        cutoff = ensure_app_naive_datetime(now or now_in_app_timezone())
        rows = (
            self.session.query(column, func.count(NotificationModel.id))
            .filter(NotificationModel.user_id == user_id)
            .filter(
                or_(
                    NotificationModel.expires_at.is_(None),
                    NotificationModel.expires_at > cutoff,
                )
            )
            .group_by(column)
            .all()
        )
        return {str(key): int(count) for key, count in rows}

    @staticmethod
    def _apply_entity_to_model(model: NotificationModel, notification: Notification) -> None:
        kind = NotificationType(notification.type)
        created_at = ensure_app_naive_datetime(
            notification.created_at or now_in_app_timezone()
        )
        model.user_id = notification.user_id
        model.type = kind.value
        model.category = category_for_type(kind).value
        model.title = notification.title
        model.message = notification.message
        model.priority = NotificationPriority(notification.priority).value
        model.data = dict(notification.data) if notification.data is not None else None
        model.actions = [action.to_dict() for action in notification.actions]
        model.read = notification.read_at is not None
        model.read_at = ensure_app_naive_datetime(notification.read_at)
        model.group_id = notification.group_id
        model.expires_at = ensure_app_naive_datetime(notification.expires_at)
        model.created_at = created_at
        model.updated_at = ensure_app_naive_datetime(notification.updated_at) or created_at

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            user_id=model.user_id,
            type=NotificationType(model.type),
            title=model.title,
            message=model.message,
            priority=NotificationPriority(model.priority),
            data=dict(model.data) if model.data is not None else None,
            actions=[NotificationAction.from_dict(item) for item in model.actions or []],
            read=bool(model.read),
            read_at=ensure_app_timezone(model.read_at),
            group_id=model.group_id,
            expires_at=ensure_app_timezone(model.expires_at),
            created_at=ensure_app_timezone(model.created_at),
            updated_at=ensure_app_timezone(model.updated_at),
        )


__all__ = ["NotificationRepository"]
