"""Fan a notification out to its recipients."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Sequence

import anyio
from sqlalchemy.orm import Session

from app.domain.entities import (
    DeliveryReport,
    Notification,
    NotificationAction,
    NotificationPriority,
    NotificationType,
    User,
)
from app.infrastructure.repositories import NotificationRepository, UserRepository
from app.utils import now_in_app_timezone

from .delivery_policy import DeliveryPolicy

logger = logging.getLogger(__name__)


class NotificationDispatchError(RuntimeError):
    """Raised when no notification could be stored for any recipient."""


@dataclass
class NotificationRequest:
    """What to send and to whom.

    Exactly one of ``user_id``, ``user_ids`` or ``role_ids`` selects the
    recipients.
    """

    type: NotificationType
    title: str
    message: str
    user_id: int | None = None
    user_ids: Sequence[int] | None = None
    role_ids: Sequence[int] | None = None
    priority: NotificationPriority = NotificationPriority.MEDIUM
    data: dict[str, Any] | None = None
    actions: list[NotificationAction] = field(default_factory=list)
    expires_at: datetime | None = None
    group_id: str | None = None

    def __post_init__(self) -> None:
        self.type = NotificationType(self.type)
        self.priority = NotificationPriority(self.priority)

    def targeting_modes(self) -> list[str]:
        modes = []
        if self.user_id is not None:
            modes.append("user_id")
        if self.user_ids:
            modes.append("user_ids")
        if self.role_ids:
            modes.append("role_ids")
        return modes

    def build_notification(self, user_id: int, created_at: datetime) -> Notification:
        return Notification(
            id=None,
            user_id=user_id,
            type=self.type,
            title=self.title,
            message=self.message,
            priority=self.priority,
            data=dict(self.data) if self.data is not None else None,
            actions=list(self.actions),
            group_id=self.group_id,
            expires_at=self.expires_at,
            created_at=created_at,
            updated_at=created_at,
        )


def _log_delivery(notification: Notification, report: DeliveryReport) -> None:
    if report.suppressed:
        logger.debug(
            "Notification %s for user %s stored without delivery (quiet hours)",
            notification.id,
            notification.user_id,
        )
        return
    attempted = ", ".join(channel.value for channel in report.channels_attempted) or "none"
    failed = report.failed_channels
    if failed:
        logger.warning(
            "Notification %s for user %s: attempted %s, failed %s",
            notification.id,
            notification.user_id,
            attempted,
            ", ".join(channel.value for channel in failed),
        )
    else:
        logger.debug(
            "Notification %s for user %s delivered via %s",
            notification.id,
            notification.user_id,
            attempted,
        )


class NotificationDispatcher:
    """Create one notification row per recipient and hand it to delivery.

    Recipients are processed concurrently, each with its own database
    session. A recipient whose row cannot be stored does not stop the
    others, and delivery problems never undo a stored row.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        policy: DeliveryPolicy,
    ) -> None:
        self._session_factory = session_factory
        self._policy = policy

    async def send_notification(self, request: NotificationRequest) -> int:
        """Send ``request`` and return the number of notifications created."""

        modes = request.targeting_modes()
        if len(modes) > 1:
            raise ValueError(
                "Exactly one of user_id, user_ids or role_ids must be provided "
                f"(got {', '.join(modes)})"
            )
        if not modes:
            logger.warning("Notification '%s' has no recipients; nothing sent", request.title)
            return 0

        recipients = await anyio.to_thread.run_sync(self._resolve_recipients, request)
        if not recipients:
            logger.info(
                "No active recipients resolved for %s notification '%s'",
                request.type.value,
                request.title,
            )
            return 0

        created_at = now_in_app_timezone()
        stored: list[Notification] = []
        failures: list[tuple[User, Exception]] = []

        async def process(user: User) -> None:
            try:
                saved = await anyio.to_thread.run_sync(
                    self._persist, request.build_notification(user.id, created_at)
                )
            except Exception as exc:
                logger.exception(
                    "Failed to store %s notification for user %s",
                    request.type.value,
                    user.id,
                )
                failures.append((user, exc))
                return

            stored.append(saved)
            try:
                report = await self._policy.deliver(saved, user)
            except Exception:
                logger.exception(
                    "Delivery of notification %s to user %s failed",
                    saved.id,
                    user.id,
                )
                return
            _log_delivery(saved, report)

        async with anyio.create_task_group() as tg:
            for user in recipients:
                tg.start_soon(process, user)

        if not stored:
            _, first_error = failures[0]
            raise NotificationDispatchError(
                f"Could not store the notification for any of {len(recipients)} recipient(s)"
            ) from first_error

        if failures:
            logger.warning(
                "%d of %d %s notifications could not be stored",
                len(failures),
                len(recipients),
                request.type.value,
            )
        logger.info("Sent %d notifications of type %s", len(stored), request.type.value)
        return len(stored)

    def _resolve_recipients(self, request: NotificationRequest) -> list[User]:
        session = self._session_factory()
        try:
            repository = UserRepository(session)
            if request.user_id is not None:
                users = repository.list_active_by_ids([request.user_id])
            elif request.user_ids:
                users = repository.list_active_by_ids(request.user_ids)
            else:
                users = repository.list_active_by_role_ids(request.role_ids or ())
            return list(users)
        finally:
            session.close()

    def _persist(self, notification: Notification) -> Notification:
        session = self._session_factory()
        try:
            return NotificationRepository(session).create(notification)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


__all__ = [
    "NotificationDispatchError",
    "NotificationDispatcher",
    "NotificationRequest",
]
