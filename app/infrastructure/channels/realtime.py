"""Realtime push channel backed by the websocket connection registry."""

from __future__ import annotations

import logging

from app.domain.entities import ChannelKind, DeliveryOutcome, Notification, User
from app.infrastructure.notifications import (
    NOTIFICATION_EVENT,
    NotificationConnectionManager,
    notification_manager,
    serialize_notification,
)

from .base import NotificationChannel

logger = logging.getLogger(__name__)


class RealtimePushChannel(NotificationChannel):
    """Emit a ``notification`` event to the user's live connections.

    Users without a live connection are not an error: the notification stays
    in their inbox.
    """

    kind = ChannelKind.PUSH

    def __init__(
        self,
        manager: NotificationConnectionManager = notification_manager,
        timeout_seconds: float | None = None,
    ) -> None:
        super().__init__(timeout_seconds)
        self._manager = manager

    async def deliver(self, user: User, notification: Notification) -> DeliveryOutcome:
        delivered = await self._manager.send_to_user(
            notification.user_id,
            NOTIFICATION_EVENT,
            serialize_notification(notification),
        )
        logger.debug(
            "Pushed notification %s to %d connection(s) of user %s",
            notification.id,
            delivered,
            notification.user_id,
        )
        return DeliveryOutcome.success(self.kind)


__all__ = ["RealtimePushChannel"]
