"""Email channel rendering the ``notification`` template through SendGrid."""

from __future__ import annotations

import logging
from functools import partial
from typing import Callable

from app.domain.entities import ChannelKind, DeliveryOutcome, Notification, User
from app.infrastructure import email as email_transport

from .base import NotificationChannel

logger = logging.getLogger(__name__)


class EmailChannel(NotificationChannel):
    kind = ChannelKind.EMAIL

    def __init__(
        self,
        sender: Callable[..., bool] | None = None,
        *,
        is_configured: Callable[[], bool] | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        super().__init__(timeout_seconds)
        self._sender = sender or email_transport.send_notification_email
        self._is_configured = is_configured or email_transport.email_delivery_configured

    async def deliver(self, user: User, notification: Notification) -> DeliveryOutcome:
        if not user.email:
            logger.debug("User %s has no email address; email skipped", user.id)
            return DeliveryOutcome.skip(self.kind, "missing email address")
        if not self._is_configured():
            logger.debug("Email delivery not configured; email to user %s skipped", user.id)
            return DeliveryOutcome.skip(self.kind, "email delivery not configured")

        send = partial(
            self._sender,
            user.email,
            user_name=user.name,
            title=notification.title,
            message=notification.message,
            priority=notification.priority.value,
            actions=[action.to_dict() for action in notification.actions],
        )
        sent = await self.run_blocking(send)
        if not sent:
            return DeliveryOutcome.failure(self.kind, f"email to {user.email} was not accepted")
        return DeliveryOutcome.success(self.kind)


__all__ = ["EmailChannel"]
