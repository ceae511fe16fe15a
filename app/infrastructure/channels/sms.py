"""SMS channel sending ``title`` and ``message`` through Twilio."""

from __future__ import annotations

import logging
from functools import partial
from typing import Callable

from app.domain.entities import ChannelKind, DeliveryOutcome, Notification, User
from app.infrastructure import sms as sms_transport

from .base import NotificationChannel

logger = logging.getLogger(__name__)


class SmsChannel(NotificationChannel):
    kind = ChannelKind.SMS

    def __init__(
        self,
        sender: Callable[[str, str], bool] | None = None,
        *,
        is_configured: Callable[[], bool] | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        super().__init__(timeout_seconds)
        self._sender = sender or sms_transport.send_sms
        self._is_configured = is_configured or sms_transport.sms_delivery_configured

    async def deliver(self, user: User, notification: Notification) -> DeliveryOutcome:
        if not user.phone_number:
            logger.debug("User %s has no phone number; SMS skipped", user.id)
            return DeliveryOutcome.skip(self.kind, "missing phone number")
        if not sms_transport.is_phone_number_valid(user.phone_number):
            logger.debug("User %s has an invalid phone number; SMS skipped", user.id)
            return DeliveryOutcome.skip(self.kind, "invalid phone number")
        if not self._is_configured():
            logger.debug("SMS delivery disabled; SMS to user %s skipped", user.id)
            return DeliveryOutcome.skip(self.kind, "sms delivery disabled")

        body = sms_transport.format_sms_body(notification.title, notification.message)
        sent = await self.run_blocking(partial(self._sender, user.phone_number, body))
        if not sent:
            return DeliveryOutcome.failure(self.kind, "sms was not accepted")
        return DeliveryOutcome.success(self.kind)


__all__ = ["SmsChannel"]
