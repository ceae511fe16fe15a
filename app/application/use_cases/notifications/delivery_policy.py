"""Decide which channels a freshly created notification goes out on."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

import anyio
from sqlalchemy.orm import Session

from app.domain.entities import (
    DeliveryOutcome,
    DeliveryReport,
    DigestFrequency,
    Notification,
    NotificationPreferences,
    User,
)
from app.infrastructure.channels import NotificationChannel
from app.utils import (
    ensure_app_timezone,
    get_app_timezone,
    minute_of_day,
    now_in_app_timezone,
    resolve_timezone,
)

from .preferences import get_or_create_preferences

logger = logging.getLogger(__name__)


def is_within_quiet_hours(preferences: NotificationPreferences, now: datetime) -> bool:
    """Return ``True`` when ``now`` falls inside the user's quiet hours.

    ``now`` is evaluated in the user's timezone. Both bounds are inclusive
    and a start later than the end wraps past midnight. Without both bounds
    there are no quiet hours.
    """

    start = preferences.quiet_hours_start
    end = preferences.quiet_hours_end
    if start is None or end is None:
        return False

    tz = resolve_timezone(preferences.timezone) or get_app_timezone()
    local_now = ensure_app_timezone(now).astimezone(tz)
    current = minute_of_day(local_now)
    start_minute = minute_of_day(start)
    end_minute = minute_of_day(end)

    if start_minute <= end_minute:
        return start_minute <= current <= end_minute
    return current >= start_minute or current <= end_minute


def should_send_email(preferences: NotificationPreferences, notification: Notification) -> bool:
    email = preferences.email
    return (
        email.enabled
        and notification.type in email.types
        and email.frequency == DigestFrequency.IMMEDIATE
    )


def should_send_sms(preferences: NotificationPreferences, notification: Notification) -> bool:
    return preferences.sms.enabled and notification.type in preferences.sms.types


class DeliveryPolicy:
    """Apply a user's preferences and fire the eligible channels.

    Each channel runs on its own: one channel failing or timing out never
    prevents the others from being attempted.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        *,
        realtime: NotificationChannel,
        email: NotificationChannel,
        sms: NotificationChannel,
        clock: Callable[[], datetime] = now_in_app_timezone,
    ) -> None:
        self._session_factory = session_factory
        self._realtime = realtime
        self._email = email
        self._sms = sms
        self._clock = clock

    async def deliver(self, notification: Notification, user: User) -> DeliveryReport:
        preferences = await anyio.to_thread.run_sync(self._load_preferences, user.id)

        if is_within_quiet_hours(preferences, self._clock()):
            logger.info(
                "Notification %s for user %s suppressed by quiet hours",
                notification.id,
                user.id,
            )
            return DeliveryReport(suppressed=True)

        report = DeliveryReport()
        report.outcomes.append(await self._attempt(self._realtime, user, notification))
        if should_send_email(preferences, notification):
            report.outcomes.append(await self._attempt(self._email, user, notification))
        if should_send_sms(preferences, notification):
            report.outcomes.append(await self._attempt(self._sms, user, notification))
        return report

    def _load_preferences(self, user_id: int) -> NotificationPreferences:
        session = self._session_factory()
        try:
            return get_or_create_preferences(session, user_id)
        finally:
            session.close()

    async def _attempt(
        self,
        channel: NotificationChannel,
        user: User,
        notification: Notification,
    ) -> DeliveryOutcome:
        try:
            outcome = await channel.deliver(user, notification)
        except TimeoutError:
            logger.error(
                "%s delivery of notification %s to user %s timed out",
                channel.kind.value,
                notification.id,
                user.id,
            )
            return DeliveryOutcome.failure(channel.kind, "timed out")
        except Exception as exc:
            logger.exception(
                "%s delivery of notification %s to user %s failed",
                channel.kind.value,
                notification.id,
                user.id,
            )
            return DeliveryOutcome.failure(channel.kind, str(exc) or type(exc).__name__)

        if not outcome.succeeded and not outcome.skipped:
            logger.error(
                "%s delivery of notification %s to user %s failed: %s",
                channel.kind.value,
                notification.id,
                user.id,
                outcome.error,
            )
        return outcome


__all__ = [
    "DeliveryPolicy",
    "is_within_quiet_hours",
    "should_send_email",
    "should_send_sms",
]
