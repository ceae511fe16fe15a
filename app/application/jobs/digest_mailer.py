"""Batch job that emails daily or weekly digests of unread notifications.

Every notification included in a sent digest is flagged with
``data.digestSent`` so that later runs never include it again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Mapping

from sqlalchemy.orm import Session

from app.domain.entities import DigestFrequency, Notification, NotificationPreferences
from app.infrastructure.email import send_digest_email
from app.infrastructure.repositories import (
    NotificationPreferencesRepository,
    NotificationRepository,
    UserRepository,
)
from app.utils import (
    ensure_app_timezone,
    format_khmer_datetime,
    get_app_timezone,
    now_in_app_timezone,
    resolve_timezone,
)

logger = logging.getLogger(__name__)

DIGEST_WINDOWS = {
    DigestFrequency.DAILY: timedelta(days=1),
    DigestFrequency.WEEKLY: timedelta(days=7),
}

DigestSender = Callable[..., bool]


@dataclass
class DigestRunSummary:
    frequency: DigestFrequency
    users_considered: int = 0
    digests_sent: int = 0
    notifications_included: int = 0
    failures: int = 0


def _digest_item(notification: Notification, preferences: NotificationPreferences) -> dict[str, Any]:
    tz = resolve_timezone(preferences.timezone) or get_app_timezone()
    created_at = ensure_app_timezone(notification.created_at)
    return {
        "title": notification.title,
        "message": notification.message,
        "time": format_khmer_datetime(created_at.astimezone(tz)) if created_at else "",
        "type": notification.type.value,
        "priority": notification.priority.value,
    }


def send_digests(
    session: Session,
    frequency: DigestFrequency | str,
    *,
    now: datetime | None = None,
    sender: DigestSender = send_digest_email,
) -> DigestRunSummary:
    """Send one digest per user whose email frequency is ``frequency``.

    Only unread, unexpired notifications created before the start of the
    digest window (24 hours or 7 days ago) are included. A failure for one
    user is logged and the run continues with the next one.
    """

    kind = DigestFrequency(frequency)
    if kind not in DIGEST_WINDOWS:
        raise ValueError(f"Digests are not sent for '{kind.value}' frequency")

    current = now or now_in_app_timezone()
    window_start = current - DIGEST_WINDOWS[kind]
    summary = DigestRunSummary(frequency=kind)

    preferences_list = NotificationPreferencesRepository(session).list_by_email_frequency(kind)
    for preferences in preferences_list:
        summary.users_considered += 1
        try:
            included = _send_user_digest(
                session,
                preferences,
                frequency=kind,
                window_start=window_start,
                now=current,
                sender=sender,
            )
        except Exception:
            session.rollback()
            summary.failures += 1
            logger.exception(
                "Failed to send %s digest to user %s", kind.value, preferences.user_id
            )
            continue

        if included is None:
            summary.failures += 1
        elif included:
            summary.digests_sent += 1
            summary.notifications_included += included

    logger.info(
        "Sent %d %s digests covering %d notifications (%d failures)",
        summary.digests_sent,
        kind.value,
        summary.notifications_included,
        summary.failures,
    )
    return summary


def _send_user_digest(
    session: Session,
    preferences: NotificationPreferences,
    *,
    frequency: DigestFrequency,
    window_start: datetime,
    now: datetime,
    sender: DigestSender,
) -> int | None:
    """Send the digest of one user.

    Returns the number of notifications included, ``0`` when there was
    nothing to send and ``None`` when the transport refused the email.
    """

    user = UserRepository(session).get(preferences.user_id)
    if user is None or not user.can_receive():
        return 0
    if not user.email:
        logger.debug("User %s has no email address; digest skipped", user.id)
        return 0

    repository = NotificationRepository(session)
    notifications = repository.list_digest_candidates(user.id, before=window_start, now=now)
    if not notifications:
        return 0

    items: list[Mapping[str, Any]] = [
        _digest_item(notification, preferences) for notification in notifications
    ]
    if not sender(user.email, frequency=frequency.value, notifications=items):
        logger.error("%s digest for user %s was not sent", frequency.value.capitalize(), user.id)
        return None

    repository.mark_digest_sent(
        [notification.id for notification in notifications], sent_at=now
    )
    return len(notifications)


__all__ = ["DIGEST_WINDOWS", "DigestRunSummary", "send_digests"]
