"""Use cases for reading and updating notification preferences."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.domain.entities import (
    EmailPreferences,
    InAppPreferences,
    NotificationPreferences,
    SmsPreferences,
)
from app.infrastructure.repositories import NotificationPreferencesRepository
from app.utils import parse_time_of_day, resolve_timezone

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset(
    {"email", "sms", "in_app", "quiet_hours_start", "quiet_hours_end", "timezone"}
)


def get_or_create_preferences(session: Session, user_id: int) -> NotificationPreferences:
    """Return the preferences of ``user_id``, creating the default on first access.

    Two concurrent first accesses race on the unique ``user_id`` constraint;
    the loser rolls back and returns the row the winner inserted.
    """

    repository = NotificationPreferencesRepository(session)
    existing = repository.get_by_user(user_id)
    if existing is not None:
        return existing

    try:
        created = repository.create(NotificationPreferences.default_for(user_id))
    except IntegrityError:
        session.rollback()
        winner = repository.get_by_user(user_id)
        if winner is None:
            raise
        logger.debug("Preferences for user %s were created concurrently", user_id)
        return winner

    logger.info("Created default notification preferences for user %s", user_id)
    return created


def update_preferences(
    session: Session, user_id: int, changes: Mapping[str, Any]
) -> NotificationPreferences:
    """Shallow-merge ``changes`` onto the user's preferences and persist them.

    ``email``, ``sms`` and ``in_app`` replace the stored channel object as a
    whole; keys that are absent keep their previous value.
    """

    unknown = sorted(set(changes) - UPDATABLE_FIELDS)
    if unknown:
        raise ValueError(f"Unknown preference fields: {', '.join(unknown)}")

    preferences = get_or_create_preferences(session, user_id)

    if "email" in changes:
        preferences.email = _coerce_channel(changes["email"], EmailPreferences, "email")
    if "sms" in changes:
        preferences.sms = _coerce_channel(changes["sms"], SmsPreferences, "sms")
    if "in_app" in changes:
        preferences.in_app = _coerce_channel(changes["in_app"], InAppPreferences, "in_app")
    if "quiet_hours_start" in changes:
        preferences.quiet_hours_start = parse_time_of_day(changes["quiet_hours_start"])
    if "quiet_hours_end" in changes:
        preferences.quiet_hours_end = parse_time_of_day(changes["quiet_hours_end"])
    if "timezone" in changes:
        timezone_name = (changes["timezone"] or "").strip()
        if resolve_timezone(timezone_name) is None:
            raise ValueError(f"Unknown timezone '{changes['timezone']}'")
        preferences.timezone = timezone_name

    repository = NotificationPreferencesRepository(session)
    return repository.update(preferences)


def _coerce_channel(value: Any, channel_type: type, field_name: str):
    if isinstance(value, channel_type):
        return value
    if not isinstance(value, Mapping):
        raise ValueError(f"Preference '{field_name}' must be an object")
    try:
        return channel_type.from_dict(dict(value))
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid '{field_name}' preferences: {exc}") from exc


__all__ = ["UPDATABLE_FIELDS", "get_or_create_preferences", "update_preferences"]
