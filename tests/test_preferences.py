"""Tests for the get-or-create preference store."""

from datetime import time

import pytest

from app.application.use_cases.notifications import (
    get_or_create_preferences,
    update_preferences,
)
from app.domain.entities import DigestFrequency, NotificationPreferences, NotificationType
from app.infrastructure.models import NotificationPreferencesModel
from app.infrastructure.repositories import NotificationPreferencesRepository


def test_first_access_creates_defaults_once(session, make_user):
    user = make_user()

    first = get_or_create_preferences(session, user.id)
    second = get_or_create_preferences(session, user.id)

    assert first.sms.enabled is False
    assert first.email.frequency is DigestFrequency.IMMEDIATE
    assert first.id is not None
    assert second.id == first.id
    assert session.query(NotificationPreferencesModel).count() == 1


def test_update_replaces_channel_objects_and_keeps_the_rest(session, make_user):
    user = make_user()
    get_or_create_preferences(session, user.id)

    updated = update_preferences(
        session,
        user.id,
        {"sms": {"enabled": True, "types": ["system_alert"]}, "quiet_hours_start": "22:00"},
    )

    assert updated.sms.enabled is True
    assert updated.sms.types == {NotificationType.SYSTEM_ALERT}
    assert updated.quiet_hours_start == time(22, 0)
    assert updated.quiet_hours_end is None
    assert updated.email.frequency is DigestFrequency.IMMEDIATE
    assert NotificationType.ANNOUNCEMENT in updated.email.types

    reloaded = NotificationPreferencesRepository(session).get_by_user(user.id)
    assert reloaded.sms.types == {NotificationType.SYSTEM_ALERT}
    assert reloaded.quiet_hours_start == time(22, 0)


def test_update_creates_preferences_when_missing(session, make_user):
    user = make_user()

    updated = update_preferences(session, user.id, {"timezone": "Europe/London"})

    assert updated.timezone == "Europe/London"
    assert updated.sms.enabled is False


def test_update_rejects_unknown_fields(session, make_user):
    user = make_user()

    with pytest.raises(ValueError, match="Unknown preference fields: colour"):
        update_preferences(session, user.id, {"colour": "blue"})


@pytest.mark.parametrize(
    "changes",
    [
        {"timezone": "Mars/Olympus"},
        {"quiet_hours_start": "25:00"},
        {"email": {"enabled": True, "frequency": "hourly"}},
        {"in_app": "on"},
    ],
)
def test_update_rejects_invalid_values(session, make_user, changes):
    user = make_user()

    with pytest.raises(ValueError):
        update_preferences(session, user.id, changes)


def test_concurrent_first_access_returns_the_winning_row(session, session_factory, make_user, monkeypatch):
    user = make_user()
    original_get = NotificationPreferencesRepository.get_by_user
    calls = {"count": 0}

    def racing_get(self, user_id):
        calls["count"] += 1
        if calls["count"] == 1:
            # Another request inserts the row between our read and our insert.
            other = session_factory()
            try:
                NotificationPreferencesRepository(other).create(
                    NotificationPreferences.default_for(user_id)
                )
            finally:
                other.close()
            return None
        return original_get(self, user_id)

    monkeypatch.setattr(NotificationPreferencesRepository, "get_by_user", racing_get)

    preferences = get_or_create_preferences(session, user.id)

    assert preferences.user_id == user.id
    assert preferences.id is not None
    assert session.query(NotificationPreferencesModel).count() == 1
