"""Persistence layer for notification preferences."""

from __future__ import annotations

from sqlalchemy.orm import Session

from app.domain.entities import (
    DigestFrequency,
    EmailPreferences,
    InAppPreferences,
    NotificationPreferences,
    SmsPreferences,
)
from app.infrastructure.models import NotificationPreferencesModel
from app.utils import format_time_of_day, parse_time_of_day


class NotificationPreferencesRepository:
    """Provide read and write access to :class:`NotificationPreferences`."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_by_user(self, user_id: int) -> NotificationPreferences | None:
        model = self._get_model(user_id)
        return self._to_entity(model) if model else None

    def create(self, preferences: NotificationPreferences) -> NotificationPreferences:
        """Insert ``preferences``.

        Raises :class:`sqlalchemy.exc.IntegrityError` when a record already
        exists for the user.
        """

        model = NotificationPreferencesModel()
        self._apply_entity_to_model(model, preferences)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def update(self, preferences: NotificationPreferences) -> NotificationPreferences:
        model = self._get_model(preferences.user_id)
        if model is None:
            msg = f"Preferences for user {preferences.user_id} not found"
            raise ValueError(msg)
        self._apply_entity_to_model(model, preferences)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def list_by_email_frequency(
        self, frequency: DigestFrequency
    ) -> list[NotificationPreferences]:
        """Return preferences with email enabled at the given ``frequency``."""

        wanted = DigestFrequency(frequency).value
        query = self.session.query(NotificationPreferencesModel).order_by(
            NotificationPreferencesModel.user_id
        )
        matches: list[NotificationPreferences] = []
        for model in query.all():
            email = model.email or {}
            if email.get("enabled") and email.get("frequency") == wanted:
                matches.append(self._to_entity(model))
        return matches

    def _get_model(self, user_id: int) -> NotificationPreferencesModel | None:
        return (
            self.session.query(NotificationPreferencesModel)
            .filter_by(user_id=user_id)
            .first()
        )

    @staticmethod
    def _apply_entity_to_model(
        model: NotificationPreferencesModel, preferences: NotificationPreferences
    ) -> None:
        model.user_id = preferences.user_id
        model.email = preferences.email.to_dict()
        model.sms = preferences.sms.to_dict()
        model.in_app = preferences.in_app.to_dict()
        model.quiet_hours_start = format_time_of_day(preferences.quiet_hours_start)
        model.quiet_hours_end = format_time_of_day(preferences.quiet_hours_end)
        model.timezone = preferences.timezone

    @staticmethod
    def _to_entity(model: NotificationPreferencesModel) -> NotificationPreferences:
        return NotificationPreferences(
            id=model.id,
            user_id=model.user_id,
            email=EmailPreferences.from_dict(model.email or {}),
            sms=SmsPreferences.from_dict(model.sms or {}),
            in_app=InAppPreferences.from_dict(model.in_app or {}),
            quiet_hours_start=parse_time_of_day(model.quiet_hours_start),
            quiet_hours_end=parse_time_of_day(model.quiet_hours_end),
            timezone=model.timezone,
        )


__all__ = ["NotificationPreferencesRepository"]
