"""Domain entity describing how a user wants to be notified."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import time
from enum import Enum
from typing import Any, Iterable

from .notification import NotificationType

DEFAULT_PREFERENCES_TIMEZONE = "Asia/Phnom_Penh"

DEFAULT_EMAIL_TYPES = frozenset(
    {
        NotificationType.MISSION_CREATED,
        NotificationType.OBSERVATION_CREATED,
        NotificationType.APPROVAL_REQUIRED,
        NotificationType.ANNOUNCEMENT,
    }
)
DEFAULT_SMS_TYPES = frozenset(
    {
        NotificationType.APPROVAL_REQUIRED,
        NotificationType.SYSTEM_ALERT,
    }
)


class DigestFrequency(str, Enum):
    """How often email notifications are delivered."""

    IMMEDIATE = "immediate"
    DAILY = "daily"
    WEEKLY = "weekly"


def _coerce_types(values: Iterable[Any]) -> set[NotificationType]:
    return {NotificationType(value) for value in values}


@dataclass
class EmailPreferences:
    enabled: bool = True
    frequency: DigestFrequency = DigestFrequency.IMMEDIATE
    types: set[NotificationType] = field(default_factory=lambda: set(DEFAULT_EMAIL_TYPES))

    def to_dict(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "frequency": self.frequency.value,
            "types": sorted(kind.value for kind in self.types),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EmailPreferences":
        return cls(
            enabled=bool(data.get("enabled", True)),
            frequency=DigestFrequency(data.get("frequency", DigestFrequency.IMMEDIATE.value)),
            types=_coerce_types(data.get("types", ())),
        )


@dataclass
class SmsPreferences:
    enabled: bool = False
    types: set[NotificationType] = field(default_factory=lambda: set(DEFAULT_SMS_TYPES))

    def to_dict(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "types": sorted(kind.value for kind in self.types),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SmsPreferences":
        return cls(
            enabled=bool(data.get("enabled", False)),
            types=_coerce_types(data.get("types", ())),
        )


@dataclass
class InAppPreferences:
    enabled: bool = True
    sound: bool = True
    desktop: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"enabled": self.enabled, "sound": self.sound, "desktop": self.desktop}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InAppPreferences":
        return cls(
            enabled=bool(data.get("enabled", True)),
            sound=bool(data.get("sound", True)),
            desktop=bool(data.get("desktop", False)),
        )


@dataclass
class NotificationPreferences:
    """Per-user delivery settings; exactly one record exists per user."""

    id: int | None
    user_id: int
    email: EmailPreferences = field(default_factory=EmailPreferences)
    sms: SmsPreferences = field(default_factory=SmsPreferences)
    in_app: InAppPreferences = field(default_factory=InAppPreferences)
    quiet_hours_start: time | None = None
    quiet_hours_end: time | None = None
    timezone: str = DEFAULT_PREFERENCES_TIMEZONE

    @classmethod
    def default_for(cls, user_id: int) -> "NotificationPreferences":
        """Return the preferences assigned to a user on first access."""

        return cls(id=None, user_id=user_id)


__all__ = [
    "DEFAULT_EMAIL_TYPES",
    "DEFAULT_PREFERENCES_TIMEZONE",
    "DEFAULT_SMS_TYPES",
    "DigestFrequency",
    "EmailPreferences",
    "InAppPreferences",
    "NotificationPreferences",
    "SmsPreferences",
]
