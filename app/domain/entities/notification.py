"""Domain entity representing a user notification."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class NotificationType(str, Enum):
    """Business events that can produce a notification."""

    MISSION_CREATED = "mission_created"
    MISSION_APPROVED = "mission_approved"
    MISSION_REJECTED = "mission_rejected"
    MISSION_REMINDER = "mission_reminder"
    OBSERVATION_CREATED = "observation_created"
    OBSERVATION_COMPLETED = "observation_completed"
    OBSERVATION_FEEDBACK = "observation_feedback"
    APPROVAL_REQUIRED = "approval_required"
    APPROVAL_GRANTED = "approval_granted"
    APPROVAL_REJECTED = "approval_rejected"
    REPORT_GENERATED = "report_generated"
    ANNOUNCEMENT = "announcement"
    SYSTEM_ALERT = "system_alert"
    DEADLINE_APPROACHING = "deadline_approaching"
    USER_MENTION = "user_mention"
    ROLE_CHANGED = "role_changed"
    PASSWORD_CHANGED = "password_changed"
    LOGIN_ALERT = "login_alert"


class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class NotificationCategory(str, Enum):
    MISSION = "mission"
    OBSERVATION = "observation"
    APPROVAL = "approval"
    SYSTEM = "system"
    USER = "user"
    ANNOUNCEMENT = "announcement"


NOTIFICATION_CATEGORIES: dict[NotificationType, NotificationCategory] = {
    NotificationType.MISSION_CREATED: NotificationCategory.MISSION,
    NotificationType.MISSION_APPROVED: NotificationCategory.MISSION,
    NotificationType.MISSION_REJECTED: NotificationCategory.MISSION,
    NotificationType.MISSION_REMINDER: NotificationCategory.MISSION,
    NotificationType.OBSERVATION_CREATED: NotificationCategory.OBSERVATION,
    NotificationType.OBSERVATION_COMPLETED: NotificationCategory.OBSERVATION,
    NotificationType.OBSERVATION_FEEDBACK: NotificationCategory.OBSERVATION,
    NotificationType.APPROVAL_REQUIRED: NotificationCategory.APPROVAL,
    NotificationType.APPROVAL_GRANTED: NotificationCategory.APPROVAL,
    NotificationType.APPROVAL_REJECTED: NotificationCategory.APPROVAL,
    NotificationType.SYSTEM_ALERT: NotificationCategory.SYSTEM,
    NotificationType.REPORT_GENERATED: NotificationCategory.SYSTEM,
    NotificationType.USER_MENTION: NotificationCategory.USER,
    NotificationType.ROLE_CHANGED: NotificationCategory.USER,
    NotificationType.PASSWORD_CHANGED: NotificationCategory.USER,
    NotificationType.LOGIN_ALERT: NotificationCategory.USER,
    NotificationType.ANNOUNCEMENT: NotificationCategory.ANNOUNCEMENT,
    NotificationType.DEADLINE_APPROACHING: NotificationCategory.ANNOUNCEMENT,
}


def category_for_type(notification_type: NotificationType | str) -> NotificationCategory:
    """Return the category a notification of ``notification_type`` belongs to.

    Unknown types are filed under ``system``.
    """

    try:
        kind = NotificationType(notification_type)
    except ValueError:
        return NotificationCategory.SYSTEM
    return NOTIFICATION_CATEGORIES.get(kind, NotificationCategory.SYSTEM)


@dataclass(frozen=True)
class NotificationAction:
    """Call to action rendered next to a notification."""

    label: str
    url: str | None = None
    action: str | None = None
    primary: bool = False

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"label": self.label, "primary": self.primary}
        if self.url is not None:
            payload["url"] = self.url
        if self.action is not None:
            payload["action"] = self.action
        return payload

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NotificationAction":
        return cls(
            label=str(data.get("label", "")),
            url=data.get("url"),
            action=data.get("action"),
            primary=bool(data.get("primary", False)),
        )


@dataclass
class Notification:
    """Information message delivered to a specific user.

    One record exists per recipient; ``read`` and ``read_at`` always change
    together.
    """

    id: int | None
    user_id: int
    type: NotificationType
    title: str
    message: str
    priority: NotificationPriority = NotificationPriority.MEDIUM
    data: dict[str, Any] | None = None
    actions: list[NotificationAction] = field(default_factory=list)
    read: bool = False
    read_at: datetime | None = None
    group_id: str | None = None
    expires_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def category(self) -> NotificationCategory:
        return category_for_type(self.type)

    @property
    def digest_sent(self) -> bool:
        return bool((self.data or {}).get("digestSent"))


__all__ = [
    "NOTIFICATION_CATEGORIES",
    "Notification",
    "NotificationAction",
    "NotificationCategory",
    "NotificationPriority",
    "NotificationType",
    "category_for_type",
]
