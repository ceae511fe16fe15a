"""Domain entities exposed by the application."""

from .delivery import ChannelKind, DeliveryOutcome, DeliveryReport
from .notification import (
    NOTIFICATION_CATEGORIES,
    Notification,
    NotificationAction,
    NotificationCategory,
    NotificationPriority,
    NotificationType,
    category_for_type,
)
from .notification_preferences import (
    DEFAULT_PREFERENCES_TIMEZONE,
    DigestFrequency,
    EmailPreferences,
    InAppPreferences,
    NotificationPreferences,
    SmsPreferences,
)
from .role import Role
from .user import User

__all__ = [
    "ChannelKind",
    "DEFAULT_PREFERENCES_TIMEZONE",
    "DeliveryOutcome",
    "DeliveryReport",
    "DigestFrequency",
    "EmailPreferences",
    "InAppPreferences",
    "NOTIFICATION_CATEGORIES",
    "Notification",
    "NotificationAction",
    "NotificationCategory",
    "NotificationPreferences",
    "NotificationPriority",
    "NotificationType",
    "Role",
    "SmsPreferences",
    "User",
    "category_for_type",
]
