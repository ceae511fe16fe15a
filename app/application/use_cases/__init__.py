"""Aggregate application use cases."""

from .notifications import (
    NotificationDispatcher,
    NotificationRequest,
    get_or_create_preferences,
    list_notifications,
)

__all__ = [
    "NotificationDispatcher",
    "NotificationRequest",
    "get_or_create_preferences",
    "list_notifications",
]
