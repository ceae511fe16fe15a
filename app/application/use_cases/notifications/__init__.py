"""Notification pipeline use cases."""

from .delivery_policy import (
    DeliveryPolicy,
    is_within_quiet_hours,
    should_send_email,
    should_send_sms,
)
from .dispatcher import NotificationDispatchError, NotificationDispatcher, NotificationRequest
from .inbox import (
    NotificationFilter,
    NotificationPage,
    NotificationStats,
    delete_notification,
    get_notification_stats,
    list_notifications,
    list_unread_notifications,
    mark_all_notifications_as_read,
    mark_notification_as_read,
    mark_notifications_as_read,
)
from .preferences import get_or_create_preferences, update_preferences
from .send_test import send_test_notification

__all__ = [
    "DeliveryPolicy",
    "NotificationDispatchError",
    "NotificationDispatcher",
    "NotificationFilter",
    "NotificationPage",
    "NotificationRequest",
    "NotificationStats",
    "delete_notification",
    "get_notification_stats",
    "get_or_create_preferences",
    "is_within_quiet_hours",
    "list_notifications",
    "list_unread_notifications",
    "mark_all_notifications_as_read",
    "mark_notification_as_read",
    "mark_notifications_as_read",
    "send_test_notification",
    "should_send_email",
    "should_send_sms",
    "update_preferences",
]
