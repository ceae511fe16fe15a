"""Realtime notification helpers for the infrastructure layer."""

from .manager import NotificationConnectionManager, notification_manager
from .publisher import (
    ALL_NOTIFICATIONS_READ_EVENT,
    NOTIFICATION_DELETED_EVENT,
    NOTIFICATION_EVENT,
    NOTIFICATION_READ_EVENT,
    NOTIFICATIONS_READ_EVENT,
    RealtimeEventPublisher,
    realtime_event_publisher,
    serialize_notification,
)

__all__ = [
    "ALL_NOTIFICATIONS_READ_EVENT",
    "NOTIFICATIONS_READ_EVENT",
    "NOTIFICATION_DELETED_EVENT",
    "NOTIFICATION_EVENT",
    "NOTIFICATION_READ_EVENT",
    "NotificationConnectionManager",
    "RealtimeEventPublisher",
    "notification_manager",
    "realtime_event_publisher",
    "serialize_notification",
]
