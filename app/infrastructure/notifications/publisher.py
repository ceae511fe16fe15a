"""Helpers to push realtime events to websocket subscribers."""

from __future__ import annotations

import asyncio
import copy
import logging
from typing import Any

from anyio import from_thread

from app.domain.entities import Notification

from .manager import NotificationConnectionManager, notification_manager

logger = logging.getLogger(__name__)

NOTIFICATION_EVENT = "notification"
NOTIFICATION_READ_EVENT = "notification-read"
NOTIFICATIONS_READ_EVENT = "notifications-read"
ALL_NOTIFICATIONS_READ_EVENT = "all-notifications-read"
NOTIFICATION_DELETED_EVENT = "notification-deleted"


class RealtimeEventPublisher:
    """Dispatch structured realtime events from synchronous code.

    Inside an event loop the send is scheduled as a task; from a worker
    thread started by anyio it is handed back to the owning event loop.
    Events raised with neither available are dropped.
    """

    def __init__(self, manager: NotificationConnectionManager) -> None:
        self._manager = manager
        self._pending: set[asyncio.Task[Any]] = set()

    def dispatch(self, user_id: int, *, event_type: str, payload: Any) -> None:
        """Schedule a realtime ``event_type`` event for ``user_id``."""

        if not user_id:
            return
        self._schedule_send(user_id, event_type, copy.deepcopy(payload))

    def _schedule_send(self, user_id: int, event_type: str, payload: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            try:
                from_thread.run(self._manager.send_to_user, user_id, event_type, payload)
            except RuntimeError:
                logger.debug(
                    "No event loop available; dropped %s event for user %s",
                    event_type,
                    user_id,
                )
        else:
            task = loop.create_task(self._manager.send_to_user(user_id, event_type, payload))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the websocket payload representation for ``notification``."""

    return {
        "id": notification.id,
        "user_id": notification.user_id,
        "type": notification.type.value,
        "category": notification.category.value,
        "title": notification.title,
        "message": notification.message,
        "priority": notification.priority.value,
        "data": notification.data,
        "actions": [action.to_dict() for action in notification.actions],
        "read": notification.read,
        "read_at": notification.read_at.isoformat() if notification.read_at else None,
        "group_id": notification.group_id,
        "expires_at": notification.expires_at.isoformat()
        if notification.expires_at
        else None,
        "created_at": notification.created_at.isoformat()
        if notification.created_at
        else None,
    }


realtime_event_publisher = RealtimeEventPublisher(notification_manager)


__all__ = [
    "ALL_NOTIFICATIONS_READ_EVENT",
    "NOTIFICATIONS_READ_EVENT",
    "NOTIFICATION_DELETED_EVENT",
    "NOTIFICATION_EVENT",
    "NOTIFICATION_READ_EVENT",
    "RealtimeEventPublisher",
    "realtime_event_publisher",
    "serialize_notification",
]
