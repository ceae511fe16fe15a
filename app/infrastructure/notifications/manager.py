"""Connection management helpers for notification websockets."""

from __future__ import annotations

import logging
import threading
import uuid
from collections import defaultdict
from typing import Any, DefaultDict, Iterable

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class NotificationConnectionManager:
    """Track live websocket connections grouped by user.

    A user may hold several connections at once (one per tab or device).
    The registry is shared between the event loop and worker threads, so
    every access to the map goes through a lock.
    """

    def __init__(self) -> None:
        self._connections: DefaultDict[int, dict[str, WebSocket]] = defaultdict(dict)
        self._lock = threading.Lock()

    async def connect(self, user_id: int, websocket: WebSocket) -> str:
        """Accept ``websocket`` and register it for ``user_id``.

        Returns the identifier assigned to the connection.
        """

        await websocket.accept()
        connection_id = uuid.uuid4().hex
        with self._lock:
            self._connections[user_id][connection_id] = websocket
        logger.info("User %s connected (%s)", user_id, connection_id)
        return connection_id

    def disconnect(self, user_id: int, connection_id: str) -> None:
        """Remove the connection; drop the user once no connection remains."""

        with self._lock:
            connections = self._connections.get(user_id)
            if connections is None:
                return
            connections.pop(connection_id, None)
            if not connections:
                self._connections.pop(user_id, None)
        logger.info("User %s disconnected (%s)", user_id, connection_id)

    async def send_to_user(self, user_id: int, event: str, payload: Any) -> int:
        """Send ``{"type": event, "data": payload}`` to every connection of ``user_id``.

        Connections that fail to receive the message are disconnected. Returns
        the number of connections that received it.
        """

        with self._lock:
            connections = list(self._connections.get(user_id, {}).items())
        message = {"type": event, "data": payload}
        delivered = 0
        for connection_id, connection in connections:
            try:
                await connection.send_json(message)
            except Exception:
                logger.warning(
                    "Dropping connection %s of user %s after failed send",
                    connection_id,
                    user_id,
                )
                self.disconnect(user_id, connection_id)
            else:
                delivered += 1
        return delivered

    async def send_to_users(self, user_ids: Iterable[int], event: str, payload: Any) -> None:
        seen: set[int] = set()
        for user_id in user_ids:
            if user_id in seen:
                continue
            seen.add(user_id)
            await self.send_to_user(user_id, event, payload)

    def is_user_connected(self, user_id: int) -> bool:
        with self._lock:
            return bool(self._connections.get(user_id))

    def connected_user_count(self) -> int:
        with self._lock:
            return len(self._connections)

    def connection_count(self, user_id: int) -> int:
        with self._lock:
            return len(self._connections.get(user_id, {}))


notification_manager = NotificationConnectionManager()


__all__ = ["NotificationConnectionManager", "notification_manager"]
