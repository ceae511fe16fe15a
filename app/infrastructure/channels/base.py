"""Common interface shared by the delivery channels."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable

import anyio

from app.config import get_settings
from app.domain.entities import ChannelKind, DeliveryOutcome, Notification, User

logger = logging.getLogger(__name__)


class NotificationChannel(ABC):
    """A transport able to deliver one notification to one user.

    Implementations report problems through the returned
    :class:`DeliveryOutcome`; exceptions that escape are treated as a
    failed send by the caller.
    """

    kind: ChannelKind

    def __init__(self, timeout_seconds: float | None = None) -> None:
        self._timeout_seconds = timeout_seconds

    @property
    def timeout_seconds(self) -> float:
        if self._timeout_seconds is not None:
            return self._timeout_seconds
        return get_settings().channel_timeout_seconds

    @abstractmethod
    async def deliver(self, user: User, notification: Notification) -> DeliveryOutcome:
        """Deliver ``notification`` to ``user``."""

    async def run_blocking(self, func: Callable[..., Any], *args: Any) -> Any:
        """Run a blocking SDK call in a worker thread under the channel timeout.

        Raises :class:`TimeoutError` when the call does not finish in time.
        """

        with anyio.fail_after(self.timeout_seconds):
            return await anyio.to_thread.run_sync(func, *args, abandon_on_cancel=True)


__all__ = ["NotificationChannel"]
