"""Batch job deleting notifications whose expiry has passed."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from app.infrastructure.repositories import NotificationRepository
from app.utils import now_in_app_timezone

logger = logging.getLogger(__name__)


def reap_expired_notifications(session: Session, *, now: datetime | None = None) -> int:
    """Delete notifications with ``expires_at`` before ``now``; return how many."""

    cutoff = now or now_in_app_timezone()
    deleted = NotificationRepository(session).delete_expired(cutoff)
    logger.info("Cleaned up %d expired notifications", deleted)
    return deleted


__all__ = ["reap_expired_notifications"]
