"""Background scheduler running the notification batch jobs."""

from __future__ import annotations

import logging
from typing import Callable

from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.orm import Session

from app.application.jobs import reap_expired_notifications, send_digests
from app.config import Settings, get_settings
from app.domain.entities import DigestFrequency
from app.infrastructure.database import SessionLocal
from app.utils import get_app_timezone

logger = logging.getLogger(__name__)

EXPIRY_REAPER_JOB_ID = "notifications_expiry_reaper"
DAILY_DIGEST_JOB_ID = "notifications_daily_digest"
WEEKLY_DIGEST_JOB_ID = "notifications_weekly_digest"


def run_expiry_reaper(session_factory: Callable[[], Session] = SessionLocal) -> None:
    session = session_factory()
    try:
        reap_expired_notifications(session)
    except Exception:
        session.rollback()
        logger.exception("Expiry reaper run failed")
    finally:
        session.close()


def run_digest(
    frequency: DigestFrequency,
    session_factory: Callable[[], Session] = SessionLocal,
) -> None:
    session = session_factory()
    try:
        send_digests(session, frequency)
    except Exception:
        session.rollback()
        logger.exception("%s digest run failed", frequency.value.capitalize())
    finally:
        session.close()


def build_scheduler(
    settings: Settings | None = None,
    *,
    session_factory: Callable[[], Session] = SessionLocal,
) -> BackgroundScheduler:
    """Return a scheduler with the reaper and both digest jobs registered.

    The scheduler is not started.
    """

    settings = settings or get_settings()
    scheduler = BackgroundScheduler(timezone=get_app_timezone())
    job_defaults = {"max_instances": 1, "coalesce": True, "replace_existing": True}

    scheduler.add_job(
        run_expiry_reaper,
        "cron",
        hour=settings.expiry_reaper_hour,
        minute=0,
        id=EXPIRY_REAPER_JOB_ID,
        kwargs={"session_factory": session_factory},
        **job_defaults,
    )
    scheduler.add_job(
        run_digest,
        "cron",
        hour=settings.daily_digest_hour,
        minute=0,
        id=DAILY_DIGEST_JOB_ID,
        args=[DigestFrequency.DAILY],
        kwargs={"session_factory": session_factory},
        **job_defaults,
    )
    scheduler.add_job(
        run_digest,
        "cron",
        day_of_week=settings.weekly_digest_day,
        hour=settings.weekly_digest_hour,
        minute=0,
        id=WEEKLY_DIGEST_JOB_ID,
        args=[DigestFrequency.WEEKLY],
        kwargs={"session_factory": session_factory},
        **job_defaults,
    )
    return scheduler


__all__ = [
    "DAILY_DIGEST_JOB_ID",
    "EXPIRY_REAPER_JOB_ID",
    "WEEKLY_DIGEST_JOB_ID",
    "build_scheduler",
    "run_digest",
    "run_expiry_reaper",
]
