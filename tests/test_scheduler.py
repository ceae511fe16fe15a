"""Tests for the background job registration."""

from datetime import timedelta

from apscheduler.triggers.cron import CronTrigger

from app.config import get_settings
from app.domain.entities import DigestFrequency, Notification, NotificationType
from app.infrastructure.models import NotificationModel
from app.infrastructure.repositories import NotificationRepository
from app.infrastructure.scheduler import (
    DAILY_DIGEST_JOB_ID,
    EXPIRY_REAPER_JOB_ID,
    WEEKLY_DIGEST_JOB_ID,
    build_scheduler,
    run_digest,
    run_expiry_reaper,
)
from app.utils import now_in_app_timezone


def test_scheduler_registers_the_three_jobs(session_factory):
    scheduler = build_scheduler(get_settings(), session_factory=session_factory)

    jobs = {job.id: job for job in scheduler.get_jobs()}

    assert set(jobs) == {EXPIRY_REAPER_JOB_ID, DAILY_DIGEST_JOB_ID, WEEKLY_DIGEST_JOB_ID}
    assert all(isinstance(job.trigger, CronTrigger) for job in jobs.values())
    assert jobs[DAILY_DIGEST_JOB_ID].args == (DigestFrequency.DAILY,)
    assert jobs[WEEKLY_DIGEST_JOB_ID].args == (DigestFrequency.WEEKLY,)
    weekly_fields = {field.name: str(field) for field in jobs[WEEKLY_DIGEST_JOB_ID].trigger.fields}
    assert weekly_fields["day_of_week"] == "mon"
    assert weekly_fields["hour"] == "8"
    reaper_fields = {field.name: str(field) for field in jobs[EXPIRY_REAPER_JOB_ID].trigger.fields}
    assert reaper_fields["hour"] == "0"
    assert reaper_fields["minute"] == "0"


def test_reaper_job_removes_expired_rows(session, session_factory, make_user):
    user = make_user()
    NotificationRepository(session).create(
        Notification(
            id=None,
            user_id=user.id,
            type=NotificationType.SYSTEM_ALERT,
            title="Maintenance",
            message="Tonight",
            expires_at=now_in_app_timezone() - timedelta(hours=1),
        )
    )

    run_expiry_reaper(session_factory)

    session.expire_all()
    assert session.query(NotificationModel).count() == 0


def test_failing_job_is_logged_not_raised(caplog):
    class BrokenSession:
        def rollback(self):
            pass

        def close(self):
            pass

        def query(self, *args):
            raise RuntimeError("database unavailable")

    with caplog.at_level("ERROR"):
        run_digest(DigestFrequency.DAILY, session_factory=BrokenSession)

    assert "Daily digest run failed" in caplog.text
