"""Tests for the per-recipient delivery policy."""

import time
from datetime import datetime
from zoneinfo import ZoneInfo

import anyio
import pytest

from app.application.use_cases.notifications import DeliveryPolicy, update_preferences
from app.domain.entities import ChannelKind, DeliveryOutcome, Notification, NotificationType
from app.infrastructure.channels import NotificationChannel
from app.infrastructure.repositories import NotificationRepository
from conftest import RecordingChannel

pytestmark = pytest.mark.anyio

NOON = datetime(2024, 5, 10, 12, 0, tzinfo=ZoneInfo("Asia/Phnom_Penh"))


class SlowChannel(NotificationChannel):
    kind = ChannelKind.EMAIL

    async def deliver(self, user, notification):
        return await self.run_blocking(time.sleep, 0.5)


def _policy(session_factory, *, email=None, sms=None, realtime=None, clock=lambda: NOON):
    channels = {
        "realtime": realtime or RecordingChannel(ChannelKind.PUSH),
        "email": email or RecordingChannel(ChannelKind.EMAIL),
        "sms": sms or RecordingChannel(ChannelKind.SMS),
    }
    return DeliveryPolicy(session_factory, clock=clock, **channels), channels


def _store(session, user, kind=NotificationType.APPROVAL_REQUIRED) -> Notification:
    return NotificationRepository(session).create(
        Notification(id=None, user_id=user.id, type=kind, title="T", message="M")
    )


async def test_email_failure_does_not_stop_sms(session, session_factory, make_user):
    user = make_user(phone_number="012345678")
    update_preferences(session, user.id, {"sms": {"enabled": True, "types": ["approval_required"]}})
    notification = _store(session, user)
    policy, channels = _policy(
        session_factory, email=RecordingChannel(ChannelKind.EMAIL, error=RuntimeError("smtp down"))
    )

    report = await policy.deliver(notification, user)

    assert report.suppressed is False
    assert DeliveryOutcome.failure(ChannelKind.EMAIL, "smtp down") in report.outcomes
    assert DeliveryOutcome.success(ChannelKind.SMS) in report.outcomes
    assert report.failed_channels == [ChannelKind.EMAIL]
    assert len(channels["sms"].deliveries) == 1
    assert NotificationRepository(session).get_for_user(notification.id, user_id=user.id)


async def test_quiet_hours_suppress_every_channel(session, session_factory, make_user):
    user = make_user()
    update_preferences(session, user.id, {"quiet_hours_start": "09:00", "quiet_hours_end": "17:00"})
    notification = _store(session, user)
    policy, channels = _policy(session_factory)

    report = await policy.deliver(notification, user)

    assert report.suppressed is True
    assert report.outcomes == []
    assert all(not channel.deliveries for channel in channels.values())


async def test_push_always_fires_outside_quiet_hours(session, session_factory, make_user):
    user = make_user()
    notification = _store(session, user, NotificationType.LOGIN_ALERT)
    policy, channels = _policy(session_factory)

    report = await policy.deliver(notification, user)

    assert report.channels_attempted == [ChannelKind.PUSH]
    assert len(channels["realtime"].deliveries) == 1
    assert channels["email"].deliveries == []
    assert channels["sms"].deliveries == []


async def test_digest_frequency_skips_immediate_email(session, session_factory, make_user):
    user = make_user()
    update_preferences(
        session,
        user.id,
        {"email": {"enabled": True, "frequency": "daily", "types": ["approval_required"]}},
    )
    notification = _store(session, user)
    policy, channels = _policy(session_factory)

    await policy.deliver(notification, user)

    assert channels["email"].deliveries == []


async def test_slow_channel_times_out(session, session_factory, make_user):
    user = make_user()
    notification = _store(session, user)
    slow = SlowChannel(timeout_seconds=0.05)
    policy, _ = _policy(session_factory, email=slow)

    with anyio.fail_after(5):
        report = await policy.deliver(notification, user)

    assert DeliveryOutcome.failure(ChannelKind.EMAIL, "timed out") in report.outcomes
