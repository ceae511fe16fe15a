"""Delivery channels used by the notification pipeline."""

from .base import NotificationChannel
from .email import EmailChannel
from .realtime import RealtimePushChannel
from .sms import SmsChannel

__all__ = [
    "EmailChannel",
    "NotificationChannel",
    "RealtimePushChannel",
    "SmsChannel",
]
