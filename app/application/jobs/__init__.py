"""Scheduled batch jobs of the notification pipeline."""

from .digest_mailer import DigestRunSummary, send_digests
from .expiry_reaper import reap_expired_notifications

__all__ = ["DigestRunSummary", "reap_expired_notifications", "send_digests"]
