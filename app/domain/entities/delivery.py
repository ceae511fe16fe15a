"""Transient results produced while delivering a notification."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ChannelKind(str, Enum):
    PUSH = "push"
    EMAIL = "email"
    SMS = "sms"


@dataclass(frozen=True)
class DeliveryOutcome:
    """Result of one channel send for one recipient.

    ``skipped`` marks silent skips (no contact information, channel not
    configured); those are neither successes nor errors.
    """

    channel: ChannelKind
    succeeded: bool
    error: str | None = None
    skipped: bool = False

    @classmethod
    def success(cls, channel: ChannelKind) -> "DeliveryOutcome":
        return cls(channel=channel, succeeded=True)

    @classmethod
    def failure(cls, channel: ChannelKind, error: str) -> "DeliveryOutcome":
        return cls(channel=channel, succeeded=False, error=error)

    @classmethod
    def skip(cls, channel: ChannelKind, reason: str) -> "DeliveryOutcome":
        return cls(channel=channel, succeeded=False, error=reason, skipped=True)


@dataclass
class DeliveryReport:
    """Everything the delivery policy did for a single recipient."""

    suppressed: bool = False
    outcomes: list[DeliveryOutcome] = field(default_factory=list)

    @property
    def channels_attempted(self) -> list[ChannelKind]:
        return [outcome.channel for outcome in self.outcomes if not outcome.skipped]

    @property
    def failed_channels(self) -> list[ChannelKind]:
        return [
            outcome.channel
            for outcome in self.outcomes
            if not outcome.succeeded and not outcome.skipped
        ]


__all__ = ["ChannelKind", "DeliveryOutcome", "DeliveryReport"]
