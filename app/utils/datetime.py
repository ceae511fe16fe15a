"""Helpers for working with timezone-aware datetimes."""

from __future__ import annotations

import re
from datetime import datetime, time, timedelta, timezone, tzinfo
from functools import lru_cache
from typing import Final

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.config import get_settings

_DEFAULT_TIMEZONE: Final[str] = "Asia/Phnom_Penh"
_OFFSET_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?:UTC|GMT)(?P<sign>[+-])(?P<hours>\d{1,2})(?::?(?P<minutes>\d{2}))?$",
    re.IGNORECASE,
)
_TIME_OF_DAY_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?P<hours>\d{1,2}):(?P<minutes>\d{2})(?::\d{2})?$"
)


@lru_cache(maxsize=1)
def get_app_timezone() -> tzinfo:
    """Return the configured application timezone.

    The timezone is resolved using the ``APP_TIMEZONE`` environment variable (via
    the ``Settings`` class). If the provided value cannot be resolved, the
    default ``Asia/Phnom_Penh`` timezone is used as a fallback.
    """

    settings = get_settings()
    tz_name = (settings.app_timezone or "").strip() or _DEFAULT_TIMEZONE
    return resolve_timezone(tz_name) or ZoneInfo(_DEFAULT_TIMEZONE)


def now_in_app_timezone() -> datetime:
    """Return the current time localized to the configured timezone."""

    return datetime.now(tz=get_app_timezone())


def now_in_app_naive_datetime() -> datetime:
    """Return the current localized time without attaching ``tzinfo``."""

    localized = ensure_app_naive_datetime(now_in_app_timezone())
    if localized is None:  # pragma: no cover
        msg = "Failed to compute the application naive datetime"
        raise RuntimeError(msg)
    return localized


def ensure_app_timezone(value: datetime | None) -> datetime | None:
    """Normalize ``value`` so it is expressed in the configured timezone."""

    if value is None:
        return None

    tz = get_app_timezone()
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def ensure_app_naive_datetime(value: datetime | None) -> datetime | None:
    """Return ``value`` localized to the app timezone but without ``tzinfo``.

    Columns are declared as plain ``DATETIME``; we keep aware datetimes in the
    domain layer and store the localized (naive) representation.
    """

    localized = ensure_app_timezone(value)
    if localized is None:
        return None
    return localized.replace(tzinfo=None)


def resolve_timezone(tz_name: str | None) -> tzinfo | None:
    """Resolve ``tz_name`` into a ``tzinfo`` or ``None`` when it is unknown.

    Accepts IANA names (``Asia/Phnom_Penh``) and fixed offsets such as
    ``UTC+07:00``.
    """

    name = (tz_name or "").strip()
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        match = _OFFSET_PATTERN.match(name)
        if match:
            sign = -1 if match.group("sign") == "-" else 1
            hours = int(match.group("hours"))
            minutes = int(match.group("minutes") or 0)
            offset = timedelta(hours=hours, minutes=minutes)
            return timezone(sign * offset)
    return None


def parse_time_of_day(value: str | time | None) -> time | None:
    """Parse ``HH:MM`` (optionally ``HH:MM:SS``) into a :class:`time`."""

    if value is None or isinstance(value, time):
        return value
    text = value.strip()
    if not text:
        return None
    match = _TIME_OF_DAY_PATTERN.match(text)
    if not match:
        raise ValueError(f"Invalid time of day '{value}', expected HH:MM")
    hours = int(match.group("hours"))
    minutes = int(match.group("minutes"))
    if hours > 23 or minutes > 59:
        raise ValueError(f"Invalid time of day '{value}', expected HH:MM")
    return time(hour=hours, minute=minutes)


def format_time_of_day(value: time | None) -> str | None:
    return value.strftime("%H:%M") if value is not None else None


def minute_of_day(value: datetime | time) -> int:
    """Return the number of minutes elapsed since midnight for ``value``."""

    return value.hour * 60 + value.minute


_KHMER_MONTHS: Final[tuple[str, ...]] = (
    "មករា",
    "កុម្ភៈ",
    "មីនា",
    "មេសា",
    "ឧសភា",
    "មិថុនា",
    "កក្កដា",
    "សីហា",
    "កញ្ញា",
    "តុលា",
    "វិច្ឆិកា",
    "ធ្នូ",
)
_KHMER_MORNING: Final[str] = "ព្រឹក"
_KHMER_EVENING: Final[str] = "ល្ងាច"


def format_khmer_datetime(value: datetime) -> str:
    """Format ``value`` as a Khmer date and 12-hour time.

    ``datetime(2024, 3, 5, 14, 7)`` becomes ``"5 មីនា 2024, 2:07 ល្ងាច"``.
    The value is rendered in its own timezone.
    """

    hour = value.hour % 12 or 12
    period = _KHMER_MORNING if value.hour < 12 else _KHMER_EVENING
    month = _KHMER_MONTHS[value.month - 1]
    return f"{value.day} {month} {value.year}, {hour}:{value.minute:02d} {period}"
