"""Utility helpers for reusable functionality."""

from .datetime import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    format_khmer_datetime,
    format_time_of_day,
    get_app_timezone,
    minute_of_day,
    now_in_app_naive_datetime,
    now_in_app_timezone,
    parse_time_of_day,
    resolve_timezone,
)

__all__ = [
    "ensure_app_naive_datetime",
    "ensure_app_timezone",
    "format_khmer_datetime",
    "format_time_of_day",
    "get_app_timezone",
    "minute_of_day",
    "now_in_app_naive_datetime",
    "now_in_app_timezone",
    "parse_time_of_day",
    "resolve_timezone",
]
