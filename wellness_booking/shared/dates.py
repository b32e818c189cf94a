"""Timestamp helpers; stored timestamps are UTC ISO-8601 strings with millisecond precision"""

from datetime import datetime, timedelta, timezone
from typing import Callable
from zoneinfo import ZoneInfo

from ..config import BUSINESS_TIMEZONE

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    """Serialize an aware datetime the way stored documents expect (2026-10-19T08:30:00.000+00:00)"""
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds")


def add_days_iso(value: datetime, days: int) -> str:
    return to_iso(value + timedelta(days=days))


def month_bounds(now: datetime, tz_name: str = BUSINESS_TIMEZONE) -> tuple[str, str]:
    """
    Return the first and last instant of the month containing `now`, in the business
    timezone, serialized for range comparison against stored createdAt values.
    """
    tz = ZoneInfo(tz_name)
    local = now.astimezone(tz)
    start = datetime(local.year, local.month, 1, tzinfo=tz)
    if local.month == 12:
        next_month = datetime(local.year + 1, 1, 1, tzinfo=tz)
    else:
        next_month = datetime(local.year, local.month + 1, 1, tzinfo=tz)
    end = next_month - timedelta(milliseconds=1)
    return to_iso(start), to_iso(end)


def local_year_month(now: datetime, tz_name: str = BUSINESS_TIMEZONE) -> tuple[str, str]:
    """Two-digit year and month of `now` in the business timezone"""
    local = now.astimezone(ZoneInfo(tz_name))
    return f"{local.year % 100:02d}", f"{local.month:02d}"
