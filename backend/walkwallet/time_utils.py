from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")


def local_date(dt: datetime, tz_name: str) -> date:
    """Calendar day of a UTC-naive datetime as seen in tz_name."""
    return dt.replace(tzinfo=timezone.utc).astimezone(ZoneInfo(tz_name)).date()


def _local_midnight_utc(day: date, tz: ZoneInfo) -> datetime:
    local = datetime(day.year, day.month, day.day, tzinfo=tz)
    return local.astimezone(timezone.utc).replace(tzinfo=None)


def day_bounds(now: datetime, tz_name: str) -> tuple[datetime, datetime]:
    """
    [start_of_today, start_of_tomorrow) in UTC-naive, where "today" is the
    calendar day containing `now` (UTC-naive) in tz_name.
    """
    tz = ZoneInfo(tz_name)
    today = local_date(now, tz_name)
    return _local_midnight_utc(today, tz), _local_midnight_utc(today + timedelta(days=1), tz)


def month_bounds(now: datetime, tz_name: str) -> tuple[datetime, datetime]:
    """[start_of_month, start_of_next_month) in UTC-naive for tz_name."""
    tz = ZoneInfo(tz_name)
    today = local_date(now, tz_name)
    first = today.replace(day=1)
    if first.month == 12:
        next_first = first.replace(year=first.year + 1, month=1)
    else:
        next_first = first.replace(month=first.month + 1)
    return _local_midnight_utc(first, tz), _local_midnight_utc(next_first, tz)
