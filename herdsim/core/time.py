from __future__ import annotations
from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo
# herdsim/core/time.py
US_PER_MS = 1_000
US_PER_SECOND = 1_000_000
US_PER_MINUTE = 60_000_000
US_PER_HOUR = 3_600_000_000
US_PER_DAY = 86_400_000_000

DAY_HOURS = 24


def resolve_tz(name: str | None) -> tzinfo:
    if not name or name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def to_us(dt: datetime) -> int:
    """
    datetime -> epoch microseconds.

    Naive datetimes are treated as UTC.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    delta = dt - datetime(1970, 1, 1, tzinfo=timezone.utc)
    return (delta.days * 86_400 + delta.seconds) * US_PER_SECOND + delta.microseconds


def from_us(ts_us: int, tz: tzinfo = timezone.utc) -> datetime:
    seconds, micros = divmod(ts_us, US_PER_SECOND)
    return datetime.fromtimestamp(seconds, tz).replace(microsecond=micros)


def with_time_of_day(anchor_us: int, wall: datetime, tz: tzinfo) -> int:
    """
    Keep anchor_us's calendar date (in tz) and substitute wall's
    hour / minute / second / microsecond.
    """
    anchor = from_us(anchor_us, tz)
    local_wall = wall.astimezone(tz) if wall.tzinfo is not None else wall
    candidate = datetime(
        anchor.year, anchor.month, anchor.day,
        local_wall.hour, local_wall.minute, local_wall.second, local_wall.microsecond,
        tzinfo=tz,
    )
    return to_us(candidate)
