"""Summary period boundaries."""
from datetime import datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from app.models.command import SummaryPeriod


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to the naive UTC form stored in MongoDB."""
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def period_bounds(
    period: SummaryPeriod,
    tz_name: str = "UTC",
    now: Optional[datetime] = None,
) -> tuple[datetime, datetime]:
    """
    Compute the [start, end] range of a summary period.

    Boundaries are taken in the local time zone and returned as naive UTC.

    - today: local midnight to the last microsecond of the day
    - week: Monday 00:00 of the current week to now
    - month: the 1st of the month 00:00 to now

    Args:
        period: Summary period
        tz_name: IANA time zone name used for "local" day boundaries
        now: Current time (defaults to the current time); naive values are
            taken as UTC

    Returns:
        Tuple of (period_start, period_end) as naive UTC datetimes
    """
    tz = ZoneInfo(tz_name)
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    local_now = now.astimezone(tz)
    day_start = datetime.combine(local_now.date(), time.min, tzinfo=tz)

    if period == SummaryPeriod.WEEK:
        start = day_start - timedelta(days=local_now.weekday())
        end = local_now
    elif period == SummaryPeriod.MONTH:
        start = day_start.replace(day=1)
        end = local_now
    else:
        start = day_start
        end = datetime.combine(local_now.date(), time.max, tzinfo=tz)

    return to_naive_utc(start), to_naive_utc(end)


def utcnow() -> datetime:
    """Current time as naive UTC, the form timestamps are stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
