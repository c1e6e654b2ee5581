"""
Calendar-day normalization helpers.

Stored log timestamps may carry a time-of-day component and an offset that
differs from the user's zone, so every day-level comparison goes through these
helpers instead of comparing raw timestamps.

Typical usage:
    tz = config.tz
    day = normalize_to_calendar_day(entry.date, tz)
    start, end = day_boundaries(day, tz)
    logs = store.list_range(user_id, start, end)
"""
import calendar
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional, Tuple, Union

Timestamp = Union[datetime, date]


def to_utc(value: datetime) -> datetime:
    """
    Convert a timestamp to an aware UTC datetime.

    Naive datetimes are interpreted as UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def normalize_to_calendar_day(value: Timestamp, tz: tzinfo) -> date:
    """
    Get the calendar day a timestamp falls on in the given timezone.

    Args:
        value: Aware or naive-UTC datetime, or a plain date
        tz: Reference timezone

    Returns:
        The local calendar day

    Example:
        >>> normalize_to_calendar_day(datetime(2026, 2, 16, 21, 0, tzinfo=timezone.utc), ZoneInfo("Europe/Moscow"))
        datetime.date(2026, 2, 17)
    """
    if not isinstance(value, datetime):
        return value
    return to_utc(value).astimezone(tz).date()


def day_boundaries(value: Timestamp, tz: tzinfo) -> Tuple[datetime, datetime]:
    """
    Get the half-open [start, end) range covering a local calendar day.

    The end is the next day's local midnight rather than start + 24 hours, so
    days with a DST transition are covered exactly.

    Args:
        value: Day or timestamp to get boundaries for
        tz: Reference timezone

    Returns:
        Tuple of aware (start, end) datetimes
    """
    day = normalize_to_calendar_day(value, tz)
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return start, end


def range_boundaries(start_day: Timestamp, end_day: Timestamp, tz: tzinfo) -> Tuple[datetime, datetime]:
    """Get the half-open range from the start of start_day to the end of end_day."""
    range_start, _ = day_boundaries(start_day, tz)
    _, range_end = day_boundaries(end_day, tz)
    return range_start, range_end


def day_storage_key(value: Timestamp, tz: tzinfo) -> str:
    """ISO formatted local day, used as a per-day map key."""
    return normalize_to_calendar_day(value, tz).isoformat()


def today_in(tz: tzinfo, now: Optional[datetime] = None) -> date:
    """Get the current calendar day in the given timezone."""
    if now is None:
        now = datetime.now(timezone.utc)
    return normalize_to_calendar_day(now, tz)


def same_calendar_day(a: Optional[date], b: Optional[date]) -> bool:
    """Check if two days are the same; an unset day never matches."""
    if a is None or b is None:
        return False
    return a == b


def between_inclusive(day: date, start: Optional[date], end: Optional[date]) -> bool:
    """
    Check if a day lies within [start, end].

    Returns False if either bound is unset.
    """
    if start is None or end is None:
        return False
    return start <= day <= end


def add_months(day: date, months: int) -> date:
    """
    Shift a day by whole months, clamping to the last day of the target month.

    Example:
        >>> add_months(date(2026, 1, 31), 1)
        datetime.date(2026, 2, 28)
    """
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))
