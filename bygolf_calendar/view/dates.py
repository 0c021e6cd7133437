"""Date helpers working in the venue's local timezone.

Calendar days are represented as timezone-aware datetimes at local midnight.
Naive datetimes are treated as wall-clock time in the given timezone, which is
how the booking API reports booking times.
"""

from datetime import date, datetime, time, timedelta, tzinfo
from typing import List, Optional, Union
from zoneinfo import ZoneInfo

DEFAULT_TZ = ZoneInfo("Europe/Stockholm")

DateLike = Union[date, datetime]


def to_local(dt: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """Express an instant in local time, attaching the zone to naive values."""
    tz = tz or DEFAULT_TZ
    if dt.tzinfo is None:
        return dt.replace(tzinfo=tz)
    return dt.astimezone(tz)


def local_date(value: DateLike, tz: Optional[tzinfo] = None) -> date:
    """Get the local calendar date of a date or datetime."""
    if isinstance(value, datetime):
        return to_local(value, tz).date()
    return value


def start_of_day(value: DateLike, tz: Optional[tzinfo] = None) -> datetime:
    return datetime.combine(local_date(value, tz), time.min, tzinfo=tz or DEFAULT_TZ)


def end_of_day(value: DateLike, tz: Optional[tzinfo] = None) -> datetime:
    return datetime.combine(local_date(value, tz), time.max, tzinfo=tz or DEFAULT_TZ)


def add_days(value: DateLike, days: int) -> DateLike:
    """Shift by whole calendar days, keeping the wall-clock time."""
    return value + timedelta(days=days)


def week_start(value: DateLike, tz: Optional[tzinfo] = None) -> DateLike:
    """Get the Monday of the week containing value (same time of day)."""
    return value - timedelta(days=local_date(value, tz).weekday())


def days_in_range(
    start: DateLike, end: datetime, tz: Optional[tzinfo] = None
) -> List[datetime]:
    """List every calendar day from start to end inclusive, at local midnight."""
    days = []
    current = start_of_day(start, tz)
    end = to_local(end, tz)
    while current <= end:
        days.append(current)
        current = start_of_day(local_date(current, tz) + timedelta(days=1), tz)
    return days


def day_key(value: DateLike, tz: Optional[tzinfo] = None) -> str:
    """Format a day as YYYY-MM-DD."""
    return local_date(value, tz).isoformat()


def format_time(dt: datetime, tz: Optional[tzinfo] = None) -> str:
    """Format the local time of an instant as HH:MM (24 hour)."""
    return to_local(dt, tz).strftime("%H:%M")


def is_same_day(a: DateLike, b: DateLike, tz: Optional[tzinfo] = None) -> bool:
    return local_date(a, tz) == local_date(b, tz)
