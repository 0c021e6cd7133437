"""Position of the current-time marker on the hour grid."""

from datetime import datetime, tzinfo
from typing import Optional

from .dates import DateLike, is_same_day, to_local
from .layout import FIRST_HOUR, LAST_HOUR

DEFAULT_ROW_HEIGHT = 40


def current_marker_offset(
    day: DateLike,
    now: datetime,
    row_height: float = DEFAULT_ROW_HEIGHT,
    tz: Optional[tzinfo] = None,
) -> Optional[float]:
    """Vertical offset of the now-marker within a day column.

    Returns None when day is not today or the current hour is outside the
    drawn rows (06:00 through the 23:00 row).
    """
    now = to_local(now, tz)
    if not is_same_day(day, now, tz):
        return None
    if now.hour < FIRST_HOUR or now.hour > LAST_HOUR:
        return None
    return (now.hour - FIRST_HOUR) * row_height + (now.minute / 60) * row_height


def current_marker_row(
    day: DateLike, now: datetime, tz: Optional[tzinfo] = None
) -> Optional[int]:
    """Hour row containing the marker, for hosts that draw whole rows."""
    offset = current_marker_offset(day, now, row_height=1, tz=tz)
    if offset is None:
        return None
    return FIRST_HOUR + int(offset)
