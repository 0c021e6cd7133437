"""Place bookings inside the hour cells of a bay column."""

from datetime import datetime, time, timedelta, tzinfo
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel

from ..models.bay_option import BayOption, bay_option_label
from ..models.booking import Booking
from .dates import DEFAULT_TZ, format_time, local_date, to_local

FIRST_HOUR = 6
LAST_HOUR = 23
VISIBLE_HOURS = range(FIRST_HOUR, LAST_HOUR + 1)
MIN_HEIGHT_PERCENT = 5.0


class BookingBlock(BaseModel):
    """Geometry of one booking inside the hour row it starts in.

    Percentages are relative to a single hour row. Heights above 100 spill
    into the rows below.
    """

    booking: Booking
    hour: int
    top_percent: float
    height_percent: float
    start_label: str
    end_label: str
    option_label: Optional[str] = None

    @property
    def title(self) -> str:
        if self.option_label:
            return f"{self.booking.user.name} - {self.option_label}"
        return self.booking.user.name

    @property
    def time_range(self) -> str:
        return f"{self.start_label} - {self.end_label}"


def hour_bounds(day: datetime, hour: int, tz: Optional[tzinfo] = None):
    """Start and end instants of an hour row on a given day."""
    hour_start = datetime.combine(local_date(day, tz), time(hour), tzinfo=tz or DEFAULT_TZ)
    return hour_start, hour_start + timedelta(hours=1)


def _minute_of_day(dt: datetime) -> int:
    return dt.hour * 60 + dt.minute


def block_for(
    booking: Booking,
    hour: int,
    tz: Optional[tzinfo] = None,
    bay_options: Optional[Dict[int, BayOption]] = None,
) -> BookingBlock:
    start = to_local(booking.start, tz)
    end = to_local(booking.end, tz)
    # Minute-of-day arithmetic: a booking running past midnight comes out
    # zero or negative and falls back to the minimum height.
    duration = _minute_of_day(end) - _minute_of_day(start)

    return BookingBlock(
        booking=booking,
        hour=hour,
        top_percent=start.minute / 60 * 100,
        height_percent=max(duration / 60 * 100, MIN_HEIGHT_PERCENT),
        start_label=format_time(start, tz),
        end_label=format_time(end, tz),
        option_label=bay_option_label(booking.bay_option_id, bay_options or {}),
    )


def layout_cell(
    bookings: Iterable[Booking],
    day: datetime,
    hour: int,
    tz: Optional[tzinfo] = None,
    bay_options: Optional[Dict[int, BayOption]] = None,
) -> List[BookingBlock]:
    """Blocks for the bookings that start within one hour row.

    Bookings are drawn once, anchored to the row of their start time; rows
    they merely pass through get nothing.
    """
    hour_start, hour_end = hour_bounds(day, hour, tz)
    blocks = []
    for booking in bookings:
        start = to_local(booking.start, tz)
        if hour_start <= start < hour_end:
            blocks.append(block_for(booking, hour, tz, bay_options))
    return blocks


def layout_column(
    bookings: List[Booking],
    day: datetime,
    tz: Optional[tzinfo] = None,
    bay_options: Optional[Dict[int, BayOption]] = None,
) -> Dict[int, List[BookingBlock]]:
    """Lay out a whole bay column, one entry per visible hour."""
    return {
        hour: layout_cell(bookings, day, hour, tz, bay_options)
        for hour in VISIBLE_HOURS
    }
