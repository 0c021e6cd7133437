"""Assign bookings to day/bay buckets and compute per-day statistics."""

import logging
from datetime import datetime, tzinfo
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional, Sequence

from pydantic import BaseModel

from ..models.booking import Booking
from .dates import day_key, end_of_day, start_of_day, to_local


logger = logging.getLogger(__name__)

BAYS = ("1", "2")

DayBuckets = Dict[str, Dict[str, List[Booking]]]


class DayStats(BaseModel):
    """Aggregate statistics for one displayed day."""

    count: int = 0
    total_hours: float = 0.0

    @property
    def summary(self) -> str:
        noun = "booking" if self.count == 1 else "bookings"
        return f"{self.count} {noun} • {self.total_hours}h"


def overlaps_day(
    booking: Booking, day_start: datetime, day_end: datetime, tz: Optional[tzinfo] = None
) -> bool:
    """Inclusive overlap test against a day's closed [start, end] boundaries.

    A booking ending exactly at midnight still counts for the next day.
    """
    return (
        to_local(booking.start, tz) <= day_end
        and to_local(booking.end, tz) >= day_start
    )


def round_tenths(value: float) -> float:
    """Round to one decimal, halves away from zero."""
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def bucket(
    bookings: Iterable[Booking],
    display_days: Sequence[datetime],
    resources: Sequence[str] = BAYS,
    tz: Optional[tzinfo] = None,
) -> DayBuckets:
    """Group bookings by day key and bay.

    A booking is added to every displayed day it overlaps; multi-day bookings
    are repeated, not split.
    """
    buckets: DayBuckets = {
        day_key(day, tz): {resource: [] for resource in resources}
        for day in display_days
    }
    bounds = [
        (day_key(day, tz), start_of_day(day, tz), end_of_day(day, tz))
        for day in display_days
    ]

    for booking in bookings:
        if booking.bay_ref not in resources:
            logger.debug(
                f"Skipping booking {booking.id} for unknown bay {booking.bay_ref!r}"
            )
            continue
        for key, day_start, day_end in bounds:
            if overlaps_day(booking, day_start, day_end, tz):
                buckets[key][booking.bay_ref].append(booking)

    return buckets


def day_stats(
    bookings: Iterable[Booking], day: datetime, tz: Optional[tzinfo] = None
) -> DayStats:
    """Count the bookings touching a day and the hours they occupy within it."""
    day_start = start_of_day(day, tz)
    day_end = end_of_day(day, tz)

    count = 0
    total_seconds = 0.0
    for booking in bookings:
        if not overlaps_day(booking, day_start, day_end, tz):
            continue
        count += 1
        overlap_start = max(to_local(booking.start, tz), day_start)
        overlap_end = min(to_local(booking.end, tz), day_end)
        total_seconds += (overlap_end - overlap_start).total_seconds()

    return DayStats(count=count, total_hours=round_tenths(total_seconds / 3600))


def all_day_stats(
    bookings: Sequence[Booking],
    display_days: Sequence[datetime],
    tz: Optional[tzinfo] = None,
) -> Dict[str, DayStats]:
    return {day_key(day, tz): day_stats(bookings, day, tz) for day in display_days}
