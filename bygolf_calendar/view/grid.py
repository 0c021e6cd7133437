"""Assemble the full calendar grid from bookings and a resolved range."""

from datetime import datetime, tzinfo
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel

from ..models.bay_option import BayOption
from ..models.booking import Booking
from .buckets import BAYS, DayStats, all_day_stats, bucket
from .dates import day_key
from .layout import BookingBlock, layout_column
from .live import DEFAULT_ROW_HEIGHT, current_marker_offset, current_marker_row
from .ranges import ResolvedRange


class DayColumn(BaseModel):
    """Everything needed to draw one day: stats, bay columns, now-marker."""

    day: datetime
    key: str
    stats: DayStats
    bays: Dict[str, Dict[int, List[BookingBlock]]]
    marker_offset: Optional[float] = None
    marker_row: Optional[int] = None


class CalendarGrid(BaseModel):
    fetch_start: datetime
    fetch_end: datetime
    days: List[DayColumn]
    row_height: float = DEFAULT_ROW_HEIGHT

    @property
    def booking_count(self) -> int:
        return sum(column.stats.count for column in self.days)


def build_grid(
    bookings: Sequence[Booking],
    resolved: ResolvedRange,
    now: datetime,
    bay_options: Optional[Dict[int, BayOption]] = None,
    tz: Optional[tzinfo] = None,
    row_height: float = DEFAULT_ROW_HEIGHT,
    resources: Sequence[str] = BAYS,
) -> CalendarGrid:
    """Run bucketing, stats, cell layout and the marker for every shown day."""
    buckets = bucket(bookings, resolved.display_days, resources, tz)
    stats = all_day_stats(bookings, resolved.display_days, tz)

    columns = []
    for day in resolved.display_days:
        key = day_key(day, tz)
        columns.append(
            DayColumn(
                day=day,
                key=key,
                stats=stats[key],
                bays={
                    resource: layout_column(buckets[key][resource], day, tz, bay_options)
                    for resource in resources
                },
                marker_offset=current_marker_offset(day, now, row_height, tz),
                marker_row=current_marker_row(day, now, tz),
            )
        )

    return CalendarGrid(
        fetch_start=resolved.fetch_start,
        fetch_end=resolved.fetch_end,
        days=columns,
        row_height=row_height,
    )
