"""Resolve fetch and display windows from a view mode and an anchor date."""

from datetime import date, datetime, tzinfo
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

from .dates import (
    DateLike,
    add_days,
    days_in_range,
    end_of_day,
    local_date,
    start_of_day,
    week_start,
)


class ViewMode(str, Enum):
    DAY = "day"
    THREE_DAYS = "3days"
    WEEK = "week"


class ResolvedRange(BaseModel):
    """Concrete window for one view: what to fetch and which days to draw."""

    fetch_start: datetime
    fetch_end: datetime
    display_days: List[datetime]

    class Config:
        frozen = True

    @property
    def day_count(self) -> int:
        return len(self.display_days)


def resolve_range(
    mode: ViewMode,
    anchor: DateLike,
    explicit_end: Optional[DateLike] = None,
    tz: Optional[tzinfo] = None,
) -> ResolvedRange:
    """Compute the fetch window and display days for a view.

    An explicit end date only applies to the multi-day modes, and only when it
    lies after the computed end; it can widen the window but never narrow it.
    """
    mode = ViewMode(mode)
    anchor_day = local_date(anchor, tz)

    if mode is ViewMode.DAY:
        fetch_start = start_of_day(anchor_day, tz)
        fetch_end = end_of_day(anchor_day, tz)
    elif mode is ViewMode.THREE_DAYS:
        fetch_start = start_of_day(anchor_day, tz)
        fetch_end = end_of_day(add_days(anchor_day, 2), tz)
    else:
        monday = week_start(anchor_day)
        fetch_start = start_of_day(monday, tz)
        fetch_end = end_of_day(add_days(monday, 6), tz)

    if mode is not ViewMode.DAY and explicit_end is not None:
        widened = end_of_day(explicit_end, tz)
        if widened > fetch_end:
            fetch_end = widened

    return ResolvedRange(
        fetch_start=fetch_start,
        fetch_end=fetch_end,
        display_days=days_in_range(fetch_start, fetch_end, tz),
    )


def default_end_for_mode(mode: ViewMode, anchor: DateLike, tz: Optional[tzinfo] = None) -> date:
    """End date a view falls back to whenever its mode or anchor changes."""
    mode = ViewMode(mode)
    anchor_day = local_date(anchor, tz)
    if mode is ViewMode.DAY:
        return anchor_day
    if mode is ViewMode.THREE_DAYS:
        return add_days(anchor_day, 2)
    return add_days(week_start(anchor_day), 6)
