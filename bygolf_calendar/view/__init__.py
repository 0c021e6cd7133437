"""Calendar view engine: ranges, buckets, cell layout and the live marker."""

from .buckets import DayStats, bucket, day_stats
from .layout import BookingBlock, layout_cell
from .live import current_marker_offset
from .ranges import ResolvedRange, ViewMode, resolve_range

__all__ = [
    "DayStats",
    "bucket",
    "day_stats",
    "BookingBlock",
    "layout_cell",
    "current_marker_offset",
    "ResolvedRange",
    "ViewMode",
    "resolve_range",
]
