"""BYGOLF Calendar - terminal calendar for BYGOLF bay bookings."""

__version__ = "0.1.0"
