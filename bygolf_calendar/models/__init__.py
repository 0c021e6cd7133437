"""BYGOLF Calendar data models."""

from .booking import Booking, BookingUser, PlayerOption, DEFAULT_BAY_REF
from .bay_option import BayOption, index_bay_options, bay_option_label

__all__ = [
    "Booking",
    "BookingUser",
    "PlayerOption",
    "DEFAULT_BAY_REF",
    "BayOption",
    "index_bay_options",
    "bay_option_label",
]
