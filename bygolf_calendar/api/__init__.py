"""BYGOLF booking API client."""

from .client import BookingAPIClient

__all__ = ["BookingAPIClient"]
