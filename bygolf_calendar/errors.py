"""Errors raised by the booking fetch layer.

Every failure crossing the client boundary is one of these kinds, so the
controller and the CLI can decide between reprompting for a credential and
showing an error banner.
"""

from typing import Optional


class CalendarError(Exception):
    """Base class for calendar fetch errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthError(CalendarError):
    """The bearer token was rejected, has expired or is missing."""


class NetworkError(CalendarError):
    """Transport failure or a non-auth HTTP error from the booking API."""


class MalformedResponseError(CalendarError):
    """The booking API returned a payload that could not be parsed."""
