"""API client for the BYGOLF booking API."""

import httpx
from typing import Any, List, Optional, Dict
from datetime import datetime, timedelta, tzinfo
import logging

from pydantic import ValidationError

from ..errors import AuthError, MalformedResponseError, NetworkError
from ..models.bay_option import BayOption
from ..models.booking import Booking
from ..view.dates import end_of_day, local_date, start_of_day


logger = logging.getLogger(__name__)

AUTH_STATUS_CODES = (401, 403)


def day_query_params(day: datetime, tz: Optional[tzinfo] = None) -> Dict[str, str]:
    """Query window for a single local day.

    The API reads these as wall-clock bounds, so the local date is sent as-is
    without a UTC offset.
    """
    day_str = local_date(day, tz).isoformat()
    return {"start_gte": f"{day_str}T00:00:00", "start_lte": f"{day_str}T23:59:59"}


class BookingAPIClient:
    """Client for reading bookings from the BYGOLF booking API."""

    BASE_URL = "https://api.yourgolfbooking.com"
    VENUE = "bygolf"

    def __init__(
        self,
        bearer_token: str,
        base_url: Optional[str] = None,
        venue: Optional[str] = None,
        timeout: float = 30.0,
        tz: Optional[tzinfo] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize the API client.

        Args:
            bearer_token: Bearer token sent with every request
            base_url: API root (defaults to the production API)
            venue: Venue slug used in endpoint paths
            timeout: Request timeout in seconds
            tz: Venue timezone used to split windows into local days
            transport: Optional httpx transport, mainly for tests
        """
        self.bearer_token = (bearer_token or "").strip()
        self.venue = venue or self.VENUE
        self.tz = tz
        self.client = httpx.Client(
            base_url=base_url or self.BASE_URL,
            timeout=timeout,
            headers=self._get_default_headers(),
            transport=transport,
        )

    def _get_default_headers(self) -> Dict[str, str]:
        """Get default headers for API requests."""
        headers = {"accept": "application/json"}
        if self.bearer_token:
            headers["authorization"] = f"Bearer {self.bearer_token}"
        return headers

    def _get_json(self, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        if not self.bearer_token:
            raise AuthError("No bearer token configured")

        try:
            response = self.client.get(path, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(f"HTTP error occurred: {e}")
            logger.error(f"Response body: {e.response.text}")
            if status in AUTH_STATUS_CODES:
                raise AuthError(
                    f"Bearer token rejected ({status})", status_code=status
                ) from e
            raise NetworkError(
                f"Failed to fetch {path}: {e.response.reason_phrase or status}",
                status_code=status,
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Transport error for {path}: {e}")
            raise NetworkError(f"Failed to fetch {path}: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(f"Response from {path} is not JSON") from e

    def fetch_bookings(self, start: datetime, end: datetime) -> List[Booking]:
        """Get all bookings starting within a window.

        The API only accepts single-day windows, so one request is made per
        local calendar day, in order. A failure on any day fails the whole
        call.

        Args:
            start: First instant of the window
            end: Last instant of the window

        Returns:
            List of Booking objects, in day order
        """
        path = f"/venue/{self.venue}/bookings/public-admin"
        current = start_of_day(start, self.tz)
        fetch_end = end_of_day(end, self.tz)

        bookings: List[Booking] = []
        while current < fetch_end:
            params = day_query_params(current, self.tz)
            logger.debug(f"Fetching bookings {params['start_gte']} - {params['start_lte']}")

            data = self._get_json(path, params=params)
            if not isinstance(data, list):
                raise MalformedResponseError(
                    f"Expected a list of bookings, got {type(data).__name__}"
                )
            try:
                bookings.extend(Booking.model_validate(item) for item in data)
            except ValidationError as e:
                raise MalformedResponseError(f"Invalid booking in response: {e}") from e

            current = start_of_day(local_date(current, self.tz) + timedelta(days=1), self.tz)

        logger.debug(f"Fetched {len(bookings)} bookings")
        return bookings

    def fetch_bay_options(self) -> List[BayOption]:
        """Get the bay options used to label bookings."""
        path = f"/venue/{self.venue}/bay-options"
        data = self._get_json(path)

        # Handle both bare lists and wrapped collections
        if isinstance(data, dict):
            data = data.get("items", data.get("data"))
        if not isinstance(data, list):
            raise MalformedResponseError("Expected a list of bay options")

        try:
            return [BayOption.model_validate(item) for item in data]
        except ValidationError as e:
            raise MalformedResponseError(f"Invalid bay option in response: {e}") from e

    def close(self):
        """Close the HTTP client."""
        self.client.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
