"""View state and refresh cycles for the calendar."""

import asyncio
import logging
from datetime import date, datetime, tzinfo
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel

from ..errors import AuthError, CalendarError
from ..models.bay_option import BayOption, index_bay_options
from ..models.booking import Booking
from .dates import DEFAULT_TZ
from .grid import CalendarGrid, build_grid
from .live import DEFAULT_ROW_HEIGHT
from .ranges import ResolvedRange, ViewMode, default_end_for_mode, resolve_range


logger = logging.getLogger(__name__)

FetchBookings = Callable[[str, datetime, datetime], Awaitable[List[Booking]]]
FetchBayOptions = Callable[[str], Awaitable[List[BayOption]]]


class ViewState(BaseModel):
    """Single source of truth for what the calendar shows."""

    mode: ViewMode = ViewMode.DAY
    anchor: date
    explicit_end: Optional[date] = None
    bookings: Tuple[Booking, ...] = ()
    loading: bool = False
    error: Optional[CalendarError] = None

    class Config:
        arbitrary_types_allowed = True


class RefreshResult(BaseModel):
    """Outcome of one refresh cycle: the new bookings or the error.

    A stale result was fetched for a window the view has since left; its
    bookings were dropped and the state was not touched.
    """

    window: ResolvedRange
    bookings: Optional[Tuple[Booking, ...]] = None
    error: Optional[CalendarError] = None
    stale: bool = False

    class Config:
        arbitrary_types_allowed = True

    @property
    def ok(self) -> bool:
        return self.error is None


class CalendarController:
    """Owns the view state and swaps in fetched bookings.

    Bookings are replaced wholesale on every successful refresh and kept as
    they are when a refresh fails. Refreshes triggered while one is running
    are folded into a single follow-up run. Once the credential is rejected
    no further fetch is made until ``set_token`` supplies a new one.
    """

    def __init__(
        self,
        fetch_bookings: FetchBookings,
        token: str = "",
        fetch_bay_options: Optional[FetchBayOptions] = None,
        mode: ViewMode = ViewMode.DAY,
        anchor: Optional[date] = None,
        tz: Optional[tzinfo] = None,
    ):
        self._fetch_bookings = fetch_bookings
        self._fetch_bay_options = fetch_bay_options
        self.token = (token or "").strip()
        self.tz = tz or DEFAULT_TZ
        self.bay_options: Dict[int, BayOption] = {}

        anchor = anchor or datetime.now(self.tz).date()
        mode = ViewMode(mode)
        self.state = ViewState(
            mode=mode, anchor=anchor, explicit_end=default_end_for_mode(mode, anchor)
        )

        self.auth_blocked = False
        self._in_flight: Optional[asyncio.Future] = None
        self._rerun = False

    @property
    def range(self) -> ResolvedRange:
        return resolve_range(
            self.state.mode, self.state.anchor, self.state.explicit_end, self.tz
        )

    def set_token(self, token: str):
        self.token = (token or "").strip()
        self.auth_blocked = False

    def set_anchor(self, anchor: date):
        """Move the view; the end date snaps back to the mode's default."""
        self.state.anchor = anchor
        self.state.explicit_end = default_end_for_mode(self.state.mode, anchor)

    def set_explicit_end(self, end: Optional[date]):
        self.state.explicit_end = end

    def grid(self, now: Optional[datetime] = None, row_height: float = DEFAULT_ROW_HEIGHT) -> CalendarGrid:
        return build_grid(
            self.state.bookings,
            self.range,
            now or datetime.now(self.tz),
            bay_options=self.bay_options,
            tz=self.tz,
            row_height=row_height,
        )

    async def refresh(self, silent: bool = False) -> RefreshResult:
        """Fetch the current window and swap the result into the state.

        A trigger arriving while a refresh is running does not fetch on its
        own: it marks the running refresh to go once more, silently, and
        returns that refresh's final result.
        """
        if self._in_flight is not None:
            self._rerun = True
            logger.debug("Refresh already running, queued a rerun")
            return await asyncio.shield(self._in_flight)

        done = asyncio.get_running_loop().create_future()
        self._in_flight = done
        try:
            result = await self._refresh_once(silent)
            while self._rerun:
                self._rerun = False
                result = await self._refresh_once(silent=True)
        except BaseException:
            done.cancel()
            raise
        else:
            done.set_result(result)
            return result
        finally:
            self._in_flight = None

    async def _refresh_once(self, silent: bool) -> RefreshResult:
        window = self.range

        if self.auth_blocked:
            logger.debug("Credential was rejected, skipping refresh")
            return RefreshResult(window=window, error=self.state.error)

        if not self.token:
            error = AuthError("Please enter a bearer token")
            self.state.error = error
            self.auth_blocked = True
            return RefreshResult(window=window, error=error)

        if not silent:
            self.state.loading = True
        self.state.error = None
        try:
            if not self.bay_options:
                await self._load_bay_options()
            bookings = await self._fetch_bookings(
                self.token, window.fetch_start, window.fetch_end
            )
        except CalendarError as e:
            logger.warning(f"Refresh failed ({type(e).__name__}): {e}")
            self.state.error = e
            if isinstance(e, AuthError):
                self.auth_blocked = True
            return RefreshResult(window=window, error=e)
        finally:
            if not silent:
                self.state.loading = False

        if window != self.range:
            # The view moved while fetching; the queued rerun fetches the new window
            logger.debug("Discarding bookings for a stale window")
            self._rerun = True
            return RefreshResult(window=window, stale=True)

        self.state.bookings = tuple(bookings)
        logger.debug(f"Loaded {len(bookings)} bookings")
        return RefreshResult(window=window, bookings=self.state.bookings)

    async def _load_bay_options(self):
        if self._fetch_bay_options is None:
            return
        try:
            options = await self._fetch_bay_options(self.token)
        except AuthError:
            raise
        except CalendarError as e:
            # Labels are optional; bookings still render without them
            logger.warning(f"Could not load bay options: {e}")
            return
        self.bay_options = index_bay_options(options)
