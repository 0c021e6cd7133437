import asyncio
import unittest
from datetime import date

from bygolf_calendar.errors import AuthError, MalformedResponseError, NetworkError
from bygolf_calendar.models import BayOption
from bygolf_calendar.view.controller import CalendarController
from bygolf_calendar.view.dates import end_of_day
from bygolf_calendar.view.ranges import ViewMode
from factories import TZ, local, make_booking


class FakeFetcher:
    """Returns queued responses (lists or errors) and records each call."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []
        self.gate = None
        self.seen_loading = []
        self.controller = None

    async def __call__(self, token, start, end):
        self.calls.append((token, start, end))
        if self.controller is not None:
            self.seen_loading.append(self.controller.state.loading)
        if self.gate is not None:
            await self.gate.wait()
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def ids(bookings):
    return [b.id for b in bookings]


class TestCalendarController(unittest.IsolatedAsyncioTestCase):
    def make(self, fetcher, **kwargs):
        kwargs.setdefault("token", "secret")
        kwargs.setdefault("anchor", date(2024, 1, 1))
        controller = CalendarController(fetcher, tz=TZ, **kwargs)
        fetcher.controller = controller
        return controller

    async def test_refresh_fetches_resolved_window(self):
        fetcher = FakeFetcher([])
        controller = self.make(fetcher, mode=ViewMode.WEEK, anchor=date(2024, 1, 3))

        result = await controller.refresh()

        self.assertTrue(result.ok)
        token, start, end = fetcher.calls[0]
        self.assertEqual(token, "secret")
        self.assertEqual(start, local(2024, 1, 1))
        self.assertEqual(end, end_of_day(date(2024, 1, 7), TZ))

    async def test_bookings_are_replaced_wholesale(self):
        first = [make_booking(1, "2024-01-01T10:00:00", "2024-01-01T11:00:00")]
        second = [make_booking(2, "2024-01-01T12:00:00", "2024-01-01T13:00:00")]
        controller = self.make(FakeFetcher(first, second))

        await controller.refresh()
        self.assertEqual(ids(controller.state.bookings), [1])
        await controller.refresh()
        self.assertEqual(ids(controller.state.bookings), [2])

    async def test_failed_silent_refresh_keeps_bookings(self):
        first = [make_booking(1, "2024-01-01T10:00:00", "2024-01-01T11:00:00")]
        controller = self.make(FakeFetcher(first, NetworkError("down")))

        await controller.refresh()
        with self.assertLogs("bygolf_calendar.view.controller", level="WARNING"):
            result = await controller.refresh(silent=True)

        self.assertFalse(result.ok)
        self.assertIsInstance(result.error, NetworkError)
        self.assertIsInstance(controller.state.error, NetworkError)
        self.assertEqual(ids(controller.state.bookings), [1])

    async def test_malformed_response_keeps_bookings(self):
        first = [make_booking(1, "2024-01-01T10:00:00", "2024-01-01T11:00:00")]
        controller = self.make(FakeFetcher(first, MalformedResponseError("bad")))

        await controller.refresh()
        with self.assertLogs("bygolf_calendar.view.controller", level="WARNING"):
            await controller.refresh()

        self.assertEqual(ids(controller.state.bookings), [1])

    async def test_success_clears_previous_error(self):
        controller = self.make(FakeFetcher(NetworkError("down"), []))

        with self.assertLogs("bygolf_calendar.view.controller", level="WARNING"):
            await controller.refresh()
        await controller.refresh()

        self.assertIsNone(controller.state.error)

    async def test_loading_flag_only_for_visible_refresh(self):
        fetcher = FakeFetcher([], [])
        controller = self.make(fetcher)

        await controller.refresh()
        await controller.refresh(silent=True)

        self.assertEqual(fetcher.seen_loading, [True, False])
        self.assertFalse(controller.state.loading)

    async def test_missing_token_is_an_auth_error(self):
        fetcher = FakeFetcher([])
        controller = self.make(fetcher, token="  ")

        result = await controller.refresh()

        self.assertIsInstance(result.error, AuthError)
        self.assertEqual(fetcher.calls, [])

    async def test_overlapping_triggers_are_coalesced_and_last_response_wins(self):
        fetcher = FakeFetcher(
            [make_booking(1, "2024-01-01T10:00:00", "2024-01-01T11:00:00")],
            [make_booking(2, "2024-01-01T12:00:00", "2024-01-01T13:00:00")],
        )
        fetcher.gate = asyncio.Event()
        controller = self.make(fetcher)

        running = asyncio.create_task(controller.refresh())
        await asyncio.sleep(0)
        followers = [asyncio.create_task(controller.refresh(silent=True)) for _ in range(2)]
        await asyncio.sleep(0)

        fetcher.gate.set()
        results = await asyncio.gather(running, *followers)

        self.assertEqual(len(fetcher.calls), 2)
        for result in results:
            self.assertEqual(ids(result.bookings), [2])
        self.assertEqual(ids(controller.state.bookings), [2])

    async def test_view_change_during_fetch_refetches_new_window(self):
        fetcher = FakeFetcher(
            [make_booking(1, "2024-01-01T10:00:00", "2024-01-01T11:00:00")],
            [make_booking(2, "2024-01-02T10:00:00", "2024-01-02T11:00:00")],
        )
        fetcher.gate = asyncio.Event()
        controller = self.make(fetcher)

        running = asyncio.create_task(controller.refresh())
        await asyncio.sleep(0)
        controller.set_anchor(date(2024, 1, 2))
        fetcher.gate.set()
        result = await running

        self.assertEqual(fetcher.calls[1][1], local(2024, 1, 2))
        self.assertFalse(result.stale)
        self.assertEqual(ids(result.bookings), [2])
        self.assertEqual(ids(controller.state.bookings), [2])

    async def test_stale_fetch_is_flagged_and_not_swapped_in(self):
        first = [make_booking(1, "2024-01-01T10:00:00", "2024-01-01T11:00:00")]
        late = [make_booking(2, "2024-01-01T12:00:00", "2024-01-01T13:00:00")]
        fetcher = FakeFetcher(first, late)
        controller = self.make(fetcher)
        await controller.refresh()

        fetcher.gate = asyncio.Event()
        cycle = asyncio.create_task(controller._refresh_once(silent=True))
        await asyncio.sleep(0)
        controller.set_anchor(date(2024, 1, 5))
        fetcher.gate.set()
        result = await cycle

        self.assertTrue(result.stale)
        self.assertTrue(result.ok)
        self.assertIsNone(result.bookings)
        self.assertEqual(ids(controller.state.bookings), [1])

    async def test_set_anchor_resets_explicit_end(self):
        controller = self.make(FakeFetcher(), mode=ViewMode.THREE_DAYS)
        controller.set_explicit_end(date(2024, 1, 10))
        self.assertEqual(controller.range.day_count, 10)

        controller.set_anchor(date(2024, 1, 2))

        self.assertEqual(controller.state.explicit_end, date(2024, 1, 4))
        self.assertEqual(controller.range.day_count, 3)
        self.assertEqual(controller.range.fetch_start, local(2024, 1, 2))

    async def test_rejected_token_blocks_further_fetches(self):
        first = [make_booking(1, "2024-01-01T10:00:00", "2024-01-01T11:00:00")]
        fetcher = FakeFetcher(first, AuthError("Unauthorized", status_code=401), [])
        controller = self.make(fetcher)

        await controller.refresh()
        with self.assertLogs("bygolf_calendar.view.controller", level="WARNING"):
            await controller.refresh(silent=True)
        result = await controller.refresh(silent=True)

        self.assertTrue(controller.auth_blocked)
        self.assertIsInstance(result.error, AuthError)
        self.assertEqual(len(fetcher.calls), 2)
        self.assertEqual(ids(controller.state.bookings), [1])

        controller.set_token("fresh")
        result = await controller.refresh()

        self.assertTrue(result.ok)
        self.assertFalse(controller.auth_blocked)
        self.assertEqual(fetcher.calls[-1][0], "fresh")

    async def test_bay_options_loaded_once(self):
        calls = []

        async def fetch_options(token):
            calls.append(token)
            return [BayOption(id=3, name="Simulator")]

        booking = make_booking(1, "2024-01-01T10:00:00", "2024-01-01T11:00:00")
        controller = self.make(FakeFetcher([booking], [booking]), fetch_bay_options=fetch_options)

        await controller.refresh()
        await controller.refresh()

        self.assertEqual(calls, ["secret"])
        grid = controller.grid(now=local(2024, 1, 1, 12))
        block = grid.days[0].bays["1"][10][0]
        self.assertEqual(block.option_label, "Simulator")

    async def test_bay_option_failure_degrades_gracefully(self):
        async def fetch_options(token):
            raise NetworkError("no options")

        booking = make_booking(1, "2024-01-01T10:00:00", "2024-01-01T11:00:00")
        controller = self.make(FakeFetcher([booking]), fetch_bay_options=fetch_options)

        with self.assertLogs("bygolf_calendar.view.controller", level="WARNING"):
            result = await controller.refresh()

        self.assertTrue(result.ok)
        self.assertEqual(controller.bay_options, {})

    async def test_grid_combines_buckets_stats_and_marker(self):
        booking = make_booking(1, "2024-01-01T23:30:00", "2024-01-02T00:30:00", "2")
        controller = self.make(FakeFetcher([booking]), mode=ViewMode.THREE_DAYS)
        await controller.refresh()

        grid = controller.grid(now=local(2024, 1, 2, 7, 30))

        self.assertEqual([c.key for c in grid.days], ["2024-01-01", "2024-01-02", "2024-01-03"])
        self.assertEqual(grid.days[0].bays["2"][23][0].booking.id, 1)
        self.assertEqual(grid.days[1].stats.count, 1)
        self.assertIsNone(grid.days[0].marker_offset)
        self.assertEqual(grid.days[1].marker_offset, 60)
        self.assertEqual(grid.days[1].marker_row, 7)
        self.assertIsNone(grid.days[0].marker_row)


if __name__ == "__main__":
    unittest.main(verbosity=2)
