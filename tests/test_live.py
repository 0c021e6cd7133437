import unittest
from datetime import date, datetime, timezone

from bygolf_calendar.view.live import current_marker_offset, current_marker_row
from factories import TZ, local


class TestCurrentMarker(unittest.TestCase):
    def setUp(self):
        self.today = date(2024, 1, 1)

    def test_hidden_before_first_row(self):
        self.assertIsNone(current_marker_offset(self.today, local(2024, 1, 1, 5, 59), tz=TZ))

    def test_top_of_grid_at_six(self):
        self.assertEqual(current_marker_offset(self.today, local(2024, 1, 1, 6, 0), tz=TZ), 0)

    def test_shown_in_last_row(self):
        offset = current_marker_offset(self.today, local(2024, 1, 1, 23, 59), tz=TZ)

        self.assertIsNotNone(offset)
        self.assertAlmostEqual(offset, 17 * 40 + 59 / 60 * 40)

    def test_hidden_on_other_days(self):
        for hour in (0, 6, 12, 23):
            self.assertIsNone(current_marker_offset(date(2024, 1, 2), local(2024, 1, 1, hour), tz=TZ))

    def test_fractional_offset_uses_row_height(self):
        offset = current_marker_offset(self.today, local(2024, 1, 1, 8, 30), row_height=60, tz=TZ)
        self.assertEqual(offset, 150)

    def test_accepts_day_as_local_midnight(self):
        self.assertEqual(current_marker_offset(local(2024, 1, 1), local(2024, 1, 1, 7), tz=TZ), 40)

    def test_now_in_utc_is_compared_in_local_time(self):
        # 23:30 UTC on Dec 31 is 00:30 on Jan 1 in Stockholm: right day, before 06:00
        now = datetime(2023, 12, 31, 23, 30, tzinfo=timezone.utc)
        self.assertIsNone(current_marker_offset(self.today, now, tz=TZ))

        now = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)
        self.assertEqual(current_marker_offset(self.today, now, tz=TZ), 4 * 40)

    def test_marker_row(self):
        self.assertEqual(current_marker_row(self.today, local(2024, 1, 1, 14, 45), tz=TZ), 14)
        self.assertIsNone(current_marker_row(self.today, local(2024, 1, 1, 3), tz=TZ))


if __name__ == "__main__":
    unittest.main(verbosity=2)
