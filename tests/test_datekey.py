# -*- coding: utf-8 -*-

from __future__ import annotations

import unittest
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from healthlog.datekey import (
    iter_date_keys,
    parse_date_key,
    resolve_tz,
    shift,
    start_of_day,
    to_date_key,
    today_key,
)
from healthlog.errors import ValidationError


class TestToDateKey(unittest.TestCase):
    def test_plain_dates_pass_through(self) -> None:
        self.assertEqual(to_date_key("2024-05-01"), "2024-05-01")
        self.assertEqual(to_date_key(date(2024, 5, 1)), "2024-05-01")

    def test_aware_datetime_is_converted_to_zone(self) -> None:
        moment = datetime(2024, 5, 2, 3, 0, tzinfo=timezone.utc)
        self.assertEqual(to_date_key(moment, "UTC"), "2024-05-02")
        # 03:00 UTC is still the previous evening in New York.
        self.assertEqual(to_date_key(moment, "America/New_York"), "2024-05-01")
        self.assertEqual(to_date_key("2024-05-02T03:00:00Z", "America/New_York"), "2024-05-01")

    def test_naive_datetime_is_wall_clock(self) -> None:
        self.assertEqual(to_date_key(datetime(2024, 5, 1, 23, 30), "Asia/Tokyo"), "2024-05-01")
        self.assertEqual(to_date_key("2024-05-01T23:30:00", "Asia/Tokyo"), "2024-05-01")

    def test_invalid_values_raise(self) -> None:
        for bad in (None, "", "not-a-date", "2024-13-01", 12345):
            with self.subTest(value=bad):
                with self.assertRaises(ValidationError):
                    to_date_key(bad)

    def test_unknown_zone_raises(self) -> None:
        with self.assertRaises(ValidationError):
            resolve_tz("Mars/Olympus_Mons")


class TestDateKeyHelpers(unittest.TestCase):
    def test_iter_date_keys_crosses_leap_day(self) -> None:
        self.assertEqual(
            iter_date_keys("2024-02-27", "2024-03-01"),
            ["2024-02-27", "2024-02-28", "2024-02-29", "2024-03-01"],
        )

    def test_iter_date_keys_empty_when_reversed(self) -> None:
        self.assertEqual(iter_date_keys("2024-03-02", "2024-03-01"), [])

    def test_shift(self) -> None:
        self.assertEqual(shift("2024-03-01", -1), "2024-02-29")
        self.assertEqual(shift("2024-12-31", 1), "2025-01-01")

    def test_shift_clamps_at_calendar_edges(self) -> None:
        self.assertEqual(shift("0001-01-05", -30), "0001-01-01")
        self.assertEqual(shift("0001-01-05", -4), "0001-01-01")
        self.assertEqual(shift("9999-12-30", 5), "9999-12-31")

    def test_iter_date_keys_reaches_last_day(self) -> None:
        self.assertEqual(iter_date_keys("9999-12-30", "9999-12-31"), ["9999-12-30", "9999-12-31"])
        self.assertEqual(iter_date_keys("0001-01-01", "0001-01-01"), ["0001-01-01"])

    def test_today_key_uses_clock_and_zone(self) -> None:
        clock = lambda: datetime(2024, 5, 10, 2, 0, tzinfo=timezone.utc)  # noqa: E731
        self.assertEqual(today_key(clock, "UTC"), "2024-05-10")
        self.assertEqual(today_key(clock, "America/Los_Angeles"), "2024-05-09")

    def test_start_of_day_is_local_midnight(self) -> None:
        start = start_of_day("2024-05-10", "Europe/Berlin")
        self.assertEqual((start.hour, start.minute), (0, 0))
        self.assertEqual(start.utcoffset().total_seconds(), 2 * 3600)


ZONES = ("UTC", "America/New_York", "Europe/Berlin", "Australia/Sydney", "Asia/Kolkata")
# Includes the 2024 DST switch days for New York, Berlin and Sydney.
KEYS = ("2024-01-15", "2024-03-10", "2024-11-03", "2024-03-31", "2024-10-27", "2024-04-07", "2024-10-06")


class TestDayBoundaries(unittest.TestCase):
    def test_start_of_day_maps_back_to_its_key(self) -> None:
        for tz in ZONES:
            for key in KEYS:
                with self.subTest(tz=tz, key=key):
                    start = start_of_day(key, tz)
                    self.assertEqual(to_date_key(start, tz), key)
                    self.assertEqual(to_date_key(start.astimezone(timezone.utc), tz), key)
                    self.assertEqual(to_date_key(start + timedelta(hours=12), tz), key)

    def test_last_second_of_day_stays_on_day(self) -> None:
        for tz in ZONES:
            for key in KEYS:
                with self.subTest(tz=tz, key=key):
                    last = datetime.combine(parse_date_key(key), time(23, 59, 59), tzinfo=ZoneInfo(tz))
                    self.assertEqual(to_date_key(last, tz), key)
                    self.assertEqual(to_date_key(last.astimezone(timezone.utc), tz), key)
                    self.assertEqual(to_date_key(last.astimezone(timezone.utc).isoformat(), tz), key)

    def test_next_midnight_starts_next_key(self) -> None:
        for tz in ZONES:
            for key in KEYS:
                with self.subTest(tz=tz, key=key):
                    following = start_of_day(shift(key, 1), tz)
                    self.assertEqual(to_date_key(following.astimezone(timezone.utc), tz), shift(key, 1))


if __name__ == "__main__":
    unittest.main()
