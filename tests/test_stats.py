# -*- coding: utf-8 -*-

from __future__ import annotations

import unittest
from datetime import datetime, timezone

from healthlog.errors import ValidationError
from healthlog.logs.backends import InMemoryLogBackend
from healthlog.logs.storage import LogStore
from healthlog.stats.aggregator import StatsAggregator


def fixed_clock() -> datetime:
    return datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)


class TestStatsAggregator(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.store = LogStore(InMemoryLogBackend(), tz="UTC", clock=fixed_clock)
        # Small chunks so streak walks cross several reads.
        self.stats = StatsAggregator(self.store, chunk_days=2)

    async def _seed_streaks(self) -> None:
        # Five-day run 05-01..05-05, gap 05-06..05-07, three-day run 05-08..05-10.
        for day in ("2024-05-01", "2024-05-02", "2024-05-03", "2024-05-04", "2024-05-05"):
            await self.store.write("water", {"date": day, "amount": 1500})
        await self.store.write("sleep", {"date": "2024-05-08", "duration": 6})
        await self.store.write("mood", {"date": "2024-05-09", "mood": "calm"})
        await self.store.write("food", {"date": "2024-05-10", "name": "toast"})

    async def test_first_sleep_entry_starts_streak_and_completion(self) -> None:
        today = self.store.today()
        await self.store.write("sleep", {"date": today, "duration": 7})
        self.assertEqual(len(await self.store.read_day("sleep", today)), 1)
        self.assertEqual(await self.stats.current_streak(today), 1)
        self.assertEqual(await self.stats.completion_rate(today), 20)

    async def test_empty_store(self) -> None:
        self.assertEqual(await self.stats.current_streak("2024-05-10"), 0)
        self.assertEqual(await self.stats.longest_streak("2024-05-10"), 0)
        self.assertEqual(await self.stats.completion_rate("2024-05-10"), 0)

    async def test_current_streak_mixes_categories(self) -> None:
        await self._seed_streaks()
        self.assertEqual(await self.stats.current_streak("2024-05-10"), 3)
        self.assertEqual(await self.stats.current_streak("2024-05-05"), 5)
        self.assertEqual(await self.stats.current_streak("2024-05-03"), 3)

    async def test_current_streak_is_zero_on_inactive_day(self) -> None:
        await self._seed_streaks()
        self.assertEqual(await self.stats.current_streak("2024-05-06"), 0)
        self.assertEqual(await self.stats.current_streak("2024-05-11"), 0)
        self.assertEqual(await self.stats.current_streak("2024-04-20"), 0)

    async def test_longest_streak(self) -> None:
        await self._seed_streaks()
        self.assertEqual(await self.stats.longest_streak("2024-05-10"), 5)
        self.assertEqual(await self.stats.longest_streak("2024-05-04"), 4)
        self.assertEqual(await self.stats.longest_streak("2024-04-30"), 0)

    async def test_longest_is_never_below_current(self) -> None:
        await self._seed_streaks()
        for day in ("2024-05-02", "2024-05-05", "2024-05-07", "2024-05-10"):
            with self.subTest(day=day):
                self.assertGreaterEqual(
                    await self.stats.longest_streak(day), await self.stats.current_streak(day)
                )

    async def test_completion_rate(self) -> None:
        day = "2024-05-10"
        await self.store.write("sleep", {"date": day, "duration": 7})
        await self.store.write("water", {"date": day, "amount": 2000})
        self.assertEqual(await self.stats.completion_rate(day), 40)
        self.assertEqual(await self.stats.completion_rate(day, ["sleep", "water"]), 100)
        self.assertEqual(await self.stats.completion_rate(day, ["sleep", "mood"]), 50)
        self.assertEqual(await self.stats.completion_rate(day, ["sleep", "water", "mood"]), 67)
        self.assertEqual(await self.stats.completion_rate(day, ["sleep", "food", "mood"]), 33)
        # Duplicates count once.
        self.assertEqual(await self.stats.completion_rate(day, ["sleep", "sleep", "mood"]), 50)

        for category in ("food", "mood", "exercise"):
            payload = {"date": day, "name": "x"} if category != "mood" else {"date": day, "mood": "happy"}
            await self.store.write(category, payload)
        self.assertEqual(await self.stats.completion_rate(day), 100)

    async def test_completion_rate_rejects_empty_tracking(self) -> None:
        with self.assertRaises(ValidationError):
            await self.stats.completion_rate("2024-05-10", [])

    async def test_totals(self) -> None:
        await self.store.write("food", {"date": "2024-05-08", "name": "oats", "calories": 300})
        await self.store.write("food", {"date": "2024-05-09", "name": "pasta", "calories": 450.5})
        await self.store.write("food", {"date": "2024-05-09", "name": "apple"})
        await self.store.write("food", {"date": "2024-05-12", "name": "cake", "calories": 600})
        self.assertEqual(await self.stats.totals("food", "2024-05-08", "2024-05-10", "calories"), 750.5)
        self.assertEqual(await self.stats.totals("food", "2024-04-01", "2024-04-30", "calories"), 0)

    async def test_totals_rejects_non_numeric_values(self) -> None:
        await self.store.write("food", {"date": "2024-05-09", "name": "soup", "servings": "two"})
        with self.assertRaises(ValidationError):
            await self.stats.totals("food", "2024-05-09", "2024-05-09", "servings")

    async def test_summarize(self) -> None:
        await self.store.write("water", {"date": "2024-05-09", "amount": 2, "unit": "cups"})
        await self.store.write("mood", {"date": "2024-05-09", "mood": "happy", "intensity": 8})
        await self.store.write("exercise", {"date": "2024-05-10", "name": "run", "duration": 30, "calories_burned": 250})

        summary = await self.stats.summarize("2024-05-08", "2024-05-10")
        self.assertEqual([d.date for d in summary.days], ["2024-05-08", "2024-05-09", "2024-05-10"])
        self.assertEqual(summary.days[0].completion_rate, 0)
        self.assertEqual(summary.days[1].water_ml, 480.0)
        self.assertEqual(summary.days[1].mood_score, 0.8)
        self.assertEqual(summary.days[1].completion_rate, 40)
        self.assertEqual(summary.days[2].exercise_minutes, 30.0)
        self.assertEqual(summary.totals.active_days, 2)
        self.assertEqual(summary.totals.entries, 3)
        self.assertEqual(summary.totals.calories_burned, 250.0)

    async def test_streaks_at_calendar_edges(self) -> None:
        await self.store.write("water", {"date": "0001-01-01", "amount": 500})
        self.assertEqual(await self.stats.current_streak("0001-01-01"), 1)
        await self.store.write("water", {"date": "0001-01-02", "amount": 500})
        self.assertEqual(await self.stats.current_streak("0001-01-02"), 2)
        self.assertEqual(await self.stats.longest_streak("0001-01-02"), 2)

        late = LogStore(InMemoryLogBackend(), tz="UTC")
        late_stats = StatsAggregator(late, chunk_days=2)
        for day in ("9999-12-29", "9999-12-30", "9999-12-31"):
            await late.write("mood", {"date": day, "mood": "calm"})
        self.assertEqual(await late_stats.current_streak("9999-12-31"), 3)
        self.assertEqual(await late_stats.longest_streak("9999-12-31"), 3)

    async def test_summarize_rejects_overlong_range(self) -> None:
        stats = StatsAggregator(LogStore(InMemoryLogBackend(), tz="UTC", max_range_days=31))
        self.assertEqual(len((await stats.summarize("2024-05-01", "2024-05-31")).days), 31)
        with self.assertRaises(ValidationError):
            await stats.summarize("2024-05-01", "2024-06-01")
        with self.assertRaises(ValidationError):
            await stats.totals("food", "0001-01-01", "9999-12-31", "calories")

    async def test_streak_walks_stay_within_range_limit(self) -> None:
        store = LogStore(InMemoryLogBackend(), tz="UTC", max_range_days=3)
        stats = StatsAggregator(store, chunk_days=31)
        for offset in range(10):
            await store.write("water", {"date": f"2024-05-{offset + 1:02d}", "amount": 500})
        self.assertEqual(await stats.current_streak("2024-05-10"), 10)
        self.assertEqual(await stats.longest_streak("2024-05-10"), 10)


if __name__ == "__main__":
    unittest.main()
