# -*- coding: utf-8 -*-
"""Stats aggregation: streaks, completion and totals computed from the log store."""

from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Optional, Set, Union

from ..datekey import iter_date_keys, shift
from ..errors import ValidationError
from ..logs.categories import descriptor_for, is_number, mood_score, water_ml
from ..logs.models import ALL_CATEGORIES, LogCategory, LogEntry
from ..logs.storage import LogStore
from .models import DaySummary, RangeSummary, RangeTotals

Number = Union[int, float]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _sum_field(entries: Iterable[LogEntry], field: str) -> float:
    total = 0.0
    for entry in entries:
        value = entry.get(field)
        if is_number(value):
            total += float(value)
    return total


class StatsAggregator:
    """Read-only rollups over a :class:`LogStore`.

    A day is *active* when any tracked category has at least one entry on it.
    """

    def __init__(
        self,
        store: LogStore,
        *,
        categories: Optional[Iterable[Any]] = None,
        chunk_days: int = 31,
    ) -> None:
        self._store = store
        self.categories: List[LogCategory] = [
            descriptor_for(c).category for c in (categories or ALL_CATEGORIES)
        ]
        chunk = max(1, int(chunk_days))
        if store.max_range_days is not None:
            # Each chunk is one range read, so it obeys the store's span limit.
            chunk = min(chunk, max(1, store.max_range_days))
        self._chunk_days = chunk

    async def _active_days(self, start: str, end: str) -> Set[str]:
        active: Set[str] = set()
        for category in self.categories:
            for entry in await self._store.read_range(category, start, end):
                active.add(entry.date)
        return active

    async def current_streak(self, as_of: Any) -> int:
        """Consecutive active days ending at ``as_of``; 0 when ``as_of`` is inactive.

        The backward walk never goes past the earliest stored date, and reads
        the store one chunk of days at a time.
        """
        as_of_key = self._store.date_key(as_of)
        earliest = await self._store.earliest_date(self.categories)
        if earliest is None or earliest > as_of_key:
            return 0

        streak = 0
        chunk_end = as_of_key
        while chunk_end >= earliest:
            chunk_start = max(shift(chunk_end, -(self._chunk_days - 1)), earliest)
            active = await self._active_days(chunk_start, chunk_end)
            for key in reversed(iter_date_keys(chunk_start, chunk_end)):
                if key not in active:
                    return streak
                streak += 1
            if chunk_start == earliest:
                break
            chunk_end = shift(chunk_start, -1)
        return streak

    async def longest_streak(self, as_of: Any) -> int:
        as_of_key = self._store.date_key(as_of)
        earliest = await self._store.earliest_date(self.categories)
        if earliest is None or earliest > as_of_key:
            return 0

        longest = 0
        run = 0
        chunk_start = earliest
        while chunk_start <= as_of_key:
            chunk_end = min(shift(chunk_start, self._chunk_days - 1), as_of_key)
            active = await self._active_days(chunk_start, chunk_end)
            for key in iter_date_keys(chunk_start, chunk_end):
                run = run + 1 if key in active else 0
                longest = max(longest, run)
            if chunk_end == as_of_key:
                break
            chunk_start = shift(chunk_end, 1)
        return longest

    async def completion_rate(self, date: Any, tracked_categories: Optional[Iterable[Any]] = None) -> int:
        """Percent of tracked categories (default all five) logged on ``date``."""
        tracked = [descriptor_for(c).category for c in (ALL_CATEGORIES if tracked_categories is None else tracked_categories)]
        tracked = list(dict.fromkeys(tracked))
        if not tracked:
            raise ValidationError("tracked_categories must not be empty")
        hits = 0
        for category in tracked:
            if await self._store.read_day(category, date):
                hits += 1
        return _round_half_up(hits * 100.0 / len(tracked))

    async def totals(self, category: Any, start: Any, end: Any, field: str) -> Number:
        """Sum ``field`` over entries in range; missing values count as 0."""
        total: Number = 0
        for entry in await self._store.read_range(category, start, end):
            value = entry.get(field)
            if value is None:
                continue
            if not is_number(value):
                raise ValidationError(
                    f"Field {field!r} on {entry.category.value} entry {entry.id} is not numeric: {value!r}"
                )
            total += value
        return total

    async def summarize(self, start: Any, end: Any) -> RangeSummary:
        start_key = self._store.date_key(start)
        end_key = self._store.date_key(end)
        keys = self._store.range_keys(start_key, end_key)

        per_day: Dict[str, Dict[LogCategory, List[LogEntry]]] = {k: {} for k in keys}
        for category in ALL_CATEGORIES:
            for entry in await self._store.read_range(category, start_key, end_key):
                per_day[entry.date].setdefault(category, []).append(entry)

        days: List[DaySummary] = []
        totals = RangeTotals()
        for key in keys:
            buckets = per_day[key]
            moods = [s for s in (mood_score(e) for e in buckets.get(LogCategory.mood, [])) if s is not None]
            hits = sum(1 for c in self.categories if buckets.get(c))
            day = DaySummary(
                date=key,
                entry_counts={c.value: len(buckets.get(c, [])) for c in ALL_CATEGORIES},
                calories_in=round(_sum_field(buckets.get(LogCategory.food, []), "calories"), 1),
                exercise_minutes=round(_sum_field(buckets.get(LogCategory.exercise, []), "duration"), 1),
                calories_burned=round(_sum_field(buckets.get(LogCategory.exercise, []), "calories_burned"), 1),
                sleep_hours=round(_sum_field(buckets.get(LogCategory.sleep, []), "duration"), 2),
                water_ml=round(sum(water_ml(e) for e in buckets.get(LogCategory.water, [])), 1),
                mood_score=round(sum(moods) / len(moods), 3) if moods else None,
                completion_rate=_round_half_up(hits * 100.0 / len(self.categories)),
            )
            days.append(day)

            totals.entries += sum(day.entry_counts.values())
            totals.active_days += 1 if hits else 0
            totals.calories_in += day.calories_in
            totals.exercise_minutes += day.exercise_minutes
            totals.calories_burned += day.calories_burned
            totals.sleep_hours += day.sleep_hours
            totals.water_ml += day.water_ml

        totals.calories_in = round(totals.calories_in, 1)
        totals.exercise_minutes = round(totals.exercise_minutes, 1)
        totals.calories_burned = round(totals.calories_burned, 1)
        totals.sleep_hours = round(totals.sleep_hours, 2)
        totals.water_ml = round(totals.water_ml, 1)

        return RangeSummary(start=start_key, end=end_key, days=days, totals=totals)
