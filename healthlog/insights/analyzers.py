# -*- coding: utf-8 -*-
"""Heuristic analyzers.

An analyzer is any object with a ``name``, a ``requires_sufficient_data`` flag
and a pure ``analyze(window)`` returning one :class:`Insight` or ``None``.
Analyzers never touch the store and must give the same answer for the same
window; insight ids are derived from the analyzer, the window and the text.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Sequence
from uuid import NAMESPACE_URL, uuid5

import numpy as np

from ..config import settings
from ..datekey import parse_date_key
from ..logs.categories import is_number, mood_score, water_ml
from ..logs.models import ALL_CATEGORIES, LogCategory
from .models import HistoricalWindow, Insight


class Analyzer(Protocol):
    name: str
    requires_sufficient_data: bool

    def analyze(self, window: HistoricalWindow) -> Optional[Insight]:
        ...


def make_insight(
    analyzer: str,
    window: HistoricalWindow,
    *,
    type: str,
    title: str,
    content: str,
    priority: int,
    signal_date: Optional[str],
    metadata: Optional[Dict[str, object]] = None,
) -> Insight:
    seed = f"{analyzer}|{window.start}|{window.end}|{title}|{content}"
    return Insight(
        id=str(uuid5(NAMESPACE_URL, seed)),
        type=type,
        title=title,
        content=content,
        priority=priority,
        created_at=window.generated_at,
        source=analyzer,
        signal_date=signal_date,
        metadata=dict(metadata or {}),
    )


# ---- daily series ----

def _daily_sum(window: HistoricalWindow, category: LogCategory, field: str) -> Dict[str, float]:
    out: Dict[str, float] = {}
    for day, entries in window.by_day(category).items():
        values = [float(e.get(field)) for e in entries if is_number(e.get(field))]
        if values:
            out[day] = sum(values)
    return out


def daily_mood(window: HistoricalWindow) -> Dict[str, float]:
    out: Dict[str, float] = {}
    for day, entries in window.by_day(LogCategory.mood).items():
        scores = [s for s in (mood_score(e) for e in entries) if s is not None]
        if scores:
            out[day] = float(np.mean(scores))
    return out


def daily_sleep_hours(window: HistoricalWindow) -> Dict[str, float]:
    return _daily_sum(window, LogCategory.sleep, "duration")


def daily_exercise_minutes(window: HistoricalWindow) -> Dict[str, float]:
    return _daily_sum(window, LogCategory.exercise, "duration")


def daily_calories(window: HistoricalWindow) -> Dict[str, float]:
    return _daily_sum(window, LogCategory.food, "calories")


def daily_water_ml(window: HistoricalWindow) -> Dict[str, float]:
    return {
        day: sum(water_ml(e) for e in entries)
        for day, entries in window.by_day(LogCategory.water).items()
    }


def pearson(xs: Sequence[float], ys: Sequence[float]) -> Optional[float]:
    if len(xs) < 2 or len(xs) != len(ys):
        return None
    x = np.asarray(xs, dtype=float)
    y = np.asarray(ys, dtype=float)
    if np.std(x) == 0 or np.std(y) == 0:
        return None
    return round(float(np.corrcoef(x, y)[0, 1]), 3)


def _split_by_flag(values: Dict[str, float], flags: Dict[str, bool]) -> tuple:
    yes = [values[d] for d in values if flags.get(d)]
    no = [values[d] for d in values if not flags.get(d)]
    return yes, no


# ---- correlation-style analyzers ----

@dataclass
class SleepMoodAnalyzer:
    """Same-day pairing: sleep logged on D is the night that ended on D."""

    name: str = "sleep_mood"
    requires_sufficient_data: bool = True
    threshold_hours: float = 7.0
    min_pairs: int = 5
    min_group: int = 2
    min_difference: float = 0.2

    def analyze(self, window: HistoricalWindow) -> Optional[Insight]:
        sleep = daily_sleep_hours(window)
        mood = daily_mood(window)
        paired = sorted(set(sleep) & set(mood))
        if len(paired) < self.min_pairs:
            return None
        mood_paired = {d: mood[d] for d in paired}
        rested_flags = {d: sleep[d] >= self.threshold_hours for d in paired}
        rested, short = _split_by_flag(mood_paired, rested_flags)
        if len(rested) < self.min_group or len(short) < self.min_group:
            return None

        diff = float(np.mean(rested) - np.mean(short))
        metadata = {
            "paired_days": len(paired),
            "rested_days": len(rested),
            "mean_mood_rested": round(float(np.mean(rested)), 3),
            "mean_mood_short": round(float(np.mean(short)), 3),
            "pearson_r": pearson([sleep[d] for d in paired], [mood[d] for d in paired]),
        }
        if diff >= self.min_difference:
            return make_insight(
                self.name,
                window,
                type="sleep",
                title="Sleep and Mood Connection",
                content=(
                    f"Your mood tends to be better on days after {self.threshold_hours:g}+ hours of sleep "
                    f"({len(rested)} of {len(paired)} logged days). Keeping a consistent sleep schedule "
                    "could lift your overall well-being."
                ),
                priority=4 if diff >= 0.5 else 3,
                signal_date=paired[-1],
                metadata=metadata,
            )
        if diff <= -self.min_difference:
            return make_insight(
                self.name,
                window,
                type="sleep",
                title="Sleep Quality Check",
                content=(
                    "Longer nights have not lined up with better moods lately. It may be worth looking at "
                    "sleep quality and bedtime routine rather than just hours in bed."
                ),
                priority=2,
                signal_date=paired[-1],
                metadata=metadata,
            )
        return None


@dataclass
class ExerciseMoodAnalyzer:
    name: str = "exercise_mood"
    requires_sufficient_data: bool = True
    active_minutes: float = 20.0
    min_days: int = 5
    min_group: int = 2
    min_difference: float = 0.2

    def analyze(self, window: HistoricalWindow) -> Optional[Insight]:
        mood = daily_mood(window)
        if len(mood) < self.min_days:
            return None
        minutes = daily_exercise_minutes(window)
        active_flags = {d: minutes.get(d, 0.0) >= self.active_minutes for d in mood}
        active, inactive = _split_by_flag(mood, active_flags)
        if len(active) < self.min_group or len(inactive) < self.min_group:
            return None

        diff = float(np.mean(active) - np.mean(inactive))
        if diff < self.min_difference:
            return None
        active_days = sorted(d for d, flag in active_flags.items() if flag)
        return make_insight(
            self.name,
            window,
            type="exercise",
            title="Exercise Boosts Your Mood",
            content=(
                f"You reported better moods on days with at least {self.active_minutes:g} minutes of "
                f"activity ({len(active)} active days vs {len(inactive)} rest days). Try to fit some "
                "movement into your daily routine."
            ),
            priority=4 if diff >= 0.5 else 3,
            signal_date=active_days[-1],
            metadata={
                "mood_days": len(mood),
                "active_days": len(active),
                "mean_mood_active": round(float(np.mean(active)), 3),
                "mean_mood_inactive": round(float(np.mean(inactive)), 3),
                "pearson_r": pearson(
                    [minutes.get(d, 0.0) for d in sorted(mood)],
                    [mood[d] for d in sorted(mood)],
                ),
            },
        )


@dataclass
class HydrationPatternAnalyzer:
    name: str = "hydration_pattern"
    requires_sufficient_data: bool = True
    goal_ml: float = 2000.0
    min_days: int = 5
    low_ratio: float = 0.75
    met_ratio: float = 0.8
    weekend_dip: float = 0.8

    def analyze(self, window: HistoricalWindow) -> Optional[Insight]:
        water = daily_water_ml(window)
        if len(water) < self.min_days or self.goal_ml <= 0:
            return None
        days = sorted(water)
        average = float(np.mean([water[d] for d in days]))
        met = sum(1 for d in days if water[d] >= self.goal_ml)
        metadata = {
            "logged_days": len(days),
            "average_ml": round(average, 1),
            "goal_ml": self.goal_ml,
            "days_goal_met": met,
        }

        if average < self.goal_ml * self.low_ratio:
            return make_insight(
                self.name,
                window,
                type="hydration",
                title="Stay Hydrated",
                content=(
                    f"You averaged {average:.0f} ml of water a day across {len(days)} logged days, "
                    f"below your {self.goal_ml:.0f} ml goal. Try keeping a water bottle nearby and "
                    "drinking a glass right after waking up."
                ),
                priority=4,
                signal_date=days[-1],
                metadata=metadata,
            )
        if met >= len(days) * self.met_ratio:
            return make_insight(
                self.name,
                window,
                type="hydration",
                title="Great Hydration Habit",
                content=f"You hit your water goal on {met} of {len(days)} logged days. Keep it up!",
                priority=2,
                signal_date=days[-1],
                metadata=metadata,
            )

        weekend = [water[d] for d in days if parse_date_key(d).weekday() >= 5]
        weekday = [water[d] for d in days if parse_date_key(d).weekday() < 5]
        if len(weekend) >= 2 and len(weekday) >= 2:
            weekend_avg = float(np.mean(weekend))
            weekday_avg = float(np.mean(weekday))
            if weekend_avg < weekday_avg * self.weekend_dip:
                metadata.update(weekend_avg_ml=round(weekend_avg, 1), weekday_avg_ml=round(weekday_avg, 1))
                return make_insight(
                    self.name,
                    window,
                    type="hydration",
                    title="Weekend Hydration Dip",
                    content=(
                        f"You drink about {weekday_avg - weekend_avg:.0f} ml less water on weekends. "
                        "Setting a reminder on Saturdays and Sundays can keep you on track."
                    ),
                    priority=3,
                    signal_date=days[-1],
                    metadata=metadata,
                )
        return None


@dataclass
class NutritionBalanceAnalyzer:
    name: str = "nutrition_balance"
    requires_sufficient_data: bool = True
    calorie_goal: float = 2000.0
    min_days: int = 5
    tolerance: float = 0.2

    def analyze(self, window: HistoricalWindow) -> Optional[Insight]:
        calories = daily_calories(window)
        if len(calories) < self.min_days or self.calorie_goal <= 0:
            return None
        days = sorted(calories)
        average = float(np.mean([calories[d] for d in days]))
        deviation = (average - self.calorie_goal) / self.calorie_goal
        metadata = {
            "logged_days": len(days),
            "average_kcal": round(average, 1),
            "calorie_goal": self.calorie_goal,
            "deviation": round(deviation, 3),
        }
        if deviation >= self.tolerance:
            title = "Calorie Intake Above Target"
            content = (
                f"Your logged intake averaged {average:.0f} kcal a day, about {deviation:.0%} above your "
                f"{self.calorie_goal:.0f} kcal target. Smaller portions at your largest meal are an easy start."
            )
            priority = 3
        elif deviation <= -self.tolerance:
            title = "Calorie Intake Below Target"
            content = (
                f"Your logged intake averaged {average:.0f} kcal a day, about {-deviation:.0%} below your "
                f"{self.calorie_goal:.0f} kcal target. Make sure you are eating enough to fuel your day."
            )
            priority = 3
        else:
            return None
        return make_insight(
            self.name,
            window,
            type="nutrition",
            title=title,
            content=content,
            priority=priority,
            signal_date=days[-1],
            metadata=metadata,
        )


# ---- fallback ----

_TIPS: Dict[LogCategory, List[str]] = {
    LogCategory.food: [
        "Logging meals as you eat them, rather than at the end of the day, makes your nutrition picture more accurate.",
        "Try adding one extra serving of vegetables to your next meal.",
    ],
    LogCategory.mood: [
        "A quick mood check-in each evening helps reveal what lifts your day.",
        "Noting what influenced your mood makes patterns easier to spot later.",
    ],
    LogCategory.exercise: [
        "Try to move for at least 30 minutes today to improve your energy levels and mood.",
        "Short walks count. Log them to see how activity adds up over the week.",
    ],
    LogCategory.sleep: [
        "Aim for a consistent bedtime, even on weekends, for better sleep quality.",
        "Logging how long you slept each night helps connect rest with how you feel.",
    ],
    LogCategory.water: [
        "Keep a water bottle within reach and log your total at the end of the day.",
        "Drinking a glass of water right after waking up is an easy hydration win.",
    ],
}


@dataclass
class GeneralFallbackAnalyzer:
    """Always answers: a daily tip aimed at the least-logged category."""

    name: str = "general_fallback"
    requires_sufficient_data: bool = False

    def analyze(self, window: HistoricalWindow) -> Optional[Insight]:
        if window.total_entries == 0:
            return make_insight(
                self.name,
                window,
                type="general",
                title="Start Your Streak",
                content="Log a meal, a glass of water or how you slept today to start building your health history.",
                priority=1,
                signal_date=None,
            )
        focus = min(ALL_CATEGORIES, key=lambda c: window.count(c))
        tips = _TIPS[focus]
        tip = tips[parse_date_key(window.end).toordinal() % len(tips)]
        latest = [d for d in (window.latest_date(c) for c in ALL_CATEGORIES) if d]
        return make_insight(
            self.name,
            window,
            type="general",
            title="Daily Tip",
            content=tip,
            priority=1,
            signal_date=max(latest) if latest else None,
            metadata={"focus_category": focus.value},
        )


def default_analyzers() -> List[Analyzer]:
    return [
        SleepMoodAnalyzer(threshold_hours=settings.sleep_goal_hours),
        ExerciseMoodAnalyzer(),
        HydrationPatternAnalyzer(goal_ml=settings.water_goal_ml),
        NutritionBalanceAnalyzer(calorie_goal=settings.calorie_goal),
    ]
