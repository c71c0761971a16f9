# -*- coding: utf-8 -*-
"""Per-category descriptors: payload schema plus singleton/append storage policy.

The store is generic; everything that differs between Food, Mood, Exercise,
Sleep and Water lives in the ``CATEGORIES`` table below.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, FrozenSet, Mapping, Optional, Tuple

from ..errors import ValidationError
from .models import LogCategory, LogEntry, RESERVED_FIELDS

SINGLETON = "singleton"
APPEND = "append"

Bounds = Tuple[Optional[float], Optional[float]]

WATER_UNIT_ML: Dict[str, float] = {
    "ml": 1.0,
    "oz": 29.5735,
    "cups": 240.0,
    "glasses": 250.0,
}


@dataclass(frozen=True)
class CategoryDescriptor:
    category: LogCategory
    policy: str
    insight_type: str
    required: Tuple[str, ...] = ()
    numeric: Mapping[str, Bounds] = field(default_factory=dict)
    choices: Mapping[str, FrozenSet[str]] = field(default_factory=dict)
    defaults: Mapping[str, Any] = field(default_factory=dict)
    derive: Optional[Callable[[Dict[str, Any]], Dict[str, Any]]] = None

    @property
    def is_singleton(self) -> bool:
        return self.policy == SINGLETON


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_ts(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _derive_sleep_duration(payload: Dict[str, Any]) -> Dict[str, Any]:
    if payload.get("duration") is not None:
        return payload
    start = _parse_ts(payload.get("start_time"))
    end = _parse_ts(payload.get("end_time"))
    if start is None or end is None:
        return payload
    if (start.tzinfo is None) != (end.tzinfo is None):
        raise ValidationError("start_time and end_time must both carry an offset or neither")
    seconds = (end - start).total_seconds()
    if seconds <= 0:
        raise ValidationError("end_time must be after start_time")
    payload["duration"] = round(seconds / 3600.0, 2)
    return payload


CATEGORIES: Dict[LogCategory, CategoryDescriptor] = {
    LogCategory.food: CategoryDescriptor(
        category=LogCategory.food,
        policy=APPEND,
        insight_type="nutrition",
        required=("name",),
        numeric={
            "calories": (0, None),
            "protein": (0, None),
            "carbs": (0, None),
            "fat": (0, None),
            "fiber": (0, None),
            "sugar": (0, None),
            "sodium": (0, None),
        },
        choices={"meal_type": frozenset({"breakfast", "lunch", "dinner", "snack"})},
    ),
    LogCategory.mood: CategoryDescriptor(
        category=LogCategory.mood,
        policy=APPEND,
        insight_type="mood",
        required=("mood",),
        numeric={"intensity": (1, 10)},
        choices={"mood": frozenset({"happy", "calm", "sad", "stressed", "angry", "neutral"})},
    ),
    LogCategory.exercise: CategoryDescriptor(
        category=LogCategory.exercise,
        policy=APPEND,
        insight_type="exercise",
        required=("name",),
        numeric={
            "duration": (0, None),
            "distance": (0, None),
            "calories_burned": (0, None),
            "heart_rate": (0, None),
            "steps": (0, None),
        },
        choices={"type": frozenset({"cardio", "strength", "flexibility", "sports", "other"})},
    ),
    LogCategory.sleep: CategoryDescriptor(
        category=LogCategory.sleep,
        policy=APPEND,
        insight_type="sleep",
        numeric={
            "duration": (0, 24),
            "quality": (1, 10),
            "deep_sleep": (0, None),
            "light_sleep": (0, None),
            "rem_sleep": (0, None),
            "awake_duration": (0, None),
        },
        derive=_derive_sleep_duration,
    ),
    LogCategory.water: CategoryDescriptor(
        category=LogCategory.water,
        policy=SINGLETON,
        insight_type="hydration",
        required=("amount",),
        numeric={"amount": (0, None)},
        choices={"unit": frozenset(WATER_UNIT_ML)},
        defaults={"unit": "ml"},
    ),
}


def descriptor_for(category: Any) -> CategoryDescriptor:
    if isinstance(category, str):
        category = category.strip().lower()
    try:
        return CATEGORIES[LogCategory(category)]
    except ValueError as exc:
        raise ValidationError(f"Unknown log category: {category!r}") from exc


def validate_payload(descriptor: CategoryDescriptor, payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a normalized copy of ``payload`` or raise ValidationError.

    Fields the descriptor does not mention pass through untouched.
    """
    data = {k: v for k, v in payload.items() if k not in RESERVED_FIELDS}
    for key, value in descriptor.defaults.items():
        if data.get(key) is None:
            data[key] = value
    if descriptor.derive is not None:
        data = descriptor.derive(data)

    for name in descriptor.required:
        value = data.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(f"{descriptor.category.value}: '{name}' is required")

    for name, (low, high) in descriptor.numeric.items():
        value = data.get(name)
        if value is None:
            continue
        if not is_number(value):
            raise ValidationError(f"{descriptor.category.value}: '{name}' must be a number")
        if low is not None and value < low:
            raise ValidationError(f"{descriptor.category.value}: '{name}' must be >= {low}")
        if high is not None and value > high:
            raise ValidationError(f"{descriptor.category.value}: '{name}' must be <= {high}")

    for name, allowed in descriptor.choices.items():
        value = data.get(name)
        if value is None:
            continue
        if not isinstance(value, str) or value not in allowed:
            raise ValidationError(
                f"{descriptor.category.value}: '{name}' must be one of {sorted(allowed)}"
            )
    return data


def water_ml(entry: LogEntry) -> float:
    amount = entry.get("amount")
    if not is_number(amount):
        return 0.0
    return float(amount) * WATER_UNIT_ML.get(entry.get("unit") or "ml", 1.0)


MOOD_VALENCE: Dict[str, float] = {
    "happy": 1.0,
    "calm": 0.5,
    "neutral": 0.0,
    "stressed": -0.75,
    "sad": -1.0,
    "angry": -1.0,
}


def mood_score(entry: LogEntry) -> Optional[float]:
    """Signed mood score in [-1, 1], scaled by intensity when present."""
    valence = MOOD_VALENCE.get(entry.get("mood") or "")
    if valence is None:
        return None
    intensity = entry.get("intensity")
    if is_number(intensity):
        return valence * float(intensity) / 10.0
    return valence * 0.5
