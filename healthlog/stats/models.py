# -*- coding: utf-8 -*-
"""Stats models."""

from __future__ import annotations

from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field


class StreakResponse(BaseModel):
    as_of: str = Field(..., description="YYYY-MM-DD")
    current: int = Field(0, ge=0)
    longest: int = Field(0, ge=0)


class CompletionResponse(BaseModel):
    date: str = Field(..., description="YYYY-MM-DD")
    categories: List[str]
    completion_rate: int = Field(0, ge=0, le=100)


class TotalsResponse(BaseModel):
    category: str
    field: str
    start: str
    end: str
    total: Union[int, float] = 0


class DaySummary(BaseModel):
    date: str = Field(..., description="YYYY-MM-DD")
    entry_counts: Dict[str, int] = Field(default_factory=dict)
    calories_in: float = Field(0.0, ge=0)
    exercise_minutes: float = Field(0.0, ge=0)
    calories_burned: float = Field(0.0, ge=0)
    sleep_hours: float = Field(0.0, ge=0)
    water_ml: float = Field(0.0, ge=0)
    mood_score: Optional[float] = Field(None, description="mean signed mood score, -1..1")
    completion_rate: int = Field(0, ge=0, le=100)


class RangeTotals(BaseModel):
    active_days: int = Field(0, ge=0)
    entries: int = Field(0, ge=0)
    calories_in: float = Field(0.0, ge=0)
    exercise_minutes: float = Field(0.0, ge=0)
    calories_burned: float = Field(0.0, ge=0)
    sleep_hours: float = Field(0.0, ge=0)
    water_ml: float = Field(0.0, ge=0)


class RangeSummary(BaseModel):
    start: str
    end: str
    days: List[DaySummary]
    totals: RangeTotals
