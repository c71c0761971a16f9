# -*- coding: utf-8 -*-
"""Insight models and the historical window."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple

from pydantic import BaseModel, Field

from ..logs.models import ALL_CATEGORIES, LogCategory, LogEntry

InsightType = Literal["sleep", "nutrition", "exercise", "mood", "hydration", "general"]


class Insight(BaseModel):
    id: str
    type: InsightType
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    priority: int = Field(1, ge=1, le=5, description="higher = more salient")
    created_at: str
    source: str = Field(..., description="name of the analyzer that produced it")
    signal_date: Optional[str] = Field(None, description="most recent day of supporting data")
    metadata: Dict[str, Any] = Field(default_factory=dict)
    is_read: bool = False


class InsightListResponse(BaseModel):
    as_of: str
    window_start: str
    window_end: str
    items: List[Insight]


@dataclass(frozen=True)
class HistoricalWindow:
    """Read-only view of every category's entries over ``[start, end]``.

    Built fresh for each generation; entries are frozen snapshots.
    """

    start: str
    end: str
    generated_at: str
    entries: Mapping[LogCategory, Tuple[LogEntry, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        frozen = {c: tuple(self.entries.get(c, ())) for c in ALL_CATEGORIES}
        object.__setattr__(self, "entries", MappingProxyType(frozen))

    def of(self, category: LogCategory) -> Tuple[LogEntry, ...]:
        return self.entries.get(LogCategory(category), ())

    def count(self, category: LogCategory) -> int:
        return len(self.of(category))

    @property
    def total_entries(self) -> int:
        return sum(len(v) for v in self.entries.values())

    @property
    def max_category_count(self) -> int:
        return max((len(v) for v in self.entries.values()), default=0)

    def by_day(self, category: LogCategory) -> Dict[str, List[LogEntry]]:
        grouped: Dict[str, List[LogEntry]] = {}
        for entry in self.of(category):
            grouped.setdefault(entry.date, []).append(entry)
        return grouped

    def latest_date(self, category: LogCategory) -> Optional[str]:
        dates = [e.date for e in self.of(category)]
        return max(dates) if dates else None
