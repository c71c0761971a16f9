# -*- coding: utf-8 -*-
"""Log entry models and enums."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class LogCategory(str, Enum):
    food = "food"
    mood = "mood"
    exercise = "exercise"
    sleep = "sleep"
    water = "water"


ALL_CATEGORIES: tuple = tuple(LogCategory)

# Fields owned by the store; everything else on an entry is category payload.
RESERVED_FIELDS = frozenset({"id", "category", "date", "time", "created_at", "updated_at"})


class LogEntry(BaseModel):
    """A stored log entry. Instances are snapshots and cannot be mutated."""

    model_config = ConfigDict(extra="allow", frozen=True)

    id: str
    category: LogCategory
    date: str = Field(..., description="YYYY-MM-DD")
    time: Optional[str] = Field(None, description="Wall-clock time of day, informational")
    created_at: str
    updated_at: str

    @property
    def payload(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})

    def get(self, field: str, default: Any = None) -> Any:
        if field in RESERVED_FIELDS:
            return getattr(self, field)
        return (self.model_extra or {}).get(field, default)


class LogEntryCreate(BaseModel):
    model_config = ConfigDict(extra="allow")

    date: str = Field(..., description="YYYY-MM-DD or ISO8601 timestamp")
    time: Optional[str] = None
    id: Optional[str] = Field(None, description="Client-assigned id; generated when absent")


class LogEntryList(BaseModel):
    category: LogCategory
    start: str
    end: str
    items: List[LogEntry]


class DeleteResponse(BaseModel):
    deleted: bool
