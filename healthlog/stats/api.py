# -*- coding: utf-8 -*-
"""Stats endpoints."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ..deps import get_log_store, get_stats
from ..logs.models import LogCategory
from ..logs.storage import LogStore
from .aggregator import StatsAggregator
from .models import CompletionResponse, RangeSummary, StreakResponse, TotalsResponse

router = APIRouter(prefix="/api/stats", tags=["Stats"])


@router.get("/streak", response_model=StreakResponse, summary="Current and longest activity streak")
async def streak(
    as_of: Optional[str] = Query(default=None, description="YYYY-MM-DD, defaults to today"),
    store: LogStore = Depends(get_log_store),
    stats: StatsAggregator = Depends(get_stats),
):
    key = store.date_key(as_of) if as_of else store.today()
    return StreakResponse(
        as_of=key,
        current=await stats.current_streak(key),
        longest=await stats.longest_streak(key),
    )


@router.get("/completion", response_model=CompletionResponse, summary="Share of categories logged on a day")
async def completion(
    date: Optional[str] = Query(default=None, description="YYYY-MM-DD, defaults to today"),
    categories: Optional[List[LogCategory]] = Query(default=None, description="defaults to all five"),
    store: LogStore = Depends(get_log_store),
    stats: StatsAggregator = Depends(get_stats),
):
    key = store.date_key(date) if date else store.today()
    tracked = categories or list(LogCategory)
    rate = await stats.completion_rate(key, tracked)
    return CompletionResponse(date=key, categories=[c.value for c in tracked], completion_rate=rate)


@router.get("/totals/{category}", response_model=TotalsResponse, summary="Sum a numeric field over a range")
async def totals(
    category: LogCategory,
    field: str = Query(..., min_length=1, description="e.g. calories"),
    start: str = Query(..., description="YYYY-MM-DD"),
    end: str = Query(..., description="YYYY-MM-DD"),
    store: LogStore = Depends(get_log_store),
    stats: StatsAggregator = Depends(get_stats),
):
    total = await stats.totals(category, start, end, field)
    return TotalsResponse(
        category=category.value,
        field=field,
        start=store.date_key(start),
        end=store.date_key(end),
        total=total,
    )


@router.get("/summary", response_model=RangeSummary, summary="Per-day rollup over a range")
async def summary(
    start: str = Query(..., description="YYYY-MM-DD"),
    end: str = Query(..., description="YYYY-MM-DD"),
    stats: StatsAggregator = Depends(get_stats),
):
    return await stats.summarize(start, end)
