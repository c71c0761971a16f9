# -*- coding: utf-8 -*-
"""Insight endpoints."""

from __future__ import annotations

import asyncio
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ..deps import get_insight_engine, get_insight_store
from ..logs.models import DeleteResponse
from .engine import InsightEngine
from .models import Insight, InsightListResponse
from .storage import InsightStore

router = APIRouter(prefix="/api/insights", tags=["Insights"])


@router.get("", response_model=InsightListResponse, summary="Rank insights over the recent window")
async def list_insights(
    as_of: Optional[str] = Query(default=None, description="YYYY-MM-DD, defaults to today"),
    window_days: Optional[int] = Query(default=None, ge=0, le=366),
    limit: Optional[int] = Query(default=None, ge=1, le=50),
    engine: InsightEngine = Depends(get_insight_engine),
):
    start, end = engine.window_bounds(as_of, window_days)
    items = await engine.generate(as_of=end, window_span=window_days, max_results=limit)
    return InsightListResponse(as_of=end, window_start=start, window_end=end, items=items)


@router.post("", response_model=InsightListResponse, summary="Rank insights and save them for read tracking")
async def save_insights(
    as_of: Optional[str] = Query(default=None, description="YYYY-MM-DD, defaults to today"),
    window_days: Optional[int] = Query(default=None, ge=0, le=366),
    limit: Optional[int] = Query(default=None, ge=1, le=50),
    engine: InsightEngine = Depends(get_insight_engine),
    store: InsightStore = Depends(get_insight_store),
):
    start, end = engine.window_bounds(as_of, window_days)
    items = await engine.generate(as_of=end, window_span=window_days, max_results=limit)
    await asyncio.to_thread(store.save, items)
    return InsightListResponse(as_of=end, window_start=start, window_end=end, items=items)


@router.post("/generate", response_model=Insight, summary="Generate and save the single best insight")
async def generate_insight(
    as_of: Optional[str] = Query(default=None, description="YYYY-MM-DD, defaults to today"),
    engine: InsightEngine = Depends(get_insight_engine),
    store: InsightStore = Depends(get_insight_store),
):
    insight = await engine.generate_one(as_of=as_of)
    await asyncio.to_thread(store.save, [insight])
    return await asyncio.to_thread(store.get, insight.id) or insight


@router.get("/saved", response_model=List[Insight], summary="Saved insights, best first")
def list_saved(
    unread_only: bool = Query(default=False),
    limit: Optional[int] = Query(default=None, ge=1, le=200),
    store: InsightStore = Depends(get_insight_store),
):
    return store.list(unread_only=unread_only, limit=limit)


@router.post("/{insight_id}/read", response_model=Insight, summary="Mark a saved insight as read")
def mark_read(insight_id: str, store: InsightStore = Depends(get_insight_store)):
    return store.mark_read(insight_id)


@router.delete("/saved/{insight_id}", response_model=DeleteResponse, summary="Delete a saved insight")
def delete_saved(insight_id: str, store: InsightStore = Depends(get_insight_store)):
    return DeleteResponse(deleted=store.delete(insight_id))
