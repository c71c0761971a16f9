# -*- coding: utf-8 -*-
"""Log endpoints (food, mood, exercise, sleep, water)."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Query

from ..deps import get_log_store
from .models import DeleteResponse, LogCategory, LogEntry, LogEntryCreate, LogEntryList
from .storage import LogStore

router = APIRouter(prefix="/api/logs", tags=["Logs"])


@router.post("/{category}", response_model=LogEntry, summary="Record a log entry")
async def write_log(
    category: LogCategory,
    entry: LogEntryCreate,
    store: LogStore = Depends(get_log_store),
):
    return await store.write(category, entry)


@router.get("/{category}/day/{date}", response_model=LogEntryList, summary="Entries for one day")
async def read_day(
    category: LogCategory,
    date: str,
    store: LogStore = Depends(get_log_store),
):
    items = await store.read_day(category, date)
    key = store.date_key(date)
    return LogEntryList(category=category, start=key, end=key, items=items)


@router.get("/{category}", response_model=LogEntryList, summary="Entries in an inclusive date range")
async def read_range(
    category: LogCategory,
    start: str = Query(..., description="YYYY-MM-DD"),
    end: str = Query(..., description="YYYY-MM-DD"),
    store: LogStore = Depends(get_log_store),
):
    items = await store.read_range(category, start, end)
    return LogEntryList(category=category, start=store.date_key(start), end=store.date_key(end), items=items)


@router.patch("/{category}/{date}/{entry_id}", response_model=LogEntry, summary="Patch one entry")
async def update_log(
    category: LogCategory,
    date: str,
    entry_id: str,
    patch: Dict[str, Any] = Body(...),
    store: LogStore = Depends(get_log_store),
):
    return await store.update(category, entry_id, date, patch)


@router.delete("/{category}/{date}/{entry_id}", response_model=DeleteResponse, summary="Delete one entry")
async def delete_log(
    category: LogCategory,
    date: str,
    entry_id: str,
    store: LogStore = Depends(get_log_store),
):
    return DeleteResponse(deleted=await store.delete(category, entry_id, date))
