# -*- coding: utf-8 -*-
"""Process-wide service instances wired from settings (FastAPI dependencies)."""

from __future__ import annotations

from functools import lru_cache

from .config import settings
from .insights.engine import InsightEngine
from .insights.storage import InsightStore
from .logs.backends import SqliteLogBackend
from .logs.storage import LogStore
from .stats.aggregator import StatsAggregator


@lru_cache(maxsize=1)
def get_log_store() -> LogStore:
    return LogStore(
        SqliteLogBackend(settings.app_db_path),
        tz=settings.timezone,
        max_range_days=settings.max_range_days,
    )


@lru_cache(maxsize=1)
def get_stats() -> StatsAggregator:
    return StatsAggregator(get_log_store(), chunk_days=settings.streak_chunk_days)


@lru_cache(maxsize=1)
def get_insight_engine() -> InsightEngine:
    return InsightEngine.with_defaults(get_log_store())


@lru_cache(maxsize=1)
def get_insight_store() -> InsightStore:
    return InsightStore(settings.app_db_path)
