from __future__ import annotations

import os
from pathlib import Path
from typing import List


class Settings:
    """Centralized configuration for the healthlog core and API."""

    def __init__(self) -> None:
        base_dir = Path(__file__).resolve().parent
        repo_root = base_dir.parent
        data_root_default = repo_root / "data"

        self.data_root: Path = Path(
            os.environ.get("HEALTHLOG_DATA_ROOT") or data_root_default
        ).expanduser()
        self.app_db_path: Path = Path(
            os.environ.get("HEALTHLOG_DB_PATH") or (self.data_root / "healthlog.db")
        ).expanduser()
        # Every date key is computed in this zone, never the host's local zone.
        self.timezone: str = os.environ.get("HEALTHLOG_TZ") or "UTC"

        # ---- Stats ----
        self.streak_chunk_days: int = int(os.environ.get("HEALTHLOG_STREAK_CHUNK_DAYS") or "31")
        # Longest inclusive span a single range read or summary may cover.
        self.max_range_days: int = max(1, int(os.environ.get("HEALTHLOG_MAX_RANGE_DAYS") or "3660"))

        # ---- Insights ----
        self.insight_window_days: int = int(os.environ.get("HEALTHLOG_INSIGHT_WINDOW_DAYS") or "30")
        self.insight_min_entries: int = int(os.environ.get("HEALTHLOG_INSIGHT_MIN_ENTRIES") or "5")
        self.water_goal_ml: float = float(os.environ.get("HEALTHLOG_WATER_GOAL_ML") or "2000")
        self.calorie_goal: float = float(os.environ.get("HEALTHLOG_CALORIE_GOAL") or "2000")
        self.sleep_goal_hours: float = float(os.environ.get("HEALTHLOG_SLEEP_GOAL_HOURS") or "7")

        cors = os.environ.get("HEALTHLOG_CORS_ORIGINS", "*")
        if cors.strip() == "*":
            self.cors_origins: List[str] = ["*"]
        else:
            self.cors_origins = [
                origin.strip() for origin in cors.split(",") if origin.strip()
            ]


settings = Settings()
