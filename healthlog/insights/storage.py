# -*- coding: utf-8 -*-
"""Saved insight storage helpers (SQLite)."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from ..app_db import db_conn, init_app_db
from ..errors import NotFoundError, StorageError
from .models import Insight


def _iso_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_to_insight(row: Dict[str, Any]) -> Insight:
    try:
        metadata = json.loads(row.get("metadata_json") or "{}")
    except ValueError:
        metadata = {}
    return Insight(
        id=row["id"],
        type=row["type"],
        title=row["title"],
        content=row["content"],
        priority=int(row["priority"]),
        created_at=row["created_at"],
        source=row["source"],
        signal_date=row.get("signal_date"),
        metadata=metadata if isinstance(metadata, dict) else {},
        is_read=bool(row.get("is_read")),
    )


class InsightStore:
    """Keeps generated insights and their read state.

    Re-saving an insight refreshes its text but never resets ``is_read``.
    """

    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path)
        try:
            init_app_db(self._db_path)
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot initialise insight database at {self._db_path}: {exc}") from exc

    def save(self, insights: Iterable[Insight]) -> int:
        now = _iso_now()
        rows = [
            (
                i.id,
                i.type,
                i.title,
                i.content,
                i.priority,
                i.source,
                i.signal_date,
                json.dumps(i.metadata, ensure_ascii=False, default=str),
                1 if i.is_read else 0,
                i.created_at,
                now,
            )
            for i in insights
        ]
        if not rows:
            return 0
        try:
            with db_conn(self._db_path) as conn:
                conn.executemany(
                    """
                    INSERT INTO insights (
                        id, type, title, content, priority, source, signal_date,
                        metadata_json, is_read, created_at, saved_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        type = excluded.type,
                        title = excluded.title,
                        content = excluded.content,
                        priority = excluded.priority,
                        source = excluded.source,
                        signal_date = excluded.signal_date,
                        metadata_json = excluded.metadata_json,
                        is_read = MAX(insights.is_read, excluded.is_read),
                        saved_at = excluded.saved_at
                    """,
                    rows,
                )
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to save insights: {exc}") from exc
        return len(rows)

    def get(self, insight_id: str) -> Optional[Insight]:
        try:
            with db_conn(self._db_path) as conn:
                row = conn.execute("SELECT * FROM insights WHERE id = ?", (insight_id,)).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to read insight {insight_id}: {exc}") from exc
        return _row_to_insight(dict(row)) if row else None

    def list(self, *, unread_only: bool = False, limit: Optional[int] = None) -> List[Insight]:
        sql = "SELECT * FROM insights"
        params: List[Any] = []
        if unread_only:
            sql += " WHERE is_read = 0"
        sql += " ORDER BY priority DESC, saved_at DESC, id ASC"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(max(0, int(limit)))
        try:
            with db_conn(self._db_path) as conn:
                rows = conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to list insights: {exc}") from exc
        return [_row_to_insight(dict(r)) for r in rows]

    def mark_read(self, insight_id: str) -> Insight:
        try:
            with db_conn(self._db_path) as conn:
                cur = conn.execute("UPDATE insights SET is_read = 1 WHERE id = ?", (insight_id,))
                updated = cur.rowcount
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to update insight {insight_id}: {exc}") from exc
        if not updated:
            raise NotFoundError(f"Insight {insight_id!r} not found")
        found = self.get(insight_id)
        if found is None:
            raise NotFoundError(f"Insight {insight_id!r} not found")
        return found

    def delete(self, insight_id: str) -> bool:
        try:
            with db_conn(self._db_path) as conn:
                cur = conn.execute("DELETE FROM insights WHERE id = ?", (insight_id,))
                deleted = cur.rowcount
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to delete insight {insight_id}: {exc}") from exc
        return bool(deleted)
