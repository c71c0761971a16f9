# -*- coding: utf-8 -*-
"""Persistence collaborators for the log store.

A backend is a key-value store keyed by ``(category, date_key)`` whose value
is the ordered list of raw entry dicts for that day. The only write primitive
is :meth:`LogBackend.mutate`, an atomic per-key read-modify-write.
"""

from __future__ import annotations

import asyncio
import copy
import json
import sqlite3
import threading
import weakref
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Tuple

from ..app_db import db_conn, init_app_db
from ..errors import StorageError


Record = Dict[str, Any]
Mutator = Callable[[List[Record]], List[Record]]

# Stay well under SQLite's host-parameter limit.
_IN_CHUNK = 400


class LogBackend(Protocol):
    async def get(self, category: str, key: str) -> List[Record]:
        ...

    async def get_many(self, category: str, keys: Iterable[str]) -> Dict[str, List[Record]]:
        """Only keys holding data appear in the result."""
        ...

    async def mutate(self, category: str, key: str, fn: Mutator) -> List[Record]:
        """Atomically replace the value at ``key`` with ``fn(current)``.

        An empty result deletes the key. If ``fn`` raises, nothing is written.
        """
        ...

    async def earliest_key(self, category: str) -> Optional[str]:
        ...


class InMemoryLogBackend:
    """Dict-backed backend. Values are deep-copied on the way in and out."""

    def __init__(self) -> None:
        self._buckets: Dict[Tuple[str, str], List[Record]] = {}
        # A lock lives only while some mutate call holds a reference to it.
        self._locks: "weakref.WeakValueDictionary[Tuple[str, str], asyncio.Lock]" = weakref.WeakValueDictionary()

    async def get(self, category: str, key: str) -> List[Record]:
        return copy.deepcopy(self._buckets.get((category, key), []))

    async def get_many(self, category: str, keys: Iterable[str]) -> Dict[str, List[Record]]:
        out: Dict[str, List[Record]] = {}
        for key in keys:
            bucket = self._buckets.get((category, key))
            if bucket:
                out[key] = copy.deepcopy(bucket)
        return out

    async def mutate(self, category: str, key: str, fn: Mutator) -> List[Record]:
        lock = self._locks.get((category, key))
        if lock is None:
            lock = self._locks[(category, key)] = asyncio.Lock()
        async with lock:
            current = copy.deepcopy(self._buckets.get((category, key), []))
            updated = fn(current)
            if updated:
                self._buckets[(category, key)] = copy.deepcopy(updated)
            else:
                self._buckets.pop((category, key), None)
            return copy.deepcopy(updated)

    async def earliest_key(self, category: str) -> Optional[str]:
        keys = [k for (c, k) in self._buckets if c == category]
        return min(keys) if keys else None


class SqliteLogBackend:
    """SQLite backend: one ``log_buckets`` row per (category, day).

    Blocking sqlite calls run in a worker thread; a process-wide lock plus a
    ``BEGIN IMMEDIATE`` transaction serialises read-modify-write per database.
    """

    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path)
        self._lock = threading.Lock()
        try:
            init_app_db(self._db_path)
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot initialise log database at {self._db_path}: {exc}") from exc

    @staticmethod
    def _decode(raw: str) -> List[Record]:
        try:
            value = json.loads(raw)
        except ValueError as exc:
            raise StorageError(f"Corrupt log bucket: {exc}") from exc
        return value if isinstance(value, list) else []

    def _get_many_sync(self, category: str, keys: List[str]) -> Dict[str, List[Record]]:
        out: Dict[str, List[Record]] = {}
        try:
            with self._lock, db_conn(self._db_path) as conn:
                for i in range(0, len(keys), _IN_CHUNK):
                    chunk = keys[i : i + _IN_CHUNK]
                    marks = ",".join("?" for _ in chunk)
                    rows = conn.execute(
                        f"SELECT day, payload_json FROM log_buckets WHERE category = ? AND day IN ({marks})",
                        (category, *chunk),
                    ).fetchall()
                    for row in rows:
                        records = self._decode(row["payload_json"])
                        if records:
                            out[str(row["day"])] = records
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to read {category} logs: {exc}") from exc
        return out

    def _mutate_sync(self, category: str, key: str, fn: Mutator) -> List[Record]:
        try:
            with self._lock, db_conn(self._db_path) as conn:
                conn.execute("BEGIN IMMEDIATE")
                row = conn.execute(
                    "SELECT payload_json FROM log_buckets WHERE category = ? AND day = ?",
                    (category, key),
                ).fetchone()
                current = self._decode(row["payload_json"]) if row else []
                updated = fn(current)
                if updated:
                    conn.execute(
                        """
                        INSERT INTO log_buckets(category, day, payload_json, updated_at)
                        VALUES (?, ?, ?, ?)
                        ON CONFLICT(category, day) DO UPDATE SET
                            payload_json = excluded.payload_json,
                            updated_at = excluded.updated_at
                        """,
                        (
                            category,
                            key,
                            json.dumps(updated, ensure_ascii=False),
                            datetime.now(timezone.utc).isoformat(),
                        ),
                    )
                elif row is not None:
                    conn.execute(
                        "DELETE FROM log_buckets WHERE category = ? AND day = ?",
                        (category, key),
                    )
                return updated
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to write {category} log for {key}: {exc}") from exc

    def _earliest_sync(self, category: str) -> Optional[str]:
        try:
            with self._lock, db_conn(self._db_path) as conn:
                row = conn.execute(
                    "SELECT MIN(day) AS first_day FROM log_buckets WHERE category = ?",
                    (category,),
                ).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to read {category} logs: {exc}") from exc
        if row is None or row["first_day"] is None:
            return None
        return str(row["first_day"])

    async def get(self, category: str, key: str) -> List[Record]:
        found = await self.get_many(category, [key])
        return found.get(key, [])

    async def get_many(self, category: str, keys: Iterable[str]) -> Dict[str, List[Record]]:
        return await asyncio.to_thread(self._get_many_sync, category, list(keys))

    async def mutate(self, category: str, key: str, fn: Mutator) -> List[Record]:
        return await asyncio.to_thread(self._mutate_sync, category, key, fn)

    async def earliest_key(self, category: str) -> Optional[str]:
        return await asyncio.to_thread(self._earliest_sync, category)
