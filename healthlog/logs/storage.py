# -*- coding: utf-8 -*-
"""Log store: category-partitioned, date-indexed storage of log entries."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional
from uuid import uuid4

from ..datekey import Clock, TzLike, iter_date_keys, parse_date_key, resolve_tz, to_date_key, today_key, utc_now
from ..errors import NotFoundError, ValidationError
from .backends import LogBackend, Record
from .categories import descriptor_for, validate_payload
from .models import ALL_CATEGORIES, LogEntry, RESERVED_FIELDS

logger = logging.getLogger(__name__)


class LogStore:
    """Generic store over every category; policy comes from the category descriptor.

    All date arguments are normalized with :func:`to_date_key` in the store's
    time zone, on reads and writes alike.
    """

    def __init__(
        self,
        backend: LogBackend,
        *,
        tz: TzLike = None,
        clock: Optional[Clock] = None,
        max_range_days: Optional[int] = None,
    ) -> None:
        self._backend = backend
        self.tz = resolve_tz(tz)
        self._clock = clock or utc_now
        self.max_range_days = max_range_days

    def date_key(self, value: Any) -> str:
        return to_date_key(value, self.tz)

    def today(self) -> str:
        return today_key(self._clock, self.tz)

    def range_keys(self, start: Any, end: Any) -> List[str]:
        """Keys from ``start`` to ``end`` inclusive; longer than ``max_range_days`` is rejected."""
        start_key = self.date_key(start)
        end_key = self.date_key(end)
        if self.max_range_days is not None and start_key <= end_key:
            span = (parse_date_key(end_key) - parse_date_key(start_key)).days + 1
            if span > self.max_range_days:
                raise ValidationError(
                    f"Range {start_key}..{end_key} covers {span} days; at most {self.max_range_days} allowed"
                )
        return iter_date_keys(start_key, end_key)

    def _now(self) -> str:
        return self._clock().isoformat()

    @staticmethod
    def _to_entry(record: Record) -> LogEntry:
        return LogEntry.model_validate(record)

    async def write(self, category: Any, entry: Any) -> LogEntry:
        descriptor = descriptor_for(category)
        raw = _as_mapping(entry)
        key = self.date_key(raw.get("date"))
        payload = validate_payload(descriptor, raw)
        if raw.get("time") is not None and not isinstance(raw.get("time"), str):
            raise ValidationError("time must be a string")
        now = self._now()
        entry_id = str(raw.get("id") or uuid4())

        record: Record = {
            "id": entry_id,
            "category": descriptor.category.value,
            "date": key,
            "time": raw.get("time"),
            "created_at": now,
            "updated_at": now,
            **payload,
        }

        def apply(current: List[Record]) -> List[Record]:
            if descriptor.is_singleton:
                if current:
                    # Last write wins; identity of the day's record is kept.
                    record["id"] = current[0].get("id") or record["id"]
                    record["created_at"] = current[0].get("created_at") or now
                return [record]
            if any(r.get("id") == entry_id for r in current):
                raise ValidationError(f"Duplicate {descriptor.category.value} entry id {entry_id!r} on {key}")
            return current + [record]

        await self._backend.mutate(descriptor.category.value, key, apply)
        logger.debug("Stored %s entry %s on %s", descriptor.category.value, record["id"], key)
        return self._to_entry(record)

    async def read_day(self, category: Any, date: Any) -> List[LogEntry]:
        descriptor = descriptor_for(category)
        key = self.date_key(date)
        records = await self._backend.get(descriptor.category.value, key)
        return [self._to_entry(r) for r in records]

    async def read_range(self, category: Any, start: Any, end: Any) -> List[LogEntry]:
        descriptor = descriptor_for(category)
        keys = self.range_keys(start, end)
        if not keys:
            return []
        buckets = await self._backend.get_many(descriptor.category.value, keys)
        out: List[LogEntry] = []
        for key in keys:
            for record in buckets.get(key, []):
                # Bucket key is authoritative for the entry's date.
                out.append(self._to_entry({**record, "date": key}))
        return out

    async def update(self, category: Any, entry_id: str, date: Any, patch: Mapping[str, Any]) -> LogEntry:
        descriptor = descriptor_for(category)
        key = self.date_key(date)
        if patch.get("time") is not None and not isinstance(patch.get("time"), str):
            raise ValidationError("time must be a string")
        now = self._now()
        result: Dict[str, Record] = {}

        def apply(current: List[Record]) -> List[Record]:
            for idx, existing in enumerate(current):
                if existing.get("id") != entry_id:
                    continue
                merged_payload = {k: v for k, v in existing.items() if k not in RESERVED_FIELDS}
                merged_payload.update({k: v for k, v in patch.items() if k not in RESERVED_FIELDS})
                if descriptor.derive is not None and _touches_derivation_inputs(patch, merged_payload):
                    # Recompute from the new times instead of keeping the stale value.
                    merged_payload.pop("duration", None)
                payload = validate_payload(descriptor, merged_payload)
                updated = {
                    "id": existing["id"],
                    "category": descriptor.category.value,
                    "date": key,
                    "time": patch["time"] if "time" in patch else existing.get("time"),
                    "created_at": existing.get("created_at") or now,
                    "updated_at": now,
                    **payload,
                }
                result["entry"] = updated
                return current[:idx] + [updated] + current[idx + 1 :]
            raise NotFoundError(f"No {descriptor.category.value} entry {entry_id!r} on {key}")

        await self._backend.mutate(descriptor.category.value, key, apply)
        return self._to_entry(result["entry"])

    async def delete(self, category: Any, entry_id: str, date: Any) -> bool:
        descriptor = descriptor_for(category)
        key = self.date_key(date)
        removed: List[bool] = []

        def apply(current: List[Record]) -> List[Record]:
            kept = [r for r in current if r.get("id") != entry_id]
            if len(kept) != len(current):
                removed.append(True)
            return kept

        await self._backend.mutate(descriptor.category.value, key, apply)
        if removed:
            logger.debug("Deleted %s entry %s on %s", descriptor.category.value, entry_id, key)
        return bool(removed)

    async def earliest_date(self, categories: Optional[Iterable[Any]] = None) -> Optional[str]:
        """Earliest date key holding data in any of ``categories`` (default all)."""
        earliest: Optional[str] = None
        for category in categories or ALL_CATEGORIES:
            first = await self._backend.earliest_key(descriptor_for(category).category.value)
            if first is not None and (earliest is None or first < earliest):
                earliest = first
        return earliest


def _touches_derivation_inputs(patch: Mapping[str, Any], merged: Mapping[str, Any]) -> bool:
    if patch.get("duration") is not None:
        return False
    if "start_time" not in patch and "end_time" not in patch:
        return False
    return bool(merged.get("start_time")) and bool(merged.get("end_time"))


def _as_mapping(entry: Any) -> Dict[str, Any]:
    if isinstance(entry, Mapping):
        return dict(entry)
    if hasattr(entry, "model_dump"):
        return entry.model_dump(exclude_none=True)
    raise ValidationError(f"Unsupported entry payload: {type(entry).__name__}")

