# -*- coding: utf-8 -*-
"""Calendar-day keys.

Every bucketing decision in the store, the aggregator and the insight engine
goes through :func:`to_date_key`. A key is a ``YYYY-MM-DD`` string computed in
an explicit time zone; the host's local zone is never consulted.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Any, Callable, List, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import ValidationError

Clock = Callable[[], datetime]
TzLike = Union[str, tzinfo, None]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def resolve_tz(tz: TzLike) -> tzinfo:
    if tz is None:
        return timezone.utc
    if isinstance(tz, tzinfo):
        return tz
    try:
        return ZoneInfo(str(tz))
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValidationError(f"Unknown time zone: {tz!r}") from exc


def _parse_iso(value: str) -> Union[date, datetime]:
    text = value.strip()
    if len(text) == 10:
        return date.fromisoformat(text)
    # Handle trailing Z.
    return datetime.fromisoformat(text.replace("Z", "+00:00"))


def to_date_key(value: Any, tz: TzLike = None) -> str:
    """Normalize a date, datetime or ISO string to a ``YYYY-MM-DD`` key in ``tz``.

    Aware datetimes are converted into ``tz`` first; naive datetimes are taken
    as wall-clock time in ``tz``.
    """
    if value is None or value == "":
        raise ValidationError("date is required")
    if isinstance(value, str):
        try:
            value = _parse_iso(value)
        except ValueError as exc:
            raise ValidationError(f"Unparseable date: {value!r}") from exc
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(resolve_tz(tz))
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    raise ValidationError(f"Unsupported date value: {value!r}")


def parse_date_key(key: str) -> date:
    try:
        return date.fromisoformat(key)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid date key: {key!r}") from exc


def start_of_day(key: str, tz: TzLike = None) -> datetime:
    """Local midnight of ``key`` in ``tz`` as an aware datetime."""
    return datetime.combine(parse_date_key(key), time.min, tzinfo=resolve_tz(tz))


def shift(key: str, days: int) -> str:
    """Move ``key`` by ``days``, clamped to the first and last representable day."""
    base = parse_date_key(key)
    try:
        return (base + timedelta(days=days)).isoformat()
    except OverflowError:
        return (date.min if days < 0 else date.max).isoformat()


def iter_date_keys(start: str, end: str) -> List[str]:
    s = parse_date_key(start)
    e = parse_date_key(end)
    if e < s:
        return []
    keys: List[str] = []
    cur = s
    while True:
        keys.append(cur.isoformat())
        if cur == e:
            return keys
        cur = cur + timedelta(days=1)


def today_key(clock: Optional[Clock] = None, tz: TzLike = None) -> str:
    now = (clock or utc_now)()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return to_date_key(now, tz)
