# -*- coding: utf-8 -*-
"""Insight engine: window assembly, gating and ranking.

The engine only ever reads from the log store. Analyzer failures are logged
and skipped; storage failures abort the whole generation.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..config import settings
from ..datekey import Clock, shift, utc_now
from ..errors import AnalyzerError, ValidationError
from ..logs.models import ALL_CATEGORIES, LogCategory, LogEntry
from ..logs.storage import LogStore
from .analyzers import Analyzer, GeneralFallbackAnalyzer, default_analyzers
from .models import HistoricalWindow, Insight

logger = logging.getLogger(__name__)

LAST_RESORT_SOURCE = "engine"


class InsightEngine:
    def __init__(
        self,
        store: LogStore,
        analyzers: Iterable[Analyzer] = (),
        *,
        fallback: Optional[Analyzer] = None,
        min_entries: int = 5,
        window_span: int = 30,
        clock: Optional[Clock] = None,
    ) -> None:
        self._store = store
        self._analyzers: List[Analyzer] = list(analyzers)
        self._fallback: Analyzer = fallback or GeneralFallbackAnalyzer()
        self.min_entries = int(min_entries)
        self.window_span = int(window_span)
        self._clock = clock or utc_now

    @classmethod
    def with_defaults(cls, store: LogStore, **kwargs: Any) -> "InsightEngine":
        kwargs.setdefault("min_entries", settings.insight_min_entries)
        kwargs.setdefault("window_span", settings.insight_window_days)
        return cls(store, default_analyzers(), **kwargs)

    @property
    def analyzers(self) -> Tuple[Analyzer, ...]:
        return tuple(self._analyzers)

    def register(self, analyzer: Analyzer) -> None:
        if not getattr(analyzer, "name", None) or not callable(getattr(analyzer, "analyze", None)):
            raise ValidationError("analyzer needs a name and an analyze(window) method")
        self._analyzers.append(analyzer)

    def window_bounds(self, as_of: Any = None, window_span: Optional[int] = None) -> Tuple[str, str]:
        span = self.window_span if window_span is None else int(window_span)
        if span < 0:
            raise ValidationError("window_span must be >= 0")
        end = self._store.date_key(as_of) if as_of is not None else self._store.today()
        return shift(end, -span), end

    async def build_window(self, as_of: Any = None, window_span: Optional[int] = None) -> HistoricalWindow:
        start, end = self.window_bounds(as_of, window_span)
        entries: Dict[LogCategory, Tuple[LogEntry, ...]] = {}
        for category in ALL_CATEGORIES:
            entries[category] = tuple(await self._store.read_range(category, start, end))
        return HistoricalWindow(start=start, end=end, generated_at=self._clock().isoformat(), entries=entries)

    def is_sufficient(self, window: HistoricalWindow) -> bool:
        return window.max_category_count >= self.min_entries

    def _run(self, analyzer: Analyzer, window: HistoricalWindow) -> Optional[Insight]:
        name = getattr(analyzer, "name", type(analyzer).__name__)
        try:
            result = analyzer.analyze(window)
            if result is not None and not isinstance(result, Insight):
                raise TypeError(f"expected Insight or None, got {type(result).__name__}")
            return result
        except Exception as exc:
            err = AnalyzerError(name, exc)
            logger.warning("Analyzer failed: %s", err, exc_info=exc)
            return None

    def _last_resort(self, window: HistoricalWindow) -> Insight:
        return Insight(
            id=f"{LAST_RESORT_SOURCE}-{window.end}",
            type="general",
            title="Keep Logging",
            content="Every entry you add makes your insights more personal. Log something today.",
            priority=1,
            created_at=window.generated_at,
            source=LAST_RESORT_SOURCE,
            signal_date=None,
        )

    async def generate(
        self,
        *,
        as_of: Any = None,
        window_span: Optional[int] = None,
        max_results: Optional[int] = None,
    ) -> List[Insight]:
        """Run every analyzer over the window and return ranked insights.

        Never returns an empty list when ``max_results`` is None or >= 1.
        """
        if max_results is not None and max_results < 1:
            raise ValidationError("max_results must be >= 1")
        window = await self.build_window(as_of, window_span)
        sufficient = self.is_sufficient(window)

        candidates: List[Insight] = []
        for analyzer in self._analyzers:
            if getattr(analyzer, "requires_sufficient_data", True) and not sufficient:
                continue
            insight = self._run(analyzer, window)
            if insight is not None:
                candidates.append(insight)

        if not candidates:
            insight = self._run(self._fallback, window)
            candidates.append(insight if insight is not None else self._last_resort(window))

        ranked = rank_insights(candidates)
        logger.info(
            "Generated %d insight(s) for %s..%s (sufficient=%s, candidates=%d)",
            len(ranked), window.start, window.end, sufficient, len(candidates),
        )
        return ranked if max_results is None else ranked[:max_results]

    async def generate_one(self, *, as_of: Any = None, window_span: Optional[int] = None) -> Insight:
        return (await self.generate(as_of=as_of, window_span=window_span, max_results=1))[0]


def rank_insights(candidates: Iterable[Insight]) -> List[Insight]:
    """Priority desc, then signal_date desc (undated last), then source name.

    Duplicates by id or by (type, title) keep only the best-ranked copy.
    """
    ordered = sorted(candidates, key=lambda i: (i.source, i.id))
    ordered.sort(key=lambda i: i.signal_date or "", reverse=True)
    ordered.sort(key=lambda i: i.priority, reverse=True)

    seen_ids = set()
    seen_titles = set()
    out: List[Insight] = []
    for insight in ordered:
        title_key = (insight.type, insight.title)
        if insight.id in seen_ids or title_key in seen_titles:
            continue
        seen_ids.add(insight.id)
        seen_titles.add(title_key)
        out.append(insight)
    return out
