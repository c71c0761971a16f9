# -*- coding: utf-8 -*-
"""Error taxonomy shared by the store, the aggregator and the insight engine."""

from __future__ import annotations


class HealthlogError(Exception):
    """Base class for errors raised by the healthlog core."""


class ValidationError(HealthlogError):
    """Malformed input to a write, update or numeric rollup."""


class NotFoundError(HealthlogError):
    """Update/delete referencing a (category, date, id) triple that does not exist."""


class StorageError(HealthlogError):
    """The persistence collaborator failed. Never retried here."""


class AnalyzerError(HealthlogError):
    """An analyzer raised during generation. Contained by the engine."""

    def __init__(self, analyzer: str, cause: BaseException) -> None:
        super().__init__(f"Analyzer {analyzer!r} failed: {cause!r}")
        self.analyzer = analyzer
        self.cause = cause
