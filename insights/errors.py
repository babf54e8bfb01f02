"""Exceptions raised at the infrastructure boundary of the insights package."""

from __future__ import annotations

__all__ = ["InsightsError", "CorpusUnavailableError", "AnalysisFailedError"]


class InsightsError(RuntimeError):
    """Base class for insight failures."""


class CorpusUnavailableError(InsightsError):
    """Raised when conversations cannot be read from the store."""


class AnalysisFailedError(InsightsError):
    """Raised when an analysis could not be produced for a brand."""

    def __init__(self, kind: str, brand_id: str, reason: str = "") -> None:
        self.kind = kind
        self.brand_id = brand_id
        message = f"{kind} analysis failed for brand {brand_id}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
