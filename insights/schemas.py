"""Option and report models for the conversation insight analyses."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import json
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

__all__ = [
    "AnalysisWindow",
    "AnalysisPeriod",
    "ClusteringOptions",
    "TrendOptions",
    "GapOptions",
    "SuggestionOptions",
    "TopicCluster",
    "TopicClusteringResults",
    "QueryTrend",
    "QueryTrendAnalysis",
    "TopicGap",
    "TopicGapAnalysisResults",
    "ContentSuggestion",
    "ContentSuggestionResults",
    "DEFAULT_CONTENT_TYPES",
]

DEFAULT_CONTENT_TYPES = ("article", "video", "FAQ", "guide", "tutorial")


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class AnalysisWindow(BaseModel):
    """Time range of an analysis; open ends are resolved against ``now``."""

    model_config = ConfigDict(frozen=True)

    start_date: Optional[datetime] = Field(default=None, description="Inclusive window start.")
    end_date: Optional[datetime] = Field(default=None, description="Inclusive window end.")

    @model_validator(mode="after")
    def _check_order(self) -> "AnalysisWindow":
        if self.start_date and self.end_date and _utc(self.start_date) > _utc(self.end_date):
            raise ValueError("start_date must not be after end_date")
        return self

    def resolve(self, now: Optional[datetime] = None, *, default_days: int = 30) -> Tuple[datetime, datetime]:
        """Return concrete, timezone-aware ``(start, end)`` bounds."""

        end = _utc(self.end_date) if self.end_date else _utc(now or datetime.now(timezone.utc))
        start = _utc(self.start_date) if self.start_date else end - timedelta(days=default_days)
        return start, end


class _Options(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    def cache_key(self, kind: str, brand_id: str, window: AnalysisWindow) -> str:
        """Render the ``kind:brand:json`` cache key for this option set."""

        payload = {"window": window.model_dump(mode="json"), **self.model_dump(mode="json")}
        return f"{kind}:{brand_id}:{_dump_sorted(payload)}"


def _dump_sorted(payload: dict) -> str:
    return json.dumps(payload, sort_keys=True, separators=(",", ":"))


class ClusteringOptions(_Options):
    min_frequency: int = Field(default=2, ge=1, description="Minimum occurrences of a topic.")
    similarity_threshold: float = Field(default=0.3, ge=0.0, le=1.0, description="Merge threshold.")
    limit: int = Field(default=10, ge=1, description="Maximum clusters returned.")


class TrendOptions(_Options):
    min_frequency: int = Field(default=2, ge=1)
    min_growth_rate: float = Field(default=5.0, ge=0.0, description="Percent change marking a trend.")
    limit: int = Field(default=10, ge=1)


class GapOptions(_Options):
    min_frequency: int = Field(default=3, ge=1)
    min_gap_score: float = Field(default=0.5, ge=0.0, le=1.0)
    limit: int = Field(default=10, ge=1)


class SuggestionOptions(_Options):
    min_gap_score: float = Field(default=0.3, ge=0.0, le=1.0)
    content_types: Tuple[str, ...] = Field(default=DEFAULT_CONTENT_TYPES, min_length=1)
    limit: int = Field(default=10, ge=1)

    @field_validator("content_types")
    @classmethod
    def _strip_blank(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        cleaned = tuple(item.strip() for item in value if item and item.strip())
        if not cleaned:
            raise ValueError("content_types must name at least one type")
        return cleaned


class AnalysisPeriod(BaseModel):
    start_date: datetime
    end_date: datetime


class TopicCluster(BaseModel):
    """A group of topics that tend to appear in the same conversations."""

    central_topic: str
    related_topics: List[str] = Field(default_factory=list)
    frequency: int = Field(ge=0)
    relevance: float = Field(ge=0.0, le=1.0)
    examples: List[str] = Field(default_factory=list)

    @property
    def topics(self) -> List[str]:
        return [self.central_topic, *self.related_topics]


class TopicClusteringResults(BaseModel):
    clusters: List[TopicCluster] = Field(default_factory=list)
    period: AnalysisPeriod
    total_topics: int = 0
    total_conversations: int = 0
    insufficient_data: bool = False


class QueryTrend(BaseModel):
    """A recurring query phrase and how its volume moved across the window."""

    pattern: str
    frequency: int = Field(ge=0)
    growth_rate: float
    first_seen: datetime
    last_seen: datetime
    related_topics: List[str] = Field(default_factory=list, max_length=5)


class QueryTrendAnalysis(BaseModel):
    rising_trends: List[QueryTrend] = Field(default_factory=list)
    falling_trends: List[QueryTrend] = Field(default_factory=list)
    stable_trends: List[QueryTrend] = Field(default_factory=list)
    period: AnalysisPeriod
    total_queries: int = 0
    insufficient_data: bool = False


class TopicGap(BaseModel):
    """A topic users keep asking about without getting an answer."""

    topic: str
    gap_score: float = Field(ge=0.0, le=1.0)
    related_topics: List[str] = Field(default_factory=list, max_length=5)
    frequency: int = Field(ge=0)
    example_questions: List[str] = Field(default_factory=list, max_length=3)
    suggested_content_areas: List[str] = Field(default_factory=list, max_length=5)


class TopicGapAnalysisResults(BaseModel):
    gaps: List[TopicGap] = Field(default_factory=list)
    period: AnalysisPeriod
    total_topics_analyzed: int = 0
    total_conversations_analyzed: int = 0
    insufficient_data: bool = False


class ContentSuggestion(BaseModel):
    title: str
    type: str
    priority: float = Field(ge=0.0)
    topics: List[str] = Field(default_factory=list)
    gap_score: float = Field(ge=0.0, le=1.0)
    estimated_impact: int = Field(ge=1, le=10)
    example_questions: List[str] = Field(default_factory=list)
    suggested_outline: List[str] = Field(default_factory=list)
    cluster_topic: Optional[str] = None


class ContentSuggestionResults(BaseModel):
    suggestions: List[ContentSuggestion] = Field(default_factory=list)
    period: AnalysisPeriod
    total_topics_analyzed: int = 0
    total_gaps_analyzed: int = 0
    insufficient_data: bool = False
