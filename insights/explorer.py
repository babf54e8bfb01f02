"""Entry point tying the corpus, the cache and the mining services together."""

from __future__ import annotations

from datetime import datetime
import logging
import time
from typing import Callable, List, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel

from config import Settings
from insights.cache import AnalysisCache, NullCache
from insights.errors import AnalysisFailedError, InsightsError
from insights.models import Conversation
from insights.repository import ConversationRepository
from insights.schemas import (
    AnalysisPeriod,
    AnalysisWindow,
    ClusteringOptions,
    ContentSuggestionResults,
    GapOptions,
    QueryTrendAnalysis,
    SuggestionOptions,
    TopicClusteringResults,
    TopicGapAnalysisResults,
    TrendOptions,
)
from insights.services.clustering import cluster_topics
from insights.services.gaps import analyze_topic_gaps
from insights.services.lexicon import DEFAULT_LEXICON, Lexicon
from insights.services.suggestions import suggest_content
from insights.services.trends import analyze_query_trends

__all__ = ["ConversationExplorer"]

logger = logging.getLogger(__name__)

ReportT = TypeVar("ReportT", bound=BaseModel)


class ConversationExplorer:
    """Run insight analyses for a brand over a window of its conversations.

    Each call resolves its window once, reads the corpus once and caches the
    report under ``kind:brand:options``. Failures of the conversation store
    are logged and re-raised as :class:`AnalysisFailedError`; nothing is
    retried here.
    """

    def __init__(
        self,
        repository: ConversationRepository,
        cache: Optional[AnalysisCache] = None,
        *,
        lexicon: Lexicon = DEFAULT_LEXICON,
        settings: Optional[Settings] = None,
    ) -> None:
        self._repository = repository
        self._cache = cache if cache is not None else NullCache()
        self._lexicon = lexicon
        self._settings = settings or Settings()

    def _period(self, window: AnalysisWindow, now: Optional[datetime]) -> AnalysisPeriod:
        start, end = window.resolve(now, default_days=self._settings.default_window_days)
        return AnalysisPeriod(start_date=start, end_date=end)

    def _load(self, kind: str, brand_id: str, period: AnalysisPeriod) -> List[Conversation]:
        try:
            return self._repository.find_conversations_by_brand(brand_id, period.start_date, period.end_date)
        except InsightsError as e:
            logger.exception(f"Failed to load conversations for {kind} of brand {brand_id}")
            raise AnalysisFailedError(kind, brand_id, str(e)) from e

    def _run(
        self,
        kind: str,
        brand_id: str,
        key: str,
        schema: Type[ReportT],
        compute: Callable[[], ReportT],
    ) -> ReportT:
        def timed() -> ReportT:
            started = time.perf_counter()
            logger.debug(f"Computing {kind} for brand: {brand_id}")
            report = compute()
            logger.debug(f"{kind} for brand {brand_id} completed in {(time.perf_counter() - started) * 1000:.1f}ms")
            return report

        return self._cache.get_or_set(key, timed, self._settings.ttl_for(kind), schema)

    def close(self) -> None:
        """Release the cache connection."""

        self._cache.close()

    def _prepare(
        self,
        window: Optional[AnalysisWindow],
        now: Optional[datetime],
    ) -> Tuple[AnalysisWindow, AnalysisPeriod]:
        window = window or AnalysisWindow()
        return window, self._period(window, now)

    def cluster_topics(
        self,
        brand_id: str,
        window: Optional[AnalysisWindow] = None,
        options: Optional[ClusteringOptions] = None,
        *,
        now: Optional[datetime] = None,
    ) -> TopicClusteringResults:
        kind = "topic_clusters"
        options = options or ClusteringOptions()
        window, period = self._prepare(window, now)

        def compute() -> TopicClusteringResults:
            conversations = self._load(kind, brand_id, period)
            return cluster_topics(
                conversations,
                period,
                options,
                lexicon=self._lexicon,
                warn_above=self._settings.similarity_topic_warning,
            )

        return self._run(kind, brand_id, options.cache_key(kind, brand_id, window), TopicClusteringResults, compute)

    def analyze_query_trends(
        self,
        brand_id: str,
        window: Optional[AnalysisWindow] = None,
        options: Optional[TrendOptions] = None,
        *,
        now: Optional[datetime] = None,
    ) -> QueryTrendAnalysis:
        kind = "query_trends"
        options = options or TrendOptions()
        window, period = self._prepare(window, now)

        def compute() -> QueryTrendAnalysis:
            conversations = self._load(kind, brand_id, period)
            return analyze_query_trends(conversations, period, options, lexicon=self._lexicon)

        return self._run(kind, brand_id, options.cache_key(kind, brand_id, window), QueryTrendAnalysis, compute)

    def analyze_topic_gaps(
        self,
        brand_id: str,
        window: Optional[AnalysisWindow] = None,
        options: Optional[GapOptions] = None,
        *,
        now: Optional[datetime] = None,
    ) -> TopicGapAnalysisResults:
        kind = "topic_gaps"
        options = options or GapOptions()
        window, period = self._prepare(window, now)

        def compute() -> TopicGapAnalysisResults:
            conversations = self._load(kind, brand_id, period)
            return analyze_topic_gaps(conversations, period, options, lexicon=self._lexicon)

        return self._run(kind, brand_id, options.cache_key(kind, brand_id, window), TopicGapAnalysisResults, compute)

    def suggest_content(
        self,
        brand_id: str,
        window: Optional[AnalysisWindow] = None,
        options: Optional[SuggestionOptions] = None,
        *,
        now: Optional[datetime] = None,
    ) -> ContentSuggestionResults:
        """Merge topic gaps and topic clusters into content to create."""

        kind = "content_suggestions"
        options = options or SuggestionOptions()
        window, period = self._prepare(window, now)
        # pin both sub-analyses to the same resolved window
        pinned = AnalysisWindow(start_date=period.start_date, end_date=period.end_date)

        def compute() -> ContentSuggestionResults:
            gap_analysis = self.analyze_topic_gaps(
                brand_id, pinned, GapOptions(min_gap_score=options.min_gap_score), now=now
            )
            cluster_analysis = self.cluster_topics(brand_id, pinned, now=now)
            suggestions = suggest_content(
                gap_analysis.gaps, cluster_analysis.clusters, options, lexicon=self._lexicon
            )
            return ContentSuggestionResults(
                suggestions=suggestions,
                period=period,
                total_topics_analyzed=gap_analysis.total_topics_analyzed,
                total_gaps_analyzed=len(gap_analysis.gaps),
                insufficient_data=not suggestions,
            )

        return self._run(kind, brand_id, options.cache_key(kind, brand_id, window), ContentSuggestionResults, compute)
