"""Rising, falling and stable query phrases over an analysis window."""

from __future__ import annotations

from datetime import datetime
import logging
from typing import Dict, List, Optional, Sequence

from insights.models import Conversation
from insights.schemas import AnalysisPeriod, QueryTrend, QueryTrendAnalysis, TrendOptions
from insights.services.lexicon import DEFAULT_LEXICON, Lexicon
from insights.services.topics import Query, extract_key_phrases, extract_queries, tokenise

__all__ = ["analyze_query_trends", "group_by_phrase", "growth_rate", "build_trends", "related_topics"]

logger = logging.getLogger(__name__)

_RELATED_LIMIT = 5


def group_by_phrase(queries: Sequence[Query], lexicon: Lexicon = DEFAULT_LEXICON) -> Dict[str, List[Query]]:
    """Map every key phrase to the queries containing it."""

    patterns: Dict[str, List[Query]] = {}
    for query in queries:
        for phrase in extract_key_phrases(query.text.strip(), lexicon):
            patterns.setdefault(phrase, []).append(query)
    return patterns


def growth_rate(first_half: int, second_half: int) -> float:
    """Percent change from the first half of the window to the second.

    A phrase absent from the first half but present in the second counts as
    100% growth; a phrase absent from both has no growth.
    """

    if first_half > 0:
        return (second_half - first_half) / first_half * 100
    if second_half > 0:
        return 100.0
    return 0.0


def related_topics(occurrences: Sequence[Query], lexicon: Lexicon = DEFAULT_LEXICON) -> List[str]:
    """Up to five long words and canonical phrases seen alongside a pattern."""

    topics: Dict[str, None] = {}
    for occurrence in occurrences:
        for word in tokenise(occurrence.text):
            if len(word) > 3:
                topics.setdefault(word)
        lowered = occurrence.text.lower()
        for phrase, triggers in lexicon.phrase_keywords.items():
            if any(trigger in lowered for trigger in triggers):
                topics.setdefault(phrase)
    return list(topics)[:_RELATED_LIMIT]


def build_trends(
    patterns: Dict[str, List[Query]],
    start: datetime,
    end: datetime,
    lexicon: Lexicon = DEFAULT_LEXICON,
) -> List[QueryTrend]:
    """Compute frequency, first/last sighting and growth for each pattern."""

    midpoint = start + (end - start) / 2
    trends: List[QueryTrend] = []

    for pattern, occurrences in patterns.items():
        if not occurrences:
            continue
        ordered = sorted(occurrences, key=lambda query: query.timestamp)
        first_half = sum(1 for query in ordered if query.timestamp < midpoint)
        second_half = len(ordered) - first_half

        trends.append(
            QueryTrend(
                pattern=pattern,
                frequency=len(ordered),
                growth_rate=growth_rate(first_half, second_half),
                first_seen=ordered[0].timestamp,
                last_seen=ordered[-1].timestamp,
                related_topics=related_topics(ordered, lexicon),
            )
        )

    return trends


def analyze_query_trends(
    conversations: Sequence[Conversation],
    period: AnalysisPeriod,
    options: Optional[TrendOptions] = None,
    *,
    lexicon: Lexicon = DEFAULT_LEXICON,
) -> QueryTrendAnalysis:
    """Classify recurring query phrases as rising, falling or stable.

    Growth compares the two halves of the window, so it is a coarse signal:
    a burst right before or after the midpoint swings it heavily.
    """

    options = options or TrendOptions()
    queries = extract_queries(conversations)
    trends = build_trends(group_by_phrase(queries, lexicon), period.start_date, period.end_date, lexicon)
    frequent = [trend for trend in trends if trend.frequency >= options.min_frequency]

    threshold = options.min_growth_rate
    rising: List[QueryTrend] = []
    falling: List[QueryTrend] = []
    stable: List[QueryTrend] = []
    for trend in frequent:
        if trend.growth_rate >= threshold:
            rising.append(trend)
        elif trend.growth_rate <= -threshold:
            falling.append(trend)
        else:
            stable.append(trend)

    rising.sort(key=lambda trend: trend.growth_rate, reverse=True)
    falling.sort(key=lambda trend: trend.growth_rate)
    stable.sort(key=lambda trend: trend.frequency, reverse=True)

    logger.debug(
        "Found %d rising, %d falling and %d stable trends in %d queries",
        len(rising),
        len(falling),
        len(stable),
        len(queries),
    )

    return QueryTrendAnalysis(
        rising_trends=rising[: options.limit],
        falling_trends=falling[: options.limit],
        stable_trends=stable[: options.limit],
        period=period,
        total_queries=len(queries),
        insufficient_data=not frequent,
    )
