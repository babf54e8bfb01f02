"""Detection of frequently discussed topics that go unanswered."""

from __future__ import annotations

from collections import Counter
import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from insights.models import Conversation
from insights.schemas import AnalysisPeriod, GapOptions, TopicGap, TopicGapAnalysisResults
from insights.services.cooccurrence import topic_frequencies
from insights.services.lexicon import DEFAULT_LEXICON, Lexicon
from insights.services.topics import QuestionOccurrence, extract_occurrences, tokenise

__all__ = [
    "analyze_topic_gaps",
    "satisfaction_scores",
    "find_related_topics",
    "find_example_questions",
    "suggest_content_areas",
]

logger = logging.getLogger(__name__)

_RELATED_LIMIT = 5
_EXAMPLE_LIMIT = 3
_AREA_LIMIT = 5


def satisfaction_scores(questions: Iterable[QuestionOccurrence]) -> Dict[str, float]:
    """Share of questions per topic that got an immediate assistant reply.

    Topics that never appear in a question are absent from the result and
    should be read as fully satisfied.
    """

    answered: Counter[str] = Counter()
    total: Counter[str] = Counter()
    for question in questions:
        for topic in question.topics:
            total[topic] += 1
            if question.is_answered:
                answered[topic] += 1
    return {topic: answered[topic] / count for topic, count in total.items()}


def find_related_topics(topic: str, questions: Sequence[QuestionOccurrence]) -> List[str]:
    """Topics most often asked about together with ``topic``."""

    counts: Counter[str] = Counter()
    for question in questions:
        if topic not in question.topics:
            continue
        counts.update(other for other in question.topics if other != topic)
    return [other for other, _ in counts.most_common(_RELATED_LIMIT)]


def find_example_questions(topic: str, questions: Sequence[QuestionOccurrence]) -> List[str]:
    """Up to three distinct unanswered questions mentioning ``topic``."""

    examples = dict.fromkeys(
        question.question for question in questions if topic in question.topics and not question.is_answered
    )
    return list(examples)[:_EXAMPLE_LIMIT]


def suggest_content_areas(
    topic: str,
    related: Sequence[str],
    example_questions: Sequence[str],
    lexicon: Lexicon = DEFAULT_LEXICON,
) -> List[str]:
    """Headline ideas for content that would close the gap on ``topic``."""

    areas = [f"{topic} overview", f"{topic} guide"]
    areas.extend(f"{topic} and {other}" for other in related[:2])
    for question in example_questions:
        tokens = tokenise(question)
        word = next((w for w in lexicon.content_question_words if w in tokens), None)
        if word:
            areas.append(f"{word} to {topic}")
    return list(dict.fromkeys(areas))[:_AREA_LIMIT]


def _build_gaps(
    frequencies: Mapping[str, int],
    scores: Mapping[str, float],
    questions: Sequence[QuestionOccurrence],
    options: GapOptions,
    lexicon: Lexicon,
) -> List[TopicGap]:
    gaps: List[TopicGap] = []
    for topic, frequency in frequencies.items():
        if frequency < options.min_frequency:
            continue
        gap_score = 1 - scores.get(topic, 1.0)
        if gap_score < options.min_gap_score:
            continue

        related = find_related_topics(topic, questions)
        examples = find_example_questions(topic, questions)
        gaps.append(
            TopicGap(
                topic=topic,
                gap_score=gap_score,
                related_topics=related,
                frequency=frequency,
                example_questions=examples,
                suggested_content_areas=suggest_content_areas(topic, related, examples, lexicon),
            )
        )

    gaps.sort(key=lambda gap: gap.gap_score, reverse=True)
    return gaps[: options.limit]


def analyze_topic_gaps(
    conversations: Sequence[Conversation],
    period: AnalysisPeriod,
    options: Optional[GapOptions] = None,
    *,
    lexicon: Lexicon = DEFAULT_LEXICON,
) -> TopicGapAnalysisResults:
    """Find topics that are discussed often but rarely get an answer."""

    options = options or GapOptions()
    occurrences, questions = extract_occurrences(conversations, lexicon)
    frequencies = topic_frequencies(occurrences)
    gaps = _build_gaps(frequencies, satisfaction_scores(questions), questions, options, lexicon)

    logger.debug(
        "Found %d topic gaps among %d topics and %d questions",
        len(gaps),
        len(frequencies),
        len(questions),
    )

    return TopicGapAnalysisResults(
        gaps=gaps,
        period=period,
        total_topics_analyzed=len(frequencies),
        total_conversations_analyzed=len(conversations),
        insufficient_data=not frequencies,
    )
