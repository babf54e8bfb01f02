"""Topic frequency and co-occurrence similarity."""

from __future__ import annotations

from collections import Counter
from itertools import combinations
import logging
from typing import Dict, Iterable, Mapping, Set, Tuple

from insights.services.topics import TopicOccurrence

__all__ = ["topic_frequencies", "topic_similarities", "similarity"]

logger = logging.getLogger(__name__)

SimilarityTable = Dict[Tuple[str, str], float]


def topic_frequencies(occurrences: Iterable[TopicOccurrence]) -> Dict[str, int]:
    """Count occurrences per topic, keeping first-seen order."""

    counter: Counter[str] = Counter()
    for occurrence in occurrences:
        counter[occurrence.topic] += 1
    return dict(counter)


def topic_similarities(
    occurrences: Iterable[TopicOccurrence],
    *,
    warn_above: int = 2000,
) -> SimilarityTable:
    """Jaccard similarity of the conversation sets of every pair of topics.

    Both orderings of a pair are stored so lookups are order independent.
    """

    conversations_by_topic: Dict[str, Set[str]] = {}
    for occurrence in occurrences:
        conversations_by_topic.setdefault(occurrence.topic, set()).add(occurrence.conversation_id)

    if len(conversations_by_topic) > warn_above:
        logger.warning(
            "Computing pairwise similarity over %d topics; cost grows quadratically",
            len(conversations_by_topic),
        )

    table: SimilarityTable = {}
    for first, second in combinations(conversations_by_topic, 2):
        left = conversations_by_topic[first]
        right = conversations_by_topic[second]
        union = len(left | right)
        if not union:
            continue
        score = len(left & right) / union
        table[(first, second)] = score
        table[(second, first)] = score

    return table


def similarity(first: str, second: str, table: Mapping[Tuple[str, str], float]) -> float:
    """Look up the similarity of two topics, 0.0 when never compared."""

    return table.get((first, second), 0.0)
