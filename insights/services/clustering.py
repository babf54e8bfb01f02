"""Greedy co-occurrence clustering of conversation topics."""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from insights.models import Conversation
from insights.schemas import (
    AnalysisPeriod,
    ClusteringOptions,
    TopicCluster,
    TopicClusteringResults,
)
from insights.services.cooccurrence import similarity, topic_frequencies, topic_similarities
from insights.services.lexicon import DEFAULT_LEXICON, Lexicon
from insights.services.topics import extract_occurrences

__all__ = ["cluster_topics", "merge_clusters", "find_examples"]

logger = logging.getLogger(__name__)

_EXAMPLE_LIMIT = 3


def _central_topic(members: Sequence[str], frequencies: Mapping[str, int]) -> str:
    # max() keeps the first member among equally frequent ones
    return max(members, key=lambda topic: frequencies.get(topic, 0))


def merge_clusters(
    frequencies: Mapping[str, int],
    similarities: Mapping[Tuple[str, str], float],
    *,
    min_frequency: int,
    similarity_threshold: float,
) -> Dict[str, List[str]]:
    """Merge frequent topics whose keys are similar enough.

    Every topic reaching ``min_frequency`` starts as its own cluster. Pairs of
    clusters are scanned in insertion order and the first pair whose keys
    reach ``similarity_threshold`` is merged under its most frequent member,
    after which the scan starts over. The result maps each cluster key to its
    members, key first.
    """

    clusters: Dict[str, List[str]] = {
        topic: [topic] for topic, count in frequencies.items() if count >= min_frequency
    }

    merged = True
    while merged:
        merged = False
        keys = list(clusters)
        for i, first in enumerate(keys):
            for second in keys[i + 1:]:
                if similarity(first, second, similarities) < similarity_threshold:
                    continue
                members = clusters.pop(first) + clusters.pop(second)
                key = _central_topic(members, frequencies)
                clusters[key] = [key, *(topic for topic in members if topic != key)]
                merged = True
                break
            if merged:
                break

    return clusters


def find_examples(
    clusters: Sequence[TopicCluster],
    conversations: Sequence[Conversation],
    limit: int = _EXAMPLE_LIMIT,
) -> None:
    """Attach up to ``limit`` user messages mentioning any topic of each cluster."""

    for cluster in clusters:
        topics = [topic.lower() for topic in cluster.topics]
        examples: List[str] = []
        for conversation in conversations:
            for message in conversation.messages:
                if not message.is_user:
                    continue
                content = message.content.lower()
                if any(topic in content for topic in topics):
                    examples.append(message.content)
                    if len(examples) >= limit:
                        break
            if len(examples) >= limit:
                break
        cluster.examples = examples


def cluster_topics(
    conversations: Sequence[Conversation],
    period: AnalysisPeriod,
    options: Optional[ClusteringOptions] = None,
    *,
    lexicon: Lexicon = DEFAULT_LEXICON,
    warn_above: int = 2000,
) -> TopicClusteringResults:
    """Group the topics of ``conversations`` into clusters of related topics."""

    options = options or ClusteringOptions()
    occurrences, _ = extract_occurrences(conversations, lexicon)
    frequencies = topic_frequencies(occurrences)
    similarities = topic_similarities(occurrences, warn_above=warn_above)

    merged = merge_clusters(
        frequencies,
        similarities,
        min_frequency=options.min_frequency,
        similarity_threshold=options.similarity_threshold,
    )

    total_frequency = sum(frequencies.values())
    clusters = [
        TopicCluster(
            central_topic=key,
            related_topics=members[1:],
            frequency=sum(frequencies[topic] for topic in members),
            relevance=sum(frequencies[topic] for topic in members) / total_frequency,
        )
        for key, members in merged.items()
    ]
    clusters.sort(key=lambda cluster: cluster.frequency, reverse=True)
    clusters = clusters[: options.limit]
    find_examples(clusters, conversations)

    logger.debug(
        "Clustered %d topics into %d clusters over %d conversations",
        len(frequencies),
        len(clusters),
        len(conversations),
    )

    return TopicClusteringResults(
        clusters=clusters,
        period=period,
        total_topics=len(frequencies),
        total_conversations=len(conversations),
        insufficient_data=not clusters,
    )
