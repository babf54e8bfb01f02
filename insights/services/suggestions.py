"""Content suggestions derived from topic gaps and topic clusters."""

from __future__ import annotations

import logging
import math
from typing import Dict, List, Optional, Sequence

from insights.schemas import ContentSuggestion, SuggestionOptions, TopicCluster, TopicGap
from insights.services.lexicon import DEFAULT_LEXICON, Lexicon

__all__ = ["suggest_content", "choose_content_type", "priority_score", "estimated_impact", "build_outline"]

logger = logging.getLogger(__name__)

_TITLES: Dict[str, str] = {
    "article": "Understanding {topic}",
    "video": "{topic} in Action: Video Tutorial",
    "FAQ": "Frequently Asked Questions About {topic}",
    "guide": "Complete Guide to {topic}",
    "tutorial": "Step-by-Step {topic} Tutorial",
}

_TYPE_SECTIONS: Dict[str, Sequence[str]] = {
    "article": ("Best practices for {topic}", "Common misconceptions about {topic}"),
    "video": ("{topic} demonstration", "Visual examples of {topic}"),
    "FAQ": ("Common questions about {topic}", "Troubleshooting {topic} issues"),
    "guide": ("Getting started with {topic}", "Advanced {topic} techniques", "{topic} best practices"),
    "tutorial": ("Prerequisites for {topic}", "Step-by-step {topic} walkthrough", "{topic} examples"),
}


def choose_content_type(gap: TopicGap, content_types: Sequence[str], lexicon: Lexicon = DEFAULT_LEXICON) -> str:
    """Pick the content format that best fits a gap among the allowed ones."""

    if len(gap.example_questions) > 2 and "FAQ" in content_types:
        return "FAQ"
    if gap.gap_score > 0.7 and "guide" in content_types:
        return "guide"
    topics = [gap.topic, *gap.related_topics]
    technical = any(term in topic for term in lexicon.technical_terms for topic in topics)
    if technical and "tutorial" in content_types:
        return "tutorial"
    return "article" if "article" in content_types else content_types[0]


def priority_score(gap_score: float, frequency: int) -> float:
    return gap_score * math.log10(frequency + 1) * 10


def estimated_impact(gap_score: float, frequency: int) -> int:
    """Priority squeezed onto a 1-10 scale."""

    # halves round up
    return min(10, max(1, math.floor(priority_score(gap_score, frequency) + 0.5)))


def build_outline(topic: str, related: Sequence[str], areas: Sequence[str], content_type: str) -> List[str]:
    outline = [f"Introduction to {topic}", *areas]
    outline.extend(f"{topic} and {other}" for other in related[:3])
    outline.extend(section.format(topic=topic) for section in _TYPE_SECTIONS.get(content_type, ()))
    outline.append("Conclusion and next steps")
    return outline


def _cluster_for(topic: str, clusters: Sequence[TopicCluster]) -> Optional[TopicCluster]:
    return next((cluster for cluster in clusters if topic in cluster.topics), None)


def suggest_content(
    gaps: Sequence[TopicGap],
    clusters: Sequence[TopicCluster],
    options: Optional[SuggestionOptions] = None,
    *,
    lexicon: Lexicon = DEFAULT_LEXICON,
) -> List[ContentSuggestion]:
    """Turn each topic gap into a prioritised piece of content to create."""

    options = options or SuggestionOptions()
    suggestions: List[ContentSuggestion] = []

    for gap in gaps:
        content_type = choose_content_type(gap, options.content_types, lexicon)
        cluster = _cluster_for(gap.topic, clusters)
        title = _TITLES.get(content_type, _TITLES["article"]).format(topic=gap.topic)
        suggestions.append(
            ContentSuggestion(
                title=title,
                type=content_type,
                priority=priority_score(gap.gap_score, gap.frequency),
                topics=[gap.topic, *gap.related_topics],
                gap_score=gap.gap_score,
                estimated_impact=estimated_impact(gap.gap_score, gap.frequency),
                example_questions=list(gap.example_questions),
                suggested_outline=build_outline(
                    gap.topic, gap.related_topics, gap.suggested_content_areas, content_type
                ),
                cluster_topic=cluster.central_topic if cluster else None,
            )
        )

    suggestions.sort(key=lambda suggestion: suggestion.priority, reverse=True)
    logger.debug("Built %d content suggestions from %d gaps", len(suggestions), len(gaps))
    return suggestions[: options.limit]
