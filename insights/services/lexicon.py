"""Vocabulary used by the topic and phrase extractors."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import FrozenSet, Mapping, Tuple

__all__ = ["Lexicon", "DEFAULT_LEXICON"]

_STOPWORDS = frozenset(
    {
        "the",
        "a",
        "an",
        "and",
        "or",
        "but",
        "is",
        "are",
        "was",
        "were",
        "do",
        "does",
        "did",
        "i",
        "you",
        "he",
        "she",
        "it",
        "we",
        "they",
        "my",
        "your",
        "his",
        "her",
        "its",
        "our",
        "their",
    }
)

_QUESTION_WORDS = (
    "what",
    "how",
    "why",
    "when",
    "where",
    "who",
    "which",
    "can",
    "could",
    "would",
    "should",
    "is",
    "are",
    "do",
    "does",
)


_MAPPING_FIELDS = ("topic_keywords", "topic_compounds", "phrase_keywords", "phrase_compounds")


def _frozen(mapping: Mapping[str, Tuple[str, ...]]) -> Mapping[str, Tuple[str, ...]]:
    return MappingProxyType({term: tuple(triggers) for term, triggers in mapping.items()})


@dataclass(frozen=True)
class Lexicon:
    """Closed vocabulary driving tokenisation and keyword injection.

    ``topic_keywords`` and ``phrase_keywords`` map a canonical term to the
    substrings that trigger it; the ``*_compounds`` mappings inject a term
    only when every listed substring is present. All matching is
    case-insensitive substring matching on the message.
    """

    stop_words: FrozenSet[str] = _STOPWORDS
    question_words: Tuple[str, ...] = _QUESTION_WORDS
    content_question_words: Tuple[str, ...] = ("how", "what", "why", "when", "where", "who", "which")
    topic_keywords: Mapping[str, Tuple[str, ...]] = field(
        hash=False,
        default_factory=lambda: _frozen({
            "subscription": ("subscription",),
            "pricing": ("pricing", "price", "cost"),
            "plan": ("plan",),
            "feature": ("feature",),
            "support": ("support",),
            "billing": ("billing",),
            "account": ("account",),
        })
    )
    topic_compounds: Mapping[str, Tuple[str, ...]] = field(
        hash=False,
        default_factory=lambda: _frozen({
            "premium plan": ("premium", "plan"),
            "subscription discount": ("discount", "subscription"),
        })
    )
    phrase_keywords: Mapping[str, Tuple[str, ...]] = field(
        hash=False,
        default_factory=lambda: _frozen({
            "subscription": ("subscription",),
            "plan": ("plan",),
            "pricing": ("pricing", "price", "cost"),
            "discount": ("discount",),
        })
    )
    phrase_compounds: Mapping[str, Tuple[str, ...]] = field(
        hash=False,
        default_factory=lambda: _frozen({
            "subscription plan": ("subscription", "plan"),
            "change subscription": ("change", "subscription"),
        })
    )
    technical_terms: Tuple[str, ...] = ("setup", "install", "configure", "integrate", "implement", "code", "develop")

    def __post_init__(self) -> None:
        # keyword tables are shared by every engine using this lexicon
        for name in _MAPPING_FIELDS:
            object.__setattr__(self, name, _frozen(getattr(self, name)))

    def with_stop_words(self, *words: str) -> "Lexicon":
        """Return a copy with additional stop words."""

        return replace(self, stop_words=self.stop_words | {word.lower() for word in words})

    def injected_topics(self, text: str) -> list[str]:
        """Canonical topics triggered by substrings of ``text``."""

        return _inject(text, self.topic_keywords, self.topic_compounds)

    def injected_phrases(self, text: str) -> list[str]:
        """Canonical phrases triggered by substrings of ``text``."""

        return _inject(text, self.phrase_keywords, self.phrase_compounds)


def _inject(
    text: str,
    keywords: Mapping[str, Tuple[str, ...]],
    compounds: Mapping[str, Tuple[str, ...]],
) -> list[str]:
    lowered = text.lower()
    found = [term for term, triggers in keywords.items() if any(t in lowered for t in triggers)]
    found.extend(term for term, parts in compounds.items() if all(p in lowered for p in parts))
    return found


DEFAULT_LEXICON = Lexicon()
