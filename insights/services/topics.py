"""Topic, question and key-phrase extraction from conversation messages."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import re
from typing import Iterable, List, Sequence, Tuple

from insights.models import Conversation
from insights.services.lexicon import DEFAULT_LEXICON, Lexicon

__all__ = [
    "TopicOccurrence",
    "QuestionOccurrence",
    "Query",
    "tokenise",
    "extract_topics",
    "extract_key_phrases",
    "is_question",
    "extract_occurrences",
    "extract_queries",
]

_PUNCTUATION = re.compile(r"[.,?!;:]")


@dataclass(slots=True)
class TopicOccurrence:
    """One topic found in one user message."""

    topic: str
    conversation_id: str
    message_id: str
    is_answered: bool


@dataclass(slots=True)
class QuestionOccurrence:
    """A user message recognised as a question, with the topics it mentions."""

    question: str
    topics: Tuple[str, ...]
    conversation_id: str
    message_id: str
    is_answered: bool


@dataclass(slots=True)
class Query:
    """A user message considered as a search-like query."""

    text: str
    timestamp: datetime


def _unique(items: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(items))


def tokenise(text: str) -> List[str]:
    """Lower-case ``text``, drop punctuation and split on whitespace."""

    return _PUNCTUATION.sub("", (text or "").lower()).split()


def extract_topics(message: str, lexicon: Lexicon = DEFAULT_LEXICON) -> List[str]:
    """Return the distinct candidate topics of a message.

    Long non stop-word tokens come first, followed by canonical topics
    injected from the lexicon keyword rules.
    """

    clean = _PUNCTUATION.sub("", (message or "").lower())
    words = [word for word in clean.split() if len(word) > 3 and word not in lexicon.stop_words]
    return _unique([*words, *lexicon.injected_topics(clean)])


def extract_key_phrases(query: str, lexicon: Lexicon = DEFAULT_LEXICON) -> List[str]:
    """Return unigrams, bigrams and canonical phrases of a user query."""

    words = tokenise(query)
    phrases = [word for word in words if len(word) > 2 and word not in lexicon.stop_words]
    phrases.extend(
        f"{first} {second}"
        for first, second in zip(words, words[1:])
        if len(first) > 2 and len(second) > 2
    )
    phrases.extend(lexicon.injected_phrases(query or ""))
    return _unique(phrases)


def is_question(message: str, lexicon: Lexicon = DEFAULT_LEXICON) -> bool:
    """Heuristically decide whether a message asks something."""

    normalised = (message or "").strip().lower()
    if not normalised:
        return False
    return normalised.endswith("?") or any(normalised.startswith(word) for word in lexicon.question_words)


def extract_occurrences(
    conversations: Sequence[Conversation],
    lexicon: Lexicon = DEFAULT_LEXICON,
) -> Tuple[List[TopicOccurrence], List[QuestionOccurrence]]:
    """Collect topic and question occurrences from every user message.

    A message counts as answered when the message right after it in the same
    conversation comes from the assistant.
    """

    topics: List[TopicOccurrence] = []
    questions: List[QuestionOccurrence] = []

    for conversation in conversations:
        messages = conversation.messages
        for index, message in enumerate(messages):
            if not message.is_user:
                continue

            is_answered = index + 1 < len(messages) and messages[index + 1].is_assistant
            message_id = conversation.message_id(index)
            extracted = extract_topics(message.content, lexicon)

            topics.extend(
                TopicOccurrence(
                    topic=topic,
                    conversation_id=conversation.id,
                    message_id=message_id,
                    is_answered=is_answered,
                )
                for topic in extracted
            )

            if is_question(message.content, lexicon):
                questions.append(
                    QuestionOccurrence(
                        question=message.content,
                        topics=tuple(extracted),
                        conversation_id=conversation.id,
                        message_id=message_id,
                        is_answered=is_answered,
                    )
                )

    return topics, questions


def extract_queries(conversations: Sequence[Conversation]) -> List[Query]:
    """Return every user message with its timestamp."""

    return [
        Query(text=message.content, timestamp=message.timestamp)
        for conversation in conversations
        for message in conversation.messages
        if message.is_user
    ]
