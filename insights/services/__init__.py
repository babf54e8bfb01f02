"""Mining services for the conversation insights package."""

from .clustering import cluster_topics
from .gaps import analyze_topic_gaps
from .lexicon import DEFAULT_LEXICON, Lexicon
from .normalization import normalize_conversation, redact_text
from .suggestions import suggest_content
from .topics import extract_key_phrases, extract_topics, is_question
from .trends import analyze_query_trends

__all__ = [
    "cluster_topics",
    "analyze_topic_gaps",
    "analyze_query_trends",
    "suggest_content",
    "DEFAULT_LEXICON",
    "Lexicon",
    "normalize_conversation",
    "redact_text",
    "extract_topics",
    "extract_key_phrases",
    "is_question",
]
