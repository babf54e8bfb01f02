"""Tests for the brand-level analysis entry point."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from config import Settings
from insights.cache import InMemoryCache
from insights.errors import AnalysisFailedError, CorpusUnavailableError
from insights.explorer import ConversationExplorer
from insights.repository import InMemoryConversationRepository
from insights.schemas import AnalysisWindow, ClusteringOptions, GapOptions

NOW = datetime(2023, 1, 31, tzinfo=timezone.utc)
JANUARY = AnalysisWindow(
    start_date=datetime(2023, 1, 1, tzinfo=timezone.utc),
    end_date=datetime(2023, 1, 31, tzinfo=timezone.utc),
)


class CountingRepository(InMemoryConversationRepository):
    def __init__(self, conversations=()) -> None:
        super().__init__(conversations)
        self.calls = 0

    def find_conversations_by_brand(self, brand_id, window_start, window_end):
        self.calls += 1
        return super().find_conversations_by_brand(brand_id, window_start, window_end)


class BrokenRepository:
    def find_conversations_by_brand(self, brand_id, window_start, window_end):
        raise CorpusUnavailableError("connection refused")


def _make_explorer(repository, cache=None) -> ConversationExplorer:
    return ConversationExplorer(repository, cache, settings=Settings(redis_url=None))


@pytest.fixture
def billing_corpus(make_conversation):
    return [
        make_conversation(
            f"c{i}",
            [("user", "Why is my billing wrong?")],
            start=datetime(2023, 1, 10 + i, tzinfo=timezone.utc),
        )
        for i in range(3)
    ]


def test_reports_are_cached(support_corpus) -> None:
    repository = CountingRepository(support_corpus)
    explorer = _make_explorer(repository, InMemoryCache())

    first = explorer.cluster_topics("brand-1", JANUARY)
    second = explorer.cluster_topics("brand-1", JANUARY)

    assert repository.calls == 1
    assert first == second


def test_distinct_options_are_cached_separately(support_corpus) -> None:
    repository = CountingRepository(support_corpus)
    explorer = _make_explorer(repository, InMemoryCache())

    explorer.cluster_topics("brand-1", JANUARY)
    explorer.cluster_topics("brand-1", JANUARY, ClusteringOptions(min_frequency=1))

    assert repository.calls == 2


def test_without_cache_every_call_reads_the_corpus(support_corpus) -> None:
    repository = CountingRepository(support_corpus)
    explorer = _make_explorer(repository)

    explorer.analyze_query_trends("brand-1", JANUARY)
    explorer.analyze_query_trends("brand-1", JANUARY)

    assert repository.calls == 2


def test_store_failure_is_reported_as_analysis_failure() -> None:
    explorer = _make_explorer(BrokenRepository())

    with pytest.raises(AnalysisFailedError) as excinfo:
        explorer.analyze_topic_gaps("brand-9", JANUARY)

    assert excinfo.value.kind == "topic_gaps"
    assert excinfo.value.brand_id == "brand-9"
    assert "connection refused" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, CorpusUnavailableError)


def test_failures_are_not_cached(support_corpus) -> None:
    cache = InMemoryCache()
    explorer = _make_explorer(BrokenRepository(), cache)

    with pytest.raises(AnalysisFailedError):
        explorer.cluster_topics("brand-1", JANUARY)

    assert len(cache) == 0


def test_default_window_ends_now(make_conversation) -> None:
    inside = make_conversation("in", [("user", "billing question?")], start=NOW - timedelta(days=10))
    outside = make_conversation("out", [("user", "billing question?")], start=NOW - timedelta(days=45))
    other_brand = make_conversation("other", [("user", "billing?")], brand_id="brand-2", start=NOW)
    explorer = _make_explorer(InMemoryConversationRepository([inside, outside, other_brand]))

    results = explorer.cluster_topics("brand-1", now=NOW)

    assert results.period.end_date == NOW
    assert results.period.start_date == NOW - timedelta(days=30)
    assert results.total_conversations == 1


def test_empty_corpus_yields_empty_reports() -> None:
    explorer = _make_explorer(InMemoryConversationRepository())

    clusters = explorer.cluster_topics("brand-1", JANUARY)
    trends = explorer.analyze_query_trends("brand-1", JANUARY)
    gaps = explorer.analyze_topic_gaps("brand-1", JANUARY)
    suggestions = explorer.suggest_content("brand-1", JANUARY)

    assert clusters.clusters == [] and clusters.insufficient_data
    assert trends.total_queries == 0 and trends.insufficient_data
    assert gaps.gaps == [] and gaps.insufficient_data
    assert suggestions.suggestions == [] and suggestions.insufficient_data


def test_suggest_content_end_to_end(billing_corpus) -> None:
    explorer = _make_explorer(InMemoryConversationRepository(billing_corpus), InMemoryCache())

    results = explorer.suggest_content("brand-1", JANUARY)

    assert [suggestion.topics[0] for suggestion in results.suggestions] == ["billing", "wrong"]
    billing = results.suggestions[0]
    assert billing.type == "guide"
    assert billing.title == "Complete Guide to billing"
    assert billing.gap_score == 1.0
    assert billing.cluster_topic == "billing"
    assert billing.example_questions == ["Why is my billing wrong?"]
    assert results.total_gaps_analyzed == 2
    assert results.period.start_date == JANUARY.start_date
    assert results.insufficient_data is False


def test_suggest_content_resolves_open_window_once(billing_corpus) -> None:
    explorer = _make_explorer(InMemoryConversationRepository(billing_corpus))

    results = explorer.suggest_content("brand-1", now=NOW)

    assert results.period.end_date == NOW
    assert len(results.suggestions) == 2


def test_gap_options_flow_through(billing_corpus) -> None:
    explorer = _make_explorer(InMemoryConversationRepository(billing_corpus))

    results = explorer.analyze_topic_gaps("brand-1", JANUARY, GapOptions(min_frequency=4))

    assert results.gaps == []
    assert results.insufficient_data is False


def test_cache_key_shape() -> None:
    key = ClusteringOptions().cache_key("topic_clusters", "brand-1", JANUARY)
    other = ClusteringOptions(limit=5).cache_key("topic_clusters", "brand-1", JANUARY)

    assert key.startswith("topic_clusters:brand-1:")
    assert key != other
    assert key == ClusteringOptions().cache_key("topic_clusters", "brand-1", JANUARY)


def test_empty_cache_is_used_not_replaced(support_corpus) -> None:
    cache = InMemoryCache()
    explorer = _make_explorer(InMemoryConversationRepository(support_corpus), cache)

    explorer.cluster_topics("brand-1", JANUARY)

    assert len(cache) == 1
