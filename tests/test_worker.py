"""Tests for the report warming worker."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from config import Settings
from insights.cache import InMemoryCache
from insights.errors import CorpusUnavailableError
from insights.explorer import ConversationExplorer
from insights.repository import InMemoryConversationRepository
from worker import tasks

NOW = datetime.now(timezone.utc)


class RetryRequested(Exception):
    pass


class BrokenRepository:
    def find_conversations_by_brand(self, brand_id, window_start, window_end):
        raise CorpusUnavailableError("connection refused")


def _recent_corpus(make_conversation):
    return [
        make_conversation(f"c{i}", [("user", "Why is my billing wrong?")], start=NOW.replace(microsecond=0))
        for i in range(3)
    ]


def test_warm_reports_fills_the_cache(make_conversation) -> None:
    cache = InMemoryCache()
    explorer = ConversationExplorer(
        InMemoryConversationRepository(_recent_corpus(make_conversation)), cache, settings=Settings()
    )

    counts = tasks.warm_reports(explorer, "brand-1")

    assert counts["gaps"] == 2
    assert counts["suggestions"] == 2
    assert counts["clusters"] == 1
    assert set(counts) == {"clusters", "trends", "gaps", "suggestions"}
    assert len(cache) > 0


def test_warm_brand_insights_returns_counts(make_conversation, monkeypatch) -> None:
    explorer = ConversationExplorer(
        InMemoryConversationRepository(_recent_corpus(make_conversation)), settings=Settings()
    )
    monkeypatch.setattr(tasks, "get_explorer", lambda: explorer)

    counts = tasks.warm_brand_insights("brand-1")

    assert counts["gaps"] == 2


def test_warm_brand_insights_retries_when_store_is_down(monkeypatch) -> None:
    explorer = ConversationExplorer(BrokenRepository(), settings=Settings())
    monkeypatch.setattr(tasks, "get_explorer", lambda: explorer)
    retried = []

    def fake_retry(exc=None, **kwargs):
        retried.append(exc)
        return RetryRequested()

    monkeypatch.setattr(tasks.warm_brand_insights, "retry", fake_retry)

    with pytest.raises(RetryRequested):
        tasks.warm_brand_insights("brand-1")

    assert retried[0].kind == "topic_clusters"


class ClosingCache(InMemoryCache):
    def __init__(self) -> None:
        super().__init__()
        self.closed = 0

    def close(self) -> None:
        self.closed += 1
        super().close()


@pytest.mark.parametrize("repository_ok", [True, False])
def test_warm_brand_insights_closes_the_cache(make_conversation, monkeypatch, repository_ok: bool) -> None:
    cache = ClosingCache()
    repository = InMemoryConversationRepository(_recent_corpus(make_conversation)) if repository_ok else BrokenRepository()
    monkeypatch.setattr(tasks, "get_explorer", lambda: ConversationExplorer(repository, cache, settings=Settings()))
    monkeypatch.setattr(tasks.warm_brand_insights, "retry", lambda exc=None, **kwargs: RetryRequested())

    if repository_ok:
        tasks.warm_brand_insights("brand-1")
    else:
        with pytest.raises(RetryRequested):
            tasks.warm_brand_insights("brand-1")

    assert cache.closed == 1
