"""Tests for query trend detection."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from insights.schemas import TrendOptions
from insights.services.topics import Query
from insights.services.trends import analyze_query_trends, build_trends, growth_rate, related_topics

JAN_1 = datetime(2023, 1, 1, tzinfo=timezone.utc)


def _queries_conversation(make_conversation, conv_id, text, days):
    turns = [("user", text, JAN_1 + timedelta(days=day, hours=1)) for day in days]
    return make_conversation(conv_id, turns)


@pytest.mark.parametrize(
    "first_half, second_half, expected",
    [
        (2, 6, 200.0),
        (0, 3, 100.0),
        (0, 0, 0.0),
        (4, 2, -50.0),
        (3, 3, 0.0),
    ],
)
def test_growth_rate(first_half: int, second_half: int, expected: float) -> None:
    assert growth_rate(first_half, second_half) == pytest.approx(expected)


def test_discount_requests_are_rising(make_conversation, january) -> None:
    conversation = _queries_conversation(
        make_conversation, "c1", "discount please", [2, 5, 17, 18, 20, 22, 25, 28]
    )

    analysis = analyze_query_trends([conversation], january)

    rising = {trend.pattern: trend for trend in analysis.rising_trends}
    assert "discount" in rising
    trend = rising["discount"]
    assert trend.frequency == 8
    assert trend.growth_rate == pytest.approx(200.0)
    assert trend.first_seen == JAN_1 + timedelta(days=2, hours=1)
    assert trend.last_seen == JAN_1 + timedelta(days=28, hours=1)
    assert trend.related_topics == ["discount", "please"]
    assert analysis.total_queries == 8
    assert analysis.insufficient_data is False


def test_falling_and_stable_trends(make_conversation, january) -> None:
    falling = _queries_conversation(make_conversation, "c1", "refund", [1, 2, 3, 4, 20, 21])
    stable = _queries_conversation(make_conversation, "c2", "invoice", [1, 2, 20, 21])

    analysis = analyze_query_trends([falling, stable], january)

    assert [trend.pattern for trend in analysis.falling_trends] == ["refund"]
    assert analysis.falling_trends[0].growth_rate == pytest.approx(-50.0)
    assert [trend.pattern for trend in analysis.stable_trends] == ["invoice"]
    assert analysis.rising_trends == []


def test_classification_signs_are_consistent(support_corpus, january) -> None:
    options = TrendOptions(min_frequency=1, min_growth_rate=5.0, limit=100)

    analysis = analyze_query_trends(support_corpus, january, options)

    assert all(trend.growth_rate >= 5.0 for trend in analysis.rising_trends)
    assert all(trend.growth_rate <= -5.0 for trend in analysis.falling_trends)
    assert all(-5.0 < trend.growth_rate < 5.0 for trend in analysis.stable_trends)
    rates = [trend.growth_rate for trend in analysis.rising_trends]
    assert rates == sorted(rates, reverse=True)


def test_zero_threshold_classifies_flat_patterns_as_rising(make_conversation, january) -> None:
    conversation = _queries_conversation(make_conversation, "c1", "invoice", [1, 20])

    analysis = analyze_query_trends([conversation], january, TrendOptions(min_growth_rate=0.0))

    assert [trend.pattern for trend in analysis.rising_trends] == ["invoice"]
    assert analysis.falling_trends == []
    assert analysis.stable_trends == []


def test_min_frequency_filters_rare_patterns(make_conversation, january) -> None:
    conversation = _queries_conversation(make_conversation, "c1", "invoice", [20])

    analysis = analyze_query_trends([conversation], january)

    assert analysis.rising_trends == []
    assert analysis.stable_trends == []
    assert analysis.insufficient_data is True


def test_limit_applies_per_category(make_conversation, january) -> None:
    conversations = [
        _queries_conversation(make_conversation, f"c{i}", f"word{i}", [20, 21]) for i in range(4)
    ]

    analysis = analyze_query_trends(conversations, january, TrendOptions(limit=2))

    assert len(analysis.rising_trends) == 2


def test_empty_corpus(january) -> None:
    analysis = analyze_query_trends([], january)

    assert analysis.total_queries == 0
    assert analysis.rising_trends == analysis.falling_trends == analysis.stable_trends == []
    assert analysis.insufficient_data is True


def test_build_trends_splits_at_window_midpoint() -> None:
    end = JAN_1 + timedelta(days=2)
    patterns = {
        "edge": [
            Query(text="edge", timestamp=JAN_1),
            Query(text="edge", timestamp=JAN_1 + timedelta(days=1)),
        ]
    }

    (trend,) = build_trends(patterns, JAN_1, end)

    # the midpoint itself belongs to the second half
    assert trend.growth_rate == pytest.approx(0.0)


def test_related_topics_are_capped() -> None:
    occurrences = [Query(text="alpha bravo charlie delta echo foxtrot pricing", timestamp=JAN_1)]

    topics = related_topics(occurrences)

    assert topics == ["alpha", "bravo", "charlie", "delta", "echo"]


def test_analyze_query_trends_is_idempotent(support_corpus, january) -> None:
    options = TrendOptions(min_frequency=1, min_growth_rate=5.0, limit=100)

    first = analyze_query_trends(support_corpus, january, options)
    second = analyze_query_trends(support_corpus, january, options)

    assert first.model_dump() == second.model_dump()
