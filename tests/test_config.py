"""Tests for environment driven settings."""

from __future__ import annotations

import logging

import pytest

from config import Settings


def test_defaults(monkeypatch) -> None:
    monkeypatch.delenv("CONVO_INSIGHTS_REDIS_URL", raising=False)
    settings = Settings()

    assert settings.redis_url is None
    assert settings.default_window_days == 30
    assert settings.enable_pii_redaction is True


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("CONVO_INSIGHTS_REDIS_URL", "redis://cache:6379/1")
    monkeypatch.setenv("CONVO_INSIGHTS_TRENDS_TTL_SECONDS", "60")
    monkeypatch.setenv("CONVO_INSIGHTS_LOG_LEVEL", "debug")

    settings = Settings()

    assert settings.redis_url == "redis://cache:6379/1"
    assert settings.ttl_for("query_trends") == 60
    assert settings.logging_level == logging.DEBUG


@pytest.mark.parametrize(
    "kind, expected",
    [
        ("topic_clusters", 3600),
        ("query_trends", 900),
        ("topic_gaps", 3600),
        ("content_suggestions", 1800),
    ],
)
def test_ttl_for(kind: str, expected: int) -> None:
    assert Settings().ttl_for(kind) == expected


def test_unknown_log_level_falls_back_to_info() -> None:
    assert Settings(log_level="chatty").logging_level == logging.INFO
