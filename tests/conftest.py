"""Shared pytest fixtures for the conversation insight tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Sequence, Tuple, Union

import pytest

from insights.models import Conversation, Message
from insights.schemas import AnalysisPeriod

BASE_TIME = datetime(2023, 1, 1, tzinfo=timezone.utc)

Turn = Union[Tuple[str, str], Tuple[str, str, datetime]]


def _build_conversation(
    conv_id: str,
    turns: Sequence[Turn],
    *,
    brand_id: str = "brand-1",
    start: datetime = BASE_TIME,
    analyzed_at: Optional[datetime] = None,
) -> Conversation:
    messages = []
    for index, turn in enumerate(turns):
        role, content = turn[0], turn[1]
        timestamp = turn[2] if len(turn) > 2 else start + timedelta(minutes=index)
        messages.append(Message(role=role, content=content, timestamp=timestamp))
    return Conversation(
        id=conv_id,
        brand_id=brand_id,
        messages=tuple(messages),
        analyzed_at=analyzed_at or start,
    )


@pytest.fixture
def make_conversation() -> Callable[..., Conversation]:
    """Factory building a conversation from ``(role, content[, timestamp])`` turns."""

    return _build_conversation


@pytest.fixture
def january() -> AnalysisPeriod:
    return AnalysisPeriod(
        start_date=datetime(2023, 1, 1, tzinfo=timezone.utc),
        end_date=datetime(2023, 1, 31, tzinfo=timezone.utc),
    )


@pytest.fixture
def support_corpus(make_conversation) -> list[Conversation]:
    """A small mixed corpus of answered and unanswered brand questions."""

    return [
        make_conversation(
            "c1",
            [
                ("user", "How much does the premium plan cost?"),
                ("assistant", "The premium plan costs $20 per month."),
                ("user", "Can I get a subscription discount?"),
            ],
        ),
        make_conversation(
            "c2",
            [
                ("user", "What billing options do you support?"),
                ("assistant", "We support cards and invoices."),
                ("user", "How do I update billing details on my account?"),
            ],
            start=BASE_TIME + timedelta(days=3),
        ),
        make_conversation(
            "c3",
            [
                ("user", "Is there a discount on the premium plan?"),
                ("user", "Hello?"),
                ("assistant", "Yes, annual billing saves 15%."),
            ],
            start=BASE_TIME + timedelta(days=20),
        ),
        make_conversation(
            "c4",
            [
                ("user", "Thanks for the billing support"),
                ("assistant", "Happy to help."),
            ],
            start=BASE_TIME + timedelta(days=25),
        ),
    ]
