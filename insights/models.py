"""Corpus types read by the mining services."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

__all__ = ["USER_ROLE", "ASSISTANT_ROLE", "Message", "Conversation"]

USER_ROLE = "user"
ASSISTANT_ROLE = "assistant"


@dataclass(frozen=True, slots=True)
class Message:
    """A single timestamped turn of a conversation."""

    role: str
    content: str
    timestamp: datetime
    id: Optional[str] = None

    def __post_init__(self) -> None:
        # naive timestamps are taken as UTC so they compare with window bounds
        if self.timestamp.tzinfo is None:
            object.__setattr__(self, "timestamp", self.timestamp.replace(tzinfo=timezone.utc))

    @property
    def is_user(self) -> bool:
        return self.role == USER_ROLE

    @property
    def is_assistant(self) -> bool:
        return self.role == ASSISTANT_ROLE


@dataclass(frozen=True, slots=True)
class Conversation:
    """An ordered exchange between a user and the assistant for one brand."""

    id: str
    brand_id: str
    messages: Tuple[Message, ...] = ()
    metadata: Dict[str, Any] = field(default_factory=dict)
    analyzed_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.analyzed_at is not None and self.analyzed_at.tzinfo is None:
            object.__setattr__(self, "analyzed_at", self.analyzed_at.replace(tzinfo=timezone.utc))

    def message_id(self, index: int) -> str:
        """Return the stored id of a message, or a positional one."""

        message = self.messages[index]
        return message.id or f"{self.id}-{index}"
