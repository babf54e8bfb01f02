"""Utilities for normalising and redacting ingested brand conversations."""

from __future__ import annotations

from datetime import datetime, timezone
import re
from typing import Any, Dict, Mapping, Optional

from insights.models import Conversation, Message

__all__ = ["redact_text", "parse_timestamp", "normalize_message", "normalize_conversation"]


def _safe_text(value: Optional[Any]) -> str:
    """Return a consistently typed string for downstream processing."""
    if value is None:
        return ""
    return str(value)


def redact_text(text: Optional[str], enable_pii: bool = True) -> str:
    """Redact common PII markers in a message body.

    Parameters
    ----------
    text:
        The message text to scrub. ``None`` is treated as an empty string.
    enable_pii:
        If ``False`` no redaction is applied – useful for debugging.
    """

    clean_text = _safe_text(text)
    if not enable_pii:
        return clean_text

    # URLs first so their hosts are not mistaken for e-mails or IPs
    clean_text = re.sub(r"https?://[^\s]+", "«URL»", clean_text)
    clean_text = re.sub(r"\S+@\S+", "«EMAIL»", clean_text)
    clean_text = re.sub(r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b", "«PHONE»", clean_text)
    clean_text = re.sub(r"\b\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}\b", "«IP»", clean_text)

    return clean_text


def parse_timestamp(value: Any, fallback: Optional[datetime] = None) -> datetime:
    """Coerce ISO strings, epoch seconds or datetimes into an aware datetime."""

    if value is None or value == "":
        if fallback is not None:
            return fallback
        return datetime.now(timezone.utc)
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def normalize_message(
    msg: Mapping[str, Any],
    *,
    fallback_ts: Optional[datetime] = None,
    enable_pii: bool = True,
) -> Message:
    """Normalise a raw message payload into a :class:`Message`."""

    text = redact_text(msg.get("content", msg.get("text")), enable_pii=enable_pii)
    role = msg.get("role") or (msg.get("author") or {}).get("role") or "user"
    timestamp = parse_timestamp(msg.get("timestamp", msg.get("create_time")), fallback_ts)
    msg_id = msg.get("id")

    return Message(
        role=str(role),
        content=text,
        timestamp=timestamp,
        id=str(msg_id) if msg_id is not None else None,
    )


def normalize_conversation(
    payload: Mapping[str, Any],
    brand_id: Optional[str] = None,
    *,
    enable_pii: bool = True,
) -> Conversation:
    """Build a :class:`Conversation` from an exported JSON document.

    ``brand_id`` overrides the ``brandId`` stored in the payload. Messages
    without timestamps inherit the conversation's analysis time.
    """

    conv_id = payload.get("id")
    if not conv_id:
        raise ValueError("conversation payload is missing an id")

    brand = brand_id or payload.get("brandId") or payload.get("brand_id")
    if not brand:
        raise ValueError(f"conversation {conv_id} has no brand id")

    analyzed_raw = payload.get("analyzedAt", payload.get("analyzed_at"))
    analyzed_at = parse_timestamp(analyzed_raw) if analyzed_raw else None

    messages = tuple(
        normalize_message(msg, fallback_ts=analyzed_at, enable_pii=enable_pii)
        for msg in payload.get("messages") or []
    )
    if analyzed_at is None:
        analyzed_at = messages[-1].timestamp if messages else datetime.now(timezone.utc)

    metadata: Dict[str, Any] = dict(payload.get("metadata") or {})
    return Conversation(
        id=str(conv_id),
        brand_id=str(brand),
        messages=messages,
        metadata=metadata,
        analyzed_at=analyzed_at,
    )
