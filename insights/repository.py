"""Conversation stores read by the insight analyses."""

from __future__ import annotations

from datetime import datetime
import json
import logging
from typing import Callable, Dict, Iterable, List, Protocol, Sequence

import psycopg2
from psycopg2.extensions import connection as PgConnection
from psycopg2.extras import RealDictCursor, execute_batch

from insights.errors import CorpusUnavailableError
from insights.models import Conversation, Message

__all__ = [
    "SCHEMA_SQL",
    "ConversationRepository",
    "InMemoryConversationRepository",
    "PostgresConversationRepository",
]

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS conversations (
  conv_id     text PRIMARY KEY,
  brand_id    text NOT NULL,
  metadata    jsonb NOT NULL DEFAULT '{}'::jsonb,
  analyzed_at timestamptz NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS messages (
  conv_id  text NOT NULL REFERENCES conversations(conv_id) ON DELETE CASCADE,
  msg_id   text NOT NULL,
  position integer NOT NULL,
  role     text NOT NULL,
  ts       timestamptz NOT NULL,
  text     text,
  PRIMARY KEY (conv_id, msg_id)
);

CREATE INDEX IF NOT EXISTS idx_messages_conv_pos ON messages (conv_id, position);
CREATE INDEX IF NOT EXISTS idx_conversations_brand ON conversations (brand_id, analyzed_at);
"""


class ConversationRepository(Protocol):
    def find_conversations_by_brand(
        self, brand_id: str, window_start: datetime, window_end: datetime
    ) -> List[Conversation]: ...


class InMemoryConversationRepository:
    """Conversation store backed by a list, mainly for tests and file input."""

    def __init__(self, conversations: Iterable[Conversation] = ()) -> None:
        self._conversations: List[Conversation] = list(conversations)

    def add(self, conversation: Conversation) -> None:
        self._conversations.append(conversation)

    def find_conversations_by_brand(
        self, brand_id: str, window_start: datetime, window_end: datetime
    ) -> List[Conversation]:
        return [
            conversation
            for conversation in self._conversations
            if conversation.brand_id == brand_id
            and conversation.analyzed_at is not None
            and window_start <= conversation.analyzed_at <= window_end
        ]


class PostgresConversationRepository:
    """Read conversations and their ordered messages from Postgres."""

    def __init__(self, dsn: str, *, connect: Callable[..., PgConnection] = psycopg2.connect) -> None:
        self._dsn = dsn
        self._connect = connect

    def get_db(self) -> PgConnection:
        try:
            return self._connect(dsn=self._dsn)
        except psycopg2.Error as e:
            logger.error(f"Could not connect to conversation store: {e}")
            raise CorpusUnavailableError(str(e)) from e

    def ensure_schema(self) -> None:
        conn = self.get_db()
        try:
            with conn.cursor() as cur:
                cur.execute(SCHEMA_SQL)
            conn.commit()
        finally:
            conn.close()

    def find_conversations_by_brand(
        self, brand_id: str, window_start: datetime, window_end: datetime
    ) -> List[Conversation]:
        conn = self.get_db()
        cur = conn.cursor(cursor_factory=RealDictCursor)

        try:
            cur.execute(
                """
                SELECT conv_id, brand_id, metadata, analyzed_at
                FROM conversations
                WHERE brand_id = %s AND analyzed_at BETWEEN %s AND %s
                ORDER BY analyzed_at ASC, conv_id ASC
                """,
                (brand_id, window_start, window_end),
            )
            rows = cur.fetchall()
            if not rows:
                return []

            cur.execute(
                """
                SELECT conv_id, msg_id, role, ts, text
                FROM messages
                WHERE conv_id = ANY(%s)
                ORDER BY conv_id, position ASC
                """,
                ([row["conv_id"] for row in rows],),
            )
            messages: Dict[str, List[Message]] = {}
            for row in cur.fetchall():
                messages.setdefault(row["conv_id"], []).append(
                    Message(role=row["role"], content=row["text"] or "", timestamp=row["ts"], id=row["msg_id"])
                )

            return [
                Conversation(
                    id=row["conv_id"],
                    brand_id=row["brand_id"],
                    messages=tuple(messages.get(row["conv_id"], ())),
                    metadata=dict(row["metadata"] or {}),
                    analyzed_at=row["analyzed_at"],
                )
                for row in rows
            ]

        except psycopg2.Error as e:
            logger.error(f"Database error loading conversations for brand {brand_id}: {e}")
            raise CorpusUnavailableError(str(e)) from e
        finally:
            cur.close()
            conn.close()

    def save_conversations(self, conversations: Sequence[Conversation]) -> int:
        """Upsert conversations and insert their messages; returns messages written."""

        conn = self.get_db()
        cur = conn.cursor()
        total = 0

        try:
            for conversation in conversations:
                cur.execute(
                    """
                    INSERT INTO conversations (conv_id, brand_id, metadata, analyzed_at)
                    VALUES (%s, %s, %s, %s)
                    ON CONFLICT (conv_id) DO UPDATE
                      SET metadata = EXCLUDED.metadata, analyzed_at = EXCLUDED.analyzed_at
                    """,
                    (
                        conversation.id,
                        conversation.brand_id,
                        json.dumps(conversation.metadata),
                        conversation.analyzed_at,
                    ),
                )
                rows = [
                    (
                        conversation.id,
                        conversation.message_id(index),
                        index,
                        message.role,
                        message.timestamp,
                        message.content,
                    )
                    for index, message in enumerate(conversation.messages)
                ]
                if rows:
                    execute_batch(
                        cur,
                        """
                        INSERT INTO messages (conv_id, msg_id, position, role, ts, text)
                        VALUES (%s, %s, %s, %s, %s, %s)
                        ON CONFLICT (conv_id, msg_id) DO NOTHING
                        """,
                        rows,
                    )
                    total += len(rows)

            conn.commit()
            return total

        except psycopg2.Error as e:
            conn.rollback()
            logger.error(f"Database error saving conversations: {e}")
            raise CorpusUnavailableError(str(e)) from e
        finally:
            cur.close()
            conn.close()

