# import_conversations.py
"""Import a JSON export of brand conversations into the conversation store."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from config import Settings
from insights.errors import CorpusUnavailableError
from insights.main import load_conversations
from insights.repository import PostgresConversationRepository


def import_conversations(
    path: Path,
    db_url: str,
    *,
    enable_pii: bool = True,
    repository: Optional[PostgresConversationRepository] = None,
) -> tuple[int, int]:
    """Load ``path`` and write its conversations; returns (messages, conversations)."""

    repository = repository or PostgresConversationRepository(db_url)
    repository.ensure_schema()

    click.echo(f"Opening {path}...")
    conversations = load_conversations(path, enable_pii=enable_pii)
    total_imported = repository.save_conversations(conversations)

    click.echo(f"✅ Imported {total_imported} messages from {len(conversations)} conversations")
    return total_imported, len(conversations)


@click.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--db-url", default=None, help="Conversation store DSN (defaults to settings).")
@click.option("--no-redact", is_flag=True, default=False, help="Keep PII in message bodies.")
def cli(path, db_url, no_redact):
    """Import brand conversations from a JSON export."""
    settings = Settings()
    try:
        import_conversations(
            path,
            db_url or settings.database_url,
            enable_pii=settings.enable_pii_redaction and not no_redact,
        )
    except CorpusUnavailableError as e:
        click.echo(f"❌ Import failed: {e}", err=True)
        raise SystemExit(1) from e


if __name__ == "__main__":
    cli()
