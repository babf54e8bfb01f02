"""Command line access to the conversation insight analyses."""

from __future__ import annotations

from datetime import datetime
import json
import logging
from pathlib import Path
from typing import Any, List, Optional

import click
from pydantic import BaseModel, ValidationError

from config import Settings
from insights.cache import AnalysisCache, NullCache, RedisCache
from insights.errors import InsightsError
from insights.explorer import ConversationExplorer
from insights.models import Conversation
from insights.repository import (
    ConversationRepository,
    InMemoryConversationRepository,
    PostgresConversationRepository,
)
from insights.schemas import (
    DEFAULT_CONTENT_TYPES,
    AnalysisWindow,
    ClusteringOptions,
    GapOptions,
    SuggestionOptions,
    TrendOptions,
)
from insights.services.normalization import normalize_conversation


def load_conversations(path: Path, *, enable_pii: bool = True) -> List[Conversation]:
    """Read a JSON export: a list of conversations or ``{"conversations": [...]}``."""

    with path.open(encoding="utf-8") as handle:
        payload: Any = json.load(handle)
    if isinstance(payload, dict):
        payload = payload.get("conversations", [])
    return [normalize_conversation(item, enable_pii=enable_pii) for item in payload]


def _build_explorer(ctx: click.Context) -> ConversationExplorer:
    settings: Settings = ctx.obj["settings"]
    source: Optional[Path] = ctx.obj["source"]

    repository: ConversationRepository
    if source is not None:
        repository = InMemoryConversationRepository(
            load_conversations(source, enable_pii=settings.enable_pii_redaction)
        )
    else:
        repository = PostgresConversationRepository(ctx.obj["database_url"] or settings.database_url)

    cache: AnalysisCache = NullCache()
    redis_url = ctx.obj["redis_url"] or settings.redis_url
    if redis_url:
        cache = RedisCache.from_url(redis_url)

    return ConversationExplorer(repository, cache, settings=settings)


def _window(start: Optional[datetime], end: Optional[datetime]) -> AnalysisWindow:
    try:
        return AnalysisWindow(start_date=start, end_date=end)
    except ValidationError as e:
        raise click.BadParameter(str(e)) from e


def _options(model, **values):
    try:
        return model(**values)
    except ValidationError as e:
        raise click.BadParameter(str(e)) from e


def _emit(report: BaseModel) -> None:
    click.echo(report.model_dump_json(indent=2))


def _execute(ctx: click.Context, action) -> None:
    explorer = _build_explorer(ctx)
    try:
        _emit(action(explorer))
    except InsightsError as e:
        click.echo(f"❌ {e}", err=True)
        ctx.exit(1)
    finally:
        explorer.close()


@click.group()
@click.option("--source", type=click.Path(exists=True, dir_okay=False, path_type=Path), default=None,
              help="JSON conversation export to analyse instead of the database.")
@click.option("--database-url", default=None, help="Conversation store DSN.")
@click.option("--redis-url", default=None, help="Redis URL for caching reports.")
@click.option("--brand", "brand_id", required=True, help="Brand whose conversations are analysed.")
@click.option("--start", type=click.DateTime(), default=None, help="Window start (default: 30 days before end).")
@click.option("--end", type=click.DateTime(), default=None, help="Window end (default: now).")
@click.pass_context
def cli(ctx, source, database_url, redis_url, brand_id, start, end):
    """Mine brand conversations for topics, trends, gaps and content ideas."""
    settings = Settings()
    logging.basicConfig(
        level=settings.logging_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj.update(
        settings=settings,
        source=source,
        database_url=database_url,
        redis_url=redis_url,
        brand_id=brand_id,
        window=_window(start, end),
    )


@cli.command()
@click.option("--min-frequency", default=2, show_default=True)
@click.option("--similarity-threshold", default=0.3, show_default=True)
@click.option("--limit", default=10, show_default=True)
@click.pass_context
def clusters(ctx, min_frequency, similarity_threshold, limit):
    """Cluster related topics."""
    options = _options(
        ClusteringOptions, min_frequency=min_frequency, similarity_threshold=similarity_threshold, limit=limit
    )
    _execute(ctx, lambda explorer: explorer.cluster_topics(ctx.obj["brand_id"], ctx.obj["window"], options))


@cli.command()
@click.option("--min-frequency", default=2, show_default=True)
@click.option("--min-growth-rate", default=5.0, show_default=True)
@click.option("--limit", default=10, show_default=True)
@click.pass_context
def trends(ctx, min_frequency, min_growth_rate, limit):
    """Report rising, falling and stable query phrases."""
    options = _options(TrendOptions, min_frequency=min_frequency, min_growth_rate=min_growth_rate, limit=limit)
    _execute(ctx, lambda explorer: explorer.analyze_query_trends(ctx.obj["brand_id"], ctx.obj["window"], options))


@cli.command()
@click.option("--min-frequency", default=3, show_default=True)
@click.option("--min-gap-score", default=0.5, show_default=True)
@click.option("--limit", default=10, show_default=True)
@click.pass_context
def gaps(ctx, min_frequency, min_gap_score, limit):
    """Report topics that users ask about without getting answers."""
    options = _options(GapOptions, min_frequency=min_frequency, min_gap_score=min_gap_score, limit=limit)
    _execute(ctx, lambda explorer: explorer.analyze_topic_gaps(ctx.obj["brand_id"], ctx.obj["window"], options))


@cli.command()
@click.option("--min-gap-score", default=0.3, show_default=True)
@click.option("--content-type", "content_types", multiple=True, default=DEFAULT_CONTENT_TYPES, show_default=True)
@click.option("--limit", default=10, show_default=True)
@click.pass_context
def suggestions(ctx, min_gap_score, content_types, limit):
    """Suggest content that would close topic gaps."""
    options = _options(
        SuggestionOptions, min_gap_score=min_gap_score, content_types=tuple(content_types), limit=limit
    )
    _execute(ctx, lambda explorer: explorer.suggest_content(ctx.obj["brand_id"], ctx.obj["window"], options))


if __name__ == "__main__":
    cli()
