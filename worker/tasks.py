"""Worker tasks precomputing brand insight reports."""

import logging

from celery import Celery

from config import Settings
from insights.cache import AnalysisCache, NullCache, RedisCache
from insights.errors import AnalysisFailedError
from insights.explorer import ConversationExplorer
from insights.repository import PostgresConversationRepository

# Configure logging
logger = logging.getLogger(__name__)

settings = Settings()

# Celery setup
app = Celery('worker', broker=settings.redis_url or 'redis://localhost:6379/0')


def get_explorer() -> ConversationExplorer:
    """Build an explorer writing into the shared analysis cache."""
    cache: AnalysisCache = RedisCache.from_url(settings.redis_url) if settings.redis_url else NullCache()
    return ConversationExplorer(PostgresConversationRepository(settings.database_url), cache, settings=settings)


def warm_reports(explorer: ConversationExplorer, brand_id: str) -> dict:
    """Compute every report with default options for a brand.

    Args:
        explorer: Explorer whose cache receives the reports
        brand_id: Brand identifier

    Returns:
        Item counts per report
    """
    clusters = explorer.cluster_topics(brand_id)
    trends = explorer.analyze_query_trends(brand_id)
    gaps = explorer.analyze_topic_gaps(brand_id)
    suggestions = explorer.suggest_content(brand_id)
    return {
        "clusters": len(clusters.clusters),
        "trends": len(trends.rising_trends) + len(trends.falling_trends) + len(trends.stable_trends),
        "gaps": len(gaps.gaps),
        "suggestions": len(suggestions.suggestions),
    }


@app.task(bind=True, max_retries=3, default_retry_delay=60)
def warm_brand_insights(self, brand_id: str):
    """Refresh the cached insight reports of a brand.

    Args:
        brand_id: Brand identifier

    Returns:
        Item counts per report
    """
    explorer = get_explorer()
    try:
        counts = warm_reports(explorer, brand_id)
    except AnalysisFailedError as e:
        logger.error(f"Conversation store unavailable for brand {brand_id}: {e}")
        # Retry the task
        raise self.retry(exc=e)
    finally:
        explorer.close()

    logger.info(f"Warmed insight reports for brand {brand_id}: {counts}")
    return counts


if __name__ == '__main__':
    app.start()
