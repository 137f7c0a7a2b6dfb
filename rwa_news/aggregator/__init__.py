"""News aggregation: merge, filter, order, and page the feed.

The aggregator is the only entry point collaborators need. It never raises
and always returns a non-empty page, falling back to curated content when
the upstream is unavailable.
"""

from rwa_news.aggregator.aggregator import (
    NewsAggregator,
    deduplicate_articles,
    filter_relevant,
    sort_articles,
)
from rwa_news.aggregator.fallback import curated_fallback_articles
from rwa_news.aggregator.metrics import AggregatorMetrics
from rwa_news.aggregator.models import NewsFeedPage
from rwa_news.aggregator.service import NewsService


__all__ = [
    "AggregatorMetrics",
    "NewsAggregator",
    "NewsFeedPage",
    "NewsService",
    "curated_fallback_articles",
    "deduplicate_articles",
    "filter_relevant",
    "sort_articles",
]
