"""Feed service wrapping the aggregator in a paged response envelope."""

import structlog

from rwa_news.aggregator.aggregator import MAX_PAGE_SIZE, NewsAggregator
from rwa_news.aggregator.models import NewsFeedPage


logger = structlog.get_logger()

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20


def parse_positive_int(value: str | int | None, default: int) -> int:
    """Parse a raw query value, falling back to a default.

    Args:
        value: Raw value from a query string or caller.
        default: Value used when the input is missing or not a positive int.

    Returns:
        Parsed positive integer.
    """
    if value is None:
        return default
    try:
        parsed = int(str(value).strip())
    except ValueError:
        return default
    return parsed if parsed >= 1 else default


class NewsService:
    """Serves feed pages to HTTP or CLI collaborators."""

    def __init__(self, aggregator: NewsAggregator) -> None:
        """Initialize the service.

        Args:
            aggregator: Aggregator producing the articles.
        """
        self._aggregator = aggregator
        self._log = logger.bind(component="news_service")

    def get_news(
        self,
        page: str | int | None = None,
        limit: str | int | None = None,
    ) -> NewsFeedPage:
        """Get one page of the feed.

        Args:
            page: Raw page value (defaults to 1).
            limit: Raw page size value (defaults to 20, capped at 100).

        Returns:
            NewsFeedPage envelope.
        """
        page_number = parse_positive_int(page, DEFAULT_PAGE)
        page_size = min(parse_positive_int(limit, DEFAULT_LIMIT), MAX_PAGE_SIZE)

        self._log.debug("get_news", page=page_number, limit=page_size)
        articles = self._aggregator.aggregate_news(page_number, page_size)

        return NewsFeedPage(
            articles=articles,
            total=len(articles),
            page=page_number,
            page_size=page_size,
            has_more=len(articles) == page_size,
        )
