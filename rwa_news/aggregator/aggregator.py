"""News aggregator facade.

Combines upstream sources into one deterministic, deduplicated, paginated
feed. The aggregator never raises: source errors degrade to an empty batch
and any internal failure degrades to the curated fallback set.
"""

import time
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from functools import cmp_to_key

import structlog

from rwa_news.aggregator.fallback import curated_fallback_articles
from rwa_news.aggregator.metrics import AggregatorMetrics
from rwa_news.models import Article
from rwa_news.ranker.constants import MIN_RELEVANCE_SCORE, SCORE_TIE_WINDOW
from rwa_news.ranker.scorer import RelevanceScorer
from rwa_news.resilience.errors import NewsSourceError
from rwa_news.sources.base import ArticleSource
from rwa_news.sources.constants import NEWSAPI_MAX_PAGE_SIZE


logger = structlog.get_logger()

MIN_PAGE = 1
MIN_PAGE_SIZE = 1
MAX_PAGE_SIZE = NEWSAPI_MAX_PAGE_SIZE


def deduplicate_articles(articles: list[Article]) -> list[Article]:
    """Drop articles whose URL was already seen, keeping first-seen order.

    Args:
        articles: Articles in priority order.

    Returns:
        Articles with unique URLs.
    """
    seen: set[str] = set()
    unique: list[Article] = []
    for article in articles:
        if article.url in seen:
            continue
        seen.add(article.url)
        unique.append(article)
    return unique


def _compare_articles(a: Article, b: Article) -> int:
    """Two-tier comparator: relevance first, recency among near-equal scores.

    Scores further apart than SCORE_TIE_WINDOW order by score descending;
    otherwise the newer article comes first.
    """
    diff = b.score_or_zero - a.score_or_zero
    if abs(diff) > SCORE_TIE_WINDOW:
        return 1 if diff > 0 else -1
    if a.published_at > b.published_at:
        return -1
    if a.published_at < b.published_at:
        return 1
    return 0


def sort_articles(articles: list[Article]) -> list[Article]:
    """Sort articles by relevance, breaking near-ties by recency.

    Args:
        articles: Articles to sort.

    Returns:
        New sorted list; equal elements keep their input order.
    """
    return sorted(articles, key=cmp_to_key(_compare_articles))


def filter_relevant(
    articles: list[Article],
    min_score: float = MIN_RELEVANCE_SCORE,
) -> list[Article]:
    """Keep scored articles at or above the relevance threshold.

    Args:
        articles: Scored articles.
        min_score: Minimum relevance score to keep.

    Returns:
        Articles scoring at least min_score.
    """
    return [article for article in articles if article.score_or_zero >= min_score]


class NewsAggregator:
    """Top-level facade producing the RWA news feed.

    Pipeline for each call:
        fetch (per source) -> score -> filter -> fallback if empty
        -> deduplicate -> sort -> slice to page_size
    """

    def __init__(
        self,
        sources: Sequence[ArticleSource],
        scorer: RelevanceScorer | None = None,
        min_relevance_score: float = MIN_RELEVANCE_SCORE,
        now: Callable[[], datetime] | None = None,
        metrics: AggregatorMetrics | None = None,
    ) -> None:
        """Initialize the aggregator.

        Args:
            sources: Upstream sources, in priority order.
            scorer: Relevance scorer (default keyword tiers if omitted).
            min_relevance_score: Articles below this score are dropped.
            now: Wall-clock function for fallback timestamps.
            metrics: Optional metrics instance.
        """
        self._sources = list(sources)
        self._scorer = scorer or RelevanceScorer()
        self._min_relevance_score = min_relevance_score
        self._now = now or (lambda: datetime.now(UTC))
        self._metrics = metrics or AggregatorMetrics.get_instance()
        self._log = logger.bind(component="aggregator")

    @property
    def sources(self) -> list[ArticleSource]:
        """Get the configured sources."""
        return list(self._sources)

    def aggregate_news(self, page: int = 1, page_size: int = 20) -> list[Article]:
        """Build one page of the feed.

        Args:
            page: 1-based page number.
            page_size: Number of articles to return (1 to 100).

        Returns:
            A non-empty list of at most page_size articles.
        """
        page, page_size = self._clamp_paging(page, page_size)
        log = self._log.bind(page=page, page_size=page_size)
        start_time_ns = time.perf_counter_ns()

        try:
            log.info("aggregation_started")

            fetched: list[Article] = []
            for source in self._sources:
                fetched.extend(self._fetch_from(source, page, page_size, log))

            scored = self._scorer.score_articles(fetched)
            relevant = filter_relevant(scored, self._min_relevance_score)
            filtered_count = len(scored) - len(relevant)

            used_fallback = not relevant
            if used_fallback:
                log.info("fallback_used", reason="no_relevant_articles")
                relevant = curated_fallback_articles(self._now())

            unique = deduplicate_articles(relevant)
            result = sort_articles(unique)[:page_size]

            duration_ms = (time.perf_counter_ns() - start_time_ns) / 1_000_000
            self._metrics.record_aggregation(
                fetched=len(fetched),
                filtered=filtered_count,
                duplicates=len(relevant) - len(unique),
                returned=len(result),
                duration_ms=duration_ms,
                used_fallback=used_fallback,
            )
            log.info(
                "aggregation_complete",
                fetched=len(fetched),
                relevant=len(relevant),
                unique=len(unique),
                returned=len(result),
                used_fallback=used_fallback,
                duration_ms=round(duration_ms, 2),
            )
            return result

        except Exception:  # noqa: BLE001
            duration_ms = (time.perf_counter_ns() - start_time_ns) / 1_000_000
            self._metrics.record_failure()
            log.error(
                "aggregation_failed",
                duration_ms=round(duration_ms, 2),
                exc_info=True,
            )
            return sort_articles(curated_fallback_articles(self._now()))[:page_size]

    def health(self) -> dict[str, dict[str, str | bool]]:
        """Report health of every source.

        Returns:
            Mapping of source_id to healthy flag and circuit state.
        """
        return {
            source.source_id: {
                "healthy": source.is_healthy(),
                "circuit_state": source.get_circuit_state().value,
            }
            for source in self._sources
        }

    def is_healthy(self) -> bool:
        """Check if every source is healthy."""
        return all(source.is_healthy() for source in self._sources)

    def _fetch_from(
        self,
        source: ArticleSource,
        page: int,
        page_size: int,
        log: structlog.stdlib.BoundLogger,
    ) -> list[Article]:
        """Fetch a batch from one source, substituting [] on any error.

        Args:
            source: Source to fetch from.
            page: 1-based page number.
            page_size: Requested page size.
            log: Bound logger.

        Returns:
            Articles from the source, or an empty list if it raised.
        """
        try:
            articles = source.fetch_news(page, page_size)
        except NewsSourceError as e:
            self._metrics.record_source_error(type(e).__name__)
            log.warning(
                "source_fetch_failed",
                source_id=source.source_id,
                error=e.to_dict(),
            )
            return []
        except Exception as e:  # noqa: BLE001
            self._metrics.record_source_error(type(e).__name__)
            log.warning(
                "source_fetch_failed",
                source_id=source.source_id,
                error_type=type(e).__name__,
                exc_info=True,
            )
            return []

        log.debug("source_fetched", source_id=source.source_id, count=len(articles))
        return articles

    def _clamp_paging(self, page: int, page_size: int) -> tuple[int, int]:
        """Clamp paging arguments into their valid ranges.

        Args:
            page: Requested page.
            page_size: Requested page size.

        Returns:
            Tuple of (page, page_size) within bounds.
        """
        clamped_page = max(MIN_PAGE, page)
        clamped_size = min(MAX_PAGE_SIZE, max(MIN_PAGE_SIZE, page_size))
        if (clamped_page, clamped_size) != (page, page_size):
            self._log.warning(
                "paging_clamped",
                requested_page=page,
                requested_page_size=page_size,
                page=clamped_page,
                page_size=clamped_size,
            )
        return clamped_page, clamped_size
