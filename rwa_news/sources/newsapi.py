"""NewsAPI source client.

Fetches RWA articles from NewsAPI ``/v2/everything`` behind the circuit
breaker and token bucket, executing each request through the retry
orchestrator.

API documentation: https://newsapi.org/docs/endpoints/everything
"""

import random
import time
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
import pydantic
import structlog

from rwa_news.models import Article
from rwa_news.ranker.scorer import RelevanceScorer
from rwa_news.resilience.circuit_breaker import CircuitBreaker, CircuitState
from rwa_news.resilience.constants import HTTP_STATUS_OK_MAX, HTTP_STATUS_OK_MIN
from rwa_news.resilience.errors import CircuitOpenError, LocalRateLimitRejected
from rwa_news.resilience.metrics import ResilienceMetrics
from rwa_news.resilience.models import ErrorKind, RequestOutcome, classify_status
from rwa_news.resilience.rate_limiter import RateLimiterProtocol
from rwa_news.resilience.retry import RetryOrchestrator
from rwa_news.sources.config import NewsApiConfig
from rwa_news.sources.constants import (
    DEFAULT_ARTICLE_CATEGORIES,
    NEWSAPI_API_KEY_HEADER,
    NEWSAPI_AUTH_CODE_PREFIX,
    NEWSAPI_EVERYTHING_PATH,
    NEWSAPI_LANGUAGE,
    NEWSAPI_MAX_PAGE_SIZE,
    NEWSAPI_RATE_LIMITED_CODE,
    NEWSAPI_REMOVED_TITLE,
    NEWSAPI_SEARCH_IN,
    NEWSAPI_SORT_BY,
    NEWSAPI_VALIDATION_CODE_PREFIXES,
    SOURCE_NEWSAPI,
)
from rwa_news.sources.models import NewsApiArticle, NewsApiResponse
from rwa_news.sources.redact import redact_headers


logger = structlog.get_logger()


def classify_error_code(code: str | None) -> ErrorKind:
    """Map a NewsAPI error code to an ErrorKind.

    Used for error bodies delivered with a 2xx status.

    Args:
        code: The ``code`` field of a NewsAPI error body.

    Returns:
        Matching ErrorKind; unknown codes are TRANSIENT.
    """
    if not code:
        return ErrorKind.TRANSIENT
    if code.startswith(NEWSAPI_AUTH_CODE_PREFIX):
        return ErrorKind.AUTH
    if code == NEWSAPI_RATE_LIMITED_CODE:
        return ErrorKind.RATE_LIMITED
    if code.startswith(NEWSAPI_VALIDATION_CODE_PREFIXES):
        return ErrorKind.VALIDATION
    return ErrorKind.TRANSIENT


class NewsApiClient:
    """Resilient client for the NewsAPI ``/everything`` endpoint.

    Gate order for every fetch:
    1. Circuit breaker: an open circuit fails fast with CircuitOpenError,
       without consuming a rate-limit token.
    2. Token bucket: an empty bucket fails fast with LocalRateLimitRejected
       carrying the suggested wait.
    3. Retry orchestrator: runs the HTTP request and reports the terminal
       outcome to the breaker.
    """

    def __init__(
        self,
        config: NewsApiConfig,
        rate_limiter: RateLimiterProtocol,
        circuit_breaker: CircuitBreaker,
        query: str | None = None,
        transport: httpx.BaseTransport | None = None,
        now: Callable[[], datetime] | None = None,
        sleep: Callable[[float], None] = time.sleep,
        rng: random.Random | None = None,
        metrics: ResilienceMetrics | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: NewsAPI configuration.
            rate_limiter: Shared token bucket for this upstream.
            circuit_breaker: Shared circuit breaker for this upstream.
            query: Search query; built from the default keyword tiers if omitted.
            transport: Optional httpx transport (for testing).
            now: Wall-clock function for the ``from`` window.
            sleep: Sleep function used between retries.
            rng: Random source for retry jitter.
            metrics: Optional metrics instance.
        """
        self._config = config
        self._rate_limiter = rate_limiter
        self._breaker = circuit_breaker
        self._query = query or RelevanceScorer().build_query()
        self._transport = transport
        self._now = now or (lambda: datetime.now(UTC))
        self._metrics = metrics or ResilienceMetrics.get_instance()
        self._retry = RetryOrchestrator(
            policy=config.retry_policy,
            circuit_breaker=circuit_breaker,
            source_id=SOURCE_NEWSAPI,
            sleep=sleep,
            rng=rng,
            metrics=self._metrics,
        )
        self._log = logger.bind(component="newsapi", source_id=SOURCE_NEWSAPI)

        if not config.has_api_key:
            self._log.warning("newsapi_key_not_configured")

    @property
    def source_id(self) -> str:
        """Identifier of the source."""
        return SOURCE_NEWSAPI

    @property
    def query(self) -> str:
        """Search query sent as ``q``."""
        return self._query

    def fetch_news(
        self,
        page: int = 1,
        page_size: int = 20,
        days_back: int | None = None,
    ) -> list[Article]:
        """Fetch one page of RWA articles.

        Args:
            page: 1-based page number.
            page_size: Requested page size (capped at 100 upstream).
            days_back: Publication window in days (config default if omitted).

        Returns:
            Unscored articles in upstream order.

        Raises:
            CircuitOpenError: The breaker refused the call.
            LocalRateLimitRejected: The token bucket is empty.
            UpstreamError: The upstream failed after the retry policy.
        """
        log = self._log.bind(page=page, page_size=page_size)

        if not self._breaker.can_execute():
            state = self._breaker.get_state()
            self._metrics.record_circuit_rejection()
            log.warning("circuit_open_rejected", circuit_state=state.value)
            raise CircuitOpenError(state.value, source_id=SOURCE_NEWSAPI)

        if not self._rate_limiter.try_consume():
            # A half-open trial that never reached the upstream is returned
            self._breaker.release_trial()
            wait_ms = self._rate_limiter.get_wait_time_ms()
            self._metrics.record_local_rejection()
            log.warning("local_rate_limit_rejected", wait_ms=round(wait_ms, 1))
            raise LocalRateLimitRejected(wait_ms, source_id=SOURCE_NEWSAPI)

        self._metrics.record_admitted()

        url = f"{self._config.base_url}{NEWSAPI_EVERYTHING_PATH}"
        params = self._build_params(page, page_size, days_back)
        headers = self._build_headers()

        start_time_ns = time.perf_counter_ns()
        body = self._retry.execute(
            lambda: self._request_once(url, params, headers, log)
        )
        articles = self._map_articles(body, log)
        duration_ms = (time.perf_counter_ns() - start_time_ns) / 1_000_000

        log.info(
            "fetch_complete",
            total_results=body.total_results,
            articles_received=len(body.articles),
            articles_mapped=len(articles),
            duration_ms=round(duration_ms, 2),
        )
        return articles

    def is_healthy(self) -> bool:
        """Check if the breaker is not OPEN and an API key is configured."""
        return (
            self._breaker.get_state() != CircuitState.OPEN and self._config.has_api_key
        )

    def get_circuit_state(self) -> CircuitState:
        """Get the state of this source's circuit breaker."""
        return self._breaker.get_state()

    def _build_params(
        self,
        page: int,
        page_size: int,
        days_back: int | None,
    ) -> dict[str, str | int]:
        """Build query parameters for ``/everything``.

        Args:
            page: 1-based page number.
            page_size: Requested page size.
            days_back: Publication window in days.

        Returns:
            Query parameter dictionary.
        """
        window = days_back if days_back is not None else self._config.days_back
        from_date = (self._now() - timedelta(days=window)).date()
        return {
            "q": self._query,
            "language": NEWSAPI_LANGUAGE,
            "sortBy": NEWSAPI_SORT_BY,
            "pageSize": min(page_size, NEWSAPI_MAX_PAGE_SIZE),
            "page": page,
            "from": from_date.isoformat(),
            "searchIn": NEWSAPI_SEARCH_IN,
        }

    def _build_headers(self) -> dict[str, str]:
        """Build request headers including the API key."""
        return {
            "User-Agent": self._config.user_agent,
            "Accept": "application/json",
            NEWSAPI_API_KEY_HEADER: self._config.api_key.get_secret_value(),
        }

    def _request_once(
        self,
        url: str,
        params: dict[str, str | int],
        headers: dict[str, str],
        log: structlog.stdlib.BoundLogger,
    ) -> RequestOutcome[NewsApiResponse]:
        """Execute a single HTTP request.

        Args:
            url: Endpoint URL.
            params: Query parameters.
            headers: Request headers.
            log: Bound logger.

        Returns:
            Success with the parsed body, or a classified failure.
        """
        log.debug("newsapi_request", url=url, headers=redact_headers(headers))

        try:
            with httpx.Client(
                timeout=self._config.timeout_seconds,
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                response = client.get(url, params=params, headers=headers)
        except httpx.TimeoutException as e:
            return RequestOutcome.failed(
                ErrorKind.TRANSIENT, f"Request timed out: {e}"
            )
        except httpx.HTTPError as e:
            return RequestOutcome.failed(
                ErrorKind.TRANSIENT, f"Connection failed: {e}"
            )

        status_code = response.status_code
        body = self._parse_body(response)

        if not HTTP_STATUS_OK_MIN <= status_code < HTTP_STATUS_OK_MAX:
            detail = body.message if body and body.message else f"HTTP {status_code}"
            return RequestOutcome.failed(
                classify_status(status_code),
                f"NewsAPI error: {detail}",
                status_code=status_code,
            )

        if body is None:
            return RequestOutcome.failed(
                ErrorKind.TRANSIENT,
                "NewsAPI returned a malformed response body",
                status_code=status_code,
            )

        if body.is_error:
            return RequestOutcome.failed(
                classify_error_code(body.code),
                f"NewsAPI error: {body.message or 'Unknown error'}",
                status_code=status_code,
            )

        return RequestOutcome.success(body)

    @staticmethod
    def _parse_body(response: httpx.Response) -> NewsApiResponse | None:
        """Parse a response body into the NewsAPI envelope.

        Args:
            response: HTTP response.

        Returns:
            Parsed envelope, or None if the body is not a valid envelope.
        """
        try:
            data: Any = response.json()
            return NewsApiResponse.model_validate(data)
        except (ValueError, pydantic.ValidationError):
            return None

    def _map_articles(
        self,
        body: NewsApiResponse,
        log: structlog.stdlib.BoundLogger,
    ) -> list[Article]:
        """Map upstream entries to unscored Articles.

        Malformed and withdrawn entries are skipped.

        Args:
            body: Successful response envelope.
            log: Bound logger.

        Returns:
            Articles in upstream order.
        """
        articles: list[Article] = []

        for index, raw in enumerate(body.articles):
            if not isinstance(raw, dict):
                log.warning(
                    "article_skipped",
                    index=index,
                    reason="not_an_object",
                    entry_type=type(raw).__name__,
                )
                continue

            try:
                entry = NewsApiArticle.model_validate(raw)
            except pydantic.ValidationError as e:
                log.warning(
                    "article_skipped",
                    index=index,
                    reason="invalid_entry",
                    error_count=e.error_count(),
                )
                continue

            if entry.title == NEWSAPI_REMOVED_TITLE:
                log.debug("article_skipped", index=index, reason="removed")
                continue

            published_at = entry.published_at
            if published_at.tzinfo is None:
                published_at = published_at.replace(tzinfo=UTC)

            articles.append(
                Article(
                    id=f"{SOURCE_NEWSAPI}-{entry.url}-{index}",
                    title=entry.title or "",
                    description=entry.description or entry.content or "",
                    url=entry.url,
                    image_url=entry.url_to_image or "",
                    source=entry.source.name or "Unknown",
                    published_at=published_at,
                    categories=DEFAULT_ARTICLE_CATEGORIES,
                )
            )

        return articles
