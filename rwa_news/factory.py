"""Wiring for the news feed pipeline.

The token bucket and circuit breaker are built once here and shared by every
request made through the returned aggregator.
"""

import random
import time
from collections.abc import Callable
from datetime import datetime

import httpx

from rwa_news.aggregator import NewsAggregator
from rwa_news.ranker import RelevanceScorer
from rwa_news.resilience import CircuitBreaker, TokenBucketRateLimiter
from rwa_news.settings import AppSettings, get_settings
from rwa_news.sources import NewsApiClient
from rwa_news.sources.constants import SOURCE_NEWSAPI


def build_news_aggregator(  # noqa: PLR0913
    settings: AppSettings | None = None,
    transport: httpx.BaseTransport | None = None,
    clock: Callable[[], float] = time.monotonic,
    now: Callable[[], datetime] | None = None,
    sleep: Callable[[float], None] = time.sleep,
    rng: random.Random | None = None,
) -> NewsAggregator:
    """Build an aggregator backed by a resilient NewsAPI client.

    Args:
        settings: Application settings (loaded from the environment if omitted).
        transport: Optional httpx transport (for testing).
        clock: Monotonic clock for the limiter and breaker.
        now: Wall-clock function for query windows and fallback timestamps.
        sleep: Sleep function used between retries.
        rng: Random source for retry jitter.

    Returns:
        Configured NewsAggregator.
    """
    config = (settings or get_settings()).to_client_config()
    scorer = RelevanceScorer()

    rate_limiter = TokenBucketRateLimiter.from_config(config.rate_limit, clock=clock)
    circuit_breaker = CircuitBreaker.from_config(
        config.circuit_breaker, name=SOURCE_NEWSAPI, clock=clock
    )

    client = NewsApiClient(
        config=config,
        rate_limiter=rate_limiter,
        circuit_breaker=circuit_breaker,
        query=scorer.build_query(),
        transport=transport,
        now=now,
        sleep=sleep,
        rng=rng,
    )
    return NewsAggregator(sources=[client], scorer=scorer, now=now)

