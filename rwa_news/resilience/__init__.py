"""Resilience layer: admission control, failure isolation, and retries.

This module provides:
- Token bucket rate limiting with lazy refill
- A three-state circuit breaker with a half-open trial budget
- Classified retries with exponential backoff and additive jitter
- The error taxonomy shared by sources and the aggregator
"""

from rwa_news.resilience.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerState,
    CircuitState,
)
from rwa_news.resilience.errors import (
    AuthError,
    CircuitOpenError,
    LocalRateLimitRejected,
    NewsSourceError,
    TransientError,
    UpstreamError,
    UpstreamRateLimited,
    ValidationError,
)
from rwa_news.resilience.metrics import ResilienceMetrics
from rwa_news.resilience.models import (
    CircuitBreakerConfig,
    ErrorKind,
    RateLimitConfig,
    RequestOutcome,
    RetryPolicy,
    UpstreamFailure,
    classify_status,
)
from rwa_news.resilience.rate_limiter import TokenBucketRateLimiter, TokenBucketState
from rwa_news.resilience.retry import RetryOrchestrator


__all__ = [
    # Gates
    "CircuitBreaker",
    "CircuitBreakerState",
    "CircuitState",
    "TokenBucketRateLimiter",
    "TokenBucketState",
    # Retry
    "RetryOrchestrator",
    "RetryPolicy",
    # Config
    "CircuitBreakerConfig",
    "RateLimitConfig",
    # Models
    "ErrorKind",
    "RequestOutcome",
    "UpstreamFailure",
    "classify_status",
    # Errors
    "AuthError",
    "CircuitOpenError",
    "LocalRateLimitRejected",
    "NewsSourceError",
    "TransientError",
    "UpstreamError",
    "UpstreamRateLimited",
    "ValidationError",
    # Metrics
    "ResilienceMetrics",
]
