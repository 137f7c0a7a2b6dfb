"""Configuration models for news sources."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

from rwa_news.resilience.models import (
    CircuitBreakerConfig,
    RateLimitConfig,
    RetryPolicy,
)
from rwa_news.sources.constants import (
    NEWSAPI_BASE_URL,
    NEWSAPI_DEFAULT_DAYS_BACK,
    NEWSAPI_DEFAULT_TIMEOUT_SECONDS,
    USER_AGENT,
)


class NewsApiConfig(BaseModel):
    """Configuration for the NewsAPI source.

    Bundles the endpoint, credentials, and the admission and retry
    settings of the resilience layer.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    api_key: SecretStr = Field(
        default=SecretStr(""), description="NewsAPI key; empty if not configured"
    )
    base_url: Annotated[str, Field(min_length=1)] = NEWSAPI_BASE_URL
    timeout_seconds: Annotated[float, Field(ge=1.0, le=300.0)] = (
        NEWSAPI_DEFAULT_TIMEOUT_SECONDS
    )
    days_back: Annotated[int, Field(ge=1, le=30)] = NEWSAPI_DEFAULT_DAYS_BACK
    user_agent: Annotated[str, Field(min_length=1, max_length=500)] = USER_AGENT
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    circuit_breaker: CircuitBreakerConfig = Field(default_factory=CircuitBreakerConfig)
    retry_policy: RetryPolicy = Field(default_factory=RetryPolicy)

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Require an http(s) base URL without a trailing slash."""
        if not v.startswith(("http://", "https://")):
            msg = f"base_url must be an http(s) URL, got '{v}'"
            raise ValueError(msg)
        return v.rstrip("/")

    @property
    def has_api_key(self) -> bool:
        """Check if an API key is configured."""
        return bool(self.api_key.get_secret_value())
