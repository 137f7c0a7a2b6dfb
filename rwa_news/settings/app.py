"""Application settings powered by Pydantic BaseSettings."""

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from rwa_news.resilience.constants import (
    DEFAULT_BASE_DELAY_MS,
    DEFAULT_BUCKET_CAPACITY,
    DEFAULT_FAILURE_THRESHOLD,
    DEFAULT_HALF_OPEN_TRIAL_BUDGET,
    DEFAULT_MAX_RETRIES,
    DEFAULT_REFILL_RATE_PER_SECOND,
    DEFAULT_RESET_TIMEOUT_SECONDS,
)
from rwa_news.resilience.models import (
    CircuitBreakerConfig,
    RateLimitConfig,
    RetryPolicy,
)
from rwa_news.sources.config import NewsApiConfig
from rwa_news.sources.constants import (
    NEWSAPI_BASE_URL,
    NEWSAPI_DEFAULT_DAYS_BACK,
    NEWSAPI_DEFAULT_TIMEOUT_SECONDS,
)


class AppSettings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_prefix="", case_sensitive=False, env_file=".env", env_file_encoding="utf-8"
    )

    newsapi_key: SecretStr = Field(
        default=SecretStr(""), validation_alias="NEWSAPI_KEY"
    )
    newsapi_base_url: str = Field(
        default=NEWSAPI_BASE_URL, validation_alias="NEWSAPI_BASE_URL"
    )
    newsapi_timeout_seconds: float = Field(
        default=NEWSAPI_DEFAULT_TIMEOUT_SECONDS,
        validation_alias="NEWSAPI_TIMEOUT_SECONDS",
    )
    newsapi_days_back: int = Field(
        default=NEWSAPI_DEFAULT_DAYS_BACK, validation_alias="NEWSAPI_DAYS_BACK"
    )
    rate_limit_capacity: float = Field(
        default=DEFAULT_BUCKET_CAPACITY,
        validation_alias="NEWSAPI_RATE_LIMIT_CAPACITY",
    )
    rate_limit_refill_per_second: float = Field(
        default=DEFAULT_REFILL_RATE_PER_SECOND,
        validation_alias="NEWSAPI_RATE_LIMIT_REFILL_PER_SECOND",
    )
    circuit_failure_threshold: int = Field(
        default=DEFAULT_FAILURE_THRESHOLD,
        validation_alias="NEWSAPI_CIRCUIT_FAILURE_THRESHOLD",
    )
    circuit_reset_timeout_seconds: float = Field(
        default=DEFAULT_RESET_TIMEOUT_SECONDS,
        validation_alias="NEWSAPI_CIRCUIT_RESET_TIMEOUT_SECONDS",
    )
    circuit_half_open_trials: int = Field(
        default=DEFAULT_HALF_OPEN_TRIAL_BUDGET,
        validation_alias="NEWSAPI_CIRCUIT_HALF_OPEN_TRIALS",
    )
    max_retries: int = Field(
        default=DEFAULT_MAX_RETRIES, validation_alias="NEWSAPI_MAX_RETRIES"
    )
    retry_base_delay_ms: int = Field(
        default=DEFAULT_BASE_DELAY_MS, validation_alias="NEWSAPI_RETRY_BASE_DELAY_MS"
    )

    def to_client_config(self) -> NewsApiConfig:
        """Build the validated NewsAPI client configuration.

        Returns:
            Frozen NewsApiConfig; field bounds are enforced here.
        """
        return NewsApiConfig(
            api_key=self.newsapi_key,
            base_url=self.newsapi_base_url,
            timeout_seconds=self.newsapi_timeout_seconds,
            days_back=self.newsapi_days_back,
            rate_limit=RateLimitConfig(
                capacity=self.rate_limit_capacity,
                refill_rate_per_second=self.rate_limit_refill_per_second,
            ),
            circuit_breaker=CircuitBreakerConfig(
                failure_threshold=self.circuit_failure_threshold,
                reset_timeout_seconds=self.circuit_reset_timeout_seconds,
                half_open_trial_budget=self.circuit_half_open_trials,
            ),
            retry_policy=RetryPolicy(
                max_retries=self.max_retries,
                base_delay_ms=self.retry_base_delay_ms,
            ),
        )


def get_settings() -> AppSettings:
    """Get a settings instance."""
    return AppSettings()
