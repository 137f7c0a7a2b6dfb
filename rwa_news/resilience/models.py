"""Data models for the resilience layer."""

import random
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from rwa_news.resilience.constants import (
    DEFAULT_BASE_DELAY_MS,
    DEFAULT_BUCKET_CAPACITY,
    DEFAULT_FAILURE_THRESHOLD,
    DEFAULT_HALF_OPEN_TRIAL_BUDGET,
    DEFAULT_JITTER_MAX_MS,
    DEFAULT_MAX_DELAY_MS,
    DEFAULT_MAX_RETRIES,
    DEFAULT_REFILL_RATE_PER_SECOND,
    DEFAULT_RESET_TIMEOUT_SECONDS,
    HTTP_STATUS_BAD_REQUEST,
    HTTP_STATUS_TOO_MANY_REQUESTS,
    HTTP_STATUS_UNAUTHORIZED,
)


T = TypeVar("T")


class ErrorKind(str, Enum):
    """Classification of upstream failures for retry decisions.

    - AUTH: Credentials rejected (401); permanent
    - VALIDATION: Request rejected as malformed (400); permanent
    - RATE_LIMITED: Upstream throttled the caller (429); permanent for the call
    - TRANSIENT: Network errors, timeouts, 5xx and anything unclassified
    """

    AUTH = "AUTH"
    VALIDATION = "VALIDATION"
    RATE_LIMITED = "RATE_LIMITED"
    TRANSIENT = "TRANSIENT"

    @property
    def retryable(self) -> bool:
        """Check if failures of this kind may be retried."""
        return self in _RETRYABLE_KINDS


_RETRYABLE_KINDS = frozenset({ErrorKind.TRANSIENT})

_STATUS_KINDS: dict[int, ErrorKind] = {
    HTTP_STATUS_UNAUTHORIZED: ErrorKind.AUTH,
    HTTP_STATUS_BAD_REQUEST: ErrorKind.VALIDATION,
    HTTP_STATUS_TOO_MANY_REQUESTS: ErrorKind.RATE_LIMITED,
}


def classify_status(status_code: int) -> ErrorKind:
    """Map an HTTP error status code to an ErrorKind.

    Args:
        status_code: HTTP status code of a failed response.

    Returns:
        The matching ErrorKind; unknown codes are TRANSIENT.
    """
    return _STATUS_KINDS.get(status_code, ErrorKind.TRANSIENT)


@dataclass(frozen=True)
class UpstreamFailure:
    """Failure details from a single upstream attempt.

    Attributes:
        kind: Classification of the failure.
        message: Human-readable message.
        status_code: HTTP status code if a response was received.
    """

    kind: ErrorKind
    message: str
    status_code: int | None = None


@dataclass(frozen=True)
class RequestOutcome(Generic[T]):
    """Tagged result of one upstream attempt.

    Exactly one of payload or failure is meaningful: an outcome with a
    failure is a Failure, otherwise it is a Success carrying payload.
    """

    payload: T | None = None
    failure: UpstreamFailure | None = None

    @classmethod
    def success(cls, payload: T) -> "RequestOutcome[T]":
        """Build a successful outcome."""
        return cls(payload=payload)

    @classmethod
    def failed(
        cls,
        kind: ErrorKind,
        message: str,
        status_code: int | None = None,
    ) -> "RequestOutcome[T]":
        """Build a failed outcome."""
        return cls(
            failure=UpstreamFailure(kind=kind, message=message, status_code=status_code)
        )

    @property
    def is_success(self) -> bool:
        """Check if the attempt succeeded."""
        return self.failure is None


class RetryPolicy(BaseModel):
    """Configuration for retry behavior.

    Uses exponential backoff with additive jitter:
    delay = min(base_delay_ms * exponential_base ^ attempt, max_delay_ms)
            + uniform(0, jitter_max_ms)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_retries: Annotated[int, Field(ge=0, le=10)] = DEFAULT_MAX_RETRIES
    base_delay_ms: Annotated[int, Field(ge=0, le=60000)] = DEFAULT_BASE_DELAY_MS
    max_delay_ms: Annotated[int, Field(ge=0, le=300000)] = DEFAULT_MAX_DELAY_MS
    exponential_base: Annotated[float, Field(ge=1.0, le=5.0)] = 2.0
    jitter_max_ms: Annotated[int, Field(ge=0, le=60000)] = DEFAULT_JITTER_MAX_MS

    def should_retry(self, failure: UpstreamFailure, attempt: int) -> bool:
        """Determine if a failed attempt should be retried.

        Args:
            failure: The failure that occurred.
            attempt: Current attempt number (0-indexed).

        Returns:
            True if another attempt should be made.
        """
        if attempt >= self.max_retries:
            return False
        return failure.kind.retryable

    def get_base_delay_ms(self, attempt: int) -> float:
        """Deterministic part of the backoff delay.

        Args:
            attempt: Index of the retry (0 for the first retry).

        Returns:
            Delay in milliseconds before jitter.
        """
        delay = self.base_delay_ms * (self.exponential_base**attempt)
        return min(delay, self.max_delay_ms)

    def get_delay_ms(self, attempt: int, rng: random.Random | None = None) -> float:
        """Calculate delay before the next retry attempt.

        Args:
            attempt: Index of the retry (0 for the first retry).
            rng: Random source for jitter (module random if omitted).

        Returns:
            Delay in milliseconds.
        """
        draw = rng.random() if rng is not None else random.random()  # noqa: S311
        return self.get_base_delay_ms(attempt) + draw * self.jitter_max_ms


class RateLimitConfig(BaseModel):
    """Token bucket configuration."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    capacity: Annotated[float, Field(ge=1.0, le=10000.0)] = DEFAULT_BUCKET_CAPACITY
    refill_rate_per_second: Annotated[float, Field(gt=0.0, le=10000.0)] = (
        DEFAULT_REFILL_RATE_PER_SECOND
    )


class CircuitBreakerConfig(BaseModel):
    """Circuit breaker configuration."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    failure_threshold: Annotated[int, Field(ge=1, le=1000)] = DEFAULT_FAILURE_THRESHOLD
    reset_timeout_seconds: Annotated[float, Field(ge=0.0, le=86400.0)] = (
        DEFAULT_RESET_TIMEOUT_SECONDS
    )
    half_open_trial_budget: Annotated[int, Field(ge=1, le=100)] = (
        DEFAULT_HALF_OPEN_TRIAL_BUDGET
    )
