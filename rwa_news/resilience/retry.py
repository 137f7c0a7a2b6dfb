"""Classified retry execution with exponential backoff and jitter."""

import random
import time
from collections.abc import Callable
from typing import TypeVar

import structlog

from rwa_news.resilience.circuit_breaker import CircuitBreaker
from rwa_news.resilience.errors import UpstreamError, error_from_failure
from rwa_news.resilience.metrics import ResilienceMetrics
from rwa_news.resilience.models import (
    ErrorKind,
    RequestOutcome,
    RetryPolicy,
    UpstreamFailure,
)


logger = structlog.get_logger()

T = TypeVar("T")


class RetryOrchestrator:
    """Runs upstream attempts under a retry policy.

    Each attempt returns a RequestOutcome. Failures whose ErrorKind is not
    retryable (AUTH, VALIDATION, RATE_LIMITED) end the call at once;
    TRANSIENT failures are retried with
    ``base_delay_ms * 2^attempt + uniform(0, jitter_max_ms)`` between
    attempts. The terminal outcome of each execute call is reported to the
    circuit breaker exactly once; intermediate retries are not.
    """

    def __init__(
        self,
        policy: RetryPolicy,
        circuit_breaker: CircuitBreaker,
        source_id: str | None = None,
        sleep: Callable[[float], None] = time.sleep,
        rng: random.Random | None = None,
        metrics: ResilienceMetrics | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            policy: Retry policy (attempt cap and backoff).
            circuit_breaker: Breaker receiving terminal outcomes.
            source_id: Identifier of the source, for errors and logs.
            sleep: Sleep function taking seconds.
            rng: Random source for jitter.
            metrics: Optional metrics instance.
        """
        self._policy = policy
        self._breaker = circuit_breaker
        self._source_id = source_id
        self._sleep = sleep
        self._rng = rng or random.Random()  # noqa: S311
        self._metrics = metrics or ResilienceMetrics.get_instance()
        self._log = logger.bind(component="retry", source_id=source_id)

    @property
    def policy(self) -> RetryPolicy:
        """Get the retry policy."""
        return self._policy

    def execute(
        self,
        attempt_fn: Callable[[], RequestOutcome[T]],
        max_retries: int | None = None,
    ) -> T:
        """Run attempt_fn until it succeeds or the policy gives up.

        Args:
            attempt_fn: Performs one upstream attempt.
            max_retries: Override for the policy's retry cap.

        Returns:
            Payload of the successful attempt.

        Raises:
            UpstreamError: Typed error for the final failure.
        """
        policy = self._policy
        if max_retries is not None:
            policy = policy.model_copy(update={"max_retries": max(0, max_retries)})

        attempt = 0
        while True:
            outcome = self._run_attempt(attempt_fn)

            if outcome.failure is None:
                self._breaker.record_success()
                self._metrics.record_success()
                return outcome.payload  # type: ignore[return-value]

            failure = outcome.failure
            if not policy.should_retry(failure, attempt):
                raise self._give_up(failure, attempt)

            delay_ms = policy.get_delay_ms(attempt, self._rng)
            self._metrics.record_retry()
            self._log.info(
                "retry_scheduled",
                attempt=attempt + 1,
                max_retries=policy.max_retries,
                delay_ms=round(delay_ms, 1),
                error_kind=failure.kind.value,
                status_code=failure.status_code,
                error_message=failure.message,
            )
            self._sleep(delay_ms / 1000.0)
            attempt += 1

    def _give_up(self, failure: UpstreamFailure, attempt: int) -> UpstreamError:
        """Report a terminal failure and build the error to raise.

        Args:
            failure: Final failure of the call.
            attempt: Index of the failed attempt.

        Returns:
            Typed error for the failure.
        """
        if failure.kind == ErrorKind.RATE_LIMITED:
            self._log.warning(
                "upstream_rate_limited",
                attempt=attempt,
                status_code=failure.status_code,
            )

        self._breaker.record_failure()
        self._metrics.record_failure(failure.kind.value)
        self._log.warning(
            "upstream_request_failed",
            error_kind=failure.kind.value,
            status_code=failure.status_code,
            error_message=failure.message,
        )
        return error_from_failure(failure, source_id=self._source_id)

    def _run_attempt(
        self, attempt_fn: Callable[[], RequestOutcome[T]]
    ) -> RequestOutcome[T]:
        """Run one attempt, classifying escaped exceptions as transient.

        Args:
            attempt_fn: Performs one upstream attempt.

        Returns:
            Outcome of the attempt.
        """
        try:
            return attempt_fn()
        except Exception as e:  # noqa: BLE001
            return RequestOutcome.failed(
                ErrorKind.TRANSIENT,
                f"Unexpected error: {e}",
            )
