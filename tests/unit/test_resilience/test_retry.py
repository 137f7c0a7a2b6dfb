"""Unit tests for the retry orchestrator and retry policy."""

import random
from unittest.mock import MagicMock

import pytest

from rwa_news.resilience.errors import (
    AuthError,
    TransientError,
    UpstreamRateLimited,
    ValidationError,
)
from rwa_news.resilience.metrics import ResilienceMetrics
from rwa_news.resilience.models import (
    ErrorKind,
    RequestOutcome,
    RetryPolicy,
    UpstreamFailure,
    classify_status,
)
from rwa_news.resilience.retry import RetryOrchestrator


class _ZeroRandom(random.Random):
    """Random source whose draws are always zero."""

    def random(self) -> float:
        return 0.0


class TestRetryPolicy:
    """Tests for RetryPolicy."""

    def test_default_values(self) -> None:
        """Test default retry policy values."""
        policy = RetryPolicy()

        assert policy.max_retries == 3
        assert policy.base_delay_ms == 1000
        assert policy.max_delay_ms == 30000
        assert policy.exponential_base == 2.0
        assert policy.jitter_max_ms == 1000

    def test_base_delays_double(self) -> None:
        """Test the deterministic backoff components."""
        policy = RetryPolicy()

        assert [policy.get_base_delay_ms(i) for i in range(3)] == [
            1000.0,
            2000.0,
            4000.0,
        ]

    def test_base_delay_capped(self) -> None:
        """Test that the deterministic delay never exceeds max_delay_ms."""
        policy = RetryPolicy(max_delay_ms=5000)

        assert policy.get_base_delay_ms(10) == 5000
        assert RetryPolicy().get_base_delay_ms(5) == 30000
        assert policy.get_delay_ms(10, random.Random(3)) < 5000 + 1000

    def test_jitter_is_additive_and_bounded(self) -> None:
        """Test that jitter adds [0, jitter_max_ms) to the base delay."""
        policy = RetryPolicy()
        rng = random.Random(42)

        for attempt in range(3):
            base = policy.get_base_delay_ms(attempt)
            for _ in range(50):
                delay = policy.get_delay_ms(attempt, rng)
                assert base <= delay < base + 1000

    def test_should_retry_only_transient(self) -> None:
        """Test that only TRANSIENT failures are retried."""
        policy = RetryPolicy(max_retries=3)

        for kind in ErrorKind:
            failure = UpstreamFailure(kind=kind, message="x")
            assert policy.should_retry(failure, attempt=0) is (
                kind == ErrorKind.TRANSIENT
            )

    def test_should_retry_stops_at_cap(self) -> None:
        """Test that retries stop at max_retries."""
        policy = RetryPolicy(max_retries=2)
        failure = UpstreamFailure(kind=ErrorKind.TRANSIENT, message="timeout")

        assert policy.should_retry(failure, attempt=1) is True
        assert policy.should_retry(failure, attempt=2) is False

    @pytest.mark.parametrize(
        ("status_code", "kind"),
        [
            (401, ErrorKind.AUTH),
            (400, ErrorKind.VALIDATION),
            (429, ErrorKind.RATE_LIMITED),
            (500, ErrorKind.TRANSIENT),
            (503, ErrorKind.TRANSIENT),
            (404, ErrorKind.TRANSIENT),
        ],
    )
    def test_classify_status(self, status_code: int, kind: ErrorKind) -> None:
        """Test HTTP status classification."""
        assert classify_status(status_code) == kind


class TestRetryOrchestrator:
    """Tests for RetryOrchestrator.execute."""

    def setup_method(self) -> None:
        """Reset metrics before each test."""
        ResilienceMetrics.reset()

    def _orchestrator(
        self,
        breaker: MagicMock,
        sleep: MagicMock,
        rng: random.Random | None = None,
        policy: RetryPolicy | None = None,
    ) -> RetryOrchestrator:
        return RetryOrchestrator(
            policy=policy or RetryPolicy(),
            circuit_breaker=breaker,
            source_id="newsapi",
            sleep=sleep,
            rng=rng or _ZeroRandom(),
        )

    def test_success_first_try(self) -> None:
        """Test that a first-try success is returned and reported once."""
        breaker, sleep = MagicMock(), MagicMock()
        orchestrator = self._orchestrator(breaker, sleep)

        result = orchestrator.execute(lambda: RequestOutcome.success("body"))

        assert result == "body"
        breaker.record_success.assert_called_once()
        breaker.record_failure.assert_not_called()
        sleep.assert_not_called()

    def test_transient_then_success(self) -> None:
        """Test that transient failures are retried until success."""
        breaker, sleep = MagicMock(), MagicMock()
        orchestrator = self._orchestrator(breaker, sleep)
        outcomes = iter(
            [
                RequestOutcome.failed(ErrorKind.TRANSIENT, "503", status_code=503),
                RequestOutcome.failed(ErrorKind.TRANSIENT, "timeout"),
                RequestOutcome.success("body"),
            ]
        )

        result = orchestrator.execute(lambda: next(outcomes))

        assert result == "body"
        assert sleep.call_count == 2
        breaker.record_success.assert_called_once()
        breaker.record_failure.assert_not_called()
        assert ResilienceMetrics.get_instance().retries_total == 2

    def test_backoff_sequence(self) -> None:
        """Test sleeps of 1s, 2s, 4s before giving up with zero jitter."""
        breaker, sleep = MagicMock(), MagicMock()
        orchestrator = self._orchestrator(breaker, sleep)
        attempt_fn = MagicMock(
            return_value=RequestOutcome.failed(ErrorKind.TRANSIENT, "500", 500)
        )

        with pytest.raises(TransientError) as exc_info:
            orchestrator.execute(attempt_fn)

        assert attempt_fn.call_count == 4
        assert [c.args[0] for c in sleep.call_args_list] == [1.0, 2.0, 4.0]
        assert exc_info.value.status_code == 500
        assert exc_info.value.source_id == "newsapi"

    def test_backoff_includes_jitter(self) -> None:
        """Test that each sleep lies in [base, base + 1s)."""
        breaker, sleep = MagicMock(), MagicMock()
        orchestrator = self._orchestrator(breaker, sleep, rng=random.Random(7))
        attempt_fn = MagicMock(
            return_value=RequestOutcome.failed(ErrorKind.TRANSIENT, "timeout")
        )

        with pytest.raises(TransientError):
            orchestrator.execute(attempt_fn)

        delays = [c.args[0] for c in sleep.call_args_list]
        for delay, base in zip(delays, [1.0, 2.0, 4.0], strict=True):
            assert base <= delay < base + 1.0

    def test_terminal_failure_reported_once(self) -> None:
        """Test that the breaker sees one failure per execute call."""
        breaker, sleep = MagicMock(), MagicMock()
        orchestrator = self._orchestrator(breaker, sleep)

        with pytest.raises(TransientError):
            orchestrator.execute(
                lambda: RequestOutcome.failed(ErrorKind.TRANSIENT, "boom")
            )

        breaker.record_failure.assert_called_once()
        breaker.record_success.assert_not_called()

    @pytest.mark.parametrize(
        ("kind", "status_code", "error_cls"),
        [
            (ErrorKind.AUTH, 401, AuthError),
            (ErrorKind.VALIDATION, 400, ValidationError),
            (ErrorKind.RATE_LIMITED, 429, UpstreamRateLimited),
        ],
    )
    def test_permanent_failures_not_retried(
        self,
        kind: ErrorKind,
        status_code: int,
        error_cls: type[Exception],
    ) -> None:
        """Test that AUTH, VALIDATION and RATE_LIMITED fail on the first attempt."""
        breaker, sleep = MagicMock(), MagicMock()
        orchestrator = self._orchestrator(breaker, sleep)
        attempt_fn = MagicMock(
            return_value=RequestOutcome.failed(kind, "rejected", status_code)
        )

        with pytest.raises(error_cls):
            orchestrator.execute(attempt_fn)

        assert attempt_fn.call_count == 1
        sleep.assert_not_called()
        breaker.record_failure.assert_called_once()

    def test_escaped_exception_is_transient(self) -> None:
        """Test that an exception from the attempt is retried as TRANSIENT."""
        breaker, sleep = MagicMock(), MagicMock()
        orchestrator = self._orchestrator(breaker, sleep)
        attempt_fn = MagicMock(
            side_effect=[RuntimeError("socket closed"), RequestOutcome.success("ok")]
        )

        assert orchestrator.execute(attempt_fn) == "ok"
        assert sleep.call_count == 1

    def test_max_retries_override(self) -> None:
        """Test the per-call retry cap, clamped at zero."""
        breaker, sleep = MagicMock(), MagicMock()
        orchestrator = self._orchestrator(breaker, sleep)
        attempt_fn = MagicMock(
            return_value=RequestOutcome.failed(ErrorKind.TRANSIENT, "timeout")
        )

        with pytest.raises(TransientError):
            orchestrator.execute(attempt_fn, max_retries=-2)

        assert attempt_fn.call_count == 1
        sleep.assert_not_called()
        assert orchestrator.policy.max_retries == 3

    def test_policy_decides_retries(self) -> None:
        """Test that the policy's should_retry drives the attempt loop."""
        breaker, sleep = MagicMock(), MagicMock()
        policy = MagicMock(spec=RetryPolicy)
        policy.should_retry.side_effect = [True, False]
        policy.get_delay_ms.return_value = 250.0
        policy.max_retries = 3
        orchestrator = self._orchestrator(breaker, sleep, policy=policy)
        attempt_fn = MagicMock(
            return_value=RequestOutcome.failed(ErrorKind.TRANSIENT, "timeout")
        )

        with pytest.raises(TransientError):
            orchestrator.execute(attempt_fn)

        assert attempt_fn.call_count == 2
        assert [c.args[1] for c in policy.should_retry.call_args_list] == [0, 1]
        sleep.assert_called_once_with(0.25)
        breaker.record_failure.assert_called_once()

    def test_terminal_failure_metrics(self) -> None:
        """Test that the final failure kind is counted."""
        breaker, sleep = MagicMock(), MagicMock()
        orchestrator = self._orchestrator(breaker, sleep)

        with pytest.raises(AuthError):
            orchestrator.execute(
                lambda: RequestOutcome.failed(ErrorKind.AUTH, "bad key", 401)
            )

        metrics = ResilienceMetrics.get_instance()
        assert metrics.upstream_failures_total == {"AUTH": 1}
        assert metrics.retries_total == 0
