"""Three-state circuit breaker for an unreliable upstream.

States:
- CLOSED: Normal operation, failures are counted
- OPEN: Too many failures, calls are refused without touching the network
- HALF_OPEN: Cooldown elapsed, a limited number of trial calls probe recovery

Transitions:
    CLOSED --[failure_threshold failures]--> OPEN
    OPEN --[reset_timeout elapsed, observed by can_execute]--> HALF_OPEN
    HALF_OPEN --[success]--> CLOSED
    HALF_OPEN --[any failure]--> OPEN

The breaker is an immutable CircuitBreakerState plus pure transition
functions. ``observe`` is the only read that may transition (OPEN to
HALF_OPEN); CircuitBreaker.can_execute applies it under a lock.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import Enum

import structlog

from rwa_news.resilience.metrics import ResilienceMetrics
from rwa_news.resilience.models import CircuitBreakerConfig


logger = structlog.get_logger()


class CircuitState(str, Enum):
    """Circuit breaker states."""

    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


@dataclass(frozen=True)
class CircuitBreakerState:
    """Snapshot of a circuit breaker.

    Attributes:
        state: Current circuit state.
        failure_count: Failures recorded since the last success.
        last_failure_at: Clock reading of the last failure, in seconds.
        failure_threshold: Failures that open a closed circuit.
        reset_timeout_seconds: Cooldown before an open circuit probes.
        half_open_trial_budget: Trial calls allowed per half-open window.
        half_open_trials_remaining: Trials left in the current window.
    """

    failure_threshold: int
    reset_timeout_seconds: float
    half_open_trial_budget: int = 1
    state: CircuitState = CircuitState.CLOSED
    failure_count: int = 0
    last_failure_at: float | None = None
    half_open_trials_remaining: int = 0


def observe(
    state: CircuitBreakerState, now: float
) -> tuple[CircuitBreakerState, bool]:
    """Decide whether a call may proceed, transitioning if the cooldown ended.

    An OPEN circuit whose reset timeout has elapsed moves to HALF_OPEN with
    a fresh trial budget, and the observing call takes the first trial.

    Args:
        state: Current breaker state.
        now: Current clock reading in seconds.

    Returns:
        Tuple of (new state, allowed).
    """
    if state.state == CircuitState.CLOSED:
        return state, True

    if state.state == CircuitState.OPEN:
        elapsed = now - (state.last_failure_at or 0.0)
        if elapsed >= state.reset_timeout_seconds:
            return (
                replace(
                    state,
                    state=CircuitState.HALF_OPEN,
                    half_open_trials_remaining=state.half_open_trial_budget - 1,
                ),
                True,
            )
        return state, False

    if state.half_open_trials_remaining > 0:
        return (
            replace(
                state, half_open_trials_remaining=state.half_open_trials_remaining - 1
            ),
            True,
        )
    return state, False


def on_success(state: CircuitBreakerState) -> CircuitBreakerState:
    """Apply a recorded success.

    Args:
        state: Current breaker state.

    Returns:
        New state; a half-open circuit closes.
    """
    if state.state == CircuitState.HALF_OPEN:
        return replace(
            state,
            state=CircuitState.CLOSED,
            failure_count=0,
            half_open_trials_remaining=0,
        )
    return replace(state, failure_count=0)


def on_failure(state: CircuitBreakerState, now: float) -> CircuitBreakerState:
    """Apply a recorded failure.

    Args:
        state: Current breaker state.
        now: Current clock reading in seconds.

    Returns:
        New state; a half-open circuit reopens immediately and a closed one
        opens once the threshold is reached.
    """
    state = replace(state, failure_count=state.failure_count + 1, last_failure_at=now)
    if state.state == CircuitState.HALF_OPEN:
        return replace(state, state=CircuitState.OPEN, half_open_trials_remaining=0)
    if state.failure_count >= state.failure_threshold:
        return replace(state, state=CircuitState.OPEN)
    return state


def release_trial(state: CircuitBreakerState) -> CircuitBreakerState:
    """Return an unused half-open trial to the budget.

    Args:
        state: Current breaker state.

    Returns:
        New state with one more trial available, if half-open.
    """
    if state.state != CircuitState.HALF_OPEN:
        return state
    remaining = min(state.half_open_trials_remaining + 1, state.half_open_trial_budget)
    return replace(state, half_open_trials_remaining=remaining)


class CircuitBreaker:
    """Thread-safe circuit breaker around a single upstream.

    Note that can_execute is a state-mutating read: observing an expired
    OPEN circuit moves it to HALF_OPEN and consumes a trial.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        reset_timeout_seconds: float = 60.0,
        half_open_trial_budget: int = 1,
        name: str = "default",
        clock: Callable[[], float] = time.monotonic,
        metrics: ResilienceMetrics | None = None,
    ) -> None:
        """Initialize the breaker in the CLOSED state.

        Args:
            failure_threshold: Failures that open a closed circuit.
            reset_timeout_seconds: Cooldown before an open circuit probes.
            half_open_trial_budget: Trial calls allowed per half-open window.
            name: Name of the protected dependency, for logging.
            clock: Monotonic clock returning seconds.
            metrics: Optional metrics instance.
        """
        if failure_threshold < 1:
            msg = f"failure_threshold must be >= 1, got {failure_threshold}"
            raise ValueError(msg)
        if half_open_trial_budget < 1:
            msg = f"half_open_trial_budget must be >= 1, got {half_open_trial_budget}"
            raise ValueError(msg)

        self._state = CircuitBreakerState(
            failure_threshold=failure_threshold,
            reset_timeout_seconds=reset_timeout_seconds,
            half_open_trial_budget=half_open_trial_budget,
        )
        self._clock = clock
        self._lock = threading.Lock()
        self._metrics = metrics or ResilienceMetrics.get_instance()
        self._log = logger.bind(component="circuit_breaker", breaker=name)

    @classmethod
    def from_config(
        cls,
        config: CircuitBreakerConfig,
        name: str = "default",
        clock: Callable[[], float] = time.monotonic,
    ) -> "CircuitBreaker":
        """Create a breaker from configuration.

        Args:
            config: Circuit breaker configuration.
            name: Name of the protected dependency.
            clock: Monotonic clock returning seconds.

        Returns:
            CircuitBreaker instance.
        """
        return cls(
            failure_threshold=config.failure_threshold,
            reset_timeout_seconds=config.reset_timeout_seconds,
            half_open_trial_budget=config.half_open_trial_budget,
            name=name,
            clock=clock,
        )

    def can_execute(self) -> bool:
        """Check whether a call may proceed.

        Returns:
            True when CLOSED, for the call that moves an expired OPEN circuit
            to HALF_OPEN, and for HALF_OPEN calls while trials remain.
        """
        with self._lock:
            previous = self._state
            self._state, allowed = observe(previous, self._clock())
            self._log_transition(previous.state, self._state.state)
            return allowed

    def record_success(self) -> None:
        """Record a successful call."""
        with self._lock:
            previous = self._state
            self._state = on_success(previous)
            self._log_transition(previous.state, self._state.state)

    def record_failure(self) -> None:
        """Record a failed call."""
        with self._lock:
            previous = self._state
            self._state = on_failure(previous, self._clock())
            self._log_transition(previous.state, self._state.state)

    def release_trial(self) -> None:
        """Give back a half-open trial whose call never reached the upstream."""
        with self._lock:
            self._state = release_trial(self._state)

    def get_state(self) -> CircuitState:
        """Get the current circuit state without transitioning."""
        with self._lock:
            return self._state.state

    def snapshot(self) -> CircuitBreakerState:
        """Get the full breaker state without transitioning."""
        with self._lock:
            return self._state

    def _log_transition(self, before: CircuitState, after: CircuitState) -> None:
        """Log and count a state change. Must be called while holding the lock."""
        if before == after:
            return
        self._metrics.record_circuit_transition(after.value)
        log_method = self._log.warning if after == CircuitState.OPEN else self._log.info
        log_method(
            "circuit_state_changed",
            from_state=before.value,
            to_state=after.value,
            failure_count=self._state.failure_count,
        )
