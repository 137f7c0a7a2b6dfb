"""Token-bucket rate limiter for upstream API calls.

The bucket is an immutable TokenBucketState plus pure transition functions.
TokenBucketRateLimiter holds the current state behind a lock and swaps in
the result of each transition, so refill and consumption stay atomic when
called from several threads.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import Protocol

from rwa_news.resilience.models import RateLimitConfig


class RateLimiterProtocol(Protocol):
    """Protocol for rate limiters.

    Allows dependency injection of rate limiter for testing.
    """

    def try_consume(self) -> bool:
        """Try to take one token without blocking."""
        ...

    def get_wait_time_ms(self) -> float:
        """Milliseconds until one token is available."""
        ...


@dataclass(frozen=True)
class TokenBucketState:
    """Snapshot of a token bucket.

    Attributes:
        capacity: Maximum tokens in the bucket (burst size).
        refill_rate_per_second: Tokens added per second of elapsed time.
        tokens: Tokens currently available, 0 <= tokens <= capacity.
        last_refill_at: Clock reading of the last refill, in seconds.
    """

    capacity: float
    refill_rate_per_second: float
    tokens: float
    last_refill_at: float

    @classmethod
    def full(
        cls,
        capacity: float,
        refill_rate_per_second: float,
        now: float,
    ) -> "TokenBucketState":
        """Create a bucket that starts at capacity."""
        return cls(
            capacity=capacity,
            refill_rate_per_second=refill_rate_per_second,
            tokens=capacity,
            last_refill_at=now,
        )


def refill(state: TokenBucketState, now: float) -> TokenBucketState:
    """Add tokens for the time elapsed since the last refill.

    Args:
        state: Current bucket state.
        now: Current clock reading in seconds.

    Returns:
        Refilled state, capped at capacity.
    """
    elapsed = max(0.0, now - state.last_refill_at)
    tokens = min(state.capacity, state.tokens + elapsed * state.refill_rate_per_second)
    return replace(state, tokens=tokens, last_refill_at=max(now, state.last_refill_at))


def try_consume(state: TokenBucketState, now: float) -> tuple[TokenBucketState, bool]:
    """Refill, then take one token if available.

    Args:
        state: Current bucket state.
        now: Current clock reading in seconds.

    Returns:
        Tuple of (new state, admitted).
    """
    state = refill(state, now)
    if state.tokens >= 1:
        return replace(state, tokens=state.tokens - 1), True
    return state, False


def wait_time_ms(state: TokenBucketState, now: float) -> tuple[TokenBucketState, float]:
    """Refill, then compute the wait until one token is available.

    Args:
        state: Current bucket state.
        now: Current clock reading in seconds.

    Returns:
        Tuple of (new state, wait in milliseconds); the wait is 0 when a
        token is already available.
    """
    state = refill(state, now)
    if state.tokens >= 1:
        return state, 0.0
    tokens_needed = 1 - state.tokens
    return state, (tokens_needed / state.refill_rate_per_second) * 1000


@dataclass
class TokenBucketRateLimiter:
    """Non-blocking token bucket admission gate.

    Tokens are replenished lazily from elapsed clock time on every check;
    there is no background timer. Thread-safe.

    Attributes:
        capacity: Maximum tokens in the bucket.
        refill_rate_per_second: Tokens added per second.
        clock: Monotonic clock returning seconds.
    """

    capacity: float
    refill_rate_per_second: float
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)

    _state: TokenBucketState = field(init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _rejected_count: int = field(init=False, default=0)

    def __post_init__(self) -> None:
        """Initialize the bucket at full capacity."""
        if self.capacity <= 0:
            msg = f"capacity must be positive, got {self.capacity}"
            raise ValueError(msg)
        if self.refill_rate_per_second <= 0:
            msg = f"refill rate must be positive, got {self.refill_rate_per_second}"
            raise ValueError(msg)
        self._state = TokenBucketState.full(
            self.capacity, self.refill_rate_per_second, self.clock()
        )

    @classmethod
    def from_config(
        cls,
        config: RateLimitConfig,
        clock: Callable[[], float] = time.monotonic,
    ) -> "TokenBucketRateLimiter":
        """Create a limiter from configuration.

        Args:
            config: Token bucket configuration.
            clock: Monotonic clock returning seconds.

        Returns:
            TokenBucketRateLimiter instance.
        """
        return cls(
            capacity=config.capacity,
            refill_rate_per_second=config.refill_rate_per_second,
            clock=clock,
        )

    def try_consume(self) -> bool:
        """Try to take one token without blocking.

        Returns:
            True if the request is admitted, False otherwise.
        """
        with self._lock:
            self._state, admitted = try_consume(self._state, self.clock())
            if not admitted:
                self._rejected_count += 1
            return admitted

    def get_wait_time_ms(self) -> float:
        """Get milliseconds until one token is available.

        Returns:
            0 if a token is available now, otherwise the refill wait.
        """
        with self._lock:
            self._state, wait = wait_time_ms(self._state, self.clock())
            return wait

    def get_available_tokens(self) -> float:
        """Get the current number of available tokens.

        Returns:
            Current token count after refill.
        """
        with self._lock:
            self._state = refill(self._state, self.clock())
            return self._state.tokens

    def snapshot(self) -> TokenBucketState:
        """Get the current bucket state without refilling."""
        with self._lock:
            return self._state

    @property
    def rejected_count(self) -> int:
        """Get the number of rejected admissions."""
        with self._lock:
            return self._rejected_count
