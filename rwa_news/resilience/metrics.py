"""Metrics collection for the resilience layer."""

from dataclasses import dataclass, field
from typing import ClassVar


@dataclass
class ResilienceMetrics:
    """Metrics for admission control and retries.

    Singleton class that tracks gate rejections, breaker transitions,
    retries, and terminal upstream outcomes.
    """

    requests_admitted_total: int = 0
    local_rate_limit_rejections_total: int = 0
    circuit_open_rejections_total: int = 0
    circuit_transitions_total: dict[str, int] = field(default_factory=dict)
    retries_total: int = 0
    upstream_successes_total: int = 0
    upstream_failures_total: dict[str, int] = field(default_factory=dict)

    _instance: ClassVar["ResilienceMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "ResilienceMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_admitted(self) -> None:
        """Record a request that passed both gates."""
        self.requests_admitted_total += 1

    def record_local_rejection(self) -> None:
        """Record a token bucket rejection."""
        self.local_rate_limit_rejections_total += 1

    def record_circuit_rejection(self) -> None:
        """Record a request refused by the circuit breaker."""
        self.circuit_open_rejections_total += 1

    def record_circuit_transition(self, to_state: str) -> None:
        """Record a breaker state change.

        Args:
            to_state: State the breaker moved to.
        """
        self.circuit_transitions_total[to_state] = (
            self.circuit_transitions_total.get(to_state, 0) + 1
        )

    def record_retry(self) -> None:
        """Record a retry attempt."""
        self.retries_total += 1

    def record_success(self) -> None:
        """Record a terminal upstream success."""
        self.upstream_successes_total += 1

    def record_failure(self, kind: str) -> None:
        """Record a terminal upstream failure.

        Args:
            kind: ErrorKind value of the final failure.
        """
        self.upstream_failures_total[kind] = (
            self.upstream_failures_total.get(kind, 0) + 1
        )

    def to_dict(self) -> dict[str, int | dict[str, int]]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        return {
            "requests_admitted_total": self.requests_admitted_total,
            "local_rate_limit_rejections_total": self.local_rate_limit_rejections_total,
            "circuit_open_rejections_total": self.circuit_open_rejections_total,
            "circuit_transitions_total": dict(self.circuit_transitions_total),
            "retries_total": self.retries_total,
            "upstream_successes_total": self.upstream_successes_total,
            "upstream_failures_total": dict(self.upstream_failures_total),
        }
