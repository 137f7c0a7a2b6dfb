"""Metrics collection for the news aggregator."""

from dataclasses import dataclass, field
from typing import ClassVar


@dataclass
class AggregatorMetrics:
    """Metrics for feed aggregation.

    Singleton class that tracks aggregation calls, fallbacks, source
    errors, and article counts through the pipeline.
    """

    aggregations_total: int = 0
    fallbacks_total: int = 0
    aggregation_failures_total: int = 0
    source_errors_total: dict[str, int] = field(default_factory=dict)
    articles_fetched_total: int = 0
    articles_filtered_total: int = 0
    duplicates_removed_total: int = 0
    articles_returned_total: int = 0
    duration_ms_total: float = 0.0

    _instance: ClassVar["AggregatorMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "AggregatorMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_source_error(self, error_type: str) -> None:
        """Record a source fetch that raised.

        Args:
            error_type: Exception class name.
        """
        self.source_errors_total[error_type] = (
            self.source_errors_total.get(error_type, 0) + 1
        )

    def record_aggregation(
        self,
        fetched: int,
        filtered: int,
        duplicates: int,
        returned: int,
        duration_ms: float,
        used_fallback: bool,
    ) -> None:
        """Record a completed aggregation.

        Args:
            fetched: Articles received from sources.
            filtered: Articles dropped below the relevance threshold.
            duplicates: Articles removed by URL deduplication.
            returned: Articles returned to the caller.
            duration_ms: Wall time of the aggregation.
            used_fallback: Whether the curated set was served.
        """
        self.aggregations_total += 1
        self.articles_fetched_total += fetched
        self.articles_filtered_total += filtered
        self.duplicates_removed_total += duplicates
        self.articles_returned_total += returned
        self.duration_ms_total += duration_ms
        if used_fallback:
            self.fallbacks_total += 1

    def record_failure(self) -> None:
        """Record an aggregation that failed internally and fell back."""
        self.aggregations_total += 1
        self.aggregation_failures_total += 1
        self.fallbacks_total += 1

    def to_dict(self) -> dict[str, int | float | dict[str, int]]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        return {
            "aggregations_total": self.aggregations_total,
            "fallbacks_total": self.fallbacks_total,
            "aggregation_failures_total": self.aggregation_failures_total,
            "source_errors_total": dict(self.source_errors_total),
            "articles_fetched_total": self.articles_fetched_total,
            "articles_filtered_total": self.articles_filtered_total,
            "duplicates_removed_total": self.duplicates_removed_total,
            "articles_returned_total": self.articles_returned_total,
            "duration_ms_total": self.duration_ms_total,
        }
