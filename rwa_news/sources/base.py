"""Source interface for the aggregator."""

from typing import Protocol, runtime_checkable

from rwa_news.models import Article
from rwa_news.resilience.circuit_breaker import CircuitState


@runtime_checkable
class ArticleSource(Protocol):
    """Protocol for upstream article sources.

    Sources are responsible for:
    1. Deciding whether a call may be attempted (admission gates)
    2. Fetching one page of articles from their upstream
    3. Mapping the payload into unscored Articles

    Sources raise NewsSourceError subclasses on failure; the aggregator
    catches them.
    """

    @property
    def source_id(self) -> str:
        """Identifier of the source."""
        ...

    def fetch_news(self, page: int, page_size: int) -> list[Article]:
        """Fetch one page of articles.

        Args:
            page: 1-based page number.
            page_size: Requested number of articles.

        Returns:
            Unscored articles in upstream order.
        """
        ...

    def is_healthy(self) -> bool:
        """Check if the source can currently serve requests."""
        ...

    def get_circuit_state(self) -> CircuitState:
        """Get the state of the source's circuit breaker."""
        ...
