"""Error types raised by news sources and the resilience layer."""

import math

from rwa_news.resilience.models import ErrorKind, UpstreamFailure


class NewsSourceError(Exception):
    """Base exception for news source errors.

    Provides structured error information for logging. Every subclass is
    caught at the aggregator boundary and turned into the fallback path.
    """

    def __init__(self, message: str, source_id: str | None = None) -> None:
        """Initialize the source error.

        Args:
            message: Human-readable error message.
            source_id: Identifier of the source that failed.
        """
        super().__init__(message)
        self.message = message
        self.source_id = source_id

    def to_dict(self) -> dict[str, str | int | float | None]:
        """Convert error to dictionary for logging.

        Returns:
            Dictionary representation of the error.
        """
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "source_id": self.source_id,
        }


class UpstreamError(NewsSourceError):
    """Failure reported by the upstream after the retry policy gave up."""

    kind: ErrorKind = ErrorKind.TRANSIENT

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        source_id: str | None = None,
    ) -> None:
        """Initialize the upstream error.

        Args:
            message: Human-readable error message.
            status_code: HTTP status code if a response was received.
            source_id: Identifier of the source that failed.
        """
        super().__init__(message, source_id=source_id)
        self.status_code = status_code

    def to_dict(self) -> dict[str, str | int | float | None]:
        """Convert error to dictionary for logging."""
        data = super().to_dict()
        data["kind"] = self.kind.value
        data["status_code"] = self.status_code
        return data


class AuthError(UpstreamError):
    """Upstream rejected the API key (401)."""

    kind = ErrorKind.AUTH


class ValidationError(UpstreamError):
    """Upstream rejected the request parameters (400)."""

    kind = ErrorKind.VALIDATION


class UpstreamRateLimited(UpstreamError):
    """Upstream throttled the caller (429)."""

    kind = ErrorKind.RATE_LIMITED


class TransientError(UpstreamError):
    """Network error, timeout, or server error that outlived its retries."""

    kind = ErrorKind.TRANSIENT


_ERRORS_BY_KIND: dict[ErrorKind, type[UpstreamError]] = {
    ErrorKind.AUTH: AuthError,
    ErrorKind.VALIDATION: ValidationError,
    ErrorKind.RATE_LIMITED: UpstreamRateLimited,
    ErrorKind.TRANSIENT: TransientError,
}


def error_from_failure(
    failure: UpstreamFailure,
    source_id: str | None = None,
) -> UpstreamError:
    """Build the typed exception for an upstream failure.

    Args:
        failure: Failure from the final attempt.
        source_id: Identifier of the source that failed.

    Returns:
        UpstreamError subclass matching the failure kind.
    """
    error_cls = _ERRORS_BY_KIND[failure.kind]
    return error_cls(
        failure.message,
        status_code=failure.status_code,
        source_id=source_id,
    )


class LocalRateLimitRejected(NewsSourceError):
    """The local token bucket refused the request."""

    def __init__(self, wait_ms: float, source_id: str | None = None) -> None:
        """Initialize the rejection.

        Args:
            wait_ms: Suggested wait before the next token is available.
            source_id: Identifier of the source that was throttled.
        """
        super().__init__(
            f"Rate limit exceeded, try again in {math.ceil(wait_ms / 1000)} seconds",
            source_id=source_id,
        )
        self.wait_ms = wait_ms

    def to_dict(self) -> dict[str, str | int | float | None]:
        """Convert error to dictionary for logging."""
        data = super().to_dict()
        data["wait_ms"] = round(self.wait_ms, 2)
        return data


class CircuitOpenError(NewsSourceError):
    """The circuit breaker refused the request; no network call was made."""

    def __init__(self, state: str, source_id: str | None = None) -> None:
        """Initialize the error.

        Args:
            state: Circuit state at rejection time.
            source_id: Identifier of the source that is unavailable.
        """
        super().__init__(
            f"Source is temporarily unavailable (circuit {state})",
            source_id=source_id,
        )
        self.state = state

    def to_dict(self) -> dict[str, str | int | float | None]:
        """Convert error to dictionary for logging."""
        data = super().to_dict()
        data["circuit_state"] = self.state
        return data
