"""Unit tests for the news source error taxonomy."""

import pytest

from rwa_news.resilience.errors import (
    AuthError,
    CircuitOpenError,
    LocalRateLimitRejected,
    NewsSourceError,
    TransientError,
    UpstreamError,
    UpstreamRateLimited,
    ValidationError,
    error_from_failure,
)
from rwa_news.resilience.models import ErrorKind, UpstreamFailure


class TestErrorFromFailure:
    """Tests for mapping failures to typed errors."""

    @pytest.mark.parametrize(
        ("kind", "error_cls"),
        [
            (ErrorKind.AUTH, AuthError),
            (ErrorKind.VALIDATION, ValidationError),
            (ErrorKind.RATE_LIMITED, UpstreamRateLimited),
            (ErrorKind.TRANSIENT, TransientError),
        ],
    )
    def test_kind_maps_to_subclass(
        self, kind: ErrorKind, error_cls: type[UpstreamError]
    ) -> None:
        """Test that every kind has a matching exception class."""
        failure = UpstreamFailure(kind=kind, message="failed", status_code=418)

        error = error_from_failure(failure, source_id="newsapi")

        assert type(error) is error_cls
        assert error.kind == kind
        assert error.status_code == 418
        assert error.source_id == "newsapi"
        assert isinstance(error, NewsSourceError)

    def test_upstream_to_dict(self) -> None:
        """Test structured logging fields of an upstream error."""
        error = AuthError("NewsAPI error: invalid key", status_code=401)

        assert error.to_dict() == {
            "error_type": "AuthError",
            "message": "NewsAPI error: invalid key",
            "source_id": None,
            "kind": "AUTH",
            "status_code": 401,
        }


class TestGateErrors:
    """Tests for errors raised by the admission gates."""

    def test_local_rejection_rounds_wait_up(self) -> None:
        """Test that the message reports whole seconds, rounded up."""
        error = LocalRateLimitRejected(wait_ms=1500.0, source_id="newsapi")

        assert error.wait_ms == 1500.0
        assert "try again in 2 seconds" in str(error)
        assert error.to_dict()["wait_ms"] == 1500.0

    def test_circuit_open_carries_state(self) -> None:
        """Test that the breaker state is carried on the error."""
        error = CircuitOpenError("OPEN", source_id="newsapi")

        assert error.state == "OPEN"
        assert "temporarily unavailable" in str(error)
        assert error.to_dict()["circuit_state"] == "OPEN"

    def test_all_errors_share_base(self) -> None:
        """Test that gate errors are caught by the base class."""
        with pytest.raises(NewsSourceError):
            raise CircuitOpenError("OPEN")
        with pytest.raises(NewsSourceError):
            raise LocalRateLimitRejected(10.0)
