"""Unit tests for the NewsAPI client."""

import random
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any
from unittest.mock import MagicMock

import httpx
import pytest

from rwa_news.resilience.circuit_breaker import CircuitBreaker, CircuitState
from rwa_news.resilience.errors import (
    AuthError,
    CircuitOpenError,
    LocalRateLimitRejected,
    TransientError,
    UpstreamRateLimited,
    ValidationError,
)
from rwa_news.resilience.metrics import ResilienceMetrics
from rwa_news.resilience.models import ErrorKind
from rwa_news.resilience.rate_limiter import TokenBucketRateLimiter
from rwa_news.sources.config import NewsApiConfig
from rwa_news.sources.newsapi import NewsApiClient, classify_error_code
from tests.helpers.time import FakeClock, fixed_now


SAMPLE_ARTICLE: dict[str, Any] = {
    "source": {"id": "coindesk", "name": "CoinDesk"},
    "author": "Jane Doe",
    "title": "Tokenized gold rally continues",
    "description": "Gold-backed tokens hit record volumes.",
    "url": "https://example.com/gold",
    "urlToImage": "https://example.com/gold.png",
    "publishedAt": "2017-06-12T10:00:00Z",
    "content": "Full text...",
}


def _ok_body(articles: list[dict[str, Any]]) -> dict[str, Any]:
    return {"status": "ok", "totalResults": len(articles), "articles": articles}


class _Recorder:
    """Mock transport handler that records requests."""

    def __init__(self, respond: Callable[[httpx.Request], httpx.Response]) -> None:
        self.respond = respond
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)


def _json_response(status_code: int, body: dict[str, Any]) -> Callable:
    return lambda _request: httpx.Response(status_code, json=body)


class TestClassifyErrorCode:
    """Tests for NewsAPI error code classification."""

    @pytest.mark.parametrize(
        ("code", "kind"),
        [
            ("apiKeyInvalid", ErrorKind.AUTH),
            ("apiKeyMissing", ErrorKind.AUTH),
            ("apiKeyDisabled", ErrorKind.AUTH),
            ("rateLimited", ErrorKind.RATE_LIMITED),
            ("parameterInvalid", ErrorKind.VALIDATION),
            ("parametersMissing", ErrorKind.VALIDATION),
            ("sourcesTooMany", ErrorKind.VALIDATION),
            ("unexpectedError", ErrorKind.TRANSIENT),
            (None, ErrorKind.TRANSIENT),
        ],
    )
    def test_classification(self, code: str | None, kind: ErrorKind) -> None:
        """Test that error codes map to the expected kind."""
        assert classify_error_code(code) == kind


class TestNewsApiClient:
    """Tests for NewsApiClient.fetch_news."""

    def setup_method(self) -> None:
        """Reset metrics and create fresh gates."""
        ResilienceMetrics.reset()
        self.clock = FakeClock()
        self.sleep = MagicMock()
        self.limiter = TokenBucketRateLimiter(
            capacity=10.0, refill_rate_per_second=0.001, clock=self.clock
        )
        self.breaker = CircuitBreaker(
            failure_threshold=5, reset_timeout_seconds=60.0, clock=self.clock
        )

    def _client(
        self,
        handler: _Recorder,
        api_key: str = "test-key",
    ) -> NewsApiClient:
        return NewsApiClient(
            config=NewsApiConfig(api_key=api_key),
            rate_limiter=self.limiter,
            circuit_breaker=self.breaker,
            transport=httpx.MockTransport(handler),
            now=fixed_now,
            sleep=self.sleep,
            rng=random.Random(0),
        )

    def test_request_parameters(self) -> None:
        """Test the query, paging, window and key header of a request."""
        handler = _Recorder(_json_response(200, _ok_body([])))
        client = self._client(handler)

        client.fetch_news(page=2, page_size=20)

        request = handler.requests[0]
        params = request.url.params
        assert request.url.path == "/v2/everything"
        assert params["q"] == client.query
        assert params["language"] == "en"
        assert params["sortBy"] == "publishedAt"
        assert params["searchIn"] == "title,description"
        assert params["pageSize"] == "20"
        assert params["page"] == "2"
        assert params["from"] == "2017-06-06"
        assert request.headers["X-Api-Key"] == "test-key"

    def test_page_size_capped_and_window_override(self) -> None:
        """Test that page size is capped at 100 and days_back is honored."""
        handler = _Recorder(_json_response(200, _ok_body([])))
        client = self._client(handler)

        client.fetch_news(page=1, page_size=250, days_back=1)

        params = handler.requests[0].url.params
        assert params["pageSize"] == "100"
        assert params["from"] == "2017-06-12"

    def test_maps_articles(self) -> None:
        """Test mapping of upstream entries into Articles."""
        second = {
            **SAMPLE_ARTICLE,
            "url": "https://example.com/naive",
            "source": {"id": None, "name": None},
            "description": None,
            "urlToImage": None,
            "publishedAt": "2017-06-11T08:30:00",
        }
        handler = _Recorder(_json_response(200, _ok_body([SAMPLE_ARTICLE, second])))
        client = self._client(handler)

        articles = client.fetch_news()

        assert len(articles) == 2
        first = articles[0]
        assert first.id == "newsapi-https://example.com/gold-0"
        assert first.title == "Tokenized gold rally continues"
        assert first.source == "CoinDesk"
        assert first.image_url == "https://example.com/gold.png"
        assert first.categories == ("rwa", "crypto")
        assert first.relevance_score is None
        assert first.published_at == datetime(2017, 6, 12, 10, 0, tzinfo=UTC)

        naive = articles[1]
        assert naive.id == "newsapi-https://example.com/naive-1"
        assert naive.source == "Unknown"
        assert naive.description == "Full text..."
        assert naive.image_url == ""
        assert naive.published_at.tzinfo is not None

    def test_skips_invalid_and_removed_entries(self) -> None:
        """Test that malformed and withdrawn entries are dropped."""
        missing_url = {k: v for k, v in SAMPLE_ARTICLE.items() if k != "url"}
        removed = {**SAMPLE_ARTICLE, "title": "[Removed]", "url": "https://removed.com"}
        bad_date = {**SAMPLE_ARTICLE, "publishedAt": "yesterday"}
        handler = _Recorder(
            _json_response(
                200, _ok_body([missing_url, removed, bad_date, SAMPLE_ARTICLE])
            )
        )
        client = self._client(handler)

        articles = client.fetch_news()

        assert [a.id for a in articles] == ["newsapi-https://example.com/gold-3"]

    def test_non_object_entries_skipped(self) -> None:
        """Test that null and scalar entries do not reject the page."""
        body = {
            "status": "ok",
            "totalResults": 3,
            "articles": [None, "oops", SAMPLE_ARTICLE],
        }
        handler = _Recorder(_json_response(200, body))
        client = self._client(handler)

        articles = client.fetch_news()

        assert [a.id for a in articles] == ["newsapi-https://example.com/gold-2"]
        assert len(handler.requests) == 1
        assert self.breaker.get_state() == CircuitState.CLOSED
        assert ResilienceMetrics.get_instance().upstream_failures_total == {}

    def test_null_article_list_is_empty(self) -> None:
        """Test that a null article list yields no articles without retrying."""
        body = {"status": "ok", "totalResults": 0, "articles": None}
        handler = _Recorder(_json_response(200, body))
        client = self._client(handler)

        assert client.fetch_news() == []
        assert len(handler.requests) == 1
        self.sleep.assert_not_called()

    def test_consumes_one_token_per_fetch(self) -> None:
        """Test that a successful fetch takes one token and closes the loop."""
        handler = _Recorder(_json_response(200, _ok_body([SAMPLE_ARTICLE])))
        client = self._client(handler)

        client.fetch_news()

        assert self.limiter.get_available_tokens() == pytest.approx(9.0)
        metrics = ResilienceMetrics.get_instance()
        assert metrics.requests_admitted_total == 1
        assert metrics.upstream_successes_total == 1

    @pytest.mark.parametrize(
        ("status_code", "error_cls"),
        [
            (401, AuthError),
            (400, ValidationError),
            (429, UpstreamRateLimited),
        ],
    )
    def test_permanent_status_not_retried(
        self, status_code: int, error_cls: type[Exception]
    ) -> None:
        """Test that 401, 400 and 429 fail after a single request."""
        body = {"status": "error", "code": "x", "message": "rejected"}
        handler = _Recorder(_json_response(status_code, body))
        client = self._client(handler)

        with pytest.raises(error_cls) as exc_info:
            client.fetch_news()

        assert len(handler.requests) == 1
        assert "rejected" in str(exc_info.value)
        self.sleep.assert_not_called()

    def test_server_error_retried_then_raised(self) -> None:
        """Test that a persistent 5xx is tried four times."""
        handler = _Recorder(lambda _request: httpx.Response(503, text="down"))
        client = self._client(handler)

        with pytest.raises(TransientError) as exc_info:
            client.fetch_news()

        assert len(handler.requests) == 4
        assert self.sleep.call_count == 3
        assert exc_info.value.status_code == 503
        assert self.breaker.snapshot().failure_count == 1

    def test_transient_then_success(self) -> None:
        """Test recovery after a transient failure."""
        responses = iter(
            [
                httpx.Response(500, text="oops"),
                httpx.Response(200, json=_ok_body([SAMPLE_ARTICLE])),
            ]
        )
        handler = _Recorder(lambda _request: next(responses))
        client = self._client(handler)

        articles = client.fetch_news()

        assert len(articles) == 1
        assert len(handler.requests) == 2
        assert self.breaker.snapshot().failure_count == 0

    @pytest.mark.parametrize(
        ("code", "error_cls"),
        [
            ("apiKeyInvalid", AuthError),
            ("rateLimited", UpstreamRateLimited),
            ("parameterInvalid", ValidationError),
        ],
    )
    def test_error_body_with_ok_status(
        self, code: str, error_cls: type[Exception]
    ) -> None:
        """Test classification of error bodies delivered with HTTP 200."""
        body = {"status": "error", "code": code, "message": "Upstream said no"}
        handler = _Recorder(_json_response(200, body))
        client = self._client(handler)

        with pytest.raises(error_cls, match="Upstream said no"):
            client.fetch_news()

        assert len(handler.requests) == 1

    def test_malformed_body_is_transient(self) -> None:
        """Test that an unparsable 200 body is retried as transient."""
        handler = _Recorder(lambda _request: httpx.Response(200, text="<html>"))
        client = self._client(handler)

        with pytest.raises(TransientError):
            client.fetch_news()

        assert len(handler.requests) == 4

    def test_network_errors_are_transient(self) -> None:
        """Test that timeouts and connection errors are retried."""
        errors = iter(
            [
                httpx.ReadTimeout("timed out"),
                httpx.ConnectError("refused"),
            ]
        )

        def respond(request: httpx.Request) -> httpx.Response:
            error = next(errors, None)
            if error is not None:
                raise error
            return httpx.Response(200, json=_ok_body([SAMPLE_ARTICLE]))

        handler = _Recorder(respond)
        client = self._client(handler)

        articles = client.fetch_news()

        assert len(articles) == 1
        assert len(handler.requests) == 3
        assert self.sleep.call_count == 2

    def test_open_circuit_makes_no_request(self) -> None:
        """Test that an open breaker fails fast without a token or request."""
        for _ in range(5):
            self.breaker.record_failure()
        handler = _Recorder(_json_response(200, _ok_body([])))
        client = self._client(handler)

        with pytest.raises(CircuitOpenError) as exc_info:
            client.fetch_news()

        assert exc_info.value.state == "OPEN"
        assert handler.requests == []
        assert self.limiter.get_available_tokens() == pytest.approx(10.0)
        assert ResilienceMetrics.get_instance().circuit_open_rejections_total == 1

    def test_empty_bucket_rejects_locally(self) -> None:
        """Test that an empty bucket raises with the refill wait."""
        self.limiter = TokenBucketRateLimiter(
            capacity=1.0, refill_rate_per_second=0.001, clock=self.clock
        )
        handler = _Recorder(_json_response(200, _ok_body([])))
        client = self._client(handler)

        client.fetch_news()
        with pytest.raises(LocalRateLimitRejected) as exc_info:
            client.fetch_news()

        assert exc_info.value.wait_ms == pytest.approx(1_000_000.0)
        assert len(handler.requests) == 1

    def test_rejected_trial_is_released(self) -> None:
        """Test that a half-open trial survives a local rate-limit rejection."""
        self.limiter = TokenBucketRateLimiter(
            capacity=1.0, refill_rate_per_second=0.001, clock=self.clock
        )
        self.limiter.try_consume()
        for _ in range(5):
            self.breaker.record_failure()
        self.clock.advance(60.0)
        client = self._client(_Recorder(_json_response(200, _ok_body([]))))

        with pytest.raises(LocalRateLimitRejected):
            client.fetch_news()

        assert self.breaker.get_state() == CircuitState.HALF_OPEN
        assert self.breaker.can_execute() is True

    def test_repeated_auth_failures_open_circuit(self) -> None:
        """Test that terminal failures count toward the breaker threshold."""
        handler = _Recorder(_json_response(401, {"status": "error"}))
        client = self._client(handler)

        for _ in range(5):
            with pytest.raises(AuthError):
                client.fetch_news()

        assert self.breaker.get_state() == CircuitState.OPEN
        with pytest.raises(CircuitOpenError):
            client.fetch_news()
        assert len(handler.requests) == 5

    def test_health(self) -> None:
        """Test health reporting from key and breaker state."""
        handler = _Recorder(_json_response(200, _ok_body([])))

        assert self._client(handler).is_healthy() is True
        assert self._client(handler, api_key="").is_healthy() is False

        for _ in range(5):
            self.breaker.record_failure()
        client = self._client(handler)
        assert client.is_healthy() is False
        assert client.get_circuit_state() == CircuitState.OPEN

    def test_api_key_not_logged(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test that request logging redacts the API key."""
        handler = _Recorder(_json_response(200, _ok_body([])))
        client = self._client(handler, api_key="super-secret-key")

        client.fetch_news()

        captured = capsys.readouterr()
        assert "super-secret-key" not in captured.out + captured.err
