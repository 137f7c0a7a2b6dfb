"""Constants for the resilience layer.

Centralizes HTTP status codes and admission defaults shared by the rate
limiter, circuit breaker, and retry orchestrator.
"""

# HTTP Status Codes
HTTP_STATUS_OK_MIN = 200
HTTP_STATUS_OK_MAX = 300
HTTP_STATUS_BAD_REQUEST = 400
HTTP_STATUS_UNAUTHORIZED = 401
HTTP_STATUS_TOO_MANY_REQUESTS = 429

# Token bucket defaults (10 request burst, one token every ~17 minutes)
DEFAULT_BUCKET_CAPACITY = 10.0
DEFAULT_REFILL_RATE_PER_SECOND = 0.001

# Circuit breaker defaults
DEFAULT_FAILURE_THRESHOLD = 5
DEFAULT_RESET_TIMEOUT_SECONDS = 60.0
DEFAULT_HALF_OPEN_TRIAL_BUDGET = 1

# Retry defaults
DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY_MS = 1000
DEFAULT_JITTER_MAX_MS = 1000
DEFAULT_MAX_DELAY_MS = 30000
