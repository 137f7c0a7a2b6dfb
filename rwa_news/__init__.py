"""Resilient RWA news ingestion pipeline.

Fetches articles from NewsAPI behind a token bucket, a circuit breaker and a
classified retry loop, scores them for real-world-asset relevance, and serves
a deduplicated, paginated feed that falls back to curated content.
"""

__version__ = "0.1.0"
