"""Upstream news sources.

Each source applies the resilience gates before touching the network and
maps its payload into unscored Articles.
"""

from rwa_news.models import Article
from rwa_news.sources.base import ArticleSource
from rwa_news.sources.config import NewsApiConfig
from rwa_news.sources.models import NewsApiArticle, NewsApiResponse
from rwa_news.sources.newsapi import NewsApiClient, classify_error_code


__all__ = [
    "Article",
    "ArticleSource",
    "NewsApiArticle",
    "NewsApiClient",
    "NewsApiConfig",
    "NewsApiResponse",
    "classify_error_code",
]
