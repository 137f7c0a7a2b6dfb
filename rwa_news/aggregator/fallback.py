"""Curated fallback articles served when no upstream content is available."""

from dataclasses import dataclass
from datetime import datetime, timedelta

from rwa_news.models import Article


@dataclass(frozen=True)
class _CuratedEntry:
    """Static template of a curated article.

    Attributes:
        hours_ago: Age of the article relative to the time it is served.
    """

    id: str
    title: str
    description: str
    url: str
    image_url: str
    source: str
    hours_ago: int
    categories: tuple[str, ...]
    relevance_score: float


_CURATED_ENTRIES: tuple[_CuratedEntry, ...] = (
    _CuratedEntry(
        id="fallback-1",
        title="The Rise of Real World Asset Tokenization in DeFi",
        description=(
            "Exploring how traditional assets are being brought on-chain through "
            "tokenization, creating new opportunities for investors."
        ),
        url="https://example.com/rwa-defi",
        image_url="https://via.placeholder.com/600x400?text=RWA+Tokenization",
        source="Crypto Insights",
        hours_ago=2,
        categories=("rwa", "defi"),
        relevance_score=0.95,
    ),
    _CuratedEntry(
        id="fallback-2",
        title="Tokenized Gold Sees Increased Adoption Among Investors",
        description=(
            "PAXG and XAUT continue to gain traction as investors seek stable "
            "alternatives in volatile markets."
        ),
        url="https://example.com/tokenized-gold",
        image_url="https://via.placeholder.com/600x400?text=Gold+Tokens",
        source="Financial Times Crypto",
        hours_ago=5,
        categories=("rwa", "gold"),
        relevance_score=0.92,
    ),
    _CuratedEntry(
        id="fallback-3",
        title="Real Estate Tokenization Platform Raises $50M",
        description=(
            "A new platform enabling fractional real estate ownership through "
            "blockchain technology secures major funding."
        ),
        url="https://example.com/real-estate-token",
        image_url="https://via.placeholder.com/600x400?text=Real+Estate",
        source="BlockWorks",
        hours_ago=12,
        categories=("rwa", "real-estate"),
        relevance_score=0.88,
    ),
    _CuratedEntry(
        id="fallback-4",
        title="Centrifuge Partners with Major Banks for Asset Tokenization",
        description=(
            "The DeFi protocol announces strategic partnerships to bring "
            "traditional finance assets on-chain."
        ),
        url="https://example.com/centrifuge-banks",
        image_url="https://via.placeholder.com/600x400?text=Centrifuge",
        source="DeFi Daily",
        hours_ago=24,
        categories=("rwa", "defi"),
        relevance_score=0.85,
    ),
)


def curated_fallback_articles(now: datetime) -> list[Article]:
    """Build the curated fallback set relative to the current time.

    Args:
        now: Current timezone-aware time.

    Returns:
        Pre-scored articles, most relevant first.
    """
    return [
        Article(
            id=entry.id,
            title=entry.title,
            description=entry.description,
            url=entry.url,
            image_url=entry.image_url,
            source=entry.source,
            published_at=now - timedelta(hours=entry.hours_ago),
            categories=entry.categories,
            relevance_score=entry.relevance_score,
        )
        for entry in _CURATED_ENTRIES
    ]
