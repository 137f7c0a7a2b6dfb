"""Keyword-tier relevance scoring for RWA articles."""

from dataclasses import dataclass

import structlog

from rwa_news.models import Article
from rwa_news.ranker.constants import (
    HIGH_TIER_KEYWORDS,
    HIGH_TIER_WEIGHTS,
    LOW_TIER_KEYWORDS,
    LOW_TIER_WEIGHTS,
    MAX_SCORE,
    MEDIUM_TIER_KEYWORDS,
    MEDIUM_TIER_WEIGHTS,
    MIN_SCORE,
)


logger = structlog.get_logger()


@dataclass(frozen=True)
class KeywordTier:
    """A weighted group of keyword phrases.

    Attributes:
        name: Tier name (high, medium, low).
        keywords: Keyword phrases in this tier.
        title_weight: Score added when a keyword appears in the title.
        description_weight: Score added when it appears only in the description.
    """

    name: str
    keywords: tuple[str, ...]
    title_weight: float
    description_weight: float


DEFAULT_TIERS: tuple[KeywordTier, ...] = (
    KeywordTier("high", HIGH_TIER_KEYWORDS, *HIGH_TIER_WEIGHTS),
    KeywordTier("medium", MEDIUM_TIER_KEYWORDS, *MEDIUM_TIER_WEIGHTS),
    KeywordTier("low", LOW_TIER_KEYWORDS, *LOW_TIER_WEIGHTS),
)


class RelevanceScorer:
    """Scores article text against weighted keyword tiers.

    Scoring rules:
        - Keywords are matched as case-insensitive substrings of
          ``"{title} {description}"``; matches accumulate.
        - A keyword found in the title earns the tier's title weight,
          otherwise its description weight.
        - The total is clamped to [0, 1]; empty text scores 0.

    The scorer only annotates. Dropping low scores is left to the caller.
    """

    def __init__(self, tiers: tuple[KeywordTier, ...] = DEFAULT_TIERS) -> None:
        """Initialize the scorer with lower-cased keywords.

        Args:
            tiers: Keyword tiers, strongest first.
        """
        self._tiers = tiers
        self._lowered = [
            (tier, tuple(kw.lower() for kw in tier.keywords)) for tier in tiers
        ]

    @property
    def tiers(self) -> tuple[KeywordTier, ...]:
        """Get the configured keyword tiers."""
        return self._tiers

    def score(self, title: str | None, description: str | None) -> float:
        """Compute the relevance score of an article's text.

        Args:
            title: Article title.
            description: Article description.

        Returns:
            Score in [0, 1].
        """
        title = (title or "").lower()
        description = (description or "").lower()
        if not title and not description:
            return MIN_SCORE

        text = f"{title} {description}"
        total = 0.0
        for tier, keywords in self._lowered:
            for keyword in keywords:
                if keyword not in text:
                    continue
                if keyword in title:
                    total += tier.title_weight
                else:
                    total += tier.description_weight

        return max(MIN_SCORE, min(MAX_SCORE, total))

    def score_article(self, article: Article) -> Article:
        """Return a copy of the article annotated with its score.

        Args:
            article: Article to score.

        Returns:
            Article with relevance_score set.
        """
        return article.with_score(self.score(article.title, article.description))

    def score_articles(self, articles: list[Article]) -> list[Article]:
        """Annotate multiple articles.

        Args:
            articles: Articles to score.

        Returns:
            Scored copies in the same order.
        """
        scored = [self.score_article(article) for article in articles]
        logger.debug(
            "scoring_complete",
            component="ranker",
            articles_scored=len(scored),
            max_score=max((a.relevance_score or 0.0 for a in scored), default=0.0),
        )
        return scored

    def build_query(self) -> str:
        """Build the upstream boolean OR-query from the high and medium tiers.

        High-tier phrases are always quoted; medium-tier phrases are quoted
        only when they contain a space.

        Returns:
            Query string such as ``("a b" OR "c") OR (d OR "e f")``.
        """
        high = [tier for tier in self._tiers if tier.name == "high"]
        medium = [tier for tier in self._tiers if tier.name == "medium"]

        high_terms = " OR ".join(f'"{kw}"' for tier in high for kw in tier.keywords)
        medium_terms = " OR ".join(
            f'"{kw}"' if " " in kw else kw for tier in medium for kw in tier.keywords
        )

        groups = [f"({terms})" for terms in (high_terms, medium_terms) if terms]
        return " OR ".join(groups)
