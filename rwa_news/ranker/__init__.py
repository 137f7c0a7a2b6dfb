"""Relevance ranker for RWA news articles.

Scores article titles and descriptions against weighted keyword tiers and
builds the upstream search query from the same tiers.
"""

from rwa_news.ranker.constants import MIN_RELEVANCE_SCORE, SCORE_TIE_WINDOW
from rwa_news.ranker.scorer import DEFAULT_TIERS, KeywordTier, RelevanceScorer


__all__ = [
    "DEFAULT_TIERS",
    "MIN_RELEVANCE_SCORE",
    "SCORE_TIE_WINDOW",
    "KeywordTier",
    "RelevanceScorer",
]
