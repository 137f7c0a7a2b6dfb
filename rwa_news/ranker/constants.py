"""Constants for the relevance ranker."""

# Keyword tiers for real-world-asset relevance, strongest first
HIGH_TIER_KEYWORDS: tuple[str, ...] = (
    "real world assets",
    "rwa tokenization",
    "asset tokenization",
    "tokenized real estate",
    "tokenized gold",
)
MEDIUM_TIER_KEYWORDS: tuple[str, ...] = (
    "security token",
    "stablecoin",
    "defi lending",
    "commodity token",
    "real estate token",
)
LOW_TIER_KEYWORDS: tuple[str, ...] = (
    "rwa",
    "tokenization",
    "blockchain assets",
    "digital assets",
)

# Per-match weights: (found in title, found only in description)
HIGH_TIER_WEIGHTS: tuple[float, float] = (0.5, 0.4)
MEDIUM_TIER_WEIGHTS: tuple[float, float] = (0.3, 0.25)
LOW_TIER_WEIGHTS: tuple[float, float] = (0.1, 0.1)

MIN_SCORE = 0.0
MAX_SCORE = 1.0

# Articles scoring below this are dropped by the aggregator
MIN_RELEVANCE_SCORE = 0.1

# Scores closer than this are ordered by recency instead
SCORE_TIE_WINDOW = 0.1
