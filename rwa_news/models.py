"""Feed article model shared by sources, the ranker, and the aggregator."""

from typing import Annotated

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field


class Article(BaseModel):
    """A news article as served by the feed.

    Immutable; scoring returns an annotated copy. The url is the
    deduplication key.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: Annotated[str, Field(min_length=1, description="Stable article identifier")]
    title: str = Field(default="", description="Headline")
    description: str = Field(default="", description="Summary text")
    url: Annotated[str, Field(min_length=1, description="Canonical article URL")]
    image_url: str = Field(default="", description="Lead image URL")
    source: str = Field(default="Unknown", description="Publisher name")
    published_at: AwareDatetime = Field(description="Publication timestamp")
    categories: tuple[str, ...] = Field(
        default=(), description="Ordered category tags"
    )
    relevance_score: Annotated[float, Field(ge=0.0, le=1.0)] | None = Field(
        default=None, description="Relevance in [0, 1], None until scored"
    )

    def with_score(self, score: float) -> "Article":
        """Return a copy carrying the given relevance score.

        Args:
            score: Relevance score in [0, 1].

        Returns:
            Scored copy of this article.
        """
        return self.model_copy(update={"relevance_score": score})

    @property
    def score_or_zero(self) -> float:
        """Relevance score, treating unscored articles as 0."""
        return self.relevance_score if self.relevance_score is not None else 0.0
