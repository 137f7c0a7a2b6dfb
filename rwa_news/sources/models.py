"""Data models for news sources."""

from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class NewsApiSource(BaseModel):
    """Publisher reference inside a NewsAPI article."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str | None = None
    name: str | None = None


class NewsApiArticle(BaseModel):
    """Article entry of a NewsAPI ``/everything`` response."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    source: NewsApiSource = Field(default_factory=NewsApiSource)
    author: str | None = None
    title: str | None = None
    description: str | None = None
    url: Annotated[str, Field(min_length=1)]
    url_to_image: str | None = Field(default=None, alias="urlToImage")
    published_at: datetime = Field(alias="publishedAt")
    content: str | None = None


class NewsApiResponse(BaseModel):
    """Envelope of a NewsAPI response.

    Articles are kept raw so that one malformed entry does not reject the
    whole page; they are validated one by one. A null article list is read
    as empty.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    status: str
    total_results: int | None = Field(default=None, alias="totalResults")
    articles: list[Any] = Field(default_factory=list)
    code: str | None = None
    message: str | None = None

    @field_validator("articles", mode="before")
    @classmethod
    def null_articles_as_empty(cls, v: Any) -> Any:
        """Treat a null article list as empty."""
        return [] if v is None else v

    @property
    def is_error(self) -> bool:
        """Check if the body reports an error."""
        return self.status == "error"
