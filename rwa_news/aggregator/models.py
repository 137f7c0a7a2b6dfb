"""Data models for the feed service."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from rwa_news.models import Article


class NewsFeedPage(BaseModel):
    """One page of the news feed, as returned to collaborators.

    Attributes:
        articles: Articles on this page.
        total: Number of articles on this page.
        page: 1-based page number.
        page_size: Requested page size.
        has_more: True when the page came back full.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    articles: list[Article] = Field(default_factory=list)
    total: Annotated[int, Field(ge=0)] = 0
    page: Annotated[int, Field(ge=1)] = 1
    page_size: Annotated[int, Field(ge=1)] = 20
    has_more: bool = False
