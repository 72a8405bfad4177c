"""Type-safe Pydantic models for Finnhub news responses."""

from pydantic import BaseModel, ConfigDict


class Article(BaseModel):
    """Market news article.

    Passed through to the summary prompt as-is, so unknown provider fields
    are kept rather than dropped.
    """

    model_config = ConfigDict(extra="allow")

    id: int | None = None
    headline: str
    summary: str = ""
    source: str = ""
    url: str
    datetime: int | None = None
    category: str = ""
    related: str = ""
    image: str = ""
