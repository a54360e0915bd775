"""Data models for the feed ingestion engine."""

from dataclasses import dataclass, field
from datetime import datetime

# Storage column limits
TITLE_MAX_LENGTH = 255
URL_MAX_LENGTH = 512
CATEGORY_MAX_LENGTH = 100
SOURCE_NAME_MAX_LENGTH = 100
EXCERPT_MAX_LENGTH = 200


@dataclass
class FeedItem:
    """Represents a single RSS/Atom entry extracted from a feed."""

    title: str
    description: str
    link: str
    published_at: datetime
    image: str | None = None
    categories: list[str] = field(default_factory=list)
    full_content: str | None = None
    source_id: int | None = None
    source_name: str | None = None


@dataclass
class Source:
    """A syndication feed the engine refreshes."""

    id: int
    name: str
    url: str
    category: str
    is_active: bool = True
    last_fetched: datetime | None = None
    article_count: int = 0


@dataclass
class Article:
    """Storage-ready article record."""

    title: str
    content: str
    excerpt: str
    url: str
    image_url: str | None
    category: str
    source_id: int
    source_name: str
    published_at: datetime
    id: int | None = None
    views: int = 0
    comments: int = 0
    shares: int = 0
    likes: int = 0


@dataclass
class ParseResult:
    """Items and warnings produced by one feed parse."""

    items: list[FeedItem]
    warnings: list[str]


@dataclass
class RefreshReport:
    """Outcome of a refresh over all active sources."""

    new_articles: int
    warnings: list[str]

    def to_dict(self) -> dict:
        return {"newArticles": self.new_articles, "warnings": list(self.warnings)}
