"""Configuration management for the feed ingestion engine."""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

from .models import Source

# Publishers whose feeds only carry a teaser; their pages are fetched for the full text
DEFAULT_FULL_CONTENT_DOMAINS = ("habr.com", "vc.ru", "medium.com")

# Publishers whose feed entries never carry an image; their pages are mined instead
DEFAULT_PAGE_IMAGE_DOMAINS = ("tass.ru", "ria.ru", "rbc.ru")


@dataclass
class FetchConfig:
    """Configuration for outbound HTTP requests."""

    timeout: float = 5.0
    max_redirects: int = 3
    user_agent: str = "FeedIngest/1.0 (+https://github.com/feed-ingest)"


@dataclass
class ParserConfig:
    """Configuration for feed parsing, image resolution and enrichment."""

    fetch_full_page: bool = False
    enable_image_fetch: bool = False
    untitled_title: str = "Untitled"
    full_content_domains: tuple[str, ...] = field(
        default=DEFAULT_FULL_CONTENT_DOMAINS
    )
    page_image_domains: tuple[str, ...] = field(default=DEFAULT_PAGE_IMAGE_DOMAINS)


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = os.getenv(name)
    if value is None:
        return default
    return tuple(part.strip().lower() for part in value.split(",") if part.strip())


class Config:
    """Main configuration manager."""

    # Default seed file for the in-memory storage backend
    SOURCES_FILE = "sources.json"

    def __init__(self):
        """Initialize configuration from environment variables."""
        self.fetch_full_page = _env_flag("FEED_FETCH_FULL_PAGE")
        self.enable_image_fetch = _env_flag("FEED_ENABLE_IMAGE_FETCH")
        self.http_timeout = float(os.getenv("FEED_HTTP_TIMEOUT", "5"))
        self.max_redirects = int(os.getenv("FEED_MAX_REDIRECTS", "3"))
        self.refresh_workers = max(1, int(os.getenv("FEED_REFRESH_WORKERS", "1")))
        self.full_content_domains = _env_list(
            "FEED_FULL_CONTENT_DOMAINS", DEFAULT_FULL_CONTENT_DOMAINS
        )
        self.storage_backend = os.getenv("STORAGE_BACKEND", "memory").lower()
        self.sources_table = os.getenv("SOURCES_TABLE", "feed-ingest-sources")
        self.articles_table = os.getenv("ARTICLES_TABLE", "feed-ingest-articles")
        self.aws_region = os.getenv(
            "CURRENT_AWS_REGION", os.getenv("AWS_DEFAULT_REGION", "us-east-1")
        )
        self.log_level = os.getenv("LOG_LEVEL", "INFO")

    def get_fetch_config(self) -> FetchConfig:
        """Get HTTP fetch configuration."""
        return FetchConfig(timeout=self.http_timeout, max_redirects=self.max_redirects)

    def get_parser_config(self) -> ParserConfig:
        """Get parser configuration."""
        return ParserConfig(
            fetch_full_page=self.fetch_full_page,
            enable_image_fetch=self.enable_image_fetch,
            full_content_domains=self.full_content_domains,
        )

    def get_seed_sources(self) -> list[Source]:
        """Get sources from sources.json for the in-memory backend."""
        sources_file = Path(self.SOURCES_FILE)
        if not sources_file.exists():
            # Try in Lambda root directory
            sources_file = Path("/var/task") / self.SOURCES_FILE

        if not sources_file.exists():
            raise FileNotFoundError(f"Sources file not found: {self.SOURCES_FILE}")

        try:
            with open(sources_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in sources file: {e}") from e

        sources = []
        for index, entry in enumerate(data.get("sources", []), start=1):
            if "url" not in entry:
                continue
            sources.append(
                Source(
                    id=int(entry.get("id", index)),
                    name=entry.get("name") or entry["url"],
                    url=entry["url"],
                    category=entry.get("category", "General"),
                    is_active=bool(entry.get("enabled", True)),
                )
            )
        return sources
