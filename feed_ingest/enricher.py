"""Full-article enrichment for feeds that only ship a summary."""

from dataclasses import dataclass, field

from .config import ParserConfig
from .diagnostics import WarningCollector
from .fetcher import RedirectFetcher
from .logging_config import create_execution_logger
from .page import (
    collect_page_images,
    extract_json_ld_article,
    extract_main_content,
    json_ld_image,
    parse_html,
)
from .text import clean_text
from .urls import host_in_domains, normalize_url


@dataclass
class EnrichedContent:
    """Text and image candidates mined from an article page."""

    content: str
    images: list[str] = field(default_factory=list)


class ContentEnricher:
    """Fetches an article page and extracts its body text and images."""

    def __init__(
        self,
        fetcher: RedirectFetcher,
        config: ParserConfig | None = None,
        execution_id: str | None = None,
    ):
        self.fetcher = fetcher
        self.config = config or ParserConfig()
        self.logger = create_execution_logger("content_enricher", execution_id)

    def should_enrich(self, link: str) -> bool:
        """Full-page fetching is on, or the link belongs to a thin-summary domain."""
        return self.config.fetch_full_page or host_in_domains(
            link, self.config.full_content_domains
        )

    def enrich(self, link: str, warnings: WarningCollector) -> EnrichedContent:
        """Fetch ``link`` and mine it for content and images.

        Structured data wins: when the page declares a JSON-LD article its
        ``articleBody`` and ``image`` are used. Otherwise the main content
        block of ``<body>`` and every image on the page are collected.

        Raises:
            FeedFetchError: If the page cannot be fetched
        """
        soup = parse_html(self.fetcher.fetch_text(link))

        node = None
        try:
            node = extract_json_ld_article(soup)
        except ValueError as e:
            message = f"Malformed JSON-LD on {link}: {e}"
            if warnings.add(message):
                self.logger.warning(message, item_link=link)

        content = clean_text(node.get("articleBody")) if node else ""
        structured_image = normalize_url(json_ld_image(node), link)

        if not content:
            content = extract_main_content(soup)

        if structured_image:
            images = [structured_image]
        else:
            images = collect_page_images(soup, link)

        self.logger.debug(
            "Enriched article",
            item_link=link,
            structured=node is not None,
            content_length=len(content),
            images_count=len(images),
        )
        return EnrichedContent(content=content, images=images)
