"""RSS/Atom feed parsing into FeedItem records."""

import html
import re
from datetime import UTC, datetime

from dateutil import parser as date_parser

from .config import ParserConfig
from .diagnostics import WarningCollector
from .enricher import ContentEnricher
from .fetcher import RedirectFetcher
from .images import ImageResolver, youtube_video_link
from .logging_config import create_execution_logger
from .models import FeedItem, ParseResult
from .text import (
    clean_text,
    extract_all,
    extract_first,
    extract_tag,
    find_tags,
    iter_elements,
    strip_cdata,
)
from .urls import is_absolute_url, normalize_url

ATOM_FEED_RE = re.compile(r"<feed[\s>]", re.IGNORECASE)

LINK_TAGS = ("link", "guid", "id")
DESCRIPTION_TAGS = ("description", "content:encoded", "summary", "content")
DATE_TAGS = ("pubDate", "published", "dc:date", "updated")
CATEGORY_TAGS = ("category", "dc:subject")


def is_atom(xml_text: str) -> bool:
    """Atom documents are recognized by their ``<feed>`` root element."""
    return ATOM_FEED_RE.search(xml_text or "") is not None


def _atom_link_href(entry_xml: str) -> str | None:
    links = find_tags(entry_xml, "link")
    preferred = [a for a in links if a.get("rel", "alternate").lower() == "alternate"]
    for attributes in preferred + links:
        href = attributes.get("href")
        if href:
            return href
    return None


class FeedParser:
    """Extracts FeedItems from RSS/Atom markup that may be malformed."""

    def __init__(
        self,
        config: ParserConfig | None = None,
        fetcher: RedirectFetcher | None = None,
        execution_id: str | None = None,
    ):
        """Initialize FeedParser with configuration.

        Args:
            config: Parser flags (full-page fetching, image fetching, domains)
            fetcher: HTTP fetcher shared by feed, image and page requests
            execution_id: Execution ID for logging context
        """
        self.config = config or ParserConfig()
        self.fetcher = fetcher or RedirectFetcher(execution_id=execution_id)
        self.logger = create_execution_logger("feed_parser", execution_id)
        self.image_resolver = ImageResolver(self.fetcher, self.config, execution_id)
        self.enricher = ContentEnricher(self.fetcher, self.config, execution_id)

        self.logger.info(
            "FeedParser initialized",
            fetch_full_page=self.config.fetch_full_page,
            enable_image_fetch=self.config.enable_image_fetch,
        )

    def parse_feed(
        self,
        feed_url: str,
        source_id: int | None = None,
        source_name: str | None = None,
    ) -> ParseResult:
        """Download and parse a single RSS/Atom feed.

        Args:
            feed_url: URL of the feed
            source_id: Identity attached to every extracted item
            source_name: Name attached to every extracted item

        Returns:
            Extracted items and de-duplicated warnings

        Raises:
            FeedFetchError: If the feed cannot be downloaded
        """
        self.logger.info("Starting to parse feed", feed_url=feed_url)
        xml_text = self.fetcher.fetch_text(feed_url)

        result = self.parse(xml_text)
        for item in result.items:
            item.source_id = source_id
            item.source_name = source_name

        self.logger.log_feed_processing(
            feed_url, len(result.items), len(result.warnings)
        )
        return result

    def parse(self, xml_text: str) -> ParseResult:
        """Split a feed document into entries and extract each one.

        A failure inside one entry is recorded as a warning and parsing
        continues with the next entry.
        """
        warnings = WarningCollector()
        entry_tag = "entry" if is_atom(xml_text) else "item"
        fetched_at = datetime.now(UTC)

        items = []
        for offset, entry_xml in iter_elements(xml_text, entry_tag):
            try:
                item = self.parse_entry(entry_xml, offset, warnings, fetched_at)
            except Exception as e:
                message = f"Failed to parse {entry_tag} at offset {offset}: {e}"
                warnings.add(message)
                self.logger.warning(message, error=str(e))
                continue
            if item is not None:
                items.append(item)

        return ParseResult(items=items, warnings=warnings.messages)

    def parse_entry(
        self,
        entry_xml: str,
        offset: int,
        warnings: WarningCollector,
        fetched_at: datetime | None = None,
    ) -> FeedItem | None:
        """Map one entry's markup to a FeedItem.

        Returns:
            The item, or None when the entry has no valid absolute URL
        """
        original_link = self._extract_link(entry_xml)
        link = self._canonical_link(original_link)
        if not link:
            message = f"Skipped entry at offset {offset}: no valid URL in link/guid/id"
            warnings.add(message)
            self.logger.warning(message)
            return None

        title = clean_text(extract_tag(entry_xml, "title")) or self.config.untitled_title
        description = clean_text(extract_first(entry_xml, DESCRIPTION_TAGS))

        item = FeedItem(
            title=title,
            description=description,
            link=link,
            published_at=self._parse_date(entry_xml, warnings, fetched_at),
            categories=self._extract_categories(entry_xml),
        )
        item.image = self.image_resolver.resolve(
            entry_xml, link, warnings, original_link=original_link
        )

        if self.enricher.should_enrich(link):
            self._enrich(item, warnings)

        return item

    def _canonical_link(self, original_link: str | None) -> str | None:
        if not original_link:
            return None
        return youtube_video_link(original_link) or normalize_url(original_link)

    def _extract_link(self, entry_xml: str) -> str | None:
        for tag in LINK_TAGS:
            raw = extract_tag(entry_xml, tag) or ""
            candidates = [html.unescape(strip_cdata(raw))]
            if tag == "link":
                candidates.append(_atom_link_href(entry_xml))
            for candidate in candidates:
                if candidate and is_absolute_url(candidate):
                    return candidate.strip()
        return None

    def _parse_date(
        self,
        entry_xml: str,
        warnings: WarningCollector,
        fetched_at: datetime | None = None,
    ) -> datetime:
        fallback = fetched_at or datetime.now(UTC)
        raw = clean_text(extract_first(entry_xml, DATE_TAGS))
        if not raw:
            return fallback

        try:
            published = date_parser.parse(raw)
        except (ValueError, OverflowError, TypeError):
            message = f"Unparseable publish date '{raw}', using fetch time"
            if warnings.add(message):
                self.logger.warning(message)
            return fallback

        if published.tzinfo is None:
            published = published.replace(tzinfo=UTC)
        return published

    def _extract_categories(self, entry_xml: str) -> list[str]:
        categories = []
        for tag in CATEGORY_TAGS:
            for raw in extract_all(entry_xml, tag):
                category = clean_text(raw)
                if category:
                    categories.append(category)
        # Atom: <category term="..."/>
        for attributes in find_tags(entry_xml, "category"):
            term = attributes.get("term", "").strip()
            if term:
                categories.append(term)
        return list(dict.fromkeys(categories))

    def _enrich(self, item: FeedItem, warnings: WarningCollector) -> None:
        try:
            enriched = self.enricher.enrich(item.link, warnings)
        except Exception as e:
            message = f"Could not enrich {item.link}: {e}"
            if warnings.add(message):
                self.logger.warning(message, item_link=item.link, error=str(e))
            return

        if enriched.content:
            item.full_content = enriched.content
        if not item.image and enriched.images:
            item.image = enriched.images[0]
