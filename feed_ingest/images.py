"""Representative-image resolution for feed entries."""

import re
from collections.abc import Callable

from .config import ParserConfig
from .diagnostics import WarningCollector
from .fetcher import RedirectFetcher
from .logging_config import create_execution_logger
from .page import extract_json_ld_article, find_html_image, json_ld_image, parse_html
from .text import extract_tag, find_tag_attr, raw_html
from .urls import host_in_domains, normalize_url

YOUTUBE_ID_RE = re.compile(
    r"(?:youtube(?:-nocookie)?\.com/(?:watch\?(?:[^#]*&)?v=|embed/|shorts/|v/|live/)"
    r"|youtu\.be/)([\w-]{11})",
    re.IGNORECASE,
)
YOUTUBE_THUMBNAIL = "https://img.youtube.com/vi/{video_id}/hqdefault.jpg"
YOUTUBE_SHORT_LINK = "https://youtu.be/{video_id}"

BACKGROUND_IMAGE_RE = re.compile(
    r"""background-image\s*:\s*url\(\s*['"]?([^'")\s]+)['"]?\s*\)""", re.IGNORECASE
)

# Entry fields that may carry an HTML fragment, most detailed first
HTML_FIELDS = ("content:encoded", "description", "summary", "content")

# Predicate on the entry link, handler returning an image URL or None
SiteRule = tuple[Callable[[str], bool], Callable[[str], str | None]]


def find_media_image(entry_xml: str) -> str | None:
    """Image declared by RSS media extensions, enclosures or an ``<image>`` element."""
    return (
        find_tag_attr(entry_xml, "media:thumbnail", "url")
        or find_tag_attr(entry_xml, "media:content", "url", medium="image")
        or find_tag_attr(entry_xml, "enclosure", "url", type="image*")
        or extract_tag(extract_tag(entry_xml, "image") or "", "url")
        or find_tag_attr(entry_xml, "image", "href")
        or find_tag_attr(entry_xml, "itunes:image", "href")
    )


def find_inline_image(entry_xml: str) -> str | None:
    """First image found in the HTML carried by the entry's text fields.

    Each field is mined on its own, so a text-only ``<description>`` does
    not hide a picture in ``<content:encoded>``.
    """
    for tag in HTML_FIELDS:
        fragment = raw_html(extract_tag(entry_xml, tag))
        if not fragment:
            continue
        image = find_html_image(fragment)
        if image:
            return image
        match = BACKGROUND_IMAGE_RE.search(fragment)
        if match:
            return match.group(1)
    return None


def youtube_video_id(link: str | None) -> str | None:
    match = YOUTUBE_ID_RE.search(link or "")
    return match.group(1) if match else None


def youtube_thumbnail(link: str) -> str | None:
    """Build the thumbnail URL of a YouTube video link."""
    video_id = youtube_video_id(link)
    if video_id is None:
        return None
    return YOUTUBE_THUMBNAIL.format(video_id=video_id)


def youtube_video_link(link: str | None) -> str | None:
    """Short ``youtu.be`` form of a YouTube video link, or None for other links.

    The video id lives in the query of ``watch?v=`` links, so these links
    get their own canonical form instead of losing the id to query stripping.
    """
    video_id = youtube_video_id(link)
    if video_id is None:
        return None
    return YOUTUBE_SHORT_LINK.format(video_id=video_id)


class ImageResolver:
    """Cascades through feed markup, site rules and the article page for an image."""

    def __init__(
        self,
        fetcher: RedirectFetcher,
        config: ParserConfig | None = None,
        execution_id: str | None = None,
    ):
        self.fetcher = fetcher
        self.config = config or ParserConfig()
        self.logger = create_execution_logger("image_resolver", execution_id)
        self.site_rules: list[SiteRule] = [
            (lambda link: youtube_video_id(link) is not None, youtube_thumbnail),
            (
                lambda link: host_in_domains(link, self.config.page_image_domains),
                self.image_from_page,
            ),
        ]

    def resolve(
        self,
        entry_xml: str,
        link: str,
        warnings: WarningCollector,
        original_link: str | None = None,
    ) -> str | None:
        """Resolve the image of one entry.

        Args:
            entry_xml: Raw markup of the entry
            link: Canonical entry link, used as the base for relative URLs
            warnings: Collector for failures of individual steps
            original_link: Link as it appeared in the feed, for site rules

        Returns:
            Normalized absolute image URL, or None
        """
        steps = [
            ("feed media", lambda: find_media_image(entry_xml)),
            ("inline html", lambda: find_inline_image(entry_xml)),
            ("site rules", lambda: self._apply_site_rules(original_link or link)),
        ]
        if self.config.enable_image_fetch:
            steps.append(("article page", lambda: self._image_from_page_html(link)))

        for step_name, step in steps:
            try:
                candidate = step()
            except Exception as e:
                message = f"Image lookup ({step_name}) failed for {link}: {e}"
                if warnings.add(message):
                    self.logger.warning(message, item_link=link, error=str(e))
                continue

            image = normalize_url(candidate, link) if candidate else None
            if image:
                self.logger.debug(
                    "Resolved image", item_link=link, step=step_name, image=image
                )
                return image

        return None

    def _apply_site_rules(self, link: str) -> str | None:
        for matches, handler in self.site_rules:
            if matches(link):
                image = handler(link)
                if image:
                    return image
        return None

    def image_from_page(self, link: str) -> str | None:
        """Mine the article page: JSON-LD image first, then meta tags and images."""
        soup = parse_html(self.fetcher.fetch_text(link))
        try:
            structured = json_ld_image(extract_json_ld_article(soup))
        except ValueError as e:
            self.logger.debug(
                f"Ignoring structured data on {link}: {e}", item_link=link
            )
            structured = None
        return structured or find_html_image(soup)

    def _image_from_page_html(self, link: str) -> str | None:
        return find_html_image(self.fetcher.fetch_text(link))
