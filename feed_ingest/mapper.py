"""Mapping of parsed feed items into storage-ready articles."""

from .models import (
    CATEGORY_MAX_LENGTH,
    EXCERPT_MAX_LENGTH,
    SOURCE_NAME_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    URL_MAX_LENGTH,
    Article,
    FeedItem,
)
from .text import clean_text


def make_excerpt(text: str | None, max_length: int = EXCERPT_MAX_LENGTH) -> str:
    """Build a short plain-text teaser from ``text``.

    Text that fits is returned verbatim. Longer text is cut at ``max_length``
    and backed up to the last space so no word is split, then ``...`` is
    appended. Only a cut with no space at all falls back to a hard cut.
    """
    text = clean_text(text)
    if len(text) <= max_length:
        return text

    truncated = text[:max_length]
    last_space = truncated.rfind(" ")
    if last_space > 0:
        return truncated[:last_space] + "..."
    return truncated + "..."


def to_article(
    item: FeedItem, source_id: int, source_name: str, default_category: str
) -> Article:
    """Convert a parsed feed item into an article bounded to storage limits."""
    category = item.categories[0] if item.categories else default_category
    content = item.full_content or item.description

    return Article(
        title=item.title[:TITLE_MAX_LENGTH],
        content=content,
        excerpt=make_excerpt(item.description or item.full_content),
        url=item.link[:URL_MAX_LENGTH],
        image_url=item.image[:URL_MAX_LENGTH] if item.image else None,
        category=(category or "")[:CATEGORY_MAX_LENGTH],
        source_id=source_id,
        source_name=source_name[:SOURCE_NAME_MAX_LENGTH],
        published_at=item.published_at,
    )
