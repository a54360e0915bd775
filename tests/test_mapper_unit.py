"""Unit tests for mapping feed items to articles."""

from datetime import UTC, datetime

from feed_ingest.mapper import make_excerpt, to_article
from feed_ingest.models import FeedItem

PUBLISHED = datetime(2024, 10, 14, 10, 0, tzinfo=UTC)


def make_item(**overrides):
    values = {
        "title": "Story",
        "description": "Short description",
        "link": "https://example.com/story",
        "published_at": PUBLISHED,
    }
    values.update(overrides)
    return FeedItem(**values)


class TestMakeExcerpt:
    def test_short_text_is_verbatim(self):
        assert make_excerpt("Short text") == "Short text"
        assert make_excerpt("x" * 200) == "x" * 200

    def test_long_text_is_cut_at_last_space(self):
        text = ("word " * 60).strip()

        excerpt = make_excerpt(text)

        assert excerpt.endswith("word...")
        assert len(excerpt) <= 203
        assert not excerpt[:-3].endswith(" ")
        assert text.startswith(excerpt[:-3])

    def test_long_text_without_spaces_is_hard_cut(self):
        assert make_excerpt("x" * 250) == "x" * 200 + "..."

    def test_markup_is_stripped_first(self):
        text = "<p>" + "Lorem ipsum " * 10 + "</p>"
        assert make_excerpt(text) == ("Lorem ipsum " * 10).strip()

    def test_empty(self):
        assert make_excerpt(None) == ""
        assert make_excerpt("") == ""


class TestToArticle:
    """Unit tests for to_article."""

    def test_basic_mapping(self):
        item = make_item(categories=["Tech", "Science"], image="https://example.com/a.jpg")

        article = to_article(item, 3, "Example", "General")

        assert article.title == "Story"
        assert article.content == "Short description"
        assert article.excerpt == "Short description"
        assert article.url == "https://example.com/story"
        assert article.image_url == "https://example.com/a.jpg"
        assert article.category == "Tech"
        assert article.source_id == 3
        assert article.source_name == "Example"
        assert article.published_at == PUBLISHED
        assert (article.views, article.comments, article.shares, article.likes) == (0, 0, 0, 0)
        assert article.id is None

    def test_default_category_and_missing_image(self):
        article = to_article(make_item(), 1, "Example", "World")

        assert article.category == "World"
        assert article.image_url is None

    def test_full_content_preferred_for_body(self):
        item = make_item(full_content="The whole article body")

        article = to_article(item, 1, "Example", "General")

        assert article.content == "The whole article body"
        assert article.excerpt == "Short description"

    def test_excerpt_from_full_content_when_description_empty(self):
        item = make_item(description="", full_content="Body only")

        assert to_article(item, 1, "Example", "General").excerpt == "Body only"

    def test_fields_are_truncated_to_storage_limits(self):
        item = make_item(
            title="T" * 300,
            link="https://example.com/" + "p" * 600,
            image="https://example.com/" + "i" * 600,
            categories=["C" * 150],
        )

        article = to_article(item, 1, "S" * 150, "General")

        assert len(article.title) == 255
        assert len(article.url) == 512
        assert len(article.image_url) == 512
        assert len(article.category) == 100
        assert len(article.source_name) == 100
