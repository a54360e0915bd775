"""Tag extraction and text sanitizing for loosely-formed feed markup.

Feeds in the wild are frequently not well-formed XML, so nothing here builds
a document tree of the feed. Elements are located by pattern, first match
wins, and only the HTML fragments found inside them go through BeautifulSoup.
"""

import html
import re
from functools import lru_cache

from bs4 import BeautifulSoup

_CDATA_RE = re.compile(r"<!\[CDATA\[([\s\S]*?)\]\]>")
_ESCAPED_MARKUP_RE = re.compile(r"&lt;\s*/?\s*[a-zA-Z!]")
_ATTR_RE = re.compile(
    r"""([\w:.-]+)\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'>]+))"""
)


@lru_cache(maxsize=128)
def _element_pattern(tag: str) -> re.Pattern:
    name = re.escape(tag)
    # Name must end at whitespace or '>' so <content> never matches <content:encoded>;
    # self-closing elements have no inner text.
    return re.compile(
        rf"<{name}(?:\s[^>]*)?(?<!/)>([\s\S]*?)</{name}\s*>", re.IGNORECASE
    )


@lru_cache(maxsize=128)
def _open_tag_pattern(tag: str) -> re.Pattern:
    return re.compile(rf"<{re.escape(tag)}(?=[\s/>])[^>]*>", re.IGNORECASE)


def extract_tag(xml: str, tag: str) -> str | None:
    """Return the trimmed inner text of the first ``<tag>`` element, if any."""
    if not xml:
        return None
    match = _element_pattern(tag).search(xml)
    if match is None:
        return None
    return match.group(1).strip()


def extract_first(xml: str, tags: list[str] | tuple[str, ...]) -> str | None:
    """Return the first non-empty inner text among ``tags``, tried in order."""
    for tag in tags:
        value = extract_tag(xml, tag)
        if value:
            return value
    return None


def extract_all(xml: str, tag: str) -> list[str]:
    """Return the trimmed inner text of every ``<tag>`` element."""
    if not xml:
        return []
    return [m.group(1).strip() for m in _element_pattern(tag).finditer(xml)]


def parse_attributes(tag_markup: str) -> dict[str, str]:
    """Parse the attributes of a single opening tag into a lowercase-keyed dict."""
    attributes = {}
    for match in _ATTR_RE.finditer(tag_markup):
        name = match.group(1).lower()
        value = next((g for g in match.group(2, 3, 4) if g is not None), "")
        attributes.setdefault(name, html.unescape(value).strip())
    return attributes


def find_tags(xml: str, tag: str) -> list[dict[str, str]]:
    """Return the attribute dicts of every ``<tag ...>`` opening tag."""
    if not xml:
        return []
    return [parse_attributes(m.group(0)) for m in _open_tag_pattern(tag).finditer(xml)]


def _attribute_matches(actual: str | None, expected: str) -> bool:
    if actual is None:
        return False
    actual = actual.lower()
    expected = expected.lower()
    if expected.endswith("*"):
        return actual.startswith(expected[:-1])
    return actual == expected


def find_tag_attr(xml: str, tag: str, attr: str, **required: str) -> str | None:
    """Return ``attr`` of the first ``<tag>`` whose attributes satisfy ``required``.

    A required value ending in ``*`` is a prefix match, so
    ``find_tag_attr(xml, "enclosure", "url", type="image*")`` finds image
    enclosures whatever the attribute order in the markup.
    """
    for attributes in find_tags(xml, tag):
        if all(_attribute_matches(attributes.get(k), v) for k, v in required.items()):
            value = attributes.get(attr.lower())
            if value:
                return value
    return None


def strip_cdata(text: str) -> str:
    """Unwrap every ``<![CDATA[...]]>`` section to its raw content."""
    if not text:
        return ""
    return _CDATA_RE.sub(r"\1", text)


def unescape_markup(text: str) -> str:
    """Decode entity-escaped markup (``&lt;p&gt;``) into real tags."""
    if text and _ESCAPED_MARKUP_RE.search(text):
        return html.unescape(text)
    return text or ""


def raw_html(text: str | None) -> str:
    """Turn an element's inner text into the HTML fragment it carries."""
    return unescape_markup(strip_cdata(text or ""))


def clean_text(text: str | None) -> str:
    """Strip CDATA wrappers and markup from ``text`` and collapse whitespace.

    Args:
        text: Raw element content that may contain CDATA and HTML

    Returns:
        Plain text on a single line
    """
    if not text:
        return ""

    text = raw_html(text)

    if "<" not in text and "&" not in text:
        return " ".join(text.split())

    soup = BeautifulSoup(text, "html.parser")
    for element in soup(["script", "style"]):
        element.decompose()

    return " ".join(soup.get_text(separator=" ").split())


def iter_elements(xml: str, tag: str):
    """Yield ``(offset, inner_text)`` for every ``<tag>`` element in ``xml``."""
    if not xml:
        return
    for match in _element_pattern(tag).finditer(xml):
        yield match.start(), match.group(1)
