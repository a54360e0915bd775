"""Mining of article HTML: meta images, JSON-LD and main content."""

import json
import re

from bs4 import BeautifulSoup

from .urls import normalize_url

ARTICLE_TYPES = {
    "article",
    "newsarticle",
    "blogposting",
    "reportagenewsarticle",
    "techarticle",
}
IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".avif", ".svg")
CONTENT_HINTS = ("content", "article", "post", "entry", "text")

# (attribute, value) pairs tried in order when looking for a page's lead image
META_IMAGE_KEYS = (
    ("property", "og:image"),
    ("name", "og:image"),
    ("name", "twitter:image"),
    ("property", "twitter:image"),
    ("name", "twitter:image:src"),
    ("itemprop", "image"),
)


def parse_html(markup: str) -> BeautifulSoup:
    return BeautifulSoup(markup or "", "html.parser")


def find_meta_image(soup: BeautifulSoup) -> str | None:
    """Return the Open Graph, Twitter or itemprop image declared in meta tags."""
    for attr, value in META_IMAGE_KEYS:
        tag = soup.find(
            "meta", attrs={attr: re.compile(rf"^{re.escape(value)}$", re.IGNORECASE)}
        )
        if tag is not None and tag.get("content", "").strip():
            return tag["content"].strip()
    return None


def find_first_img(soup: BeautifulSoup) -> str | None:
    for img in soup.find_all("img", src=True):
        src = img["src"].strip()
        if src and not src.startswith("data:"):
            return src
    return None


def find_html_image(markup: str | BeautifulSoup) -> str | None:
    """Meta-tag image if declared, else the first ``<img src>`` in the markup."""
    soup = markup if isinstance(markup, BeautifulSoup) else parse_html(markup)
    return find_meta_image(soup) or find_first_img(soup)


def _iter_json_ld_nodes(payload):
    if isinstance(payload, list):
        for entry in payload:
            yield from _iter_json_ld_nodes(entry)
    elif isinstance(payload, dict):
        if "@graph" in payload:
            yield from _iter_json_ld_nodes(payload["@graph"])
        else:
            yield payload


def _is_article_node(node: dict) -> bool:
    node_type = node.get("@type")
    types = node_type if isinstance(node_type, list) else [node_type]
    return any(str(t).lower() in ARTICLE_TYPES for t in types if t)


def extract_json_ld_article(markup: str | BeautifulSoup) -> dict | None:
    """Return the Article node of the page's JSON-LD, if there is one.

    Payloads wrapped in ``@graph`` or a top-level list are unwrapped. A node
    typed as an article wins; otherwise the first node carrying an
    ``articleBody`` is used.

    Raises:
        ValueError: If no usable node was found and a JSON-LD block was malformed
    """
    soup = markup if isinstance(markup, BeautifulSoup) else parse_html(markup)
    fallback = None
    decode_error = None

    for script in soup.find_all(
        "script", attrs={"type": re.compile(r"^application/ld\+json$", re.IGNORECASE)}
    ):
        raw = script.string or script.get_text()
        if not raw or not raw.strip():
            continue
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as e:
            decode_error = e
            continue

        for node in _iter_json_ld_nodes(payload):
            if _is_article_node(node):
                return node
            if fallback is None and node.get("articleBody"):
                fallback = node

    if fallback is None and decode_error is not None:
        raise ValueError(f"Malformed JSON-LD: {decode_error}")
    return fallback


def json_ld_image(node: dict | None) -> str | None:
    """Read the ``image`` field of a JSON-LD node (string, list or ImageObject)."""
    if not node:
        return None
    image = node.get("image")
    if isinstance(image, list):
        image = image[0] if image else None
    if isinstance(image, dict):
        image = image.get("url") or image.get("contentUrl")
    if isinstance(image, str) and image.strip():
        return image.strip()
    return None


def _has_content_hint(tag) -> bool:
    if tag.name != "div":
        return False
    classes = tag.get("class") or []
    markers = " ".join(classes + [tag.get("id") or ""]).lower()
    return any(hint in markers for hint in CONTENT_HINTS)


def extract_main_content(soup: BeautifulSoup) -> str:
    """Best-effort main text: ``<article>`` or a content ``<div>`` inside ``<body>``."""
    body = soup.body or soup
    container = body.find("article") or body.find(_has_content_hint) or body
    for element in container(["script", "style", "noscript"]):
        element.decompose()
    return " ".join(container.get_text(separator=" ").split())


def collect_page_images(soup: BeautifulSoup, base_url: str) -> list[str]:
    """Meta image plus every ``<img src>`` with an image extension, normalized."""
    candidates = []
    meta_image = find_meta_image(soup)
    if meta_image:
        candidates.append(normalize_url(meta_image, base_url))

    for img in soup.find_all("img", src=True):
        url = normalize_url(img["src"], base_url)
        if url and url.lower().endswith(IMAGE_EXTENSIONS):
            candidates.append(url)

    return list(dict.fromkeys(url for url in candidates if url))
