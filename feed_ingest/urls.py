"""URL validation, resolution and canonicalization."""

import html
from urllib.parse import unquote, urljoin, urlsplit, urlunsplit

ALLOWED_SCHEMES = ("http", "https")


def is_absolute_url(url: str | None) -> bool:
    """Check that ``url`` is an absolute http(s) URL with a host."""
    if not url:
        return False
    try:
        parts = urlsplit(url.strip())
        return parts.scheme.lower() in ALLOWED_SCHEMES and bool(parts.hostname)
    except ValueError:
        return False


def resolve_url(url: str, base: str | None = None) -> str:
    """Resolve a possibly relative (or protocol-relative) ``url`` against ``base``."""
    url = html.unescape(url.strip())
    if base and not is_absolute_url(url):
        return urljoin(base, url)
    return url


def normalize_url(url: str | None, base: str | None = None) -> str | None:
    """Canonicalize ``url`` into the form used as an article's identity.

    The URL is resolved against ``base``, its query and fragment are
    dropped, the path is percent-decoded and loses any trailing slash, and
    scheme and host are lowercased.

    Returns:
        The canonical URL, or None when no absolute http(s) URL results
    """
    if not url or not url.strip():
        return None

    try:
        candidate = resolve_url(url, base)
        if not is_absolute_url(candidate):
            return None

        parts = urlsplit(candidate)
        path = unquote(parts.path)
        if len(path) > 1 and path.endswith("/"):
            path = path.rstrip("/") or "/"

        return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), path, "", ""))
    except ValueError:
        return None


def url_host(url: str | None) -> str:
    """Return the lowercased host of ``url`` or an empty string."""
    if not url:
        return ""
    try:
        return (urlsplit(url).hostname or "").lower()
    except ValueError:
        return ""


def host_in_domains(url: str | None, domains: tuple[str, ...] | list[str]) -> bool:
    """Check whether the host of ``url`` is one of ``domains`` or a subdomain of one."""
    host = url_host(url)
    if not host:
        return False
    return any(host == d or host.endswith("." + d) for d in domains)
