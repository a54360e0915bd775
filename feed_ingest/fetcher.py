"""HTTP fetching with bounded manual redirects."""

import re
from urllib.parse import urljoin

import requests

from .config import FetchConfig
from .logging_config import create_execution_logger

_XML_ENCODING_RE = re.compile(rb"""<\?xml[^>]*encoding=["']([\w.:-]+)["']""")


class FeedFetchError(Exception):
    """A feed or page could not be fetched (network error, timeout or non-2xx)."""


class RedirectFetcher:
    """Performs GET requests, following at most a fixed number of redirects."""

    def __init__(
        self,
        config: FetchConfig | None = None,
        session: requests.Session | None = None,
        execution_id: str | None = None,
    ):
        """Initialize RedirectFetcher with configuration.

        Args:
            config: Timeout, redirect cap and user agent
            session: Optional pre-built requests session
            execution_id: Execution ID for logging context
        """
        self.config = config or FetchConfig()
        self.logger = create_execution_logger("fetcher", execution_id)
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": self.config.user_agent})

    def fetch(self, url: str, max_redirects: int | None = None) -> requests.Response:
        """GET ``url``, following redirects by hand up to ``max_redirects`` hops.

        Once the cap is reached the last redirect response is returned as-is;
        callers must treat any non-2xx status as failure.

        Raises:
            requests.RequestException: On network errors and timeouts
        """
        cap = self.config.max_redirects if max_redirects is None else max_redirects
        current_url = url
        redirects = 0

        while True:
            response = self.session.get(
                current_url, timeout=self.config.timeout, allow_redirects=False
            )
            location = response.headers.get("Location")
            if 300 <= response.status_code < 400 and location and redirects < cap:
                next_url = urljoin(current_url, location)
                self.logger.debug(
                    "Following redirect",
                    feed_url=url,
                    status_code=response.status_code,
                    location=next_url,
                    hop=redirects + 1,
                )
                current_url = next_url
                redirects += 1
                continue
            return response

    def fetch_text(self, url: str) -> str:
        """Fetch ``url`` and return its decoded body.

        Raises:
            FeedFetchError: If the request fails or the final status is not 2xx
        """
        try:
            response = self.fetch(url)
        except requests.RequestException as e:
            self.logger.error(
                f"Request to {url} failed: {e}", feed_url=url, error=str(e)
            )
            raise FeedFetchError(f"Request to {url} failed: {e}") from e

        if not 200 <= response.status_code < 300:
            self.logger.error(
                f"Unexpected HTTP {response.status_code} from {url}",
                feed_url=url,
                status_code=response.status_code,
            )
            raise FeedFetchError(f"HTTP {response.status_code} from {url}")

        self.logger.info(
            "Downloaded successfully",
            feed_url=url,
            status_code=response.status_code,
            content_length=len(response.content),
        )
        return decode_body(response)


def decode_body(response: requests.Response) -> str:
    """Decode a response body using the declared charset, then the XML declaration."""
    content_type = response.headers.get("Content-Type", "")
    if "charset=" in content_type.lower():
        return response.text

    content = response.content or b""
    match = _XML_ENCODING_RE.search(content[:200])
    encoding = match.group(1).decode("ascii") if match else "utf-8"
    try:
        return content.decode(encoding, errors="replace")
    except LookupError:
        return content.decode("utf-8", errors="replace")
