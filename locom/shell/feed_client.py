"""Municipality Feed Client - Imperative Shell.

This module handles HTTP communication with municipality feeds.
All I/O is contained here; parsing logic is in the core module.
"""

import logging
from typing import Any

import requests


logger = logging.getLogger(__name__)


# Default timeout for feed requests (seconds)
DEFAULT_TIMEOUT = 30

USER_AGENT = "Mozilla/5.0 (compatible; Locom/1.0)"


class FeedClient:
    """Client for fetching municipality feed documents.

    This is part of the imperative shell - it handles HTTP I/O.
    """

    def __init__(self, timeout: int = DEFAULT_TIMEOUT) -> None:
        """Initialize feed client.

        Args:
            timeout: Request timeout in seconds
        """
        self.timeout = timeout

    def _get(self, url: str) -> requests.Response:
        response = requests.get(
            url,
            headers={"User-Agent": USER_AGENT},
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response

    def fetch_text(self, url: str) -> str:
        """Fetch a feed document as text (RSS/XML or HTML).

        This method performs HTTP I/O.

        Args:
            url: Feed URL

        Returns:
            Response body decoded as text

        Raises:
            requests.RequestException: If the request fails
        """
        logger.info("Fetching feed document from %s", url)

        response = self._get(url)
        # Servers often omit the charset; Greek pages are UTF-8.
        if response.encoding is None or response.encoding.lower() == "iso-8859-1":
            response.encoding = response.apparent_encoding or "utf-8"

        text = response.text
        logger.info("Fetched %d characters from %s", len(text), url)
        return text

    def fetch_json(self, url: str) -> Any:
        """Fetch and decode a JSON feed.

        This method performs HTTP I/O.

        Args:
            url: Feed URL

        Returns:
            Decoded JSON document

        Raises:
            requests.RequestException: If the request fails
            ValueError: If the body is not valid JSON
        """
        logger.info("Fetching JSON feed from %s", url)

        response = self._get(url)
        return response.json()
