"""Image Fetcher - downloads source images for composition."""

import base64
import binascii
from typing import Any, Optional

import requests

from brandscene.core.config import Settings
from brandscene.utils.error_handler import ImageFetchError


class HttpImageFetcher:
    """Fetches image bytes over HTTP(S) or from inline data URIs."""

    def __init__(self, settings: Settings, logger: Any, session: Optional[requests.Session] = None):
        """
        Initialize the fetcher.

        Args:
            settings: Application settings
            logger: Logger instance
            session: Optional requests session (connection reuse, test injection)
        """
        self.settings = settings
        self.logger = logger
        self.session = session or requests.Session()

    def fetch(self, url: str) -> bytes:
        """
        Download an image.

        Args:
            url: http(s) URL or data URI

        Returns:
            Raw image bytes

        Raises:
            ImageFetchError: On invalid or placeholder URLs, transport failures,
                non-2xx responses and empty bodies
        """
        if not url or url.startswith("placeholder:"):
            raise ImageFetchError("Image URL is a placeholder, nothing to download", url=url)

        if url.startswith("data:"):
            return self._decode_data_uri(url)

        if not url.startswith(("http://", "https://")):
            raise ImageFetchError(f"Invalid image URL: {url[:50]}", url=url)

        try:
            response = self.session.get(url, timeout=self.settings.image_fetch_timeout)
            response.raise_for_status()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise ImageFetchError(f"Failed to download image: HTTP {status}", url=url, status=status) from e
        except requests.RequestException as e:
            raise ImageFetchError(f"Failed to download image: {e}", url=url) from e

        if not response.content:
            raise ImageFetchError("Downloaded image is empty", url=url, status=response.status_code)

        self.logger.debug(f"Fetched {len(response.content)} bytes from {url[:80]}")
        return response.content

    @staticmethod
    def _decode_data_uri(url: str) -> bytes:
        header, _, payload = url.partition(",")
        if ";base64" not in header or not payload:
            raise ImageFetchError("Unsupported data URI (base64 payload required)", url=url[:50])
        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ImageFetchError(f"Malformed data URI: {e}", url=url[:50]) from e
