"""
Fetching remote images.

Used for provider results that come back as URLs and for importing images
the client already has.
"""

import logging
from typing import Optional
from urllib.parse import urlparse

import httpx

from .exceptions import ImageDownloadError, InvalidImageUrlError

logger = logging.getLogger(__name__)

MAX_IMAGE_BYTES = 10 * 1024 * 1024

# Accepted content types and the file extension stored objects get.
IMAGE_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/gif": "gif",
    "image/webp": "webp",
}


def extension_for(content_type: str) -> str:
    return IMAGE_EXTENSIONS.get(content_type, "png")


def require_https(url: str) -> str:
    """
    Reject anything but an absolute https URL.

    Raises:
        InvalidImageUrlError: If the URL has another scheme or no host
    """
    parsed = urlparse(url)
    if parsed.scheme != "https" or not parsed.netloc:
        raise InvalidImageUrlError(url, "only https URLs are accepted")
    return url


class HttpImageFetcher:
    """
    Downloads images over https.

    Args:
        transport: httpx transport, mainly for tests
        timeout: Request timeout in seconds
        max_bytes: Largest accepted body
    """

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
        max_bytes: int = MAX_IMAGE_BYTES,
    ):
        self._transport = transport
        self._timeout = timeout
        self._max_bytes = max_bytes

    async def fetch(self, url: str) -> tuple[bytes, str]:
        """
        Download `url` and return its bytes and content type.

        Raises:
            InvalidImageUrlError: If the URL or the body is not an acceptable image
            ImageDownloadError: If the request fails
        """
        require_https(url)
        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                timeout=self._timeout,
                follow_redirects=True,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Download of %s failed: %s", url, e)
            raise ImageDownloadError(url, str(e)) from e

        content_type = response.headers.get("content-type", "").split(";")[0].strip().lower()
        if content_type not in IMAGE_EXTENSIONS:
            raise InvalidImageUrlError(url, f"unsupported content type {content_type or 'none'!r}")
        if len(response.content) > self._max_bytes:
            raise InvalidImageUrlError(url, "image is too large")
        return response.content, content_type
