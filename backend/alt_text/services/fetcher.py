"""
Image fetching.

Resolves an image reference to raw bytes and a content type. Files served
by the document store's own storage are read straight from disk when the
collection has a storage root configured; everything else (and any failed
direct read) goes over HTTP.
"""

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional
from urllib.parse import unquote, urlsplit

import httpx

from alt_text.services.classifier import get_extension
from alt_text.utils.exceptions import FetchError
from alt_text.utils.logging import get_logger

logger = get_logger(__name__)

CONTENT_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "avif": "image/avif",
    "bmp": "image/bmp",
    "tiff": "image/tiff",
    "tif": "image/tiff",
    "svg": "image/svg+xml",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"
DEFAULT_HOST = "localhost:8000"


@dataclass
class FetchedImage:
    """Raw image bytes plus the content type they were served with."""
    data: bytes
    content_type: str


def content_type_for(filename: str) -> str:
    return CONTENT_TYPES.get(get_extension(filename), DEFAULT_CONTENT_TYPE)


def absolute_url(image_url: str, headers: Optional[Mapping[str, str]] = None) -> str:
    """
    Qualify a relative URL with the incoming request's protocol and host.

    Absolute URLs are returned unchanged.
    """
    if not image_url.startswith("/"):
        return image_url
    headers = headers or {}
    protocol = headers.get("x-forwarded-proto") or "http"
    host = headers.get("host") or DEFAULT_HOST
    return f"{protocol}://{host}{image_url}"


class ImageFetcher:
    """
    Fetch image bytes for alt-text generation.

    Args:
        storage_roots: Collection name -> directory holding its uploaded files
        http_client: Optional shared httpx.AsyncClient (one is created per
            fetch otherwise)
        timeout: HTTP timeout in seconds
    """

    def __init__(
        self,
        storage_roots: Optional[Dict[str, str]] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 60.0,
    ):
        self.storage_roots = dict(storage_roots or {})
        self.http_client = http_client
        self.timeout = timeout

    async def fetch(
        self,
        image_url: str,
        filename: Optional[str],
        collection: str,
        headers: Optional[Mapping[str, str]] = None,
    ) -> FetchedImage:
        """
        Fetch an image.

        Raises:
            FetchError: If neither the direct read nor the HTTP request succeed
        """
        direct_error = None
        if image_url.startswith("/"):
            try:
                return await self._read_local(image_url, filename, collection)
            except (OSError, LookupError) as e:
                direct_error = str(e)
                logger.debug(
                    "direct_read_skipped",
                    collection=collection,
                    image_url=image_url,
                    reason=direct_error,
                )

        url = absolute_url(image_url, headers)
        try:
            return await self._fetch_http(url)
        except FetchError as e:
            if direct_error:
                e.details["direct_read_error"] = direct_error
            raise

    async def _read_local(self, image_url: str, filename: Optional[str], collection: str) -> FetchedImage:
        root = self.storage_roots.get(collection)
        if not root:
            raise LookupError(f"No storage root configured for collection {collection}")

        name = filename or unquote(urlsplit(image_url).path.rsplit("/", 1)[-1])
        # Only the basename is trusted; never follow paths out of the root
        path = Path(root) / Path(name).name
        data = await asyncio.to_thread(path.read_bytes)

        logger.debug("direct_read", collection=collection, path=str(path), size=len(data))
        return FetchedImage(data=data, content_type=content_type_for(path.name))

    async def _fetch_http(self, url: str) -> FetchedImage:
        try:
            if self.http_client is not None:
                response = await self.http_client.get(url)
            else:
                async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                    response = await client.get(url)
        except httpx.HTTPError as e:
            raise FetchError(
                f"Failed to fetch image: {type(e).__name__}: {e}",
                {"url": url, "error": str(e)},
            ) from e

        if not response.is_success:
            raise FetchError(
                f"Failed to fetch image: {response.status_code}",
                {"url": url, "status_code": response.status_code},
            )

        content_type = response.headers.get("content-type") or content_type_for(urlsplit(url).path)
        return FetchedImage(data=response.content, content_type=content_type)
