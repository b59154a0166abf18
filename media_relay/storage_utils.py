"""
Storage utilities for the media relay.
Fetches remote media on behalf of the browser and returns it inline.
"""

import base64
import logging
from typing import Any, Dict, Optional

import httpx

from .errors import InvalidArgument, ProviderRejected

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_CONTENT_TYPE = "image/png"


async def download_url_content(client: httpx.AsyncClient, url: str, timeout: float = 60) -> httpx.Response:
    """Download content from a URL and return the response."""
    logger.info(f"Downloading content from: {url}")
    response = await client.get(url, timeout=timeout, follow_redirects=True)
    logger.info(f"Downloaded {len(response.content)} bytes from {url} (status {response.status_code})")
    return response


async def download_image(client: httpx.AsyncClient, image_url: Optional[str]) -> Dict[str, Any]:
    """Fetch *image_url* and return it base64-encoded with its content type."""
    if not image_url:
        raise InvalidArgument("Image URL is required")

    try:
        response = await download_url_content(client, image_url)
    except httpx.HTTPError as e:
        logger.error(f"Failed to download from {image_url}: {e}")
        raise ProviderRejected("Failed to fetch image", payload={"exception": type(e).__name__})

    if response.is_error:
        logger.error(f"Image fetch failed with status {response.status_code}: {image_url}")
        raise ProviderRejected("Failed to fetch image", payload={"status": response.status_code})

    return {
        "imageData": base64.b64encode(response.content).decode("utf-8"),
        "contentType": response.headers.get("content-type") or DEFAULT_IMAGE_CONTENT_TYPE,
    }
