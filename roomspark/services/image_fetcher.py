"""
URL to bytes fetch used to (re)download images produced by remote providers
"""
import asyncio
import logging
from typing import Optional

import aiohttp

from roomspark.core.config import settings
from roomspark.core.exceptions import ProviderError
from roomspark.services.blob_storage import BlobStorage

logger = logging.getLogger(__name__)


class ImageFetcher:
    """Fetch image bytes over HTTP; this service's own signed URLs are read from blob storage directly"""

    def __init__(self, blob_storage: Optional[BlobStorage] = None, timeout_seconds: float = None):
        self.blob_storage = blob_storage
        self.timeout_seconds = timeout_seconds or settings.fetch_timeout_seconds

    async def fetch(self, url: str, timeout_seconds: float = None) -> bytes:
        if not url:
            raise ProviderError("Image URL is required", status_code=400)

        if self.blob_storage is not None:
            path = self.blob_storage.resolve_signed_url(url)
            if path:
                return await self.blob_storage.get(path)

        timeout = aiohttp.ClientTimeout(total=timeout_seconds or self.timeout_seconds)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(url) as response:
                    if response.status != 200:
                        raise ProviderError(f"Failed to fetch image: HTTP {response.status}")
                    image_bytes = await response.read()
        except asyncio.TimeoutError:
            logger.warning(f"Timeout fetching image: {url[:100]}")
            raise ProviderError("Failed to fetch image: timed out")
        except aiohttp.ClientError as e:
            logger.warning(f"Network error fetching image {url[:100]}: {e}")
            raise ProviderError(f"Failed to fetch image: {e}")

        if not image_bytes:
            raise ProviderError("Failed to fetch image: empty response")

        logger.info(f"Fetched {len(image_bytes)} bytes from {url[:100]}")
        return image_bytes
