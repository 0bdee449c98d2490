"""
OpenAI image edit provider
"""
import base64
import binascii
import logging

import openai

from roomspark.core.config import settings
from roomspark.core.exceptions import ProviderError
from roomspark.services.image_fetcher import ImageFetcher
from roomspark.services.image_generation.base import ImageGenerationRequest, ImageGenerationService, retry_on_failure

logger = logging.getLogger(__name__)

# Transient failures worth another attempt
_RETRYABLE = (ProviderError, openai.APIConnectionError, openai.APITimeoutError, openai.RateLimitError, openai.InternalServerError)


class OpenAIImageService(ImageGenerationService):
    """Restyles the source photo with the images.edit endpoint"""

    provider_name = "openai"

    def __init__(self, storage_service, fetcher: ImageFetcher, description_extractor=None, client=None, api_key: str = None):
        super().__init__(storage_service, description_extractor)
        api_key = api_key or settings.openai_api_key
        if client is None and not api_key:
            raise ValueError("OpenAI API key is required - set OPENAI_API_KEY environment variable")

        self.fetcher = fetcher
        self.model = settings.openai_image_model
        self.size = settings.openai_image_size
        # Retries are handled by retry_on_failure
        self.client = client or openai.AsyncOpenAI(
            api_key=api_key,
            timeout=settings.generation_timeout_seconds,
            max_retries=0,
        )
        logger.info(f"OpenAI image service initialized with model {self.model}")

    async def _generate(self, request: ImageGenerationRequest) -> bytes:
        source_bytes = await self.fetcher.fetch(request.image_url)
        return await self._edit_image(source_bytes, request.prompt)

    @retry_on_failure(retry_on=_RETRYABLE)
    async def _edit_image(self, source_bytes: bytes, prompt: str) -> bytes:
        try:
            response = await self.client.images.edit(
                model=self.model,
                image=("image.png", source_bytes, "image/png"),
                prompt=prompt,
                n=1,
                size=self.size,
                response_format="b64_json",
            )
        except openai.APIStatusError as e:
            if e.status_code >= 500:
                raise ProviderError(f"upstream {e.status_code}")
            raise

        if not response.data or not response.data[0].b64_json:
            raise ProviderError("Failed to generate image from OpenAI")

        try:
            return base64.b64decode(response.data[0].b64_json)
        except (binascii.Error, ValueError):
            raise ProviderError("OpenAI returned an undecodable image payload")
