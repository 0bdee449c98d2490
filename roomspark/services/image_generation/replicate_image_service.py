"""
Replicate interior design provider (adirik/interior-design)
"""
import asyncio
import base64
import logging

import replicate
from replicate.exceptions import ReplicateError

from roomspark.core.config import settings
from roomspark.core.exceptions import ProviderError
from roomspark.services.image_fetcher import ImageFetcher
from roomspark.services.image_generation.base import (
    ImageGenerationRequest,
    ImageGenerationService,
    decode_output_url,
    retry_on_failure,
)

logger = logging.getLogger(__name__)

NEGATIVE_PROMPT = (
    "lowres, watermark, banner, logo, contactinfo, text, deformed, blurry, blur, out of focus, "
    "surreal, ugly, distorted walls, changed windows, changed doors"
)


class ReplicateImageService(ImageGenerationService):
    """Runs the interior design model on Replicate and downloads its output"""

    provider_name = "replicate"

    def __init__(self, storage_service, fetcher: ImageFetcher, description_extractor=None, client=None, api_key: str = None):
        super().__init__(storage_service, description_extractor)
        api_key = api_key or settings.replicate_api_key
        if client is None and not api_key:
            raise ValueError("Replicate API key is required - set REPLICATE_API_KEY environment variable")

        self.fetcher = fetcher
        self.model = settings.replicate_model_interior_design
        self.client = client or replicate.Client(api_token=api_key)
        logger.info(f"Replicate image service initialized with model {self.model.split(':')[0]}")

    async def _generate(self, request: ImageGenerationRequest) -> bytes:
        source_bytes = await self.fetcher.fetch(request.image_url)
        # Local signed URLs are not reachable from Replicate, so send the image inline
        image_data_url = f"data:image/png;base64,{base64.b64encode(source_bytes).decode()}"

        output_url = await self._run_model(image_data_url, request.prompt)
        logger.info(f"Replicate output: {output_url[:100]}")
        return await self.fetcher.fetch(output_url, timeout_seconds=settings.generation_timeout_seconds)

    @retry_on_failure(retry_on=(ProviderError, ReplicateError))
    async def _run_model(self, image_data_url: str, prompt: str) -> str:
        model_input = {
            "image": image_data_url,
            "prompt": prompt,
            "negative_prompt": NEGATIVE_PROMPT,
            "num_inference_steps": 50,
            "guidance_scale": 15,
            "prompt_strength": 0.8,
        }

        logger.info(f"Running interior design model with prompt: {prompt[:100]}...")
        output = await asyncio.to_thread(self.client.run, self.model, input=model_input)
        return decode_output_url(output)
