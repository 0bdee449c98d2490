"""
Mock generation provider for local development and tests
"""
import asyncio
import io
import logging
from typing import List

from PIL import Image, ImageDraw

from roomspark.core.config import settings
from roomspark.services.image_fetcher import ImageFetcher
from roomspark.services.image_generation.base import ImageGenerationRequest, ImageGenerationResponse, ImageGenerationService

logger = logging.getLogger(__name__)

MOCK_DESCRIPTIONS = [
    "Mid-century modern three-seat sofa, walnut frame, mustard yellow upholstery",
    "Round coffee table, solid oak, natural finish",
    "Brass arc floor lamp with white linen shade",
]


def render_placeholder(width: int = 1024, height: int = 1024) -> bytes:
    """Plain PNG used when no stock image URL is configured"""
    image = Image.new("RGBA", (width, height), (214, 200, 180, 255))
    draw = ImageDraw.Draw(image)
    draw.rectangle([width // 8, height // 2, width * 7 // 8, height * 3 // 4], fill=(120, 92, 70, 255))
    draw.text((width // 8, height // 8), "RoomSpark mock render", fill=(60, 60, 60, 255))

    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


class MockImageService(ImageGenerationService):
    """Always returns the same stock image after an artificial delay"""

    provider_name = "mock"

    def __init__(
        self,
        storage_service,
        fetcher: ImageFetcher = None,
        delay_seconds: float = None,
        image_url: str = None,
        descriptions: List[str] = None,
    ):
        super().__init__(storage_service)
        self.fetcher = fetcher or ImageFetcher()
        self.delay_seconds = settings.mock_delay_seconds if delay_seconds is None else delay_seconds
        self.image_url = settings.mock_generated_image_url if image_url is None else image_url
        self.descriptions = list(MOCK_DESCRIPTIONS if descriptions is None else descriptions)

    async def _generate(self, request: ImageGenerationRequest) -> bytes:
        await asyncio.sleep(self.delay_seconds)
        if not self.image_url:
            return render_placeholder(settings.normalized_image_width, settings.normalized_image_width)
        return await self.fetcher.fetch(self.image_url)

    async def _describe(self, image_bytes: bytes) -> List[str]:
        return list(self.descriptions)

    async def generate_image(self, request: ImageGenerationRequest, user_id: str, project_id: str) -> ImageGenerationResponse:
        logger.info(f"Mock image generation for project {project_id}")
        return await super().generate_image(request, user_id, project_id)
