"""
Image generation providers
"""
from .base import ImageGenerationRequest, ImageGenerationResponse, ImageGenerationService, Result, retry_on_failure
from .description_extractor import ItemDescriptionExtractor
from .mock_image_service import MockImageService
from .openai_image_service import OpenAIImageService
from .replicate_image_service import ReplicateImageService

__all__ = [
    "ImageGenerationRequest",
    "ImageGenerationResponse",
    "ImageGenerationService",
    "Result",
    "retry_on_failure",
    "ItemDescriptionExtractor",
    "MockImageService",
    "OpenAIImageService",
    "ReplicateImageService",
]
