"""
Shared contract for image generation providers
"""
import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Generic, List, Optional, TypeVar

from roomspark.core.config import settings
from roomspark.core.exceptions import ProviderError, RoomSparkError
from roomspark.schemas.images import ImageType

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class ImageGenerationRequest:
    """Source image plus the styling instruction"""

    image_url: str
    prompt: str


@dataclass
class ImageGenerationResponse:
    """Outcome of a generation call; providers never raise"""

    success: bool
    image_url: Optional[str] = None
    image_id: Optional[str] = None
    descriptions: List[str] = field(default_factory=list)
    fingerprint: Optional[str] = None
    error: Optional[str] = None


@dataclass
class Result(Generic[T]):
    """Value or error from a best-effort sub-call"""

    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> "Result[T]":
        return cls(ok=False, error=error)


def retry_on_failure(max_retries: int = None, delay: float = None, retry_on: tuple = (Exception,)):
    """Decorator for retrying backend calls with a fixed delay between attempts.

    max_retries and delay default to the generation settings, read on every call.
    """

    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            attempts = max_retries or settings.generation_max_retries
            wait_time = settings.generation_retry_delay if delay is None else delay
            last_exception = None
            for attempt in range(attempts):
                try:
                    return await func(*args, **kwargs)
                except retry_on as e:
                    last_exception = e
                    if attempt < attempts - 1:
                        logger.warning(f"API call failed (attempt {attempt + 1}/{attempts}), retrying in {wait_time}s: {e}")
                        await asyncio.sleep(wait_time)
                    else:
                        logger.error(f"API call failed after {attempts} attempts: {e}")
            raise last_exception

        return wrapper

    return decorator


class ImageGenerationService(ABC):
    """
    Base class for generation providers.

    Subclasses produce the styled image bytes; this class extracts item descriptions,
    persists the result through the image store and converts failures into a response.
    """

    provider_name = "base"

    def __init__(self, storage_service, description_extractor=None):
        self.storage_service = storage_service
        self.description_extractor = description_extractor
        # Shared by every request this provider serves; only touched between awaits
        self.usage_stats = {
            "total_requests": 0,
            "successful_requests": 0,
            "failed_requests": 0,
            "total_processing_time": 0.0,
            "last_reset": datetime.now(timezone.utc),
        }

    @abstractmethod
    async def _generate(self, request: ImageGenerationRequest) -> bytes:
        """Return the generated image bytes; raise on failure"""

    async def _describe(self, image_bytes: bytes) -> List[str]:
        if self.description_extractor is None:
            return []

        result = await self.description_extractor.extract(image_bytes)
        if not result.ok:
            logger.warning(f"Item description extraction failed, continuing without descriptions: {result.error}")
            return []
        return result.value or []

    async def generate_image(self, request: ImageGenerationRequest, user_id: str, project_id: str) -> ImageGenerationResponse:
        if not request.image_url or not request.prompt:
            return ImageGenerationResponse(success=False, error="Both image URL and prompt are required")

        start_time = time.time()
        self.usage_stats["total_requests"] += 1

        try:
            image_bytes = await asyncio.wait_for(self._generate(request), timeout=settings.generation_timeout_seconds)
            if not image_bytes:
                raise ProviderError(f"Failed to generate image from {self.provider_name}")

            descriptions = await self._describe(image_bytes)
            stored = await self.storage_service.store_image(
                image_bytes,
                user_id,
                project_id,
                self.provider_name,
                ImageType.GENERATED,
                descriptions=descriptions,
            )
        except asyncio.TimeoutError:
            self.usage_stats["failed_requests"] += 1
            logger.error(f"{self.provider_name} generation timed out after {settings.generation_timeout_seconds}s")
            return ImageGenerationResponse(success=False, error="Image generation timed out")
        except RoomSparkError as e:
            self.usage_stats["failed_requests"] += 1
            logger.error(f"{self.provider_name} image generation error: {e.message}")
            return ImageGenerationResponse(success=False, error=e.message)
        except Exception as e:
            self.usage_stats["failed_requests"] += 1
            logger.error(f"{self.provider_name} image generation error: {e}", exc_info=True)
            return ImageGenerationResponse(success=False, error=str(e) or "Failed to generate image")

        processing_time = time.time() - start_time
        self.usage_stats["successful_requests"] += 1
        self.usage_stats["total_processing_time"] += processing_time
        logger.info(f"{self.provider_name} generated image {stored.id} in {processing_time:.2f}s")

        return ImageGenerationResponse(
            success=True,
            image_url=stored.url,
            image_id=stored.id,
            descriptions=descriptions,
            fingerprint=stored.fingerprint,
        )

    def get_usage_stats(self) -> dict:
        """Snapshot of the process-wide counters for this provider"""
        return dict(self.usage_stats, provider=self.provider_name)


def decode_output_url(output: Any) -> str:
    """Pull a URL out of a model output that may be a list, a file object or a string"""
    if isinstance(output, (list, tuple)) and len(output) > 0:
        output = output[0]
    if hasattr(output, "url"):
        output = output.url
    if isinstance(output, str) and output:
        return output
    raise ProviderError(f"Unexpected output format: {type(output).__name__}")
