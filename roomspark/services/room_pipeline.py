"""
Room transformation pipeline.

Turns an uploaded room photo into a stored, styled image and a list of shoppable
products. Stages run strictly in order:

    CREATED -> UPLOADING -> GENERATING -> DISCOVERING -> COMPLETE

with FAILED reachable from every non-terminal state. Generation failures are fatal.
Once products are found, failing to persist them is logged and the run still
completes with the in-memory list.

Every public operation returns a StageResult; domain errors never escape.
"""
import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional

from roomspark.config.style_definitions import RoomStyle, build_prompt, parse_style, style_label
from roomspark.core.config import settings
from roomspark.core.exceptions import (
    DiscoveryError,
    InvalidStateTransition,
    PersistenceError,
    ProviderError,
    RoomSparkError,
    ValidationError,
)
from roomspark.middleware.logging_middleware import bind_project_id, get_logger
from roomspark.schemas.images import ImageType, StoredImage
from roomspark.schemas.products import ProductData
from roomspark.services.image_generation.base import ImageGenerationRequest, ImageGenerationResponse
from roomspark.services.image_processor import normalize_image

logger = get_logger(__name__)


class PipelineState(str, Enum):
    CREATED = "created"
    UPLOADING = "uploading"
    GENERATING = "generating"
    DISCOVERING = "discovering"
    COMPLETE = "complete"
    FAILED = "failed"


TRANSITIONS = {
    PipelineState.CREATED: {PipelineState.UPLOADING, PipelineState.FAILED},
    PipelineState.UPLOADING: {PipelineState.GENERATING, PipelineState.FAILED},
    PipelineState.GENERATING: {PipelineState.DISCOVERING, PipelineState.FAILED},
    PipelineState.DISCOVERING: {PipelineState.COMPLETE, PipelineState.FAILED},
    PipelineState.COMPLETE: set(),
    PipelineState.FAILED: set(),
}


@dataclass
class StageResult:
    """Structured outcome of one boundary operation"""

    success: bool
    data: Any = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    status_code: int = 200

    @classmethod
    def ok(cls, data: Any = None) -> "StageResult":
        return cls(success=True, data=data)

    @classmethod
    def from_error(cls, exc: RoomSparkError) -> "StageResult":
        return cls(
            success=False,
            error=exc.message,
            error_type=type(exc).__name__,
            status_code=exc.status_code,
        )

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500


@dataclass
class PipelineRun:
    """Task-local record of one full run"""

    user_id: str
    project_id: Optional[str] = None
    style: RoomStyle = RoomStyle.GENERIC
    state: PipelineState = PipelineState.CREATED
    history: List[PipelineState] = field(default_factory=lambda: [PipelineState.CREATED])
    upload: Optional[StoredImage] = None
    generated: Optional[ImageGenerationResponse] = None
    products: List[ProductData] = field(default_factory=list)
    error: Optional[str] = None
    error_type: Optional[str] = None
    status_code: int = 200

    def transition(self, target: PipelineState) -> None:
        if target not in TRANSITIONS[self.state]:
            raise InvalidStateTransition(f"Cannot move pipeline from {self.state.value} to {target.value}")
        self.state = target
        self.history.append(target)

    def fail(self, result: StageResult) -> "PipelineRun":
        self.error = result.error
        self.error_type = result.error_type
        self.status_code = result.status_code
        self.transition(PipelineState.FAILED)
        return self

    @property
    def succeeded(self) -> bool:
        return self.state == PipelineState.COMPLETE


class RoomTransformationPipeline:
    """Orchestrates upload, generation and discovery using the injected providers"""

    def __init__(self, container):
        self.container = container
        self.projects = container.projects

    async def _guard(self, stage: str, operation: Callable[[], Awaitable[Any]]) -> StageResult:
        try:
            return StageResult.ok(await operation())
        except RoomSparkError as e:
            log = logger.warning if e.is_client_error else logger.error
            log(f"{stage} failed: {type(e).__name__}: {e.message}")
            return StageResult.from_error(e)
        except Exception as e:
            logger.exception(f"{stage} failed unexpectedly: {e}")
            return StageResult(success=False, error="Internal server error", error_type=type(e).__name__, status_code=500)

    # Stages

    async def _store_upload(self, user_id: str, project_id: str, image_bytes: bytes) -> StoredImage:
        if not image_bytes:
            raise ValidationError("Photo is required")

        normalized = await asyncio.to_thread(
            normalize_image,
            image_bytes,
            settings.normalized_image_width,
            "PNG",
            settings.normalized_image_quality,
            settings.max_upload_bytes,
        )
        return await self.container.image_storage.store_image(
            normalized.canonical_bytes,
            user_id,
            project_id,
            "upload",
            ImageType.USER_UPLOADED,
            fingerprint=normalized.fingerprint,
        )

    async def _generate(self, user_id: str, upload_id: str, project_id: str, style) -> ImageGenerationResponse:
        upload = await self.projects.get_upload(user_id, upload_id, project_id)
        prompt = build_prompt(style)
        logger.info(f"Generating {style_label(style)} image from upload {upload_id}")

        response = await self.container.image_generation.generate_image(
            ImageGenerationRequest(image_url=upload.file_url, prompt=prompt), user_id, project_id
        )
        if not response.success:
            raise ProviderError(response.error or "Failed to generate image")
        if not response.image_url:
            raise ProviderError("Image URL was not returned from generation service")
        return response

    async def _discover(
        self, user_id: str, generated_image_id: str, project_id: str, use_descriptions: bool
    ) -> List[ProductData]:
        image = await self.projects.get_generated_image(user_id, generated_image_id, project_id)
        product_service = self.container.product_service

        descriptions = list(image.interior_description or [])
        if use_descriptions and descriptions:
            products = await product_service.get_products_by_amazon_search(descriptions, project_id, user_id)
            if not products:
                raise DiscoveryError("No products found for the items in this image")
        else:
            if use_descriptions:
                logger.info("No item descriptions stored, falling back to visual search")
            products = await product_service.get_products_from_image(image.file_url)

        products = self.container.affiliate_service.convert_product_links(products)
        products = self.container.product_processor.process_products(products)

        try:
            await self.projects.save_products(user_id, project_id, products)
        except PersistenceError as e:
            # Products are still returned; the styled image is already stored
            logger.error(f"Error saving products, returning unsaved list: {e.message}")

        return products

    # Boundary operations

    async def upload_image(self, user_id: str, project_id: str, image_bytes: bytes) -> StageResult:
        """Normalize and store an upload; data is the StoredImage"""
        bind_project_id(project_id)

        async def operation():
            await self.projects.get_owned_project(user_id, project_id)
            return await self._store_upload(user_id, project_id, image_bytes)

        return await self._guard("Upload", operation)

    async def generate_styled_image(self, user_id: str, upload_id: str, project_id: str, style=None) -> StageResult:
        """Restyle an upload; data is the ImageGenerationResponse"""
        bind_project_id(project_id)

        async def operation():
            await self.projects.get_owned_project(user_id, project_id)
            return await self._generate(user_id, upload_id, project_id, style)

        return await self._guard("Generation", operation)

    async def discover_products(
        self, user_id: str, generated_image_id: str, project_id: str, use_descriptions: bool = False
    ) -> StageResult:
        """Find products for a generated image; data is the processed product list"""
        bind_project_id(project_id)

        async def operation():
            await self.projects.get_owned_project(user_id, project_id)
            return await self._discover(user_id, generated_image_id, project_id, use_descriptions)

        return await self._guard("Discovery", operation)

    async def toggle_product_like(self, user_id: str, product_id: str, liked: bool) -> StageResult:
        async def operation():
            await self.projects.set_product_liked(user_id, product_id, liked)
            return product_id

        return await self._guard("Like", operation)

    async def run(self, user_id: str, image_bytes: bytes, style=None, project_id: Optional[str] = None) -> PipelineRun:
        """Full upload, generate, discover sequence for one photo"""
        pipeline_run = PipelineRun(user_id=user_id, project_id=project_id, style=parse_style(style))
        start_time = time.time()

        if project_id is None:
            created = await self._guard("Project creation", lambda: self.projects.create_project(user_id))
            if not created.success:
                return pipeline_run.fail(created)
            pipeline_run.project_id = created.data.id
        bind_project_id(pipeline_run.project_id)

        owned = await self._guard("Ownership check", lambda: self.projects.get_owned_project(user_id, pipeline_run.project_id))
        if not owned.success:
            return pipeline_run.fail(owned)

        pipeline_run.transition(PipelineState.UPLOADING)
        uploaded = await self._guard("Upload", lambda: self._store_upload(user_id, pipeline_run.project_id, image_bytes))
        if not uploaded.success:
            return pipeline_run.fail(uploaded)
        pipeline_run.upload = uploaded.data

        pipeline_run.transition(PipelineState.GENERATING)
        generated = await self._guard(
            "Generation",
            lambda: self._generate(user_id, pipeline_run.upload.id, pipeline_run.project_id, pipeline_run.style),
        )
        if not generated.success:
            return pipeline_run.fail(generated)
        pipeline_run.generated = generated.data

        pipeline_run.transition(PipelineState.DISCOVERING)
        discovered = await self._guard(
            "Discovery",
            lambda: self._discover(user_id, pipeline_run.generated.image_id, pipeline_run.project_id, False),
        )
        if not discovered.success:
            return pipeline_run.fail(discovered)
        pipeline_run.products = discovered.data

        pipeline_run.transition(PipelineState.COMPLETE)
        logger.info(
            f"Pipeline complete in {time.time() - start_time:.2f}s: "
            f"{style_label(pipeline_run.style)}, {len(pipeline_run.products)} products"
        )
        return pipeline_run
