"""
Service container: providers are selected once at startup and passed down
"""
import logging
from dataclasses import dataclass

from fastapi import Request
from sqlalchemy.ext.asyncio import async_sessionmaker

from roomspark.core.config import Settings
from roomspark.core.database import AsyncSessionLocal
from roomspark.services.blob_storage import BlobStorage, LocalBlobStorage
from roomspark.services.image_fetcher import ImageFetcher
from roomspark.services.image_generation import (
    ImageGenerationService,
    ItemDescriptionExtractor,
    MockImageService,
    OpenAIImageService,
    ReplicateImageService,
)
from roomspark.services.image_storage_service import BlobImageStorageService, ImageStorageService
from roomspark.services.products import (
    AffiliateConfig,
    AffiliateService,
    MockProductService,
    ProductProcessorConfig,
    ProductProcessorService,
    ProductService,
    SerpApiProductService,
)
from roomspark.services.project_service import ProjectService

logger = logging.getLogger(__name__)

GENERATION_PROVIDERS = ("openai", "replicate", "mock")
DISCOVERY_PROVIDERS = ("serpapi", "mock")


@dataclass
class ServiceContainer:
    """Process-wide services. They hold configuration and clients only, no per-request state."""

    session_factory: async_sessionmaker
    blob_storage: BlobStorage
    fetcher: ImageFetcher
    image_storage: ImageStorageService
    image_generation: ImageGenerationService
    product_service: ProductService
    affiliate_service: AffiliateService
    product_processor: ProductProcessorService
    projects: ProjectService


def build_image_generation_service(
    settings: Settings, image_storage: ImageStorageService, fetcher: ImageFetcher
) -> ImageGenerationService:
    provider = settings.image_generation_provider.lower()
    if provider == "mock":
        return MockImageService(image_storage, fetcher)

    extractor = ItemDescriptionExtractor(settings.google_ai_api_key, settings.google_ai_model)
    if provider == "openai":
        return OpenAIImageService(image_storage, fetcher, extractor, api_key=settings.openai_api_key)
    if provider == "replicate":
        return ReplicateImageService(image_storage, fetcher, extractor, api_key=settings.replicate_api_key)
    raise ValueError(f"Unknown image generation provider '{provider}', expected one of {GENERATION_PROVIDERS}")


def build_product_service(settings: Settings) -> ProductService:
    provider = settings.product_discovery_provider.lower()
    if provider == "mock":
        return MockProductService()
    if provider == "serpapi":
        return SerpApiProductService(settings.serpapi_api_key, settings.serpapi_country)
    raise ValueError(f"Unknown product discovery provider '{provider}', expected one of {DISCOVERY_PROVIDERS}")


def build_container(
    settings: Settings,
    session_factory: async_sessionmaker = None,
    blob_storage: BlobStorage = None,
) -> ServiceContainer:
    """Build every service once; misconfigured providers fail here, not on first request"""
    session_factory = session_factory or AsyncSessionLocal
    blob_storage = blob_storage or LocalBlobStorage(
        settings.storage_path, settings.public_base_url, settings.secret_key, settings.algorithm
    )
    fetcher = ImageFetcher(blob_storage, settings.fetch_timeout_seconds)
    image_storage = BlobImageStorageService(blob_storage, session_factory, fetcher, settings.signed_url_ttl_seconds)

    container = ServiceContainer(
        session_factory=session_factory,
        blob_storage=blob_storage,
        fetcher=fetcher,
        image_storage=image_storage,
        image_generation=build_image_generation_service(settings, image_storage, fetcher),
        product_service=build_product_service(settings),
        affiliate_service=AffiliateService(AffiliateConfig(amazon_tag=settings.amazon_affiliate_tag)),
        product_processor=ProductProcessorService(ProductProcessorConfig(amazon_priority=True, title_cleaning=True)),
        projects=ProjectService(session_factory),
    )

    logger.info(
        f"Service container ready: generation={container.image_generation.provider_name}, "
        f"discovery={container.product_service.provider_name}"
    )
    return container


def get_container(request: Request) -> ServiceContainer:
    """FastAPI dependency; the container is built in the app lifespan"""
    return request.app.state.container


def get_pipeline(request: Request):
    return request.app.state.pipeline
