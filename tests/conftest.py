"""
Shared pytest fixtures and configuration for all tests
"""
import io
import os

# Settings are read at import time; point them at sqlite and the mock providers first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("IMAGE_GENERATION_PROVIDER", "mock")
os.environ.setdefault("PRODUCT_DISCOVERY_PROVIDER", "mock")
os.environ.setdefault("LOG_FORMAT", "console")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from jose import jwt
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from roomspark.core.config import settings
from roomspark.core.container import ServiceContainer
from roomspark.core.database import create_tables
from roomspark.services.blob_storage import LocalBlobStorage
from roomspark.services.image_fetcher import ImageFetcher
from roomspark.services.image_generation import MockImageService
from roomspark.services.image_storage_service import BlobImageStorageService
from roomspark.services.products import (
    AffiliateConfig,
    AffiliateService,
    MockProductService,
    ProductProcessorConfig,
    ProductProcessorService,
)
from roomspark.services.project_service import ProjectService
from roomspark.services.room_pipeline import RoomTransformationPipeline

TEST_BASE_URL = "http://test"
USER_ID = "user-1"
OTHER_USER_ID = "user-2"


def make_image_bytes(width: int = 640, height: int = 480, color=(180, 120, 90), image_format: str = "PNG") -> bytes:
    """Encoded solid-color image"""
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color=color).save(buffer, format=image_format)
    return buffer.getvalue()


def auth_headers(user_id: str = USER_ID) -> dict:
    token = jwt.encode({"sub": user_id}, settings.secret_key, algorithm=settings.algorithm)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def no_retry_delay(monkeypatch):
    """Run retry loops without sleeping"""
    monkeypatch.setattr(settings, "generation_retry_delay", 0)


@pytest.fixture
async def test_engine():
    """In-memory sqlite shared by every session of one test"""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False,
    )
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def blob_storage(tmp_path):
    return LocalBlobStorage(str(tmp_path / "storage"), TEST_BASE_URL, "test-secret-key", "HS256")


@pytest.fixture
def fetcher(blob_storage):
    return ImageFetcher(blob_storage, timeout_seconds=5)


@pytest.fixture
def image_storage(blob_storage, session_factory, fetcher):
    return BlobImageStorageService(blob_storage, session_factory, fetcher)


@pytest.fixture
def project_service(session_factory):
    return ProjectService(session_factory)


@pytest.fixture
async def project(project_service):
    return await project_service.create_project(USER_ID, "Living Room")


@pytest.fixture
def container(session_factory, blob_storage, fetcher, image_storage, project_service):
    """Container wired with the mock providers and no artificial delays"""
    return ServiceContainer(
        session_factory=session_factory,
        blob_storage=blob_storage,
        fetcher=fetcher,
        image_storage=image_storage,
        image_generation=MockImageService(image_storage, fetcher, delay_seconds=0, image_url=""),
        product_service=MockProductService(delay_seconds=0),
        affiliate_service=AffiliateService(AffiliateConfig(amazon_tag="roomspark-20")),
        product_processor=ProductProcessorService(ProductProcessorConfig()),
        projects=project_service,
    )


@pytest.fixture
def pipeline(container):
    return RoomTransformationPipeline(container)


@pytest.fixture
def sample_png_bytes():
    return make_image_bytes()


@pytest.fixture
def sample_base64_image():
    """1x1 transparent PNG as a data URL"""
    return "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="


@pytest.fixture
def image_factory():
    return make_image_bytes


@pytest.fixture
def auth_header_factory():
    return auth_headers
