"""
Integration tests for the image store against sqlite and a temp blob directory
"""
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from roomspark.core.exceptions import PersistenceError, UnauthorizedError
from roomspark.schemas.images import ImageType
from roomspark.services.image_processor import compute_fingerprint, normalize_image
from roomspark.services.image_storage_service import BlobImageStorageService

USER_ID = "user-1"


class TestBlobImageStorageService:
    @pytest.mark.integration
    async def test_store_and_fetch_round_trip(self, image_storage, fetcher, project, image_factory):
        normalized = normalize_image(image_factory(800, 600), 1024)

        stored = await image_storage.store_image(
            normalized.canonical_bytes,
            USER_ID,
            project.id,
            "upload",
            ImageType.USER_UPLOADED,
            fingerprint=normalized.fingerprint,
        )

        assert stored.url.startswith("http://test/files/user_uploads/")
        assert "token=" in stored.url
        assert stored.fingerprint == normalized.fingerprint

        record = await image_storage.get_image(stored.id, USER_ID, ImageType.USER_UPLOADED, project.id)
        assert record.file_url == stored.url
        assert record.file_type == "image/png"
        assert record.file_size == len(normalized.canonical_bytes)

        fetched = await fetcher.fetch(stored.url)
        assert fetched == normalized.canonical_bytes
        assert compute_fingerprint(fetched) == stored.fingerprint

    @pytest.mark.integration
    async def test_generated_image_keeps_descriptions(self, image_storage, project, image_factory):
        stored = await image_storage.store_image(
            image_factory(64, 64),
            USER_ID,
            project.id,
            "openai",
            ImageType.GENERATED,
            descriptions=["Oak coffee table, round"],
        )

        record = await image_storage.get_image(stored.id, USER_ID, ImageType.GENERATED)
        assert "/generated-images/" in record.file_url
        assert record.source == "openai"
        assert record.interior_description == ["Oak coffee table, round"]
        assert record.blur_hash == stored.fingerprint

    @pytest.mark.integration
    async def test_undecodable_bytes_are_stored_without_fingerprint(self, image_storage, project):
        stored = await image_storage.store_image(b"not an image", USER_ID, project.id, "mock", ImageType.GENERATED)

        assert stored.id
        assert stored.fingerprint is None

    @pytest.mark.integration
    async def test_other_users_cannot_read(self, image_storage, project, image_factory):
        stored = await image_storage.store_image(image_factory(), USER_ID, project.id, "upload", ImageType.USER_UPLOADED)

        with pytest.raises(UnauthorizedError):
            await image_storage.get_image(stored.id, "user-2", ImageType.USER_UPLOADED)
        with pytest.raises(UnauthorizedError):
            await image_storage.get_image(stored.id, USER_ID, ImageType.USER_UPLOADED, "another-project")
        with pytest.raises(UnauthorizedError):
            await image_storage.get_image("missing-id", USER_ID, ImageType.USER_UPLOADED)

    @pytest.mark.integration
    async def test_store_from_url(self, image_storage, project, image_factory):
        first = await image_storage.store_image(image_factory(), USER_ID, project.id, "upload", ImageType.USER_UPLOADED)

        copy = await image_storage.store_image_from_url(first.url, USER_ID, project.id, "replicate", ImageType.GENERATED)

        assert copy.id != first.id
        assert copy.fingerprint == first.fingerprint

    @pytest.mark.integration
    async def test_metadata_failure_raises_persistence_error(self, blob_storage, fetcher, tmp_path, image_factory):
        # No tables in this database, so the insert fails after the blob is written
        engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
        broken_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        storage = BlobImageStorageService(blob_storage, broken_factory, fetcher)

        try:
            with pytest.raises(PersistenceError):
                await storage.store_image(image_factory(), USER_ID, "project-1", "upload", ImageType.USER_UPLOADED)
        finally:
            await engine.dispose()

        assert list((tmp_path / "storage" / "user_uploads").iterdir())
