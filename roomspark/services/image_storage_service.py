"""
Image Store: durable identity and a fetchable URL for uploaded and generated images
"""
import logging
import uuid
from abc import ABC, abstractmethod
from typing import List, Optional, Union

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from roomspark.core.config import settings
from roomspark.core.database import get_db_session
from roomspark.core.exceptions import PersistenceError, ProcessingError, StorageError, UnauthorizedError
from roomspark.database.models import GeneratedImage, UploadedImage
from roomspark.schemas.images import ImageType, StoredImage
from roomspark.services.blob_storage import BlobStorage
from roomspark.services.image_fetcher import ImageFetcher
from roomspark.services.image_processor import compute_fingerprint

logger = logging.getLogger(__name__)

CANONICAL_CONTENT_TYPE = "image/png"

_FOLDERS = {
    ImageType.GENERATED: "generated-images",
    ImageType.USER_UPLOADED: "user_uploads",
}

_MODELS = {
    ImageType.GENERATED: GeneratedImage,
    ImageType.USER_UPLOADED: UploadedImage,
}


class ImageStorageService(ABC):
    """Storage contract used by the upload route and the generation providers"""

    @abstractmethod
    async def store_image(
        self,
        image_bytes: bytes,
        user_id: str,
        project_id: str,
        source: str,
        image_type: ImageType,
        descriptions: Optional[List[str]] = None,
        fingerprint: Optional[str] = None,
    ) -> StoredImage:
        ...

    @abstractmethod
    async def store_image_from_url(
        self,
        image_url: str,
        user_id: str,
        project_id: str,
        source: str,
        image_type: ImageType,
        descriptions: Optional[List[str]] = None,
    ) -> StoredImage:
        ...

    @abstractmethod
    async def get_image(
        self, image_id: str, user_id: str, image_type: ImageType, project_id: Optional[str] = None
    ) -> Union[UploadedImage, GeneratedImage]:
        ...


class BlobImageStorageService(ImageStorageService):
    """Blob bytes + one metadata row per image"""

    def __init__(
        self,
        blob_storage: BlobStorage,
        session_factory: async_sessionmaker = None,
        fetcher: ImageFetcher = None,
        signed_url_ttl_seconds: int = None,
    ):
        self.blob_storage = blob_storage
        self.session_factory = session_factory
        self.fetcher = fetcher or ImageFetcher(blob_storage)
        self.signed_url_ttl_seconds = signed_url_ttl_seconds or settings.signed_url_ttl_seconds

    @staticmethod
    def _resolve_type(image_type: ImageType) -> ImageType:
        try:
            return ImageType(image_type)
        except ValueError:
            raise StorageError(f"Invalid image type: {image_type}")

    async def store_image(
        self,
        image_bytes: bytes,
        user_id: str,
        project_id: str,
        source: str,
        image_type: ImageType,
        descriptions: Optional[List[str]] = None,
        fingerprint: Optional[str] = None,
    ) -> StoredImage:
        image_type = self._resolve_type(image_type)
        path = f"{_FOLDERS[image_type]}/{uuid.uuid4()}.png"

        await self.blob_storage.put(path, image_bytes, CANONICAL_CONTENT_TYPE)
        url = await self.blob_storage.get_signed_url(path, self.signed_url_ttl_seconds)

        if fingerprint is None:
            try:
                fingerprint = compute_fingerprint(image_bytes)
            except ProcessingError as e:
                # Added later once the bytes can be decoded
                logger.warning(f"Could not fingerprint {path}: {e.message}")

        model = _MODELS[image_type]
        record = model(
            user_id=user_id,
            project_id=project_id,
            file_path=path,
            file_url=url,
            file_type=CANONICAL_CONTENT_TYPE,
            file_size=len(image_bytes),
            source=source,
            blur_hash=fingerprint,
        )
        if image_type == ImageType.GENERATED:
            record.interior_description = list(descriptions or [])

        try:
            async with get_db_session(self.session_factory) as db:
                db.add(record)
                await db.flush()
                image_id = record.id
        except SQLAlchemyError as e:
            # The blob stays behind; orphans are not cleaned up here
            logger.error(f"Failed to record image {path}: {e}")
            raise PersistenceError(f"Failed to record image: {e.__class__.__name__}")

        logger.info(f"Stored {image_type.value} image {image_id} for project {project_id} ({len(image_bytes)} bytes)")
        return StoredImage(url=url, id=image_id, fingerprint=fingerprint)

    async def store_image_from_url(
        self,
        image_url: str,
        user_id: str,
        project_id: str,
        source: str,
        image_type: ImageType,
        descriptions: Optional[List[str]] = None,
    ) -> StoredImage:
        image_bytes = await self.fetcher.fetch(image_url)
        return await self.store_image(image_bytes, user_id, project_id, source, image_type, descriptions)

    async def get_image(
        self, image_id: str, user_id: str, image_type: ImageType, project_id: Optional[str] = None
    ) -> Union[UploadedImage, GeneratedImage]:
        model = _MODELS[self._resolve_type(image_type)]
        async with get_db_session(self.session_factory) as db:
            record = (await db.execute(select(model).where(model.id == image_id))).scalar_one_or_none()

        if record is None or record.user_id != user_id or (project_id and record.project_id != project_id):
            raise UnauthorizedError("Image not found or you don't have permission to access it")
        return record
