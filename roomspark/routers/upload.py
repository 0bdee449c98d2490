"""
Upload API route: base64 photo in, normalized stored image out
"""
from fastapi import APIRouter, Depends

from roomspark.core.auth import get_current_user_id
from roomspark.core.container import get_pipeline
from roomspark.core.exceptions import ValidationError, error_response
from roomspark.middleware.logging_middleware import get_logger
from roomspark.schemas.images import UploadRequest, UploadResponse
from roomspark.services.image_processor import decode_base64_image
from roomspark.services.room_pipeline import RoomTransformationPipeline

logger = get_logger(__name__)
router = APIRouter()


@router.post("/upload", response_model=UploadResponse)
async def upload_photo(
    body: UploadRequest,
    user_id: str = Depends(get_current_user_id),
    pipeline: RoomTransformationPipeline = Depends(get_pipeline),
):
    """
    Store a room photo for a project.
    The photo is normalized to a square PNG and fingerprinted before storage.
    """
    if not body.photo:
        raise ValidationError("Photo is required")
    if not body.project_id:
        raise ValidationError("Project ID is required")

    image_bytes = decode_base64_image(body.photo)
    logger.info(f"Upload received: {len(image_bytes) / 1024 / 1024:.2f}MB")

    result = await pipeline.upload_image(user_id, body.project_id, image_bytes)
    if not result.success:
        return error_response(result.error, result.status_code)

    stored = result.data
    return UploadResponse(image_id=stored.id, image_url=stored.url, blurhash=stored.fingerprint)
