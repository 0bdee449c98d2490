"""
Image generation API route
"""
from fastapi import APIRouter, Depends

from roomspark.core.auth import get_current_user_id
from roomspark.core.container import get_pipeline
from roomspark.core.exceptions import ValidationError, error_response
from roomspark.schemas.images import GenerateImageRequest, GenerateImageResponse
from roomspark.services.room_pipeline import RoomTransformationPipeline

router = APIRouter()


@router.post("/generate-image", response_model=GenerateImageResponse)
async def generate_image(
    body: GenerateImageRequest,
    user_id: str = Depends(get_current_user_id),
    pipeline: RoomTransformationPipeline = Depends(get_pipeline),
):
    """Restyle an uploaded photo in the requested room style (roomType)"""
    if not body.image_id:
        raise ValidationError("Image ID is required")
    if not body.project_id:
        raise ValidationError("Project ID is required")

    result = await pipeline.generate_styled_image(user_id, body.image_id, body.project_id, body.room_type)
    if not result.success:
        return error_response(result.error, result.status_code)

    generated = result.data
    return GenerateImageResponse(
        image_id=generated.image_id,
        image_url=generated.image_url,
        descriptions=generated.descriptions,
    )
