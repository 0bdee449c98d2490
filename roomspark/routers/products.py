"""
Product discovery and curation API routes
"""
from fastapi import APIRouter, Depends

from roomspark.core.auth import get_current_user_id
from roomspark.core.container import ServiceContainer, get_container, get_pipeline
from roomspark.core.exceptions import ValidationError, error_response
from roomspark.schemas.products import GetProductsRequest, GetProductsResponse, LikeProductRequest, LikeProductResponse
from roomspark.services.project_service import product_to_data
from roomspark.services.room_pipeline import RoomTransformationPipeline

router = APIRouter()


@router.post("/get-products", response_model=GetProductsResponse)
async def get_products(
    body: GetProductsRequest,
    user_id: str = Depends(get_current_user_id),
    pipeline: RoomTransformationPipeline = Depends(get_pipeline),
):
    """
    Find shoppable products for a generated image.
    useDescriptions switches to keyword search over the stored item descriptions.
    """
    if not body.image_id:
        raise ValidationError("Image ID is required")
    if not body.project_id:
        raise ValidationError("Project ID is required")

    result = await pipeline.discover_products(user_id, body.image_id, body.project_id, body.use_descriptions)
    if not result.success:
        return error_response(result.error, result.status_code)

    return GetProductsResponse(products=result.data)


@router.post("/like-product", response_model=LikeProductResponse)
async def like_product(
    body: LikeProductRequest,
    user_id: str = Depends(get_current_user_id),
    pipeline: RoomTransformationPipeline = Depends(get_pipeline),
):
    if not body.product_id:
        raise ValidationError("Product ID is required")
    if body.liked is None:
        raise ValidationError("Liked value must be a boolean")

    result = await pipeline.toggle_product_like(user_id, body.product_id, body.liked)
    if not result.success:
        return error_response(result.error, result.status_code)

    return LikeProductResponse(product_id=body.product_id)


@router.get("/get-liked-products", response_model=GetProductsResponse)
async def get_liked_products(
    user_id: str = Depends(get_current_user_id),
    container: ServiceContainer = Depends(get_container),
):
    products = await container.projects.list_liked_products(user_id)
    return GetProductsResponse(products=[product_to_data(p) for p in products])
