"""
Pydantic schemas for discovered products
"""
import uuid
from typing import List, Optional, Union

from pydantic import BaseModel, Field


class ProductPrice(BaseModel):
    """Price as reported by the marketplace"""

    value: Union[float, int]
    currency: str = ""


class ProductData(BaseModel):
    """Canonical product shape shared by all discovery providers"""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str = ""
    price: Optional[ProductPrice] = None
    link: str = ""
    image: str = ""
    description: Optional[str] = None
    liked: bool = False
    in_stock: bool = Field(False, alias="inStock")
    is_affiliate: bool = Field(False, alias="isAffiliate")
    source: str = ""

    class Config:
        populate_by_name = True


# Request schemas
class GetProductsRequest(BaseModel):
    """Schema for product discovery on a generated image"""

    image_id: Optional[str] = Field(None, alias="imageId")
    project_id: Optional[str] = Field(None, alias="projectId")
    use_descriptions: bool = Field(False, alias="useDescriptions")

    class Config:
        populate_by_name = True


class LikeProductRequest(BaseModel):
    """Schema for toggling a product's liked flag"""

    product_id: Optional[str] = Field(None, alias="productId")
    liked: Optional[bool] = None

    class Config:
        populate_by_name = True


# Response schemas
class GetProductsResponse(BaseModel):
    status: str = "success"
    products: List[ProductData] = []


class LikeProductResponse(BaseModel):
    status: str = "success"
    product_id: str = Field(..., alias="productId")

    class Config:
        populate_by_name = True
