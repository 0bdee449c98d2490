"""
Pydantic schemas for uploaded and generated images
"""
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class ImageType(str, Enum):
    """Kind of image variant; decides storage folder and metadata table"""

    GENERATED = "generated"
    USER_UPLOADED = "user_uploaded"


@dataclass
class StoredImage:
    """Result of persisting an image"""

    url: str
    id: str
    fingerprint: Optional[str] = None


# Request schemas
class UploadRequest(BaseModel):
    """Schema for a base64 photo upload"""

    photo: Optional[str] = None  # Base64 or data URL
    filename: Optional[str] = None
    file_type: Optional[str] = Field(None, alias="fileType")
    project_id: Optional[str] = Field(None, alias="projectId")

    class Config:
        populate_by_name = True


class GenerateImageRequest(BaseModel):
    """Schema for styling an uploaded image"""

    image_id: Optional[str] = Field(None, alias="imageId")
    project_id: Optional[str] = Field(None, alias="projectId")
    room_type: Optional[str] = Field(None, alias="roomType")

    class Config:
        populate_by_name = True


# Response schemas
class UploadResponse(BaseModel):
    status: str = "success"
    image_id: str = Field(..., alias="imageId")
    image_url: str = Field(..., alias="imageUrl")
    blurhash: Optional[str] = None

    class Config:
        populate_by_name = True


class GenerateImageResponse(BaseModel):
    status: str = "success"
    image_id: str = Field(..., alias="imageId")
    image_url: str = Field(..., alias="imageUrl")
    descriptions: List[str] = []

    class Config:
        populate_by_name = True
