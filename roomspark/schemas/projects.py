"""
Pydantic schemas for projects
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from roomspark.schemas.products import ProductData


# Request schemas
class ProjectCreate(BaseModel):
    """Schema for creating a project; name defaults to "Project N" when omitted"""

    name: Optional[str] = Field(None, max_length=200)


# Response schemas
class ProjectSummary(BaseModel):
    """Project in list view; image is the newest generated image URL"""

    id: str
    name: str
    image: str = ""
    created_at: datetime

    class Config:
        from_attributes = True


class ProjectImage(BaseModel):
    """Upload or generated image as shown on the project screen"""

    id: str
    url: str
    type: str  # "upload" or "generated"
    created_at: datetime
    source: str
    blurhash: Optional[str] = None
    descriptions: List[str] = []


class CreateProjectResponse(BaseModel):
    status: str = "success"
    project: ProjectSummary


class GetProjectsResponse(BaseModel):
    status: str = "success"
    projects: List[ProjectSummary]


class GetProjectDetailsResponse(BaseModel):
    status: str = "success"
    project: ProjectSummary
    uploads: List[ProjectImage]
    generated: List[ProjectImage]
    products: List[ProductData]
