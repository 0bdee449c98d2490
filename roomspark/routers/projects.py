"""
Project API routes
"""
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query

from roomspark.core.auth import get_current_user_id
from roomspark.core.container import ServiceContainer, get_container
from roomspark.core.exceptions import ValidationError
from roomspark.schemas.projects import (
    CreateProjectResponse,
    GetProjectDetailsResponse,
    GetProjectsResponse,
    ProjectCreate,
    ProjectImage,
    ProjectSummary,
)
from roomspark.services.project_service import product_to_data

router = APIRouter()


@router.post("/create-project", response_model=CreateProjectResponse)
async def create_project(
    body: Optional[ProjectCreate] = Body(None),
    user_id: str = Depends(get_current_user_id),
    container: ServiceContainer = Depends(get_container),
):
    """Create a project; unnamed projects are called "Project N" """
    project = await container.projects.create_project(user_id, body.name if body else None)
    return CreateProjectResponse(
        project=ProjectSummary(id=project.id, name=project.name, image="", created_at=project.created_at)
    )


@router.get("/get-projects", response_model=GetProjectsResponse)
async def get_projects(
    user_id: str = Depends(get_current_user_id),
    container: ServiceContainer = Depends(get_container),
):
    """List the caller's projects, newest first, with their latest generated image"""
    projects = await container.projects.list_projects(user_id)
    return GetProjectsResponse(
        projects=[
            ProjectSummary(id=project.id, name=project.name, image=image_url, created_at=project.created_at)
            for project, image_url in projects
        ]
    )


@router.get("/get-project", response_model=GetProjectDetailsResponse)
async def get_project(
    project_id: str = Query(None, alias="projectId"),
    user_id: str = Depends(get_current_user_id),
    container: ServiceContainer = Depends(get_container),
):
    if not project_id:
        raise ValidationError("Project ID is required")

    project, uploads, generated, products = await container.projects.get_project_details(user_id, project_id)

    formatted_uploads = [
        ProjectImage(
            id=upload.id,
            url=upload.file_url,
            type="upload",
            created_at=upload.created_at,
            source="upload",
            blurhash=upload.blur_hash,
        )
        for upload in uploads
    ]
    formatted_generated = [
        ProjectImage(
            id=image.id,
            url=image.file_url,
            type="generated",
            created_at=image.created_at,
            source=image.source or "",
            blurhash=image.blur_hash,
            descriptions=image.interior_description or [],
        )
        for image in generated
    ]

    # Cover image: newest upload, else newest generated
    cover = formatted_uploads[0].url if formatted_uploads else (formatted_generated[0].url if formatted_generated else "")

    return GetProjectDetailsResponse(
        project=ProjectSummary(id=project.id, name=project.name, image=cover, created_at=project.created_at),
        uploads=formatted_uploads,
        generated=formatted_generated,
        products=[product_to_data(p) for p in products],
    )
