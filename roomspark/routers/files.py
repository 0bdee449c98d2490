"""
Signed file retrieval for locally stored blobs
"""
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from roomspark.core.container import ServiceContainer, get_container
from roomspark.core.exceptions import StorageError, UnauthorizedError

router = APIRouter()


@router.get("/{path:path}")
async def get_file(
    path: str,
    token: str = Query(""),
    container: ServiceContainer = Depends(get_container),
):
    """Serve a blob if token is a valid signature for its path"""
    blob_storage = container.blob_storage
    if not hasattr(blob_storage, "verify_signed_token"):
        raise StorageError("File not found", status_code=404)
    if not token:
        raise UnauthorizedError("Invalid or expired file token")

    blob_storage.verify_signed_token(path, token)
    data = await blob_storage.get(path)
    return Response(content=data, media_type="image/png", headers={"Cache-Control": "private, max-age=86400"})
