"""Manifest API endpoints."""

from fastapi import APIRouter, Response, status
from fastapi.responses import JSONResponse

from app.core.deps import ManifestServiceDep, Repository
from app.core.exceptions import BlobNotFound
from app.schemas.registry import ManifestTreeResponse

router = APIRouter()


@router.get(
    "",
    response_model=ManifestTreeResponse,
    response_model_exclude_none=True,
)
async def get_manifests(
    repository: Repository,
    manifest_service: ManifestServiceDep,
):
    """
    Get repository manifests.

    - **repo**: 1-based repository index (default 1)

    Database-backed repositories return the folder tree. Other repositories
    return the raw image config of the ``latest`` manifest.
    """
    if manifest_service.uses_database(repository):
        return ManifestTreeResponse(files=await manifest_service.get_tree(repository))

    try:
        config = await manifest_service.get_image_config(repository)
    except BlobNotFound:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={})

    return Response(content=config, media_type="application/json")
