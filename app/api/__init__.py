"""API router initialization."""

from fastapi import APIRouter

from app.api.files import router as files_router
from app.api.manifests import router as manifests_router

router = APIRouter()
router.include_router(manifests_router, prefix="/api/manifests", tags=["Manifests"])
router.include_router(files_router, prefix="/api/file", tags=["Files"])
