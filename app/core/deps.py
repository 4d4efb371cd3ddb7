"""FastAPI dependencies for dependency injection."""

from typing import Annotated

from fastapi import Depends, Query, Request

from app.core.repositories import RepositoryConfig, RepositoryRegistry
from app.services.manifest_service import ManifestService
from app.services.manifest_store import ManifestStore
from app.services.registry_client import RegistryClient


def get_repository_registry(request: Request) -> RepositoryRegistry:
    """Get repository registry created on startup."""
    return request.app.state.repositories


def get_registry_client(request: Request) -> RegistryClient:
    """Get registry client created on startup."""
    return request.app.state.registry_client


def get_manifest_store(request: Request) -> ManifestStore | None:
    """Get manifest store created on startup, None when disabled."""
    return getattr(request.app.state, "manifest_store", None)


def get_repository(
    registry: Annotated[RepositoryRegistry, Depends(get_repository_registry)],
    repo: Annotated[str | None, Query()] = None,
) -> RepositoryConfig:
    """Resolve the ``repo`` query parameter (1-based, default 1)."""
    return registry.resolve(repo)


def get_manifest_service(
    registry_client: Annotated[RegistryClient, Depends(get_registry_client)],
    store: Annotated[ManifestStore | None, Depends(get_manifest_store)],
) -> ManifestService:
    """Get manifest service."""
    return ManifestService(registry_client, store)


# Type aliases for cleaner dependency injection
Repositories = Annotated[RepositoryRegistry, Depends(get_repository_registry)]
Repository = Annotated[RepositoryConfig, Depends(get_repository)]
RegistryClientDep = Annotated[RegistryClient, Depends(get_registry_client)]
ManifestServiceDep = Annotated[ManifestService, Depends(get_manifest_service)]
