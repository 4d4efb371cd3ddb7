"""Service layer for business logic."""

from app.services.manifest_service import ManifestService
from app.services.manifest_store import CouchManifestStore, ManifestStore, SqlManifestStore
from app.services.manifest_tree import build_manifest_tree
from app.services.registry_client import RegistryClient
from app.services.token_service import TokenService

__all__ = [
    "CouchManifestStore",
    "ManifestService",
    "ManifestStore",
    "RegistryClient",
    "SqlManifestStore",
    "TokenService",
    "build_manifest_tree",
]
