"""Manifest listing from the manifest store or the live registry."""

from app.core.exceptions import BlobNotFound
from app.core.repositories import RepositoryConfig
from app.schemas.registry import ManifestNode
from app.services.manifest_store import ManifestStore
from app.services.manifest_tree import build_manifest_tree
from app.services.registry_client import RegistryClient


class ManifestService:
    """Manifest service for database and registry listing modes."""

    def __init__(self, registry_client: RegistryClient, store: ManifestStore | None = None):
        self._registry_client = registry_client
        self._store = store

    def uses_database(self, repository: RepositoryConfig) -> bool:
        """Check if the repository is listed from the manifest store."""
        return repository.use_database and self._store is not None

    async def get_tree(self, repository: RepositoryConfig) -> list[ManifestNode]:
        """Get the folder tree from the repository's manifest database."""
        docs = await self._store.find_all(repository.database_name)
        return build_manifest_tree(docs)

    async def get_image_config(self, repository: RepositoryConfig) -> bytes:
        """
        Get the raw image config of the ``latest`` manifest.

        Raises:
            BlobNotFound: manifest has no config digest, or the config blob
                has no download location
        """
        manifest = await self._registry_client.get_manifest(repository)
        config = manifest.get("config") if isinstance(manifest, dict) else None
        digest = config.get("digest") if isinstance(config, dict) else None
        if not digest:
            raise BlobNotFound("config")

        config_url = await self._registry_client.get_download_url(repository, digest)
        return await self._registry_client.fetch_content(config_url)
