"""Manifest stores backing the database listing mode."""

from typing import Any, Protocol

import httpx
from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine

from app.core.config import Settings
from app.core.exceptions import UpstreamError
from app.db.base import Base
from app.db.session import create_engine, create_session_maker
from app.models.manifest import ManifestDocument

MANIFEST_FIELDS = ["_id", "name", "type", "digest", "size", "uploadTime", "uuid"]


class ManifestStore(Protocol):
    """Key-sorted document store holding manifest records."""

    async def ensure_database(self, database: str) -> None:
        """Create the database if it does not exist."""
        ...

    async def find_all(self, database: str) -> list[dict[str, Any]]:
        """Get all manifest documents, newest upload first."""
        ...

    async def close(self) -> None:
        """Release resources."""
        ...


class CouchManifestStore:
    """CouchDB / Cloudant store reached over its HTTP API."""

    def __init__(self, client: httpx.AsyncClient, base_url: str, timeout: float = 10.0):
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    async def ensure_database(self, database: str) -> None:
        response = await self._client.put(
            f"{self._base_url}/{database}",
            timeout=self._timeout,
        )
        if response.status_code in (201, 202):
            logger.info(f"Created database: {database}")
        elif response.status_code == 412:
            logger.info(f"Database exists: {database}")
        else:
            logger.error(
                f"Failed to create database {database}: "
                f"{response.status_code} - {response.text}"
            )

    async def find_all(self, database: str) -> list[dict[str, Any]]:
        response = await self._client.post(
            f"{self._base_url}/{database}/_find",
            json={
                "selector": {"_id": {"$gt": "0"}},
                "fields": MANIFEST_FIELDS,
                "sort": [{"uploadTime": "desc"}],
            },
            timeout=self._timeout,
        )
        if response.is_error:
            raise UpstreamError(
                status_code=response.status_code,
                body=response.text,
                url=str(response.request.url),
            )
        return response.json().get("docs", [])

    async def close(self) -> None:
        """Client is shared and closed by the application."""


class SqlManifestStore:
    """SQLAlchemy store with one table partitioned by database name."""

    def __init__(self, engine: AsyncEngine):
        self._engine = engine
        self._session_maker = create_session_maker(engine)

    @classmethod
    def from_url(cls, database_url: str) -> "SqlManifestStore":
        return cls(create_engine(database_url))

    async def ensure_database(self, database: str) -> None:
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(f"Database ready: {database}")

    async def find_all(self, database: str) -> list[dict[str, Any]]:
        async with self._session_maker() as session:
            result = await session.execute(
                select(ManifestDocument)
                .where(ManifestDocument.database == database)
                .where(ManifestDocument.id > "0")
                .order_by(ManifestDocument.upload_time.desc())
            )
            return [doc.to_document() for doc in result.scalars().all()]

    async def add(self, database: str, documents: list[dict[str, Any]]) -> None:
        """Insert manifest documents into a database."""
        async with self._session_maker() as session:
            for doc in documents:
                session.add(
                    ManifestDocument(
                        database=database,
                        id=doc["_id"],
                        name=doc.get("name"),
                        type=doc.get("type"),
                        digest=doc.get("digest"),
                        size=doc.get("size"),
                        upload_time=doc.get("uploadTime"),
                        uuid=doc.get("uuid"),
                    )
                )
            await session.commit()

    async def close(self) -> None:
        await self._engine.dispose()


def create_manifest_store(
    settings: Settings,
    client: httpx.AsyncClient,
) -> ManifestStore | None:
    """Create the manifest store selected by settings, or None."""
    if settings.manifest_store == "couchdb":
        if not settings.couchdb_url:
            logger.warning("MANIFEST_STORE=couchdb but COUCHDB_URL is not set")
            return None
        return CouchManifestStore(client, settings.couchdb_url, settings.auth_timeout)

    if settings.manifest_store == "sql":
        return SqlManifestStore.from_url(settings.sql_database_url)

    return None
