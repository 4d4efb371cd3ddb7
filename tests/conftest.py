"""Pytest configuration and fixtures."""

from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.deps import (
    get_manifest_store,
    get_registry_client,
    get_repository_registry,
)
from app.core.repositories import RepositoryRegistry
from app.main import app
from app.services.manifest_store import SqlManifestStore
from app.services.registry_client import RegistryClient

# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

REGISTRY_HOST = "registry.example.com"
AUTH_REALM = "https://auth.example.com/token"
CDN = "https://cdn.example/blob"

CONFIG_DIGEST = "sha256:c0ffee"
FILE_DIGEST = "abcd"


class FakeRegistry:
    """
    Registry v2 API, token endpoint and blob storage behind httpx.MockTransport.

    The registry accepts only ``valid_token``; the token endpoint answers
    with ``token_body``. Every request is recorded.
    """

    def __init__(self):
        self.valid_token = "fresh-token"
        self.token_body: dict = {"token": "fresh-token"}
        self.token_status = 200
        self.scope: str | None = "repository:ns/files:pull"
        self.manifest: dict = {"config": {"digest": CONFIG_DIGEST}}
        self.manifest_status = 200
        # digest -> Location (None means "200 without Location")
        self.blobs: dict[str, str | None] = {
            CONFIG_DIGEST: f"{CDN}/config",
            f"sha256:{FILE_DIGEST}": f"{CDN}/{FILE_DIGEST}",
        }
        self.content: dict[str, bytes] = {
            f"{CDN}/config": b'{"architecture": "amd64"}',
            f"{CDN}/{FILE_DIGEST}": b"hello world",
        }
        # url -> prepared response, checked before `content`
        self.cdn_responses: dict[str, httpx.Response] = {}
        self.requests: list[httpx.Request] = []

    @property
    def challenge(self) -> str:
        header = f'Bearer realm="{AUTH_REALM}",service="{REGISTRY_HOST}"'
        if self.scope:
            header += f',scope="{self.scope}"'
        return header

    def requests_to(self, host: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host == host]

    @property
    def registry_requests(self) -> list[httpx.Request]:
        return self.requests_to(REGISTRY_HOST)

    @property
    def token_requests(self) -> list[httpx.Request]:
        return self.requests_to("auth.example.com")

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host

        if host == "auth.example.com":
            return httpx.Response(self.token_status, json=self.token_body)

        if host == REGISTRY_HOST:
            if request.headers.get("Authorization") != f"Bearer {self.valid_token}":
                return httpx.Response(401, headers={"WWW-Authenticate": self.challenge})

            path = request.url.path
            if path.endswith("/manifests/latest"):
                return httpx.Response(self.manifest_status, json=self.manifest)

            if "/blobs/" in path:
                digest = path.rsplit("/", 1)[1]
                if digest not in self.blobs:
                    return httpx.Response(404, json={"errors": [{"code": "BLOB_UNKNOWN"}]})
                location = self.blobs[digest]
                if location is None:
                    return httpx.Response(200)
                return httpx.Response(307, headers={"Location": location})

        if host == "cdn.example":
            if str(request.url) in self.cdn_responses:
                return self.cdn_responses[str(request.url)]
            data = self.content.get(str(request.url))
            if data is None:
                return httpx.Response(404)
            return httpx.Response(
                200,
                content=data,
                headers={"Content-Type": "application/octet-stream"},
            )

        return httpx.Response(404)


@pytest.fixture
def fake_registry() -> FakeRegistry:
    """Create fake upstream registry."""
    return FakeRegistry()


@pytest_asyncio.fixture(scope="function")
async def http_client(fake_registry: FakeRegistry) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Create outbound HTTP client routed to the fake registry."""
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake_registry)) as client:
        yield client


@pytest.fixture
def repositories() -> RepositoryRegistry:
    """Create two configured repositories sharing one account."""
    return RepositoryRegistry.from_config(
        {
            "url": f"{REGISTRY_HOST}/ns/files\r\n{REGISTRY_HOST}/ns/other\n",
            "account": "user:secret",
        }
    )


@pytest.fixture
def registry_client(
    http_client: httpx.AsyncClient, repositories: RepositoryRegistry
) -> RegistryClient:
    """Create registry client."""
    return RegistryClient(http_client, repositories)


@pytest_asyncio.fixture(scope="function")
async def sql_store() -> AsyncGenerator[SqlManifestStore, None]:
    """Create in-memory SQL manifest store."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
    )
    store = SqlManifestStore(engine)
    await store.ensure_database("test")

    yield store

    await store.close()


@pytest.fixture
def manifest_store():
    """Manifest store used by the app; None means registry mode."""
    return None


@pytest_asyncio.fixture(scope="function")
async def client(
    repositories: RepositoryRegistry,
    registry_client: RegistryClient,
    manifest_store,
) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client with overridden dependencies."""
    app.dependency_overrides[get_repository_registry] = lambda: repositories
    app.dependency_overrides[get_registry_client] = lambda: registry_client
    app.dependency_overrides[get_manifest_store] = lambda: manifest_store

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def sample_records() -> list[dict]:
    """Manifest records ordered by upload time, newest first."""
    return [
        {"_id": "root:1", "uuid": "u1", "type": "folder", "name": "docs", "uploadTime": 600},
        {"_id": "u1:2", "type": "file", "name": "a.txt", "digest": "d1", "size": 10, "uploadTime": 500},
        {"_id": "u1:3", "uuid": "u3", "type": "folder", "name": "nested", "uploadTime": 400},
        {"_id": "u3:4", "type": "file", "name": "b.txt", "digest": "d2", "size": 20, "uploadTime": 300},
        {"_id": "root:5", "type": "file", "name": "c.txt", "digest": "d1", "size": 10, "uploadTime": 200},
        {"_id": "u1:6", "type": "file", "name": "d.txt", "digest": "d3", "size": 30, "uploadTime": 100},
    ]
