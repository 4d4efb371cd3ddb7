"""
Registry File Proxy - FastAPI Application

Browse and download files stored in a Docker Registry v2 repository,
optionally listed from a manifest database.
"""

from contextlib import asynccontextmanager
from pathlib import Path

import httpx
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from loguru import logger
from starlette.middleware.httpsredirect import HTTPSRedirectMiddleware

from app.api import router as api_router
from app.core.config import get_settings
from app.core.exceptions import (
    BlobNotFound,
    LoginRequired,
    RegistryProxyError,
    RepositoryNotFound,
    UpstreamError,
)
from app.core.repositories import RepositoryRegistry
from app.services.manifest_store import create_manifest_store
from app.services.registry_client import RegistryClient
from app.services.token_service import TokenService

settings = get_settings()


async def init_manifest_store(app: FastAPI) -> None:
    """Create the manifest store and one database per repository."""
    store = create_manifest_store(settings, app.state.http_client)
    app.state.manifest_store = store
    if not store:
        logger.info("Manifest store disabled - listing from registry")
        return

    for repository in app.state.repositories:
        await store.ensure_database(repository.database_name)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info("Starting Registry File Proxy...")

    app.state.http_client = httpx.AsyncClient(timeout=settings.default_timeout)
    app.state.repositories = RepositoryRegistry.load(settings.repository_file)
    app.state.registry_client = RegistryClient(
        app.state.http_client,
        app.state.repositories,
        token_service=TokenService(app.state.http_client, timeout=settings.auth_timeout),
        default_timeout=settings.default_timeout,
        auth_timeout=settings.auth_timeout,
    )
    await init_manifest_store(app)

    logger.info(f"To view your app, open this link in your browser: http://localhost:{settings.port}")

    yield

    # Shutdown
    logger.info("Shutting down Registry File Proxy...")
    if app.state.manifest_store:
        await app.state.manifest_store.close()
    await app.state.http_client.aclose()
    logger.info("Registry File Proxy stopped")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Registry File Proxy - browse and download registry blobs",
    lifespan=lifespan,
    docs_url="/swagger" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

if settings.force_https:
    app.add_middleware(HTTPSRedirectMiddleware)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


# Exception handlers
@app.exception_handler(UpstreamError)
async def upstream_exception_handler(request: Request, exc: UpstreamError) -> JSONResponse:
    """Upstream 404 becomes an empty 404, everything else a generic 400."""
    logger.error(
        f"Upstream error: {request.method} {exc.url} -> {exc.status_code}\n{exc.body}"
    )
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={})
    return _error(status.HTTP_400_BAD_REQUEST, RegistryProxyError.message)


@app.exception_handler(LoginRequired)
async def login_required_handler(request: Request, exc: LoginRequired) -> JSONResponse:
    logger.warning(f"Registry login required: {exc.authenticate_header}")
    return _error(status.HTTP_401_UNAUTHORIZED, exc.message)


@app.exception_handler(BlobNotFound)
@app.exception_handler(RepositoryNotFound)
async def not_found_handler(request: Request, exc: RegistryProxyError) -> JSONResponse:
    logger.warning(f"{request.url.path}: {exc}")
    return _error(status.HTTP_404_NOT_FOUND, exc.message)


@app.exception_handler(RegistryProxyError)
@app.exception_handler(httpx.HTTPError)
@app.exception_handler(ValueError)
async def proxy_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Any other failure is reported as an opaque 400."""
    logger.error(f"{request.method} {request.url.path} failed: {exc!r}")
    return _error(status.HTTP_400_BAD_REQUEST, RegistryProxyError.message)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler."""
    logger.error(f"Unhandled exception: {exc!r}")
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, RegistryProxyError.message)


# Include API router
app.include_router(api_router)


# Static front-end (index.html, images, css)
views_path = Path(settings.views_path)
if views_path.exists():
    app.mount(
        "/",
        StaticFiles(directory=str(views_path), html=True),
        name="views",
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        workers=settings.workers,
        proxy_headers=True,
        forwarded_allow_ips="*",
    )
