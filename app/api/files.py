"""File download API endpoints."""

import httpx
from fastapi import APIRouter, Query
from fastapi.responses import PlainTextResponse, RedirectResponse, StreamingResponse
from loguru import logger
from starlette.background import BackgroundTask

from app.core.config import get_settings
from app.core.deps import RegistryClientDep, Repository

settings = get_settings()

router = APIRouter()

# Body is forwarded decoded, so the upstream Content-Length does not apply
FORWARDED_HEADERS = ("Content-Type",)


@router.get("/{digest}", response_model=None)
async def get_file(
    digest: str,
    repository: Repository,
    registry_client: RegistryClientDep,
    file_type: str | None = Query(None, alias="type"),
):
    """
    Resolve a file blob.

    - **digest**: sha256 hex digest (without the ``sha256:`` prefix)
    - **repo**: 1-based repository index (default 1)
    - **type**: ``download`` streams content, ``source`` redirects (307),
      otherwise the download URL is returned as text
    """
    download_url = await registry_client.get_download_url(repository, f"sha256:{digest}")

    if file_type == "source":
        return RedirectResponse(download_url, status_code=307)

    if file_type != "download":
        return PlainTextResponse(download_url)

    upstream = await registry_client.open_stream(
        download_url,
        timeout=httpx.Timeout(
            settings.stream_connect_timeout,
            read=settings.stream_read_timeout,
        ),
    )

    async def stream_blob():
        try:
            async for chunk in upstream.aiter_bytes():
                yield chunk
        finally:
            await upstream.aclose()

    response_headers = {"Connection": "close"}
    for name in FORWARDED_HEADERS:
        if name in upstream.headers:
            response_headers[name] = upstream.headers[name]

    logger.debug(f"Streaming {digest} from {repository.origin}")
    return StreamingResponse(
        stream_blob(),
        status_code=200,
        headers=response_headers,
        background=BackgroundTask(upstream.aclose),
    )
