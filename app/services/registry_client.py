"""Registry v2 client with Bearer token negotiation and single retry."""

from typing import Any

import httpx
from loguru import logger

from app.core.exceptions import (
    AuthHeaderMissing,
    BlobNotFound,
    LoginRequired,
    TokenFetchFailed,
    UpstreamError,
)
from app.core.repositories import RepositoryConfig, RepositoryRegistry
from app.services.token_service import TokenService

MANIFEST_V2 = "application/vnd.docker.distribution.manifest.v2+json"


def _raise_for_error(response: httpx.Response) -> httpx.Response:
    """Raise UpstreamError for 4xx/5xx, return everything else."""
    if response.is_error:
        raise UpstreamError(
            status_code=response.status_code,
            body=response.text,
            url=str(response.request.url),
        )
    return response


class RegistryClient:
    """
    Client for one or more registry repositories.

    Requests carry the repository's cached token when there is one. A 401
    triggers exactly one token negotiation and one retry of the original
    request; a second 401 surfaces as LoginRequired.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        registry: RepositoryRegistry,
        token_service: TokenService | None = None,
        default_timeout: float = 60.0,
        auth_timeout: float = 10.0,
    ):
        self._client = client
        self._registry = registry
        self._token_service = token_service or TokenService(client, timeout=auth_timeout)
        self._default_timeout = default_timeout
        self._auth_timeout = auth_timeout

    async def _request(
        self,
        url: str,
        token: str,
        headers: dict[str, str] | None,
        timeout: float | None,
        follow_redirects: bool,
    ) -> httpx.Response:
        request_headers = dict(headers or {})
        if token:
            request_headers["Authorization"] = f"Bearer {token}"

        return await self._client.get(
            url,
            headers=request_headers,
            timeout=timeout if timeout is not None else self._default_timeout,
            follow_redirects=follow_redirects,
        )

    async def send(
        self,
        repository: RepositoryConfig,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
        follow_redirects: bool = True,
    ) -> httpx.Response:
        """
        Send an authenticated GET request to the registry.

        Args:
            repository: Repository whose cached token and secret are used
            url: Target URL
            headers: Extra request headers
            timeout: Request timeout in seconds (default 60)
            follow_redirects: Whether httpx follows 3xx responses

        Returns:
            The 2xx/3xx response

        Raises:
            LoginRequired: negotiation failed or the retry was rejected again
            UpstreamError: any other 4xx/5xx status
        """
        response = await self._request(
            url, repository.cached_token, headers, timeout, follow_redirects
        )
        if response.status_code != 401:
            return _raise_for_error(response)

        authenticate_header = response.headers.get("www-authenticate")
        try:
            token = await self._token_service.fetch_token(
                authenticate_header, repository.basic_secret
            )
        except (AuthHeaderMissing, TokenFetchFailed) as e:
            logger.warning(f"Token negotiation for {repository.origin} failed: {e}")
            raise LoginRequired(authenticate_header) from e

        await self._registry.store_token(repository, token)

        retry = await self._request(url, token, headers, timeout, follow_redirects)
        if retry.status_code == 401:
            logger.warning(f"Registry rejected refreshed token for {repository.origin}")
            raise LoginRequired(retry.headers.get("www-authenticate"))

        return _raise_for_error(retry)

    async def get_download_url(self, repository: RepositoryConfig, digest: str) -> str:
        """
        Resolve a blob digest to its content-addressed storage location.

        The registry answers with a redirect; the raw Location header is
        returned without following it.

        Raises:
            BlobNotFound: the response carried no Location header
        """
        url = f"{repository.base_url}/blobs/{digest}"
        response = await self.send(
            repository,
            url,
            timeout=self._auth_timeout,
            follow_redirects=False,
        )

        location = response.headers.get("location")
        if not location:
            raise BlobNotFound(digest)
        return location

    async def get_manifest(self, repository: RepositoryConfig) -> dict[str, Any]:
        """Get the ``latest`` image manifest."""
        response = await self.send(
            repository,
            f"{repository.base_url}/manifests/latest",
            headers={"Accept": MANIFEST_V2},
        )
        return response.json()

    async def fetch_content(self, url: str) -> bytes:
        """Fetch located blob content; storage URLs need no registry auth."""
        response = await self._client.get(url, timeout=self._default_timeout)
        return _raise_for_error(response).content

    async def open_stream(self, url: str, timeout: httpx.Timeout) -> httpx.Response:
        """
        Open a streaming GET to located blob content.

        The caller owns the returned response and must close it.
        """
        request = self._client.build_request("GET", url, timeout=timeout)
        response = await self._client.send(request, stream=True, follow_redirects=True)
        if response.is_error:
            await response.aread()
            await response.aclose()
            _raise_for_error(response)
        return response
