"""Bearer token negotiation against a registry token endpoint."""

import re

import httpx
from loguru import logger

from app.core.exceptions import AuthHeaderMissing, TokenFetchFailed
from app.schemas.registry import AuthChallenge

_CHALLENGE = re.compile(
    r'^Bearer realm="([^"]*)",service="([^"]*)"(?:,scope="([^"]*)")?'
)


def parse_challenge(authenticate_header: str | None) -> AuthChallenge:
    """
    Parse a ``WWW-Authenticate`` Bearer challenge.

    Raises:
        AuthHeaderMissing: header absent, or realm/service missing
    """
    if not authenticate_header:
        raise AuthHeaderMissing("No WWW-Authenticate header")

    match = _CHALLENGE.match(authenticate_header)
    if not match:
        raise AuthHeaderMissing(f"Unrecognised challenge: {authenticate_header}")

    realm, service, scope = match.groups()
    if not realm or not service:
        raise AuthHeaderMissing(f"Challenge lacks realm or service: {authenticate_header}")

    return AuthChallenge(realm=realm, service=service, scope=scope or None)


class TokenService:
    """Exchanges Bearer challenges for registry access tokens."""

    def __init__(self, client: httpx.AsyncClient, timeout: float = 10.0):
        self._client = client
        self._timeout = timeout

    async def fetch_token(
        self,
        authenticate_header: str | None,
        basic_secret: str = "",
    ) -> str:
        """
        Fetch a token for the given challenge.

        Args:
            authenticate_header: Raw ``WWW-Authenticate`` value from a 401
            basic_secret: Base64 account credential, empty for anonymous

        Returns:
            The bearer token string

        Raises:
            AuthHeaderMissing: challenge could not be parsed
            TokenFetchFailed: request failed or body carried no token
        """
        challenge = parse_challenge(authenticate_header)

        headers = {}
        if basic_secret:
            headers["Authorization"] = f"Basic {basic_secret}"

        try:
            response = await self._client.get(
                challenge.token_url,
                headers=headers,
                timeout=self._timeout,
            )
        except httpx.HTTPError as e:
            logger.error(f"Token request to {challenge.realm} failed: {e}")
            raise TokenFetchFailed(str(e)) from e

        if response.is_error:
            logger.error(
                f"Token endpoint {challenge.realm} returned "
                f"{response.status_code} - {response.text}"
            )
            raise TokenFetchFailed(f"Token endpoint returned {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise TokenFetchFailed("Token endpoint returned invalid JSON") from e

        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            raise TokenFetchFailed("Token endpoint returned no token")

        logger.info(f"Fetched new token from {challenge.realm}")
        return token
