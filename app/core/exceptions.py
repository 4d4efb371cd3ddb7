"""Error taxonomy for the registry proxy."""


class RegistryProxyError(Exception):
    """Base class for all proxy errors."""

    message = "Unknown error"


class AuthHeaderMissing(RegistryProxyError):
    """WWW-Authenticate challenge absent or lacking realm/service."""

    message = "Failed to read authentication header"


class TokenFetchFailed(RegistryProxyError):
    """Token endpoint errored or returned no token."""

    message = "Failed to fetch token"


class LoginRequired(RegistryProxyError):
    """Registry still rejects the request after one token refresh."""

    message = "Registry login required"

    def __init__(self, authenticate_header: str | None = None):
        super().__init__(self.message)
        self.authenticate_header = authenticate_header


class BlobNotFound(RegistryProxyError):
    """Registry returned no redirect location for a blob."""

    message = "File not found"

    def __init__(self, digest: str):
        super().__init__(f"No download location for {digest}")
        self.digest = digest


class RepositoryNotFound(RegistryProxyError):
    """External repository index is out of range."""

    message = "Repository not found"

    def __init__(self, index: int):
        super().__init__(f"Repository {index} is not configured")
        self.index = index


class UpstreamError(RegistryProxyError):
    """Non-success HTTP status from an upstream service."""

    def __init__(self, status_code: int, body: str = "", url: str = ""):
        super().__init__(f"Upstream returned {status_code} for {url}")
        self.status_code = status_code
        self.body = body
        self.url = url


class DataIntegrityFault(RegistryProxyError):
    """Manifest record references a parent folder that does not exist."""

    def __init__(self, record_id: str, parent: str):
        super().__init__(f"Record {record_id} references unknown folder {parent}")
        self.record_id = record_id
        self.parent = parent
