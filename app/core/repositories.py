"""Repository registry loaded from the repository JSON file."""

import asyncio
import base64
import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from loguru import logger

from app.core.exceptions import RepositoryNotFound

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


@dataclass
class RepositoryConfig:
    """One upstream registry repository (``host/namespace/image``)."""

    origin: str
    basic_secret: str = ""
    cached_token: str = ""
    use_database: bool = True
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)

    def _parts(self) -> list[str]:
        parts = self.origin.split("/")
        return parts + [""] * (3 - len(parts))

    @property
    def server(self) -> str:
        return self._parts()[0]

    @property
    def namespace(self) -> str:
        return self._parts()[1]

    @property
    def image(self) -> str:
        return self._parts()[2]

    @property
    def base_url(self) -> str:
        """Registry v2 API base for this repository."""
        return f"https://{self.server}/v2/{self.namespace}/{self.image}"

    @property
    def database_name(self) -> str:
        """Document database name mirroring this repository."""
        return self.origin.replace("/", "-").replace(".", "_")


def parse_repository_index(value: str | None) -> int:
    """
    Parse the external 1-based ``repo`` query value.

    Absent, non-numeric and zero values fall back to 1. A leading integer
    prefix is honoured (``"2abc"`` selects repository 2).
    """
    if not value:
        return 1
    match = _LEADING_INT.match(value)
    if not match:
        return 1
    return int(match.group(1)) or 1


class RepositoryRegistry:
    """In-memory list of configured repositories and their cached tokens."""

    def __init__(self, repositories: list[RepositoryConfig] | None = None):
        self._repositories: list[RepositoryConfig] = list(repositories or [])

    @classmethod
    def from_config(cls, data: dict[str, Any]) -> "RepositoryRegistry":
        """
        Build a registry from the parsed configuration object.

        Args:
            data: ``{"url": "<origins separated by newlines>", "account": "..."}``

        Returns:
            Registry with one entry per non-empty origin line
        """
        url = data.get("url") or ""
        account = data.get("account") or ""
        use_database = bool(data.get("useDatabase", True))

        secret = ""
        if account:
            secret = base64.b64encode(str(account).encode()).decode()

        origins = [line.strip() for line in url.replace("\r", "").split("\n")]
        return cls(
            [
                RepositoryConfig(
                    origin=origin,
                    basic_secret=secret,
                    use_database=use_database,
                )
                for origin in origins
                if origin
            ]
        )

    @classmethod
    def load(cls, config_path: str) -> "RepositoryRegistry":
        """Load repositories from a JSON file; a missing file yields none."""
        path = Path(config_path)
        if not path.exists():
            logger.warning(f"Repository file not found: {config_path}")
            return cls()

        with open(path, encoding="utf-8") as f:
            registry = cls.from_config(json.load(f))

        logger.info(f"Loaded {len(registry)} repositories from {config_path}")
        return registry

    def __len__(self) -> int:
        return len(self._repositories)

    def __iter__(self):
        return iter(self._repositories)

    def get(self, index: int) -> RepositoryConfig:
        """Get repository by external 1-based index."""
        if index < 1 or index > len(self._repositories):
            raise RepositoryNotFound(index)
        return self._repositories[index - 1]

    def resolve(self, value: str | None) -> RepositoryConfig:
        """Get repository from a raw ``repo`` query value."""
        return self.get(parse_repository_index(value))

    async def store_token(self, repository: RepositoryConfig, token: str) -> None:
        """Replace the cached token; last write wins."""
        async with repository.lock:
            repository.cached_token = token
        logger.info(f"Stored new token for {repository.origin}")

