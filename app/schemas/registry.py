"""Registry and manifest schemas."""

from typing import Any

from pydantic import BaseModel, Field


class AuthChallenge(BaseModel):
    """Parsed ``WWW-Authenticate: Bearer`` challenge."""

    realm: str
    service: str
    scope: str | None = None

    @property
    def token_url(self) -> str:
        """Token endpoint URL for this challenge."""
        url = f"{self.realm}?service={self.service}"
        if self.scope:
            url += f"&scope={self.scope}"
        return url


class ManifestRecord(BaseModel):
    """Manifest document as returned by the manifest store."""

    doc_id: str = Field(..., alias="_id")
    name: Any = None
    type: Any = None
    digest: Any = None
    size: Any = None
    upload_time: Any = Field(None, alias="uploadTime")
    uuid: Any = None

    model_config = {"populate_by_name": True}

    @property
    def parent(self) -> str:
        """Parent token: text before the first ``:`` of the id."""
        return self.doc_id.split(":", 1)[0]

    @property
    def is_folder(self) -> bool:
        return self.type == "folder"

    @property
    def is_file(self) -> bool:
        return self.type == "file"


class ManifestNode(BaseModel):
    """Manifest tree node returned to clients."""

    id: int
    doc_id: str = Field(..., alias="_id")
    name: Any = None
    type: Any = None
    digest: Any = None
    size: Any = None
    upload_time: Any = Field(None, alias="uploadTime")
    uuid: Any = None
    files: list["ManifestNode"] | None = None

    model_config = {"populate_by_name": True}


class ManifestTreeResponse(BaseModel):
    """Database-mode manifest listing."""

    files: list[ManifestNode] = []
