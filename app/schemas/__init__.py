"""Pydantic schemas for API request/response validation."""

from app.schemas.registry import (
    AuthChallenge,
    ManifestNode,
    ManifestRecord,
    ManifestTreeResponse,
)

__all__ = [
    # Registry
    "AuthChallenge",
    # Manifest
    "ManifestNode",
    "ManifestRecord",
    "ManifestTreeResponse",
]
