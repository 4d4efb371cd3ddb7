"""Database models."""

from app.models.manifest import ManifestDocument

__all__ = [
    "ManifestDocument",
]
