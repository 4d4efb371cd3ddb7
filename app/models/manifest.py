"""Manifest document model for the SQL manifest store."""

from typing import Any

from sqlalchemy import BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class ManifestDocument(Base):
    """Manifest document mirrored from a registry repository."""

    __tablename__ = "manifest_documents"

    database: Mapped[str] = mapped_column(String(255), primary_key=True)
    id: Mapped[str] = mapped_column("_id", String(255), primary_key=True)
    name: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    type: Mapped[str | None] = mapped_column(String(16), nullable=True)
    digest: Mapped[str | None] = mapped_column(String(255), nullable=True)
    size: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    upload_time: Mapped[int | None] = mapped_column(BigInteger, nullable=True, index=True)
    uuid: Mapped[str | None] = mapped_column(String(64), nullable=True)

    def to_document(self) -> dict[str, Any]:
        """Document in the shape returned by the CouchDB store."""
        return {
            "_id": self.id,
            "name": self.name,
            "type": self.type,
            "digest": self.digest,
            "size": self.size,
            "uploadTime": self.upload_time,
            "uuid": self.uuid,
        }
