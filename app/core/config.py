"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # App Info
    app_name: str = "Registry File Proxy"
    app_version: str = "0.1.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = Field(default=3000, alias="PORT")
    workers: int = 1
    force_https: bool = Field(default=False, alias="FORCE_HTTPS")

    # Repositories (JSON file: {"url": "...", "account": "..."})
    repository_file: str = Field(
        default="repository.json",
        alias="REPOSITORY_FILE",
    )

    # Manifest store backing the database listing mode
    manifest_store: Literal["none", "couchdb", "sql"] = Field(
        default="none",
        alias="MANIFEST_STORE",
    )
    couchdb_url: str | None = Field(default=None, alias="COUCHDB_URL")
    sql_database_url: str = Field(
        default="sqlite+aiosqlite:///./manifests.db",
        alias="SQL_DATABASE_URL",
    )

    # Outbound timeouts (seconds)
    default_timeout: float = 60.0
    auth_timeout: float = 10.0
    stream_connect_timeout: float = 30.0
    stream_read_timeout: float = 1800.0

    # Static front-end
    views_path: str = "views"

    @field_validator("couchdb_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str | None) -> str | None:
        """Remove trailing slash so database paths can be appended."""
        if v:
            return v.rstrip("/")
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
