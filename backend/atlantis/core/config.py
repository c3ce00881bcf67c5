"""Application configuration using pydantic-settings."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ATLANTIS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Atlantis"
    version: str = "0.1.0"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = Field(default=3000, description="Server port")

    # Storage
    data_path: Path = Field(
        default=Path("./data"),
        description="Directory holding the database and legacy JSON store",
    )
    storage_backend: Literal["database", "file"] = Field(
        default="database",
        description="Which storage backend the diagram repository uses",
    )
    database_url: str | None = Field(
        default=None,
        description="Database connection URL (defaults to SQLite under data_path)",
    )
    diagrams_file: Path | None = Field(
        default=None,
        description="Path of the flat JSON diagram store (defaults to data_path/diagrams.json)",
    )
    auto_create_schema: bool = Field(
        default=True,
        description="Create missing tables on startup",
    )
    backfill_search_vectors: bool = Field(
        default=True,
        description="Fill in missing search vectors on startup",
    )

    # CORS
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins",
    )

    # Programmatic access API (/api/access)
    enable_api_access: bool = Field(
        default=False,
        description="Expose the feature-flagged programmatic access API",
    )

    # CSRF
    csrf_cookie_name: str = "atlantis_csrf"
    csrf_header_name: str = "x-csrf-token"
    csrf_cookie_max_age: int = Field(
        default=60 * 60 * 24,
        description="Lifetime of the CSRF cookie in seconds",
    )
    csrf_cookie_secure: bool = False

    @property
    def resolved_database_url(self) -> str:
        """Get the database URL, falling back to SQLite under data_path."""
        if self.database_url:
            return self.database_url
        return f"sqlite+aiosqlite:///{self.data_path / 'atlantis.db'}"

    @property
    def resolved_diagrams_file(self) -> Path:
        """Get the flat JSON store path."""
        return self.diagrams_file or self.data_path / "diagrams.json"


# Global settings instance
settings = Settings()
