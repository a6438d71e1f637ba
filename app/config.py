"""Application configuration models."""

from __future__ import annotations

import tempfile
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_UPLOAD_DIR = Path(tempfile.gettempdir()) / "senpai-anime-uploads"


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="Senpai Anime", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=3000, alias="PORT")

    upload_dir: Path = Field(default=DEFAULT_UPLOAD_DIR, alias="UPLOAD_DIR")
    upload_url_prefix: str = Field(
        default="/temp-uploads", alias="UPLOAD_URL_PREFIX"
    )
    max_upload_bytes: int = Field(
        default=500 * 1024 * 1024, alias="MAX_UPLOAD_BYTES", ge=1
    )

    database_url: str = Field(
        default="sqlite+aiosqlite:///./senpai.db", alias="DATABASE_URL"
    )

    history_limit: int = Field(default=20, alias="HISTORY_LIMIT", ge=1, le=1_000)
    related_limit: int = Field(default=4, alias="RELATED_LIMIT", ge=1, le=50)
    progress_throttle_seconds: float = Field(
        default=5.0, alias="PROGRESS_THROTTLE_SECONDS", ge=0
    )

    bigcommand_embed_url: HttpUrl = Field(
        default="https://adilo.bigcommand.com/watch/", alias="BIGCOMMAND_EMBED_URL"
    )
    admin_path: str = Field(default="/admin", alias="ADMIN_PATH")

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("upload_url_prefix", "admin_path", mode="before")
    @classmethod
    def _normalise_path(cls, value: object) -> str:
        """Ensure URL paths start with a single slash and carry no trailing one."""

        if value is None:
            raise ValueError("Path values may not be empty")
        cleaned = str(value).strip().strip("/")
        if not cleaned:
            raise ValueError("Path values may not be empty")
        return f"/{cleaned}"

    @property
    def bigcommand_base(self) -> str:
        """Return the provider embed base URL with a trailing slash."""

        base = str(self.bigcommand_embed_url)
        return base if base.endswith("/") else f"{base}/"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
