"""Process settings loaded from environment variables."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration sourced from environment variables and .env."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_FORMAT: Literal["json", "text"] = "text"
    LOG_FILE: Path | None = None
    LOG_FILE_MAX_BYTES: int = Field(default=10_485_760, ge=1)
    LOG_FILE_BACKUP_COUNT: int = Field(default=5, ge=1)
    SITEMAP_HOSTNAME: str | None = None
    SITEMAP_OUTPUT_DIR: Path = Path("dist")
    SITEMAP_FILENAME: str = "sitemap.xml"
    DEV_SERVER_HOST: str = "127.0.0.1"
    DEV_SERVER_PORT: int = Field(default=5173, ge=1, le=65535)

    @field_validator("LOG_FILE", "SITEMAP_HOSTNAME", mode="before")
    @classmethod
    def parse_optional(cls, value: object) -> object:
        if value in (None, ""):
            return None
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()
