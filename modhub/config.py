"""
Configuration and settings for the mod portal backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_prefix="MODHUB_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")
    log_level: str = Field(default="INFO")

    # Key-value backends. Redis wins when both URLs are set.
    redis_url: Optional[str] = Field(default=None)
    database_url: Optional[str] = Field(default=None)
    mods_namespace: str = Field(default="mods")
    images_namespace: str = Field(default="images")

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    # Static admin check; not a real credential.
    admin_auth_header: str = Field(default="X-Admin-Auth")
    admin_auth_token: str = Field(default="true")

    activity_log_limit: int = Field(default=100, ge=1)
    activity_display_limit: int = Field(default=10, ge=1)

    # Uploads are not stored; image records point at this placeholder host.
    image_base_url: str = Field(default="https://example.com/images")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
