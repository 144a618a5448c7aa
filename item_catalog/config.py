"""
Settings for the item catalogue service.

Values are read from the environment (prefix ``ITEM_CATALOG_``) or a
``.env`` file. The default data file is the sample dataset shipped in
``item_catalog/data``.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DATA_FILE = Path(__file__).resolve().parent / "data" / "items.json"


class Settings(BaseSettings):
    # Storage
    data_path: Path = DEFAULT_DATA_FILE

    # Stats cache
    stats_ttl_seconds: float = Field(30.0, gt=0)
    watch_enabled: bool = True
    watch_interval_seconds: float = Field(1.0, gt=0)

    # Listing
    default_page_size: int = Field(10, ge=1, le=100)
    # Bare-array responses for old callers sending only ``limit``
    legacy_limit_mode: bool = False

    # HTTP
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    host: str = "127.0.0.1"
    port: int = 8000

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False

    model_config = SettingsConfigDict(
        env_prefix="ITEM_CATALOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""
    return Settings()


__all__ = ["DEFAULT_DATA_FILE", "Settings", "get_settings"]
