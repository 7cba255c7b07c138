"""Resolver settings loaded from environment variables."""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings

from az_region_resolver.resolver import canonical_cloud

logger = logging.getLogger(__name__)

OnMissing = Literal["passthrough", "flag", "fail"]


class ResolverSettings(BaseSettings):
    """Configuration for az-region-resolver.

    Values are read from ``AZ_REGION_RESOLVER_*`` environment variables
    (case-insensitive) and optionally from a ``.env`` file in the working
    directory.
    """

    default_cloud: str | None = None
    on_missing: OnMissing = "passthrough"
    region_column: str | None = None
    table_path: Path | None = None

    host: str = "127.0.0.1"
    port: int = 5001

    model_config = {
        "env_prefix": "AZ_REGION_RESOLVER_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @field_validator("default_cloud")
    @classmethod
    def _validate_cloud(cls, value: str | None) -> str | None:
        return canonical_cloud(value)

    @field_validator("table_path")
    @classmethod
    def _validate_table_path(cls, value: Path | None) -> Path | None:
        if value is not None and not value.is_file():
            raise ValueError(f"AZ_REGION_RESOLVER_TABLE_PATH={value} is not a file")
        return value


@lru_cache(maxsize=1)
def get_settings() -> ResolverSettings:
    """Return the process-wide settings instance."""
    settings = ResolverSettings()
    if settings.table_path:
        logger.info("Using region alias table %s", settings.table_path)
    return settings
