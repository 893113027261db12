"""
Library settings for tablespine.

:class:`TableSpineSettings` is the single validated, cached source of the
knobs that are not part of any host's database configuration: logging
and dump tuning.  Values come from ``TABLESPINE_*`` environment variables
or a ``.env`` file.

Tags:
    tablespine, configuration, settings, pydantic

Doc-Types:
    api-reference
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class TableSpineSettings(BaseSettings):
    """tablespine configuration read from the environment."""

    model_config = SettingsConfigDict(
        env_prefix="TABLESPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console", description="console or json")

    # ── Dump ─────────────────────────────────────────────────────
    progress_interval: int = Field(
        default=100,
        description="Emit a progress event whenever the remaining row count is a multiple of this",
    )
    dump_workers: int = Field(default=1, description="Worker threads owned by a DumpEngine")

    @field_validator("log_format")
    @classmethod
    def _check_log_format(cls, value: str) -> str:
        if value not in ("console", "json"):
            raise ValueError("log_format must be 'console' or 'json'")
        return value

    @field_validator("progress_interval", "dump_workers")
    @classmethod
    def _check_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be at least 1")
        return value


@lru_cache(maxsize=1)
def get_settings() -> TableSpineSettings:
    """Return the cached settings instance."""
    return TableSpineSettings()


def reset_settings() -> None:
    """Drop the cached settings (tests, or after changing the environment)."""
    get_settings.cache_clear()


__all__ = [
    "TableSpineSettings",
    "get_settings",
    "reset_settings",
]
