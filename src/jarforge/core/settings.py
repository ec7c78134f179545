"""Export settings.

Configuration is explicit, validated, and environment-driven: every field can
be set through a ``JARFORGE_``-prefixed environment variable or a ``.env``
file, and CLI flags override individual fields.

Fields
──────
use_default_output_location : Write to ``<workspace>/<workspace name>.jar``
                              instead of prompting for a save location
archive_extension           : Extension of produced archives
archive_command             : argv template of the external archive generator
build_timeout_seconds       : Upper bound for the pre-flight build
max_resets                  : Recovery resets allowed per run
log_level / log_format      : structlog configuration

Examples:
    >>> settings = ExportSettings(use_default_output_location=True)
    >>> settings.archive_extension
    '.jar'
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ExportSettings(BaseSettings):
    """Settings recognised by the export workflow."""

    model_config = SettingsConfigDict(
        env_prefix="JARFORGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Output ───────────────────────────────────────────────────
    use_default_output_location: bool = Field(
        default=False,
        description="Export to <workspace>/<workspace name>.jar without prompting",
    )
    archive_extension: str = ".jar"

    # ── Collaborators ────────────────────────────────────────────
    archive_command: list[str] = Field(
        default_factory=list,
        description="External generator argv; supports {main_class}, {destination}, "
        "{manifest} and a standalone {elements} token",
    )
    build_timeout_seconds: float = Field(default=600.0, gt=0)

    # ── Engine ───────────────────────────────────────────────────
    max_resets: int = Field(default=3, ge=0)

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_format: Literal["auto", "json", "console"] = "auto"

    @field_validator("archive_extension")
    @classmethod
    def _dotted_extension(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            raise ValueError("archive_extension must not be empty")
        return v if v.startswith(".") else f".{v}"


@lru_cache(maxsize=1)
def get_settings() -> ExportSettings:
    """Return the process-wide settings instance."""
    return ExportSettings()


__all__ = ["ExportSettings", "get_settings"]
