# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for all deployment-specific settings.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Cache ===
    cache_enabled: bool = True
    cache_backend: Literal["memory", "json", "sqlite", "redis"] = "json"
    cache_root: Path = Path("~/.acadimport/cache")
    cache_redis_url: str = ""

    # === Cache namespaces ===
    curriculum_namespace: str = "curriculum"
    syllabus_namespace: str = "syllabus"
    roadmap_namespace: str = "roadmap"

    # === Record store ===
    record_store_backend: Literal["memory", "json"] = "memory"
    record_store_path: Path = Path("~/.acadimport/records.json")

    # === Reconciliation ===
    roadmap_overwrite_metadata: bool = False
    tree_prune_orphans: bool = False
    inference_concurrency: int = 4

    # === Extraction ===
    extraction_timeout_s: float | None = None

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    @field_validator("extraction_timeout_s")
    @classmethod
    def validate_timeout(cls, v: float | None) -> float | None:  # noqa: N805
        if v is not None and v <= 0:
            raise ValueError("extraction_timeout_s must be > 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.cache_enabled and self.cache_backend == "redis" and not self.cache_redis_url:
            errors.append("CACHE_BACKEND=redis requires CACHE_REDIS_URL")

        if self.inference_concurrency < 1:
            errors.append("INFERENCE_CONCURRENCY must be >= 1")

        if self.record_store_backend == "json" and str(self.record_store_path) in ("", "."):
            errors.append("RECORD_STORE_BACKEND=json requires RECORD_STORE_PATH")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    @property
    def namespaces(self) -> dict[str, str]:
        """Cache namespace per import kind."""
        return {
            "curriculum": self.curriculum_namespace,
            "syllabus": self.syllabus_namespace,
            "roadmap": self.roadmap_namespace,
        }


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
