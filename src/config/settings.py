# src/config/settings.py — v1
"""Runtime settings loaded from the environment via pydantic-settings.

These control how a build runs (logging, concurrency, failure policy), as
opposed to the project configuration file, which controls what it produces.
Every variable is prefixed with ``WEBAPPBUILDER_``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from webappbuilder.core.errors import ConfigurationError
from webappbuilder.logging.handlers import parse_size


class Settings(BaseSettings):
    """Application settings loaded from environment and .env file."""

    model_config = SettingsConfigDict(
        env_prefix="WEBAPPBUILDER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # === Concurrency ===
    max_workers: int = 8
    memory_per_worker_mb: int = 256

    # === Failure policy ===
    cache_required: bool = False
    ignore_errors: bool = False

    # === Project ===
    config_name: str = "ewabconfig"

    # --- Validators ---

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate ranges and formats that span the settings groups."""
        errors: list[str] = []

        if self.max_workers < 1:
            errors.append("MAX_WORKERS must be >= 1")
        if self.memory_per_worker_mb < 1:
            errors.append("MEMORY_PER_WORKER_MB must be >= 1")
        if self.log_retention < 0:
            errors.append("LOG_RETENTION must be >= 0")
        try:
            parse_size(self.log_rotation)
        except ValueError as e:
            errors.append(f"LOG_ROTATION: {e}")
        if not self.config_name or "/" in self.config_name:
            errors.append("CONFIG_NAME must be a plain file name")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    @property
    def memory_per_worker_bytes(self) -> int:
        return self.memory_per_worker_mb * 1024 * 1024


def load_settings(**overrides: object) -> Settings:
    """Load settings from environment with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or CLI flags).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If settings are inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
