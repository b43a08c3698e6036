"""Central configuration loaded from config/*.yaml, overridable via environment.

Files are read once at startup: ``config/base.yaml`` is required, and
``config/<environment>.yaml`` is merged over it when present. Environment
variables prefixed ``MAEDIC_`` win over both, using ``__`` for nesting
(``MAEDIC_DATABASE__PASSWORD``).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings

from maedic.errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.cwd() / "config"
SUPPORTED_CONFIG_VERSION = 1


# ── Sections ─────────────────────────────────────────────────────────────────


class ApplicationSettings(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8000
    # Serve the threshold policy on /v1/config
    expose_config: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v


class DatabaseSettings(BaseModel):
    """Connection parameters for the monitored platform's SQL Server."""

    host: str = "localhost"
    port: int = 1433
    username: str = "sa"
    password: SecretStr = SecretStr("")
    database_name: str = "master"
    trust_cert: bool = False
    driver: str = "ODBC Driver 18 for SQL Server"

    # Pool
    pool_size: int = Field(default=2, ge=1)
    pool_timeout: float = Field(default=5.0, gt=0)  # seconds waiting for a free slot


class ThresholdPolicy(BaseModel):
    """Per-check limits. A zero (or False) value disables the check."""

    queue_depth_limit: int = Field(default=0, ge=0)
    spool_file_limit: int = Field(default=0, ge=0)  # per channel
    max_cpu_percent: float = Field(default=0.0, ge=0.0, le=100.0)
    max_ram_percent: float = Field(default=0.0, ge=0.0, le=100.0)
    check_local_service: bool = False
    service_name: str = "HIService"

    @property
    def queue_check_enabled(self) -> bool:
        return self.queue_depth_limit > 0

    @property
    def spool_check_enabled(self) -> bool:
        return self.spool_file_limit > 0

    @property
    def cpu_check_enabled(self) -> bool:
        return self.max_cpu_percent > 0.0

    @property
    def ram_check_enabled(self) -> bool:
        return self.max_ram_percent > 0.0


# ── Root settings ────────────────────────────────────────────────────────────


class Settings(BaseSettings):
    """All maedic settings. Immutable for the lifetime of the process."""

    model_config = {
        "env_prefix": "MAEDIC_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "frozen": True,
    }

    config_version: int = SUPPORTED_CONFIG_VERSION

    application: ApplicationSettings = Field(default_factory=ApplicationSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    limits: ThresholdPolicy = Field(default_factory=ThresholdPolicy)

    @field_validator("config_version")
    @classmethod
    def _check_version(cls, v: int) -> int:
        if v != SUPPORTED_CONFIG_VERSION:
            raise ValueError(
                f"Unsupported config_version {v} (expected {SUPPORTED_CONFIG_VERSION})"
            )
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: Any,
        env_settings: Any,
        dotenv_settings: Any,
        file_secret_settings: Any,
    ) -> tuple[Any, ...]:
        # YAML values arrive as init kwargs; the environment overrides them
        return env_settings, dotenv_settings, init_settings, file_secret_settings


# ── Loading ──────────────────────────────────────────────────────────────────


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to read {path}: {e}") from e
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"{path} must contain a mapping at top level")
    return raw


def get_configuration(
    environment: str | None = None,
    config_dir: Path | None = None,
) -> Settings:
    """Build Settings from base.yaml + <environment>.yaml + MAEDIC_* variables."""
    config_dir = config_dir or CONFIG_DIR
    environment = environment or os.environ.get("APP_ENVIRONMENT", "local")

    base_path = config_dir / "base.yaml"
    if not base_path.exists():
        raise ConfigurationError(f"Base configuration not found: {base_path}")

    values = _read_yaml(base_path)

    env_path = config_dir / f"{environment}.yaml"
    if env_path.exists():
        values = _deep_merge(values, _read_yaml(env_path))
    else:
        logger.info("No %s overrides found, using base configuration only", env_path.name)

    return Settings(**values)
