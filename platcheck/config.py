"""
platcheck -- Configuration System

All configuration is Pydantic-validated and loaded from:
1. config/default.yaml, or the file passed on the command line
2. Environment variables (PLATCHECK_RUNNER__MAX_EXAMPLES=500, ...)

The defaults are the run constants the harness was designed around: 2000
passing trials, 100 000 discards in total or in a row.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from platcheck.errors import ConfigError

DEFAULT_CONFIG_PATH = "config/default.yaml"

# ─── Sub-configs ──────────────────────────────────────────────────


class RunnerConfig(BaseModel):
    # Passing trials required before the run is declared a pass
    max_examples: int = Field(default=2000, ge=1)
    # Expected rejections tolerated over the whole run, and in a row
    max_discards: int = Field(default=100_000, ge=0)
    max_consecutive_discards: int = Field(default=100_000, ge=0)
    # None draws a fresh seed; the seed used is always reported
    seed: int | None = None
    shrink: bool = True
    # Oracle calls allowed for the delta-debugging pass
    max_shrink_steps: int = Field(default=2_000, ge=0)
    # Per-trial wall clock limit. None disables it.
    deadline_ms: int | None = None


class GeneratorConfig(BaseModel):
    min_fragments: int = Field(default=0, ge=0)
    max_fragments: int = Field(default=5, ge=0)
    max_depth: int = Field(default=4, ge=0)
    max_children: int = Field(default=4, ge=0)

    @field_validator("max_fragments")
    @classmethod
    def _fragments_ordered(cls, v: int, info: ValidationInfo) -> int:
        if v < info.data.get("min_fragments", 0):
            raise ValueError("max_fragments must be >= min_fragments")
        return v


class OracleConfig(BaseModel):
    codec: str = "platcheck.platform:GemPlatformCodec"
    # Formatted with the candidate; must reproduce the codec's message exactly
    rejection_template: str = "empty cpu in platform {candidate!r}"

    @field_validator("rejection_template")
    @classmethod
    def _template_uses_candidate(cls, v: str) -> str:
        if "{candidate" not in v:
            raise ValueError("rejection_template must reference {candidate}")
        return v


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "console"  # "console" | "json"


# ─── Root Configuration ──────────────────────────────────────────


class HarnessSettings(BaseSettings):
    """
    Root configuration. Loads from YAML, overridable by env vars.
    """

    model_config = SettingsConfigDict(
        env_prefix="PLATCHECK_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    runner: RunnerConfig = Field(default_factory=RunnerConfig)
    generator: GeneratorConfig = Field(default_factory=GeneratorConfig)
    oracle: OracleConfig = Field(default_factory=OracleConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # YAML values arrive as init kwargs; the environment wins over them
        return env_settings, dotenv_settings, init_settings, file_secret_settings


def load_config(config_path: str | Path | None = None) -> HarnessSettings:
    """
    Load configuration from a YAML file, then apply environment overrides.

    With no path, PLATCHECK_CONFIG_PATH or config/default.yaml is used; a
    missing default file just means built-in defaults.
    """
    raw: dict[str, Any] = {}

    explicit = config_path is not None
    if config_path is None:
        config_path = os.environ.get("PLATCHECK_CONFIG_PATH", DEFAULT_CONFIG_PATH)

    if config_path:
        path = Path(config_path)
        if path.exists():
            try:
                with open(path) as f:
                    raw = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
            if not isinstance(raw, dict):
                raise ConfigError(f"Config root must be a mapping: {path}")
        elif explicit:
            raise ConfigError(f"Config not found: {path}")

    try:
        return HarnessSettings(**raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
