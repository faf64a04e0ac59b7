"""Configuration settings and loading."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated, Any, Literal

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from tcover.errors import ConfigurationError


class TcoverSettings(BaseSettings):
    """Configuration for coverage evaluation runs."""

    model_config = SettingsConfigDict(
        env_prefix="TCOVER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    solver_timeout_ms: int = Field(default=10_000, gt=0)
    on_contradiction: Literal["continue", "fail"] = "continue"
    on_timeout: Literal["infeasible", "raise"] = "infeasible"
    strength: int = Field(default=2, ge=1)
    max_arrays: int = Field(default=30, ge=1)
    expected_arrays: int = Field(default=30, ge=0)
    # NoDecode: comma-separated in the environment, split by the validator below
    exempt_algorithms: Annotated[list[str], NoDecode] = Field(default_factory=lambda: ["IPO"])
    benchmark_dir: str = "benchmark"
    log_level: str = "INFO"
    log_format: Literal["text", "json"] = "text"

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = str(v).upper()
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if level not in valid:
            raise ValueError(f"Invalid log level: {v}. Valid: {sorted(valid)}")
        return level

    @field_validator("exempt_algorithms", mode="before")
    @classmethod
    def validate_exempt_algorithms(cls, v: str | list[str]) -> list[str]:
        if isinstance(v, str):
            return [a.strip() for a in v.split(",") if a.strip()]
        return v


def load_settings(config_path: str | Path | None = None, **overrides: Any) -> TcoverSettings:
    """Load settings from a YAML file, the environment and explicit overrides.

    Priority: explicit overrides > ``TCOVER_*`` env vars > config file > defaults.
    A missing config file is not an error. Overrides set to None are ignored,
    so CLI options left unset fall through.

    Raises:
        ConfigurationError: If the file cannot be parsed or a value is invalid.
    """
    values: dict[str, Any] = {}

    if config_path is not None and Path(config_path).exists():
        values.update(_read_config_file(Path(config_path)))

    values.update(_env_values())
    values.update({key: value for key, value in overrides.items() if value is not None})

    location = {"path": config_path} if config_path is not None else {}
    try:
        return TcoverSettings(**values)
    except (ValidationError, ValueError) as e:
        raise ConfigurationError(f"Invalid settings: {e}", cause=e, **location) from e


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Could not parse config file: {e}", cause=e, path=path) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError("Config file must contain a mapping", path=path)
    return data


def _env_values() -> dict[str, str]:
    """Raw ``TCOVER_<FIELD>`` values; pydantic coerces them on validation."""
    prefix = TcoverSettings.model_config.get("env_prefix", "")
    found = {}
    for name in TcoverSettings.model_fields:
        value = os.environ.get(f"{prefix}{name}".upper())
        if value is not None:
            found[name] = value
    return found
