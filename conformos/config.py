"""
ConformOS — Configuration System

All configuration is Pydantic-validated and loaded from:
1. A YAML file (optional defaults)
2. Environment variables (overrides, prefix CONFORMOS_)

Every tunable parameter of the checking engine lives here.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ─── Sub-configs ──────────────────────────────────────────────────


class CheckingConfig(BaseModel):
    # Trials per forall when the declaration does not pass its own count
    default_trials: int = Field(default=100, ge=1)
    # Master seed for a session. None = draw one and record it in every report.
    seed: int | None = None
    # Re-sample leaves of a falsifying tuple to name the implicated sub-value
    localize_failures: bool = True
    localization_attempts: int = Field(default=8, ge=1)
    # Raise InvariantViolation from forall instead of only reporting it
    fail_fast: bool = False


class GeneratorConfig(BaseModel):
    max_string_length: int = Field(default=16, ge=0)
    maybe_nothing_probability: float = Field(default=0.5, ge=0.0, le=1.0)
    number_min: float = -1_000_000.0
    number_max: float = 1_000_000.0

    @model_validator(mode="after")
    def _check_number_bounds(self) -> GeneratorConfig:
        if self.number_min > self.number_max:
            raise ValueError(
                f"number_min ({self.number_min}) exceeds number_max ({self.number_max})"
            )
        return self


class LoggingConfig(BaseModel):
    level: str = "WARNING"
    format: str = "console"  # "console" | "json"


# ─── Root Config ──────────────────────────────────────────────────


class ConformOSConfig(BaseSettings):
    """
    Root configuration. Loads from YAML, overridable by env vars.
    """

    model_config = SettingsConfigDict(
        env_prefix="CONFORMOS_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    checking: CheckingConfig = Field(default_factory=CheckingConfig)
    generator: GeneratorConfig = Field(default_factory=GeneratorConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _env_overrides() -> dict[str, Any]:
    """Collect CONFORMOS_<SECTION>__<FIELD> variables into a nested dict."""
    overrides: dict[str, Any] = {}
    prefix = "CONFORMOS_"
    for key, value in os.environ.items():
        if not key.startswith(prefix) or "__" not in key:
            continue
        section, _, field = key[len(prefix):].lower().partition("__")
        if section and field:
            overrides.setdefault(section, {})[field] = value
    return overrides


def load_config(config_path: str | Path | None = None) -> ConformOSConfig:
    """
    Load configuration from YAML file, then apply environment variable overrides.
    """
    raw: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                raw = yaml.safe_load(f) or {}

    # Init kwargs outrank env in pydantic-settings, so env is merged in by hand
    raw = _deep_merge(raw, _env_overrides())

    return ConformOSConfig(**raw)
