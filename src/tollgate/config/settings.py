"""Gateway settings models and loading helpers."""

from __future__ import annotations

import json
from enum import StrEnum
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from tollgate.errors import ConfigError


class ValidationProfile(StrEnum):
    """Validation strictness levels applied after a validator runs."""

    STRICT = "strict"
    PERMISSIVE = "permissive"
    MINIMAL = "minimal"


class BatchSettings(BaseModel):
    """Batch session lifecycle configuration."""

    model_config = ConfigDict(extra="forbid")

    grace_period_seconds: float = Field(default=2.0, ge=0)
    idle_ttl_seconds: float = Field(default=1800.0, gt=0)
    sweep_interval_seconds: float = Field(default=300.0, gt=0)
    id_prefix: str = Field(default="batch", min_length=1)


class ValidationSettings(BaseModel):
    """Default validation options for dispatch."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    profile: ValidationProfile = ValidationProfile.STRICT
    include_warnings: bool = True
    max_errors: int = Field(default=100, ge=0)
    max_warnings: int = Field(default=50, ge=0)
    ignored_fields: tuple[str, ...] = ()


class LoggingSettings(BaseModel):
    """Logging configuration used by the CLI."""

    model_config = ConfigDict(extra="forbid")

    level: str = "INFO"


class GatewaySettings(BaseModel):
    """Root gateway configuration model."""

    model_config = ConfigDict(extra="forbid")

    batch: BatchSettings = BatchSettings()
    validation: ValidationSettings = ValidationSettings()
    logging: LoggingSettings = LoggingSettings()


def _decode_settings_payload(path: Path) -> dict[str, object]:
    """Decode settings payload from JSON or YAML.

    Args:
        path: Settings file path.

    Returns:
        Parsed mapping payload.

    Raises:
        ConfigError: If decode fails or payload is not an object.
    """
    raw = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid settings JSON: {exc}") from exc
    else:
        try:
            payload = yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid settings YAML: {exc}") from exc
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ConfigError("Invalid settings payload: root must be an object")
    return payload


def load_settings(path: Path | None) -> GatewaySettings:
    """Load gateway settings from disk, defaulting when missing.

    Args:
        path: Settings file path, or None for defaults.

    Returns:
        Parsed settings, or defaults when the file does not exist.

    Raises:
        ConfigError: If payload decode or validation fails.
    """
    if path is None or not path.exists():
        return GatewaySettings()
    payload = _decode_settings_payload(path)
    try:
        return GatewaySettings.model_validate(payload)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings payload: {exc}") from exc
