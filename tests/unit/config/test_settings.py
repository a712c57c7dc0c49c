"""Unit tests for gateway settings loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from tollgate.config import GatewaySettings, ValidationProfile, load_settings
from tollgate.errors import ConfigError


@pytest.mark.unit
def test_missing_or_absent_path_returns_defaults(tmp_path: Path) -> None:
    assert load_settings(None) == GatewaySettings()
    assert load_settings(tmp_path / "missing.yaml") == GatewaySettings()
    assert GatewaySettings().batch.grace_period_seconds == 2.0


@pytest.mark.unit
def test_yaml_settings_are_loaded(tmp_path: Path) -> None:
    """YAML overrides apply to nested sections."""
    # Arrange - YAML file overriding batch and validation
    path = tmp_path / "tollgate.yaml"
    path.write_text(
        "batch:\n"
        "  grace_period_seconds: 5\n"
        "  id_prefix: upload\n"
        "validation:\n"
        "  profile: permissive\n"
        "  ignored_fields: [metadata]\n",
        encoding="utf-8",
    )

    # Act - load
    settings = load_settings(path)

    # Assert - overrides applied, other defaults kept
    assert settings.batch.grace_period_seconds == 5.0
    assert settings.batch.id_prefix == "upload"
    assert settings.validation.profile is ValidationProfile.PERMISSIVE
    assert settings.validation.ignored_fields == ("metadata",)
    assert settings.logging.level == "INFO"


@pytest.mark.unit
def test_json_settings_and_empty_yaml(tmp_path: Path) -> None:
    json_path = tmp_path / "tollgate.json"
    json_path.write_text('{"logging": {"level": "DEBUG"}}', encoding="utf-8")
    empty_path = tmp_path / "empty.yaml"
    empty_path.write_text("", encoding="utf-8")

    assert load_settings(json_path).logging.level == "DEBUG"
    assert load_settings(empty_path) == GatewaySettings()


@pytest.mark.unit
@pytest.mark.parametrize(
    ("name", "content", "match"),
    [
        ("bad.json", "{oops", "Invalid settings JSON"),
        ("bad.yaml", "batch: [unclosed", "Invalid settings YAML"),
        ("list.yaml", "- 1\n- 2\n", "root must be an object"),
        ("extra.yaml", "unknown: true\n", "Invalid settings payload"),
        ("range.yaml", "validation:\n  max_errors: -1\n", "Invalid settings"),
    ],
)
def test_invalid_settings_raise_config_error(
    tmp_path: Path, name: str, content: str, match: str
) -> None:
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError, match=match):
        load_settings(path)
