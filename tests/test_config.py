"""Unit tests for centralized configuration parsing and validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from infra.config import Settings, ValidationError, clear_settings_cache, get_settings


def test_settings_defaults() -> None:
    """No env values should yield the documented defaults."""
    settings = Settings.from_env(env={}, env_file=".missing.env")

    assert settings.export.output_path == "./Reports"
    assert settings.export.include_compliance is False
    assert settings.export.include_recommendations is False
    assert settings.export.date_suffix is False
    assert settings.azure.tenant_id is None
    assert settings.azure.subscription is None
    assert settings.logging.level == "INFO"
    assert settings.logging.log_file is None


def test_settings_reads_flat_env_keys() -> None:
    """Flat env keys should map to nested settings models."""
    env = {
        "AZURE_TENANT_ID": " tenant-a ",
        "AZURE_SUBSCRIPTION_ID": "sub-a",
        "OUTPUT_PATH": "/tmp/reports",
        "INCLUDE_COMPLIANCE": "1",
        "INCLUDE_RECOMMENDATIONS": "true",
        "DATE_SUFFIX": "yes",
        "POSTURE_LOG_LEVEL": "debug",
        "POSTURE_LOG_FILE": "/tmp/export.log",
    }
    settings = Settings.from_env(env=env, env_file=".missing.env")

    assert settings.azure.tenant_id == "tenant-a"
    assert settings.azure.subscription == "sub-a"
    assert settings.export.output_path == "/tmp/reports"
    assert settings.export.include_compliance is True
    assert settings.export.include_recommendations is True
    assert settings.export.date_suffix is True
    assert settings.logging.level == "DEBUG"
    assert settings.logging.log_file == "/tmp/export.log"


def test_settings_nested_keys_win_over_flat_keys() -> None:
    """Nested env keys (`__` delimiter) take precedence over flat names."""
    env = {
        "EXPORT__OUTPUT_PATH": "nested/out",
        "OUTPUT_PATH": "flat/out",
        "AZURE__TENANT_ID": "nested-tenant",
        "AZURE_TENANT_ID": "flat-tenant",
    }
    settings = Settings.from_env(env=env, env_file=".missing.env")

    assert settings.export.output_path == "nested/out"
    assert settings.azure.tenant_id == "nested-tenant"


def test_settings_invalid_bool_raises_validation_error() -> None:
    """Unparseable flags should fail schema validation."""
    with pytest.raises(ValidationError):
        Settings.from_env(env={"INCLUDE_COMPLIANCE": "sometimes"}, env_file=".missing.env")


def test_settings_invalid_log_level_falls_back_to_info() -> None:
    settings = Settings.from_env(env={"POSTURE_LOG_LEVEL": "chatty"}, env_file=".missing.env")
    assert settings.logging.level == "INFO"


def test_settings_reads_dotenv_and_env_overrides(tmp_path: Path) -> None:
    """Process env overrides `.env`; quoted values are unwrapped."""
    env_file = tmp_path / ".env"
    env_file.write_text(
        "# comment\nOUTPUT_PATH='from-dotenv'\nAZURE_TENANT_ID=\"dotenv-tenant\"\nnot a pair\n",
        encoding="utf-8",
    )
    settings = Settings.from_env(env={"AZURE_TENANT_ID": "env-tenant"}, env_file=str(env_file))

    assert settings.export.output_path == "from-dotenv"
    assert settings.azure.tenant_id == "env-tenant"


def test_get_settings_reload_rebuilds_cache(monkeypatch: Any) -> None:
    """Reload should rebuild cached settings from current process env."""
    clear_settings_cache()
    monkeypatch.setenv("OUTPUT_PATH", "first")
    first = get_settings(reload=True)

    monkeypatch.setenv("OUTPUT_PATH", "second")
    cached = get_settings()
    second = get_settings(reload=True)

    assert first.export.output_path == "first"
    assert cached.export.output_path == "first"
    assert second.export.output_path == "second"
    clear_settings_cache()
