"""Centralized application configuration with schema validation.

This module is intentionally compatibility-first:
- Supports flat environment names (for example ``AZURE_TENANT_ID``).
- Supports nested names (for example ``EXPORT__OUTPUT_PATH``) for consistency.
- Optionally reads a local ``.env`` file before process env values.

CLI flags always win over values resolved here.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from threading import Lock

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class AzureSettings(BaseModel):
    """Azure identity and resource graph defaults used by the session factory."""

    model_config = ConfigDict(frozen=True)

    tenant_id: str | None = Field(default=None, description="Entra tenant to authenticate against")
    subscription: str | None = Field(default=None, description="Subscription id or name to bind")
    management_scope: str = Field(default="https://management.azure.com/.default")

    @field_validator("tenant_id", "subscription", mode="before")
    @classmethod
    def _normalize_optional_text(cls, value: object) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None


class LoggingSettings(BaseModel):
    """Repository-wide logging settings."""

    model_config = ConfigDict(frozen=True)

    level: str = Field(default="INFO")
    json_logs: bool = Field(default=False)
    log_file: str | None = Field(default=None)

    @field_validator("level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        text = str(value or "").strip().upper()
        if text in _LOG_LEVELS:
            return text
        return "INFO"

    @field_validator("log_file", mode="before")
    @classmethod
    def _normalize_log_file(cls, value: object) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None


class ExportSettings(BaseModel):
    """Export run defaults."""

    model_config = ConfigDict(frozen=True)

    output_path: str = Field(default="./Reports")
    include_compliance: bool = Field(default=False)
    include_recommendations: bool = Field(default=False)
    date_suffix: bool = Field(default=False)

    @field_validator("output_path", mode="before")
    @classmethod
    def _normalize_output_path(cls, value: object) -> str:
        text = str(value or "").strip()
        return text or "./Reports"


class Settings(BaseModel):
    """Top-level settings model."""

    model_config = ConfigDict(frozen=True)

    azure: AzureSettings = Field(default_factory=AzureSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    export: ExportSettings = Field(default_factory=ExportSettings)

    @classmethod
    def from_env(
        cls,
        *,
        env: Mapping[str, str] | None = None,
        env_file: str = ".env",
    ) -> Settings:
        """Build settings from `.env` then environment variables."""
        runtime_env = os.environ if env is None else env
        merged_env = _merge_env(_load_dotenv(Path(env_file)), runtime_env)
        payload = _build_payload(merged_env)
        return cls.model_validate(payload)


def _load_dotenv(path: Path) -> dict[str, str]:
    """Parse a minimal `.env` file format."""
    if not path.exists() or not path.is_file():
        return {}

    values: dict[str, str] = {}
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, raw_value = line.split("=", 1)
        key_clean = key.strip()
        value = raw_value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
            value = value[1:-1]
        if key_clean:
            values[key_clean] = value
    return values


def _merge_env(dotenv_values: Mapping[str, str], runtime_env: Mapping[str, str]) -> dict[str, str]:
    """Return env map where process env overrides `.env` values."""
    merged = {str(k): str(v) for k, v in dotenv_values.items()}
    for key, value in runtime_env.items():
        merged[str(key)] = str(value)
    return merged


def _first_non_empty(env: Mapping[str, str], *keys: str) -> str | None:
    """Return the first non-empty value for the provided keys."""
    for key in keys:
        value = str(env.get(key, "")).strip()
        if value:
            return value
    return None


def _build_payload(env: Mapping[str, str]) -> dict[str, object]:
    """Build nested settings payload from env values."""
    azure = {
        "tenant_id": _first_non_empty(env, "AZURE__TENANT_ID", "AZURE_TENANT_ID"),
        "subscription": _first_non_empty(env, "AZURE__SUBSCRIPTION", "AZURE_SUBSCRIPTION_ID"),
        "management_scope": _first_non_empty(env, "AZURE__MANAGEMENT_SCOPE", "AZURE_MANAGEMENT_SCOPE"),
    }
    logging_settings = {
        "level": _first_non_empty(env, "LOGGING__LEVEL", "POSTURE_LOG_LEVEL"),
        "json_logs": _first_non_empty(env, "LOGGING__JSON_LOGS", "POSTURE_LOG_JSON"),
        "log_file": _first_non_empty(env, "LOGGING__LOG_FILE", "POSTURE_LOG_FILE"),
    }
    export = {
        "output_path": _first_non_empty(env, "EXPORT__OUTPUT_PATH", "OUTPUT_PATH"),
        "include_compliance": _first_non_empty(
            env, "EXPORT__INCLUDE_COMPLIANCE", "INCLUDE_COMPLIANCE"
        ),
        "include_recommendations": _first_non_empty(
            env, "EXPORT__INCLUDE_RECOMMENDATIONS", "INCLUDE_RECOMMENDATIONS"
        ),
        "date_suffix": _first_non_empty(env, "EXPORT__DATE_SUFFIX", "DATE_SUFFIX"),
    }
    return {
        "azure": {k: v for k, v in azure.items() if v is not None},
        "logging": {k: v for k, v in logging_settings.items() if v is not None},
        "export": {k: v for k, v in export.items() if v is not None},
    }


_SETTINGS_LOCK = Lock()
_SETTINGS_CACHE: Settings | None = None


def get_settings(*, reload: bool = False) -> Settings:
    """Return cached settings, optionally forcing reload from env."""
    global _SETTINGS_CACHE
    with _SETTINGS_LOCK:
        if reload or _SETTINGS_CACHE is None:
            _SETTINGS_CACHE = Settings.from_env()
        return _SETTINGS_CACHE


def clear_settings_cache() -> None:
    """Clear in-process settings cache."""
    global _SETTINGS_CACHE
    with _SETTINGS_LOCK:
        _SETTINGS_CACHE = None


__all__ = [
    "AzureSettings",
    "ExportSettings",
    "LoggingSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
    "ValidationError",
]
