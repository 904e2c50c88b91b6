"""
Configuration loading and validation.
"""

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml

from courtside.digest.triggers import TIME_PATTERN, is_valid_timezone


class ConfigValidationError(Exception):
    """Raised when configuration is invalid."""

    pass


@dataclass
class StorageConfig:
    """Preference storage configuration."""

    path: str = "data/courtside.db"


@dataclass
class ScheduleConfig:
    """Digest schedule configuration."""

    default_timezone: str = "America/Los_Angeles"
    preview_time: str = "06:00"
    summary_time: str = "22:00"
    poll_interval_seconds: float = 5.0
    grace_minutes: int = 0


@dataclass
class ProviderConfig:
    """Content provider configuration."""

    model: str = "gemini-3-pro-preview"
    api_key: Optional[str] = None
    timeout_seconds: Optional[float] = 120.0


@dataclass
class AdvancedConfig:
    """Advanced configuration."""

    log_level: str = "INFO"


@dataclass
class AppConfig:
    """Main application configuration."""

    storage: StorageConfig
    schedule: ScheduleConfig
    provider: ProviderConfig
    advanced: AdvancedConfig

    @classmethod
    def default(cls) -> "AppConfig":
        return cls(
            storage=StorageConfig(),
            schedule=ScheduleConfig(),
            provider=ProviderConfig(),
            advanced=AdvancedConfig(),
        )


def _substitute_env_vars(value: Any) -> Any:
    """Substitute environment variables in string values."""
    if isinstance(value, str):
        # Match ${VAR_NAME} pattern
        pattern = r"\$\{([^}]+)\}"
        matches = re.findall(pattern, value)
        for var_name in matches:
            env_value = os.environ.get(var_name, "")
            value = value.replace(f"${{{var_name}}}", env_value)
        return value
    elif isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_substitute_env_vars(item) for item in value]
    return value


def _validate_config(config_dict: dict[str, Any]) -> None:
    """Validate configuration values."""
    storage = config_dict.get("storage") or {}
    db_path = storage.get("path", StorageConfig.path)
    if not db_path:
        raise ConfigValidationError("Storage path is required")

    path = Path(db_path)
    parent = path.parent
    if parent.exists() and not os.access(parent, os.W_OK):
        raise ConfigValidationError(f"Storage path not writable: {parent}")

    schedule = config_dict.get("schedule") or {}
    timezone = schedule.get("default_timezone", ScheduleConfig.default_timezone)
    if not is_valid_timezone(timezone):
        raise ConfigValidationError(f"Unknown timezone: {timezone!r}")

    for name in ("preview_time", "summary_time"):
        value = schedule.get(name, getattr(ScheduleConfig, name))
        if not isinstance(value, str) or not TIME_PATTERN.match(value):
            raise ConfigValidationError(f"{name} must be HH:MM, got {value!r}")

    interval = schedule.get("poll_interval_seconds", ScheduleConfig.poll_interval_seconds)
    if not isinstance(interval, (int, float)) or interval <= 0:
        raise ConfigValidationError("poll_interval_seconds must be positive")

    grace = schedule.get("grace_minutes", ScheduleConfig.grace_minutes)
    if not isinstance(grace, int) or not 0 <= grace < 60:
        raise ConfigValidationError("grace_minutes must be between 0 and 59")


def build_config(config_dict: dict[str, Any]) -> AppConfig:
    """
    Build an AppConfig from a raw mapping.

    Raises:
        ConfigValidationError: If configuration is invalid
    """
    config_dict = _substitute_env_vars(config_dict)
    _validate_config(config_dict)

    provider_dict = dict(config_dict.get("provider") or {})
    # An unset ${VAR} substitutes to "", which means "let the SDK decide"
    if not provider_dict.get("api_key"):
        provider_dict["api_key"] = None

    return AppConfig(
        storage=StorageConfig(**(config_dict.get("storage") or {})),
        schedule=ScheduleConfig(**(config_dict.get("schedule") or {})),
        provider=ProviderConfig(**provider_dict),
        advanced=AdvancedConfig(**(config_dict.get("advanced") or {})),
    )


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to configuration file, or None for defaults

    Returns:
        AppConfig instance

    Raises:
        ConfigValidationError: If configuration is invalid
        FileNotFoundError: If config file doesn't exist
    """
    if config_path is None:
        return build_config({})

    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(path) as f:
        raw_config = yaml.safe_load(f) or {}

    return build_config(raw_config)
