"""
Configuration management for Sysdata Exporter.

Supports configuration via YAML files, environment variables, and programmatic access.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Callable

import yaml

from sysdata_exporter.errors import ConfigError

STDOUT_SENTINEL = "-"

DEFAULT_CONFIG_PATHS = [
    Path("/etc/sysdata-exporter/config.yaml"),
    Path.home() / ".config" / "sysdata-exporter" / "config.yaml",
    Path("sysdata-exporter.yaml"),
]

# (section, key) in the nested YAML form -> dataclass field
NESTED_KEYS = {
    ("delivery", "url"): "url",
    ("delivery", "timeout"): "upload_timeout",
    ("collection", "cpu_sample_interval"): "cpu_sample_interval",
    ("collection", "state_dir"): "state_dir",
    ("logging", "level"): "log_level",
    ("logging", "file"): "log_file",
}


def _to_str(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"expected a string, got {type(value).__name__}")
    return value


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return _to_str(value)


def _to_float(value: Any) -> float:
    if isinstance(value, bool):
        raise TypeError("expected a number, got bool")
    return float(value)


def _optional_float(value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, str) and value.strip().lower() in ("", "none", "null"):
        return None
    return _to_float(value)


def _log_level(value: Any) -> str:
    level = _to_str(value).strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"unknown log level {value!r}")
    return level


# Field -> converter, applied to config file and environment values alike
FIELD_CONVERTERS: dict[str, Callable[[Any], Any]] = {
    "url": _to_str,
    "upload_timeout": _optional_float,
    "cpu_sample_interval": _to_float,
    "state_dir": _to_str,
    "log_level": _log_level,
    "log_file": _optional_str,
}

# Environment variable -> field
ENV_OVERRIDES = {
    "SYSDATA_URL": "url",
    "SYSDATA_UPLOAD_TIMEOUT": "upload_timeout",
    "SYSDATA_CPU_INTERVAL": "cpu_sample_interval",
    "SYSDATA_STATE_DIR": "state_dir",
    "SYSDATA_LOG_LEVEL": "log_level",
    "SYSDATA_LOG_FILE": "log_file",
}


@dataclass
class Config:
    """
    Configuration container for Sysdata Exporter.

    Priority (highest to lowest):
    1. Command-line flags / programmatic values
    2. Environment variables (prefixed with SYSDATA_)
    3. Config file values
    4. Default values
    """

    # Delivery settings; "-" prints to stdout
    url: str = STDOUT_SENTINEL
    upload_timeout: float | None = None

    # Collection settings
    cpu_sample_interval: float = 5.0
    state_dir: str = "/var/lib/sysdata-exporter"

    # Logging
    log_level: str = "INFO"
    log_file: str | None = None

    @property
    def to_stdout(self) -> bool:
        return self.url == STDOUT_SENTINEL

    @classmethod
    def from_file(cls, path: str | Path) -> Config:
        """Load configuration from a YAML file."""
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")

        return cls.from_dict(cls._read_yaml(path))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Config:
        """Create config from a flat or nested dictionary."""
        flat: dict[str, Any] = {}
        for key, value in data.items():
            if isinstance(value, dict):
                for subkey, subvalue in value.items():
                    flat[NESTED_KEYS.get((key, subkey), subkey)] = subvalue
            else:
                flat[key] = value

        # Filter to only known fields
        known_fields = {f.name for f in fields(cls)}
        filtered = {}
        for key, value in flat.items():
            if key not in known_fields:
                continue
            try:
                filtered[key] = FIELD_CONVERTERS[key](value)
            except (TypeError, ValueError) as e:
                raise ConfigError(f"Invalid value for {key}: {value!r} ({e})") from e

        return cls(**filtered)

    @classmethod
    def load(cls, config_path: str | Path | None = None) -> Config:
        """
        Load configuration with full resolution order.

        Args:
            config_path: Explicit path to config file. If None, searches
                        default locations.

        Returns:
            Fully resolved Config instance.

        Raises:
            ConfigError: If the file is not valid YAML, or a file value or
                        environment override has the wrong type.
        """
        base_config: dict[str, Any] = {}

        if config_path:
            path = Path(config_path)
            if path.exists():
                base_config = cls._read_yaml(path)
        else:
            for path in DEFAULT_CONFIG_PATHS:
                if path.exists():
                    base_config = cls._read_yaml(path)
                    break

        config = cls.from_dict(base_config) if base_config else cls()

        # Override with environment variables
        config._apply_env_overrides()

        return config

    @staticmethod
    def _read_yaml(path: Path) -> dict[str, Any]:
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Could not read config file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        return data

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides."""
        for env_var, attr in ENV_OVERRIDES.items():
            value = os.environ.get(env_var)
            if value is None:
                continue
            try:
                setattr(self, attr, FIELD_CONVERTERS[attr](value))
            except (TypeError, ValueError) as e:
                raise ConfigError(f"Invalid value for {env_var}: {value!r}") from e

    def to_dict(self) -> dict[str, Any]:
        """Convert config to its nested dictionary form."""
        result: dict[str, dict[str, Any]] = {}
        for (section, key), attr in NESTED_KEYS.items():
            result.setdefault(section, {})[key] = getattr(self, attr)
        return result

    def save(self, path: str | Path) -> None:
        """Save configuration to a YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)
