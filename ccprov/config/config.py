"""Configuration management for ccprov.

Provides configuration with TOML support and validation, loaded
hierarchically from defaults → config file → environment → CLI.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

import toml

from ccprov.models import Config
from ccprov.utils.exceptions import ConfigurationError
from ccprov.utils.logging_config import setup_logging

CONFIG_FILE_NAME = "ccprov.toml"

# Mapping of environment variables to config paths
ENV_MAPPINGS: dict[str, str] = {
    "CCPROV_DOWNLOAD_DIR": "provenance.download_dir",
    "CCPROV_STATE_DIR": "provenance.state_dir",
    "CCPROV_STORE_FILE_NAME": "provenance.store_file_name",
    "CCPROV_SAVE_DELAY": "provenance.save_delay",
    "CCPROV_READY_TIMEOUT": "provenance.ready_timeout",
    "CCPROV_LOG_LEVEL": "observability.log_level",
    "CCPROV_LOG_FILE": "observability.log_file",
    "CCPROV_STRUCTURED_LOGGING": "observability.structured_logging",
}

# Paths that must stay strings even when they look numeric
_STRING_PATHS = frozenset(
    {
        "provenance.download_dir",
        "provenance.state_dir",
        "provenance.store_file_name",
        "observability.log_file",
    }
)


class ConfigManager:
    """Manages configuration loading and validation.

    There is no process-wide instance; construct one at start-up and hand it
    to whatever needs it.
    """

    def __init__(self, config_file: str | Path | None = None):
        """Initialize configuration manager.

        Args:
            config_file: Path to TOML config file. If None, searches for ccprov.toml

        """
        self.config_file = self._find_config_file(config_file)
        self.config = self._load_config()

    def _find_config_file(
        self,
        config_file: str | Path | None,
    ) -> Path | None:
        """Find configuration file in standard locations."""
        if config_file:
            return Path(config_file)

        search_paths = [
            Path.cwd() / CONFIG_FILE_NAME,
            Path.home() / ".config" / "ccprov" / CONFIG_FILE_NAME,
            Path.home() / f".{CONFIG_FILE_NAME}",
        ]

        for path in search_paths:
            if path.exists():
                return path

        return None

    def _load_config(self) -> Config:
        """Load configuration from file and environment."""
        config_data: dict[str, Any] = {}

        if self.config_file and self.config_file.exists():
            try:
                with open(self.config_file, encoding="utf-8") as f:
                    config_data.update(toml.load(f))
            except (OSError, toml.TomlDecodeError) as e:
                logging.warning(
                    "Failed to load config file %s: %s", self.config_file, e
                )

        env_config = self._get_env_config()
        config_data = self._merge_config(config_data, env_config)

        try:
            return Config(**config_data)
        except Exception as e:
            msg = f"Invalid configuration: {e}"
            raise ConfigurationError(msg) from e

    def _get_env_config(self) -> dict[str, Any]:
        """Get configuration from environment variables."""
        env_config: dict[str, Any] = {}

        def _parse_env_value(raw: str, path: str) -> bool | int | float | str:
            if path in _STRING_PATHS:
                return raw
            if path == "observability.log_level":
                return raw.strip().upper()
            low = raw.lower()
            if low in {"true", "1", "yes", "on"}:
                return True
            if low in {"false", "0", "no", "off"}:
                return False
            try:
                if "." in raw:
                    return float(raw)
                return int(raw)
            except ValueError:
                return raw

        def _set_nested(d: dict[str, Any], path: str, value: Any) -> None:
            parts = path.split(".")
            cur = d
            for p in parts[:-1]:
                cur = cur.setdefault(p, {})
            cur[parts[-1]] = value

        for env_name, cfg_path in ENV_MAPPINGS.items():
            raw = os.getenv(env_name)
            if raw is None:
                continue
            _set_nested(env_config, cfg_path, _parse_env_value(raw, cfg_path))

        return env_config

    def _merge_config(
        self,
        base: dict[str, Any],
        override: dict[str, Any],
    ) -> dict[str, Any]:
        """Merge configuration dictionaries recursively."""
        result = base.copy()

        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value

        return result

    def apply_overrides(self, overrides: dict[str, Any]) -> Config:
        """Re-validate the configuration with nested CLI overrides applied.

        Raises:
            ConfigurationError: If the resulting configuration is invalid

        """
        data = self._merge_config(self.config.model_dump(mode="json"), overrides)
        try:
            self.config = Config(**data)
        except Exception as e:
            msg = f"Invalid configuration: {e}"
            raise ConfigurationError(msg) from e
        return self.config

    def setup_logging(self) -> None:
        """Configure logging from the observability section."""
        setup_logging(self.config.observability)

    def export(self, fmt: str = "toml") -> str:
        """Export current configuration as a string in the given format.

        Args:
            fmt: one of "toml" or "json"

        """
        data = self.config.model_dump(mode="json")
        data["observability"] = {
            k: v for k, v in data["observability"].items() if v is not None
        }

        fmt = (fmt or "toml").lower()
        if fmt == "toml":
            try:
                return toml.dumps(data)
            except Exception as e:
                msg = f"Failed to export TOML: {e}"
                raise ConfigurationError(msg) from e
        if fmt == "json":
            return json.dumps(data, indent=2)
        msg = f"Unsupported export format: {fmt}"
        raise ConfigurationError(msg)
