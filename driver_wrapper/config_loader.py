"""
================================================================================
Configuration Loader
================================================================================

Settings for browser start-up, the remote server, navigation waits and
logging, read from config/config.yaml.

Any key can be overridden from the environment: the dotted path is upper-cased
and dots become underscores, so `navigation.timeout` is NAVIGATION_TIMEOUT.
Environment strings are converted to the type of the caller's default.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from loguru import logger


DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "config.yaml"

_TRUE_VALUES = ("true", "1", "yes", "on")


class ConfigurationError(Exception):
    """Raised when the configuration file cannot be parsed."""
    pass


def env_key(key: str) -> str:
    """Environment variable overriding the dotted `key`."""
    return key.upper().replace(".", "_")


class ConfigLoader:
    """
    Process-wide configuration, loaded on first use.

    Lookup order: environment variable, YAML file, caller default.

    Usage:
        >>> ConfigLoader().get("navigation.timeout", 10.0)
        10
    """

    _instance: Optional["ConfigLoader"] = None
    _config: Dict[str, Any] = {}

    def __new__(cls, config_path: Optional[Path] = None) -> "ConfigLoader":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Optional[Path] = None) -> None:
        if getattr(self, "_initialized", False):
            return

        self._config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        self._config = self._read(self._config_path)
        self._initialized = True

    @staticmethod
    def _read(path: Path) -> Dict[str, Any]:
        if not path.exists():
            logger.warning(f"Configuration file not found: {path}, using defaults")
            return {}

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

        logger.debug(f"Loaded configuration from: {path}")
        return data

    def get(self, key: str, default: Any = None) -> Any:
        """
        Value at dotted `key`, e.g. "server.port".

        Environment overrides are converted to the type of `default`.
        """
        raw = os.environ.get(env_key(key))
        if raw is not None:
            return self._coerce(raw, default)

        node: Any = self._config
        for part in key.split("."):
            if not isinstance(node, dict) or node.get(part) is None:
                return default
            node = node[part]
        return node

    @staticmethod
    def _coerce(raw: str, default: Any) -> Any:
        if isinstance(default, bool):
            return raw.strip().lower() in _TRUE_VALUES
        if isinstance(default, (int, float)):
            # "2.5" is still a number when the default happens to be an int
            for number in (int, float):
                try:
                    return number(raw)
                except ValueError:
                    continue
            logger.warning(f"Expected a number for {raw!r}, keeping the string")
        return raw

    @classmethod
    def reset(cls) -> None:
        """Forget the loaded configuration; the next ConfigLoader() reloads."""
        cls._instance = None
        cls._config = {}


__all__ = [
    "ConfigLoader",
    "ConfigurationError",
    "env_key",
]
