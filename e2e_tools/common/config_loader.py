"""
================================================================================
Configuration Loader
================================================================================

YAML configuration for the interaction layer, with environment overrides
and typed, validated section reads.

Features:
    - One YAML file per process (``config/config.yaml`` by default)
    - Environment variable override (INTERACTION_MAX_RETRIES overrides
      interaction.max_retries)
    - Values coerced to the type of their default; a value that cannot be
      coerced is a ConfigurationError, not a silently wrong setting
    - ``typed_section`` reads a whole section against a table of defaults
      and reports every bad key at once

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from loguru import logger


# Default configuration file path (repository root /config/config.yaml)
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "config.yaml"

_TRUE_WORDS = {"true", "1", "yes", "on"}
_FALSE_WORDS = {"false", "0", "no", "off"}


class ConfigurationError(Exception):
    """Raised when the configuration file or a configured value is invalid."""
    pass


def env_key(key: str) -> str:
    """Environment variable that overrides a dotted key (ui.base_url -> UI_BASE_URL)."""
    return key.upper().replace(".", "_")


def coerce(key: str, value: Any, reference: Any) -> Any:
    """
    Convert ``value`` to the type of ``reference``.

    Environment values are always strings and YAML values may be quoted, so
    both go through here. ``reference=None`` means "any type".

    Raises:
        ConfigurationError: Value does not fit the reference type
    """
    if reference is None or value is None:
        return value

    expected = type(reference).__name__
    try:
        if isinstance(reference, bool):
            if isinstance(value, bool):
                return value
            word = str(value).strip().lower()
            if word in _TRUE_WORDS:
                return True
            if word in _FALSE_WORDS:
                return False
            raise ValueError(word)
        if isinstance(reference, int):
            if isinstance(value, bool):
                raise ValueError(value)
            return int(value)
        if isinstance(reference, float):
            if isinstance(value, bool):
                raise ValueError(value)
            return float(value)
        if isinstance(reference, Path):
            return Path(value)
        if isinstance(reference, str):
            return str(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{key}: expected {expected}, got {value!r}") from e
    return value


class ConfigLoader:
    """
    Configuration loader with YAML and environment variable support.

    Configuration hierarchy (highest to lowest priority):
        1. Environment variables (INTERACTION_DEFAULT_TIMEOUT)
        2. YAML configuration file
        3. Default values

    Usage:
        >>> config = ConfigLoader()
        >>> config.get("ui.headless", True)
        True

        >>> config.typed_section("interaction", {"max_retries": 3, "polling_interval": 0.1})
        {'max_retries': 3, 'polling_interval': 0.1}
    """

    _instance: Optional["ConfigLoader"] = None

    def __new__(cls, config_path: Optional[Path] = None) -> "ConfigLoader":
        """Singleton pattern - configuration is loaded once per process."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Optional[Path] = None) -> None:
        """
        Initialize configuration loader.

        Args:
            config_path: Path to YAML configuration file.
                        Uses DEFAULT_CONFIG_PATH if not specified.
        """
        if getattr(self, "_initialized", False):
            return

        self._config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        self._config: Dict[str, Any] = self._read_file()
        self._initialized = True

    @property
    def path(self) -> Path:
        return self._config_path

    def _read_file(self) -> Dict[str, Any]:
        if not self._config_path.exists():
            logger.warning(
                f"Configuration file not found: {self._config_path}. "
                f"Using defaults and environment variables only."
            )
            return {}

        try:
            with open(self._config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {self._config_path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"{self._config_path} must contain a mapping of sections, got {type(data).__name__}"
            )
        logger.debug(f"Loaded configuration from: {self._config_path}")
        return data

    def _lookup(self, key: str) -> Any:
        node: Any = self._config
        for part in key.split("."):
            if not isinstance(node, dict):
                return None
            node = node.get(part)
        return node

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a value by dot-notation path, coerced to the type of ``default``.

        Args:
            key: Dot-notation path (e.g., "interaction.max_retries")
            default: Value used when neither the environment nor the file
                sets the key; also fixes the expected type

        Raises:
            ConfigurationError: The configured value does not fit the type
        """
        raw = os.environ.get(env_key(key))
        if raw is None:
            raw = self._lookup(key)
        if raw is None:
            return default
        return coerce(key, raw, default)

    def typed_section(self, section: str, defaults: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Read every key of ``defaults`` from ``section``.

        Keys present in the file but absent from ``defaults`` are reported
        as warnings (usually a typo).

        Args:
            section: Top-level section name (e.g., "interaction")
            defaults: Key -> default value; each default fixes its key's type

        Returns:
            Key -> configured (or default) value

        Raises:
            ConfigurationError: Listing every key whose value is invalid
        """
        values: Dict[str, Any] = {}
        problems: List[str] = []
        for key, default in defaults.items():
            try:
                values[key] = self.get(f"{section}.{key}", default)
            except ConfigurationError as e:
                problems.append(str(e))

        if problems:
            raise ConfigurationError(
                f"Invalid '{section}' configuration: " + "; ".join(problems)
            )

        configured = self._config.get(section) or {}
        unknown = sorted(set(configured) - set(defaults)) if isinstance(configured, dict) else []
        if unknown:
            logger.warning(f"Ignoring unknown '{section}' keys in {self._config_path}: {', '.join(unknown)}")
        return values

    def reload(self) -> None:
        """Re-read the configuration file (environment is always read live)."""
        self._config = self._read_file()
        logger.info(f"Configuration reloaded from: {self._config_path}")

    @classmethod
    def reset(cls) -> None:
        """Forget the singleton so the next ConfigLoader() reads the file again."""
        cls._instance = None


__all__ = [
    "ConfigLoader",
    "ConfigurationError",
    "DEFAULT_CONFIG_PATH",
    "coerce",
    "env_key",
]
