"""
================================================================================
Configuration Loader
================================================================================

YAML-based configuration management with environment variable override support.

Features:
    - YAML configuration loading (config/config.yaml)
    - Environment variable override (RESOLUTION_TIMEOUT_MS overrides
      resolution.timeout_ms)
    - Dot notation path access
    - Typed resolution settings for page objects

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from loguru import logger


# Default configuration file path
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "config.yaml"


class ConfigurationError(Exception):
    """Raised when configuration loading or access fails."""
    pass


class ConfigLoader:
    """
    Configuration loader with YAML and environment variable support.

    Configuration hierarchy (highest to lowest priority):
        1. Environment variables (RESOLUTION_TIMEOUT_MS)
        2. YAML configuration file
        3. Default values

    Usage:
        >>> config = ConfigLoader()
        >>> config.get("resolution.timeout_ms", 15000)
        10000  # From YAML or env var

        >>> config.get("frames.max_depth", 5)
        5  # Default value if not configured

    Environment Variable Mapping:
        - resolution.timeout_ms -> RESOLUTION_TIMEOUT_MS
        - resolution.auto_resolve_frames -> RESOLUTION_AUTO_RESOLVE_FRAMES
        - frames.max_depth -> FRAMES_MAX_DEPTH
    """

    _instance: Optional["ConfigLoader"] = None
    _config: Dict[str, Any] = {}

    def __new__(cls, config_path: Optional[Path] = None) -> "ConfigLoader":
        """Singleton: configuration is loaded once per process."""
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
        self._load_config()
        self._initialized = True

    def _load_config(self) -> None:
        """Load configuration from YAML file."""
        if not self._config_path.exists():
            logger.warning(
                f"Configuration file not found: {self._config_path}. "
                f"Using defaults and environment variables only."
            )
            self._config = {}
            return

        try:
            with open(self._config_path, "r", encoding="utf-8") as f:
                self._config = yaml.safe_load(f) or {}
            logger.debug(f"Loaded configuration from: {self._config_path}")
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in configuration file: {e}"
            ) from e

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation path.

        First checks environment variables, then YAML config, then default.

        Args:
            key: Dot-notation path (e.g., "resolution.timeout_ms")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        env_key = key.upper().replace(".", "_")
        env_value = os.environ.get(env_key)
        if env_value is not None:
            return self._convert_type(env_value, default)

        value = self._config
        for part in key.split("."):
            if isinstance(value, dict):
                value = value.get(part)
            else:
                value = None

            if value is None:
                return default

        return value

    def get_section(self, section: str) -> Dict[str, Any]:
        """
        Get entire configuration section.

        Args:
            section: Section name (e.g., "resolution", "logging")

        Returns:
            Section dictionary or empty dict if not found
        """
        return self._config.get(section, {}) or {}

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()
        logger.info(f"Configuration reloaded from: {self._config_path}")

    def _convert_type(self, value: str, reference: Any) -> Any:
        """
        Convert string value to match reference type.

        Used for environment variables which are always strings.
        """
        if reference is None:
            return value

        if isinstance(reference, bool):
            return value.lower() in ("true", "1", "yes", "on")
        if isinstance(reference, int):
            try:
                return int(value)
            except ValueError:
                return value
        if isinstance(reference, float):
            try:
                return float(value)
            except ValueError:
                return value

        return value

    @classmethod
    def reset(cls) -> None:
        """
        Reset singleton instance.

        Useful for testing when configuration needs to be reloaded
        with different settings.
        """
        cls._instance = None
        cls._config = {}


@dataclass(frozen=True)
class ResolutionSettings:
    """
    Typed settings for the element resolution engine.

    Attributes:
        timeout_ms: Wait applied to shadow and frame searches
        poll_interval_ms: Interval between search attempts
        frame_max_depth: Maximum frame nesting searched
        auto_resolve_shadow_dom: Default for the shadow fallback flag
        auto_resolve_frames: Default for the frame fallback flag
    """
    timeout_ms: int = 15000
    poll_interval_ms: int = 500
    frame_max_depth: int = 5
    auto_resolve_shadow_dom: bool = False
    auto_resolve_frames: bool = False

    @classmethod
    def from_config(cls, config: Optional[ConfigLoader] = None) -> "ResolutionSettings":
        """Build settings from a ConfigLoader (the process singleton by default)."""
        config = config or ConfigLoader()
        defaults = cls()
        return cls(
            timeout_ms=int(config.get("resolution.timeout_ms", defaults.timeout_ms)),
            poll_interval_ms=int(
                config.get("resolution.poll_interval_ms", defaults.poll_interval_ms)
            ),
            frame_max_depth=int(config.get("frames.max_depth", defaults.frame_max_depth)),
            auto_resolve_shadow_dom=bool(
                config.get(
                    "resolution.auto_resolve_shadow_dom",
                    defaults.auto_resolve_shadow_dom,
                )
            ),
            auto_resolve_frames=bool(
                config.get(
                    "resolution.auto_resolve_frames",
                    defaults.auto_resolve_frames,
                )
            ),
        )


__all__ = [
    "ConfigLoader",
    "ConfigurationError",
    "ResolutionSettings",
    "DEFAULT_CONFIG_PATH",
]
