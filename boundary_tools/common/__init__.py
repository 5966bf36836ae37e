"""
================================================================================
Boundary Tools Common Utilities
================================================================================

Shared configuration and logging setup for the framework and its tools.

Exports:
    - ConfigLoader: Singleton YAML + environment configuration
    - ResolutionSettings: Typed settings for the element resolution engine
    - get_config: Convenience function to get configuration values
    - init_logger: Function to initialize loguru logger with standard settings

Usage:
    from boundary_tools.common import get_config, init_logger

    init_logger()
    max_depth = get_config("frames.max_depth", 5)

================================================================================
"""

import os
import sys
from pathlib import Path
from typing import Any, Optional, Union

from loguru import logger

from .config_loader import (
    DEFAULT_CONFIG_PATH,
    ConfigLoader,
    ConfigurationError,
    ResolutionSettings,
)


DEFAULT_LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)

_logger_initialized: bool = False


# ============================================================
# Configuration Access
# ============================================================

def get_config(key: str, default: Any = None) -> Any:
    """
    Convenience function to get a configuration value.

    Args:
        key: Dot-notation key (e.g., "resolution.timeout_ms")
        default: Default value if key not found
    """
    return ConfigLoader().get(key, default)


# ============================================================
# Logging Setup
# ============================================================

def init_logger(
    level: Optional[str] = None,
    format_string: Optional[str] = None,
    log_file: Optional[str] = None,
    force: bool = False,
) -> None:
    """
    Initialize the loguru logger with standard settings.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to logging.level.
        format_string: Custom format string. Defaults to logging.format.
        log_file: Optional file path to write logs to. Defaults to logging.file.
        force: Reconfigure even if already initialized

    Example:
        init_logger()  # Use defaults
        init_logger(level="DEBUG", log_file="logs/ui_tests.log")
    """
    global _logger_initialized

    if _logger_initialized and not force:
        return

    # Remove default handler
    logger.remove()

    level = (level or get_config("logging.level", "INFO")).upper()
    format_string = format_string or get_config("logging.format", DEFAULT_LOG_FORMAT)

    logger.add(
        sys.stderr,
        format=format_string,
        level=level,
        colorize=True,
    )

    log_file = log_file or get_config("logging.file")
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        logger.add(
            log_file,
            format=format_string,
            level=level,
            rotation=get_config("logging.rotation", "10 MB"),
            retention=get_config("logging.retention", "7 days"),
        )

    _logger_initialized = True
    logger.debug("Logger initialized successfully")


# ============================================================
# Common Utilities
# ============================================================

def ensure_directory(path: Union[str, Path]) -> Union[str, Path]:
    """
    Ensures a directory exists, creating it if necessary.

    Returns:
        The path (for chaining)
    """
    os.makedirs(path, exist_ok=True)
    return path


def safe_json_serialize(obj: Any) -> Any:
    """
    Serializes an object to a JSON-compatible value.

    Used as the `default=` hook of json.dumps for report attachments.
    """
    from datetime import datetime, date

    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    elif isinstance(obj, bytes):
        return obj.decode("utf-8", errors="replace")
    elif hasattr(obj, "to_dict"):
        return obj.to_dict()
    elif hasattr(obj, "__dict__"):
        return obj.__dict__
    else:
        return str(obj)


# Export public API
__all__ = [
    "ConfigLoader",
    "ConfigurationError",
    "ResolutionSettings",
    "DEFAULT_CONFIG_PATH",
    "get_config",
    "init_logger",
    "ensure_directory",
    "safe_json_serialize",
]
