"""
Configuration management and singleton pattern.

This module provides the main configuration loading and management interface,
implementing a singleton pattern to ensure configuration is loaded only once.
"""

import logging
from pathlib import Path
from typing import Optional

from ..models.config import LauncherSettings
from ..validation import handle_config_error, ErrorSeverity
from .loader import load_main_config
from .validators import validate_launcher_config

logger = logging.getLogger(__name__)

# --- Global Singleton for Configuration ---

_CONFIG: Optional[LauncherSettings] = None

# Default location of config.toml, relative to the repository root.
_DEFAULT_CONFIG_FILE_PATH = Path(__file__).parent.parent.parent.parent / "conf" / "config.toml"
_CONFIG_FILE_PATH = _DEFAULT_CONFIG_FILE_PATH


def set_config_path(config_path: Path) -> None:
    """
    Set a custom configuration file path.

    Clears the cached configuration so the next get_config() call loads
    from the new location.

    Args:
        config_path: Path to the config.toml file
    """
    global _CONFIG_FILE_PATH, _CONFIG
    _CONFIG_FILE_PATH = Path(config_path)
    _CONFIG = None
    logger.info(f"Configuration path set to: {config_path}")


def reset_config_path() -> None:
    """Go back to the default configuration location."""
    set_config_path(_DEFAULT_CONFIG_FILE_PATH)


def clear_config_cache() -> None:
    """
    Clear the cached configuration, forcing a reload on next access.
    """
    global _CONFIG
    _CONFIG = None
    logger.debug("Configuration cache cleared")


def _load_config(config_path: Path) -> LauncherSettings:
    """
    Load and validate the launcher configuration.

    The default config.toml is optional: when it does not exist the
    built-in defaults are used. A path chosen with set_config_path()
    must exist.

    Raises:
        FileNotFoundError: If an explicitly configured file is missing
        ValidationError: If configuration validation fails
        tomllib.TOMLDecodeError: If the file is malformed
    """
    if config_path == _DEFAULT_CONFIG_FILE_PATH and not config_path.exists():
        logger.debug(f"No configuration file at {config_path}, using defaults")
        return LauncherSettings()

    try:
        config_data = load_main_config(config_path)
        settings = validate_launcher_config(config_data)
        logger.info(f"Successfully loaded launcher configuration from {config_path}")
        return settings
    except Exception as e:
        handle_config_error(
            error=e,
            context="loading launcher configuration",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger
        )
        raise


def get_config() -> LauncherSettings:
    """
    Get the global launcher configuration, loading it if necessary.

    Returns:
        The singleton LauncherSettings instance
    """
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = _load_config(_CONFIG_FILE_PATH)
    return _CONFIG


def is_config_loaded() -> bool:
    """Check if configuration has been loaded and cached."""
    return _CONFIG is not None


def get_config_info() -> dict:
    """
    Get information about the current configuration state.

    Returns:
        Dictionary with configuration metadata
    """
    return {
        "config_loaded": is_config_loaded(),
        "config_path": str(_CONFIG_FILE_PATH),
        "docker_executable": _CONFIG.docker_executable if _CONFIG else None,
    }
