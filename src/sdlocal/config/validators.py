"""
Validation of the parsed configuration data.

Turns the raw TOML dictionaries into a validated LauncherSettings instance.
Missing sections and keys fall back to the LauncherSettings defaults.
"""

import logging
from typing import Any, Dict

from ..models.config import LauncherSettings
from ..validation import (
    ValidationError,
    validate_non_empty_string,
    validate_positive_float,
    validate_positive_integer,
)

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _section(config_data: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = config_data.get(name, {})
    if not isinstance(section, dict):
        raise ValidationError(
            f"[{name}] must be a table, got {type(section).__name__}",
            field_name=name,
            value=section
        )
    return section


def validate_launcher_config(config_data: Dict[str, Any]) -> LauncherSettings:
    """
    Validate the launcher configuration.

    Args:
        config_data: Parsed content of config.toml

    Returns:
        Validated LauncherSettings

    Raises:
        ValidationError: If any value is invalid
    """
    defaults = LauncherSettings()
    docker = _section(config_data, "docker")
    termination = _section(config_data, "termination")
    logging_section = _section(config_data, "logging")

    bin_volume = validate_non_empty_string(
        docker.get("bin_volume", defaults.bin_volume), field_name="docker.bin_volume"
    )
    hab_volume = validate_non_empty_string(
        docker.get("hab_volume", defaults.hab_volume), field_name="docker.hab_volume"
    )
    if bin_volume == hab_volume:
        raise ValidationError(
            f"docker.bin_volume and docker.hab_volume must differ, both are '{bin_volume}'",
            field_name="docker.hab_volume",
            value=hab_volume
        )

    log_level = validate_non_empty_string(
        logging_section.get("level", defaults.log_level), field_name="logging.level"
    ).upper()
    if log_level not in _LOG_LEVELS:
        raise ValidationError(
            f"logging.level must be one of {', '.join(_LOG_LEVELS)}, got {log_level}",
            field_name="logging.level",
            value=log_level
        )

    settings = LauncherSettings(
        docker_executable=validate_non_empty_string(
            docker.get("executable", defaults.docker_executable),
            field_name="docker.executable"
        ),
        bin_volume=bin_volume,
        hab_volume=hab_volume,
        sudo_command=validate_non_empty_string(
            docker.get("sudo_command", defaults.sudo_command),
            field_name="docker.sudo_command"
        ),
        poll_interval=validate_positive_float(
            termination.get("poll_interval", defaults.poll_interval),
            min_value=0.001,
            max_value=60.0,
            field_name="termination.poll_interval"
        ),
        max_attempts=validate_positive_integer(
            termination.get("max_attempts", defaults.max_attempts),
            min_value=1,
            max_value=3600,
            field_name="termination.max_attempts"
        ),
        log_level=log_level,
    )
    logger.debug(f"Validated launcher settings: {settings}")
    return settings
