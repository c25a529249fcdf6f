"""
Configuration data models.

This module contains the launcher settings loaded from `config.toml`.
"""

from dataclasses import dataclass


@dataclass
class LauncherSettings:
    """
    Settings for the container runner, loaded from `config.toml`.
    """

    # [docker]
    # Name or path of the container runtime CLI.
    docker_executable: str = "docker"
    # Volume holding the launcher binaries copied out of the setup image.
    bin_volume: str = "SD_LAUNCH_BIN"
    # Volume holding the habitat packages shipped with the setup image.
    hab_volume: str = "SD_LAUNCH_HAB"
    # Elevation wrapper used when the build runs with sudo.
    sudo_command: str = "sudo"

    # [termination]
    # Seconds between two checks of the signaled processes.
    poll_interval: float = 1.0
    # Number of checks before giving up on confirming termination.
    max_attempts: int = 10

    # [logging]
    log_level: str = "INFO"
