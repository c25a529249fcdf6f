"""
Data models for the local launcher.

Configuration Models:
- Launcher settings loaded from config.toml

Build Models:
- Job definitions, endpoint configuration and launch options
- The immutable build entry handed to the job container
"""

# Configuration models
from .config import LauncherSettings

# Build models
from .build import (
    BuildEntry,
    EndpointConfig,
    EnvVar,
    Job,
    LauncherImage,
    LaunchOption,
    Meta,
    Step,
)

__all__ = [
    # Configuration
    "LauncherSettings",
    # Build
    "BuildEntry",
    "EndpointConfig",
    "EnvVar",
    "Job",
    "LauncherImage",
    "LaunchOption",
    "Meta",
    "Step",
]
