"""
sdlocal: run a CI/CD pipeline job locally inside Docker.

The package is organized into specialized modules:
- config: Configuration management and validation
- models: Job, option and build entry data structures
- validation: Exceptions, input validation and error handling
- system: Process launch and signal delivery strategies
- launch: Build entry assembly, process tracking and the Docker runner

Usage:
    from sdlocal import new_launcher, SignalHandler

    launcher = new_launcher(option)
    with SignalHandler(launcher):
        try:
            launcher.run()
        finally:
            launcher.clean()
"""

# Main interfaces
from .config import get_config, clear_config_cache, set_config_path
from .launch import (
    DockerRunner,
    Launcher,
    ProcessRegistry,
    Runner,
    SignalHandler,
    TerminationReport,
    configure_logging,
    create_build_entry,
    new_launcher,
)

# Model classes for external use
from .models import (
    BuildEntry,
    EndpointConfig,
    Job,
    LauncherImage,
    LauncherSettings,
    LaunchOption,
    Step,
)

# Errors
from .validation import (
    BuildError,
    CommandError,
    LaunchError,
    SetupError,
    RunnerTerminatedError,
    SignalDeliveryError,
    TerminationTimeoutError,
    ValidationError,
)

__version__ = "1.0.0"

__all__ = [
    # Main interfaces
    "get_config",
    "clear_config_cache",
    "set_config_path",
    "new_launcher",
    "create_build_entry",
    "configure_logging",
    "Launcher",
    "Runner",
    "DockerRunner",
    "ProcessRegistry",
    "SignalHandler",
    "TerminationReport",
    # Models
    "BuildEntry",
    "EndpointConfig",
    "Job",
    "LauncherImage",
    "LauncherSettings",
    "LaunchOption",
    "Step",
    # Errors
    "BuildError",
    "CommandError",
    "LaunchError",
    "SetupError",
    "RunnerTerminatedError",
    "SignalDeliveryError",
    "TerminationTimeoutError",
    "ValidationError",
]
