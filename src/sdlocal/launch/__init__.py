"""
Launch module for running a build locally.

Components:
- create_build_entry: Assembles the immutable build entry
- ProcessRegistry: Tracks every spawned process and its exit state
- Runner / DockerRunner: Provision, execute, terminate and release
- Launcher: Facade used by callers (new_launcher)
- SignalHandler: Kills the build when SIGINT/SIGTERM arrive
"""

from .assembler import create_build_entry, merge_env, versioned_url
from .base import Runner, TerminationReport
from .docker_runner import DockerRunner, PendingTermination
from .launcher import Launcher, new_launcher
from .log_manager import configure_logging
from .registry import ProcessRegistry, TrackedProcess
from .shared_state import ApiVersions, ContainerPaths, TimeoutConstants
from .signal_handler import SignalHandler

__all__ = [
    "ApiVersions",
    "ContainerPaths",
    "DockerRunner",
    "Launcher",
    "PendingTermination",
    "ProcessRegistry",
    "Runner",
    "SignalHandler",
    "TerminationReport",
    "TimeoutConstants",
    "TrackedProcess",
    "configure_logging",
    "create_build_entry",
    "merge_env",
    "new_launcher",
    "versioned_url",
]
