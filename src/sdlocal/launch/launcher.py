"""
Launcher facade.

Ties the assembled build entry to a runner and exposes the three operations
a caller needs: run the build, kill it, and clean up afterwards.
"""

import logging
import shutil
import signal
from typing import Optional, Union

from ..config import get_config
from ..models.build import BuildEntry, LaunchOption
from ..models.config import LauncherSettings
from ..validation import BuildError, LaunchError, SetupError
from .assembler import create_build_entry
from .base import Runner, TerminationReport
from .docker_runner import DockerRunner

logger = logging.getLogger(__name__)


class Launcher:
    """
    Runs one local build.

    Created through new_launcher(); run() may be interrupted from another
    thread by kill(), and clean() should always be called once the build
    finished or was abandoned.
    """

    def __init__(self, build_entry: BuildEntry, runner: Runner,
                 runtime_executable: str = "docker"):
        self.build_entry = build_entry
        self.runner = runner
        self.runtime_executable = runtime_executable

    def run(self) -> None:
        """
        Provision shared state, then run the build.

        Raises:
            LaunchError: If the container runtime is not installed
            SetupError: If provisioning failed
            BuildError: If the build failed
        """
        if shutil.which(self.runtime_executable) is None:
            raise LaunchError(f"`{self.runtime_executable}` command is not found in $PATH")

        try:
            self.runner.provision()
        except SetupError as e:
            raise SetupError(f"failed to setup build: {e}") from e

        try:
            self.runner.execute(self.build_entry)
        except BuildError as e:
            raise BuildError(f"failed to run build: {e}") from e

        logger.info(f"Build {self.build_entry.job_name} finished")

    def kill(self, sig: Union[signal.Signals, int]) -> TerminationReport:
        """Stop every process the build started."""
        logger.info(f"Stopping build {self.build_entry.job_name} with signal {sig}")
        return self.runner.terminate_all(sig)

    def clean(self) -> None:
        """Release the shared state provisioned for the build."""
        self.runner.release()


def new_launcher(
    option: LaunchOption,
    settings: Optional[LauncherSettings] = None,
    runner: Optional[Runner] = None,
) -> Launcher:
    """
    Create a Launcher for *option*.

    Args:
        option: Launch options for one job
        settings: Launcher settings, loaded with get_config() when omitted
        runner: Runner to use instead of a DockerRunner

    Returns:
        A ready to run Launcher
    """
    settings = settings or get_config()
    if runner is None:
        runner = DockerRunner(
            setup_image=option.entry.launcher.image,
            setup_image_version=option.entry.launcher.version,
            use_sudo=option.use_sudo,
            flag_verbose=option.flag_verbose,
            settings=settings,
        )
    build_entry = create_build_entry(option)
    return Launcher(build_entry, runner, runtime_executable=settings.docker_executable)
