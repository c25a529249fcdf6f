"""
Docker execution back-end.

Runs the build through the ``docker`` CLI: shared volumes are populated from
the setup image, then the job image is started with the source tree, the
artifacts directory and both volumes mounted. Every CLI invocation is
tracked in a ProcessRegistry so that a termination signal can reach it.
"""

import logging
import posixpath
import signal
import subprocess
import sys
import tempfile
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Union

from ..models.build import BuildEntry
from ..models.config import LauncherSettings
from ..system.commands import ExecutionStrategy, format_command, select_strategy
from ..validation import (
    BuildError,
    CommandError,
    ErrorSeverity,
    RunnerTerminatedError,
    SetupError,
    SignalDeliveryError,
    TerminationTimeoutError,
    handle_error,
)
from .base import Runner, TerminationReport
from .log_manager import forward_stream
from .registry import PopenFactory, ProcessRegistry, TrackedProcess
from .shared_state import ContainerPaths, TimeoutConstants

logger = logging.getLogger(__name__)


def _describe_exit(returncode: int) -> str:
    if returncode < 0:
        try:
            return f"signal: {signal.Signals(-returncode).name}"
        except ValueError:
            return f"signal: {-returncode}"
    return f"exit status {returncode}"


@dataclass
class PendingTermination:
    """A termination running in the background."""

    future: "Future[TerminationReport]"
    cancel_event: threading.Event

    def cancel(self) -> None:
        """Stop waiting for the signaled processes to exit."""
        self.cancel_event.set()

    def result(self, timeout: Optional[float] = None) -> TerminationReport:
        return self.future.result(timeout=timeout)


class DockerRunner(Runner):
    """Run builds inside Docker containers."""

    def __init__(
        self,
        setup_image: str,
        setup_image_version: str,
        use_sudo: bool = False,
        flag_verbose: bool = False,
        settings: Optional[LauncherSettings] = None,
        strategy: Optional[ExecutionStrategy] = None,
        popen_factory: PopenFactory = subprocess.Popen,
    ):
        """
        Configure the runner.

        Args:
            setup_image: Image that populates the shared volumes
            setup_image_version: Tag of the setup image
            use_sudo: Run every docker command, and every kill, through sudo
            flag_verbose: Log each command line and forward its stdout
            settings: Launcher settings, defaults when omitted
            strategy: Overrides the strategy derived from *use_sudo*
            popen_factory: Process factory, subprocess.Popen by default
        """
        self.settings = settings or LauncherSettings()
        self.volume = self.settings.bin_volume
        self.hab_volume = self.settings.hab_volume
        self.docker_executable = self.settings.docker_executable
        self.setup_image = setup_image
        self.setup_image_version = setup_image_version
        self.use_sudo = use_sudo
        self.flag_verbose = flag_verbose
        self.strategy = strategy or select_strategy(use_sudo, self.settings.sudo_command)
        self.registry = ProcessRegistry(popen_factory)

    # --- Runner interface -------------------------------------------------

    def provision(self) -> None:
        try:
            self._exec_command("volume", "create", "--name", self.volume)
        except CommandError as e:
            raise SetupError(f"failed to create docker volume: {e}") from e

        try:
            self._exec_command("volume", "create", "--name", self.hab_volume)
        except CommandError as e:
            raise SetupError(f"failed to create docker hab volume: {e}") from e

        mount = f"{self.volume}:{ContainerPaths.SETUP_BIN_MOUNT}"
        hab_mount = f"{self.hab_volume}:{ContainerPaths.SETUP_HAB_MOUNT}"
        image = f"{self.setup_image}:{self.setup_image_version}"

        try:
            self._exec_command("pull", image)
        except CommandError as e:
            raise SetupError(f"failed to pull launcher image: {e}") from e

        try:
            self._exec_command(
                "container", "run", "--rm", "-v", mount, "-v", hab_mount, image,
                "--entrypoint", ContainerPaths.SETUP_ENTRYPOINT,
            )
        except CommandError as e:
            raise SetupError(f"failed to prepare build scripts: {e}") from e

    def execute(self, entry: BuildEntry) -> None:
        logger.info(f"Pulling docker image from {entry.image}...")
        try:
            self._exec_command("pull", entry.image)
        except CommandError as e:
            raise BuildError(f"failed to pull user image {e}") from e

        try:
            self._exec_command(*self.build_command_args(entry))
        except CommandError as e:
            raise BuildError(f"failed to run build container: {e}") from e

    def terminate_all(
        self,
        sig: Union[signal.Signals, int],
        cancel_event: Optional[threading.Event] = None,
    ) -> TerminationReport:
        """
        Deliver *sig* to every tracked process not yet observed as exited.
        No further process is started afterwards, except by release().

        Processes the signal cannot be delivered to are logged and left out
        of the confirmation wait. Neither delivery failures nor a
        confirmation timeout are raised; both end up in the report.

        Args:
            sig: Signal to deliver
            cancel_event: Setting this event stops the confirmation wait

        Returns:
            TerminationReport describing what was signaled and confirmed
        """
        report = TerminationReport()
        killed: List[TrackedProcess] = []
        self.registry.close()

        for tracked in self.registry.running():
            try:
                self.strategy.send_signal(tracked.pid, sig)
            except SignalDeliveryError as e:
                logger.warning(f"failed to stop process: {e}")
                report.failed.append(tracked.pid)
                continue
            killed.append(tracked)
            report.signaled.append(tracked.pid)

        if killed:
            logger.info(f"Sent signal {sig} to {len(killed)} process(es), waiting for them to exit")

        try:
            report.confirmed = self.registry.wait_for_exit(
                killed,
                poll_interval=self.settings.poll_interval,
                max_attempts=self.settings.max_attempts,
                cancel_event=cancel_event,
            )
            report.cancelled = not report.confirmed
        except TerminationTimeoutError as e:
            handle_error(
                error=e,
                context="confirming process termination",
                severity=ErrorSeverity.WARNING,
                reraise=False,
                logger=logger
            )
            report.error = e
        return report

    def terminate_all_async(self, sig: Union[signal.Signals, int]) -> PendingTermination:
        """
        Run terminate_all() on a worker thread.

        The returned handle lets the caller bound the wait with its own
        timeout (``result(timeout=...)``) or stop it with ``cancel()``.
        """
        cancel_event = threading.Event()
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="sdlocal-terminate")
        try:
            future = executor.submit(self.terminate_all, sig, cancel_event)
        finally:
            executor.shutdown(wait=False)
        return PendingTermination(future=future, cancel_event=cancel_event)

    def release(self) -> None:
        try:
            self._exec_command("volume", "rm", "--force", self.volume, force=True)
        except CommandError as e:
            logger.warning(f"failed to remove volume: {e}")

        try:
            self._exec_command("volume", "rm", "--force", self.hab_volume, force=True)
        except CommandError as e:
            logger.warning(f"failed to remove hab volume: {e}")

    # --- Command construction ---------------------------------------------

    def build_command_args(self, entry: BuildEntry) -> List[str]:
        """
        Arguments of the ``docker`` call that runs the build container.

        The entry script takes exactly five positional arguments: the
        serialized entry, the job name, the API and store URLs and the
        log file path inside the container.
        """
        environment = entry.env
        container_art_dir = environment.get("SD_ARTIFACTS_DIR", ContainerPaths.DEFAULT_ARTIFACTS_DIR)
        logfile_path = posixpath.join(container_art_dir, ContainerPaths.LOG_FILE)

        src_vol = f"{entry.src_path}/:{ContainerPaths.SOURCE_DIR}"
        art_vol = f"{entry.artifacts_path}/:{container_art_dir}"
        bin_vol = f"{self.volume}:{ContainerPaths.BIN_MOUNT}"
        hab_vol = f"{self.hab_volume}:{ContainerPaths.HAB_MOUNT}"

        options = [
            "--rm",
            "-v", src_vol,
            "-v", art_vol,
            "-v", bin_vol,
            "-v", hab_vol,
            entry.image,
            ContainerPaths.ENTRY_SCRIPT,
            entry.to_json(),
            entry.job_name,
            environment.get("SD_API_URL", ""),
            environment.get("SD_STORE_URL", ""),
            logfile_path,
        ]
        if entry.memory_limit:
            options = [f"-m{entry.memory_limit}"] + options
        if entry.use_privileged:
            options = ["--privileged"] + options

        return ["container", "run"] + options

    # --- Process execution ------------------------------------------------

    def _exec_command(self, *args: str, force: bool = False) -> None:
        """
        Run one docker command to completion, tracking its process.

        Once terminate_all() was called only forced commands are started.

        Raises:
            CommandError: If the command cannot be started or exits non-zero
        """
        argv = self.strategy.wrap([self.docker_executable, *args])
        if self.flag_verbose:
            logger.info(f"$ {format_command(argv)}")

        with tempfile.TemporaryFile() as stderr_buffer:
            try:
                tracked = self.registry.spawn(
                    argv,
                    force=force,
                    stdout=subprocess.PIPE if self.flag_verbose else subprocess.DEVNULL,
                    stderr=stderr_buffer,
                )
            except OSError as e:
                raise CommandError(f"failed to start {argv[0]}: {e}", argv=argv) from e
            except RunnerTerminatedError as e:
                raise CommandError(str(e), argv=argv) from e

            stdout_thread = forward_stream(tracked.process.stdout) if self.flag_verbose else None
            returncode = tracked.process.wait()
            self.registry.mark_exited(tracked, returncode)
            if stdout_thread is not None:
                stdout_thread.join(TimeoutConstants.STREAM_JOIN_TIMEOUT)

            if returncode != 0:
                stderr_buffer.seek(0)
                self._echo_stderr(stderr_buffer.read())
                raise CommandError(_describe_exit(returncode), argv=argv, returncode=returncode)

    @staticmethod
    def _echo_stderr(data: bytes) -> None:
        if not data:
            return
        sys.stderr.write(data.decode("utf-8", errors="replace"))
        sys.stderr.flush()
