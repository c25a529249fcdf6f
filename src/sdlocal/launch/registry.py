"""
Registry of the external processes started by a runner.

Every container runtime invocation is recorded here from the moment it is
spawned. The exit code of a process is written to the registry by the thread
that waited on it; other threads (most notably the one delivering a
termination signal) only ever learn that a process exited by reading the
registry. All reads and writes go through methods that hold the registry
lock for the duration of a ``with`` block and never across a sleep.
"""

import logging
import subprocess
import threading
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Sequence

from ..validation import RunnerTerminatedError, TerminationTimeoutError

logger = logging.getLogger(__name__)

PopenFactory = Callable[..., Any]


@dataclass(eq=False)
class TrackedProcess:
    """
    One spawned process and its observed exit state.

    ``exit_code`` is None until the exit has been observed. Only
    ProcessRegistry reads or writes it.
    """

    process: Any
    argv: List[str]
    pid: int
    exit_code: Optional[int] = None


class ProcessRegistry:
    """
    Lock-guarded, append-only list of tracked processes.

    A registry serves a single build, so entries are never removed.
    """

    def __init__(self, popen_factory: PopenFactory = subprocess.Popen):
        self._lock = threading.Lock()
        self._entries: List[TrackedProcess] = []
        self._popen_factory = popen_factory
        self._closed = False

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def spawn(self, argv: Sequence[str], force: bool = False,
              **popen_kwargs: Any) -> TrackedProcess:
        """
        Start a process and register it before anyone else can see it.

        Args:
            argv: Argument vector, executed without a shell
            force: Start the process even if the registry is closed
            **popen_kwargs: Passed through to the Popen factory

        Returns:
            The registered TrackedProcess

        Raises:
            OSError: If the process could not be started
            RunnerTerminatedError: If the registry is closed and *force* is
                not set
        """
        with self._lock:
            if self._closed and not force:
                raise RunnerTerminatedError(
                    f"not starting {argv[0]}: termination already requested"
                )
            process = self._popen_factory(list(argv), **popen_kwargs)
            tracked = TrackedProcess(process=process, argv=list(argv), pid=process.pid)
            self._entries.append(tracked)
        logger.debug(f"Tracking process {tracked.pid}: {' '.join(tracked.argv)}")
        return tracked

    def close(self) -> None:
        """Refuse every later spawn() that is not forced."""
        with self._lock:
            self._closed = True

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def mark_exited(self, tracked: TrackedProcess, exit_code: int) -> None:
        """Record that *tracked* exited with *exit_code*."""
        with self._lock:
            tracked.exit_code = exit_code
        logger.debug(f"Process {tracked.pid} exited with code {exit_code}")

    def has_exited(self, tracked: TrackedProcess) -> bool:
        with self._lock:
            return tracked.exit_code is not None

    def snapshot(self) -> List[TrackedProcess]:
        """All tracked processes, in spawn order."""
        with self._lock:
            return list(self._entries)

    def running(self) -> List[TrackedProcess]:
        """Tracked processes whose exit has not been observed yet."""
        with self._lock:
            return [entry for entry in self._entries if entry.exit_code is None]

    def pending(self, processes: Iterable[TrackedProcess]) -> List[TrackedProcess]:
        """The subset of *processes* whose exit has not been observed yet."""
        with self._lock:
            return [entry for entry in processes if entry.exit_code is None]

    def wait_for_exit(
        self,
        processes: Sequence[TrackedProcess],
        poll_interval: float,
        max_attempts: int,
        cancel_event: Optional[threading.Event] = None,
    ) -> bool:
        """
        Block until every process in *processes* is observed as exited.

        The registry is checked once per *poll_interval* seconds, at most
        *max_attempts* times. The lock is taken once per check.

        Args:
            processes: Processes to wait for
            poll_interval: Seconds between two checks
            max_attempts: Number of checks before giving up
            cancel_event: Setting this event stops the wait early

        Returns:
            True once every process exited, False if the wait was cancelled

        Raises:
            TerminationTimeoutError: If some process is still running after
                the last check
        """
        still_running = self.pending(processes)
        if not still_running:
            return True

        cancel_event = cancel_event or threading.Event()
        for attempt in range(1, max_attempts + 1):
            if cancel_event.wait(poll_interval):
                logger.info(f"Termination confirmation cancelled after {attempt - 1} checks")
                return False

            still_running = self.pending(processes)
            if not still_running:
                logger.debug(f"All signaled processes exited after {attempt} checks")
                return True

        waited = max_attempts * poll_interval
        raise TerminationTimeoutError(
            f"waited {waited:g} seconds and could not confirm that the process was dead",
            pending_pids=[entry.pid for entry in still_running],
        )
