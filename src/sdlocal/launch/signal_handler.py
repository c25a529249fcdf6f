"""
Signal handling for the launch module.

Python runs signal handlers on the main thread, which is usually the thread
blocked waiting for the build container. The handler therefore only starts
a worker thread that kills the build; the main thread stays free to observe
the processes exiting, which is what the kill waits for.
"""

import logging
import signal
import threading
from typing import Any, Optional

from .base import TerminationReport
from .launcher import Launcher

logger = logging.getLogger(__name__)


class SignalHandler:
    """
    Installs SIGINT/SIGTERM handlers that kill a Launcher's build.
    """

    def __init__(self, launcher: Launcher):
        self.launcher = launcher
        self.termination_finished = threading.Event()
        self.report: Optional[TerminationReport] = None
        self._original_sigint_handler = None
        self._original_sigterm_handler = None
        self._signal_handlers_set = False
        self._kill_thread: Optional[threading.Thread] = None
        # Reentrant: the handler may interrupt the main thread while it holds the lock
        self._lock = threading.RLock()

    def setup_signal_handlers(self) -> None:
        """Set up signal handlers for this launcher."""
        try:
            self._original_sigint_handler = signal.signal(signal.SIGINT, self._handle_signal)
            self._original_sigterm_handler = signal.signal(signal.SIGTERM, self._handle_signal)
            self._signal_handlers_set = True
            logger.debug("Signal handlers set up for launcher")
        except ValueError as e:
            # signal.signal() only works on the main thread
            logger.warning(f"Failed to set up signal handlers: {e}")

    def cleanup_signal_handlers(self) -> None:
        """Restore original signal handlers."""
        if not self._signal_handlers_set:
            return

        try:
            if self._original_sigint_handler is not None:
                signal.signal(signal.SIGINT, self._original_sigint_handler)
            if self._original_sigterm_handler is not None:
                signal.signal(signal.SIGTERM, self._original_sigterm_handler)
            logger.debug("Signal handlers restored")
        except ValueError as e:
            logger.warning(f"Failed to restore signal handlers: {e}")
        finally:
            self._signal_handlers_set = False

    def __enter__(self) -> "SignalHandler":
        self.setup_signal_handlers()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.cleanup_signal_handlers()

    @property
    def termination_requested(self) -> bool:
        with self._lock:
            return self._kill_thread is not None

    def _handle_signal(self, signum: int, frame: Any) -> None:
        with self._lock:
            if self._kill_thread is not None:
                logger.warning("Termination already in progress. Please be patient.")
                return
            logger.warning(f"Signal {signal.strsignal(signum)} received. Stopping the build...")
            self._kill_thread = threading.Thread(
                target=self._kill,
                args=(signum,),
                name="sdlocal-kill",
                daemon=True,
            )
            self._kill_thread.start()

    def _kill(self, signum: int) -> None:
        try:
            self.report = self.launcher.kill(signal.Signals(signum))
        finally:
            self.termination_finished.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Wait until a signal-triggered kill finished."""
        return self.termination_finished.wait(timeout)
