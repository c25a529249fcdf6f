"""
Command execution strategies.

A strategy decides how processes are launched and how signals reach them.
The direct strategy runs commands as the current user and signals them
through psutil. The elevated strategy prefixes every command with a
superuser wrapper and, since a process started through that wrapper is owned
by root, delivers signals by running ``<wrapper> kill -<n> <pid>``.
"""

import logging
import signal
import subprocess
from abc import ABC, abstractmethod
from typing import List, Sequence, Union

import psutil

from ..validation import SignalDeliveryError

logger = logging.getLogger(__name__)

# Upper bound (exclusive) of the signal numbers accepted by kill(1)
NUM_SIGNALS = 65

SignalLike = Union[signal.Signals, int]


def signum(sig: SignalLike) -> int:
    """Map a signal to its number.

    Returns:
        The signal number, or -1 when it cannot be determined.

    Examples:
        >>> signum(signal.SIGTERM)
        15
        >>> signum("TERM")
        -1
    """
    if isinstance(sig, bool) or not isinstance(sig, int):
        return -1
    number = int(sig)
    if number < 0 or number >= NUM_SIGNALS:
        return -1
    return number


def format_command(argv: Sequence[str]) -> str:
    """Render an argument vector for log output."""
    return " ".join(argv)


class ExecutionStrategy(ABC):
    """How commands are launched and how signals are delivered to them."""

    @abstractmethod
    def wrap(self, argv: Sequence[str]) -> List[str]:
        """Return the argument vector that is actually executed."""
        raise NotImplementedError

    @abstractmethod
    def send_signal(self, pid: int, sig: SignalLike) -> None:
        """
        Deliver *sig* to the process *pid*.

        Raises:
            SignalDeliveryError: If the signal could not be delivered
        """
        raise NotImplementedError


class DirectExecution(ExecutionStrategy):
    """Run commands as the current user."""

    def wrap(self, argv: Sequence[str]) -> List[str]:
        return list(argv)

    def send_signal(self, pid: int, sig: SignalLike) -> None:
        try:
            psutil.Process(pid).send_signal(sig)
        except psutil.NoSuchProcess as e:
            raise SignalDeliveryError(f"process {pid} already finished") from e
        except psutil.AccessDenied as e:
            raise SignalDeliveryError(f"access denied sending signal to process {pid}") from e
        except (OSError, ValueError) as e:
            raise SignalDeliveryError(f"failed to signal process {pid}: {e}") from e


class ElevatedExecution(ExecutionStrategy):
    """Run commands, and signal them, through a superuser wrapper."""

    def __init__(self, wrapper: str = "sudo"):
        self.wrapper = wrapper

    def wrap(self, argv: Sequence[str]) -> List[str]:
        return [self.wrapper, *argv]

    def kill_command(self, pid: int, sig: SignalLike) -> List[str]:
        number = signum(sig)
        if number < 0:
            raise SignalDeliveryError(f"cannot determine signal number for {sig!r}")
        return [self.wrapper, "kill", f"-{number}", str(pid)]

    def send_signal(self, pid: int, sig: SignalLike) -> None:
        argv = self.kill_command(pid, sig)
        logger.debug(f"$ {format_command(argv)}")
        try:
            result = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                check=False,
            )
        except OSError as e:
            raise SignalDeliveryError(f"failed to run '{format_command(argv)}': {e}") from e
        if result.returncode != 0:
            detail = result.stderr.strip() or f"exit status {result.returncode}"
            raise SignalDeliveryError(f"'{format_command(argv)}' failed: {detail}")


def select_strategy(use_sudo: bool, sudo_command: str = "sudo") -> ExecutionStrategy:
    """Pick the execution strategy once, at runner construction."""
    if use_sudo:
        return ElevatedExecution(sudo_command)
    return DirectExecution()
