"""Execution back-ends for running a build."""

import signal
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Union

from ..models.build import BuildEntry
from ..validation import TerminationTimeoutError


@dataclass
class TerminationReport:
    """
    Outcome of delivering a termination signal to every tracked process.

    Attributes:
        signaled: PIDs the signal was delivered to
        failed: PIDs the signal could not be delivered to
        confirmed: True when every signaled process was observed exiting
        cancelled: True when the confirmation wait was cancelled
        error: The confirmation timeout, if one occurred
    """

    signaled: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)
    confirmed: bool = False
    cancelled: bool = False
    error: Optional[TerminationTimeoutError] = None

    @property
    def timed_out(self) -> bool:
        return self.error is not None


class Runner(ABC):
    """Abstract build runner.

    Concrete implementations provision shared state, run the build, stop
    every process they started and release what they provisioned. Callers
    only depend on this interface so other back-ends can be substituted.
    """

    @abstractmethod
    def provision(self) -> None:
        """Prepare the shared state the build depends on.

        Raises:
            SetupError: If any provisioning step fails
        """
        raise NotImplementedError

    @abstractmethod
    def execute(self, entry: BuildEntry) -> None:
        """Run the build described by *entry*.

        Raises:
            BuildError: If the build could not be run or failed
        """
        raise NotImplementedError

    @abstractmethod
    def terminate_all(self, sig: Union[signal.Signals, int]) -> TerminationReport:
        """Deliver *sig* to every running process and confirm they exited."""
        raise NotImplementedError

    @abstractmethod
    def release(self) -> None:
        """Release the shared state, best effort."""
        raise NotImplementedError
