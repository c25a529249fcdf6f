"""
Exception types and error handling helpers.

This module provides the exception hierarchy raised by the launcher together
with the ``handle_error`` helper used wherever a failure is logged instead
of propagated (signal delivery, termination confirmation, volume removal).
"""

import logging
from enum import Enum
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity levels for error handling."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ValidationError(Exception):
    """
    Exception raised when validation fails.

    Raised by the configuration validators when a setting is missing,
    of the wrong type or out of range.
    """

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR):
        super().__init__(message)
        self.field_name = field_name
        self.value = value
        self.severity = severity


class LaunchError(Exception):
    """Base class for every failure raised while launching a local build."""


class CommandError(LaunchError):
    """
    A container runtime invocation could not be started or exited non-zero.

    Attributes:
        argv: The full argument vector that was executed
        returncode: Exit code of the process, None if it never started
    """

    def __init__(self, message: str, argv: Optional[list] = None,
                 returncode: Optional[int] = None):
        super().__init__(message)
        self.argv = list(argv or [])
        self.returncode = returncode


class SetupError(LaunchError):
    """Provisioning of the shared volumes or the setup image failed."""


class BuildError(LaunchError):
    """Pulling the job image or running the build container failed."""


class SignalDeliveryError(LaunchError):
    """A termination signal could not be delivered to a tracked process."""


class RunnerTerminatedError(LaunchError):
    """A process was about to start after the runner was terminated."""


class TerminationTimeoutError(LaunchError):
    """Signaled processes were not confirmed dead within the retry window."""

    def __init__(self, message: str, pending_pids: Optional[list] = None):
        super().__init__(message)
        self.pending_pids = list(pending_pids or [])


def handle_error(
    error: Exception,
    context: str,
    severity: Union[ErrorSeverity, str] = ErrorSeverity.ERROR,
    reraise: bool = True,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Handle errors with consistent logging and optional re-raising.

    Args:
        error: The exception that occurred
        context: Context description of where the error occurred
        severity: Severity level for logging
        reraise: Whether to re-raise the exception after logging
        logger: Logger instance to use (defaults to module logger)
    """
    effective_logger = logger or globals()['logger']

    error_msg = f"Error in {context}: {error}"

    # Handle both enum and string severity values
    if isinstance(severity, str):
        severity_str = severity.lower()
    else:
        severity_str = severity.value

    if severity_str == "debug":
        effective_logger.debug(error_msg, exc_info=True)
    elif severity_str == "info":
        effective_logger.info(error_msg)
    elif severity_str == "warning":
        effective_logger.warning(error_msg)
    elif severity_str == "error":
        effective_logger.error(error_msg)
    elif severity_str == "critical":
        effective_logger.critical(error_msg, exc_info=True)

    if reraise:
        raise error


def handle_config_error(error: Exception, context: str, **kwargs) -> None:
    """Handle configuration-related errors."""
    handle_error(error, f"config {context}", **kwargs)

