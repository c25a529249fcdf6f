"""
Validation and error handling for the sdlocal package.

This module provides the launcher's exception hierarchy, input validation
for configuration values and consistent error reporting.
"""

from .exceptions import (
    BuildError,
    CommandError,
    ErrorSeverity,
    LaunchError,
    SetupError,
    SignalDeliveryError,
    RunnerTerminatedError,
    TerminationTimeoutError,
    ValidationError,
    handle_config_error,
    handle_error,
)

from .validators import (
    validate_non_empty_string,
    validate_positive_float,
    validate_positive_integer,
)

__all__ = [
    # Exceptions
    "BuildError",
    "CommandError",
    "ErrorSeverity",
    "LaunchError",
    "SetupError",
    "SignalDeliveryError",
    "RunnerTerminatedError",
    "TerminationTimeoutError",
    "ValidationError",
    # Error handling
    "handle_config_error",
    "handle_error",
    # Validators
    "validate_non_empty_string",
    "validate_positive_float",
    "validate_positive_integer",
]
