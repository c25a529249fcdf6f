"""
System interaction utilities.

This module provides the execution strategies used to launch external
commands and to deliver signals to them, either directly or through a
superuser wrapper.
"""

from .commands import (
    DirectExecution,
    ElevatedExecution,
    ExecutionStrategy,
    format_command,
    select_strategy,
    signum,
)

__all__ = [
    "DirectExecution",
    "ElevatedExecution",
    "ExecutionStrategy",
    "format_command",
    "select_strategy",
    "signum",
]
