"""taskrein.core — errors, logging and settings shared by the engine."""

from taskrein.core.errors import (
    ControllerDisposedError,
    ErrorCategory,
    OperationCancelledError,
    TaskReinError,
    TaskTimeoutError,
    ValidationError,
    WorkError,
)
from taskrein.core.logging import LogContext, configure_logging, get_logger
from taskrein.core.settings import TaskReinSettings, get_settings, reset_settings

__all__ = [
    "ControllerDisposedError",
    "ErrorCategory",
    "OperationCancelledError",
    "TaskReinError",
    "TaskTimeoutError",
    "ValidationError",
    "WorkError",
    "LogContext",
    "configure_logging",
    "get_logger",
    "TaskReinSettings",
    "get_settings",
    "reset_settings",
]
