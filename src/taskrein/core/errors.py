"""
Structured error types for taskrein.

Provides a small hierarchy of typed errors with metadata for categorization,
logging and root cause analysis through error chaining.

Runners never raise work failures out of ``run()``; they fold them into an
:class:`~taskrein.execution.result.ExecutionResult`. The types in this module
exist for the places where raising *is* the contract: configuration-time
validation, cooperative cancellation checkpoints, and
``ExecutionResult.unwrap()``.

Manifesto:
    - **Typed Error Hierarchy:** One type per outcome the engine distinguishes
    - **Rich Context:** Errors carry metadata for structured logging
    - **Error Chaining:** Preserve original exceptions while adding context
    - **Stdlib-friendly:** Validation errors are ``ValueError`` and timeouts are
      ``TimeoutError`` so generic handlers keep working

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                       TaskReinError                              │
        │                 (category, context, cause)                       │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  ValidationError          WorkError          TaskTimeoutError    │
        │  (VALIDATION, ValueError) (WORK)             (TIMEOUT)           │
        │                                                                  │
        │  OperationCancelledError  ControllerDisposedError                │
        │  (CANCELLED)              (INTERNAL)                             │
        └─────────────────────────────────────────────────────────────────┘

Examples:
    Configuration errors are raised immediately:

    >>> create_task(fetch).with_timeout(0)
    Traceback (most recent call last):
    ...
    ValidationError: Timeout must be greater than zero

    Cooperative cancellation inside work:

    >>> def work(token):
    ...     for chunk in chunks:
    ...         token.raise_if_cancelled()
    ...         process(chunk)

    Turning a result back into an exception:

    >>> result = await create_task(fetch).run()
    >>> value = result.unwrap()  # raises WorkError / OperationCancelledError / ...

Guardrails:
    ❌ DON'T: Catch OperationCancelledError inside work and carry on
    ✅ DO: Let it propagate so the runner records the cancellation

    ❌ DON'T: Swallow the original exception
    ✅ DO: Pass it as cause= for error chaining

Tags:
    error-handling, exception-hierarchy, cancellation, timeout, taskrein
"""

from __future__ import annotations

import builtins
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and log routing.

    Attributes:
        VALIDATION: Bad configuration supplied by the caller
        WORK: Exception raised by caller-supplied work
        CANCELLED: Controller cancelled or stopped
        TIMEOUT: Work exceeded its configured timeout
        INTERNAL: Misuse of the engine or unexpected state
        UNKNOWN: Uncategorized errors
    """

    VALIDATION = "VALIDATION"
    WORK = "WORK"
    CANCELLED = "CANCELLED"
    TIMEOUT = "TIMEOUT"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


class TaskReinError(Exception):
    """
    Base exception for all taskrein errors.

    All instances carry:
    - **category:** ErrorCategory for classification
    - **context:** dict of structured metadata (run id, item index, ...)
    - **cause:** Optional underlying exception for chaining

    Subclasses set ``default_category`` to provide a sensible default.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context: dict[str, Any] = dict(context or {})
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> TaskReinError:
        """
        Add context to this error (fluent API).

        Usage:
            raise WorkError("Item failed").with_context(item_index=3)
        """
        self.context.update(kwargs)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        if self.context:
            result["context"] = dict(self.context)
        if self.cause is not None:
            result["cause"] = repr(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ValidationError(TaskReinError, ValueError):
    """
    Invalid runner configuration.

    Raised synchronously by ``with_*`` methods and factories; never wrapped
    in an ExecutionResult.
    """

    default_category = ErrorCategory.VALIDATION

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        if self.value is not None:
            result["value"] = repr(self.value)
        return result


# =============================================================================
# EXECUTION OUTCOME ERRORS
# =============================================================================


class WorkError(TaskReinError):
    """Exception raised by caller-supplied work, re-raised from ``unwrap()``."""

    default_category = ErrorCategory.WORK


class OperationCancelledError(TaskReinError):
    """
    Cooperative cancellation was observed.

    Raised by ``CancellationSignal.raise_if_cancelled()`` at work checkpoints
    and by ``unwrap()`` on cancelled or stopped results.
    """

    default_category = ErrorCategory.CANCELLED

    def __init__(self, message: str = "Operation was cancelled", **kwargs: Any):
        super().__init__(message, **kwargs)


class TaskTimeoutError(TaskReinError, builtins.TimeoutError):
    """Work exceeded its configured timeout."""

    default_category = ErrorCategory.TIMEOUT

    def __init__(
        self,
        message: str | None = None,
        *,
        elapsed: float | None = None,
        **kwargs: Any,
    ):
        self.elapsed = elapsed
        if message is None:
            message = "Task timed out"
            if elapsed is not None:
                message += f" after {elapsed:.3f}s"
        super().__init__(message, **kwargs)


class ControllerDisposedError(TaskReinError):
    """A transition was requested on a controller that has been disposed."""

    default_category = ErrorCategory.INTERNAL

    def __init__(self, message: str = "ExecutionController has been disposed", **kwargs: Any):
        super().__init__(message, **kwargs)


# =============================================================================
# UTILITIES
# =============================================================================


def categorize_error(error: BaseException) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, TaskReinError):
        return error.category
    if isinstance(error, builtins.TimeoutError):
        return ErrorCategory.TIMEOUT
    if isinstance(error, ValueError):
        return ErrorCategory.VALIDATION
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "TaskReinError",
    "ValidationError",
    "WorkError",
    "OperationCancelledError",
    "TaskTimeoutError",
    "ControllerDisposedError",
    "categorize_error",
]
