"""Immutable run configuration shared by both runner types.

Runners never mutate their configuration. Every ``with_*`` call validates
its argument eagerly, then builds a new :class:`RunOptions` with
``dataclasses.replace`` and wraps it in a new runner. A configured runner can
therefore be reused or shared between tasks without one caller's tweaks
leaking into another's run.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from taskrein.core.errors import ValidationError
from taskrein.execution.controller import ExecutionController, Priority

ProgressSink = Callable[[float], None]
TimeoutHandler = Callable[[float], None]
ErrorHandler = Callable[[BaseException], None]


@dataclass(frozen=True, slots=True)
class RunOptions:
    """Optional behaviour of a run.

    Attributes:
        delay: Seconds to wait before starting (cancellable).
        timeout: Seconds the work may take before the run times out.
        timeout_handler: Called with elapsed seconds when the timeout fires.
        controller: Caller-owned controller; None means the runner creates
            and disposes its own.
        error_handler: Called with the exception when work fails.
        completion_callback: Called with the result (or result tuple) on success.
        progress: Receives progress values in ``[0.0, 1.0]``.
        priority: Scheduling hint for background worker threads.
        background: Run sync work on a worker pool (True) or inline (False).
    """

    delay: float | None = None
    timeout: float | None = None
    timeout_handler: TimeoutHandler | None = None
    controller: ExecutionController | None = None
    error_handler: ErrorHandler | None = None
    completion_callback: Callable[[Any], None] | None = None
    progress: ProgressSink | None = None
    priority: Priority = Priority.NORMAL
    background: bool = True


def _finite_seconds(seconds: Any, field: str) -> float:
    if isinstance(seconds, bool) or not isinstance(seconds, (int, float)):
        raise ValidationError(f"{field} must be a number of seconds", field=field, value=seconds)
    if not math.isfinite(seconds):
        raise ValidationError(f"{field} must be finite", field=field, value=seconds)
    return float(seconds)


def validate_delay(seconds: float) -> float:
    seconds = _finite_seconds(seconds, "delay")
    if seconds < 0:
        raise ValidationError("Delay time cannot be negative", field="delay", value=seconds)
    return seconds


def validate_timeout(seconds: float) -> float:
    seconds = _finite_seconds(seconds, "timeout")
    if seconds <= 0:
        raise ValidationError("Timeout must be greater than zero", field="timeout", value=seconds)
    return seconds


def validate_priority(priority: Any) -> Priority:
    return Priority.coerce(priority)


def validate_max_concurrency(value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(
            "Max concurrent tasks must be an integer", field="max_concurrency", value=value
        )
    if value < 1:
        raise ValidationError(
            "Max concurrent tasks must be greater than zero", field="max_concurrency", value=value
        )
    return value


def validate_callable(fn: Any, name: str) -> Any:
    if fn is None or not callable(fn):
        raise ValidationError(f"{name} must be callable", field=name, value=fn)
    return fn


def validate_controller(controller: Any) -> ExecutionController:
    if not isinstance(controller, ExecutionController):
        raise ValidationError(
            "controller must be an ExecutionController", field="controller", value=controller
        )
    return controller


__all__ = [
    "RunOptions",
    "ProgressSink",
    "TimeoutHandler",
    "ErrorHandler",
    "validate_delay",
    "validate_timeout",
    "validate_priority",
    "validate_max_concurrency",
    "validate_callable",
    "validate_controller",
]
