"""taskrein.execution — controllers, runners and results.

Modules:
    states      ExecutionState, ControlOperation and the transition table
    signals     CancellationSignal and PauseGate
    controller  ExecutionController and Priority
    result      ExecutionResult
    options     RunOptions and configuration validators
    invoke      how one work call is executed
    runner      BaseRunner lifecycle
    single      SingleTaskRunner
    batch       BatchTaskRunner
    factory     create_task / create_batch and cancellable variants
"""

from taskrein.execution.batch import BatchTaskRunner
from taskrein.execution.controller import ExecutionController, Priority
from taskrein.execution.factory import (
    create_batch,
    create_cancellable_batch,
    create_cancellable_task,
    create_task,
)
from taskrein.execution.options import RunOptions
from taskrein.execution.result import ExecutionResult
from taskrein.execution.signals import CancellationSignal, PauseGate
from taskrein.execution.single import SingleTaskRunner
from taskrein.execution.states import ControlOperation, ExecutionState

__all__ = [
    "BatchTaskRunner",
    "CancellationSignal",
    "ControlOperation",
    "ExecutionController",
    "ExecutionResult",
    "ExecutionState",
    "PauseGate",
    "Priority",
    "RunOptions",
    "SingleTaskRunner",
    "create_batch",
    "create_cancellable_batch",
    "create_cancellable_task",
    "create_task",
]
