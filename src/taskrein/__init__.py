"""
taskrein - controllable task execution engine.

Run a single unit of work or a batch of items with start/pause/stop/cancel
control, optional delay and timeout, bounded parallelism, progress reporting
and a uniform ``ExecutionResult``.

Example::

    import asyncio
    from taskrein import ExecutionController, create_cancellable_batch

    controller = ExecutionController()
    result = asyncio.run(
        create_cancellable_batch(range(9), lambda item, token: item * item)
        .with_max_concurrency(3)
        .with_controller(controller)
        .run()
    )
"""

__version__ = "0.1.0"

from taskrein.core.errors import (  # noqa: E402
    ControllerDisposedError,
    OperationCancelledError,
    TaskReinError,
    TaskTimeoutError,
    ValidationError,
    WorkError,
)
from taskrein.execution import (  # noqa: E402
    BatchTaskRunner,
    CancellationSignal,
    ExecutionController,
    ExecutionResult,
    ExecutionState,
    PauseGate,
    Priority,
    SingleTaskRunner,
    create_batch,
    create_cancellable_batch,
    create_cancellable_task,
    create_task,
)

__all__ = [
    "__version__",
    "BatchTaskRunner",
    "CancellationSignal",
    "ControllerDisposedError",
    "ExecutionController",
    "ExecutionResult",
    "ExecutionState",
    "OperationCancelledError",
    "PauseGate",
    "Priority",
    "SingleTaskRunner",
    "TaskReinError",
    "TaskTimeoutError",
    "ValidationError",
    "WorkError",
    "create_batch",
    "create_cancellable_batch",
    "create_cancellable_task",
    "create_task",
]
