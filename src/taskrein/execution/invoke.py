"""Work invocation — how a single call to caller work is executed.

Work may be a coroutine function or a plain callable, and may run in the
foreground (inline in the calling task) or in the background:

=================  ============================  ==============================
work kind          foreground                    background
=================  ============================  ==============================
``async def``      awaited inline                scheduled as its own task
plain callable     called inline (blocks loop)   run on the run's worker pool
=================  ============================  ==============================

A plain callable that returns an awaitable is awaited on the loop afterwards,
so lambdas wrapping coroutines behave like ``async def`` work.

Worker pools are created per run (see :func:`create_worker_pool`) and shut down
without waiting when the run returns, so abandoned work (timeouts,
cancellation) never blocks ``run()``. Each pool thread applies the run's
:class:`~taskrein.execution.controller.Priority` to itself once at start-up.
"""

from __future__ import annotations

import asyncio
import contextvars
import functools
import inspect
import os
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from taskrein.core.logging import get_logger
from taskrein.core.settings import get_settings
from taskrein.execution.controller import Priority

logger = get_logger(__name__)


def is_async_callable(fn: Callable[..., Any]) -> bool:
    """True for coroutine functions, including partials and async ``__call__``."""
    if inspect.iscoroutinefunction(fn):
        return True
    call = getattr(fn, "__call__", None)
    return call is not None and inspect.iscoroutinefunction(call)


def apply_thread_priority(priority: Priority) -> None:
    """Best-effort: adjust the calling thread's niceness for *priority*.

    Only meaningful on platforms exposing ``os.setpriority`` with per-thread
    semantics (Linux). Raising priority usually needs privileges; refusals
    are logged at DEBUG and otherwise ignored.
    """
    if priority is Priority.NORMAL or not hasattr(os, "setpriority"):
        return
    tid = threading.get_native_id()
    try:
        current = os.getpriority(os.PRIO_PROCESS, tid)
        os.setpriority(os.PRIO_PROCESS, tid, current + priority.niceness)
    except OSError as exc:
        logger.debug(
            "worker.priority_unavailable",
            priority=priority.name,
            error=str(exc),
        )


def create_worker_pool(max_workers: int, priority: Priority) -> ThreadPoolExecutor:
    """Create the thread pool backing one run's background sync work."""
    return ThreadPoolExecutor(
        max_workers=max_workers,
        thread_name_prefix=get_settings().worker_thread_prefix,
        initializer=apply_thread_priority,
        initargs=(priority,),
    )


async def invoke_work(
    fn: Callable[..., Any],
    args: tuple[Any, ...],
    *,
    background: bool,
    executor: ThreadPoolExecutor | None,
) -> Any:
    """Call ``fn(*args)`` according to its kind and the background hint.

    Args:
        fn: Caller work; sync or async.
        args: Positional arguments (the token, or item and token).
        background: Run off the calling task (see module docstring).
        executor: Worker pool for background sync work. When None the loop's
            default executor is used.
    """
    if is_async_callable(fn):
        if background:
            task = asyncio.ensure_future(fn(*args))
            return await asyncio.shield(task)
        return await fn(*args)

    if background:
        loop = asyncio.get_running_loop()
        ctx = contextvars.copy_context()
        value = await loop.run_in_executor(executor, functools.partial(ctx.run, fn, *args))
    else:
        value = fn(*args)

    if inspect.isawaitable(value):
        value = await value
    return value


__all__ = [
    "is_async_callable",
    "apply_thread_priority",
    "create_worker_pool",
    "invoke_work",
]
