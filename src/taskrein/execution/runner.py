"""BaseRunner — run lifecycle shared by single-task and batch runners.

WHY
───
Both runner types walk the same lifecycle (resolve controller, delay,
start, race the work against cancellation and the timeout, fold the outcome
into an ``ExecutionResult``, release resources). Only the body of the work
differs, so subclasses implement :meth:`BaseRunner._execute` and inherit
everything else, including the fluent ``with_*`` configuration.

ARCHITECTURE
────────────
::

    run()
      ├── resolve controller        (supplied, or owned + disposed in finally)
      ├── delay                     (token.wait_async, cancellable)
      ├── controller.start()        progress 0.0
      ├── work = task(_execute())   ← subclass body
      ├── _race(work)               work | token | timeout
      │     ├── work done     → COMPLETED / ERROR
      │     ├── token raised  → CANCELLED / STOPPED
      │     └── timeout       → TIMEOUT (+ handler)
      └── finally: pool.shutdown(wait=False), dispose owned controller

    Work that loses the race is abandoned, never forcibly destroyed: the
    asyncio wrapper is cancelled so no result or progress is recorded after
    run() returns, while worker threads and background coroutines run on.
    Their eventual exceptions are retrieved and logged at DEBUG.

Outcome precedence: once a caller stops or cancels the controller, the run
reports STOPPED / CANCELLED no matter how the work itself ended.

Related modules:
    single.py   — SingleTaskRunner (one invocation)
    batch.py    — BatchTaskRunner (parallel / sequential items)
    invoke.py   — how one invocation is executed
"""

from __future__ import annotations

import asyncio
import copy
import inspect
import time
import uuid
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Any, Generic, TypeVar

from taskrein.core.errors import OperationCancelledError
from taskrein.core.logging import LogContext, get_logger
from taskrein.execution.controller import ExecutionController, Priority
from taskrein.execution.invoke import create_worker_pool
from taskrein.execution.options import (
    ErrorHandler,
    ProgressSink,
    RunOptions,
    TimeoutHandler,
    validate_callable,
    validate_controller,
    validate_delay,
    validate_priority,
    validate_timeout,
)
from taskrein.execution.result import ExecutionResult
from taskrein.execution.states import CALLER_TERMINAL_STATES, ExecutionState

logger = get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R", bound="BaseRunner[Any]")


class _TimedOut(Exception):
    """Internal marker: the timeout won the race."""


def _consume_abandoned(task: asyncio.Future[Any]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug("task.abandoned_work_failed", error=repr(exc))


class BaseRunner(Generic[T]):
    """Shared configuration and lifecycle. Not instantiated directly."""

    kind = "base"

    def __init__(self, work: Callable[..., Any], options: RunOptions | None = None) -> None:
        self._work = validate_callable(work, "work")
        self._options = options or RunOptions()

    @property
    def options(self) -> RunOptions:
        return self._options

    # ── Fluent configuration ─────────────────────────────────────────

    def _with_options(self: R, **changes: Any) -> R:
        clone = copy.copy(self)
        clone._options = replace(self._options, **changes)
        return clone

    def with_delay(self: R, seconds: float) -> R:
        """Wait *seconds* before starting. Raises ValidationError if negative."""
        return self._with_options(delay=validate_delay(seconds))

    def with_timeout(self: R, seconds: float, handler: TimeoutHandler | None = None) -> R:
        """Time the run out after *seconds*; *handler* gets the elapsed seconds."""
        seconds = validate_timeout(seconds)
        if handler is not None:
            validate_callable(handler, "timeout_handler")
        return self._with_options(timeout=seconds, timeout_handler=handler)

    def with_controller(self: R, controller: ExecutionController) -> R:
        """Steer the run with a caller-owned controller."""
        return self._with_options(controller=validate_controller(controller))

    def with_error_handler(self: R, handler: ErrorHandler) -> R:
        return self._with_options(error_handler=validate_callable(handler, "error_handler"))

    def with_completion_callback(self: R, callback: Callable[[Any], None]) -> R:
        return self._with_options(
            completion_callback=validate_callable(callback, "completion_callback")
        )

    def with_progress(self: R, sink: ProgressSink) -> R:
        """Report progress in ``[0.0, 1.0]`` to *sink* (called on the event loop)."""
        return self._with_options(progress=validate_callable(sink, "progress"))

    def with_priority(self: R, priority: Priority) -> R:
        return self._with_options(priority=validate_priority(priority))

    # ── Subclass hooks ───────────────────────────────────────────────

    async def _execute(
        self,
        controller: ExecutionController,
        executor: ThreadPoolExecutor | None,
    ) -> Any:
        raise NotImplementedError

    def _pool_size(self) -> int:
        return 1

    def _needs_pool(self) -> bool:
        return self._options.background

    def _success(self, value: Any, elapsed: float) -> ExecutionResult[T]:
        return ExecutionResult.success(value, elapsed)

    def _log_fields(self) -> dict[str, Any]:
        return {}

    # ── Lifecycle ────────────────────────────────────────────────────

    async def run(self) -> ExecutionResult[T]:
        """Execute the configured work and return its outcome.

        Never raises for work failures, cancellation or timeouts; those are
        folded into the returned :class:`ExecutionResult`. Cancelling the task
        awaiting ``run()`` itself propagates ``asyncio.CancelledError``.
        """
        options = self._options
        started = time.perf_counter()
        owned = options.controller is None
        controller = options.controller or ExecutionController(options.priority)
        controller.priority = options.priority
        executor: ThreadPoolExecutor | None = None
        work: asyncio.Future[Any] | None = None

        async with LogContext(run_id=uuid.uuid4().hex[:12], runner=self.kind):
            try:
                if options.delay:
                    await self._delay(controller, options.delay)

                controller.start()
                logger.info(
                    "task.started",
                    controller=controller.name,
                    background=options.background,
                    timeout=options.timeout,
                    **self._log_fields(),
                )
                self._report(0.0)

                if self._needs_pool():
                    executor = self._create_pool(controller)
                work = asyncio.ensure_future(self._execute(controller, executor))
                value = await self._race(work, controller)

            except _TimedOut:
                return await self._on_timeout(controller, started)
            except OperationCancelledError as exc:
                if controller.token.is_cancelled:
                    return self._on_cancelled(controller, started)
                return await self._on_error(controller, exc, started)
            except asyncio.CancelledError:
                if work is not None:
                    work.cancel()
                if owned:
                    controller.cancel()
                raise
            except Exception as exc:
                return await self._on_error(controller, exc, started)
            else:
                return await self._on_success(controller, value, started)
            finally:
                if executor is not None:
                    executor.shutdown(wait=False, cancel_futures=True)
                if owned:
                    controller.dispose()

    def _create_pool(self, controller: ExecutionController) -> ThreadPoolExecutor:
        return create_worker_pool(self._pool_size(), controller.priority)

    async def _delay(self, controller: ExecutionController, seconds: float) -> None:
        logger.debug("task.delaying", delay=seconds)
        if await controller.token.wait_async(timeout=seconds):
            raise OperationCancelledError("Cancelled during start delay")

    async def _race(self, work: asyncio.Future[Any], controller: ExecutionController) -> Any:
        """Wait for *work*, the cancellation signal or the timeout, whichever is first."""
        cancelled = asyncio.ensure_future(controller.token.wait_async())
        try:
            done, _ = await asyncio.wait(
                {work, cancelled},
                timeout=self._options.timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            cancelled.cancel()

        if work in done:
            return work.result()

        work.cancel()
        work.add_done_callback(_consume_abandoned)
        if cancelled in done:
            raise OperationCancelledError()
        raise _TimedOut()

    # ── Outcomes ─────────────────────────────────────────────────────

    @staticmethod
    def _elapsed(started: float) -> float:
        return max(0.0, time.perf_counter() - started)

    async def _on_success(
        self,
        controller: ExecutionController,
        value: Any,
        started: float,
    ) -> ExecutionResult[T]:
        if controller.state in CALLER_TERMINAL_STATES:
            return self._on_cancelled(controller, started)

        controller._record_outcome(ExecutionState.COMPLETED)
        self._report(1.0)
        elapsed = self._elapsed(started)
        result = self._success(value, elapsed)
        logger.info("task.completed", elapsed=round(elapsed, 6))
        await self._notify("completion_callback", self._options.completion_callback, value)
        return result

    async def _on_error(
        self,
        controller: ExecutionController,
        exc: BaseException,
        started: float,
    ) -> ExecutionResult[T]:
        if controller.state in CALLER_TERMINAL_STATES:
            return self._on_cancelled(controller, started)

        controller._record_outcome(ExecutionState.ERROR)
        elapsed = self._elapsed(started)
        logger.error(
            "task.failed",
            error=str(exc),
            error_type=type(exc).__name__,
            elapsed=round(elapsed, 6),
            exc_info=exc,
        )
        await self._notify("error_handler", self._options.error_handler, exc)
        return ExecutionResult.failure(exc, ExecutionState.ERROR, elapsed)

    def _on_cancelled(self, controller: ExecutionController, started: float) -> ExecutionResult[T]:
        elapsed = self._elapsed(started)
        if controller.is_stopped:
            logger.info("task.stopped", elapsed=round(elapsed, 6))
            return ExecutionResult.stopped(elapsed)
        logger.info("task.cancelled", elapsed=round(elapsed, 6))
        return ExecutionResult.cancelled(elapsed)

    async def _on_timeout(self, controller: ExecutionController, started: float) -> ExecutionResult[T]:
        if controller.state in CALLER_TERMINAL_STATES:
            return self._on_cancelled(controller, started)

        controller._record_outcome(ExecutionState.TIMEOUT)
        elapsed = self._elapsed(started)
        logger.warning("task.timeout", timeout=self._options.timeout, elapsed=round(elapsed, 6))
        await self._notify("timeout_handler", self._options.timeout_handler, elapsed)
        return ExecutionResult.timeout(elapsed)

    # ── Callbacks ────────────────────────────────────────────────────

    def _report(self, value: float) -> None:
        sink = self._options.progress
        if sink is None:
            return
        try:
            sink(min(1.0, max(0.0, value)))
        except Exception as exc:
            logger.exception("task.callback_failed", callback="progress", error=str(exc))

    async def _notify(self, name: str, callback: Callable[..., Any] | None, *args: Any) -> None:
        if callback is None:
            return
        try:
            outcome = callback(*args)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as exc:
            logger.exception("task.callback_failed", callback=name, error=str(exc))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(work={getattr(self._work, '__name__', self._work)!r})"


__all__ = ["BaseRunner"]
