"""BatchTaskRunner — apply one work function to every item of a collection.

WHY
───
Bulk jobs (uploads, conversions, per-symbol fetches) need bounded fan-out
plus the same pause / cancel / timeout behaviour as a single task. The
batch runner reuses the single-task lifecycle and swaps in a body that
dispatches items either in parallel under an admission limiter or one at a
time in source order.

ARCHITECTURE
────────────
::

    parallel                                  sequential
    ────────                                  ──────────
    dispatcher                                for item in items:
      for item in items:                          wait_if_paused_async()
        acquire slot  (raced with token)          invoke(item)
        group.create_task(run_item)               append + progress
    run_item
      wait_if_paused_async()
      invoke(item)          ← worker pool
      release slot
      append + progress     ← loop thread only

    asyncio.TaskGroup: the first failing item aborts its siblings.

Failure semantics: any item failure makes the whole run ``ERROR`` and any
cancellation makes it ``CANCELLED``. Results gathered before that point are
discarded. Parallel results are in completion order.

Related modules:
    runner.py   — shared lifecycle and fluent configuration
    invoke.py   — per-item invocation
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from typing import Any, TypeVar

from taskrein.core.errors import OperationCancelledError
from taskrein.core.logging import get_logger
from taskrein.core.settings import get_settings
from taskrein.execution.controller import ExecutionController
from taskrein.execution.invoke import invoke_work, is_async_callable
from taskrein.execution.options import RunOptions, validate_max_concurrency
from taskrein.execution.result import ExecutionResult
from taskrein.execution.runner import BaseRunner
from taskrein.execution.signals import CancellationSignal

logger = get_logger(__name__)

T = TypeVar("T")


def _leaf_errors(group: BaseExceptionGroup) -> list[BaseException]:
    leaves: list[BaseException] = []
    for exc in group.exceptions:
        if isinstance(exc, BaseExceptionGroup):
            leaves.extend(_leaf_errors(exc))
        else:
            leaves.append(exc)
    return leaves


def _first_error(group: BaseExceptionGroup) -> BaseException:
    """Pick the error that decides the batch outcome: a real failure beats a cancellation."""
    leaves = _leaf_errors(group)
    for exc in leaves:
        if not isinstance(exc, (OperationCancelledError, asyncio.CancelledError)):
            return exc
    return leaves[0]


async def _acquire_slot(limiter: asyncio.Semaphore, token: CancellationSignal) -> None:
    """Acquire one admission slot, or raise OperationCancelledError if cancelled first."""
    acquire = asyncio.ensure_future(limiter.acquire())
    cancelled = asyncio.ensure_future(token.wait_async())
    try:
        await asyncio.wait({acquire, cancelled}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        cancelled.cancel()
        if not acquire.done():
            acquire.cancel()

    if acquire.done() and not acquire.cancelled() and token.is_cancelled:
        limiter.release()
    token.raise_if_cancelled()


class BatchTaskRunner(BaseRunner[T]):
    """Runs ``work(item, token)`` for every item.

    Args:
        items: Source collection; materialized once at construction.
        work: Callable receiving an item and the cancellation signal.
        options: Initial configuration.
        parallel: Dispatch items concurrently (True) or one at a time.
        max_concurrency: Parallel admission limit. Defaults to
            ``TaskReinSettings.default_max_concurrency``.
    """

    kind = "batch"

    def __init__(
        self,
        items: Iterable[Any],
        work: Callable[..., Any],
        options: RunOptions | None = None,
        *,
        parallel: bool = True,
        max_concurrency: int | None = None,
    ) -> None:
        super().__init__(work, options)
        self._items: tuple[Any, ...] = tuple(items)
        self._parallel = parallel
        if max_concurrency is None:
            max_concurrency = get_settings().default_max_concurrency
        self._max_concurrency = validate_max_concurrency(max_concurrency)

    @property
    def items(self) -> tuple[Any, ...]:
        return self._items

    @property
    def is_parallel(self) -> bool:
        return self._parallel

    @property
    def max_concurrency(self) -> int:
        return self._max_concurrency

    # ── Batch-only configuration ─────────────────────────────────────

    def with_max_concurrency(self, value: int) -> BatchTaskRunner[T]:
        """Cap the number of items in flight. Raises ValidationError if < 1."""
        clone = self._with_options()
        clone._max_concurrency = validate_max_concurrency(value)
        return clone

    def parallel(self) -> BatchTaskRunner[T]:
        clone = self._with_options()
        clone._parallel = True
        return clone

    def sequential(self) -> BatchTaskRunner[T]:
        clone = self._with_options()
        clone._parallel = False
        return clone

    # ── Lifecycle hooks ──────────────────────────────────────────────

    async def run(self) -> ExecutionResult[T]:
        if not self._items:
            logger.debug("batch.empty")
            return ExecutionResult.success_many((), 0.0)
        return await super().run()

    def _needs_pool(self) -> bool:
        if is_async_callable(self._work):
            return False
        return self._parallel or self._options.background

    def _pool_size(self) -> int:
        return self._max_concurrency if self._parallel else 1

    def _success(self, value: Any, elapsed: float) -> ExecutionResult[T]:
        return ExecutionResult.success_many(value, elapsed)

    def _log_fields(self) -> dict[str, Any]:
        return {
            "items": len(self._items),
            "mode": "parallel" if self._parallel else "sequential",
            "max_concurrency": self._max_concurrency,
        }

    async def _execute(
        self,
        controller: ExecutionController,
        executor: ThreadPoolExecutor | None,
    ) -> tuple[T, ...]:
        if self._parallel:
            return await self._run_parallel(controller, executor)
        return await self._run_sequential(controller, executor)

    # ── Modes ────────────────────────────────────────────────────────

    async def _run_parallel(
        self,
        controller: ExecutionController,
        executor: ThreadPoolExecutor | None,
    ) -> tuple[T, ...]:
        token = controller.token
        limiter = asyncio.Semaphore(self._max_concurrency)
        total = len(self._items)
        results: list[T] = []
        completed = 0

        async def run_item(index: int, item: Any) -> None:
            nonlocal completed
            try:
                await controller.wait_if_paused_async()
                value = await invoke_work(
                    self._work, (item, token), background=True, executor=executor
                )
            except OperationCancelledError:
                raise
            except Exception as exc:
                logger.warning("batch.item_failed", index=index, error=str(exc))
                raise
            finally:
                limiter.release()
            results.append(value)
            completed += 1
            self._report(completed / total)

        try:
            async with asyncio.TaskGroup() as group:
                for index, item in enumerate(self._items):
                    await _acquire_slot(limiter, token)
                    group.create_task(run_item(index, item))
        except BaseExceptionGroup as errors:
            raise _first_error(errors)

        token.raise_if_cancelled()
        return tuple(results)

    async def _run_sequential(
        self,
        controller: ExecutionController,
        executor: ThreadPoolExecutor | None,
    ) -> tuple[T, ...]:
        token = controller.token
        total = len(self._items)
        results: list[T] = []

        for index, item in enumerate(self._items):
            await controller.wait_if_paused_async()
            try:
                value = await invoke_work(
                    self._work,
                    (item, token),
                    background=self._options.background,
                    executor=executor,
                )
            except OperationCancelledError:
                raise
            except Exception as exc:
                logger.warning("batch.item_failed", index=index, error=str(exc))
                raise
            results.append(value)
            self._report((index + 1) / total)

        return tuple(results)

    def __repr__(self) -> str:
        mode = "parallel" if self._parallel else "sequential"
        return f"BatchTaskRunner(items={len(self._items)}, mode={mode}, max_concurrency={self._max_concurrency})"


__all__ = ["BatchTaskRunner"]
