"""SingleTaskRunner — run one unit of work under a controller.

Example::

    def download(token):
        for chunk in stream():
            token.raise_if_cancelled()
            sink.write(chunk)
        return sink.size

    result = await (
        create_cancellable_task(download)
        .with_timeout(30, handler=lambda s: log.warning("slow", elapsed=s))
        .with_priority(Priority.BELOW_NORMAL)
        .run()
    )
"""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any, TypeVar

from taskrein.execution.controller import ExecutionController
from taskrein.execution.invoke import invoke_work, is_async_callable
from taskrein.execution.options import RunOptions
from taskrein.execution.runner import BaseRunner

T = TypeVar("T")


class SingleTaskRunner(BaseRunner[T]):
    """Runs ``work(token)`` once.

    Args:
        work: Callable receiving the controller's cancellation signal.
            May be a coroutine function.
        options: Initial configuration; usually built through ``with_*``.
    """

    kind = "single"

    def __init__(
        self,
        work: Callable[..., Any],
        options: RunOptions | None = None,
    ) -> None:
        super().__init__(work, options)

    def _needs_pool(self) -> bool:
        return self._options.background and not is_async_callable(self._work)

    async def _execute(
        self,
        controller: ExecutionController,
        executor: ThreadPoolExecutor | None,
    ) -> T:
        await controller.wait_if_paused_async()
        return await invoke_work(
            self._work,
            (controller.token,),
            background=self._options.background,
            executor=executor,
        )


__all__ = ["SingleTaskRunner"]
