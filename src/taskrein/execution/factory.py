"""Runner factories — the public way to build runners.

``create_task`` / ``create_batch`` accept work that knows nothing about
cancellation; the work is wrapped so it ignores the token. The
``create_cancellable_*`` variants pass the token through so the work can
call ``token.raise_if_cancelled()`` at its own safe points.

Examples::

    await create_task(lambda: 42).run()
    await create_batch(urls, fetch).with_max_concurrency(8).run()
    await create_cancellable_batch(paths, convert).sequential().run()
"""

from __future__ import annotations

import functools
from collections.abc import Callable, Iterable
from typing import Any

from taskrein.execution.batch import BatchTaskRunner
from taskrein.execution.invoke import is_async_callable
from taskrein.execution.options import RunOptions, validate_callable
from taskrein.execution.single import SingleTaskRunner


def _ignore_token(fn: Callable[..., Any], arity: int) -> Callable[..., Any]:
    """Adapt *fn* taking ``arity - 1`` args to also accept a trailing token."""
    if is_async_callable(fn):

        @functools.wraps(fn)
        async def async_adapter(*args: Any) -> Any:
            return await fn(*args[: arity - 1])

        return async_adapter

    @functools.wraps(fn)
    def adapter(*args: Any) -> Any:
        return fn(*args[: arity - 1])

    return adapter


def create_task(fn: Callable[[], Any], *, background: bool = True) -> SingleTaskRunner[Any]:
    """Runner for a zero-argument callable or coroutine function."""
    validate_callable(fn, "work")
    return SingleTaskRunner(_ignore_token(fn, 1), RunOptions(background=background))


def create_cancellable_task(
    fn: Callable[..., Any],
    *,
    background: bool = True,
) -> SingleTaskRunner[Any]:
    """Runner for ``fn(token)``."""
    return SingleTaskRunner(fn, RunOptions(background=background))


def create_batch(
    items: Iterable[Any],
    fn: Callable[[Any], Any],
    *,
    parallel: bool = True,
    background: bool = True,
) -> BatchTaskRunner[Any]:
    """Runner applying ``fn(item)`` to every item."""
    validate_callable(fn, "work")
    return BatchTaskRunner(
        items,
        _ignore_token(fn, 2),
        RunOptions(background=background),
        parallel=parallel,
    )


def create_cancellable_batch(
    items: Iterable[Any],
    fn: Callable[..., Any],
    *,
    parallel: bool = True,
    background: bool = True,
) -> BatchTaskRunner[Any]:
    """Runner applying ``fn(item, token)`` to every item."""
    return BatchTaskRunner(items, fn, RunOptions(background=background), parallel=parallel)


__all__ = [
    "create_task",
    "create_cancellable_task",
    "create_batch",
    "create_cancellable_batch",
]
