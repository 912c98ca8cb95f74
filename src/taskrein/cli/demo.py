"""
CLI: ``taskrein demo`` — exercise the engine from the terminal.

Both commands build a runner the same way library callers do, run it on a
fresh event loop and print the ``ExecutionResult``.
"""

from __future__ import annotations

import asyncio
import time

import typer

from taskrein.cli.utils import err_console, output_execution
from taskrein.execution.factory import create_cancellable_batch, create_cancellable_task
from taskrein.execution.signals import CancellationSignal

app = typer.Typer(no_args_is_help=True)

_TICK = 0.01


def _busy_wait(seconds: float, token: CancellationSignal) -> None:
    """Sleep in short ticks so cancellation is observed promptly."""
    deadline = time.monotonic() + seconds
    while (remaining := deadline - time.monotonic()) > 0:
        token.raise_if_cancelled()
        time.sleep(min(_TICK, remaining))
    token.raise_if_cancelled()


class DemoFailure(RuntimeError):
    """Raised by ``demo single --fail``."""


@app.command("single")
def single(
    work_ms: int = typer.Option(200, "--work-ms", min=0, help="Simulated work duration"),
    delay_ms: int = typer.Option(0, "--delay-ms", min=0, help="Delay before starting"),
    timeout_ms: int | None = typer.Option(None, "--timeout-ms", min=1, help="Timeout for the run"),  # noqa: UP007
    fail: bool = typer.Option(False, "--fail", help="Make the work raise"),
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Run one simulated task.

    Example::

        taskrein demo single --work-ms 500 --timeout-ms 100
        taskrein demo single --fail --json
    """

    def work(token: CancellationSignal) -> int:
        _busy_wait(work_ms / 1000, token)
        if fail:
            raise DemoFailure(f"work failed after {work_ms} ms")
        return work_ms

    def on_timeout(elapsed: float) -> None:
        if not as_json:
            err_console.print(f"[yellow]Timed out after {elapsed:.3f}s[/yellow]")

    runner = create_cancellable_task(work)
    if delay_ms:
        runner = runner.with_delay(delay_ms / 1000)
    if timeout_ms is not None:
        runner = runner.with_timeout(timeout_ms / 1000, handler=on_timeout)

    result = asyncio.run(runner.run())
    output_execution(result, as_json=as_json, title="demo single")


@app.command("batch")
def batch(
    items: int = typer.Option(9, "--items", "-n", min=0, help="Number of items"),
    concurrency: int = typer.Option(3, "--concurrency", "-c", min=1, help="Max items in flight"),
    item_ms: int = typer.Option(50, "--item-ms", min=0, help="Simulated work per item"),
    sequential: bool = typer.Option(False, "--sequential", help="Process items one at a time"),
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Run a simulated batch; each item returns its square.

    Example::

        taskrein demo batch --items 9 --concurrency 3 --item-ms 50
        taskrein demo batch --items 5 --sequential --json
    """

    def work(item: int, token: CancellationSignal) -> int:
        _busy_wait(item_ms / 1000, token)
        return item * item

    runner = create_cancellable_batch(range(items), work).with_max_concurrency(concurrency)
    if sequential:
        runner = runner.sequential()

    result = asyncio.run(runner.run())
    output_execution(result, as_json=as_json, title="demo batch")
