"""
CLI utility helpers — output formatting for execution results.
"""

from __future__ import annotations

import json
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from taskrein.execution.result import ExecutionResult

console = Console()
err_console = Console(stderr=True)

_STATE_STYLES = {
    "completed": "bold green",
    "error": "bold red",
    "timeout": "yellow",
    "cancelled": "yellow",
    "stopped": "yellow",
}


def output_execution(
    result: ExecutionResult[Any],
    *,
    as_json: bool = False,
    title: str = "",
) -> None:
    """Render an ``ExecutionResult`` and exit 1 unless it succeeded."""
    payload = result.to_dict()

    if as_json:
        console.print_json(json.dumps(payload, default=str))
    else:
        _print_result(payload, title=title)

    if not result.is_success:
        raise typer.Exit(code=1)


# ── Private helpers ──────────────────────────────────────────────────────


def _print_result(payload: dict[str, Any], *, title: str = "") -> None:
    """Render a result payload as a two-column Rich table."""
    state = payload["final_state"]
    style = _STATE_STYLES.get(state, "bold")
    table = Table(title=title or None, show_header=False, pad_edge=False)
    table.add_column("field", style="cyan")
    table.add_column("value", overflow="fold")
    table.add_row("final_state", f"[{style}]{state}[/{style}]")
    for key, value in payload.items():
        if key == "final_state":
            continue
        table.add_row(key, str(value))
    console.print(table)
