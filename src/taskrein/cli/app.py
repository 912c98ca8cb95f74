"""
Root Typer application for the taskrein CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from taskrein.core.logging import configure_logging
from taskrein.core.settings import get_settings

app = Typer(
    name="taskrein",
    help="taskrein — controllable task execution engine.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        from taskrein import __version__

        try:
            v = pkg_version("taskrein")
        except PackageNotFoundError:
            v = __version__
        typer.echo(f"taskrein {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """taskrein CLI — run demo tasks and batches."""
    settings = get_settings()
    configure_logging(level=settings.log_level, json_format=settings.json_logs)


# ── Sub-command registration ─────────────────────────────────────────────

from taskrein.cli.demo import app as demo_app  # noqa: E402

app.add_typer(demo_app, name="demo", help="Run demo tasks and batches.")
