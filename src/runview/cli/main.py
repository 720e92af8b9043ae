# Copyright (c) Syntropy Systems
"""Main CLI entry point for runview."""

import typer

from runview.cli.dashboard import dashboard
from runview.cli.show import show

app = typer.Typer(
    name="runview",
    help="Run details pages for experiment tracking servers.",
    no_args_is_help=True,
    add_completion=False,
)

# Register commands
_ = app.command()(show)
_ = app.command()(dashboard)


if __name__ == "__main__":
    app()
