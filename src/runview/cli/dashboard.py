# Copyright (c) Syntropy Systems
"""Dashboard command - start the web UI."""

import os
from typing import Optional

import typer
import uvicorn
from rich.console import Console

from runview.config import load_config

console = Console()


def dashboard(
    port: int = typer.Option(8266, "--port", "-p", help="Port to run the dashboard on"),
    host: str = typer.Option("0.0.0.0", "--host", "-h", help="Host to bind to"),
    tracking_uri: Optional[str] = typer.Option(
        None,
        "--tracking-uri",
        "-t",
        help="Tracking server URL (e.g., http://localhost:5000)",
    ),
) -> None:
    """Start the runview dashboard web UI."""
    if tracking_uri:
        os.environ["RUNVIEW_TRACKING_URI"] = tracking_uri

    config = load_config()
    console.print("[bold]runview dashboard[/bold]")
    console.print(f"  Tracking server: [cyan]{config.tracking_uri}[/cyan]")
    console.print(f"  Dashboard: [cyan]http://{host}:{port}[/cyan]")
    console.print("[dim]Press Ctrl+C to stop[/dim]\n")

    uvicorn.run(
        "runview.dashboard:app",
        host=host,
        port=port,
        log_level="warning",
    )
