# Copyright (c) Syntropy Systems
"""Show command - render a run page in the terminal."""
from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from runview.client import AsyncTrackingClient
from runview.config import feature_flags, load_config
from runview.errors import ContractViolation
from runview.page.composer import (
    BlankPage,
    LoadingPage,
    NotFoundPage,
    ReadyPage,
    RunNotFoundPage,
    Viewport,
)
from runview.page.run_page import RunPage
from runview.page.tabs import (
    ArtifactsView,
    MetricChartsView,
    RunPageTab,
    TracesView,
    available_tabs,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from runview.config import RunviewConfig
    from runview.models.tracking import Metric
    from runview.page.composer import PageView

console = Console()

EXIT_NOT_RENDERED = 1
EXIT_CONTRACT_VIOLATION = 2


async def _render(
    run_id: str,
    experiment_id: str,
    config: RunviewConfig,
    tab: str,
    viewport: Viewport,
) -> tuple[PageView, dict[str, Metric]]:
    async with AsyncTrackingClient(
        config.tracking_uri, timeout=config.request_timeout
    ) as client:
        page = RunPage(
            run_id,
            experiment_id,
            service=client,
            flags=feature_flags(config),
            full_height_breakpoint=config.full_height_breakpoint,
        )
        await page.load()
        return page.render(tab, viewport), page.loader.details.latest_metrics


def _print_metrics(view: MetricChartsView, metrics: Mapping[str, Metric]) -> None:
    if not view.metric_keys:
        console.print(f"[dim]No {view.mode} metrics recorded.[/dim]")
        return

    table = Table(title=f"{view.mode.capitalize()} metrics ({view.renderer.value})")
    table.add_column("Metric", style="cyan")
    table.add_column("Latest", justify="right")
    table.add_column("Step", justify="right")
    for key in view.metric_keys:
        metric = metrics.get(key)
        if metric is None:
            table.add_row(key, "-", "-")
            continue
        step = str(metric.step) if metric.step is not None else "-"
        table.add_row(key, f"{metric.value:.6g}", step)
    console.print(table)


def _print_mapping(title: str, values: Mapping[str, str]) -> None:
    if not values:
        console.print(f"[dim]No {title.lower()}.[/dim]")
        return
    table = Table(title=title)
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in values.items():
        table.add_row(key, value)
    console.print(table)


def _print_ready(view: ReadyPage, metrics: Mapping[str, Metric], tabs: list[RunPageTab]) -> None:
    header = view.header
    experiment_name = header.experiment.name if header.experiment else header.experiment_id
    layout = "full height" if view.full_height else "natural"
    tab_names = " | ".join(
        f"[bold]{t.value}[/bold]" if t == view.tab.tab else t.value for t in tabs
    )
    console.print(
        Panel(
            f"[bold]{header.run_display_name}[/bold]\n"
            f"Experiment: {experiment_name}\n"
            f"Run ID: {header.run_id}\n"
            f"[dim]{tab_names}  ({layout})[/dim]",
            title="Run",
        )
    )

    tab = view.tab
    if isinstance(tab, MetricChartsView):
        _print_metrics(tab, metrics)
    elif isinstance(tab, ArtifactsView):
        if tab.artifact_uri:
            console.print(f"Artifact root: [cyan]{tab.artifact_uri}[/cyan]")
        else:
            console.print("[dim]No artifact location recorded for this run.[/dim]")
    elif isinstance(tab, TracesView):
        console.print(f"Traces logged by run [cyan]{tab.run_id}[/cyan]")
    else:
        _print_mapping("Parameters", header.params)
        _print_mapping("Tags", header.tags)


def show(
    run_id: str = typer.Argument(..., help="Run ID to show"),
    experiment_id: str = typer.Option(
        ..., "--experiment-id", "-e", help="Experiment the run belongs to"
    ),
    tab: str = typer.Option(
        RunPageTab.OVERVIEW.value,
        "--tab",
        help="Tab to show (overview, model-metrics, system-metrics, artifacts, traces)",
    ),
    width: Optional[int] = typer.Option(
        None, "--width", "-w", help="Viewport width in pixels"
    ),
    tracking_uri: Optional[str] = typer.Option(
        None, "--tracking-uri", "-t", help="Tracking server URL"
    ),
) -> None:
    """Show a run's details page."""
    config = load_config()
    if tracking_uri:
        config.tracking_uri = tracking_uri

    try:
        view, metrics = asyncio.run(
            _render(run_id, experiment_id, config, tab, Viewport(width=width))
        )
    except ContractViolation as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(EXIT_CONTRACT_VIOLATION) from e

    if isinstance(view, LoadingPage):
        console.print("[dim]Run page loading[/dim]")
        return
    if isinstance(view, RunNotFoundPage):
        console.print(f"[red]Run not found:[/red] {view.run_id}")
        raise typer.Exit(EXIT_NOT_RENDERED)
    if isinstance(view, NotFoundPage):
        console.print("[red]Experiment not found[/red]")
        raise typer.Exit(EXIT_NOT_RENDERED)
    if isinstance(view, BlankPage):
        raise typer.Exit(EXIT_NOT_RENDERED)

    _print_ready(view, metrics, available_tabs(feature_flags(config)))
