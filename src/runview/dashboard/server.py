# Copyright (c) Syntropy Systems
"""runview dashboard - FastAPI server with HTMX + Tailwind."""
from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated, Protocol, cast

from fastapi import Depends, FastAPI, Form, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates

import runview
from runview.client import AsyncTrackingClient
from runview.config import RunviewConfig, feature_flags, load_config
from runview.errors import TrackingClientError
from runview.models.tracking import Metric
from runview.page.composer import (
    BlankPage,
    LoadingPage,
    NotFoundPage,
    PageView,
    ReadyPage,
    RunNotFoundPage,
    Viewport,
)
from runview.page.routes import (
    get_experiment_page_route,
    get_run_page_route,
    parse_artifact_path,
    parse_tab,
)
from runview.page.run_page import RunPage
from runview.page.tabs import RunPageTab, available_tabs

logger = logging.getLogger(__name__)

# Setup paths
DASHBOARD_DIR = Path(__file__).parent
TEMPLATES_DIR = DASHBOARD_DIR / "templates"
VIEWPORT_WIDTH_HEADER = "sec-ch-viewport-width"
BYTES_PER_KB = 1024

app = FastAPI(title="runview dashboard", docs_url=None, redoc_url=None)
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def get_settings() -> RunviewConfig:
    """Load the dashboard configuration."""
    return load_config()


async def get_client(
    settings: Annotated[RunviewConfig, Depends(get_settings)],
) -> AsyncIterator[AsyncTrackingClient]:
    """Open a tracking client for the duration of a request."""
    client = AsyncTrackingClient(settings.tracking_uri, timeout=settings.request_timeout)
    try:
        yield client
    finally:
        await client.aclose()


SettingsDep = Annotated[RunviewConfig, Depends(get_settings)]
ClientDep = Annotated[AsyncTrackingClient, Depends(get_client)]


def format_timestamp(millis: int | None) -> str:
    """Format epoch milliseconds as a UTC timestamp."""
    if millis is None:
        return "-"
    ts = datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
    return ts.strftime("%Y-%m-%d %H:%M:%S UTC")


def format_size(size: int | None) -> str:
    """Format a byte count for display."""
    if size is None:
        return "-"
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < BYTES_PER_KB:
            return f"{int(value)} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= BYTES_PER_KB
    return f"{value:.1f} TB"


class _TemplateEnv(Protocol):
    filters: dict[str, object]
    globals: dict[str, object]


# Add custom filters to Jinja2
templates_env = cast("_TemplateEnv", templates.env)
templates_env.filters["format_timestamp"] = format_timestamp
templates_env.filters["format_size"] = format_size

# Add global template variables
templates_env.globals["version"] = runview.__version__
templates_env.globals["run_page_route"] = get_run_page_route
templates_env.globals["experiment_page_route"] = get_experiment_page_route
templates_env.globals["RunPageTab"] = RunPageTab


def read_viewport(request: Request, vw: int | None) -> Viewport:
    """Read the viewport width from the query string or the client hint."""
    if vw is not None:
        return Viewport(width=vw)
    header = request.headers.get(VIEWPORT_WIDTH_HEADER)
    if header is not None:
        try:
            return Viewport(width=int(float(header)))
        except ValueError:
            logger.debug("Ignoring malformed viewport width header %r", header)
    return Viewport()


class _NavigationTarget:
    """Captures where a page asked to navigate to."""

    path: str | None

    def __init__(self) -> None:
        self.path = None

    def __call__(self, path: str) -> None:
        self.path = path


def _redirect(request: Request, path: str) -> Response:
    if request.headers.get("hx-request"):
        return Response(status_code=204, headers={"HX-Redirect": path})
    return RedirectResponse(url=path, status_code=303)


def render_page_view(
    request: Request,
    view: PageView,
    *,
    active_tab: RunPageTab,
    tabs: list[RunPageTab] | None = None,
    metrics: Mapping[str, Metric] | None = None,
    artifact_path: str | None = None,
) -> Response:
    """Turn a page view into an HTTP response."""
    if isinstance(view, BlankPage):
        return HTMLResponse(content="", status_code=200)
    if isinstance(view, RunNotFoundPage):
        return templates.TemplateResponse(
            request,
            "run_not_found.html",
            {"run_id": view.run_id},
            status_code=404,
        )
    if isinstance(view, NotFoundPage):
        return templates.TemplateResponse(request, "not_found.html", {}, status_code=404)
    if isinstance(view, LoadingPage):
        return templates.TemplateResponse(
            request, "loading.html", {"paragraphs": view.paragraphs}
        )

    ready = cast("ReadyPage", view)
    return templates.TemplateResponse(
        request,
        "run_page.html",
        {
            "page": ready,
            "header": ready.header,
            "tab": ready.tab,
            "active_tab": ready.tab.tab,
            "requested_tab": active_tab,
            "tabs": tabs or [],
            "metrics": metrics or {},
            "artifact_path": artifact_path,
        },
    )


async def _load_run_page(
    run_id: str,
    experiment_id: str,
    client: AsyncTrackingClient,
    settings: RunviewConfig,
) -> RunPage:
    page = RunPage(
        run_id,
        experiment_id,
        service=client,
        flags=feature_flags(settings),
        full_height_breakpoint=settings.full_height_breakpoint,
    )
    await page.load()
    return page


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check."""
    return {"status": "ok"}


@app.get("/experiments/{experiment_id}", response_class=HTMLResponse)
async def experiment_page(
    request: Request,
    experiment_id: str,
    client: ClientDep,
) -> Response:
    """Render an experiment's landing page."""
    try:
        experiment = await client.get_experiment(experiment_id)
    except TrackingClientError as e:
        if e.is_not_found:
            return templates.TemplateResponse(
                request, "not_found.html", {}, status_code=404
            )
        logger.exception("Failed to fetch experiment %s", experiment_id)
        return HTMLResponse(content="", status_code=200)

    return templates.TemplateResponse(
        request,
        "experiment.html",
        {"experiment": experiment},
    )


@app.get("/experiments/{experiment_id}/runs/{run_id}", response_class=HTMLResponse)
@app.get(
    "/experiments/{experiment_id}/runs/{run_id}/{tab_path:path}",
    response_class=HTMLResponse,
)
async def run_page(  # noqa: PLR0913
    request: Request,
    experiment_id: str,
    run_id: str,
    client: ClientDep,
    settings: SettingsDep,
    tab_path: str | None = None,
    vw: Annotated[int | None, Query(ge=0)] = None,
    modal: str | None = None,
) -> Response:
    """Render the run details page."""
    page = await _load_run_page(run_id, experiment_id, client, settings)
    active_tab = parse_tab(tab_path)
    viewport = read_viewport(request, vw)

    view = page.render(active_tab, viewport)
    if isinstance(view, ReadyPage) and modal in ("rename", "delete"):
        header = view.header
        callback = header.on_rename_click if modal == "rename" else header.on_delete_click
        if callback is not None:
            callback()
        view = page.render(active_tab, viewport)

    return render_page_view(
        request,
        view,
        active_tab=active_tab,
        tabs=available_tabs(page.flags),
        metrics=page.loader.details.latest_metrics,
        artifact_path=parse_artifact_path(tab_path),
    )


@app.post("/experiments/{experiment_id}/runs/{run_id}/rename", response_class=HTMLResponse)
async def rename_run(  # noqa: PLR0913
    request: Request,
    experiment_id: str,
    run_id: str,
    new_name: Annotated[str, Form(min_length=1)],
    client: ClientDep,
    settings: SettingsDep,
) -> Response:
    """Rename a run, then re-render it with fresh data."""
    run_name = new_name.strip()
    if not run_name:
        raise HTTPException(status_code=422, detail="Run name must not be blank")

    page = await _load_run_page(run_id, experiment_id, client, settings)
    try:
        await client.rename_run(run_id, run_name)
    except TrackingClientError as e:
        raise HTTPException(status_code=e.status_code or 502, detail=str(e)) from e

    await page.rename_succeeded()
    view = page.render(RunPageTab.OVERVIEW, read_viewport(request, None))
    return render_page_view(
        request,
        view,
        active_tab=RunPageTab.OVERVIEW,
        tabs=available_tabs(page.flags),
        metrics=page.loader.details.latest_metrics,
    )


@app.post("/experiments/{experiment_id}/runs/{run_id}/delete")
async def delete_run(
    request: Request,
    experiment_id: str,
    run_id: str,
    client: ClientDep,
) -> Response:
    """Delete a run and go back to its experiment."""
    target = _NavigationTarget()
    # Only the navigation is needed, so the page is not loaded.
    page = RunPage(run_id, experiment_id, service=client, navigate_to=target)
    try:
        await client.delete_run(run_id)
    except TrackingClientError as e:
        raise HTTPException(status_code=e.status_code or 502, detail=str(e)) from e

    page.delete_succeeded()
    return _redirect(request, target.path or get_experiment_page_route(experiment_id))


# HTMX Partials

@app.get(
    "/partials/experiments/{experiment_id}/runs/{run_id}/artifacts",
    response_class=HTMLResponse,
)
async def artifacts_partial(
    request: Request,
    experiment_id: str,
    run_id: str,
    client: ClientDep,
    path: str | None = None,
) -> Response:
    """Render the artifact listing for the artifacts tab."""
    try:
        listing = await client.list_artifacts(run_id, path)
    except TrackingClientError as e:
        logger.warning("Failed to list artifacts for run %s: %s", run_id, e)
        return templates.TemplateResponse(
            request,
            "partials/artifacts.html",
            {
                "files": [],
                "error": str(e),
                "experiment_id": experiment_id,
                "run_id": run_id,
                "path": path,
            },
        )

    return templates.TemplateResponse(
        request,
        "partials/artifacts.html",
        {
            "files": listing.files,
            "error": None,
            "experiment_id": experiment_id,
            "run_id": run_id,
            "path": path,
        },
    )


def create_app() -> FastAPI:
    """Create and return the FastAPI app."""
    return app
