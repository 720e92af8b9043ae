# Copyright (c) Syntropy Systems
"""Page paths for experiments and runs."""
from __future__ import annotations

import re
from urllib.parse import quote

from runview.page.tabs import RunPageTab

_ARTIFACTS_PATH = re.compile(r"^(artifactPath|artifacts)(?:/|$)")


def get_experiment_page_route(experiment_id: str) -> str:
    """Return the path of an experiment's page."""
    return f"/experiments/{quote(experiment_id, safe='')}"


def get_run_page_route(
    experiment_id: str,
    run_id: str,
    tab: RunPageTab | None = None,
) -> str:
    """Return the path of a run's page, optionally pointing at a tab."""
    path = f"{get_experiment_page_route(experiment_id)}/runs/{quote(run_id, safe='')}"
    if tab is not None and tab is not RunPageTab.OVERVIEW:
        path = f"{path}/{tab.value}"
    return path


def parse_tab(tab_path: str | None) -> RunPageTab:
    """Work out the active tab from the path segment after the run ID.

    Anything under artifacts/ (a browsed artifact path) selects the artifacts
    tab. Unknown segments select the overview.
    """
    if not tab_path:
        return RunPageTab.OVERVIEW
    segment = tab_path.strip("/")
    if segment == RunPageTab.MODEL_METRIC_CHARTS.value:
        return RunPageTab.MODEL_METRIC_CHARTS
    if segment == RunPageTab.SYSTEM_METRIC_CHARTS.value:
        return RunPageTab.SYSTEM_METRIC_CHARTS
    if segment == RunPageTab.TRACES.value:
        return RunPageTab.TRACES
    if _ARTIFACTS_PATH.match(segment):
        return RunPageTab.ARTIFACTS
    return RunPageTab.OVERVIEW


def parse_artifact_path(tab_path: str | None) -> str | None:
    """Return the artifact path browsed under the artifacts tab, if any."""
    if not tab_path:
        return None
    segment = tab_path.strip("/")
    match = _ARTIFACTS_PATH.match(segment)
    if match is None:
        return None
    rest = segment[match.end():].strip("/")
    return rest or None
