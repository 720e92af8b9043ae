# Copyright (c) Syntropy Systems
"""Tab selection for the run page."""
from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Literal, Union

if TYPE_CHECKING:
    from runview.models.tracking import RunInfo

SYSTEM_METRIC_PREFIX = "system/"


class RunPageTab(str, Enum):
    """Tabs of the run page, valued by their URL slug."""

    OVERVIEW = "overview"
    MODEL_METRIC_CHARTS = "model-metrics"
    SYSTEM_METRIC_CHARTS = "system-metrics"
    ARTIFACTS = "artifacts"
    TRACES = "traces"

    @classmethod
    def from_value(cls, value: object) -> RunPageTab | None:
        """Return the matching tab, or None for anything unrecognized."""
        if isinstance(value, RunPageTab):
            return value
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                return None
        return None


class ChartRenderer(str, Enum):
    """Chart renderer variants for the metric tabs."""

    LEGACY = "legacy"
    UNIFIED = "unified"


@dataclass(frozen=True)
class FeatureFlags:
    """Feature switches that change how the page renders."""

    traces_enabled: bool = False
    unified_charts: bool = False


@dataclass(frozen=True)
class MetricKeys:
    """Metric keys split into model and system partitions."""

    model: tuple[str, ...] = ()
    system: tuple[str, ...] = ()


def available_tabs(flags: FeatureFlags) -> list[RunPageTab]:
    """Return the tabs offered in the page navigation, in display order."""
    tabs = [
        RunPageTab.OVERVIEW,
        RunPageTab.MODEL_METRIC_CHARTS,
        RunPageTab.SYSTEM_METRIC_CHARTS,
    ]
    if flags.traces_enabled:
        tabs.append(RunPageTab.TRACES)
    tabs.append(RunPageTab.ARTIFACTS)
    return tabs


def is_system_metric_key(key: str) -> bool:
    """Return whether a metric key is reserved for system telemetry."""
    return key.startswith(SYSTEM_METRIC_PREFIX)


def partition_metric_keys(latest_metrics: Mapping[str, object] | None) -> MetricKeys:
    """Split metric keys by the system naming convention, keeping source order."""
    if not latest_metrics:
        return MetricKeys()
    keys = list(latest_metrics.keys())
    return MetricKeys(
        model=tuple(key for key in keys if not is_system_metric_key(key)),
        system=tuple(key for key in keys if is_system_metric_key(key)),
    )


RefetchCallback = Callable[[], Awaitable[None]]


@dataclass(frozen=True)
class TabContext:
    """Run data the tab views are built from."""

    run_id: str
    experiment_id: str
    run_info: RunInfo | None = None
    tags: Mapping[str, str] = field(default_factory=dict)
    on_run_data_updated: RefetchCallback | None = None


@dataclass(frozen=True)
class MetricChartsView:
    """Metric charts over one partition of metric keys."""

    mode: Literal["model", "system"]
    renderer: ChartRenderer
    metric_keys: tuple[str, ...]
    run_info: RunInfo | None = None

    @property
    def tab(self) -> RunPageTab:
        if self.mode == "system":
            return RunPageTab.SYSTEM_METRIC_CHARTS
        return RunPageTab.MODEL_METRIC_CHARTS


@dataclass(frozen=True)
class ArtifactsView:
    """Artifact browser for the run. artifact_uri may be None (empty state)."""

    run_id: str
    experiment_id: str
    tags: Mapping[str, str]
    artifact_uri: str | None = None

    @property
    def tab(self) -> RunPageTab:
        return RunPageTab.ARTIFACTS


@dataclass(frozen=True)
class TracesView:
    """Traces logged against the run."""

    run_id: str
    experiment_id: str
    tags: Mapping[str, str]

    @property
    def tab(self) -> RunPageTab:
        return RunPageTab.TRACES


@dataclass(frozen=True)
class OverviewView:
    """Run summary. on_run_data_updated re-fetches after edits."""

    run_id: str
    on_run_data_updated: RefetchCallback | None = None

    @property
    def tab(self) -> RunPageTab:
        return RunPageTab.OVERVIEW


TabView = Union[MetricChartsView, ArtifactsView, TracesView, OverviewView]


def _chart_renderer(flags: FeatureFlags) -> ChartRenderer:
    return ChartRenderer.UNIFIED if flags.unified_charts else ChartRenderer.LEGACY


def select_tab(
    requested: RunPageTab | str | None,
    flags: FeatureFlags,
    metric_keys: MetricKeys,
    context: TabContext,
) -> TabView:
    """Map the requested tab to the view to render.

    Unknown tabs, and the traces tab while traces are disabled, fall back to
    the overview.
    """
    tab = RunPageTab.from_value(requested)

    if tab is RunPageTab.MODEL_METRIC_CHARTS:
        return MetricChartsView(
            mode="model",
            renderer=_chart_renderer(flags),
            metric_keys=metric_keys.model,
            run_info=context.run_info,
        )
    if tab is RunPageTab.SYSTEM_METRIC_CHARTS:
        return MetricChartsView(
            mode="system",
            renderer=_chart_renderer(flags),
            metric_keys=metric_keys.system,
            run_info=context.run_info,
        )
    if tab is RunPageTab.ARTIFACTS:
        artifact_uri = context.run_info.artifact_uri if context.run_info else None
        return ArtifactsView(
            run_id=context.run_id,
            experiment_id=context.experiment_id,
            tags=context.tags,
            artifact_uri=artifact_uri or None,
        )
    if tab is RunPageTab.TRACES and flags.traces_enabled:
        return TracesView(
            run_id=context.run_id,
            experiment_id=context.experiment_id,
            tags=context.tags,
        )

    return OverviewView(
        run_id=context.run_id,
        on_run_data_updated=context.on_run_data_updated,
    )
