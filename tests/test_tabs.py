# Copyright (c) Syntropy Systems
"""Tests for tab selection, metric partitioning and page routes."""

import pytest

from runview.models.tracking import RunInfo
from runview.page.routes import (
    get_experiment_page_route,
    get_run_page_route,
    parse_artifact_path,
    parse_tab,
)
from runview.page.tabs import (
    ArtifactsView,
    ChartRenderer,
    FeatureFlags,
    MetricChartsView,
    MetricKeys,
    OverviewView,
    RunPageTab,
    TabContext,
    TracesView,
    available_tabs,
    is_system_metric_key,
    partition_metric_keys,
    select_tab,
)

KEYS = MetricKeys(model=("loss", "accuracy"), system=("system/cpu_utilization_percentage",))


async def _refetch() -> None:
    return None


@pytest.fixture
def context() -> TabContext:
    """Tab context for run-1 with an artifact root."""
    return TabContext(
        run_id="run-1",
        experiment_id="0",
        run_info=RunInfo(
            run_id="run-1",
            experiment_id="0",
            run_name="baseline",
            artifact_uri="s3://bucket/0/run-1/artifacts",
        ),
        tags={"team": "vision"},
        on_run_data_updated=_refetch,
    )


class TestPartitionMetricKeys:
    """Tests for splitting model and system metric keys."""

    def test_system_prefix(self) -> None:
        """Only the system/ prefix marks a system metric."""
        assert is_system_metric_key("system/cpu_utilization_percentage")
        assert not is_system_metric_key("loss")
        assert not is_system_metric_key("my_system/loss")
        assert not is_system_metric_key("System/cpu")

    def test_partition_preserves_order(self) -> None:
        """Each partition keeps the source mapping's order."""
        latest = {
            "system/b": 1,
            "loss": 2,
            "system/a": 3,
            "accuracy": 4,
        }
        keys = partition_metric_keys(latest)

        assert keys.model == ("loss", "accuracy")
        assert keys.system == ("system/b", "system/a")

    def test_partition_is_exhaustive_and_disjoint(self) -> None:
        """Every key lands in exactly one partition."""
        latest = dict.fromkeys(["a", "system/x", "b/c", "system/", "systemx"], 0)
        keys = partition_metric_keys(latest)

        assert sorted(keys.model + keys.system) == sorted(latest)
        assert not set(keys.model) & set(keys.system)

    def test_partition_is_idempotent(self) -> None:
        """Partitioning the same mapping twice gives the same result."""
        latest = {"loss": 1, "system/cpu": 2}
        assert partition_metric_keys(latest) == partition_metric_keys(latest)

    def test_partition_empty(self) -> None:
        """No metrics gives two empty partitions."""
        assert partition_metric_keys(None) == MetricKeys()
        assert partition_metric_keys({}) == MetricKeys()


class TestSelectTab:
    """Tests for mapping requested tabs to views."""

    def test_model_metrics_unified(self, context: TabContext) -> None:
        """Unified charts render the model partition with the unified renderer."""
        view = select_tab(
            RunPageTab.MODEL_METRIC_CHARTS,
            FeatureFlags(unified_charts=True),
            KEYS,
            context,
        )

        assert isinstance(view, MetricChartsView)
        assert view.mode == "model"
        assert view.renderer is ChartRenderer.UNIFIED
        assert view.metric_keys == ("loss", "accuracy")
        assert view.run_info == context.run_info
        assert view.tab is RunPageTab.MODEL_METRIC_CHARTS

    def test_model_metrics_legacy(self, context: TabContext) -> None:
        """Without the flag the legacy renderer is used."""
        view = select_tab("model-metrics", FeatureFlags(), KEYS, context)

        assert isinstance(view, MetricChartsView)
        assert view.renderer is ChartRenderer.LEGACY

    def test_system_metrics(self, context: TabContext) -> None:
        """System metrics render the system partition."""
        view = select_tab(
            RunPageTab.SYSTEM_METRIC_CHARTS, FeatureFlags(), KEYS, context
        )

        assert isinstance(view, MetricChartsView)
        assert view.mode == "system"
        assert view.metric_keys == ("system/cpu_utilization_percentage",)
        assert view.tab is RunPageTab.SYSTEM_METRIC_CHARTS

    def test_artifacts(self, context: TabContext) -> None:
        """Artifacts get run identity, tags and the artifact root."""
        view = select_tab(RunPageTab.ARTIFACTS, FeatureFlags(), KEYS, context)

        assert isinstance(view, ArtifactsView)
        assert view.run_id == "run-1"
        assert view.experiment_id == "0"
        assert view.tags == {"team": "vision"}
        assert view.artifact_uri == "s3://bucket/0/run-1/artifacts"

    def test_artifacts_without_uri(self) -> None:
        """A run without an artifact root still renders the artifacts tab."""
        context = TabContext(
            run_id="run-1",
            experiment_id="0",
            run_info=RunInfo(run_id="run-1", experiment_id="0"),
        )
        view = select_tab(RunPageTab.ARTIFACTS, FeatureFlags(), KEYS, context)

        assert isinstance(view, ArtifactsView)
        assert view.artifact_uri is None

    def test_traces_enabled(self, context: TabContext) -> None:
        """The traces tab renders when the flag is on."""
        view = select_tab(
            RunPageTab.TRACES, FeatureFlags(traces_enabled=True), KEYS, context
        )

        assert isinstance(view, TracesView)
        assert view.run_id == "run-1"

    def test_traces_disabled_falls_back_to_overview(self, context: TabContext) -> None:
        """The traces tab is never rendered while disabled."""
        view = select_tab(RunPageTab.TRACES, FeatureFlags(), KEYS, context)

        assert isinstance(view, OverviewView)
        assert view.on_run_data_updated is _refetch

    @pytest.mark.parametrize("requested", [None, "overview", "bogus", 42, ""])
    def test_overview_fallback(self, context: TabContext, requested: object) -> None:
        """Overview and anything unrecognized render the overview."""
        view = select_tab(requested, FeatureFlags(unified_charts=True), KEYS, context)  # type: ignore[arg-type]

        assert isinstance(view, OverviewView)
        assert view.run_id == "run-1"

    def test_available_tabs(self) -> None:
        """The traces tab is only offered when enabled."""
        assert RunPageTab.TRACES not in available_tabs(FeatureFlags())
        assert RunPageTab.TRACES in available_tabs(FeatureFlags(traces_enabled=True))
        assert available_tabs(FeatureFlags())[0] is RunPageTab.OVERVIEW


class TestRoutes:
    """Tests for page paths and tab parsing."""

    def test_experiment_route(self) -> None:
        """Experiment pages live under /experiments."""
        assert get_experiment_page_route("12") == "/experiments/12"

    def test_run_route(self) -> None:
        """Run pages nest under their experiment, with an optional tab."""
        assert get_run_page_route("12", "abc") == "/experiments/12/runs/abc"
        assert (
            get_run_page_route("12", "abc", RunPageTab.MODEL_METRIC_CHARTS)
            == "/experiments/12/runs/abc/model-metrics"
        )
        assert get_run_page_route("12", "abc", RunPageTab.OVERVIEW) == "/experiments/12/runs/abc"

    def test_route_quotes_ids(self) -> None:
        """IDs are percent-encoded."""
        assert get_run_page_route("a/b", "c d") == "/experiments/a%2Fb/runs/c%20d"

    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            (None, RunPageTab.OVERVIEW),
            ("", RunPageTab.OVERVIEW),
            ("overview", RunPageTab.OVERVIEW),
            ("model-metrics", RunPageTab.MODEL_METRIC_CHARTS),
            ("system-metrics/", RunPageTab.SYSTEM_METRIC_CHARTS),
            ("traces", RunPageTab.TRACES),
            ("artifacts", RunPageTab.ARTIFACTS),
            ("artifacts/model/MLmodel", RunPageTab.ARTIFACTS),
            ("artifactPath/model", RunPageTab.ARTIFACTS),
            ("metrics", RunPageTab.OVERVIEW),
            ("artifactsfoo", RunPageTab.OVERVIEW),
            ("artifactPathX/model", RunPageTab.OVERVIEW),
        ],
    )
    def test_parse_tab(self, path: str | None, expected: RunPageTab) -> None:
        """Tab slugs map to tabs, artifact paths to the artifacts tab."""
        assert parse_tab(path) is expected

    def test_parse_artifact_path(self) -> None:
        """The browsed artifact path follows the artifacts segment."""
        assert parse_artifact_path("artifacts/model/MLmodel") == "model/MLmodel"
        assert parse_artifact_path("artifacts") is None
        assert parse_artifact_path("model-metrics") is None
        assert parse_artifact_path("artifactsfoo/model") is None
        assert parse_artifact_path(None) is None
