# Copyright (c) Syntropy Systems
"""Pytest fixtures for runview tests."""

from __future__ import annotations

import os
import tempfile
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from typing_extensions import Self

from runview.errors import ErrorCode, TrackingClientError
from runview.models.tracking import (
    Experiment,
    FileInfo,
    ListArtifactsResponse,
    Metric,
    Param,
    Run,
    RunData,
    RunInfo,
    RunTag,
)

# Store original cwd at module load time
_original_cwd = Path.cwd()

RunFactory = Callable[..., Run]


def build_run(  # noqa: PLR0913
    run_id: str = "run-1",
    experiment_id: str = "0",
    name: str | None = "baseline",
    metrics: dict[str, float] | None = None,
    params: dict[str, str] | None = None,
    tags: dict[str, str] | None = None,
    artifact_uri: str | None = "file:///tmp/mlruns/0/run-1/artifacts",
) -> Run:
    """Build a run payload as the tracking server would return it."""
    if metrics is None:
        metrics = {
            "loss": 0.25,
            "system/cpu_utilization_percentage": 41.0,
            "accuracy": 0.9,
            "system/gpu_0_memory_usage_megabytes": 1024.0,
        }
    return Run(
        info=RunInfo(
            run_id=run_id,
            experiment_id=experiment_id,
            run_name=name,
            status="FINISHED",
            start_time=1_700_000_000_000,
            artifact_uri=artifact_uri,
        ),
        data=RunData(
            metrics=[
                Metric(key=key, value=value, step=3, timestamp=1_700_000_100_000)
                for key, value in metrics.items()
            ],
            params=[Param(key=k, value=v) for k, v in (params or {"lr": "0.01"}).items()],
            tags=[RunTag(key=k, value=v) for k, v in (tags or {"team": "vision"}).items()],
        ),
    )


class FakeTrackingService:
    """In-memory stand-in for the tracking server client."""

    def __init__(self) -> None:
        self.runs: dict[str, Run] = {}
        self.experiments: dict[str, Experiment] = {}
        self.errors: dict[str, TrackingClientError] = {}
        self.artifacts: dict[str, list[FileInfo]] = {}
        self.calls: list[tuple[str, str]] = []
        self.closed = False

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.closed = True

    async def aclose(self) -> None:
        self.closed = True

    def fail(self, key: str, error_code: ErrorCode, status_code: int = 500) -> None:
        """Make the next calls for "run:<id>" or "experiment:<id>" fail."""
        self.errors[key] = TrackingClientError(
            f"Server error: {error_code.value}",
            error_code=error_code,
            status_code=status_code,
        )

    async def get_run(self, run_id: str) -> Run:
        self.calls.append(("get_run", run_id))
        error = self.errors.get(f"run:{run_id}")
        if error is not None:
            raise error
        run = self.runs.get(run_id)
        if run is None:
            msg = f"Run '{run_id}' not found."
            raise TrackingClientError(msg, ErrorCode.RESOURCE_DOES_NOT_EXIST, 404)
        return run

    async def get_experiment(self, experiment_id: str) -> Experiment:
        self.calls.append(("get_experiment", experiment_id))
        error = self.errors.get(f"experiment:{experiment_id}")
        if error is not None:
            raise error
        experiment = self.experiments.get(experiment_id)
        if experiment is None:
            msg = f"Experiment '{experiment_id}' not found."
            raise TrackingClientError(msg, ErrorCode.RESOURCE_DOES_NOT_EXIST, 404)
        return experiment

    async def rename_run(self, run_id: str, run_name: str) -> None:
        self.calls.append(("rename_run", run_id))
        run = self.runs[run_id]
        info = run.info.model_copy(update={"run_name": run_name})
        self.runs[run_id] = run.model_copy(update={"info": info})

    async def delete_run(self, run_id: str) -> None:
        self.calls.append(("delete_run", run_id))
        del self.runs[run_id]

    async def list_artifacts(
        self, run_id: str, path: str | None = None
    ) -> ListArtifactsResponse:
        self.calls.append(("list_artifacts", run_id))
        return ListArtifactsResponse(files=self.artifacts.get(run_id, []))


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def in_temp_dir(temp_dir: Path) -> Generator[Path, None, None]:
    """Run the test from inside an empty temporary directory."""
    os.chdir(temp_dir)
    yield temp_dir
    # Always return to original cwd
    os.chdir(_original_cwd)


@pytest.fixture
def make_run() -> RunFactory:
    """Factory for run payloads."""
    return build_run


@pytest.fixture
def service() -> FakeTrackingService:
    """A tracking service holding run-1 in experiment 0."""
    fake = FakeTrackingService()
    fake.runs["run-1"] = build_run()
    fake.experiments["0"] = Experiment(
        experiment_id="0",
        name="Default",
        artifact_location="file:///tmp/mlruns/0",
    )
    return fake


@pytest.fixture(autouse=True)
def _clean_runview_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "RUNVIEW_TRACKING_URI",
        "RUNVIEW_TRACES_ENABLED",
        "RUNVIEW_UNIFIED_CHARTS",
    ):
        monkeypatch.delenv(name, raising=False)
