# Copyright (c) Syntropy Systems
"""Pydantic models for tracking server runs, experiments and artifacts."""

from __future__ import annotations

from pydantic import AliasChoices, Field

from .base import RunviewBaseModel


class Metric(RunviewBaseModel):
    """Latest value of a logged metric."""

    key: str
    value: float
    timestamp: int | None = None
    step: int | None = None


class Param(RunviewBaseModel):
    """Run parameter."""

    key: str
    value: str


class RunTag(RunviewBaseModel):
    """Run or experiment tag."""

    key: str
    value: str


class RunInfo(RunviewBaseModel):
    """Run metadata as returned by runs/get."""

    run_id: str = Field(validation_alias=AliasChoices("run_id", "run_uuid"))
    experiment_id: str
    run_name: str | None = None
    user_id: str | None = None
    status: str | None = None
    start_time: int | None = None
    end_time: int | None = None
    artifact_uri: str | None = None
    lifecycle_stage: str | None = None


class RunData(RunviewBaseModel):
    """Metrics, params and tags logged to a run."""

    metrics: list[Metric] = Field(default_factory=list)
    params: list[Param] = Field(default_factory=list)
    tags: list[RunTag] = Field(default_factory=list)


class Run(RunviewBaseModel):
    """A run with its info and logged data."""

    info: RunInfo
    data: RunData = Field(default_factory=RunData)

    def latest_metrics(self) -> dict[str, Metric]:
        """Map metric keys to their latest record, in first-seen key order."""
        latest: dict[str, Metric] = {}
        for metric in self.data.metrics:
            current = latest.get(metric.key)
            if current is None or _metric_order(metric) >= _metric_order(current):
                latest[metric.key] = metric
        return latest

    def tag_map(self) -> dict[str, str]:
        """Return run tags as a key to value mapping."""
        return {tag.key: tag.value for tag in self.data.tags}

    def param_map(self) -> dict[str, str]:
        """Return run params as a key to value mapping."""
        return {param.key: param.value for param in self.data.params}


def _metric_order(metric: Metric) -> tuple[int, int]:
    return (metric.step or 0, metric.timestamp or 0)


class Experiment(RunviewBaseModel):
    """Experiment metadata as returned by experiments/get."""

    experiment_id: str
    name: str
    artifact_location: str | None = None
    lifecycle_stage: str | None = None
    tags: list[RunTag] = Field(default_factory=list)


class GetRunResponse(RunviewBaseModel):
    """Response body of runs/get."""

    run: Run


class GetExperimentResponse(RunviewBaseModel):
    """Response body of experiments/get."""

    experiment: Experiment


class FileInfo(RunviewBaseModel):
    """Artifact file or directory entry."""

    path: str
    is_dir: bool = False
    file_size: int | None = None


class ListArtifactsResponse(RunviewBaseModel):
    """Response body of artifacts/list."""

    root_uri: str | None = None
    files: list[FileInfo] = Field(default_factory=list)


class ErrorResponse(RunviewBaseModel):
    """Error body returned by the tracking server."""

    error_code: str | None = None
    message: str | None = None
