# Copyright (c) Syntropy Systems
"""Configuration management for runview."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import cast

import yaml

from runview.page.tabs import FeatureFlags

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class RunviewConfig:
    """Configuration for runview."""

    # Base URL of the tracking server REST API
    tracking_uri: str = "http://localhost:5000"

    # Request timeout in seconds
    request_timeout: float = 30.0

    # Show the traces tab on run pages
    traces_enabled: bool = False

    # Render metric tabs with the unified chart renderer
    unified_charts: bool = False

    # Minimum viewport width (px) for the full-height page layout
    full_height_breakpoint: int = 768


def find_runview_dir(start_path: Path | None = None) -> Path | None:
    """Find the nearest .runview directory by walking up from start_path.

    Returns None if no .runview directory is found.
    """
    if start_path is None:
        start_path = Path.cwd()

    current = start_path.resolve()

    while current != current.parent:
        runview_dir = current / ".runview"
        if runview_dir.is_dir():
            return runview_dir
        current = current.parent

    # Check root
    runview_dir = current / ".runview"
    if runview_dir.is_dir():
        return runview_dir

    return None


def get_global_config_dir() -> Path:
    """Get the global runview config directory (~/.runview)."""
    return Path.home() / ".runview"


def _env_flag(name: str) -> bool | None:
    value = os.environ.get(name)
    if value is None:
        return None
    return value.strip().lower() in _TRUTHY


def load_config(runview_dir: Path | None = None) -> RunviewConfig:
    """Load configuration from .runview/config.yaml or defaults.

    Looks for config in:
    1. Provided runview_dir
    2. Nearest .runview directory walking up
    3. ~/.runview/config.yaml
    4. Defaults

    RUNVIEW_* environment variables override whatever the file sets.
    """
    config = RunviewConfig()

    # Find config file
    config_path = None

    if runview_dir is not None:
        config_path = runview_dir / "config.yaml"
    else:
        found_dir = find_runview_dir()
        if found_dir is not None:
            config_path = found_dir / "config.yaml"
        else:
            global_config = get_global_config_dir() / "config.yaml"
            if global_config.exists():
                config_path = global_config

    if config_path is not None and config_path.exists():
        with config_path.open() as f:
            data = cast("dict[str, object]", yaml.safe_load(f) or {})

        tracking_uri = data.get("tracking_uri")
        if isinstance(tracking_uri, str) and tracking_uri:
            config.tracking_uri = tracking_uri
        request_timeout = data.get("request_timeout")
        if isinstance(request_timeout, (int, float)) and not isinstance(
            request_timeout, bool
        ):
            config.request_timeout = float(request_timeout)
        traces_enabled = data.get("traces_enabled")
        if isinstance(traces_enabled, bool):
            config.traces_enabled = traces_enabled
        unified_charts = data.get("unified_charts")
        if isinstance(unified_charts, bool):
            config.unified_charts = unified_charts
        breakpoint_px = data.get("full_height_breakpoint")
        if isinstance(breakpoint_px, int) and not isinstance(breakpoint_px, bool):
            config.full_height_breakpoint = breakpoint_px

    env_uri = os.environ.get("RUNVIEW_TRACKING_URI")
    if env_uri:
        config.tracking_uri = env_uri
    env_traces = _env_flag("RUNVIEW_TRACES_ENABLED")
    if env_traces is not None:
        config.traces_enabled = env_traces
    env_unified = _env_flag("RUNVIEW_UNIFIED_CHARTS")
    if env_unified is not None:
        config.unified_charts = env_unified

    return config


def feature_flags(config: RunviewConfig) -> FeatureFlags:
    """Build the feature flags a run page is rendered with."""
    return FeatureFlags(
        traces_enabled=config.traces_enabled,
        unified_charts=config.unified_charts,
    )
