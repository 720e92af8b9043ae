# Copyright (c) Syntropy Systems
"""Compose the run page from display mode, header, tab content and modals."""
from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Union

from runview.page.availability import DisplayMode
from runview.page.routes import get_experiment_page_route

if TYPE_CHECKING:
    from runview.models.tracking import Experiment, RunInfo
    from runview.page.outcome import RouteIdentity
    from runview.page.tabs import TabView

logger = logging.getLogger(__name__)

LOADING_SKELETON_PARAGRAPHS = 3


@dataclass(frozen=True)
class ModalState:
    """Visibility of the rename and delete dialogs."""

    rename_visible: bool = False
    delete_visible: bool = False


@dataclass(frozen=True)
class Viewport:
    """Viewport width signal. An unknown width counts as wide."""

    width: int | None = None

    def is_at_least(self, breakpoint_px: int) -> bool:
        """Return whether the viewport is at least breakpoint_px wide."""
        if self.width is None:
            return True
        return self.width >= breakpoint_px


@dataclass(frozen=True)
class LoadingPage:
    """Skeleton shown until the first successful fetch."""

    paragraphs: int = LOADING_SKELETON_PARAGRAPHS


@dataclass(frozen=True)
class RunNotFoundPage:
    """The run does not exist."""

    run_id: str


@dataclass(frozen=True)
class NotFoundPage:
    """The experiment does not exist."""


@dataclass(frozen=True)
class BlankPage:
    """Rendered for fetch errors. Details go to the log, not the page."""


@dataclass(frozen=True)
class RunHeader:
    """Fixed header above the tab area."""

    run_id: str
    experiment_id: str
    run_display_name: str
    experiment: Experiment | None
    run_name: str = ""
    tags: Mapping[str, str] = field(default_factory=dict)
    params: Mapping[str, str] = field(default_factory=dict)
    on_rename_click: Callable[[], None] | None = None
    on_delete_click: Callable[[], None] | None = None


@dataclass(frozen=True)
class ReadyPage:
    """Header plus active tab, with the modal state at compose time."""

    header: RunHeader
    tab: TabView
    full_height: bool
    modals: ModalState


PageView = Union[LoadingPage, RunNotFoundPage, NotFoundPage, BlankPage, ReadyPage]


def get_run_display_name(run_info: RunInfo | None, run_id: str) -> str:
    """Return the run's name, or a label built from its ID."""
    if run_info is not None and run_info.run_name:
        return run_info.run_name
    return f"Run: {run_id}"


class ViewComposer:
    """Builds page views and owns the modal state of one page instance."""

    identity: RouteIdentity
    full_height_breakpoint: int
    _modals: ModalState
    _on_refetch: Callable[[], object]
    _navigate_to: Callable[[str], None]

    def __init__(
        self,
        identity: RouteIdentity,
        *,
        on_refetch: Callable[[], object],
        navigate_to: Callable[[str], None],
        full_height_breakpoint: int,
    ) -> None:
        self.identity = identity
        self.full_height_breakpoint = full_height_breakpoint
        self._modals = ModalState()
        self._on_refetch = on_refetch
        self._navigate_to = navigate_to

    @property
    def modals(self) -> ModalState:
        """Current modal state."""
        return self._modals

    def open_rename(self) -> None:
        self._modals = replace(self._modals, rename_visible=True)

    def open_delete(self) -> None:
        self._modals = replace(self._modals, delete_visible=True)

    def close_rename(self) -> None:
        self._modals = replace(self._modals, rename_visible=False)

    def close_delete(self) -> None:
        self._modals = replace(self._modals, delete_visible=False)

    def rename_succeeded(self) -> object:
        """Close the rename dialog and re-fetch the run.

        Returns whatever the refetch callback returns, so async callers can
        await it.
        """
        self.close_rename()
        return self._on_refetch()

    def delete_succeeded(self) -> None:
        """Close the delete dialog and leave for the parent experiment page."""
        self.close_delete()
        target = get_experiment_page_route(self.identity.experiment_id)
        logger.info("Run %s deleted, navigating to %s", self.identity.run_id, target)
        self._navigate_to(target)

    def compose(  # noqa: PLR0913
        self,
        mode: DisplayMode,
        *,
        tab: TabView | None = None,
        run_info: RunInfo | None = None,
        experiment: Experiment | None = None,
        tags: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
        viewport: Viewport | None = None,
    ) -> PageView:
        """Return the view for a display mode."""
        if mode is DisplayMode.INITIAL_LOADING:
            return LoadingPage()
        if mode is DisplayMode.RUN_NOT_FOUND:
            return RunNotFoundPage(run_id=self.identity.run_id)
        if mode is DisplayMode.EXPERIMENT_NOT_FOUND:
            return NotFoundPage()
        if mode is DisplayMode.GENERIC_ERROR:
            return BlankPage()

        if tab is None:
            msg = "A ready page needs a tab view"
            raise ValueError(msg)

        header = RunHeader(
            run_id=self.identity.run_id,
            experiment_id=self.identity.experiment_id,
            run_display_name=get_run_display_name(run_info, self.identity.run_id),
            experiment=experiment,
            run_name=(run_info.run_name or "") if run_info is not None else "",
            tags=tags or {},
            params=params or {},
            on_rename_click=self.open_rename,
            on_delete_click=self.open_delete,
        )
        viewport = viewport or Viewport()
        return ReadyPage(
            header=header,
            tab=tab,
            full_height=viewport.is_at_least(self.full_height_breakpoint),
            modals=self._modals,
        )
