# Copyright (c) Syntropy Systems
"""The run details page controller."""
from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING

from runview.page.availability import DisplayMode
from runview.page.composer import ViewComposer, Viewport
from runview.page.loader import RunDetailsLoader
from runview.page.outcome import RouteIdentity
from runview.page.tabs import (
    FeatureFlags,
    TabContext,
    partition_metric_keys,
    select_tab,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from runview.page.composer import ModalState, PageView
    from runview.page.loader import RunDetailsService
    from runview.page.tabs import RunPageTab

logger = logging.getLogger(__name__)

DEFAULT_FULL_HEIGHT_BREAKPOINT = 768


def _ignore_navigation(path: str) -> None:
    logger.debug("No navigator attached, ignoring navigation to %s", path)


class RunPage:
    """A run page bound to one run and experiment.

    Fetches run and experiment data, then renders a PageView for the
    requested tab.

    Example:
        >>> page = RunPage("abc123", "0", service=client)
        >>> await page.load()
        >>> view = page.render("model-metrics")

    """

    identity: RouteIdentity
    flags: FeatureFlags
    loader: RunDetailsLoader
    composer: ViewComposer

    def __init__(
        self,
        run_id: str | None,
        experiment_id: str | None,
        *,
        service: RunDetailsService,
        flags: FeatureFlags | None = None,
        navigate_to: Callable[[str], None] | None = None,
        full_height_breakpoint: int = DEFAULT_FULL_HEIGHT_BREAKPOINT,
    ) -> None:
        """Bind the page to a route.

        Raises:
            ContractViolation: If run_id or experiment_id is missing

        """
        self.identity = RouteIdentity(run_id or "", experiment_id or "")
        self.flags = flags or FeatureFlags()
        self.loader = RunDetailsLoader(service, self.identity)
        self.composer = ViewComposer(
            self.identity,
            on_refetch=self.refetch_run,
            navigate_to=navigate_to or _ignore_navigation,
            full_height_breakpoint=full_height_breakpoint,
        )

    @property
    def display_mode(self) -> DisplayMode:
        return self.loader.display_mode()

    @property
    def modals(self) -> ModalState:
        return self.composer.modals

    async def load(self) -> None:
        """Fetch run and experiment data."""
        await self.loader.load()

    async def refetch_run(self) -> None:
        """Re-fetch run data without resetting the rest of the page."""
        await self.loader.refetch_run()

    async def rename_succeeded(self) -> None:
        """Handle a successful rename: close the dialog and refresh the run."""
        result = self.composer.rename_succeeded()
        if inspect.isawaitable(result):
            await result

    def delete_succeeded(self) -> None:
        """Handle a successful delete: close the dialog and leave the page."""
        self.composer.delete_succeeded()

    def render(
        self,
        requested_tab: RunPageTab | str | None = None,
        viewport: Viewport | None = None,
    ) -> PageView:
        """Render the page for the current fetch state."""
        mode = self.loader.display_mode()
        if mode is not DisplayMode.READY:
            return self.composer.compose(mode)

        details = self.loader.details
        metric_keys = partition_metric_keys(details.latest_metrics)
        context = TabContext(
            run_id=self.identity.run_id,
            experiment_id=self.identity.experiment_id,
            run_info=details.run_info,
            tags=details.tags,
            on_run_data_updated=self.refetch_run,
        )
        tab_view = select_tab(requested_tab, self.flags, metric_keys, context)
        return self.composer.compose(
            mode,
            tab=tab_view,
            run_info=details.run_info,
            experiment=details.experiment,
            tags=details.tags,
            params=details.params,
            viewport=viewport or Viewport(),
        )
