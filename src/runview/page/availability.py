# Copyright (c) Syntropy Systems
"""Reconcile run and experiment fetch outcomes into a single display mode."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from runview.page.outcome import Failure, Loading, Success

if TYPE_CHECKING:
    from runview.page.outcome import FetchOutcome


class DisplayMode(str, Enum):
    """What the run page shows at the top level."""

    INITIAL_LOADING = "initial_loading"
    RUN_NOT_FOUND = "run_not_found"
    EXPERIMENT_NOT_FOUND = "experiment_not_found"
    GENERIC_ERROR = "generic_error"
    READY = "ready"


@dataclass
class AvailabilityState:
    """Per-entity record of whether a fetch has ever succeeded.

    Only ever flips from False to True. A new route identity gets a new record.
    """

    run_loaded: bool = False
    experiment_loaded: bool = False

    def observe(
        self,
        run_outcome: FetchOutcome[object],
        experiment_outcome: FetchOutcome[object],
    ) -> None:
        """Remember any successful outcome."""
        if isinstance(run_outcome, Success):
            self.run_loaded = True
        if isinstance(experiment_outcome, Success):
            self.experiment_loaded = True


def resolve(
    run_outcome: FetchOutcome[object],
    experiment_outcome: FetchOutcome[object],
    state: AvailabilityState | None = None,
) -> DisplayMode:
    """Pick the display mode for a pair of fetch outcomes.

    Checks run first, not-found before any other failure. The loading
    skeleton is shown while an entity that has never been fetched
    successfully is still loading; refetches of a loaded entity keep the page.
    """
    if isinstance(run_outcome, Failure) and run_outcome.is_not_found:
        return DisplayMode.RUN_NOT_FOUND
    if isinstance(experiment_outcome, Failure) and experiment_outcome.is_not_found:
        return DisplayMode.EXPERIMENT_NOT_FOUND
    if isinstance(run_outcome, Failure) or isinstance(experiment_outcome, Failure):
        return DisplayMode.GENERIC_ERROR

    if state is None:
        state = AvailabilityState()
        state.observe(run_outcome, experiment_outcome)
    if isinstance(run_outcome, Loading) and not state.run_loaded:
        return DisplayMode.INITIAL_LOADING
    if isinstance(experiment_outcome, Loading) and not state.experiment_loaded:
        return DisplayMode.INITIAL_LOADING

    return DisplayMode.READY
