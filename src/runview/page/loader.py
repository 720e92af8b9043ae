# Copyright (c) Syntropy Systems
"""Concurrent run and experiment fetching for a run page."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from runview.errors import TrackingClientError
from runview.page.availability import AvailabilityState, DisplayMode, resolve
from runview.page.outcome import LOADING, Failure, Success

if TYPE_CHECKING:
    from runview.models.tracking import Experiment, Metric, Run, RunInfo
    from runview.page.outcome import FetchOutcome, RouteIdentity

logger = logging.getLogger(__name__)


class RunDetailsService(Protocol):
    """Fetches the data shown on a run page."""

    async def get_run(self, run_id: str) -> Run:
        ...

    async def get_experiment(self, experiment_id: str) -> Experiment:
        ...


@dataclass(frozen=True)
class RunDetails:
    """Last successfully fetched run page data."""

    run_info: RunInfo | None = None
    latest_metrics: dict[str, Metric] = field(default_factory=dict)
    tags: dict[str, str] = field(default_factory=dict)
    params: dict[str, str] = field(default_factory=dict)
    experiment: Experiment | None = None


def _failure_from(error: TrackingClientError) -> Failure:
    return Failure(
        error_kind=error.error_code,
        error_code=error.status_code,
        message=str(error),
    )


class RunDetailsLoader:
    """Holds fetch outcomes for one route identity.

    Every fetch is tagged with the identity and a per-entity generation at
    issue time. Completions carrying an older tag are dropped.
    """

    identity: RouteIdentity
    availability: AvailabilityState
    run_outcome: FetchOutcome[Run]
    experiment_outcome: FetchOutcome[Experiment]
    _service: RunDetailsService
    _run: Run | None
    _experiment: Experiment | None
    _run_generation: int
    _experiment_generation: int

    def __init__(self, service: RunDetailsService, identity: RouteIdentity) -> None:
        self._service = service
        self._run_generation = 0
        self._experiment_generation = 0
        self.reset(identity)

    def reset(self, identity: RouteIdentity) -> None:
        """Bind to a new identity, forgetting outcomes and success history."""
        self.identity = identity
        self.availability = AvailabilityState()
        self.run_outcome = LOADING
        self.experiment_outcome = LOADING
        self._run = None
        self._experiment = None
        # Bump so in-flight fetches for the old identity are ignored.
        self._run_generation += 1
        self._experiment_generation += 1

    def display_mode(self) -> DisplayMode:
        """Resolve the current outcomes into a display mode."""
        return resolve(self.run_outcome, self.experiment_outcome, self.availability)

    @property
    def details(self) -> RunDetails:
        """Data from the latest successful fetches."""
        run = self._run
        if run is None:
            return RunDetails(experiment=self._experiment)
        return RunDetails(
            run_info=run.info,
            latest_metrics=run.latest_metrics(),
            tags=run.tag_map(),
            params=run.param_map(),
            experiment=self._experiment,
        )

    async def load(self) -> None:
        """Fetch the run and the experiment concurrently."""
        _ = await asyncio.gather(self.fetch_run(), self.fetch_experiment())

    async def refetch_run(self) -> None:
        """Fetch the run again, keeping the experiment and success history."""
        await self.fetch_run()

    async def fetch_run(self) -> None:
        identity = self.identity
        self._run_generation += 1
        generation = self._run_generation
        self.run_outcome = LOADING
        try:
            run = await self._service.get_run(identity.run_id)
        except TrackingClientError as e:
            self.apply_run(identity, generation, _failure_from(e))
        else:
            self.apply_run(identity, generation, Success(run))

    async def fetch_experiment(self) -> None:
        identity = self.identity
        self._experiment_generation += 1
        generation = self._experiment_generation
        self.experiment_outcome = LOADING
        try:
            experiment = await self._service.get_experiment(identity.experiment_id)
        except TrackingClientError as e:
            self.apply_experiment(identity, generation, _failure_from(e))
        else:
            self.apply_experiment(identity, generation, Success(experiment))

    def _is_current(self, identity: RouteIdentity, generation: int, latest: int) -> bool:
        return identity == self.identity and generation == latest

    def apply_run(
        self,
        identity: RouteIdentity,
        generation: int,
        outcome: FetchOutcome[Run],
    ) -> bool:
        """Record a run fetch result. Returns False if it was stale."""
        if not self._is_current(identity, generation, self._run_generation):
            logger.debug("Dropping stale run fetch for %s", identity.run_id)
            return False
        self.run_outcome = outcome
        if isinstance(outcome, Success):
            self._run = outcome.payload
        elif isinstance(outcome, Failure):
            _log_failure("run", identity.run_id, outcome)
        self.availability.observe(self.run_outcome, self.experiment_outcome)
        return True

    def apply_experiment(
        self,
        identity: RouteIdentity,
        generation: int,
        outcome: FetchOutcome[Experiment],
    ) -> bool:
        """Record an experiment fetch result. Returns False if it was stale."""
        if not self._is_current(identity, generation, self._experiment_generation):
            logger.debug(
                "Dropping stale experiment fetch for %s", identity.experiment_id
            )
            return False
        self.experiment_outcome = outcome
        if isinstance(outcome, Success):
            self._experiment = outcome.payload
        elif isinstance(outcome, Failure):
            _log_failure("experiment", identity.experiment_id, outcome)
        self.availability.observe(self.run_outcome, self.experiment_outcome)
        return True


def _log_failure(entity: str, entity_id: str, failure: Failure) -> None:
    if failure.is_not_found:
        logger.info("%s %s does not exist", entity.capitalize(), entity_id)
        return
    logger.error(
        "Failed to fetch %s %s (%s, status %s): %s",
        entity,
        entity_id,
        failure.error_kind.value,
        failure.error_code,
        failure.message,
    )
