# Copyright (c) Syntropy Systems
"""Route identity and fetch outcomes for the run page."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from runview.errors import ContractViolation, ErrorCode

T = TypeVar("T")


@dataclass(frozen=True)
class RouteIdentity:
    """The run and experiment a page instance is bound to."""

    run_id: str
    experiment_id: str

    def __post_init__(self) -> None:
        if not self.run_id:
            msg = "[RunPage] Run ID route param not provided"
            raise ContractViolation(msg)
        if not self.experiment_id:
            msg = "[RunPage] Experiment ID route param not provided"
            raise ContractViolation(msg)


@dataclass(frozen=True)
class Loading:
    """Fetch issued, no result yet."""


@dataclass(frozen=True)
class Success(Generic[T]):
    """Fetch completed with a payload."""

    payload: T


@dataclass(frozen=True)
class Failure:
    """Fetch completed with an error.

    error_kind is the server's error code, error_code the HTTP status if any.
    """

    error_kind: ErrorCode
    error_code: int | None = None
    message: str = ""

    @property
    def is_not_found(self) -> bool:
        """Return whether the fetched resource does not exist."""
        return self.error_kind is ErrorCode.RESOURCE_DOES_NOT_EXIST


FetchOutcome = Union[Loading, Success[T], Failure]

LOADING = Loading()
