# Copyright (c) Syntropy Systems
"""Error codes and exceptions for runview."""
from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Error codes reported by the tracking server."""

    RESOURCE_DOES_NOT_EXIST = "RESOURCE_DOES_NOT_EXIST"
    RESOURCE_ALREADY_EXISTS = "RESOURCE_ALREADY_EXISTS"
    INVALID_PARAMETER_VALUE = "INVALID_PARAMETER_VALUE"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    TEMPORARILY_UNAVAILABLE = "TEMPORARILY_UNAVAILABLE"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: str | None) -> ErrorCode:
        """Map a raw error code string to an ErrorCode, UNKNOWN if unrecognized."""
        if value is None:
            return cls.UNKNOWN
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


class RunviewError(Exception):
    """Base class for runview errors."""


class ContractViolation(RunviewError):
    """A caller broke a precondition, e.g. a route rendered without a run ID."""


class TrackingClientError(RunviewError):
    """Error from tracking server communication."""

    error_code: ErrorCode
    status_code: int | None

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.UNKNOWN,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.status_code = status_code

    @property
    def is_not_found(self) -> bool:
        """Return whether the server reported a missing resource."""
        return self.error_code is ErrorCode.RESOURCE_DOES_NOT_EXIST
