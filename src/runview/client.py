# Copyright (c) Syntropy Systems
"""Async HTTP client for the tracking server REST API."""
from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar, overload

import httpx
from pydantic import BaseModel, ValidationError
from typing_extensions import Self

from runview.errors import ErrorCode, TrackingClientError
from runview.models.tracking import (
    ErrorResponse,
    GetExperimentResponse,
    GetRunResponse,
    ListArtifactsResponse,
)

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

    from runview.models.base import JSONValue
    from runview.models.tracking import Experiment, Run

ResponseModel = TypeVar("ResponseModel", bound=BaseModel)

API_PREFIX = "/api/2.0/mlflow"


def _error_from_response(response: httpx.Response, fallback: str) -> TrackingClientError:
    try:
        body = ErrorResponse.model_validate(response.json())
    except (ValidationError, ValueError):
        body = ErrorResponse()
    message = body.message or fallback
    return TrackingClientError(
        f"Server error: {message}",
        error_code=ErrorCode.parse(body.error_code),
        status_code=response.status_code,
    )


class AsyncTrackingClient:
    """Client for the runs, experiments and artifacts endpoints."""

    tracking_uri: str
    timeout: float
    _client: httpx.AsyncClient

    def __init__(
        self,
        tracking_uri: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            tracking_uri: Base URL of the tracking server (e.g., "http://localhost:5000")
            timeout: Request timeout in seconds
            transport: Optional httpx transport, mainly for tests

        """
        self.tracking_uri = tracking_uri.rstrip("/")
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            base_url=self.tracking_uri,
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> Self:
        """Enter the client context and return self."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit the client context and close the HTTP client."""
        await self.aclose()

    @overload
    async def _request(
        self,
        method: str,
        path: str,
        json: Mapping[str, object] | None = None,
        params: Mapping[str, str] | None = None,
        *,
        response_model: type[ResponseModel],
    ) -> ResponseModel:
        ...

    @overload
    async def _request(
        self,
        method: str,
        path: str,
        json: Mapping[str, object] | None = None,
        params: Mapping[str, str] | None = None,
        *,
        response_model: None = None,
    ) -> dict[str, JSONValue]:
        ...

    async def _request(
        self,
        method: str,
        path: str,
        json: Mapping[str, object] | None = None,
        params: Mapping[str, str] | None = None,
        *,
        response_model: type[ResponseModel] | None = None,
    ) -> ResponseModel | dict[str, JSONValue]:
        """Make an HTTP request to the tracking server."""
        try:
            response = await self._client.request(
                method,
                f"{API_PREFIX}{path}",
                json=json,
                params=params,
            )
            _ = response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise _error_from_response(e.response, str(e)) from e
        except httpx.RequestError as e:
            msg = f"Connection error: {e}"
            raise TrackingClientError(msg) from e

        try:
            data = response.json() if response.content else {}
        except ValueError as e:
            msg = f"Non-JSON response from {path}: {e}"
            raise TrackingClientError(
                msg,
                error_code=ErrorCode.INTERNAL_ERROR,
                status_code=response.status_code,
            ) from e
        if response_model is None:
            return data
        try:
            return response_model.model_validate(data)
        except ValidationError as e:
            msg = f"Unexpected response from {path}: {e}"
            raise TrackingClientError(
                msg,
                error_code=ErrorCode.INTERNAL_ERROR,
                status_code=response.status_code,
            ) from e

    # --- Run Operations ---

    async def get_run(self, run_id: str) -> Run:
        """Get a run with its latest metrics, params and tags.

        Raises:
            TrackingClientError: With RESOURCE_DOES_NOT_EXIST if the run is missing

        """
        result = await self._request(
            "GET",
            "/runs/get",
            params={"run_id": run_id},
            response_model=GetRunResponse,
        )
        return result.run

    async def rename_run(self, run_id: str, run_name: str) -> None:
        """Set a new display name on a run."""
        _ = await self._request(
            "POST",
            "/runs/update",
            json={"run_id": run_id, "run_name": run_name},
        )

    async def delete_run(self, run_id: str) -> None:
        """Mark a run as deleted."""
        _ = await self._request("POST", "/runs/delete", json={"run_id": run_id})

    # --- Experiment Operations ---

    async def get_experiment(self, experiment_id: str) -> Experiment:
        """Get experiment metadata.

        Raises:
            TrackingClientError: With RESOURCE_DOES_NOT_EXIST if the experiment is missing

        """
        result = await self._request(
            "GET",
            "/experiments/get",
            params={"experiment_id": experiment_id},
            response_model=GetExperimentResponse,
        )
        return result.experiment

    # --- Artifact Operations ---

    async def list_artifacts(
        self,
        run_id: str,
        path: str | None = None,
    ) -> ListArtifactsResponse:
        """List artifacts of a run under an optional relative path."""
        params = {"run_id": run_id}
        if path:
            params["path"] = path
        return await self._request(
            "GET",
            "/artifacts/list",
            params=params,
            response_model=ListArtifactsResponse,
        )


def get_client(tracking_uri: str, timeout: float = 30.0) -> AsyncTrackingClient:
    """Create an AsyncTrackingClient instance."""
    return AsyncTrackingClient(tracking_uri, timeout)
