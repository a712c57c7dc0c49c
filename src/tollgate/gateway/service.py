"""Framework-free request boundary for validation and batch lifecycle calls."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from http import HTTPStatus
from types import TracebackType
from typing import Any, Self

from pydantic import BaseModel, ConfigDict

from tollgate.batch.manager import BatchSessionManager
from tollgate.batch.models import BatchVerdict
from tollgate.config.settings import GatewaySettings
from tollgate.errors import (
    AlreadyCompletedError,
    ConversionError,
    DuplicateBatchError,
    DuplicateNameError,
    InvalidDestinationError,
    InvalidThresholdError,
    NotFoundError,
    TollgateError,
)
from tollgate.registry.model_registry import ModelRegistry
from tollgate.validation.dispatch import ValidationDispatcher

_LOGGER = logging.getLogger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[TollgateError], HTTPStatus], ...] = (
    (NotFoundError, HTTPStatus.NOT_FOUND),
    (DuplicateNameError, HTTPStatus.CONFLICT),
    (DuplicateBatchError, HTTPStatus.CONFLICT),
    (AlreadyCompletedError, HTTPStatus.CONFLICT),
    (ConversionError, HTTPStatus.BAD_REQUEST),
    (InvalidDestinationError, HTTPStatus.BAD_REQUEST),
    (InvalidThresholdError, HTTPStatus.BAD_REQUEST),
)


class GatewayResponse(BaseModel):
    """Status code plus JSON-ready body."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    status_code: int
    body: dict[str, Any]

    @property
    def ok(self) -> bool:
        """Return True for 2xx responses."""
        return 200 <= self.status_code < 300


def status_for(error: TollgateError) -> HTTPStatus:
    """Map a typed gateway error to a response status."""
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status
    return HTTPStatus.BAD_REQUEST


def _error_response(error: TollgateError) -> GatewayResponse:
    status = status_for(error)
    return GatewayResponse(
        status_code=status,
        body={
            "error": status.phrase,
            "code": str(error.code),
            "message": str(error),
            "details": error.data,
        },
    )


def _bad_request(message: str) -> GatewayResponse:
    return GatewayResponse(
        status_code=HTTPStatus.BAD_REQUEST,
        body={
            "error": HTTPStatus.BAD_REQUEST.phrase,
            "code": "invalid_request",
            "message": message,
            "details": {},
        },
    )


def _verdict_body(verdict: BatchVerdict) -> dict[str, Any]:
    return {
        "status": str(verdict.status),
        "batch_id": verdict.batch_id,
        "success_rate": verdict.success_rate,
        "threshold": verdict.threshold,
        "total": verdict.total_records,
        "valid": verdict.valid_records,
        "invalid": verdict.invalid_records,
        "warnings": verdict.warning_count,
    }


class ValidationGateway:
    """Request-layer facade over registry, dispatch, and batch sessions.

    Every method returns a ``GatewayResponse``; typed errors are mapped to
    404/409/400, a failed batch verdict is 422, and no error escapes.
    Used as a context manager it runs background batch cleanup.
    """

    def __init__(
        self,
        registry: ModelRegistry,
        batches: BatchSessionManager,
        settings: GatewaySettings | None = None,
    ) -> None:
        """Create gateway.

        Args:
            registry: Registry resolving model types.
            batches: Batch session manager.
            settings: Gateway settings; defaults when omitted.
        """
        self._settings = settings or GatewaySettings()
        self._registry = registry
        self._batches = batches
        self._dispatcher = ValidationDispatcher(
            registry, batches, self._settings.validation
        )

    @property
    def dispatcher(self) -> ValidationDispatcher:
        """Dispatcher used for validation calls."""
        return self._dispatcher

    @property
    def batches(self) -> BatchSessionManager:
        """Batch session manager backing the batch endpoints."""
        return self._batches

    def start(self) -> None:
        """Start background cleanup of batch sessions."""
        self._batches.start()

    def shutdown(self) -> None:
        """Stop background cleanup of batch sessions."""
        self._batches.shutdown()

    def __enter__(self) -> Self:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.shutdown()

    def validate(
        self,
        model_type: str,
        payload: object,
        *,
        batch_id: str | None = None,
        threshold: float | None = None,
        complete_batch_id: str | None = None,
    ) -> GatewayResponse:
        """Validate an object or array payload.

        With ``complete_batch_id`` the payload is validated first and the
        named batch is then completed; the response is its verdict, 200 on
        success and 422 on failure.

        Args:
            model_type: Registered model type name.
            payload: Decoded JSON object or array.
            batch_id: Correlation id folding the outcome into a batch.
            threshold: Verdict threshold for array payloads.
            complete_batch_id: Batch to complete after validation.

        Returns:
            Validation response.
        """
        try:
            if complete_batch_id is not None:
                self._batches.get_session(complete_batch_id)
            if isinstance(payload, list):
                response = self._validate_array(
                    model_type, payload, batch_id, threshold
                )
            elif isinstance(payload, Mapping):
                response = self._validate_object(model_type, payload, batch_id)
            else:
                if batch_id is not None:
                    self._batches.accumulate(batch_id, invalid=1)
                return _bad_request("Payload must be a JSON object or array")
            if complete_batch_id is None:
                return response
            verdict = self._batches.complete(complete_batch_id)
        except TollgateError as exc:
            _LOGGER.debug("Validation request for %r rejected: %s", model_type, exc)
            return _error_response(exc)
        return GatewayResponse(
            status_code=(
                HTTPStatus.OK if verdict.passed else HTTPStatus.UNPROCESSABLE_ENTITY
            ),
            body=_verdict_body(verdict),
        )

    def _validate_array(
        self,
        model_type: str,
        records: list[Any],
        batch_id: str | None,
        threshold: float | None,
    ) -> GatewayResponse:
        if batch_id is None:
            array = self._dispatcher.validate_records(model_type, records, threshold)
            return GatewayResponse(
                status_code=HTTPStatus.OK, body=array.model_dump(mode="json")
            )
        array = self._dispatcher.validate_records_into_batch(
            batch_id, model_type, records, threshold
        )
        return self._accumulating(
            batch_id,
            is_valid=array.invalid_records == 0,
            issues={
                "records": array.total_records,
                "results": [row.model_dump(mode="json") for row in array.results],
            },
        )

    def _validate_object(
        self, model_type: str, payload: Mapping[str, Any], batch_id: str | None
    ) -> GatewayResponse:
        if batch_id is None:
            result = self._dispatcher.validate(model_type, payload)
            return GatewayResponse(
                status_code=HTTPStatus.OK, body=result.model_dump(mode="json")
            )
        result = self._dispatcher.validate_into_batch(batch_id, model_type, payload)
        return self._accumulating(
            batch_id,
            is_valid=result.is_valid,
            issues={
                "errors": [e.model_dump(mode="json") for e in result.errors],
                "warnings": [w.model_dump(mode="json") for w in result.warnings],
            },
        )

    def _accumulating(
        self, batch_id: str, *, is_valid: bool, issues: dict[str, Any]
    ) -> GatewayResponse:
        snapshot = self._batches.get_session(batch_id)
        return GatewayResponse(
            status_code=HTTPStatus.OK,
            body={
                "status": "accumulating",
                "batch_id": batch_id,
                "is_valid": is_valid,
                **issues,
                "total": snapshot.total_records,
                "valid": snapshot.valid_records,
                "invalid": snapshot.invalid_records,
            },
        )

    def start_batch(self, body: Mapping[str, Any]) -> GatewayResponse:
        """Open a batch session.

        Args:
            body: ``{model_type?, threshold?, batch_id?}``.

        Returns:
            201 response with the new batch id.
        """
        model_type = body.get("model_type")
        threshold = body.get("threshold")
        batch_id = body.get("batch_id")
        if model_type is not None and not isinstance(model_type, str):
            return _bad_request("model_type must be a string")
        if threshold is not None and (
            isinstance(threshold, bool) or not isinstance(threshold, (int, float))
        ):
            return _bad_request("threshold must be a number")
        if batch_id is not None and (not isinstance(batch_id, str) or not batch_id):
            return _bad_request("batch_id must be a non-empty string")
        try:
            if model_type is not None:
                self._registry.get(model_type)
            snapshot = self._batches.start_session(
                batch_id,
                None if threshold is None else float(threshold),
                model_type=model_type,
            )
        except TollgateError as exc:
            return _error_response(exc)
        return GatewayResponse(
            status_code=HTTPStatus.CREATED,
            body={
                "batch_id": snapshot.batch_id,
                "status": str(snapshot.status),
                "model_type": snapshot.model_type,
                "threshold": snapshot.threshold,
            },
        )

    def batch_status(self, batch_id: str) -> GatewayResponse:
        """Report counters and status of a batch session."""
        try:
            snapshot = self._batches.get_session(batch_id)
        except TollgateError as exc:
            return _error_response(exc)
        return GatewayResponse(
            status_code=HTTPStatus.OK,
            body={
                "batch_id": snapshot.batch_id,
                "model_type": snapshot.model_type,
                "total": snapshot.total_records,
                "valid": snapshot.valid_records,
                "invalid": snapshot.invalid_records,
                "warnings": snapshot.warning_count,
                "success_rate": snapshot.success_rate,
                "threshold": snapshot.threshold,
                "status": str(snapshot.status),
            },
        )

    def complete_batch(self, batch_id: str) -> GatewayResponse:
        """Finalize a batch session and report its verdict."""
        try:
            verdict = self._batches.complete(batch_id)
        except TollgateError as exc:
            return _error_response(exc)
        return GatewayResponse(status_code=HTTPStatus.OK, body=_verdict_body(verdict))

    def list_models(self) -> GatewayResponse:
        """List registered model types with their details."""
        return GatewayResponse(
            status_code=HTTPStatus.OK,
            body={
                "models": self._registry.describe(),
                "count": len(self._registry),
            },
        )
