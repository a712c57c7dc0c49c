"""Deterministic gateway error contracts."""

from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    """Stable error codes shared by registry, converter, and batch layers."""

    DUPLICATE_NAME = "duplicate_name"
    MODEL_NOT_FOUND = "model_not_found"
    BATCH_NOT_FOUND = "batch_not_found"
    CONVERSION_FAILED = "conversion_failed"
    INVALID_DESTINATION = "invalid_destination"
    ALREADY_COMPLETED = "already_completed"
    DUPLICATE_BATCH = "duplicate_batch"
    INVALID_THRESHOLD = "invalid_threshold"
    CONFIG_INVALID = "config_invalid"


class TollgateError(RuntimeError):
    """Gateway failure with stable deterministic code."""

    code: ErrorCode

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        *,
        data: dict[str, object] | None = None,
    ) -> None:
        """Create gateway failure.

        Args:
            code: Stable error code.
            message: Human-readable error message.
            data: Optional structured payload for diagnostics.
        """
        super().__init__(message)
        self.code = code
        self.data = data or {}


class DuplicateNameError(TollgateError):
    """Raised when a model name is already bound to a different schema."""

    def __init__(self, name: str, *, existing: str, incoming: str) -> None:
        super().__init__(
            ErrorCode.DUPLICATE_NAME,
            f"Model type already registered with a different schema: {name!r}",
            data={"name": name, "existing": existing, "incoming": incoming},
        )
        self.name = name


class NotFoundError(TollgateError):
    """Base for unknown model type names and unknown batch ids."""


class ModelNotFoundError(NotFoundError):
    """Raised when a model type name is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(
            ErrorCode.MODEL_NOT_FOUND,
            f"Unknown model type: {name!r}",
            data={"name": name},
        )
        self.name = name


class BatchNotFoundError(NotFoundError):
    """Raised when a batch id is unknown or its session has expired."""

    def __init__(self, batch_id: str) -> None:
        super().__init__(
            ErrorCode.BATCH_NOT_FOUND,
            f"Batch session not found: {batch_id!r}",
            data={"batch_id": batch_id},
        )
        self.batch_id = batch_id


class ConversionError(TollgateError):
    """Raised when untyped data cannot populate a typed instance."""

    def __init__(self, path: str, message: str) -> None:
        location = path or "<root>"
        super().__init__(
            ErrorCode.CONVERSION_FAILED,
            f"{location}: {message}",
            data={"path": path, "reason": message},
        )
        self.path = path
        self.reason = message


class InvalidDestinationError(TollgateError):
    """Raised when a conversion target is not a mutable model instance."""

    def __init__(self, message: str) -> None:
        super().__init__(ErrorCode.INVALID_DESTINATION, message)


class AlreadyCompletedError(TollgateError):
    """Raised when a terminal batch session is mutated or completed again."""

    def __init__(self, batch_id: str, status: str) -> None:
        super().__init__(
            ErrorCode.ALREADY_COMPLETED,
            f"Batch session already {status}: {batch_id!r}",
            data={"batch_id": batch_id, "status": status},
        )
        self.batch_id = batch_id


class DuplicateBatchError(TollgateError):
    """Raised when starting a session under a batch id that is still held."""

    def __init__(self, batch_id: str) -> None:
        super().__init__(
            ErrorCode.DUPLICATE_BATCH,
            f"Batch session already exists: {batch_id!r}",
            data={"batch_id": batch_id},
        )
        self.batch_id = batch_id


class InvalidThresholdError(TollgateError):
    """Raised when a batch threshold falls outside 0-100."""

    def __init__(self, threshold: float) -> None:
        super().__init__(
            ErrorCode.INVALID_THRESHOLD,
            f"Threshold must be between 0 and 100, got {threshold!r}",
            data={"threshold": threshold},
        )


class ConfigError(TollgateError):
    """Raised when gateway settings cannot be decoded or validated."""

    def __init__(self, message: str) -> None:
        super().__init__(ErrorCode.CONFIG_INVALID, message)
