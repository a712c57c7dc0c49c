"""Validation outcome models. Outcomes are data, never exceptions."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ErrorSeverity(StrEnum):
    """Severity attached to a field error."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class IssueCode(StrEnum):
    """Stable codes for structural validation issues."""

    VALIDATION_FAILED = "VALIDATION_FAILED"
    REQUIRED_MISSING = "REQUIRED_FIELD_MISSING"
    VALUE_TOO_SHORT = "VALUE_TOO_SHORT"
    VALUE_TOO_LONG = "VALUE_TOO_LONG"
    VALUE_OUT_OF_RANGE = "VALUE_OUT_OF_RANGE"
    INVALID_FORMAT = "INVALID_FORMAT"
    INVALID_ENUM = "INVALID_ENUM_VALUE"
    CONVERSION_ERROR = "CONVERSION_ERROR"
    VALIDATOR_ERROR = "VALIDATOR_ERROR"


class FieldError(BaseModel):
    """One validation error attached to a field path."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    field: str
    message: str
    code: str = IssueCode.VALIDATION_FAILED
    value: Any = None
    severity: ErrorSeverity = ErrorSeverity.ERROR


class FieldWarning(BaseModel):
    """One non-blocking validation warning."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    field: str
    message: str
    code: str
    value: Any = None
    suggestion: str = ""
    category: str = ""


def _utc_now() -> datetime:
    return datetime.now(UTC)


class ValidationResult(BaseModel):
    """Structured result of validating one payload."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    is_valid: bool
    model_type: str
    provider: str = "tollgate"
    errors: tuple[FieldError, ...] = ()
    warnings: tuple[FieldWarning, ...] = ()
    profile: str | None = None
    request_id: str | None = None
    timestamp: datetime = Field(default_factory=_utc_now)
    processing_ms: float = 0.0
    context: dict[str, Any] = {}

    @classmethod
    def failure(
        cls,
        model_type: str,
        *,
        field: str,
        message: str,
        code: str,
        provider: str = "tollgate",
    ) -> ValidationResult:
        """Construct an invalid result carrying a single error.

        Args:
            model_type: Model type name being validated.
            field: Field path the error is attached to.
            message: Human-readable error message.
            code: Stable machine-readable error code.
            provider: Producer of the result.

        Returns:
            Invalid validation result.
        """
        return cls(
            is_valid=False,
            model_type=model_type,
            provider=provider,
            errors=(FieldError(field=field, message=message, code=code),),
        )


class RowValidationResult(BaseModel):
    """Validation outcome for one record of an array payload."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    row_index: int
    record_identifier: str
    is_valid: bool
    test_name: str
    validation_ms: float = 0.0
    errors: tuple[FieldError, ...] = ()
    warnings: tuple[FieldWarning, ...] = ()


class ValidationSummary(BaseModel):
    """Aggregate statistics over all rows of an array payload."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    success_rate: float = 0.0
    validation_errors: int = 0
    validation_warnings: int = 0
    total_records_processed: int = 0
    total_tests_ran: int = 0
    successful_test_names: tuple[str, ...] = ()
    failed_test_names: tuple[str, ...] = ()


class ArrayValidationResult(BaseModel):
    """Result of validating an array of records against one model type."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    batch_id: str
    model_type: str
    status: str
    total_records: int
    valid_records: int
    invalid_records: int
    warning_records: int
    threshold: float | None = None
    processing_ms: float = 0.0
    completed_at: datetime = Field(default_factory=_utc_now)
    summary: ValidationSummary = ValidationSummary()
    results: tuple[RowValidationResult, ...] = ()
