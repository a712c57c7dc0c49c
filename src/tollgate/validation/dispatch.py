"""Validator dispatch: resolve, convert, validate, and fold into batches."""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from tollgate.batch.manager import BatchSessionManager, generate_batch_id
from tollgate.config.settings import ValidationSettings
from tollgate.errors import ConversionError, InvalidThresholdError
from tollgate.validation.options import apply_options
from tollgate.validation.results import (
    ArrayValidationResult,
    FieldError,
    IssueCode,
    RowValidationResult,
    ValidationResult,
    ValidationSummary,
)

if TYPE_CHECKING:
    from tollgate.registry.model_registry import ModelRegistry

_LOGGER = logging.getLogger(__name__)

RECORD_ID_KEYS = (
    "id",
    "ID",
    "_id",
    "uuid",
    "UUID",
    "identifier",
    "recordId",
    "record_id",
)
ARRAY_BATCH_PREFIX = "auto"


def detect_record_identifier(record: object, row_index: int) -> str:
    """Return the record's id-like value, or ``row_<index>`` when absent."""
    if isinstance(record, Mapping):
        for key in RECORD_ID_KEYS:
            value = record.get(key)
            if value is not None:
                return str(value)
    return f"row_{row_index}"


def validator_test_name(model_type: str) -> str:
    """Return the per-row test name for a model type.

    ``incident`` becomes ``IncidentValidator``; ``api_request`` becomes
    ``ApiRequestValidator``.
    """
    parts = re.split(r"[_\-\s]+", model_type)
    return "".join(part[:1].upper() + part[1:] for part in parts) + "Validator"


def build_summary(rows: Sequence[RowValidationResult]) -> ValidationSummary:
    """Aggregate per-row outcomes into a summary."""
    valid = sum(1 for row in rows if row.is_valid)
    passed = dict.fromkeys(row.test_name for row in rows if row.is_valid)
    failed = dict.fromkeys(row.test_name for row in rows if not row.is_valid)
    return ValidationSummary(
        success_rate=valid / len(rows) * 100 if rows else 0.0,
        validation_errors=sum(len(row.errors) for row in rows),
        validation_warnings=sum(len(row.warnings) for row in rows),
        total_records_processed=len(rows),
        total_tests_ran=len(passed.keys() | failed.keys()),
        successful_test_names=tuple(passed),
        failed_test_names=tuple(failed),
    )


class ValidationDispatcher:
    """Run the convert/validate pipeline for registered model types."""

    def __init__(
        self,
        registry: ModelRegistry,
        batches: BatchSessionManager | None = None,
        options: ValidationSettings | None = None,
    ) -> None:
        """Create dispatcher.

        Args:
            registry: Registry resolving model types.
            batches: Optional batch manager receiving outcomes.
            options: Default validation options.
        """
        self._registry = registry
        self._batches = batches
        self._options = options or ValidationSettings()

    @property
    def options(self) -> ValidationSettings:
        """Default validation options."""
        return self._options

    def validate(
        self,
        model_type: str,
        payload: Mapping[str, Any],
        *,
        options: ValidationSettings | None = None,
    ) -> ValidationResult:
        """Convert and validate one payload.

        Args:
            model_type: Registered model type name.
            payload: Decoded JSON object.
            options: Per-call options overriding the defaults.

        Returns:
            Validation result with options applied.

        Raises:
            ModelNotFoundError: If model_type is not registered.
            ConversionError: If payload does not fit the schema.
        """
        descriptor = self._registry.get(model_type)
        instance = self._registry.convert(model_type, payload)
        try:
            result = descriptor.validator.validate(instance)
        except Exception as exc:  # validator defects become results
            _LOGGER.warning(
                "Validator for %r raised %s: %s",
                model_type,
                type(exc).__name__,
                exc,
            )
            result = ValidationResult.failure(
                model_type,
                field="validator",
                message=f"Validator raised {type(exc).__name__}: {exc}",
                code=IssueCode.VALIDATOR_ERROR,
            )
        result = apply_options(result, options or self._options)
        _LOGGER.debug(
            "Validated %r: valid=%s errors=%d warnings=%d",
            model_type,
            result.is_valid,
            len(result.errors),
            len(result.warnings),
        )
        return result

    def validate_into_batch(
        self,
        batch_id: str,
        model_type: str,
        payload: Mapping[str, Any],
    ) -> ValidationResult:
        """Validate one payload and fold its outcome into a batch session.

        A payload that fails conversion is counted as invalid before the
        conversion error propagates.

        Raises:
            RuntimeError: If the dispatcher has no batch manager.
            BatchNotFoundError: If the batch is unknown or expired.
            AlreadyCompletedError: If the batch is terminal.
            ConversionError: If payload does not fit the schema.
        """
        batches = self._require_batches()
        batches.get_session(batch_id)
        try:
            result = self.validate(model_type, payload)
        except ConversionError:
            # Unconvertible payloads still count against the batch.
            batches.accumulate(batch_id, invalid=1)
            raise
        batches.accumulate(
            batch_id,
            valid=1 if result.is_valid else 0,
            invalid=0 if result.is_valid else 1,
            warnings=1 if result.warnings else 0,
        )
        return result

    def validate_records(
        self,
        model_type: str,
        records: Sequence[object],
        threshold: float | None = None,
    ) -> ArrayValidationResult:
        """Validate an array of records and resolve a verdict.

        Only invalid rows are listed in ``results``; the summary covers all
        rows. With a threshold the verdict is success iff the success rate
        reaches it. Without one, only a lone invalid record fails.

        Args:
            model_type: Registered model type name.
            records: Decoded JSON array.
            threshold: Optional minimum success percentage.

        Returns:
            Array validation result.

        Raises:
            ModelNotFoundError: If model_type is not registered.
            InvalidThresholdError: If threshold is outside 0-100.
        """
        if threshold is not None and not 0 <= threshold <= 100:
            raise InvalidThresholdError(threshold)
        self._registry.get(model_type)
        started = time.perf_counter()
        rows = [
            self._validate_row(model_type, record, index)
            for index, record in enumerate(records)
        ]
        valid = sum(1 for row in rows if row.is_valid)
        invalid = len(rows) - valid
        summary = build_summary(rows)
        if threshold is not None:
            passed = summary.success_rate >= threshold
        else:
            passed = not (len(rows) == 1 and invalid)
        return ArrayValidationResult(
            batch_id=generate_batch_id(ARRAY_BATCH_PREFIX),
            model_type=model_type,
            status="success" if passed else "failed",
            total_records=len(rows),
            valid_records=valid,
            invalid_records=invalid,
            warning_records=sum(1 for row in rows if row.is_valid and row.warnings),
            threshold=threshold,
            processing_ms=(time.perf_counter() - started) * 1000,
            summary=summary,
            results=tuple(row for row in rows if not row.is_valid),
        )

    def validate_records_into_batch(
        self,
        batch_id: str,
        model_type: str,
        records: Sequence[object],
        threshold: float | None = None,
    ) -> ArrayValidationResult:
        """Validate an array of records and fold its counts into a batch.

        Every record counts once: valid rows add to ``valid``, invalid and
        unconvertible rows to ``invalid``, and valid rows with warnings to
        ``warnings``.

        Raises:
            RuntimeError: If the dispatcher has no batch manager.
            BatchNotFoundError: If the batch is unknown or expired.
            AlreadyCompletedError: If the batch is terminal.
            ModelNotFoundError: If model_type is not registered.
            InvalidThresholdError: If threshold is outside 0-100.
        """
        batches = self._require_batches()
        batches.get_session(batch_id)
        array = self.validate_records(model_type, records, threshold)
        batches.accumulate(
            batch_id,
            valid=array.valid_records,
            invalid=array.invalid_records,
            warnings=array.warning_records,
        )
        return array

    def _validate_row(
        self, model_type: str, record: object, index: int
    ) -> RowValidationResult:
        started = time.perf_counter()
        base_name = validator_test_name(model_type)
        identifier = detect_record_identifier(record, index)
        if not isinstance(record, Mapping):
            return _row_failure(
                index,
                identifier,
                base_name,
                started,
                f"Record must be a JSON object, got {type(record).__name__}",
            )
        try:
            result = self.validate(model_type, record)
        except ConversionError as exc:
            return _row_failure(index, identifier, base_name, started, str(exc))
        test_name = base_name
        if not result.is_valid and result.errors:
            test_name = f"{base_name}:{result.errors[0].code}"
        elif result.warnings:
            test_name = f"{base_name}:{result.warnings[0].code}"
        return RowValidationResult(
            row_index=index,
            record_identifier=identifier,
            is_valid=result.is_valid,
            test_name=test_name,
            validation_ms=(time.perf_counter() - started) * 1000,
            errors=result.errors,
            warnings=result.warnings,
        )

    def _require_batches(self) -> BatchSessionManager:
        if self._batches is None:
            raise RuntimeError("Dispatcher has no batch session manager")
        return self._batches


def _row_failure(
    index: int, identifier: str, base_name: str, started: float, message: str
) -> RowValidationResult:
    code = IssueCode.CONVERSION_ERROR
    return RowValidationResult(
        row_index=index,
        record_identifier=identifier,
        is_valid=False,
        test_name=f"{base_name}:{code}",
        validation_ms=(time.perf_counter() - started) * 1000,
        errors=(FieldError(field="record", message=message, code=code),),
    )
