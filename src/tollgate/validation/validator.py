"""Validator capability bound to each registered model type."""

from __future__ import annotations

import time
from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from tollgate.validation.results import (
    FieldError,
    FieldWarning,
    IssueCode,
    ValidationResult,
)

SLOW_VALIDATION_MS = 100.0

_CODE_BY_ERROR_TYPE: dict[str, IssueCode] = {
    "missing": IssueCode.REQUIRED_MISSING,
    "string_too_short": IssueCode.VALUE_TOO_SHORT,
    "too_short": IssueCode.VALUE_TOO_SHORT,
    "string_too_long": IssueCode.VALUE_TOO_LONG,
    "too_long": IssueCode.VALUE_TOO_LONG,
    "greater_than": IssueCode.VALUE_OUT_OF_RANGE,
    "greater_than_equal": IssueCode.VALUE_OUT_OF_RANGE,
    "less_than": IssueCode.VALUE_OUT_OF_RANGE,
    "less_than_equal": IssueCode.VALUE_OUT_OF_RANGE,
    "multiple_of": IssueCode.VALUE_OUT_OF_RANGE,
    "literal_error": IssueCode.INVALID_ENUM,
    "enum": IssueCode.INVALID_ENUM,
    "string_pattern_mismatch": IssueCode.INVALID_FORMAT,
    "url_parsing": IssueCode.INVALID_FORMAT,
    "url_type": IssueCode.INVALID_FORMAT,
    "uuid_parsing": IssueCode.INVALID_FORMAT,
    "datetime_parsing": IssueCode.INVALID_FORMAT,
    "date_parsing": IssueCode.INVALID_FORMAT,
}


@runtime_checkable
class PayloadValidator(Protocol):
    """Protocol implemented by validators bound in the model registry."""

    def validate(self, instance: BaseModel) -> ValidationResult:
        """Validate a populated model instance.

        Args:
            instance: Instance produced by conversion.
        """


def error_code_for(error_type: str) -> IssueCode:
    """Map a pydantic error type to a stable issue code."""
    return _CODE_BY_ERROR_TYPE.get(error_type, IssueCode.VALIDATION_FAILED)


def _loc_path(loc: Sequence[int | str]) -> str:
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path = f"{path}.{part}" if path else str(part)
    return path


class SchemaValidator:
    """Validator enforcing required fields and the schema's pydantic constraints.

    A required field counts as present only if conversion wrote it, so a
    payload that omits it fails with REQUIRED_FIELD_MISSING even though the
    instance holds a zero value. Subclasses add domain rules through
    `check_rules` (errors, run only when structural checks pass) and
    `business_warnings` (always run).
    """

    provider = "tollgate"

    def __init__(self, model_type: str = "") -> None:
        """Bind validator to a model type name.

        Args:
            model_type: Model type name stamped on results.
        """
        self.model_type = model_type

    @property
    def test_name(self) -> str:
        """Name used for per-row test reporting."""
        return type(self).__name__

    def validate(self, instance: BaseModel) -> ValidationResult:
        """Validate a populated model instance.

        Args:
            instance: Instance produced by conversion.

        Returns:
            Structured validation result.
        """
        started = time.perf_counter()
        errors = self._missing_required(instance, "")
        missing = {error.field for error in errors}
        errors.extend(self._constraint_errors(instance, missing))
        if not errors:
            errors.extend(self.check_rules(instance))
        warnings = list(self.business_warnings(instance))
        elapsed_ms = (time.perf_counter() - started) * 1000
        if elapsed_ms > SLOW_VALIDATION_MS:
            warnings.append(
                FieldWarning(
                    field="performance",
                    message=f"Validation took {elapsed_ms:.1f}ms, longer than expected",
                    code="PERFORMANCE_WARNING",
                    suggestion="Consider optimizing validation logic or payload size",
                )
            )
        return ValidationResult(
            is_valid=not errors,
            model_type=self.model_type or type(instance).__name__,
            provider=self.provider,
            errors=tuple(errors),
            warnings=tuple(warnings),
            processing_ms=elapsed_ms,
        )

    def check_rules(self, instance: Any) -> list[FieldError]:
        """Return domain rule errors. Override in subclasses."""
        del instance
        return []

    def business_warnings(self, instance: Any) -> list[FieldWarning]:
        """Return non-blocking warnings. Override in subclasses."""
        del instance
        return []

    def _missing_required(self, instance: BaseModel, prefix: str) -> list[FieldError]:
        errors: list[FieldError] = []
        fields_set = instance.model_fields_set
        for name, field in type(instance).model_fields.items():
            if field.exclude is True:
                continue
            key = field.alias or name
            path = f"{prefix}.{key}" if prefix else key
            if field.is_required() and name not in fields_set:
                errors.append(
                    FieldError(
                        field=path,
                        message=f"Field '{path}' is required",
                        code=IssueCode.REQUIRED_MISSING,
                    )
                )
                continue
            errors.extend(self._nested_missing(getattr(instance, name), path))
        return errors

    def _nested_missing(self, value: object, path: str) -> list[FieldError]:
        if isinstance(value, BaseModel):
            return self._missing_required(value, path)
        if isinstance(value, (list, tuple)):
            nested: list[FieldError] = []
            for index, item in enumerate(value):
                nested.extend(self._nested_missing(item, f"{path}[{index}]"))
            return nested
        return []

    def _constraint_errors(
        self, instance: BaseModel, missing: set[str]
    ) -> list[FieldError]:
        payload = instance.model_dump(by_alias=True, warnings=False)
        try:
            type(instance).model_validate(payload)
        except PydanticValidationError as exc:
            return [
                FieldError(
                    field=path,
                    message=f"Field '{path}': {error['msg']}",
                    code=error_code_for(error["type"]),
                    value=_safe_value(error.get("input")),
                )
                for error in exc.errors(include_url=False)
                if error["type"] != "missing"
                and (path := _loc_path(error["loc"])) not in missing
            ]
        return []


def _safe_value(value: object) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return repr(value)
