"""Post-validation options: profiles, caps, and field filters."""

from __future__ import annotations

from tollgate.config.settings import ValidationProfile, ValidationSettings
from tollgate.validation.results import (
    ErrorSeverity,
    FieldError,
    FieldWarning,
    IssueCode,
    ValidationResult,
)

PERMISSIVE_CATEGORY = "permissive-mode"

_BLOCKING = frozenset({ErrorSeverity.ERROR, ErrorSeverity.CRITICAL})


def _ignored(field: str, ignored_fields: tuple[str, ...]) -> bool:
    return any(marker in field for marker in ignored_fields)


def _demote(error: FieldError) -> FieldWarning:
    return FieldWarning(
        field=error.field,
        message=error.message,
        code=error.code,
        value=error.value,
        suggestion="Review this field; permissive mode accepted it",
        category=PERMISSIVE_CATEGORY,
    )


def apply_options(
    result: ValidationResult, options: ValidationSettings
) -> ValidationResult:
    """Apply profile, filters, and caps to a validator result.

    Profiles:
        strict: errors and warnings pass through unchanged.
        permissive: non-critical errors other than missing required fields
            become warnings.
        minimal: only error/critical errors are kept; warnings are dropped.

    Args:
        result: Raw validator result.
        options: Options to apply.

    Returns:
        New result; validity is recomputed from the remaining errors.
    """
    errors = [e for e in result.errors if not _ignored(e.field, options.ignored_fields)]
    warnings = [
        w for w in result.warnings if not _ignored(w.field, options.ignored_fields)
    ]

    if options.profile is ValidationProfile.PERMISSIVE:
        kept: list[FieldError] = []
        for error in errors:
            if (
                error.severity is ErrorSeverity.CRITICAL
                or error.code == IssueCode.REQUIRED_MISSING
            ):
                kept.append(error)
            else:
                warnings.append(_demote(error))
        errors = kept
    elif options.profile is ValidationProfile.MINIMAL:
        errors = [e for e in errors if e.severity in _BLOCKING]
        warnings = []

    if not options.include_warnings:
        warnings = []

    is_valid = not errors
    context = dict(result.context)
    if len(errors) > options.max_errors:
        context["errors_truncated"] = len(errors) - options.max_errors
        errors = errors[: options.max_errors]
    if len(warnings) > options.max_warnings:
        context["warnings_truncated"] = len(warnings) - options.max_warnings
        warnings = warnings[: options.max_warnings]

    return result.model_copy(
        update={
            "is_valid": is_valid,
            "errors": tuple(errors),
            "warnings": tuple(warnings),
            "profile": str(options.profile),
            "context": context,
        }
    )
