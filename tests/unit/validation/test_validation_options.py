"""Unit tests for validation profiles, caps, and field filters."""

from __future__ import annotations

import pytest

from tollgate.config import ValidationProfile, ValidationSettings
from tollgate.validation import (
    ErrorSeverity,
    FieldError,
    FieldWarning,
    IssueCode,
    ValidationResult,
    apply_options,
)


def _result() -> ValidationResult:
    """Invalid result with mixed error severities and one warning."""
    return ValidationResult(
        is_valid=False,
        model_type="widget",
        errors=(
            FieldError(field="name", message="absent", code=IssueCode.REQUIRED_MISSING),
            FieldError(field="size", message="too big", code="VALUE_OUT_OF_RANGE"),
            FieldError(
                field="meta.hint",
                message="odd hint",
                code="HINT",
                severity=ErrorSeverity.WARNING,
            ),
        ),
        warnings=(FieldWarning(field="note", message="no note", code="NO_NOTE"),),
    )


@pytest.mark.unit
def test_strict_profile_keeps_everything() -> None:
    result = apply_options(_result(), ValidationSettings())

    assert len(result.errors) == 3
    assert len(result.warnings) == 1
    assert result.profile == "strict"
    assert result.is_valid is False


@pytest.mark.unit
def test_permissive_profile_demotes_non_required_errors() -> None:
    """Only missing-required and critical errors stay blocking."""
    # Act - apply permissive profile
    result = apply_options(
        _result(), ValidationSettings(profile=ValidationProfile.PERMISSIVE)
    )

    # Assert - two errors demoted with permissive category
    assert [e.field for e in result.errors] == ["name"]
    demoted = [w for w in result.warnings if w.category == "permissive-mode"]
    assert [w.field for w in demoted] == ["size", "meta.hint"]
    assert result.is_valid is False


@pytest.mark.unit
def test_permissive_profile_can_make_result_valid() -> None:
    base = _result()
    result = apply_options(
        base.model_copy(update={"errors": base.errors[1:]}),
        ValidationSettings(profile=ValidationProfile.PERMISSIVE),
    )

    assert result.is_valid is True
    assert result.errors == ()


@pytest.mark.unit
def test_minimal_profile_keeps_only_blocking_errors_and_drops_warnings() -> None:
    result = apply_options(
        _result(), ValidationSettings(profile=ValidationProfile.MINIMAL)
    )

    assert [e.field for e in result.errors] == ["name", "size"]
    assert result.warnings == ()


@pytest.mark.unit
def test_ignored_fields_filter_by_substring() -> None:
    result = apply_options(
        _result(), ValidationSettings(ignored_fields=("meta.", "note"))
    )

    assert [e.field for e in result.errors] == ["name", "size"]
    assert result.warnings == ()


@pytest.mark.unit
def test_caps_truncate_and_record_counts_in_context() -> None:
    """Caps trim lists without changing validity."""
    result = apply_options(_result(), ValidationSettings(max_errors=1, max_warnings=0))

    assert [e.field for e in result.errors] == ["name"]
    assert result.warnings == ()
    assert result.context == {"errors_truncated": 2, "warnings_truncated": 1}
    assert result.is_valid is False


@pytest.mark.unit
def test_exclude_warnings() -> None:
    result = apply_options(_result(), ValidationSettings(include_warnings=False))

    assert result.warnings == ()
    assert len(result.errors) == 3
