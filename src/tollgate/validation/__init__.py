"""Validator contracts, results, and dispatch."""

from tollgate.validation.dispatch import (
    ValidationDispatcher,
    build_summary,
    detect_record_identifier,
    validator_test_name,
)
from tollgate.validation.options import apply_options
from tollgate.validation.results import (
    ArrayValidationResult,
    ErrorSeverity,
    FieldError,
    FieldWarning,
    IssueCode,
    RowValidationResult,
    ValidationResult,
    ValidationSummary,
)
from tollgate.validation.validator import (
    PayloadValidator,
    SchemaValidator,
    error_code_for,
)

__all__ = [
    "ArrayValidationResult",
    "ErrorSeverity",
    "FieldError",
    "FieldWarning",
    "IssueCode",
    "PayloadValidator",
    "RowValidationResult",
    "SchemaValidator",
    "ValidationDispatcher",
    "ValidationResult",
    "ValidationSummary",
    "apply_options",
    "build_summary",
    "detect_record_identifier",
    "error_code_for",
    "validator_test_name",
]
