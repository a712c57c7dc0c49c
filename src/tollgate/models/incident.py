"""Incident report payload and its validator."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from tollgate.validation.results import FieldError, FieldWarning
from tollgate.validation.validator import SchemaValidator

type SeverityLevel = Literal["low", "medium", "high", "critical"]

INCIDENT_ID_PATTERN = re.compile(r"^INC-\d{8}-\d{4}$")

# Allowed priorities per severity.
EXPECTED_PRIORITIES: dict[str, tuple[int, ...]] = {
    "low": (1, 2),
    "medium": (2, 3),
    "high": (3, 4),
    "critical": (4, 5),
}


class IncidentPayload(BaseModel):
    """Incident reporting payload."""

    id: str = Field(min_length=3, max_length=50)
    title: str = Field(min_length=10, max_length=200)
    description: str = Field(min_length=20, max_length=1000)
    severity: SeverityLevel
    status: Literal["open", "investigating", "resolved", "closed"]
    priority: int = Field(ge=1, le=5)
    category: Literal["bug", "feature", "security", "performance"]
    environment: Literal["development", "staging", "production"]
    reported_by: str = Field(min_length=3, max_length=100)
    assigned_to: str | None = Field(default=None, min_length=3, max_length=100)
    reported_at: datetime
    updated_at: datetime | None = None
    tags: list[Annotated[str, Field(min_length=2, max_length=20)]] = Field(
        default_factory=list
    )
    impact: SeverityLevel | None = None


class IncidentValidator(SchemaValidator):
    """Validator for incident payloads."""

    def __init__(self) -> None:
        """Bind validator to the incident model type."""
        super().__init__("incident")

    def check_rules(self, instance: IncidentPayload) -> list[FieldError]:
        """Check id format and priority/severity consistency."""
        errors: list[FieldError] = []
        if not INCIDENT_ID_PATTERN.match(instance.id):
            errors.append(
                FieldError(
                    field="id",
                    message=(
                        "incident ID must follow format INC-YYYYMMDD-NNNN "
                        f"(e.g., INC-20240924-0001), got: {instance.id}"
                    ),
                    code="INVALID_ID_FORMAT",
                    value=instance.id,
                )
            )
        allowed = EXPECTED_PRIORITIES[instance.severity]
        if instance.priority not in allowed:
            errors.append(
                FieldError(
                    field="priority",
                    message=(
                        f"priority {instance.priority} is inconsistent with "
                        f"severity '{instance.severity}' (expected: {list(allowed)})"
                    ),
                    code="PRIORITY_SEVERITY_MISMATCH",
                    value=f"priority={instance.priority}, severity={instance.severity}",
                )
            )
        return errors

    def business_warnings(self, instance: IncidentPayload) -> list[FieldWarning]:
        """Warn on unassigned critical and low-priority production incidents."""
        warnings: list[FieldWarning] = []
        if instance.severity == "critical" and not instance.assigned_to:
            warnings.append(
                FieldWarning(
                    field="assigned_to",
                    message="Critical incident should be assigned to an engineer",
                    code="CRITICAL_INCIDENT_UNASSIGNED",
                    suggestion="Assign to on-call engineer or escalation team",
                    category="business",
                )
            )
        if instance.environment == "production" and 0 < instance.priority < 3:
            warnings.append(
                FieldWarning(
                    field="priority",
                    message=(
                        f"Production incident has low priority ({instance.priority})"
                    ),
                    code="PRODUCTION_LOW_PRIORITY",
                    value=instance.priority,
                    suggestion="Review if priority should be 3 or higher",
                    category="business",
                )
            )
        return warnings
