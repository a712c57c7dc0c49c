"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from typing import Any

import pytest

from tests.unit.helpers import FakeClock
from tollgate.registry import ModelRegistry
from tollgate.registry.bootstrap import register_builtin_models


@pytest.fixture
def clock() -> FakeClock:
    """Fresh fake clock."""
    return FakeClock()


@pytest.fixture
def registry() -> ModelRegistry:
    """Registry holding the built-in model types."""
    return register_builtin_models(ModelRegistry())


@pytest.fixture
def incident_payload() -> dict[str, Any]:
    """Incident payload that passes every rule without warnings."""
    return {
        "id": "INC-20240924-0001",
        "title": "Database connection pool exhausted",
        "description": "Primary database rejects new connections under load.",
        "severity": "high",
        "status": "open",
        "priority": 3,
        "category": "performance",
        "environment": "production",
        "reported_by": "alice.ops",
        "assigned_to": "bob.oncall",
        "reported_at": "2024-09-24T10:00:00Z",
        "tags": ["database", "pool"],
    }
