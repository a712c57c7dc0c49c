"""Registration of the built-in model types."""

from __future__ import annotations

from tollgate.models import GenericPayload, IncidentPayload, IncidentValidator
from tollgate.registry.model_registry import ModelRegistry
from tollgate.registry.models import ModelMetadata
from tollgate.validation.validator import SchemaValidator


def register_builtin_models(registry: ModelRegistry) -> ModelRegistry:
    """Register shipped model types. Safe to call repeatedly.

    Args:
        registry: Registry to populate.

    Returns:
        The same registry, for chaining.
    """
    registry.register(
        "incident",
        IncidentPayload,
        IncidentValidator(),
        ModelMetadata(
            display_name="Incident Report",
            description="Incident reporting payload for e2e testing",
            tags=("incident", "reporting", "e2e"),
        ),
    )
    registry.register(
        "generic",
        GenericPayload,
        SchemaValidator("generic"),
        ModelMetadata(
            display_name="Generic Payload",
            description="Free-form JSON payload with a typed envelope",
            tags=("generic", "json"),
        ),
    )
    return registry


def build_default_registry() -> ModelRegistry:
    """Return a new registry holding the built-in model types."""
    return register_builtin_models(ModelRegistry())
