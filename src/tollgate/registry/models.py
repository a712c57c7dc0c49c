"""Descriptor records binding a model type name to schema and validator."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from tollgate.validation.validator import PayloadValidator

type ModelConverter = Callable[[Mapping[str, Any]], BaseModel]


def _utc_now() -> datetime:
    return datetime.now(UTC)


class ModelMetadata(BaseModel):
    """Human-facing metadata for one registered model type."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    display_name: str = ""
    version: str = "1.0.0"
    description: str = ""
    author: str = "System"
    tags: tuple[str, ...] = ()
    created_at: datetime = Field(default_factory=_utc_now)


@dataclass(frozen=True)
class ModelDescriptor:
    """Registry record for one model type. Immutable once registered."""

    name: str
    schema_type: type[BaseModel]
    validator: PayloadValidator
    metadata: ModelMetadata = field(default_factory=ModelMetadata)
    converter: ModelConverter | None = None

    def details(self) -> dict[str, object]:
        """Return a JSON-ready description of this descriptor."""
        return {
            "name": self.metadata.display_name or self.name,
            "description": self.metadata.description,
            "version": self.metadata.version,
            "author": self.metadata.author,
            "tags": list(self.metadata.tags),
            "created_at": self.metadata.created_at.isoformat(),
            "schema": self.schema_type.__name__,
        }
