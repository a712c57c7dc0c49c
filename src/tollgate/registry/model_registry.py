"""Model registry: name -> schema + validator, safe for concurrent readers."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from tollgate.convert import convert, zero_instance
from tollgate.errors import (
    ConversionError,
    DuplicateNameError,
    ModelNotFoundError,
    TollgateError,
)
from tollgate.registry.models import ModelConverter, ModelDescriptor, ModelMetadata
from tollgate.registry.rwlock import ReadWriteLock
from tollgate.registry.store import DescriptorStore
from tollgate.validation.validator import PayloadValidator

_LOGGER = logging.getLogger(__name__)


def _schema_label(schema_type: type[BaseModel]) -> str:
    return f"{schema_type.__module__}.{schema_type.__qualname__}"


class ModelRegistry:
    """In-process registry of model types.

    Lookups take the lock in shared mode and never block one another;
    registration and removal take it exclusively.
    """

    def __init__(self) -> None:
        """Initialize empty registry."""
        self._store = DescriptorStore()
        self._lock = ReadWriteLock()

    def register(
        self,
        name: str,
        schema_type: type[BaseModel],
        validator: PayloadValidator,
        metadata: ModelMetadata | None = None,
        *,
        converter: ModelConverter | None = None,
        replace: bool = False,
    ) -> ModelDescriptor:
        """Bind a model type name to a schema and validator.

        Re-registering a name with the same schema class is a no-op that
        returns the existing descriptor.

        Args:
            name: Model type name.
            schema_type: Pydantic model class describing the payload.
            validator: Validator invoked on converted instances.
            metadata: Optional descriptive metadata.
            converter: Optional explicit ``Mapping -> instance`` factory.
            replace: If True, replace a binding to a different schema.

        Returns:
            The descriptor now bound to ``name``.

        Raises:
            ValueError: If name is empty or schema_type is not a model class.
            DuplicateNameError: If name is bound to a different schema and
                replace is False.
        """
        if not name:
            raise ValueError("Model type name must be non-empty")
        if not (isinstance(schema_type, type) and issubclass(schema_type, BaseModel)):
            raise ValueError(f"Schema for {name!r} must be a pydantic model class")
        descriptor = ModelDescriptor(
            name=name,
            schema_type=schema_type,
            validator=validator,
            metadata=metadata or ModelMetadata(display_name=name),
            converter=converter,
        )
        with self._lock.write():
            existing = self._store.get(name)
            if existing is not None and existing.schema_type is schema_type:
                _LOGGER.debug("Model type %r already registered; skipping", name)
                return existing
            if existing is not None and not replace:
                raise DuplicateNameError(
                    name,
                    existing=_schema_label(existing.schema_type),
                    incoming=_schema_label(schema_type),
                )
            self._store.put(descriptor)
        if existing is None:
            _LOGGER.info("Registered model type %r (%s)", name, schema_type.__name__)
        else:
            _LOGGER.info(
                "Replaced model type %r: %s -> %s",
                name,
                existing.schema_type.__name__,
                schema_type.__name__,
            )
        return descriptor

    def unregister(self, name: str) -> ModelDescriptor:
        """Remove a model type binding.

        Args:
            name: Model type name.

        Returns:
            The removed descriptor.

        Raises:
            ModelNotFoundError: If name is not registered.
        """
        with self._lock.write():
            removed = self._store.remove(name)
        if removed is None:
            raise ModelNotFoundError(name)
        _LOGGER.info("Unregistered model type %r", name)
        return removed

    def get(self, name: str) -> ModelDescriptor:
        """Return the descriptor bound to name.

        Raises:
            ModelNotFoundError: If name is not registered.
        """
        with self._lock.read():
            descriptor = self._store.get(name)
        if descriptor is None:
            raise ModelNotFoundError(name)
        return descriptor

    def is_registered(self, name: str) -> bool:
        """Return True when name is bound."""
        with self._lock.read():
            return self._store.contains(name)

    def list_all(self) -> tuple[ModelDescriptor, ...]:
        """Return all descriptors in registration order."""
        with self._lock.read():
            return self._store.values()

    def names(self) -> tuple[str, ...]:
        """Return registered model type names in registration order."""
        return tuple(descriptor.name for descriptor in self.list_all())

    def create_instance(self, name: str) -> BaseModel:
        """Return a fresh zero-valued instance of the bound schema.

        Raises:
            ModelNotFoundError: If name is not registered.
        """
        return zero_instance(self.get(name).schema_type)

    def get_validator(self, name: str) -> PayloadValidator:
        """Return the validator bound to name.

        Raises:
            ModelNotFoundError: If name is not registered.
        """
        return self.get(name).validator

    def convert(self, name: str, data: Mapping[str, Any]) -> BaseModel:
        """Convert untyped data into an instance of the bound schema.

        Uses the descriptor's explicit converter when one was registered.
        Any non-gateway failure it raises is reported as a ConversionError.

        Args:
            name: Model type name.
            data: Decoded JSON object.

        Returns:
            Populated schema instance.

        Raises:
            ModelNotFoundError: If name is not registered.
            ConversionError: If data does not fit the schema.
        """
        descriptor = self.get(name)
        if descriptor.converter is not None:
            try:
                return descriptor.converter(data)
            except TollgateError:
                raise
            except Exception as exc:
                raise ConversionError("", str(exc)) from exc
        return convert(descriptor.schema_type, data)

    def stats(self) -> dict[str, object]:
        """Return registry counters."""
        names = self.names()
        return {"total_models": len(names), "model_types": list(names)}

    def describe(self) -> dict[str, dict[str, object]]:
        """Return per-model details keyed by model type name."""
        return {descriptor.name: descriptor.details() for descriptor in self.list_all()}

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._store)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.is_registered(name)
