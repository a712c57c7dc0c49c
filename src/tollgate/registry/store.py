"""Type descriptor store: insertion-ordered name -> descriptor mapping."""

from __future__ import annotations

from collections.abc import Iterator

from tollgate.registry.models import ModelDescriptor


class DescriptorStore:
    """Plain descriptor mapping. Callers own locking."""

    def __init__(self) -> None:
        """Initialize empty store."""
        self._descriptors: dict[str, ModelDescriptor] = {}

    def get(self, name: str) -> ModelDescriptor | None:
        """Return descriptor for name, or None."""
        return self._descriptors.get(name)

    def put(self, descriptor: ModelDescriptor) -> None:
        """Insert or replace a descriptor. Replacement keeps insertion position."""
        self._descriptors[descriptor.name] = descriptor

    def remove(self, name: str) -> ModelDescriptor | None:
        """Remove and return descriptor for name, or None."""
        return self._descriptors.pop(name, None)

    def contains(self, name: str) -> bool:
        """Return True when name is stored."""
        return name in self._descriptors

    def values(self) -> tuple[ModelDescriptor, ...]:
        """Return descriptors in insertion order."""
        return tuple(self._descriptors.values())

    def __len__(self) -> int:
        return len(self._descriptors)

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._descriptors))
