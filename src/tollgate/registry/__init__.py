"""Model registry: dynamic name -> schema + validator bindings."""

from tollgate.registry.model_registry import ModelRegistry
from tollgate.registry.models import ModelConverter, ModelDescriptor, ModelMetadata
from tollgate.registry.rwlock import ReadWriteLock
from tollgate.registry.store import DescriptorStore

__all__ = [
    "DescriptorStore",
    "ModelConverter",
    "ModelDescriptor",
    "ModelMetadata",
    "ModelRegistry",
    "ReadWriteLock",
]
