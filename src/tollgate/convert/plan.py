"""Field plans: per-schema resolution of external keys and value kinds."""

from __future__ import annotations

import types
from collections.abc import Mapping, MutableMapping, MutableSequence, Sequence
from dataclasses import dataclass
from enum import Enum, StrEnum
from functools import lru_cache
from typing import (
    Annotated,
    Any,
    Literal,
    TypeAliasType,
    Union,
    get_args,
    get_origin,
)

from pydantic import BaseModel
from pydantic.fields import FieldInfo

from tollgate.convert.types import (
    DEFAULT_FLOAT_WIDTH,
    DEFAULT_INT_WIDTH,
    FloatWidth,
    IntWidth,
)

_SEQUENCE_ORIGINS: dict[object, type] = {
    list: list,
    tuple: tuple,
    set: set,
    frozenset: frozenset,
    Sequence: list,
    MutableSequence: list,
}
_MAPPING_ORIGINS = (dict, Mapping, MutableMapping)


class ValueKind(StrEnum):
    """Conversion strategy for one declared type."""

    STRING = "string"
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    SEQUENCE = "sequence"
    MAPPING = "mapping"
    MODEL = "model"
    OPTIONAL = "optional"
    OPAQUE = "opaque"


@dataclass(frozen=True)
class TypeSpec:
    """Resolved conversion shape of one annotation."""

    kind: ValueKind
    annotation: Any
    int_width: IntWidth = DEFAULT_INT_WIDTH
    float_width: FloatWidth = DEFAULT_FLOAT_WIDTH
    container: type | None = None
    item: TypeSpec | None = None
    key: TypeSpec | None = None
    fixed_items: tuple[TypeSpec, ...] | None = None
    model: type[BaseModel] | None = None


@dataclass(frozen=True)
class FieldPlan:
    """Conversion plan for one model field."""

    name: str
    key: str
    spec: TypeSpec


def _split_annotated(annotation: Any) -> tuple[Any, tuple[Any, ...]]:
    """Strip `Annotated` and PEP 695 aliases, returning (base, metadata)."""
    metadata: tuple[Any, ...] = ()
    while True:
        if isinstance(annotation, TypeAliasType):
            annotation = annotation.__value__
            continue
        if get_origin(annotation) is Annotated:
            base, *extra = get_args(annotation)
            metadata = (*metadata, *extra)
            annotation = base
            continue
        return annotation, metadata


def resolve_spec(annotation: Any, metadata: Sequence[Any] = ()) -> TypeSpec:
    """Resolve the conversion shape of an annotation.

    Args:
        annotation: Declared field or element type.
        metadata: Extra `Annotated` metadata collected by pydantic.

    Returns:
        Type spec describing how untyped values are converted.
    """
    base, extra = _split_annotated(annotation)
    markers = (*metadata, *extra)
    origin = get_origin(base)

    if origin is Literal:
        return _resolve_literal(base)
    if origin in (Union, types.UnionType):
        members = [arg for arg in get_args(base) if arg is not type(None)]
        if len(members) == 1 and len(members) < len(get_args(base)):
            return TypeSpec(
                kind=ValueKind.OPTIONAL, annotation=base, item=resolve_spec(members[0])
            )
        return TypeSpec(kind=ValueKind.OPAQUE, annotation=base)

    if origin in _SEQUENCE_ORIGINS:
        return _resolve_sequence(base, origin)
    if origin in _MAPPING_ORIGINS:
        args = get_args(base)
        key_ann, value_ann = args if len(args) == 2 else (str, Any)
        return TypeSpec(
            kind=ValueKind.MAPPING,
            annotation=base,
            key=resolve_spec(key_ann),
            item=resolve_spec(value_ann),
        )
    if origin is None and isinstance(base, type):
        return _resolve_class(base, markers)
    return TypeSpec(kind=ValueKind.OPAQUE, annotation=base)


def _resolve_literal(base: Any) -> TypeSpec:
    # Literal choices are checked by validation; conversion checks only the kind.
    values = get_args(base)
    if values and all(isinstance(value, str) for value in values):
        return TypeSpec(kind=ValueKind.STRING, annotation=base)
    if values and all(
        isinstance(value, int) and not isinstance(value, bool) for value in values
    ):
        return TypeSpec(kind=ValueKind.INT, annotation=base)
    return TypeSpec(kind=ValueKind.OPAQUE, annotation=base)


def _resolve_sequence(base: Any, origin: Any) -> TypeSpec:
    args = get_args(base)
    container = _SEQUENCE_ORIGINS[origin]
    if origin is tuple and args and not (len(args) == 2 and args[1] is Ellipsis):
        if args == ((),):
            args = ()
        return TypeSpec(
            kind=ValueKind.SEQUENCE,
            annotation=base,
            container=tuple,
            fixed_items=tuple(resolve_spec(arg) for arg in args),
        )
    item_ann = args[0] if args else Any
    return TypeSpec(
        kind=ValueKind.SEQUENCE,
        annotation=base,
        container=container,
        item=resolve_spec(item_ann),
    )


def _resolve_class(base: type, markers: Sequence[Any]) -> TypeSpec:
    if issubclass(base, Enum):
        return TypeSpec(kind=ValueKind.OPAQUE, annotation=base)
    if issubclass(base, BaseModel):
        return TypeSpec(kind=ValueKind.MODEL, annotation=base, model=base)
    if base is bool:
        return TypeSpec(kind=ValueKind.BOOL, annotation=base)
    if base is int:
        width = next((m for m in markers if isinstance(m, IntWidth)), None)
        return TypeSpec(
            kind=ValueKind.INT, annotation=base, int_width=width or DEFAULT_INT_WIDTH
        )
    if base is float:
        width = next((m for m in markers if isinstance(m, FloatWidth)), None)
        return TypeSpec(
            kind=ValueKind.FLOAT,
            annotation=base,
            float_width=width or DEFAULT_FLOAT_WIDTH,
        )
    if base is str:
        return TypeSpec(kind=ValueKind.STRING, annotation=base)
    if base in (list, tuple, set, frozenset):
        return _resolve_sequence(base, base)
    if base is dict:
        return resolve_spec(dict[str, Any])
    return TypeSpec(kind=ValueKind.OPAQUE, annotation=base)


def is_ignored(field: FieldInfo) -> bool:
    """Return True for fields carrying the ignore marker (`exclude=True`)."""
    return field.exclude is True


@lru_cache(maxsize=None)
def field_plans(schema_type: type[BaseModel]) -> tuple[FieldPlan, ...]:
    """Return conversion plans for a schema, in declaration order.

    Ignored fields are omitted. Plans are cached per schema class.

    Args:
        schema_type: Pydantic model class.

    Returns:
        Tuple of field plans.
    """
    plans: list[FieldPlan] = []
    for name, field in schema_type.model_fields.items():
        if is_ignored(field):
            continue
        plans.append(
            FieldPlan(
                name=name,
                key=field.alias or name,
                spec=resolve_spec(field.annotation, field.metadata),
            )
        )
    return tuple(plans)


def zero_value(spec: TypeSpec) -> Any:
    """Return the zero value for a type spec."""
    match spec.kind:
        case ValueKind.STRING:
            return ""
        case ValueKind.BOOL:
            return False
        case ValueKind.INT:
            return 0
        case ValueKind.FLOAT:
            return 0.0
        case ValueKind.SEQUENCE:
            if spec.fixed_items is not None:
                return tuple(zero_value(item) for item in spec.fixed_items)
            assert spec.container is not None
            return spec.container()
        case ValueKind.MAPPING:
            return {}
        case ValueKind.MODEL:
            assert spec.model is not None
            return zero_instance(spec.model)
        case _:
            return None


def zero_instance[M: BaseModel](schema_type: type[M]) -> M:
    """Build a zero-valued instance of a schema without running validation.

    Fields with a declared default take that default; all other fields take
    the zero value of their kind.

    Args:
        schema_type: Pydantic model class.

    Returns:
        Fresh, unvalidated instance owned by the caller.
    """
    values: dict[str, Any] = {}
    for name, field in schema_type.model_fields.items():
        if field.is_required():
            values[name] = zero_value(resolve_spec(field.annotation, field.metadata))
        else:
            values[name] = field.get_default(call_default_factory=True)
    instance = schema_type.model_construct(**values)
    # Zero values are placeholders, not caller-supplied data.
    object.__setattr__(instance, "__pydantic_fields_set__", set())
    return instance
