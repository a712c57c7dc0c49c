"""Untyped-to-typed conversion for registered model schemas."""

from tollgate.convert.converter import convert, populate
from tollgate.convert.plan import (
    FieldPlan,
    TypeSpec,
    ValueKind,
    field_plans,
    resolve_spec,
    zero_instance,
)
from tollgate.convert.types import (
    Float32,
    Float64,
    FloatWidth,
    Int8,
    Int16,
    Int32,
    Int64,
    IntWidth,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
)

__all__ = [
    "FieldPlan",
    "Float32",
    "Float64",
    "FloatWidth",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "IntWidth",
    "TypeSpec",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
    "ValueKind",
    "convert",
    "field_plans",
    "populate",
    "resolve_spec",
    "zero_instance",
]
