"""Untyped-to-typed conversion: populate pydantic instances from JSON-shaped data.

Conversion is strict where JSON decoding is lax: a string never becomes a
number, a number never becomes a bool, and a number that does not fit the
destination width is an error rather than a truncation. The only permissive
direction is scalar -> string.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from functools import lru_cache
from typing import Any

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic.errors import PydanticSchemaGenerationError
from pydantic_core import PydanticSerializationError, to_json

from tollgate.convert.plan import (
    TypeSpec,
    ValueKind,
    field_plans,
    zero_instance,
    zero_value,
)
from tollgate.errors import ConversionError, InvalidDestinationError


def convert[M: BaseModel](schema_type: type[M], data: object) -> M:
    """Create a zero-valued instance of schema_type and populate it from data.

    Args:
        schema_type: Pydantic model class to instantiate.
        data: Untyped key/value tree (decoded JSON object).

    Returns:
        Populated instance.

    Raises:
        InvalidDestinationError: If schema_type is not a mutable model class.
        ConversionError: If any present field cannot be converted.
    """
    if not (isinstance(schema_type, type) and issubclass(schema_type, BaseModel)):
        raise InvalidDestinationError(
            f"Conversion schema must be a pydantic model class, got {schema_type!r}"
        )
    return populate(zero_instance(schema_type), data)


def populate[M: BaseModel](target: M, data: object) -> M:
    """Populate an existing model instance in place from untyped data.

    Fields absent from data keep their current value. Writes made before a
    failure are not rolled back; callers discard the target on error.

    Args:
        target: Mutable pydantic model instance owned by the caller.
        data: Untyped key/value tree (decoded JSON object).

    Returns:
        The same target instance.

    Raises:
        InvalidDestinationError: If target is not a mutable model instance.
        ConversionError: If any present field cannot be converted.
    """
    _check_destination(target)
    if not isinstance(data, Mapping):
        raise ConversionError("", f"expected an object, got {_kind_name(data)}")
    _populate_fields(target, data, "")
    return target


def _check_destination(target: object) -> None:
    if isinstance(target, type):
        raise InvalidDestinationError(
            f"Conversion target must be a model instance, got class {target.__name__}"
        )
    if not isinstance(target, BaseModel):
        raise InvalidDestinationError(
            f"Conversion target must be a pydantic model instance, "
            f"got {type(target).__name__}"
        )
    if target.model_config.get("frozen"):
        raise InvalidDestinationError(
            f"Conversion target {type(target).__name__} is frozen"
        )


def _populate_fields(target: BaseModel, data: Mapping[Any, Any], path: str) -> None:
    for name, value, field_path in _convert_fields(type(target), data, path):
        try:
            setattr(target, name, value)
        except PydanticValidationError as exc:
            raise ConversionError(field_path, _first_message(exc)) from exc


def _convert_fields(
    schema_type: type[BaseModel], data: Mapping[Any, Any], path: str
) -> list[tuple[str, Any, str]]:
    converted: list[tuple[str, Any, str]] = []
    for plan in field_plans(schema_type):
        if plan.key not in data:
            continue
        raw = data[plan.key]
        # Explicit null leaves the field unset, like an absent key.
        if raw is None and plan.spec.kind is not ValueKind.OPTIONAL:
            continue
        field_path = f"{path}.{plan.key}" if path else plan.key
        value = _convert_value(plan.spec, raw, field_path)
        converted.append((plan.name, value, field_path))
    return converted


def _convert_value(spec: TypeSpec, value: object, path: str) -> Any:
    match spec.kind:
        case ValueKind.STRING:
            return _to_string(value, path)
        case ValueKind.BOOL:
            return _to_bool(value, path)
        case ValueKind.INT:
            return _to_int(spec, value, path)
        case ValueKind.FLOAT:
            return _to_float(spec, value, path)
        case ValueKind.SEQUENCE:
            return _to_sequence(spec, value, path)
        case ValueKind.MAPPING:
            return _to_mapping(spec, value, path)
        case ValueKind.MODEL:
            return _to_model(spec, value, path)
        case ValueKind.OPTIONAL:
            if value is None:
                return None
            assert spec.item is not None
            return _convert_value(spec.item, value, path)
        case _:
            return _reencode(spec, value, path)


def _to_string(value: object, path: str) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        # Whole numbers print without a fractional part: 42.0 -> "42".
        return repr(value).removesuffix(".0")
    if isinstance(value, int):
        return str(value)
    raise ConversionError(path, f"cannot convert {_kind_name(value)} to string")


def _to_bool(value: object, path: str) -> bool:
    if isinstance(value, bool):
        return value
    raise ConversionError(path, f"cannot convert {_kind_name(value)} to bool")


def _to_int(spec: TypeSpec, value: object, path: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConversionError(path, f"cannot convert {_kind_name(value)} to integer")
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise ConversionError(
                path, f"number {value!r} is not representable as an integer"
            )
        value = int(value)
    width = spec.int_width
    if not width.fits(value):
        kind = "int" if width.signed else "uint"
        raise ConversionError(
            path,
            f"value {value} overflows {kind}{width.bits} "
            f"(range {width.minimum}..{width.maximum})",
        )
    return value


def _to_float(spec: TypeSpec, value: object, path: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConversionError(path, f"cannot convert {_kind_name(value)} to float")
    try:
        result = float(value)
    except OverflowError as exc:
        raise ConversionError(path, f"value {value} overflows float64") from exc
    if math.isfinite(result) and not spec.float_width.fits(result):
        raise ConversionError(
            path, f"value {value!r} overflows float{spec.float_width.bits}"
        )
    return result


def _to_sequence(spec: TypeSpec, value: object, path: str) -> Any:
    if not isinstance(value, (list, tuple)):
        raise ConversionError(path, f"expected an array, got {_kind_name(value)}")
    if spec.fixed_items is not None:
        if len(value) != len(spec.fixed_items):
            raise ConversionError(
                path,
                f"expected an array of length {len(spec.fixed_items)}, "
                f"got {len(value)}",
            )
        return tuple(
            _element(item_spec, element, f"{path}[{index}]")
            for index, (item_spec, element) in enumerate(
                zip(spec.fixed_items, value, strict=True)
            )
        )
    assert spec.item is not None and spec.container is not None
    items = [
        _element(spec.item, element, f"{path}[{index}]")
        for index, element in enumerate(value)
    ]
    try:
        return spec.container(items)
    except TypeError as exc:
        raise ConversionError(path, f"array elements are not hashable: {exc}") from exc


def _element(spec: TypeSpec, value: object, path: str) -> Any:
    if value is None and spec.kind is not ValueKind.OPTIONAL:
        return zero_value(spec)
    return _convert_value(spec, value, path)


def _to_mapping(spec: TypeSpec, value: object, path: str) -> dict[Any, Any]:
    if not isinstance(value, Mapping):
        raise ConversionError(path, f"expected an object, got {_kind_name(value)}")
    assert spec.key is not None and spec.item is not None
    result: dict[Any, Any] = {}
    for raw_key, raw_value in value.items():
        entry_path = f"{path}[{raw_key!r}]"
        key = _convert_key(spec.key, raw_key, entry_path)
        result[key] = _element(spec.item, raw_value, entry_path)
    return result


def _convert_key(spec: TypeSpec, key: object, path: str) -> Any:
    if not isinstance(key, str) or spec.kind is ValueKind.STRING:
        return _convert_value(spec, key, path)
    match spec.kind:
        case ValueKind.INT:
            try:
                parsed: object = int(key, 10)
            except ValueError as exc:
                raise ConversionError(path, f"key {key!r} is not an integer") from exc
            return _to_int(spec, parsed, path)
        case ValueKind.FLOAT:
            try:
                parsed = float(key)
            except ValueError as exc:
                raise ConversionError(path, f"key {key!r} is not a number") from exc
            return _to_float(spec, parsed, path)
        case ValueKind.BOOL:
            if key not in ("true", "false"):
                raise ConversionError(path, f"key {key!r} is not a boolean")
            return key == "true"
        case _:
            return _reencode(spec, key, path)


def _to_model(spec: TypeSpec, value: object, path: str) -> BaseModel:
    assert spec.model is not None
    if not isinstance(value, Mapping):
        raise ConversionError(path, f"expected an object, got {_kind_name(value)}")
    converted = _convert_fields(spec.model, value, path)
    updates = {name: field_value for name, field_value, _ in converted}
    # model_copy also works for frozen nested models.
    return zero_instance(spec.model).model_copy(update=updates)


@lru_cache(maxsize=256)
def _cached_adapter(annotation: Any) -> TypeAdapter[Any]:
    return TypeAdapter(annotation)


def _adapter(annotation: Any) -> TypeAdapter[Any]:
    try:
        return _cached_adapter(annotation)
    except TypeError:
        # Unhashable annotation (e.g. carries unhashable metadata).
        return TypeAdapter(annotation)


def _reencode(spec: TypeSpec, value: object, path: str) -> Any:
    """Fallback: re-encode the value as JSON and decode it into the target shape."""
    try:
        encoded = to_json(value)
    except PydanticSerializationError as exc:
        raise ConversionError(path, f"value is not JSON-encodable: {exc}") from exc
    try:
        adapter = _adapter(spec.annotation)
    except PydanticSchemaGenerationError as exc:
        raise ConversionError(
            path, f"no structural decoder for {spec.annotation!r}"
        ) from exc
    try:
        return adapter.validate_json(encoded)
    except PydanticValidationError as exc:
        raise ConversionError(path, _first_message(exc)) from exc


def _first_message(exc: PydanticValidationError) -> str:
    errors = exc.errors(include_url=False)
    if not errors:
        return str(exc)
    return str(errors[0].get("msg", exc))


def _kind_name(value: object) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, Mapping):
        return "object"
    if isinstance(value, (list, tuple)):
        return "array"
    return type(value).__name__
