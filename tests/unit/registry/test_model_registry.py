"""Unit tests for the model registry."""

from __future__ import annotations

import threading
from collections.abc import Mapping
from typing import Any

import pytest
from pydantic import BaseModel, ValidationError

from tollgate.errors import ConversionError, DuplicateNameError, ModelNotFoundError
from tollgate.registry import ModelMetadata, ModelRegistry
from tollgate.registry.bootstrap import register_builtin_models
from tollgate.validation import SchemaValidator


class EchoPayload(BaseModel):
    """Toy schema for tests (no domain logic)."""

    echo: str


class EchoPayloadV2(BaseModel):
    echo: str
    version: int = 2


@pytest.mark.unit
def test_register_get_returns_stable_descriptor() -> None:
    """Repeated reads return the same descriptor and schema."""
    # Arrange - registry with one model type
    registry = ModelRegistry()
    validator = SchemaValidator("echo")
    registry.register("echo", EchoPayload, validator)

    # Act - read twice
    first = registry.get("echo")
    second = registry.get("echo")

    # Assert - same schema, validator, and default metadata
    assert first is second
    assert first.schema_type is EchoPayload
    assert registry.get_validator("echo") is validator
    assert first.metadata.display_name == "echo"
    assert registry.is_registered("echo")
    assert "echo" in registry


@pytest.mark.unit
def test_reregistering_identical_schema_is_idempotent() -> None:
    """Same name and same schema yields one descriptor."""
    registry = ModelRegistry()
    first = registry.register("echo", EchoPayload, SchemaValidator())

    second = registry.register("echo", EchoPayload, SchemaValidator())

    assert second is first
    assert len(registry) == 1


@pytest.mark.unit
def test_registering_different_schema_fails_and_keeps_original() -> None:
    """Same name with a different schema is a duplicate-name error."""
    # Arrange - registry with EchoPayload
    registry = ModelRegistry()
    registry.register("echo", EchoPayload, SchemaValidator())

    # Act / Assert - second registration fails
    with pytest.raises(DuplicateNameError, match="different schema") as exc_info:
        registry.register("echo", EchoPayloadV2, SchemaValidator())

    assert exc_info.value.data["incoming"].endswith("EchoPayloadV2")
    assert registry.get("echo").schema_type is EchoPayload


@pytest.mark.unit
def test_replace_swaps_schema_explicitly() -> None:
    registry = ModelRegistry()
    registry.register("echo", EchoPayload, SchemaValidator())

    registry.register("echo", EchoPayloadV2, SchemaValidator(), replace=True)

    assert registry.get("echo").schema_type is EchoPayloadV2
    assert len(registry) == 1


@pytest.mark.unit
def test_register_rejects_empty_name_and_non_model_schema() -> None:
    registry = ModelRegistry()

    with pytest.raises(ValueError, match="non-empty"):
        registry.register("", EchoPayload, SchemaValidator())
    with pytest.raises(ValueError, match="pydantic model class"):
        registry.register("bad", dict, SchemaValidator())  # type: ignore[arg-type]


@pytest.mark.unit
def test_list_all_preserves_insertion_order() -> None:
    """Listings follow registration order, not lexical order."""
    registry = ModelRegistry()
    for name in ("zeta", "alpha", "mid"):
        registry.register(name, EchoPayload, SchemaValidator())

    assert [d.name for d in registry.list_all()] == ["zeta", "alpha", "mid"]
    assert registry.names() == ("zeta", "alpha", "mid")


@pytest.mark.unit
def test_unknown_name_raises_not_found_everywhere() -> None:
    registry = ModelRegistry()

    for call in (
        lambda: registry.get("nope"),
        lambda: registry.get_validator("nope"),
        lambda: registry.create_instance("nope"),
        lambda: registry.convert("nope", {}),
        lambda: registry.unregister("nope"),
    ):
        with pytest.raises(ModelNotFoundError, match="Unknown model type: 'nope'"):
            call()
    assert registry.is_registered("nope") is False


@pytest.mark.unit
def test_create_instance_returns_fresh_zero_valued_instances() -> None:
    registry = ModelRegistry()
    registry.register("echo", EchoPayloadV2, SchemaValidator())

    first = registry.create_instance("echo")
    second = registry.create_instance("echo")

    assert isinstance(first, EchoPayloadV2)
    assert first is not second
    assert first.echo == ""
    assert first.version == 2


@pytest.mark.unit
def test_convert_prefers_explicit_converter() -> None:
    """A registered converter replaces introspective conversion."""
    calls: list[Mapping[str, Any]] = []

    def build(data: Mapping[str, Any]) -> BaseModel:
        calls.append(data)
        return EchoPayload(echo=str(data["text"]).upper())

    registry = ModelRegistry()
    registry.register("echo", EchoPayload, SchemaValidator(), converter=build)

    instance = registry.convert("echo", {"text": "hi"})

    assert instance == EchoPayload(echo="HI")
    assert calls == [{"text": "hi"}]


@pytest.mark.unit
def test_explicit_converter_failures_become_conversion_errors() -> None:
    """A custom converter raising a foreign error reports a conversion failure."""
    # Arrange - converter that builds the model strictly
    registry = ModelRegistry()
    registry.register(
        "echo",
        EchoPayload,
        SchemaValidator(),
        converter=lambda data: EchoPayload.model_validate(data),
    )

    # Act / Assert - pydantic error is wrapped at the root path
    with pytest.raises(ConversionError, match="<root>") as exc_info:
        registry.convert("echo", {"echo": 3})

    assert exc_info.value.path == ""
    assert isinstance(exc_info.value.__cause__, ValidationError)


@pytest.mark.unit
def test_explicit_converter_gateway_errors_pass_through() -> None:
    def build(data: Mapping[str, Any]) -> BaseModel:
        raise ConversionError("echo", "rejected")

    registry = ModelRegistry()
    registry.register("echo", EchoPayload, SchemaValidator(), converter=build)

    with pytest.raises(ConversionError, match="echo: rejected"):
        registry.convert("echo", {})


@pytest.mark.unit
def test_unregister_removes_binding() -> None:
    registry = ModelRegistry()
    registry.register("echo", EchoPayload, SchemaValidator())

    removed = registry.unregister("echo")

    assert removed.schema_type is EchoPayload
    assert registry.is_registered("echo") is False


@pytest.mark.unit
def test_stats_and_describe_report_registered_models(
    registry: ModelRegistry,
) -> None:
    """Built-in registry exposes counters and per-model details."""
    stats = registry.stats()
    details = registry.describe()

    assert stats == {"total_models": 2, "model_types": ["incident", "generic"]}
    assert details["incident"]["name"] == "Incident Report"
    assert details["incident"]["schema"] == "IncidentPayload"
    assert details["generic"]["tags"] == ["generic", "json"]


@pytest.mark.unit
def test_builtin_bootstrap_is_idempotent(registry: ModelRegistry) -> None:
    before = registry.list_all()

    register_builtin_models(registry)

    assert registry.list_all() == before


@pytest.mark.unit
def test_metadata_is_carried_on_descriptor() -> None:
    registry = ModelRegistry()
    metadata = ModelMetadata(display_name="Echo", version="2.0.0", tags=("t",))

    descriptor = registry.register("echo", EchoPayload, SchemaValidator(), metadata)

    assert descriptor.metadata is metadata
    assert descriptor.details()["version"] == "2.0.0"


@pytest.mark.unit
def test_concurrent_reads_and_registrations_stay_consistent() -> None:
    """Readers never observe a half-registered descriptor."""
    # Arrange - registry and a barrier for readers plus writers
    registry = ModelRegistry()
    registry.register("base", EchoPayload, SchemaValidator())
    start = threading.Barrier(8)
    failures: list[BaseException] = []

    def read() -> None:
        start.wait()
        for _ in range(500):
            try:
                for descriptor in registry.list_all():
                    assert registry.get(descriptor.name) is descriptor
            except BaseException as exc:  # noqa: BLE001
                failures.append(exc)
                return

    def write(offset: int) -> None:
        start.wait()
        for index in range(25):
            registry.register(f"m{offset}-{index}", EchoPayload, SchemaValidator())

    threads = [threading.Thread(target=read) for _ in range(6)]
    threads += [threading.Thread(target=write, args=(n,)) for n in range(2)]

    # Act - run all threads
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    # Assert - no reader failure and every registration visible
    assert failures == []
    assert len(registry) == 51
