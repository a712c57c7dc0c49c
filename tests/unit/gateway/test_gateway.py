"""Unit tests for the request-layer gateway facade."""

from __future__ import annotations

import time
from typing import Any

import pytest

from tollgate.batch import BatchSessionManager
from tollgate.cli.bootstrap import build_gateway
from tollgate.config import BatchSettings, GatewaySettings
from tollgate.errors import (
    AlreadyCompletedError,
    BatchNotFoundError,
    ConversionError,
    DuplicateBatchError,
    DuplicateNameError,
    InvalidThresholdError,
    ModelNotFoundError,
)
from tollgate.gateway import ValidationGateway, status_for
from tollgate.registry import ModelRegistry


@pytest.fixture
def gateway(registry: ModelRegistry) -> ValidationGateway:
    """Gateway over built-in models and an unscheduled batch manager."""
    return ValidationGateway(registry, BatchSessionManager())


@pytest.mark.unit
@pytest.mark.parametrize(
    ("error", "status"),
    [
        (ModelNotFoundError("x"), 404),
        (BatchNotFoundError("b"), 404),
        (DuplicateNameError("x", existing="a", incoming="b"), 409),
        (DuplicateBatchError("b"), 409),
        (AlreadyCompletedError("b", "completed"), 409),
        (ConversionError("priority", "bad"), 400),
        (InvalidThresholdError(120), 400),
    ],
)
def test_status_for_maps_error_kinds(error: Exception, status: int) -> None:
    assert status_for(error) == status  # type: ignore[arg-type]


@pytest.mark.unit
def test_validate_object_returns_result_body(
    gateway: ValidationGateway, incident_payload: dict[str, Any]
) -> None:
    response = gateway.validate("incident", incident_payload)

    assert response.status_code == 200
    assert response.body["is_valid"] is True
    assert response.body["model_type"] == "incident"


@pytest.mark.unit
def test_validate_errors_map_to_error_bodies(gateway: ValidationGateway) -> None:
    """Unknown model is 404; unconvertible payload is 400."""
    missing = gateway.validate("nope", {})
    unconvertible = gateway.validate("incident", {"priority": "high"})
    scalar = gateway.validate("incident", "text")

    assert missing.status_code == 404
    assert missing.body["code"] == "model_not_found"
    assert missing.body["error"] == "Not Found"
    assert unconvertible.status_code == 400
    assert unconvertible.body["details"]["path"] == "priority"
    assert scalar.status_code == 400
    assert scalar.body["code"] == "invalid_request"


@pytest.mark.unit
def test_validate_array_payload_returns_verdict(
    gateway: ValidationGateway, incident_payload: dict[str, Any]
) -> None:
    records = [incident_payload, {**incident_payload, "id": "x"}]

    response = gateway.validate("incident", records, threshold=60)

    assert response.status_code == 200
    assert response.body["status"] == "failed"
    assert response.body["summary"]["success_rate"] == 50.0
    assert len(response.body["results"]) == 1


@pytest.mark.unit
def test_batch_lifecycle_through_gateway(
    gateway: ValidationGateway, incident_payload: dict[str, Any]
) -> None:
    """Start, accumulate, query, and complete a batch."""
    # Arrange - start a batch with a 50% threshold
    started = gateway.start_batch({"model_type": "incident", "threshold": 50})
    batch_id = started.body["batch_id"]

    # Act - two valid records, one invalid, one non-object
    gateway.validate("incident", incident_payload, batch_id=batch_id)
    accumulating = gateway.validate("incident", incident_payload, batch_id=batch_id)
    gateway.validate("incident", {**incident_payload, "id": "x"}, batch_id=batch_id)
    rejected = gateway.validate("incident", 42, batch_id=batch_id)
    status = gateway.batch_status(batch_id)
    completed = gateway.complete_batch(batch_id)
    again = gateway.complete_batch(batch_id)

    # Assert - every step reflects the accumulated counters
    assert started.status_code == 201
    assert started.body["status"] == "active"
    assert accumulating.body["status"] == "accumulating"
    assert accumulating.body["valid"] == 2
    assert rejected.status_code == 400
    assert status.body["total"] == 4
    assert status.body["invalid"] == 2
    assert status.body["success_rate"] == 50.0
    assert completed.status_code == 200
    assert completed.body["status"] == "success"
    assert again.status_code == 409


@pytest.mark.unit
@pytest.mark.parametrize(
    ("body", "status"),
    [
        ({"threshold": "high"}, 400),
        ({"threshold": True}, 400),
        ({"threshold": 150}, 400),
        ({"model_type": 3}, 400),
        ({"batch_id": ""}, 400),
        ({"model_type": "nope"}, 404),
    ],
)
def test_start_batch_rejects_bad_requests(
    gateway: ValidationGateway, body: dict[str, Any], status: int
) -> None:
    assert gateway.start_batch(body).status_code == status


@pytest.mark.unit
def test_start_batch_duplicate_id_conflicts(gateway: ValidationGateway) -> None:
    gateway.start_batch({"batch_id": "b-1"})

    response = gateway.start_batch({"batch_id": "b-1"})

    assert response.status_code == 409
    assert response.body["code"] == "duplicate_batch"


@pytest.mark.unit
def test_unknown_batch_is_not_found(
    gateway: ValidationGateway, incident_payload: dict[str, Any]
) -> None:
    assert gateway.batch_status("nope").status_code == 404
    assert gateway.complete_batch("nope").status_code == 404
    assert (
        gateway.validate("incident", incident_payload, batch_id="nope").status_code
        == 404
    )


@pytest.mark.unit
def test_array_payload_accumulates_into_batch(
    gateway: ValidationGateway, incident_payload: dict[str, Any]
) -> None:
    """Every record of an array counts toward the named batch."""
    # Arrange - open batch and an array with one invalid record
    batch_id = gateway.start_batch({"model_type": "incident"}).body["batch_id"]
    records = [incident_payload, incident_payload, {**incident_payload, "id": "x"}]

    # Act - send the array twice under the batch id
    first = gateway.validate("incident", records[:2], batch_id=batch_id)
    second = gateway.validate("incident", records, batch_id=batch_id)

    # Assert - accumulating bodies carry running counters
    assert first.status_code == 200
    assert first.body["status"] == "accumulating"
    assert first.body["is_valid"] is True
    assert first.body["total"] == 2
    assert second.body["is_valid"] is False
    assert second.body["records"] == 3
    assert len(second.body["results"]) == 1
    assert second.body["total"] == 5
    assert second.body["valid"] == 4
    assert second.body["invalid"] == 1


@pytest.mark.unit
def test_array_payload_with_unknown_batch_is_not_found(
    gateway: ValidationGateway, incident_payload: dict[str, Any]
) -> None:
    response = gateway.validate("incident", [incident_payload], batch_id="nope")

    assert response.status_code == 404
    assert response.body["code"] == "batch_not_found"


@pytest.mark.unit
def test_validate_can_complete_a_batch_with_its_verdict(
    gateway: ValidationGateway, incident_payload: dict[str, Any]
) -> None:
    """The final request of a batch returns the verdict: 200 or 422."""
    # Arrange - one lenient and one strict batch
    lenient = gateway.start_batch({"threshold": 50}).body["batch_id"]
    strict = gateway.start_batch({"threshold": 90}).body["batch_id"]
    invalid = {**incident_payload, "id": "x"}
    gateway.validate("incident", [incident_payload] * 6, batch_id=lenient)
    gateway.validate("incident", [invalid] * 4, batch_id=strict)

    # Act - last payload folds in, then completes each batch
    passed = gateway.validate(
        "incident", [invalid] * 4, batch_id=lenient, complete_batch_id=lenient
    )
    failed = gateway.validate(
        "incident", incident_payload, batch_id=strict, complete_batch_id=strict
    )

    # Assert - verdict bodies with mapped status codes
    assert passed.status_code == 200
    assert passed.body["status"] == "success"
    assert passed.body["total"] == 10
    assert passed.body["success_rate"] == 60.0
    assert failed.status_code == 422
    assert failed.body["status"] == "failed"
    assert failed.body["valid"] == 1
    assert failed.body["invalid"] == 4
    assert gateway.batch_status(strict).body["status"] == "failed"
    assert gateway.complete_batch(strict).status_code == 409


@pytest.mark.unit
def test_completing_unknown_batch_on_validate_is_not_found(
    gateway: ValidationGateway, incident_payload: dict[str, Any]
) -> None:
    response = gateway.validate("incident", incident_payload, complete_batch_id="nope")

    assert response.status_code == 404
    assert response.body["code"] == "batch_not_found"


@pytest.mark.unit
def test_built_gateway_drops_completed_batches_after_grace_period(
    incident_payload: dict[str, Any],
) -> None:
    """A started gateway removes completed batches in the background."""
    # Arrange - composition-root gateway with a short grace period
    settings = GatewaySettings(batch=BatchSettings(grace_period_seconds=0.05))
    with build_gateway(settings) as gateway:
        for _ in range(3):
            batch_id = gateway.start_batch({}).body["batch_id"]
            gateway.validate("incident", incident_payload, batch_id=batch_id)
            gateway.complete_batch(batch_id)

        # Act - wait for the scheduled expiry jobs
        deadline = time.monotonic() + 5
        while len(gateway.batches) and time.monotonic() < deadline:
            time.sleep(0.02)

        # Assert - the session map is empty
        assert len(gateway.batches) == 0

@pytest.mark.unit
def test_list_models_reports_registered_types(gateway: ValidationGateway) -> None:
    response = gateway.list_models()

    assert response.body["count"] == 2
    assert set(response.body["models"]) == {"incident", "generic"}
