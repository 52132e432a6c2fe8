from __future__ import annotations

import math
from datetime import UTC, datetime
from typing import Any

import pytest

from pyevhealth.ingestion.validator import TelemetryValidator, detect_vehicle_model, validate_snapshot
from pyevhealth.models.snapshot import ChargingState, RawSnapshot, ValidatedSnapshot, VehicleModel

_NUMERIC_FIELDS = (
    "battery_level",
    "usable_battery_level",
    "current_range_km",
    "ideal_range_km",
    "rated_range_km",
    "odometer_km",
    "charge_rate_kw",
    "charge_energy_added_kwh",
    "charge_range_added_km",
)

FIXED_NOW = datetime(2024, 1, 1, tzinfo=UTC)


def _assert_numeric_fields_sane(snapshot: ValidatedSnapshot) -> None:
    for name in _NUMERIC_FIELDS:
        value = getattr(snapshot, name)
        assert math.isfinite(value), name
        assert value >= 0, name


def test_fleet_payload_is_mapped(vehicle_data: dict[str, Any]) -> None:
    snapshot = validate_snapshot(vehicle_data)

    assert snapshot.battery_level == 78
    assert snapshot.usable_battery_level == 74
    assert snapshot.current_range_km == 402
    assert snapshot.ideal_range_km == 460
    assert snapshot.rated_range_km == 402
    assert snapshot.odometer_km == 32750
    assert snapshot.charging_state is ChargingState.DISCONNECTED
    assert snapshot.vehicle_model is VehicleModel.MODEL_3
    assert snapshot.captured_at == datetime.fromtimestamp(1_700_000_000, tz=UTC)


def test_response_envelope_is_unwrapped(vehicle_data: dict[str, Any]) -> None:
    assert validate_snapshot({"response": vehicle_data}) == validate_snapshot(vehicle_data)


def test_current_range_falls_back_to_battery_range() -> None:
    snapshot = validate_snapshot({"charge_state": {"est_battery_range": 0, "battery_range": 350}})

    assert snapshot.current_range_km == 350


@pytest.mark.parametrize(
    "raw",
    [
        None,
        {},
        [],
        "not a payload",
        42,
        {"charge_state": None, "vehicle_state": "broken", "vehicle_config": 3},
        {
            "charge_state": {
                "battery_level": "NaN",
                "usable_battery_level": float("inf"),
                "est_battery_range": -50,
                "ideal_battery_range": "--",
                "charging_state": 17,
                "charge_energy_added": True,
            },
            "vehicle_state": {"odometer": float("-inf")},
        },
        {"battery_level": 1e308 * 10, "odometer_km": "lots"},
        {"battery_level": 10**400},
        {"charge_state": {"battery_level": 10**400}, "vehicle_state": {"odometer": 10**400}},
    ],
)
def test_validate_is_total(raw: Any) -> None:
    snapshot = TelemetryValidator(clock=lambda: FIXED_NOW).validate(raw)

    _assert_numeric_fields_sane(snapshot)
    assert isinstance(snapshot.charging_state, ChargingState)
    assert snapshot.vehicle_model is VehicleModel.MODEL_3


def test_empty_payload_defaults() -> None:
    snapshot = TelemetryValidator(clock=lambda: FIXED_NOW).validate({})

    assert snapshot.battery_level == 0
    assert snapshot.charging_state is ChargingState.UNKNOWN
    assert snapshot.captured_at == FIXED_NOW


def test_revalidation_is_idempotent(vehicle_data: dict[str, Any]) -> None:
    validator = TelemetryValidator()
    first = validator.validate(vehicle_data)

    assert validator.validate(first) == first
    assert validator.validate(first.model_dump()) == first
    assert validator.validate(RawSnapshot.from_payload(first.model_dump())) == first


def test_revalidation_preserves_non_default_model() -> None:
    first = validate_snapshot({"vehicle_config": {"car_type": "modely"}, "charge_state": {"battery_level": 50}})

    assert first.vehicle_model is VehicleModel.MODEL_Y
    assert validate_snapshot(first) == first


@pytest.mark.parametrize(
    ("identifiers", "expected"),
    [
        (("model3",), VehicleModel.MODEL_3),
        (("models2",), VehicleModel.MODEL_S),
        (("lychee",), VehicleModel.MODEL_S),
        (("Model X",), VehicleModel.MODEL_X),
        (("modely",), VehicleModel.MODEL_Y),
        ((None, "tamarind"), VehicleModel.MODEL_X),
        (("roadster",), VehicleModel.MODEL_3),
        ((), VehicleModel.MODEL_3),
    ],
)
def test_detect_vehicle_model(identifiers: tuple[Any, ...], expected: VehicleModel) -> None:
    assert detect_vehicle_model(*identifiers) is expected


def test_charging_state_lookup_is_lenient() -> None:
    assert ChargingState("charging") is ChargingState.CHARGING
    assert ChargingState("no_power") is ChargingState.NO_POWER
    assert ChargingState("Supercharging?") is ChargingState.UNKNOWN
