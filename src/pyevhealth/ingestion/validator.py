"""Total validation of raw vehicle snapshots.

:meth:`TelemetryValidator.validate` never raises: missing or malformed
numeric fields become ``0.0``, the charging state defaults to
``Unknown`` and the vehicle model falls back to Model 3. Scoring code
therefore only ever branches on values, never on "missing data".
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from pyevhealth._constants import DEFAULT_MODEL
from pyevhealth.ingestion.normalize import compact_identifier, first_positive, non_negative, parse_timestamp
from pyevhealth.models.snapshot import ChargingState, RawSnapshot, ValidatedSnapshot, VehicleModel

_logger = logging.getLogger(__name__)

# Substrings of ``vehicle_config.car_type`` (after compaction) per model.
# Order matters: the first match wins.
_MODEL_MARKERS: tuple[tuple[str, VehicleModel], ...] = (
    ("model3", VehicleModel.MODEL_3),
    ("models", VehicleModel.MODEL_S),
    ("lychee", VehicleModel.MODEL_S),
    ("modelx", VehicleModel.MODEL_X),
    ("tamarind", VehicleModel.MODEL_X),
    ("modely", VehicleModel.MODEL_Y),
)


def detect_vehicle_model(*identifiers: Any) -> VehicleModel:
    """Infer the model from the first identifier containing a known marker."""
    for identifier in identifiers:
        compact = compact_identifier(identifier)
        if not compact:
            continue
        for marker, model in _MODEL_MARKERS:
            if marker in compact:
                return model
    return DEFAULT_MODEL


def _pick(flat: Any, nested: Any) -> float:
    """Prefer an explicit flat value over the nested payload value."""
    if flat is not None:
        return non_negative(flat)
    return non_negative(nested)


class TelemetryValidator:
    """Normalize raw snapshots into :class:`ValidatedSnapshot` records."""

    def __init__(self, *, clock: Any = None) -> None:
        self._clock = clock or (lambda: datetime.now(UTC))

    def validate(self, raw: Any) -> ValidatedSnapshot:
        """Return a typed snapshot for *raw*.

        *raw* may be a Fleet API ``vehicle_data`` mapping, a
        :class:`RawSnapshot`, an already validated snapshot (or its
        ``model_dump()``), or anything else; unusable input produces an
        all-zero snapshot.
        """
        if isinstance(raw, ValidatedSnapshot):
            raw = raw.model_dump()
        snapshot = RawSnapshot.from_payload(raw)
        charge = snapshot.charge_state
        vehicle = snapshot.vehicle_state

        if snapshot.current_range_km is not None:
            current_range = non_negative(snapshot.current_range_km)
        else:
            current_range = first_positive(charge.est_battery_range, charge.battery_range)

        charging_state = snapshot.charging_state if snapshot.charging_state is not None else charge.charging_state

        captured_at = (
            parse_timestamp(snapshot.captured_at)
            or parse_timestamp(charge.timestamp)
            or parse_timestamp(vehicle.timestamp)
            or self._clock()
        )

        validated = ValidatedSnapshot(
            battery_level=_pick(snapshot.battery_level, charge.battery_level),
            usable_battery_level=_pick(snapshot.usable_battery_level, charge.usable_battery_level),
            current_range_km=current_range,
            ideal_range_km=_pick(snapshot.ideal_range_km, charge.ideal_battery_range),
            rated_range_km=_pick(snapshot.rated_range_km, charge.battery_range),
            odometer_km=_pick(snapshot.odometer_km, vehicle.odometer),
            charging_state=ChargingState.coerce(charging_state),
            charge_rate_kw=_pick(snapshot.charge_rate_kw, charge.charge_rate),
            charge_energy_added_kwh=_pick(snapshot.charge_energy_added_kwh, charge.charge_energy_added),
            charge_range_added_km=_pick(snapshot.charge_range_added_km, charge.charge_miles_added_rated),
            vehicle_model=detect_vehicle_model(
                snapshot.vehicle_model,
                snapshot.vehicle_config.car_type,
                snapshot.vehicle_config.trim_badging,
            ),
            captured_at=captured_at,
        )
        _logger.debug(
            "Validated snapshot: model=%s level=%.0f usable=%.0f range=%.1f ideal=%.1f odometer=%.0f",
            validated.vehicle_model,
            validated.battery_level,
            validated.usable_battery_level,
            validated.current_range_km,
            validated.ideal_range_km,
            validated.odometer_km,
        )
        return validated


_DEFAULT_VALIDATOR = TelemetryValidator()


def validate_snapshot(raw: Any) -> ValidatedSnapshot:
    """Module-level shortcut for :meth:`TelemetryValidator.validate`."""
    return _DEFAULT_VALIDATOR.validate(raw)
