"""Telemetry snapshot models.

:class:`RawSnapshot` is an explicit optional-field view of whatever the
vehicle data endpoint returned; every field may be missing or malformed.
:class:`ValidatedSnapshot` is the typed, defaulted record produced by
:class:`pyevhealth.ingestion.validator.TelemetryValidator` and consumed by
the scoring engines.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from pydantic import ConfigDict, Field, ValidationError, field_validator, model_validator

from pyevhealth.ingestion.normalize import as_mapping, non_negative, parse_timestamp
from pyevhealth.models._base import EvBaseModel, EvEnum

_logger = logging.getLogger(__name__)


class VehicleModel(EvEnum):
    """Supported vehicle models. The first member is the fallback."""

    MODEL_3 = "Model 3"
    MODEL_S = "Model S"
    MODEL_X = "Model X"
    MODEL_Y = "Model Y"


class ChargingState(EvEnum):
    """Charging state as reported in ``charge_state.charging_state``."""

    UNKNOWN = "Unknown"
    CHARGING = "Charging"
    COMPLETE = "Complete"
    DISCONNECTED = "Disconnected"
    STOPPED = "Stopped"
    STARTING = "Starting"
    NO_POWER = "NoPower"


# ------------------------------------------------------------------
# Raw payload
# ------------------------------------------------------------------


class _RawSection(EvBaseModel):
    """A raw payload section; unknown keys are kept for debugging."""

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)


class RawChargeState(_RawSection):
    battery_level: Any = None
    usable_battery_level: Any = None
    est_battery_range: Any = None
    battery_range: Any = None
    ideal_battery_range: Any = None
    charging_state: Any = None
    charge_rate: Any = None
    charge_energy_added: Any = None
    charge_miles_added_rated: Any = None
    timestamp: Any = None


class RawVehicleState(_RawSection):
    odometer: Any = None
    timestamp: Any = None


class RawVehicleConfig(_RawSection):
    car_type: Any = None
    trim_badging: Any = None


class RawSnapshot(EvBaseModel):
    """Everything the API returned for one device at one instant.

    Nested sections follow the Fleet API ``vehicle_data`` shape. The flat
    fields carry the names of :class:`ValidatedSnapshot` so a validated
    snapshot can be fed back as raw input; when present they take
    precedence over the nested sections.
    """

    vin: Any = None
    display_name: Any = None
    charge_state: RawChargeState = Field(default_factory=RawChargeState)
    vehicle_state: RawVehicleState = Field(default_factory=RawVehicleState)
    vehicle_config: RawVehicleConfig = Field(default_factory=RawVehicleConfig)

    battery_level: Any = None
    usable_battery_level: Any = None
    current_range_km: Any = None
    ideal_range_km: Any = None
    rated_range_km: Any = None
    odometer_km: Any = None
    charging_state: Any = None
    charge_rate_kw: Any = None
    charge_energy_added_kwh: Any = None
    charge_range_added_km: Any = None
    vehicle_model: Any = None
    captured_at: Any = None

    @model_validator(mode="before")
    @classmethod
    def _coerce_sections(cls, values: Any) -> Any:
        """Unwrap the ``response`` envelope and drop non-mapping sections."""
        data = as_mapping(values)
        inner = data.get("response")
        if isinstance(inner, dict) and "charge_state" not in data:
            data = inner
        cleaned = dict(data)
        for section in ("charge_state", "vehicle_state", "vehicle_config"):
            cleaned[section] = as_mapping(data.get(section))
        return cleaned

    @classmethod
    def from_payload(cls, payload: Any) -> RawSnapshot:
        """Build a raw snapshot from any payload, never raising."""
        if isinstance(payload, RawSnapshot):
            return payload
        try:
            return cls.model_validate(as_mapping(payload))
        except ValidationError:
            _logger.debug("Unparseable snapshot payload, using empty snapshot", exc_info=True)
            return cls()


# ------------------------------------------------------------------
# Validated snapshot
# ------------------------------------------------------------------


class ValidatedSnapshot(EvBaseModel):
    """Typed, numeric, defaulted telemetry record.

    Every numeric field is a finite, non-negative number; invalid inputs
    become ``0.0``.
    """

    battery_level: float = 0.0
    """Displayed state of charge, percent."""
    usable_battery_level: float = 0.0
    """Usable state of charge, percent."""
    current_range_km: float = 0.0
    """Estimated range at the current state of charge."""
    ideal_range_km: float = 0.0
    """Vehicle's own ideal range figure, used as the degradation baseline."""
    rated_range_km: float = 0.0
    odometer_km: float = 0.0
    charging_state: ChargingState = ChargingState.UNKNOWN
    charge_rate_kw: float = 0.0
    charge_energy_added_kwh: float = 0.0
    """Energy added during the current/last charging session."""
    charge_range_added_km: float = 0.0
    """Rated range added during the current/last charging session."""
    vehicle_model: VehicleModel = VehicleModel.MODEL_3
    captured_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator(
        "battery_level",
        "usable_battery_level",
        "current_range_km",
        "ideal_range_km",
        "rated_range_km",
        "odometer_km",
        "charge_rate_kw",
        "charge_energy_added_kwh",
        "charge_range_added_km",
        mode="before",
    )
    @classmethod
    def _coerce_non_negative(cls, value: Any) -> float:
        return non_negative(value)

    @field_validator("charging_state", mode="before")
    @classmethod
    def _coerce_charging_state(cls, value: Any) -> ChargingState:
        return ChargingState.coerce(value)

    @field_validator("vehicle_model", mode="before")
    @classmethod
    def _coerce_vehicle_model(cls, value: Any) -> VehicleModel:
        return VehicleModel.coerce(value)

    @field_validator("captured_at", mode="before")
    @classmethod
    def _coerce_captured_at(cls, value: Any) -> datetime:
        return parse_timestamp(value) or datetime.now(UTC)

    @property
    def usable_ratio(self) -> float:
        """``usable_battery_level / battery_level``, or ``0.0`` when undefined."""
        if self.battery_level <= 0 or self.usable_battery_level <= 0:
            return 0.0
        return self.usable_battery_level / self.battery_level
