"""Charging history consumed by the charge-history algorithm."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field, field_validator

from pyevhealth.ingestion.normalize import non_negative, safe_float
from pyevhealth.models._base import EvBaseModel, EvEnum


class Confidence(EvEnum):
    """How much charge history backs a secondary assessment."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class ChargeRecord(EvBaseModel):
    """End-of-charge reading."""

    rated_range_km: float = 0.0
    usable_battery_level: float = 0.0
    battery_level: float = 0.0
    energy_added_kwh: float = 0.0
    ended_at: datetime
    session_id: str | None = None

    @field_validator("rated_range_km", "usable_battery_level", "battery_level", "energy_added_kwh", mode="before")
    @classmethod
    def _coerce_non_negative(cls, value: Any) -> float:
        return non_negative(value)


class ChargingSession(EvBaseModel):
    """One charging process from plug-in to plug-out."""

    energy_added_kwh: float = 0.0
    start_rated_range_km: float = 0.0
    end_rated_range_km: float = 0.0
    duration_min: float = 0.0
    start_battery_level: float = 0.0
    end_battery_level: float = 0.0
    ended_at: datetime

    @field_validator(
        "energy_added_kwh",
        "start_rated_range_km",
        "end_rated_range_km",
        "duration_min",
        "start_battery_level",
        "end_battery_level",
        mode="before",
    )
    @classmethod
    def _coerce_non_negative(cls, value: Any) -> float:
        return non_negative(value)

    @property
    def range_added_km(self) -> float:
        return self.end_rated_range_km - self.start_rated_range_km


class RangeRecord(EvBaseModel):
    """Point-in-time range reading."""

    battery_level: float = 0.0
    usable_battery_level: float | None = None
    """``None`` when the reading carried no usable level."""
    rated_range_km: float = 0.0
    ideal_range_km: float = 0.0
    recorded_at: datetime

    @field_validator("battery_level", "rated_range_km", "ideal_range_km", mode="before")
    @classmethod
    def _coerce_non_negative(cls, value: Any) -> float:
        return non_negative(value)

    @field_validator("usable_battery_level", mode="before")
    @classmethod
    def _coerce_optional(cls, value: Any) -> float | None:
        parsed = safe_float(value)
        if parsed is None:
            return None
        return max(0.0, parsed)


class ChargeHistory(EvBaseModel):
    """Input of the charge-history algorithm."""

    charges: tuple[ChargeRecord, ...] = ()
    sessions: tuple[ChargingSession, ...] = ()
    ranges: tuple[RangeRecord, ...] = ()
    custom_capacity_kwh: float | None = None
    """Known new-pack capacity; replaces the derived maximum capacity."""
    custom_max_range_km: float | None = None
    synthetic: bool = False
    """True when the history was extrapolated rather than recorded."""

    @property
    def total_data_points(self) -> int:
        return len(self.charges) + len(self.sessions) + len(self.ranges)


class SecondaryAssessment(EvBaseModel):
    """Result of the charge-history algorithm."""

    health_percent: float = Field(ge=0, le=100)
    capacity_degradation_pct: float = Field(ge=0, le=100)
    range_degradation_pct: float = Field(ge=0, le=100)
    current_capacity_kwh: float = 0.0
    max_capacity_kwh: float = 0.0
    projected_range_km: float = 0.0
    max_range_km: float = 0.0
    charge_cycles: int = 0
    efficiency_kwh_per_km: float = 0.0
    valid_charges: int = 0
    valid_sessions: int = 0
    confidence: Confidence = Confidence.LOW
    calculation_method: str = "Charge history aggregation"
