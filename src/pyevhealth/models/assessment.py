"""Health assessment produced by the primary scoring engine."""

from __future__ import annotations

from pydantic import Field

from pyevhealth.models._base import EvBaseModel, EvEnum
from pyevhealth.models.snapshot import VehicleModel


class HealthGrade(EvEnum):
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"


class MarketImpact(EvBaseModel):
    """Resale-oriented interpretation of the health score."""

    value_impact_pct: int = Field(default=0, ge=0, le=20)
    """Estimated reduction of market value, percent."""
    warranty_status: str = ""
    expected_life_remaining: str = ""


class HealthAssessment(EvBaseModel):
    """Composite battery health assessment for one snapshot."""

    overall_score: int = Field(ge=0, le=100)
    grade: HealthGrade
    capacity_degradation_pct: float = Field(ge=0, le=25)
    range_degradation_pct: float = Field(ge=0, le=30)
    estimated_cycles: int = Field(ge=0)
    strengths: tuple[str, ...] = ()
    concerns: tuple[str, ...] = ()
    recommendations: tuple[str, ...] = ()
    market_impact: MarketImpact = Field(default_factory=MarketImpact)

    vehicle_model: VehicleModel = VehicleModel.MODEL_3
    baseline_range_km: float = 0.0
    """Full range the degradation is measured against."""
    battery_level: float = 0.0
    current_range_km: float = 0.0
    odometer_km: float = 0.0
    nominal_capacity_kwh: float = 0.0
    usable_capacity_kwh: float = 0.0
    """Nominal capacity reduced by the capacity degradation."""
    calculation_method: str = ""
