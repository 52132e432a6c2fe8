"""Typed value objects for pyevhealth."""

from pyevhealth.models._base import EvBaseModel, EvEnum
from pyevhealth.models.assessment import HealthAssessment, HealthGrade, MarketImpact
from pyevhealth.models.comparison import ComparisonResult, DataQuality, MetricDifference
from pyevhealth.models.device import DeviceListEntry, DeviceState, DeviceStatus
from pyevhealth.models.history import (
    ChargeHistory,
    ChargeRecord,
    ChargingSession,
    Confidence,
    RangeRecord,
    SecondaryAssessment,
)
from pyevhealth.models.report import EstimatedData, HealthReport, OfflineGuidance
from pyevhealth.models.snapshot import (
    ChargingState,
    RawChargeState,
    RawSnapshot,
    RawVehicleConfig,
    RawVehicleState,
    ValidatedSnapshot,
    VehicleModel,
)
from pyevhealth.models.wake import WakeAttempt, WakeLikelihood, WakeOutcome, WakeResult

__all__ = [
    "ChargeHistory",
    "ChargeRecord",
    "ChargingSession",
    "ChargingState",
    "ComparisonResult",
    "Confidence",
    "DataQuality",
    "DeviceListEntry",
    "DeviceState",
    "DeviceStatus",
    "EstimatedData",
    "EvBaseModel",
    "EvEnum",
    "HealthAssessment",
    "HealthGrade",
    "HealthReport",
    "MarketImpact",
    "MetricDifference",
    "OfflineGuidance",
    "RangeRecord",
    "RawChargeState",
    "RawSnapshot",
    "RawVehicleConfig",
    "RawVehicleState",
    "SecondaryAssessment",
    "ValidatedSnapshot",
    "VehicleModel",
    "WakeAttempt",
    "WakeLikelihood",
    "WakeOutcome",
    "WakeResult",
]
