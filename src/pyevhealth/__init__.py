"""pyevhealth - Async battery health assessment for remotely connected EVs."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyevhealth")
except PackageNotFoundError:
    __version__ = "0+local"
from pyevhealth.assessment import BatteryHealthService
from pyevhealth.client import FleetClient, TelemetryClient
from pyevhealth.comparison import ComparisonEngine
from pyevhealth.config import HealthConfig
from pyevhealth.exceptions import (
    AuthenticationError,
    ConfigError,
    DeviceNotFoundError,
    DeviceUnavailableError,
    EvHealthError,
    TransientError,
    WakeCancelledError,
    WakeTimeoutError,
)
from pyevhealth.ingestion.validator import TelemetryValidator, validate_snapshot
from pyevhealth.models import (
    ChargeHistory,
    ComparisonResult,
    Confidence,
    DeviceState,
    DeviceStatus,
    HealthAssessment,
    HealthGrade,
    HealthReport,
    SecondaryAssessment,
    ValidatedSnapshot,
    VehicleModel,
    WakeLikelihood,
    WakeOutcome,
    WakeResult,
)
from pyevhealth.probe import DeviceStateProbe
from pyevhealth.scoring import ChargeHistoryAlgorithm, HealthScoringEngine, synthesize_history
from pyevhealth.tracing import TraceEvent
from pyevhealth.wake import WakeOrchestrator

__all__ = [
    "__version__",
    "AuthenticationError",
    "BatteryHealthService",
    "ChargeHistory",
    "ChargeHistoryAlgorithm",
    "ComparisonEngine",
    "ComparisonResult",
    "Confidence",
    "ConfigError",
    "DeviceNotFoundError",
    "DeviceState",
    "DeviceStateProbe",
    "DeviceStatus",
    "DeviceUnavailableError",
    "EvHealthError",
    "FleetClient",
    "HealthAssessment",
    "HealthConfig",
    "HealthGrade",
    "HealthReport",
    "HealthScoringEngine",
    "SecondaryAssessment",
    "TelemetryClient",
    "TelemetryValidator",
    "TraceEvent",
    "TransientError",
    "ValidatedSnapshot",
    "VehicleModel",
    "WakeCancelledError",
    "WakeLikelihood",
    "WakeOrchestrator",
    "WakeOutcome",
    "WakeResult",
    "WakeTimeoutError",
    "synthesize_history",
    "validate_snapshot",
]
