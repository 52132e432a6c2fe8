"""Health report returned by :class:`pyevhealth.assessment.BatteryHealthService`."""

from __future__ import annotations

from pydantic import Field

from pyevhealth.models._base import EvBaseModel
from pyevhealth.models.assessment import HealthAssessment
from pyevhealth.models.device import DeviceStatus
from pyevhealth.models.wake import WakeLikelihood


class OfflineGuidance(EvBaseModel):
    """What the user can do when the vehicle could not be reached."""

    can_retry: bool
    wake_likelihood: WakeLikelihood
    next_steps: tuple[str, ...] = ()
    estimated_wake_time: str = "Unknown"


class EstimatedData(EvBaseModel):
    """Rough figures derived from the last known device status."""

    battery_level: float
    estimated_range_km: float
    last_known_status: str
    data_quality: str = "estimated"
    disclaimer: str = "This data is estimated. Connect to vehicle for accurate readings."


class HealthReport(EvBaseModel):
    """Either a live assessment or an offline explanation with guidance."""

    device_id: str
    status: DeviceStatus
    status_message: str
    data_freshness: str
    """``"real-time"`` for live assessments, ``"unavailable"`` otherwise."""
    assessment: HealthAssessment | None = None
    estimated: EstimatedData | None = None
    guidance: OfflineGuidance | None = None
    error: str | None = None
    woke_device: bool = False
    last_seen_text: str | None = Field(default=None, description="Relative last-seen text, e.g. '3 hours ago'.")

    @property
    def is_offline(self) -> bool:
        return self.assessment is None
