"""Algorithm comparison result."""

from __future__ import annotations

from pydantic import Field

from pyevhealth.models._base import EvBaseModel
from pyevhealth.models.assessment import HealthAssessment
from pyevhealth.models.history import Confidence, SecondaryAssessment
from pyevhealth.models.wake import WakeLikelihood, WakeOutcome


class MetricDifference(EvBaseModel):
    """Signed divergence of one metric between the two algorithms."""

    primary: float
    secondary: float
    delta: float
    """``secondary - primary``."""
    pct_change: float
    """``delta / primary * 100``; ``0`` when the primary value is ``0``."""

    @classmethod
    def between(cls, primary: float, secondary: float) -> MetricDifference:
        delta = secondary - primary
        pct_change = (delta / primary) * 100 if primary else 0.0
        return cls(primary=primary, secondary=secondary, delta=delta, pct_change=pct_change)


class DataQuality(EvBaseModel):
    confidence: Confidence = Confidence.LOW
    is_synthetic: bool = False
    """The whole result was built from representative constants."""
    history_synthesized: bool = False
    """The charge history was extrapolated from a single snapshot."""
    valid_charges: int = 0
    valid_sessions: int = 0
    total_data_points: int = 0
    note: str = ""


class ComparisonResult(EvBaseModel):
    """Both assessments of one vehicle and how far they diverge."""

    device_id: str
    primary: HealthAssessment
    secondary: SecondaryAssessment
    differences: dict[str, MetricDifference] = Field(default_factory=dict)
    data_quality: DataQuality = Field(default_factory=DataQuality)
    wake_outcome: WakeOutcome
    wake_likelihood: WakeLikelihood = WakeLikelihood.NONE
    status_message: str = ""
    reason: str | None = None
    """Why live data was unavailable, for synthetic results."""

    @property
    def algorithms_agree(self) -> bool:
        """Whether the health scores differ by less than five points."""
        diff = self.differences.get("health_score")
        return diff is not None and abs(diff.delta) < 5
