"""Battery health scoring algorithms."""

from pyevhealth.scoring.charge_history import ChargeHistoryAlgorithm, confidence_for
from pyevhealth.scoring.primary import HealthScoringEngine, score_snapshot
from pyevhealth.scoring.synthetic import BASELINE_SNAPSHOT, baseline_snapshot, synthesize_history

__all__ = [
    "BASELINE_SNAPSHOT",
    "ChargeHistoryAlgorithm",
    "HealthScoringEngine",
    "baseline_snapshot",
    "confidence_for",
    "score_snapshot",
    "synthesize_history",
]
