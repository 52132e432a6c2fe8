"""Primary health scoring from a single validated snapshot.

The score starts at 100 and subtracts penalties for range loss, capacity
loss, mileage and charge cycles; a healthy usable/displayed ratio earns a
small bonus. All intermediate values are clamped so any snapshot, however
degenerate, yields a well-formed :class:`HealthAssessment`.
"""

from __future__ import annotations

import logging

from pyevhealth._constants import (
    DEFAULT_MODEL,
    EPA_RANGE_KM,
    EXPECTED_USABLE_RATIO,
    KM_PER_CYCLE,
    NOMINAL_CAPACITY_KWH,
    WARRANTY_GRACE_KM,
    WARRANTY_KM,
)
from pyevhealth.models.assessment import HealthAssessment, HealthGrade, MarketImpact
from pyevhealth.models.snapshot import ValidatedSnapshot
from pyevhealth.tracing import TraceObserver, emit

_logger = logging.getLogger(__name__)

MAX_RANGE_DEGRADATION = 30.0
MAX_RATIO_CAPACITY_DEGRADATION = 25.0
MAX_FALLBACK_CAPACITY_DEGRADATION = 20.0
MAX_VALUE_IMPACT = 20


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def baseline_range(snapshot: ValidatedSnapshot) -> float:
    """The vehicle's own ideal range, else the EPA figure of its model."""
    if snapshot.ideal_range_km > 0:
        return snapshot.ideal_range_km
    return EPA_RANGE_KM.get(snapshot.vehicle_model, EPA_RANGE_KM[DEFAULT_MODEL])


def range_degradation(snapshot: ValidatedSnapshot) -> float:
    baseline = baseline_range(snapshot)
    current = snapshot.current_range_km
    if baseline <= 0 or current <= 0:
        return 0.0
    return _clamp((baseline - current) / baseline * 100, 0.0, MAX_RANGE_DEGRADATION)


def capacity_degradation(snapshot: ValidatedSnapshot, range_loss: float) -> float:
    """Capacity loss estimated from the usable ratio, backed by range loss.

    The usable/displayed ratio only applies inside ``(0.85, 1.0]``; a ratio
    close to the expected 0.95 says little, so the range-derived estimate
    is used whenever it is larger.
    """
    fallback = _clamp(range_loss * 0.8, 0.0, MAX_FALLBACK_CAPACITY_DEGRADATION)
    ratio = snapshot.usable_ratio
    if 0.85 < ratio <= 1.0:
        from_ratio = _clamp(
            (EXPECTED_USABLE_RATIO - ratio) / EXPECTED_USABLE_RATIO * 100, 0.0, MAX_RATIO_CAPACITY_DEGRADATION
        )
        return max(from_ratio, fallback)
    return fallback


def mileage_penalty(odometer_km: float) -> float:
    if odometer_km < 100_000:
        return 0.0
    if odometer_km < 150_000:
        return 5.0
    if odometer_km < 200_000:
        return 10.0
    return 15.0


def cycle_penalty(cycles: int) -> float:
    if cycles < 1000:
        return 0.0
    if cycles < 1500:
        return 5.0
    return 10.0


def grade_for(score: int) -> HealthGrade:
    if score >= 90:
        return HealthGrade.EXCELLENT
    if score >= 75:
        return HealthGrade.GOOD
    if score >= 60:
        return HealthGrade.FAIR
    return HealthGrade.POOR


def _strengths(range_loss: float, capacity_loss: float, odometer_km: float, cycles: int) -> tuple[str, ...]:
    items: list[str] = []
    if range_loss < 5:
        items.append("Excellent range retention")
    elif range_loss < 10:
        items.append("Good range retention")
    if capacity_loss < 5:
        items.append("Excellent battery capacity")
    elif capacity_loss < 10:
        items.append("Good battery capacity retention")
    if odometer_km < 50_000:
        items.append("Low mileage vehicle")
    elif odometer_km < 100_000:
        items.append("Moderate mileage")
    if cycles < 200:
        items.append("Very limited charging cycles")
    elif cycles < 500:
        items.append("Limited charging cycles")
    return tuple(items)


def _concerns(range_loss: float, capacity_loss: float, odometer_km: float, cycles: int) -> tuple[str, ...]:
    items: list[str] = []
    if range_loss > 15:
        items.append("Notable range degradation detected")
    if capacity_loss > 12:
        items.append("Battery capacity loss above average")
    if odometer_km > 150_000:
        items.append("High mileage may impact battery life")
    if cycles > 1000:
        items.append("High number of charging cycles")
    return tuple(items)


def _recommendations(score: int, range_loss: float) -> tuple[str, ...]:
    items: list[str] = []
    if score < 75:
        items.append("Consider independent battery inspection")
    if range_loss > 10:
        items.append("Factor battery condition into pricing")
    items.append("Verify remaining warranty coverage")
    if score >= 80:
        items.append("Battery shows good health for age/mileage")
    return tuple(items)


def market_impact(score: int, odometer_km: float, cycles: int) -> MarketImpact:
    impact = 0
    if score < 60:
        impact += 12
    elif score < 75:
        impact += 6
    elif score < 85:
        impact += 2
    if odometer_km > 200_000:
        impact += 8
    elif odometer_km > 150_000:
        impact += 4
    elif odometer_km > 100_000:
        impact += 2

    if odometer_km < WARRANTY_KM:
        warranty = "Likely under warranty"
    elif odometer_km < WARRANTY_GRACE_KM:
        warranty = "May be under warranty"
    else:
        warranty = "Likely out of warranty"

    if score > 85 and cycles < 500:
        life = "8+ years expected"
    elif score > 75 and cycles < 800:
        life = "6-8 years expected"
    elif score > 65 and cycles < 1200:
        life = "4-6 years expected"
    else:
        life = "2-4 years expected"

    return MarketImpact(
        value_impact_pct=min(MAX_VALUE_IMPACT, impact),
        warranty_status=warranty,
        expected_life_remaining=life,
    )


class HealthScoringEngine:
    """Score a :class:`ValidatedSnapshot`; pure apart from optional tracing."""

    def __init__(self, *, observer: TraceObserver | None = None) -> None:
        self._observer = observer

    def score(self, snapshot: ValidatedSnapshot) -> HealthAssessment:
        baseline = baseline_range(snapshot)
        range_loss = range_degradation(snapshot)
        capacity_loss = capacity_degradation(snapshot, range_loss)
        cycles = round(snapshot.odometer_km / KM_PER_CYCLE)

        raw_score = 100.0
        raw_score -= min(25.0, range_loss)
        raw_score -= min(20.0, capacity_loss * 1.5)
        raw_score -= mileage_penalty(snapshot.odometer_km)
        raw_score -= cycle_penalty(cycles)
        if snapshot.usable_ratio > EXPECTED_USABLE_RATIO:
            raw_score += 5.0
        overall = round(_clamp(raw_score, 0.0, 100.0))
        grade = grade_for(overall)

        nominal = NOMINAL_CAPACITY_KWH.get(snapshot.vehicle_model, NOMINAL_CAPACITY_KWH[DEFAULT_MODEL])
        assessment = HealthAssessment(
            overall_score=overall,
            grade=grade,
            capacity_degradation_pct=round(capacity_loss, 1),
            range_degradation_pct=round(range_loss, 1),
            estimated_cycles=cycles,
            strengths=_strengths(range_loss, capacity_loss, snapshot.odometer_km, cycles),
            concerns=_concerns(range_loss, capacity_loss, snapshot.odometer_km, cycles),
            recommendations=_recommendations(overall, range_loss),
            market_impact=market_impact(overall, snapshot.odometer_km, cycles),
            vehicle_model=snapshot.vehicle_model,
            baseline_range_km=baseline,
            battery_level=snapshot.battery_level,
            current_range_km=snapshot.current_range_km,
            odometer_km=snapshot.odometer_km,
            nominal_capacity_kwh=nominal,
            usable_capacity_kwh=round(nominal * (1 - capacity_loss / 100), 1),
            calculation_method="Range and usable-capacity analysis",
        )
        _logger.debug(
            "Scored snapshot: score=%d grade=%s range=%.2f capacity=%.2f cycles=%d",
            overall,
            grade,
            range_loss,
            capacity_loss,
            cycles,
        )
        emit(
            self._observer,
            "scoring.primary",
            score=overall,
            grade=str(grade),
            range_degradation=range_loss,
            capacity_degradation=capacity_loss,
        )
        return assessment


def score_snapshot(snapshot: ValidatedSnapshot) -> HealthAssessment:
    """Score *snapshot* with a default :class:`HealthScoringEngine`."""
    return HealthScoringEngine().score(snapshot)
