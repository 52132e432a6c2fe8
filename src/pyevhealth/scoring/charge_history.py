"""Secondary health algorithm based on charging history.

Capacity is estimated per charge as the energy needed to drive the rated
range at the derived consumption, scaled to a full pack. Degradation
compares the recent average against the best capacity seen.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from collections.abc import Sequence

from pyevhealth._constants import (
    DEFAULT_CAPACITY_KWH,
    DEFAULT_EFFICIENCY_KWH_PER_KM,
    HIGH_CONFIDENCE_CHARGES,
    MAX_CAPACITY_RECORDS,
    MEDIUM_CONFIDENCE_CHARGES,
)
from pyevhealth.models.history import (
    ChargeHistory,
    ChargeRecord,
    ChargingSession,
    Confidence,
    RangeRecord,
    SecondaryAssessment,
)
from pyevhealth.tracing import TraceObserver, emit

_logger = logging.getLogger(__name__)

MIN_SESSION_MINUTES = 10.0
MAX_SESSION_END_LEVEL = 95.0
MIN_ENERGY_FOR_CYCLES_KWH = 0.01


def confidence_for(valid_charges: int) -> Confidence:
    if valid_charges >= HIGH_CONFIDENCE_CHARGES:
        return Confidence.HIGH
    if valid_charges >= MEDIUM_CONFIDENCE_CHARGES:
        return Confidence.MEDIUM
    return Confidence.LOW


def _usable_session(session: ChargingSession) -> bool:
    return (
        session.duration_min > MIN_SESSION_MINUTES
        and session.end_battery_level <= MAX_SESSION_END_LEVEL
        and session.range_added_km > 0
        and session.energy_added_kwh > 0
    )


def derive_efficiency(sessions: Sequence[ChargingSession]) -> float:
    """Most common consumption (kWh/km, 3 decimals) across usable sessions."""
    values = [round(s.energy_added_kwh / s.range_added_km, 3) for s in sessions if _usable_session(s)]
    values = [v for v in values if v > 0]
    if not values:
        return DEFAULT_EFFICIENCY_KWH_PER_KM
    # most_common keeps first-seen order among equal counts
    return Counter(values).most_common(1)[0][0]


def valid_charges(charges: Sequence[ChargeRecord], efficiency: float) -> list[ChargeRecord]:
    """Charges usable for capacity estimation, most recent first."""
    valid = [c for c in charges if c.usable_battery_level > 0 and c.energy_added_kwh >= efficiency]
    return sorted(valid, key=lambda c: c.ended_at, reverse=True)


def _capacity(charge: ChargeRecord, efficiency: float) -> float:
    return charge.rated_range_km * efficiency / charge.usable_battery_level * 100


def projected_range(ranges: Sequence[RangeRecord]) -> float:
    """Full-charge range projected from the aggregate of range readings."""
    readings = [r for r in ranges if r.rated_range_km > 0]
    total_range = sum(r.rated_range_km for r in readings)
    total_level = sum(
        r.usable_battery_level if r.usable_battery_level is not None else r.battery_level for r in readings
    )
    if total_level <= 0:
        return 0.0
    return total_range / total_level * 100


class ChargeHistoryAlgorithm:
    """Evaluate a :class:`ChargeHistory` into a :class:`SecondaryAssessment`."""

    def __init__(self, *, observer: TraceObserver | None = None) -> None:
        self._observer = observer

    def evaluate(self, history: ChargeHistory) -> SecondaryAssessment:
        efficiency = derive_efficiency(history.sessions)
        charges = valid_charges(history.charges, efficiency)
        capacities = [_capacity(c, efficiency) for c in charges]

        if capacities:
            recent = capacities[:MAX_CAPACITY_RECORDS]
            current_capacity = sum(recent) / len(recent)
            max_capacity = max(capacities)
        else:
            current_capacity = DEFAULT_CAPACITY_KWH
            max_capacity = DEFAULT_CAPACITY_KWH
        if history.custom_capacity_kwh and history.custom_capacity_kwh > 0:
            max_capacity = history.custom_capacity_kwh

        capacity_loss = max(0.0, 100.0 - current_capacity * 100.0 / max_capacity) if max_capacity > 0 else 0.0

        current_range = projected_range(history.ranges)
        if history.custom_max_range_km and history.custom_max_range_km > 0:
            max_range = history.custom_max_range_km
        else:
            max_range = max((r.rated_range_km for r in history.ranges), default=0.0)
        range_loss = max(0.0, (max_range - current_range) / max_range * 100) if max_range > 0 else 0.0

        energy = sum(c.energy_added_kwh for c in history.charges if c.energy_added_kwh > MIN_ENERGY_FOR_CYCLES_KWH)
        cycles = math.floor(energy / max_capacity) if max_capacity > 0 else 0

        valid_sessions = sum(1 for s in history.sessions if s.duration_min > MIN_SESSION_MINUTES)
        confidence = confidence_for(len(charges))

        assessment = SecondaryAssessment(
            health_percent=max(0.0, min(100.0, 100.0 - capacity_loss)),
            capacity_degradation_pct=min(100.0, capacity_loss),
            range_degradation_pct=min(100.0, range_loss),
            current_capacity_kwh=current_capacity,
            max_capacity_kwh=max_capacity,
            projected_range_km=current_range,
            max_range_km=max_range,
            charge_cycles=cycles,
            efficiency_kwh_per_km=efficiency,
            valid_charges=len(charges),
            valid_sessions=valid_sessions,
            confidence=confidence,
        )
        _logger.debug(
            "Charge history evaluated: efficiency=%.3f capacity=%.2f/%.2f kWh degradation=%.2f%% charges=%d",
            efficiency,
            current_capacity,
            max_capacity,
            capacity_loss,
            len(charges),
        )
        emit(
            self._observer,
            "scoring.secondary",
            health_percent=assessment.health_percent,
            confidence=str(confidence),
            valid_charges=len(charges),
        )
        return assessment
