from __future__ import annotations

import pytest

from pyevhealth.models.assessment import HealthGrade
from pyevhealth.models.snapshot import ValidatedSnapshot, VehicleModel
from pyevhealth.scoring.primary import (
    HealthScoringEngine,
    baseline_range,
    capacity_degradation,
    grade_for,
    market_impact,
    range_degradation,
    score_snapshot,
)
from pyevhealth.tracing import TraceEvent


def _snapshot(**fields: object) -> ValidatedSnapshot:
    return ValidatedSnapshot.model_validate(fields)


SCENARIO = _snapshot(
    battery_level=78,
    usable_battery_level=74,
    current_range_km=402,
    ideal_range_km=460,
    odometer_km=32750,
    vehicle_model="Model 3",
)


def test_reference_scenario() -> None:
    assessment = score_snapshot(SCENARIO)

    assert assessment.range_degradation_pct == pytest.approx(12.6)
    assert assessment.capacity_degradation_pct == pytest.approx(10.1)
    assert assessment.estimated_cycles == 74
    assert assessment.overall_score == 72
    assert assessment.grade is HealthGrade.FAIR
    assert assessment.baseline_range_km == 460
    assert "Consider independent battery inspection" in assessment.recommendations
    assert "Factor battery condition into pricing" in assessment.recommendations
    assert "Verify remaining warranty coverage" in assessment.recommendations
    assert "Low mileage vehicle" in assessment.strengths
    assert "Very limited charging cycles" in assessment.strengths
    assert assessment.concerns == ()
    assert assessment.market_impact.value_impact_pct == 6
    assert assessment.market_impact.warranty_status == "Likely under warranty"
    assert assessment.market_impact.expected_life_remaining == "4-6 years expected"


def test_baseline_falls_back_to_epa_table() -> None:
    assert baseline_range(_snapshot(vehicle_model="Model S")) == 405
    assert baseline_range(_snapshot(vehicle_model="Model Y")) == 326
    assert baseline_range(_snapshot(vehicle_model="cybertruck")) == 358


def test_range_degradation_not_computable_is_zero() -> None:
    assert range_degradation(_snapshot(ideal_range_km=460)) == 0.0


def test_range_degradation_clamped_to_thirty() -> None:
    assert range_degradation(_snapshot(ideal_range_km=500, current_range_km=10)) == 30.0


def test_range_gain_is_not_negative_degradation() -> None:
    assert range_degradation(_snapshot(ideal_range_km=300, current_range_km=450)) == 0.0


def test_capacity_uses_ratio_when_it_exceeds_range_estimate() -> None:
    snapshot = _snapshot(battery_level=100, usable_battery_level=86, ideal_range_km=400, current_range_km=400)

    expected = (0.95 - 0.86) / 0.95 * 100
    assert capacity_degradation(snapshot, 0.0) == pytest.approx(expected)


def test_capacity_falls_back_outside_ratio_window() -> None:
    snapshot = _snapshot(battery_level=100, usable_battery_level=50)

    assert capacity_degradation(snapshot, 30.0) == 20.0
    assert capacity_degradation(snapshot, 5.0) == pytest.approx(4.0)


def test_healthy_ratio_earns_bonus() -> None:
    snapshot = _snapshot(
        battery_level=80, usable_battery_level=79, ideal_range_km=400, current_range_km=398, odometer_km=8000
    )

    assessment = score_snapshot(snapshot)

    # 100 - 0.5 range - 0.6 capacity + 5 bonus, clamped to 100
    assert assessment.overall_score == 100
    assert assessment.grade is HealthGrade.EXCELLENT
    assert "Battery shows good health for age/mileage" in assessment.recommendations


def test_heavy_use_penalties_and_concerns() -> None:
    snapshot = _snapshot(
        battery_level=90, usable_battery_level=80, ideal_range_km=500, current_range_km=300, odometer_km=700_000
    )

    assessment = score_snapshot(snapshot)

    # 100 - 25 - 20 - 15 mileage - 10 cycles
    assert assessment.overall_score == 30
    assert assessment.grade is HealthGrade.POOR
    assert assessment.range_degradation_pct == 30.0
    assert assessment.estimated_cycles == round(700_000 / 443)
    assert set(assessment.concerns) == {
        "Notable range degradation detected",
        "Battery capacity loss above average",
        "High mileage may impact battery life",
        "High number of charging cycles",
    }
    assert assessment.market_impact.value_impact_pct == 20
    assert assessment.market_impact.warranty_status == "Likely out of warranty"
    assert assessment.market_impact.expected_life_remaining == "2-4 years expected"


@pytest.mark.parametrize(
    "fields",
    [
        {},
        {"battery_level": 100, "usable_battery_level": 100},
        {"current_range_km": 10_000, "ideal_range_km": 1},
        {"current_range_km": 1, "ideal_range_km": 10_000, "odometer_km": 10_000_000},
        {"battery_level": 5, "usable_battery_level": 500},
        {"battery_level": -40, "usable_battery_level": "x", "odometer_km": -1},
    ],
)
def test_score_always_within_bounds(fields: dict[str, object]) -> None:
    assessment = score_snapshot(_snapshot(**fields))

    assert 0 <= assessment.overall_score <= 100
    assert 0 <= assessment.range_degradation_pct <= 30
    assert 0 <= assessment.capacity_degradation_pct <= 25
    assert assessment.estimated_cycles >= 0
    assert "Verify remaining warranty coverage" in assessment.recommendations


def test_degenerate_snapshot_still_scores() -> None:
    assessment = score_snapshot(ValidatedSnapshot())

    assert assessment.overall_score == 100
    assert assessment.range_degradation_pct == 0
    assert assessment.capacity_degradation_pct == 0


@pytest.mark.parametrize(
    ("score", "grade"),
    [(100, HealthGrade.EXCELLENT), (90, HealthGrade.EXCELLENT), (89, HealthGrade.GOOD), (75, HealthGrade.GOOD),
     (74, HealthGrade.FAIR), (60, HealthGrade.FAIR), (59, HealthGrade.POOR), (0, HealthGrade.POOR)],
)
def test_grade_boundaries(score: int, grade: HealthGrade) -> None:
    assert grade_for(score) is grade


def test_market_impact_tiers() -> None:
    assert market_impact(95, 10_000, 20).value_impact_pct == 0
    assert market_impact(80, 120_000, 270).value_impact_pct == 4
    assert market_impact(80, 120_000, 270).expected_life_remaining == "6-8 years expected"
    assert market_impact(90, 170_000, 100).warranty_status == "May be under warranty"
    assert market_impact(90, 170_000, 100).expected_life_remaining == "8+ years expected"


def test_engine_reports_to_observer() -> None:
    events: list[TraceEvent] = []

    HealthScoringEngine(observer=events.append).score(SCENARIO)

    assert [event.name for event in events] == ["scoring.primary"]
    assert events[0].attributes["score"] == 72


def test_nominal_capacity_by_model() -> None:
    assessment = score_snapshot(_snapshot(vehicle_model=VehicleModel.MODEL_X))

    assert assessment.nominal_capacity_kwh == 100
    assert assessment.usable_capacity_kwh == 100
