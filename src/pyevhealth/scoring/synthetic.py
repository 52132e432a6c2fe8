"""Deterministic charge-history extrapolation and the offline baseline.

The live API exposes one snapshot, not a history. To run the
charge-history algorithm anyway, a plausible history is extrapolated
backwards from the snapshot with a small per-step decay. The shape is
fixed; the noise comes from a seeded :class:`random.Random`, so equal
inputs and seeds give equal histories.
"""

from __future__ import annotations

import random
from datetime import UTC, datetime, timedelta

from pyevhealth.models.history import ChargeHistory, ChargeRecord, ChargingSession, RangeRecord
from pyevhealth.models.snapshot import ChargingState, ValidatedSnapshot, VehicleModel

WEEKLY_CHARGES = 12
CHARGE_DECAY_PER_WEEK = 0.002
SESSIONS = 15
SESSION_SPACING_DAYS = 5
SESSION_DECAY = 0.001
DAILY_RANGES = 30
RANGE_DECAY_PER_DAY = 0.0005

#: Representative snapshot used when no live telemetry is available.
BASELINE_SNAPSHOT = ValidatedSnapshot(
    battery_level=78,
    usable_battery_level=74,
    current_range_km=402,
    ideal_range_km=460,
    rated_range_km=402,
    odometer_km=32750,
    charging_state=ChargingState.DISCONNECTED,
    vehicle_model=VehicleModel.MODEL_3,
    captured_at=datetime(2024, 1, 1, tzinfo=UTC),
)


def baseline_snapshot(captured_at: datetime | None = None) -> ValidatedSnapshot:
    """Copy of :data:`BASELINE_SNAPSHOT`, optionally re-dated."""
    if captured_at is None:
        return BASELINE_SNAPSHOT
    return BASELINE_SNAPSHOT.model_copy(update={"captured_at": captured_at})


def synthesize_history(
    snapshot: ValidatedSnapshot,
    *,
    seed: int = 0,
    custom_capacity_kwh: float | None = None,
    custom_max_range_km: float | None = None,
) -> ChargeHistory:
    """Extrapolate a charge history ending at *snapshot*.

    Produces the current reading plus 12 weekly charges, 15 sessions five
    days apart and 30 daily range readings. Every value is finite and
    non-negative, decays monotonically into the past, and the result is
    flagged ``synthetic``.
    """
    rng = random.Random(seed)
    now = snapshot.captured_at
    rated = snapshot.rated_range_km
    level = snapshot.battery_level
    usable = snapshot.usable_battery_level or level

    charges = [
        ChargeRecord(
            rated_range_km=rated,
            usable_battery_level=usable,
            battery_level=level,
            energy_added_kwh=snapshot.charge_energy_added_kwh,
            ended_at=now,
            session_id="current",
        )
    ]
    for week in range(1, WEEKLY_CHARGES + 1):
        decay = 1 - week * CHARGE_DECAY_PER_WEEK
        charges.append(
            ChargeRecord(
                rated_range_km=rated * decay,
                usable_battery_level=round(usable * decay),
                battery_level=round(level * decay),
                energy_added_kwh=20 + rng.random() * 40,
                ended_at=now - timedelta(weeks=week),
                session_id=f"synthetic-{week}",
            )
        )

    start_range = max(0.0, rated - snapshot.charge_range_added_km)
    start_level = max(0.0, level - 10)
    sessions = [
        ChargingSession(
            energy_added_kwh=snapshot.charge_energy_added_kwh,
            start_rated_range_km=start_range,
            end_rated_range_km=rated,
            duration_min=60,
            start_battery_level=start_level,
            end_battery_level=level,
            ended_at=now,
        )
    ]
    for step in range(1, SESSIONS + 1):
        decay = 1 - step * SESSION_DECAY
        sessions.append(
            ChargingSession(
                energy_added_kwh=15 + rng.random() * 30,
                start_rated_range_km=start_range * decay,
                end_rated_range_km=rated * decay,
                duration_min=30 + rng.random() * 120,
                start_battery_level=round(start_level * decay),
                end_battery_level=round(level * decay),
                ended_at=now - timedelta(days=step * SESSION_SPACING_DAYS),
            )
        )

    ranges = [
        RangeRecord(
            battery_level=level,
            usable_battery_level=snapshot.usable_battery_level or None,
            rated_range_km=rated,
            ideal_range_km=snapshot.ideal_range_km or rated,
            recorded_at=now,
        )
    ]
    for day in range(1, DAILY_RANGES + 1):
        decay = 1 - day * RANGE_DECAY_PER_DAY
        ranges.append(
            RangeRecord(
                battery_level=min(100, round(level * (0.8 + rng.random() * 0.4))),
                usable_battery_level=round(usable * decay),
                rated_range_km=rated * decay,
                ideal_range_km=(snapshot.ideal_range_km or rated) * decay,
                recorded_at=now - timedelta(days=day),
            )
        )

    return ChargeHistory(
        charges=tuple(charges),
        sessions=tuple(sessions),
        ranges=tuple(ranges),
        custom_capacity_kwh=custom_capacity_kwh,
        custom_max_range_km=custom_max_range_km,
        synthetic=True,
    )
