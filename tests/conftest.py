from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

import pytest

from pyevhealth.exceptions import DeviceUnavailableError

DEVICE_ID = "1492931337156789"

VEHICLE_DATA: dict[str, Any] = {
    "id_s": DEVICE_ID,
    "vin": "5YJ3E1EA7KF000001",
    "display_name": "Daily",
    "state": "online",
    "charge_state": {
        "battery_level": 78,
        "usable_battery_level": 74,
        "est_battery_range": 402,
        "battery_range": 402,
        "ideal_battery_range": 460,
        "charging_state": "Disconnected",
        "charge_rate": 0,
        "charge_energy_added": 0,
        "charge_miles_added_rated": 0,
        "timestamp": 1_700_000_000_000,
    },
    "vehicle_state": {"odometer": 32750, "timestamp": 1_700_000_000_000},
    "vehicle_config": {"car_type": "model3", "trim_badging": "74d"},
}


def asleep() -> DeviceUnavailableError:
    return DeviceUnavailableError("Vehicle unavailable (HTTP 408)", status_code=408, endpoint="vehicle_data")


@dataclass
class FakeClient:
    """In-memory telemetry client.

    ``responses`` is consumed in order by :meth:`fetch_snapshot`; an
    exception instance is raised, anything else is returned. The last
    response repeats once the list is exhausted.
    """

    devices: Sequence[Any] = field(default_factory=list)
    responses: list[Any] = field(default_factory=list)
    wake_error: BaseException | None = None
    list_error: BaseException | None = None
    on_wake: Callable[[], None] | None = None
    fetch_calls: int = 0
    wake_calls: int = 0
    list_calls: int = 0

    async def list_devices(self) -> Sequence[Any]:
        self.list_calls += 1
        if self.list_error is not None:
            raise self.list_error
        return list(self.devices)

    async def fetch_snapshot(self, device_id: str) -> dict[str, Any]:
        self.fetch_calls += 1
        if not self.responses:
            raise asleep()
        index = min(self.fetch_calls, len(self.responses)) - 1
        response = self.responses[index]
        if isinstance(response, BaseException):
            raise response
        return response

    async def send_wake_command(self, device_id: str) -> None:
        self.wake_calls += 1
        if self.on_wake is not None:
            self.on_wake()
        if self.wake_error is not None:
            raise self.wake_error


class FakeClock:
    """Monotonic clock advanced only by :meth:`sleep`."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def device_entry(state: str = "asleep", **extra: Any) -> dict[str, Any]:
    entry: dict[str, Any] = {"id_s": DEVICE_ID, "vin": "5YJ3E1EA7KF000001", "display_name": "Daily", "state": state}
    entry.update(extra)
    return entry


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def vehicle_data() -> dict[str, Any]:
    return dict(VEHICLE_DATA)
