from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from conftest import DEVICE_ID, FakeClient, device_entry

from pyevhealth.exceptions import DeviceNotFoundError, TransientError
from pyevhealth.models.device import DeviceListEntry, DeviceState, DeviceStatus
from pyevhealth.models.wake import WakeLikelihood
from pyevhealth.probe import (
    DeviceStateProbe,
    estimated_wake_time,
    format_last_seen,
    is_unlikely_to_wake,
    next_steps,
    should_attempt_wake,
    status_message,
    wake_likelihood,
)

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


def _offline(hours_ago: float | None) -> DeviceStatus:
    last_seen = NOW - timedelta(hours=hours_ago) if hours_ago is not None else None
    return DeviceStatus(state=DeviceState.OFFLINE, last_seen=last_seen)


@pytest.mark.asyncio
async def test_probe_returns_status_from_device_list() -> None:
    last_seen_ms = int(NOW.timestamp() * 1000)
    client = FakeClient(
        devices=[
            device_entry("online", id_s="other", vin="VIN-OTHER"),
            device_entry("asleep", last_seen=last_seen_ms, charge_state={"battery_level": 64}),
        ]
    )

    status = await DeviceStateProbe(client).probe(DEVICE_ID)

    assert status.state is DeviceState.ASLEEP
    assert status.last_seen == NOW
    assert status.battery_level == 64


@pytest.mark.asyncio
async def test_probe_matches_vin_and_typed_entries() -> None:
    entry = DeviceListEntry.model_validate(device_entry("online"))
    client = FakeClient(devices=[entry])

    status = await DeviceStateProbe(client).probe("5YJ3E1EA7KF000001")

    assert status.state is DeviceState.ONLINE


@pytest.mark.asyncio
async def test_probe_unknown_id_raises_device_not_found() -> None:
    client = FakeClient(devices=[device_entry("online")])

    with pytest.raises(DeviceNotFoundError) as exc_info:
        await DeviceStateProbe(client).probe("does-not-exist")

    assert exc_info.value.device_id == "does-not-exist"


@pytest.mark.asyncio
async def test_probe_propagates_transport_failure() -> None:
    client = FakeClient(list_error=TransientError("HTTP 503", status_code=503))

    with pytest.raises(TransientError):
        await DeviceStateProbe(client).probe(DEVICE_ID)


@pytest.mark.asyncio
async def test_probe_many_marks_missing_devices_unknown() -> None:
    client = FakeClient(devices=[device_entry("asleep"), {"id_s": 42}, "garbage"])  # type: ignore[list-item]

    statuses = await DeviceStateProbe(client).probe_many([DEVICE_ID, "missing"])

    assert statuses[DEVICE_ID].state is DeviceState.ASLEEP
    assert statuses["missing"].state is DeviceState.UNKNOWN
    assert client.list_calls == 1


def test_unmapped_api_state_is_unknown() -> None:
    entry = DeviceListEntry.model_validate({"id": 7, "state": "updating"})

    assert entry.id == "7"
    assert entry.state is DeviceState.UNKNOWN


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        (DeviceStatus(state=DeviceState.ONLINE), WakeLikelihood.NONE),
        (DeviceStatus(state=DeviceState.ASLEEP), WakeLikelihood.HIGH),
        (_offline(0.5), WakeLikelihood.HIGH),
        (_offline(3), WakeLikelihood.MEDIUM),
        (_offline(12), WakeLikelihood.LOW),
        (_offline(72), WakeLikelihood.LOW),
        (_offline(None), WakeLikelihood.LOW),
        (DeviceStatus(), WakeLikelihood.LOW),
    ],
)
def test_wake_likelihood_tiers(status: DeviceStatus, expected: WakeLikelihood) -> None:
    assert wake_likelihood(status, NOW) is expected


def test_should_attempt_wake_policy() -> None:
    assert not should_attempt_wake(DeviceStatus(state=DeviceState.ONLINE), NOW)
    assert should_attempt_wake(DeviceStatus(), NOW)
    assert should_attempt_wake(_offline(12), NOW)
    assert is_unlikely_to_wake(_offline(30), NOW)
    assert not should_attempt_wake(_offline(30), NOW)
    assert not is_unlikely_to_wake(_offline(None), NOW)


def test_status_messages() -> None:
    assert status_message(DeviceStatus(state=DeviceState.ONLINE), NOW) == "Online"
    assert status_message(DeviceStatus(state=DeviceState.ASLEEP), NOW) == "Sleeping"
    assert status_message(_offline(5), NOW) == "Offline (5h ago)"
    assert status_message(_offline(None), NOW) == "Offline"
    assert status_message(DeviceStatus(), NOW) == "Status Unknown"


def test_format_last_seen() -> None:
    assert format_last_seen(NOW - timedelta(minutes=20), NOW) == "less than 1 hour ago"
    assert format_last_seen(NOW - timedelta(hours=1, minutes=5), NOW) == "1 hour ago"
    assert format_last_seen(NOW - timedelta(hours=5), NOW) == "5 hours ago"
    assert format_last_seen(NOW - timedelta(days=1, hours=2), NOW) == "1 day ago"
    assert format_last_seen(NOW - timedelta(days=3), NOW) == "3 days ago"


def test_guidance_by_likelihood() -> None:
    assert estimated_wake_time(WakeLikelihood.HIGH) == "30-60 seconds"
    assert estimated_wake_time(WakeLikelihood.MEDIUM) == "1-3 minutes"
    assert estimated_wake_time(WakeLikelihood.LOW) == "3-5 minutes (if possible)"
    assert estimated_wake_time(WakeLikelihood.NONE) == "Unknown"
    assert len(next_steps(WakeLikelihood.MEDIUM)) == 3
    assert next_steps(WakeLikelihood.NONE)[0] == "Vehicle status unknown"
