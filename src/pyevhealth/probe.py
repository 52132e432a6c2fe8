"""Device reachability probing and wake advisories."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from pyevhealth._redact import mask_identifier
from pyevhealth.client import TelemetryClient
from pyevhealth.exceptions import DeviceNotFoundError
from pyevhealth.models.device import DeviceListEntry, DeviceState, DeviceStatus
from pyevhealth.models.wake import WakeLikelihood

_logger = logging.getLogger(__name__)

#: Beyond this many hours since last contact a wake is unlikely to succeed.
UNLIKELY_TO_WAKE_HOURS = 24.0


def _hours_since(last_seen: datetime | None, now: datetime | None) -> float | None:
    if last_seen is None:
        return None
    current = now or datetime.now(UTC)
    return (current - last_seen).total_seconds() / 3600.0


def _as_entry(item: DeviceListEntry | Mapping[str, Any]) -> DeviceListEntry | None:
    if isinstance(item, DeviceListEntry):
        return item
    try:
        return DeviceListEntry.model_validate(dict(item))
    except (ValidationError, TypeError, ValueError):
        _logger.debug("Ignoring malformed device list entry", exc_info=True)
        return None


class DeviceStateProbe:
    """Classify the reachability of a device from the device list."""

    def __init__(self, client: TelemetryClient) -> None:
        self._client = client

    async def probe(self, device_id: str) -> DeviceStatus:
        """Return the current status of *device_id*.

        Raises
        ------
        DeviceNotFoundError
            The id (or VIN) is not part of the device list.
        TransientError
            The device list could not be fetched.
        """
        for item in await self._client.list_devices():
            entry = _as_entry(item)
            if entry is not None and entry.matches(device_id):
                status = entry.to_status()
                _logger.debug("Device %s state=%s", mask_identifier(device_id), status.state)
                return status
        raise DeviceNotFoundError(device_id)

    async def probe_many(self, device_ids: list[str]) -> dict[str, DeviceStatus]:
        """Return the status of several devices from a single list fetch.

        Ids missing from the list map to an ``UNKNOWN`` status.
        """
        entries = [e for e in (_as_entry(item) for item in await self._client.list_devices()) if e is not None]
        results: dict[str, DeviceStatus] = {}
        for device_id in device_ids:
            match = next((e for e in entries if e.matches(device_id)), None)
            results[device_id] = match.to_status() if match is not None else DeviceStatus.unknown()
        return results


# ------------------------------------------------------------------
# Advisories
# ------------------------------------------------------------------


def wake_likelihood(status: DeviceStatus, now: datetime | None = None) -> WakeLikelihood:
    """Estimate how likely a wake attempt is to succeed."""
    if status.state is DeviceState.ONLINE:
        return WakeLikelihood.NONE
    if status.state is DeviceState.ASLEEP:
        return WakeLikelihood.HIGH

    hours = _hours_since(status.last_seen, now)
    if hours is not None:
        if hours < 1:
            return WakeLikelihood.HIGH
        if hours < 6:
            return WakeLikelihood.MEDIUM
    return WakeLikelihood.LOW


def is_unlikely_to_wake(status: DeviceStatus, now: datetime | None = None) -> bool:
    """Whether the device was last seen more than a day ago."""
    hours = _hours_since(status.last_seen, now)
    return hours is not None and hours > UNLIKELY_TO_WAKE_HOURS


def should_attempt_wake(status: DeviceStatus, now: datetime | None = None) -> bool:
    """Whether orchestrating a wake is worth it for *status*."""
    if status.state is DeviceState.ONLINE:
        return False
    if status.state is DeviceState.UNKNOWN:
        return True
    if is_unlikely_to_wake(status, now):
        _logger.info("Device last seen %.1f hours ago - may not wake up", _hours_since(status.last_seen, now))
        return False
    return True


def status_message(status: DeviceStatus, now: datetime | None = None) -> str:
    """Short human-readable status for display."""
    if status.state is DeviceState.ONLINE:
        return "Online"
    if status.state is DeviceState.ASLEEP:
        return "Sleeping"
    if status.state is DeviceState.OFFLINE:
        hours = _hours_since(status.last_seen, now)
        if hours is not None:
            return f"Offline ({round(hours)}h ago)"
        return "Offline"
    return "Status Unknown"


def format_last_seen(last_seen: datetime, now: datetime | None = None) -> str:
    """Relative description such as ``"3 hours ago"``."""
    hours = int((_hours_since(last_seen, now) or 0.0) // 1)
    if hours < 1:
        return "less than 1 hour ago"
    if hours < 24:
        return f"{hours} hour{'s' if hours > 1 else ''} ago"
    days = hours // 24
    return f"{days} day{'s' if days > 1 else ''} ago"


def estimated_wake_time(likelihood: WakeLikelihood) -> str:
    if likelihood is WakeLikelihood.HIGH:
        return "30-60 seconds"
    if likelihood is WakeLikelihood.MEDIUM:
        return "1-3 minutes"
    if likelihood is WakeLikelihood.LOW:
        return "3-5 minutes (if possible)"
    return "Unknown"


_NEXT_STEPS: dict[WakeLikelihood, tuple[str, ...]] = {
    WakeLikelihood.HIGH: (
        "Retry the assessment to attempt waking the vehicle",
        "Wake-up typically takes 30-60 seconds",
        "Ensure vehicle has cellular/WiFi connectivity",
    ),
    WakeLikelihood.MEDIUM: (
        "Vehicle may wake up, but could take longer",
        "Try waking up when closer to the vehicle",
        "Check if vehicle has connectivity",
    ),
    WakeLikelihood.LOW: (
        "Vehicle has been offline for a while",
        "Try again when vehicle is used next",
        "Physical access to vehicle may be needed",
    ),
}

_UNKNOWN_STEPS = (
    "Vehicle status unknown",
    "Check the vehicle's companion app for more information",
    "Ensure you have proper access permissions",
)


def next_steps(likelihood: WakeLikelihood) -> tuple[str, ...]:
    """User guidance for an unreachable vehicle."""
    return _NEXT_STEPS.get(likelihood, _UNKNOWN_STEPS)
