"""Telemetry client interface and its Fleet API implementation."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

import aiohttp

from pyevhealth._api import vehicles as _vehicles_api
from pyevhealth._redact import mask_identifier
from pyevhealth._transport import HttpTransport, Transport
from pyevhealth.config import HealthConfig
from pyevhealth.exceptions import EvHealthError
from pyevhealth.models.device import DeviceListEntry

_logger = logging.getLogger(__name__)


@runtime_checkable
class TelemetryClient(Protocol):
    """Authenticated access to the remote vehicle API.

    Implementations raise :class:`~pyevhealth.exceptions.DeviceUnavailableError`
    from :meth:`fetch_snapshot` while the vehicle sleeps, and
    :class:`~pyevhealth.exceptions.TransientError` for other transport
    failures.
    """

    async def list_devices(self) -> Sequence[DeviceListEntry | Mapping[str, Any]]:
        ...

    async def fetch_snapshot(self, device_id: str) -> Mapping[str, Any]:
        ...

    async def send_wake_command(self, device_id: str) -> None:
        ...


class FleetClient:
    """Async client for the vehicle Fleet API.

    Usage::

        async with FleetClient(config) as client:
            devices = await client.list_devices()
    """

    def __init__(
        self,
        config: HealthConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> FleetClient:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
            self._transport = None

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise EvHealthError("Client not initialized. Use 'async with FleetClient(...) as client:'")
        return self._transport

    # ------------------------------------------------------------------
    # TelemetryClient
    # ------------------------------------------------------------------

    async def list_devices(self) -> list[DeviceListEntry]:
        """Fetch all vehicles associated with the account."""
        return await _vehicles_api.fetch_vehicle_list(self._require_transport())

    async def fetch_snapshot(self, device_id: str) -> dict[str, Any]:
        """Fetch the current ``vehicle_data`` payload of *device_id*."""
        return await _vehicles_api.fetch_vehicle_data(self._require_transport(), device_id)

    async def send_wake_command(self, device_id: str) -> None:
        """Ask a sleeping vehicle to connect.

        The command endpoint frequently reports failure while the vehicle
        wakes anyway; callers should treat errors from this method as
        informational.
        """
        state = await _vehicles_api.wake_vehicle(self._require_transport(), device_id)
        _logger.debug("Wake command for %s accepted, reported state=%s", mask_identifier(device_id), state)
