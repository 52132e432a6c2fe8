"""Fleet API vehicle endpoints.

Endpoints:
  - GET  /api/1/vehicles (device list)
  - GET  /api/1/vehicles/{id}/vehicle_data (snapshot)
  - POST /api/1/vehicles/{id}/wake_up (wake command)
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

from pydantic import ValidationError

from pyevhealth._transport import Transport
from pyevhealth.exceptions import DeviceNotFoundError, TransientError
from pyevhealth.models.device import DeviceListEntry

_logger = logging.getLogger(__name__)

_VEHICLES = "/api/1/vehicles"


def _vehicle_endpoint(device_id: str, suffix: str) -> str:
    return f"{_VEHICLES}/{quote(str(device_id), safe='')}/{suffix}"


def _unwrap(body: dict[str, Any], endpoint: str) -> Any:
    """Return the ``response`` member of a Fleet API envelope."""
    if "response" not in body:
        error = body.get("error") or "missing 'response' field"
        raise TransientError(f"{endpoint} failed: {error}", endpoint=endpoint)
    return body["response"]


async def fetch_vehicle_list(transport: Transport) -> list[DeviceListEntry]:
    """Fetch all vehicles of the account."""
    body = await transport.request_json("GET", _VEHICLES)
    items = _unwrap(body, _VEHICLES)
    if not isinstance(items, list):
        raise TransientError(f"{_VEHICLES} returned a non-list response", endpoint=_VEHICLES)

    entries: list[DeviceListEntry] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            entries.append(DeviceListEntry.model_validate(item))
        except ValidationError:
            _logger.debug("Skipping malformed vehicle list entry", exc_info=True)
    return entries


async def fetch_vehicle_data(transport: Transport, device_id: str) -> dict[str, Any]:
    """Fetch the full ``vehicle_data`` snapshot of one vehicle."""
    endpoint = _vehicle_endpoint(device_id, "vehicle_data")
    try:
        body = await transport.request_json("GET", endpoint)
    except DeviceNotFoundError as exc:
        raise DeviceNotFoundError(device_id) from exc
    data = _unwrap(body, endpoint)
    if not isinstance(data, dict):
        raise TransientError(f"{endpoint} returned a non-object response", endpoint=endpoint)
    return data


async def wake_vehicle(transport: Transport, device_id: str) -> str | None:
    """Send a wake command and return the state the API reported, if any."""
    endpoint = _vehicle_endpoint(device_id, "wake_up")
    try:
        body = await transport.request_json("POST", endpoint)
    except DeviceNotFoundError as exc:
        raise DeviceNotFoundError(device_id) from exc
    data = body.get("response")
    if isinstance(data, dict):
        state = data.get("state")
        return str(state) if state is not None else None
    return None
