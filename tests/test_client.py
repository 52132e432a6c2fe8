from __future__ import annotations

import json
from typing import Any

import aiohttp
import pytest

from pyevhealth._transport import HttpTransport
from pyevhealth.client import FleetClient, TelemetryClient
from pyevhealth.config import HealthConfig
from pyevhealth.exceptions import (
    AuthenticationError,
    DeviceNotFoundError,
    DeviceUnavailableError,
    EvHealthError,
    TransientError,
)
from pyevhealth.models.device import DeviceState


class _FakeResponse:
    def __init__(self, status: int, text: str) -> None:
        self.status = status
        self._text = text

    async def text(self) -> str:
        return self._text

    async def __aenter__(self) -> _FakeResponse:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        return None


class _FakeHttpSession:
    def __init__(self, status: int = 200, body: Any = None, *, error: BaseException | None = None) -> None:
        self._status = status
        self._text = body if isinstance(body, str) else json.dumps(body)
        self._error = error
        self.calls: list[tuple[str, str, dict[str, Any]]] = []

    def request(self, method: str, url: str, **kwargs: Any) -> _FakeResponse:
        self.calls.append((method, url, kwargs))
        if self._error is not None:
            raise self._error
        return _FakeResponse(self._status, self._text)


class _RecordingTransport:
    def __init__(self, responses: dict[str, Any]) -> None:
        self._responses = responses
        self.calls: list[tuple[str, str]] = []

    async def request_json(self, method: str, endpoint: str) -> dict[str, Any]:
        self.calls.append((method, endpoint))
        response = self._responses[endpoint]
        if isinstance(response, BaseException):
            raise response
        return response


def _transport(session: _FakeHttpSession, **config: Any) -> HttpTransport:
    return HttpTransport(HealthConfig(access_token="secret-token", **config), session)  # type: ignore[arg-type]


# ------------------------------------------------------------------
# HttpTransport
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_transport_sends_bearer_token_and_decodes_json() -> None:
    session = _FakeHttpSession(body={"response": []})

    body = await _transport(session, base_url="https://example.test").request_json("GET", "/api/1/vehicles")

    assert body == {"response": []}
    method, url, kwargs = session.calls[0]
    assert method == "GET"
    assert url == "https://example.test/api/1/vehicles"
    assert kwargs["headers"]["authorization"] == "Bearer secret-token"
    assert kwargs["timeout"].total == 30.0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status", "error"),
    [
        (401, AuthenticationError),
        (403, AuthenticationError),
        (404, DeviceNotFoundError),
        (408, DeviceUnavailableError),
        (500, TransientError),
        (429, TransientError),
    ],
)
async def test_transport_maps_status_codes(status: int, error: type[Exception]) -> None:
    session = _FakeHttpSession(status=status, body={"error": "nope"})

    with pytest.raises(error):
        await _transport(session).request_json("GET", "/api/1/vehicles/1/vehicle_data")


@pytest.mark.asyncio
async def test_transport_rejects_invalid_json() -> None:
    with pytest.raises(TransientError, match="Invalid JSON"):
        await _transport(_FakeHttpSession(body="<html>")).request_json("GET", "/api/1/vehicles")

    with pytest.raises(TransientError, match="Unexpected JSON"):
        await _transport(_FakeHttpSession(body=[1, 2])).request_json("GET", "/api/1/vehicles")


@pytest.mark.asyncio
async def test_transport_wraps_network_errors() -> None:
    session = _FakeHttpSession(error=aiohttp.ClientConnectionError("connection reset"))

    with pytest.raises(TransientError) as exc_info:
        await _transport(session).request_json("GET", "/api/1/vehicles")

    assert not isinstance(exc_info.value, DeviceUnavailableError)


@pytest.mark.asyncio
async def test_transport_wraps_timeouts() -> None:
    session = _FakeHttpSession(error=TimeoutError())

    with pytest.raises(TransientError, match="timed out"):
        await _transport(session).request_json("GET", "/api/1/vehicles")


# ------------------------------------------------------------------
# FleetClient
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_client_lists_and_fetches() -> None:
    transport = _RecordingTransport(
        {
            "/api/1/vehicles": {
                "response": [
                    {"id_s": "1", "vin": "VIN1", "state": "online"},
                    "garbage",
                    {"id_s": "2", "vin": "VIN2", "state": "asleep"},
                ],
                "count": 3,
            },
            "/api/1/vehicles/1/vehicle_data": {"response": {"charge_state": {"battery_level": 80}}},
            "/api/1/vehicles/1/wake_up": {"response": {"state": "asleep"}},
        }
    )

    async with FleetClient(HealthConfig(), transport=transport) as client:
        assert isinstance(client, TelemetryClient)
        devices = await client.list_devices()
        snapshot = await client.fetch_snapshot("1")
        await client.send_wake_command("1")

    assert [d.id for d in devices] == ["1", "2"]
    assert devices[1].state is DeviceState.ASLEEP
    assert snapshot == {"charge_state": {"battery_level": 80}}
    assert transport.calls[-1] == ("POST", "/api/1/vehicles/1/wake_up")


@pytest.mark.asyncio
async def test_client_reports_unknown_vehicle_by_id() -> None:
    transport = _RecordingTransport(
        {"/api/1/vehicles/42/vehicle_data": DeviceNotFoundError("/api/1/vehicles/42/vehicle_data")}
    )

    async with FleetClient(HealthConfig(), transport=transport) as client:
        with pytest.raises(DeviceNotFoundError) as exc_info:
            await client.fetch_snapshot("42")

    assert exc_info.value.device_id == "42"


@pytest.mark.asyncio
async def test_client_rejects_envelope_without_response() -> None:
    transport = _RecordingTransport({"/api/1/vehicles": {"error": "invalid bearer token"}})

    async with FleetClient(HealthConfig(), transport=transport) as client:
        with pytest.raises(TransientError, match="invalid bearer token"):
            await client.list_devices()


@pytest.mark.asyncio
async def test_client_requires_context_manager() -> None:
    client = FleetClient(HealthConfig())

    with pytest.raises(EvHealthError, match="not initialized"):
        await client.list_devices()
