"""HTTP transport with bearer authentication and status-code mapping."""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

import aiohttp

from pyevhealth._constants import USER_AGENT
from pyevhealth._redact import redact_for_log
from pyevhealth.config import HealthConfig
from pyevhealth.exceptions import (
    AuthenticationError,
    DeviceNotFoundError,
    DeviceUnavailableError,
    TransientError,
)

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`HttpTransport`) concrete.
    """

    async def request_json(self, method: str, endpoint: str) -> dict[str, Any]:
        ...


class HttpTransport:
    """JSON-over-HTTP transport for the Fleet API."""

    def __init__(self, config: HealthConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {
            "accept": "application/json",
            "content-type": "application/json",
            "user-agent": USER_AGENT,
        }
        if self._config.access_token:
            headers["authorization"] = f"Bearer {self._config.access_token}"
        return headers

    async def request_json(self, method: str, endpoint: str) -> dict[str, Any]:
        """Send a request and return the decoded JSON object.

        Raises
        ------
        AuthenticationError
            HTTP 401/403.
        DeviceNotFoundError
            HTTP 404.
        DeviceUnavailableError
            HTTP 408 (vehicle asleep or offline).
        TransientError
            Any other non-200 status, network failure, timeout or invalid JSON.
        """
        url = f"{self._config.base_url}{endpoint}"
        _logger.debug("%s %s", method, url)

        try:
            async with self._http.request(method, url, headers=self._headers(), timeout=self._timeout) as resp:
                text = await resp.text()
                status = resp.status
        except aiohttp.ClientError as exc:
            raise TransientError(f"Request to {endpoint} failed: {exc}", endpoint=endpoint) from exc
        except TimeoutError as exc:
            raise TransientError(
                f"Request to {endpoint} timed out after {self._config.request_timeout}s",
                endpoint=endpoint,
            ) from exc

        if status != 200:
            self._raise_for_status(status, endpoint, text)

        try:
            body = json.loads(text)
        except json.JSONDecodeError as exc:
            raise TransientError(f"Invalid JSON from {endpoint}: {text[:200]}", endpoint=endpoint) from exc

        if not isinstance(body, dict):
            raise TransientError(f"Unexpected JSON payload from {endpoint}", endpoint=endpoint)

        if self._config.api_trace_enabled:
            _logger.debug("Response %s: %s", endpoint, redact_for_log(body))
        return body

    @staticmethod
    def _raise_for_status(status: int, endpoint: str, text: str) -> None:
        detail = text[:200]
        if status in (401, 403):
            raise AuthenticationError(f"HTTP {status} from {endpoint}: {detail}", status_code=status, endpoint=endpoint)
        if status == 404:
            raise DeviceNotFoundError(endpoint, f"HTTP 404 from {endpoint}: {detail}")
        if status == 408:
            raise DeviceUnavailableError(
                f"Vehicle unavailable (HTTP 408) at {endpoint}",
                status_code=status,
                endpoint=endpoint,
            )
        raise TransientError(f"HTTP {status} from {endpoint}: {detail}", status_code=status, endpoint=endpoint)
