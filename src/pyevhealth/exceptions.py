"""Custom exception hierarchy for pyevhealth."""

from __future__ import annotations


class EvHealthError(Exception):
    """Base exception for all pyevhealth errors."""


class ConfigError(EvHealthError):
    """Invalid or missing configuration."""


class TransientError(EvHealthError):
    """Transport-level failure (network, timeout, unexpected status, invalid JSON).

    The caller may retry; the library itself only retries inside the
    bounded wake/poll loop of :class:`pyevhealth.wake.WakeOrchestrator`.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class DeviceUnavailableError(TransientError):
    """The vehicle is asleep or offline (HTTP 408).

    This is the "needs wake" classification: the orchestrator reacts to it
    by sending wake commands and polling.
    """


class AuthenticationError(EvHealthError):
    """Access token rejected by the API (HTTP 401/403)."""

    def __init__(self, message: str, *, status_code: int | None = None, endpoint: str = "") -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class DeviceNotFoundError(EvHealthError):
    """The requested device id is absent from the account's device list."""

    def __init__(self, device_id: str, message: str | None = None) -> None:
        self.device_id = device_id
        super().__init__(message or f"Device {device_id!r} not found")


class WakeTimeoutError(EvHealthError):
    """The wake budget was exhausted before the device came online.

    Only raised by :meth:`pyevhealth.models.wake.WakeResult.unwrap`; the
    orchestrator reports a timeout as a value, not an exception.
    """


class WakeCancelledError(EvHealthError):
    """The caller cancelled an orchestration run."""
