"""Client configuration for pyevhealth."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pyevhealth._constants import BASE_URL
from pyevhealth.exceptions import ConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class HealthConfig:
    """Library configuration.

    Parameters
    ----------
    access_token : str
        Bearer token for the Fleet API. Token acquisition and refresh are
        the caller's concern.
    base_url : str
        API base URL. Defaults to the North America Fleet API endpoint.
    request_timeout : float
        Upper bound in seconds for a single API request (device list,
        snapshot fetch or wake command).
    poll_interval : float
        Seconds to wait between snapshot fetches while waking a device.
    wake_timeout : float
        Total wake budget in seconds. When exhausted the orchestration
        ends with a timed-out outcome.
    rewake_interval : float
        Minimum seconds between two wake commands during one run.
    synthetic_seed : int
        Seed for the deterministic charge-history synthesis used by the
        comparison engine.
    custom_capacity_kwh : float or None
        Known new-pack capacity. Overrides the derived maximum capacity
        of the charge-history algorithm.
    custom_max_range_km : float or None
        Known new-pack full range for the charge-history algorithm.
    api_trace_enabled : bool
        Log redacted request/response bodies at DEBUG level.
    """

    access_token: str = ""
    base_url: str = BASE_URL
    request_timeout: float = 30.0
    poll_interval: float = 5.0
    wake_timeout: float = 120.0
    rewake_interval: float = 30.0
    synthetic_seed: int = 0
    custom_capacity_kwh: float | None = None
    custom_max_range_km: float | None = None
    api_trace_enabled: bool = False

    def validate(self) -> HealthConfig:
        """Check timing invariants, returning ``self`` for chaining.

        Raises
        ------
        ConfigError
            If an interval or timeout is not strictly positive, or the poll
            interval exceeds the wake budget.
        """
        for name in ("request_timeout", "poll_interval", "wake_timeout", "rewake_interval"):
            value = getattr(self, name)
            if value <= 0:
                raise ConfigError(f"{name} must be positive, got {value}")
        if self.poll_interval > self.wake_timeout:
            raise ConfigError(
                f"poll_interval ({self.poll_interval}) must not exceed wake_timeout ({self.wake_timeout})"
            )
        return self

    @classmethod
    def from_env(cls, **overrides: Any) -> HealthConfig:
        """Create configuration from environment variables.

        Reads ``EVHEALTH_ACCESS_TOKEN``, ``EVHEALTH_BASE_URL`` and the
        optional numeric ``EVHEALTH_*`` settings. Explicit keyword
        arguments override environment values.

        Raises
        ------
        ConfigError
            If a numeric variable cannot be parsed.
        """
        env = os.environ

        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in (
            ("EVHEALTH_ACCESS_TOKEN", "access_token"),
            ("EVHEALTH_BASE_URL", "base_url"),
        ):
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        _ENV_FLOAT_MAP = {
            "EVHEALTH_REQUEST_TIMEOUT": "request_timeout",
            "EVHEALTH_POLL_INTERVAL": "poll_interval",
            "EVHEALTH_WAKE_TIMEOUT": "wake_timeout",
            "EVHEALTH_REWAKE_INTERVAL": "rewake_interval",
            "EVHEALTH_CUSTOM_CAPACITY_KWH": "custom_capacity_kwh",
            "EVHEALTH_CUSTOM_MAX_RANGE_KM": "custom_max_range_km",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = float(val)
            except ValueError as exc:
                raise ConfigError(f"{env_key} must be a number, got {val!r}") from exc

        seed_env = env.get("EVHEALTH_SYNTHETIC_SEED")
        if seed_env is not None and "synthetic_seed" not in overrides:
            try:
                config_kwargs["synthetic_seed"] = int(seed_env)
            except ValueError as exc:
                raise ConfigError(f"EVHEALTH_SYNTHETIC_SEED must be an integer, got {seed_env!r}") from exc

        if "api_trace_enabled" not in overrides:
            config_kwargs["api_trace_enabled"] = _env_bool(env.get("EVHEALTH_API_TRACE_ENABLED"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
