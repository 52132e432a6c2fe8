"""Battery health assessment with wake-up handling and offline guidance."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from pyevhealth._redact import mask_identifier
from pyevhealth.client import TelemetryClient
from pyevhealth.config import HealthConfig
from pyevhealth.exceptions import AuthenticationError, DeviceNotFoundError
from pyevhealth.ingestion.validator import TelemetryValidator
from pyevhealth.models.device import DeviceState, DeviceStatus
from pyevhealth.models.report import EstimatedData, HealthReport, OfflineGuidance
from pyevhealth.models.wake import WakeLikelihood, WakeOutcome
from pyevhealth.probe import (
    DeviceStateProbe,
    estimated_wake_time,
    format_last_seen,
    next_steps,
    should_attempt_wake,
    status_message,
    wake_likelihood,
)
from pyevhealth.scoring.primary import HealthScoringEngine
from pyevhealth.tracing import TraceObserver
from pyevhealth.wake import WakeOrchestrator

_logger = logging.getLogger(__name__)

StatusCallback = Callable[[str], None]

#: Battery level assumed when the device list reports none.
FALLBACK_BATTERY_LEVEL = 50.0
#: Crude km-per-percent factor for offline range estimates.
ESTIMATED_KM_PER_PERCENT = 4.0

WAKE_NOT_ATTEMPTED = "Vehicle is offline and wake-up not attempted"


class BatteryHealthService:
    """Assess one vehicle, waking it when worthwhile.

    Unlike :class:`~pyevhealth.comparison.ComparisonEngine` this never
    substitutes baseline data: an unreachable vehicle produces a
    :class:`HealthReport` without assessment, carrying estimates and
    guidance instead.
    """

    def __init__(
        self,
        client: TelemetryClient,
        config: HealthConfig | None = None,
        *,
        probe: DeviceStateProbe | None = None,
        orchestrator: WakeOrchestrator | None = None,
        validator: TelemetryValidator | None = None,
        engine: HealthScoringEngine | None = None,
        observer: TraceObserver | None = None,
    ) -> None:
        self._config = config or HealthConfig()
        self._probe = probe or DeviceStateProbe(client)
        self._orchestrator = orchestrator or WakeOrchestrator(
            client, self._config, probe=self._probe, observer=observer
        )
        self._validator = validator or TelemetryValidator()
        self._engine = engine or HealthScoringEngine(observer=observer)

    async def assess(
        self,
        device_id: str,
        *,
        attempt_wake: bool = True,
        cancel: asyncio.Event | None = None,
        on_status: StatusCallback | None = None,
    ) -> HealthReport:
        """Assess *device_id*.

        Raises
        ------
        DeviceNotFoundError
            The device is not part of the account.
        AuthenticationError
            The access token was rejected.
        TransientError
            The device list could not be fetched.
        """
        _notify(on_status, "Checking vehicle status...")
        status = await self._probe.probe(device_id)
        _notify(on_status, f"Vehicle is {status.state} - {status_message(status)}")

        if status.state is not DeviceState.ONLINE:
            if not (attempt_wake and should_attempt_wake(status)):
                return offline_report(device_id, status, WAKE_NOT_ATTEMPTED)
            _notify(on_status, f"Attempting to wake vehicle ({wake_likelihood(status)} success chance)...")
        else:
            _notify(on_status, "Getting vehicle data...")

        result = await self._orchestrator.run(device_id, cancel=cancel)
        if not result.ok:
            if result.outcome is WakeOutcome.ERROR and isinstance(
                result.cause, (AuthenticationError, DeviceNotFoundError)
            ):
                raise result.cause
            _logger.info("Vehicle %s unavailable: %s", mask_identifier(device_id), result.message)
            return offline_report(device_id, result.state or status, result.message)

        if result.woke_device:
            _notify(on_status, "Vehicle is now online! Analyzing battery...")
        else:
            _notify(on_status, "Analyzing battery health...")
        snapshot = self._validator.validate(result.snapshot)
        assessment = self._engine.score(snapshot)
        _notify(on_status, "Analysis complete!")

        live = DeviceStatus(
            state=DeviceState.ONLINE,
            last_seen=snapshot.captured_at,
            battery_level=min(100.0, snapshot.battery_level),
        )
        return HealthReport(
            device_id=device_id,
            status=live,
            status_message=status_message(live),
            data_freshness="real-time",
            assessment=assessment,
            woke_device=result.woke_device,
        )


def offline_report(device_id: str, status: DeviceStatus, reason: str) -> HealthReport:
    """Report for a vehicle that could not be reached."""
    likelihood = wake_likelihood(status)
    message = status_message(status)
    level = status.battery_level or FALLBACK_BATTERY_LEVEL
    return HealthReport(
        device_id=device_id,
        status=status,
        status_message=message,
        data_freshness="unavailable",
        estimated=EstimatedData(
            battery_level=level,
            estimated_range_km=level * ESTIMATED_KM_PER_PERCENT,
            last_known_status=message,
        ),
        guidance=OfflineGuidance(
            can_retry=likelihood is not WakeLikelihood.NONE,
            wake_likelihood=likelihood,
            next_steps=next_steps(likelihood),
            estimated_wake_time=estimated_wake_time(likelihood),
        ),
        error=reason,
        last_seen_text=format_last_seen(status.last_seen) if status.last_seen is not None else None,
    )


def _notify(callback: StatusCallback | None, message: str) -> None:
    if callback is None:
        return
    try:
        callback(message)
    except Exception:
        _logger.debug("Status callback failed", exc_info=True)
