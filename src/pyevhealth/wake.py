"""Bounded wake-and-poll orchestration.

A sleeping vehicle answers snapshot requests with HTTP 408. The
orchestrator sends a wake command, polls until the vehicle answers,
re-sends the command periodically, and gives up after the wake budget.
Every terminal state is reported as a :class:`WakeResult` value.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from datetime import UTC, datetime
from typing import Any, TypeVar

from pyevhealth._redact import mask_identifier
from pyevhealth.client import TelemetryClient
from pyevhealth.config import HealthConfig
from pyevhealth.exceptions import DeviceUnavailableError, TransientError, WakeCancelledError
from pyevhealth.models.device import DeviceStatus
from pyevhealth.models.wake import WakeAttempt, WakeLikelihood, WakeOutcome, WakeResult
from pyevhealth.probe import DeviceStateProbe
from pyevhealth.probe import wake_likelihood as _likelihood_for
from pyevhealth.tracing import TraceObserver, emit

_logger = logging.getLogger(__name__)

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[Any]]

_T = TypeVar("_T")


class _BudgetSpent(DeviceUnavailableError):
    """A fetch was cut short because the wake budget ran out."""


def _check_cancel(cancel: asyncio.Event | None) -> None:
    if cancel is not None and cancel.is_set():
        raise WakeCancelledError("Wake-up cancelled")


@dataclasses.dataclass
class _RunState:
    """Mutable bookkeeping of a single run; never shared between runs."""

    device_id: str
    started_at: datetime
    started: float
    attempts_made: int = 0
    wake_commands_sent: int = 0
    last_command_at: float | None = None
    last_command_sent_at: datetime | None = None
    status: DeviceStatus | None = None


class WakeOrchestrator:
    """Obtain a live snapshot from a possibly sleeping device.

    Parameters
    ----------
    client:
        Telemetry client used for fetches and wake commands.
    config:
        Timing configuration; defaults to :class:`HealthConfig` defaults.
    probe:
        Device state probe consulted once per run before waking.
    observer:
        Optional trace observer.
    clock, sleep:
        Monotonic clock and sleep coroutine; injectable for tests.
    """

    def __init__(
        self,
        client: TelemetryClient,
        config: HealthConfig | None = None,
        *,
        probe: DeviceStateProbe | None = None,
        observer: TraceObserver | None = None,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._client = client
        self._config = config or HealthConfig()
        self._probe = probe or DeviceStateProbe(client)
        self._observer = observer
        self._clock = clock
        self._sleep = sleep

    @property
    def config(self) -> HealthConfig:
        return self._config

    def wake_likelihood(self, status: DeviceStatus) -> WakeLikelihood:
        """Advisory likelihood that a wake attempt for *status* succeeds."""
        return _likelihood_for(status)

    async def run(self, device_id: str, *, cancel: asyncio.Event | None = None) -> WakeResult:
        """Run the wake state machine for *device_id* until a terminal outcome.

        Setting *cancel* abandons whichever fetch, wake command or poll
        wait is in flight and ends the run with ``CANCELLED``.
        """
        run = _RunState(device_id=device_id, started_at=datetime.now(UTC), started=self._clock())
        emit(self._observer, "wake.start", device_id=device_id)
        try:
            return await self._drive(run, cancel)
        except WakeCancelledError:
            return self._finish(run, WakeOutcome.CANCELLED)

    async def _drive(self, run: _RunState, cancel: asyncio.Event | None) -> WakeResult:
        _check_cancel(cancel)

        # Start: a direct fetch succeeds when the device is already awake.
        try:
            snapshot = await self._fetch(run, cancel)
        except WakeCancelledError:
            raise
        except DeviceUnavailableError:
            _logger.info("Vehicle %s is not reachable, waking it up", mask_identifier(run.device_id))
        except Exception as err:
            return self._finish(run, WakeOutcome.ERROR, cause=err)
        else:
            return self._finish(run, WakeOutcome.ONLINE, snapshot=snapshot)

        # Waking
        try:
            run.status = await self._probe_once(run, cancel)
        except WakeCancelledError:
            raise
        except Exception as err:
            return self._finish(run, WakeOutcome.ERROR, cause=err)
        _check_cancel(cancel)
        await self._send_wake(run, cancel)

        # Polling
        while True:
            if self._remaining(run) <= 0:
                return self._timed_out(run)
            await self._cancellable(self._sleep(self._config.poll_interval), cancel)
            if self._remaining(run) <= 0:
                return self._timed_out(run)
            try:
                snapshot = await self._fetch(run, cancel)
            except WakeCancelledError:
                raise
            except _BudgetSpent:
                return self._timed_out(run)
            except DeviceUnavailableError:
                now = self._clock()
                elapsed = now - run.started
                if elapsed >= self._config.wake_timeout:
                    return self._timed_out(run)
                emit(self._observer, "wake.poll_unavailable", device_id=run.device_id, elapsed=elapsed)
                if run.last_command_at is None or now - run.last_command_at >= self._config.rewake_interval:
                    _check_cancel(cancel)
                    await self._send_wake(run, cancel)
            except Exception as err:
                return self._finish(run, WakeOutcome.ERROR, cause=err)
            else:
                return self._finish(run, WakeOutcome.ONLINE, snapshot=snapshot)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _remaining(self, run: _RunState) -> float:
        return run.started + self._config.wake_timeout - self._clock()

    def _timed_out(self, run: _RunState) -> WakeResult:
        _logger.warning(
            "Vehicle %s did not wake within %.0fs", mask_identifier(run.device_id), self._config.wake_timeout
        )
        return self._finish(run, WakeOutcome.TIMED_OUT)

    async def _fetch(self, run: _RunState, cancel: asyncio.Event | None) -> Mapping[str, Any]:
        run.attempts_made += 1
        timeout = min(self._config.request_timeout, max(self._remaining(run), 0.0))
        try:
            return await self._cancellable(
                asyncio.wait_for(self._client.fetch_snapshot(run.device_id), timeout=timeout),
                cancel,
            )
        except TimeoutError as err:
            if timeout < self._config.request_timeout:
                raise _BudgetSpent(
                    f"Snapshot request cut off by the {self._config.wake_timeout:.0f}s wake budget",
                    endpoint="vehicle_data",
                ) from err
            raise TransientError(
                f"Snapshot request timed out after {self._config.request_timeout:.0f}s",
                endpoint="vehicle_data",
            ) from err

    async def _probe_once(self, run: _RunState, cancel: asyncio.Event | None) -> DeviceStatus:
        """Probe the device state, degrading transport failures to UNKNOWN."""
        if run.status is not None:
            return run.status
        try:
            status = await self._cancellable(self._probe.probe(run.device_id), cancel)
        except TransientError as err:
            _logger.debug("State probe failed for %s: %s", mask_identifier(run.device_id), err)
            status = DeviceStatus.unknown()
        emit(
            self._observer,
            "wake.probed",
            device_id=run.device_id,
            state=str(status.state),
            likelihood=str(_likelihood_for(status)),
        )
        return status

    async def _send_wake(self, run: _RunState, cancel: asyncio.Event | None) -> None:
        run.wake_commands_sent += 1
        run.last_command_at = self._clock()
        run.last_command_sent_at = datetime.now(UTC)
        try:
            await self._cancellable(
                asyncio.wait_for(self._client.send_wake_command(run.device_id), timeout=self._config.request_timeout),
                cancel,
            )
        except WakeCancelledError:
            raise
        except Exception as err:
            _logger.warning(
                "Wake command for %s reported failure (ignored): %s", mask_identifier(run.device_id), err
            )
        emit(self._observer, "wake.command_sent", device_id=run.device_id, count=run.wake_commands_sent)

    async def _cancellable(self, awaitable: Awaitable[_T], cancel: asyncio.Event | None) -> _T:
        """Await *awaitable*, abandoning it as soon as *cancel* is set.

        Raises
        ------
        WakeCancelledError
            *cancel* was set before *awaitable* completed.
        """
        if cancel is None:
            return await awaitable
        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(cancel.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for pending in (task, waiter):
                if not pending.done():
                    pending.cancel()
        if cancel.is_set():
            if task.done() and not task.cancelled():
                task.exception()  # mark retrieved
            raise WakeCancelledError("Wake-up cancelled")
        return task.result()

    def _finish(
        self,
        run: _RunState,
        outcome: WakeOutcome,
        *,
        snapshot: Mapping[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> WakeResult:
        elapsed = max(0.0, self._clock() - run.started)
        attempt = WakeAttempt(
            started_at=run.started_at,
            attempts_made=run.attempts_made,
            wake_commands_sent=run.wake_commands_sent,
            last_command_sent_at=run.last_command_sent_at,
            outcome=outcome,
            elapsed_seconds=elapsed,
        )
        if outcome is WakeOutcome.ERROR:
            _logger.info("Wake run for %s failed: %s", mask_identifier(run.device_id), cause)
        else:
            _logger.info(
                "Wake run for %s finished: %s after %.1fs (%d commands)",
                mask_identifier(run.device_id),
                outcome,
                elapsed,
                run.wake_commands_sent,
            )
        emit(
            self._observer,
            "wake.done",
            device_id=run.device_id,
            outcome=str(outcome),
            elapsed=elapsed,
            wake_commands=run.wake_commands_sent,
        )
        return WakeResult(
            device_id=run.device_id,
            outcome=outcome,
            attempt=attempt,
            snapshot=snapshot,
            state=run.status,
            cause=cause,
        )
