"""Wake orchestration models."""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pyevhealth.exceptions import EvHealthError, WakeCancelledError, WakeTimeoutError
from pyevhealth.models._base import EvBaseModel, EvEnum
from pyevhealth.models.device import DeviceStatus


class WakeOutcome(EvEnum):
    """Terminal state of one orchestration run."""

    ONLINE = "online"
    TIMED_OUT = "timed_out"
    ERROR = "error"
    CANCELLED = "cancelled"


class WakeLikelihood(EvEnum):
    """Advisory estimate of whether a wake attempt is worth it."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"


class WakeAttempt(EvBaseModel):
    """Bookkeeping of one orchestration run."""

    started_at: datetime
    attempts_made: int = 0
    """Snapshot fetches performed, including the initial direct fetch."""
    wake_commands_sent: int = 0
    last_command_sent_at: datetime | None = None
    outcome: WakeOutcome
    elapsed_seconds: float = 0.0


@dataclasses.dataclass(frozen=True, slots=True)
class WakeResult:
    """Terminal result of :meth:`pyevhealth.wake.WakeOrchestrator.run`.

    A timeout or cancellation is an expected outcome and is reported as a
    value; :meth:`unwrap` converts it to an exception for callers that
    prefer one.
    """

    device_id: str
    outcome: WakeOutcome
    attempt: WakeAttempt
    snapshot: Mapping[str, Any] | None = None
    state: DeviceStatus | None = None
    """Device status probed during the run, if a probe was needed."""
    cause: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is WakeOutcome.ONLINE and self.snapshot is not None

    @property
    def woke_device(self) -> bool:
        """Whether the snapshot was obtained after sending wake commands."""
        return self.ok and self.attempt.wake_commands_sent > 0

    @property
    def message(self) -> str:
        """Human-readable summary of the outcome."""
        if self.outcome is WakeOutcome.ONLINE:
            if self.woke_device:
                return f"Vehicle woke up after {round(self.attempt.elapsed_seconds)}s"
            return "Vehicle online"
        if self.outcome is WakeOutcome.TIMED_OUT:
            return "Vehicle wake-up timeout - please try again later"
        if self.outcome is WakeOutcome.CANCELLED:
            return "Wake-up cancelled"
        return str(self.cause) if self.cause is not None else "Wake-up failed"

    def unwrap(self) -> Mapping[str, Any]:
        """Return the snapshot or raise the typed failure.

        Raises
        ------
        WakeTimeoutError
            The wake budget was exhausted.
        WakeCancelledError
            The caller cancelled the run.
        EvHealthError
            The original cause of an error outcome.
        """
        if self.ok and self.snapshot is not None:
            return self.snapshot
        if self.outcome is WakeOutcome.TIMED_OUT:
            raise WakeTimeoutError(self.message)
        if self.outcome is WakeOutcome.CANCELLED:
            raise WakeCancelledError(self.message)
        if self.cause is not None:
            raise self.cause
        raise EvHealthError(self.message)
