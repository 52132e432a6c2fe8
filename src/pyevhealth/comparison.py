"""Side-by-side comparison of the primary and charge-history algorithms."""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime

from pyevhealth._redact import mask_identifier
from pyevhealth.client import TelemetryClient
from pyevhealth.config import HealthConfig
from pyevhealth.ingestion.validator import TelemetryValidator
from pyevhealth.models.assessment import HealthAssessment
from pyevhealth.models.comparison import ComparisonResult, DataQuality, MetricDifference
from pyevhealth.models.device import DeviceStatus
from pyevhealth.models.history import ChargeHistory, Confidence, SecondaryAssessment
from pyevhealth.models.wake import WakeAttempt, WakeLikelihood, WakeOutcome, WakeResult
from pyevhealth.probe import status_message, wake_likelihood
from pyevhealth.scoring.charge_history import ChargeHistoryAlgorithm
from pyevhealth.scoring.primary import HealthScoringEngine
from pyevhealth.scoring.synthetic import baseline_snapshot, synthesize_history
from pyevhealth.tracing import TraceObserver, emit
from pyevhealth.wake import WakeOrchestrator

_logger = logging.getLogger(__name__)

SYNTHETIC_NOTE = "Vehicle unavailable; results use representative baseline data."
SYNTHESIZED_HISTORY_NOTE = "Charge history extrapolated from the current snapshot."
RECORDED_HISTORY_NOTE = "Charge history supplied by caller."


def metric_differences(
    primary: HealthAssessment, secondary: SecondaryAssessment
) -> dict[str, MetricDifference]:
    """Per-metric divergence, ``delta = secondary - primary``."""
    return {
        "health_score": MetricDifference.between(float(primary.overall_score), secondary.health_percent),
        "capacity_degradation": MetricDifference.between(
            primary.capacity_degradation_pct, secondary.capacity_degradation_pct
        ),
        "range_degradation": MetricDifference.between(primary.range_degradation_pct, secondary.range_degradation_pct),
    }


class ComparisonEngine:
    """Fetch a live snapshot and score it with both algorithms.

    Device and transport failures never escape :meth:`compare`; an
    unreachable vehicle yields a result computed from the baseline
    snapshot and flagged ``is_synthetic``.
    """

    def __init__(
        self,
        client: TelemetryClient,
        config: HealthConfig | None = None,
        *,
        orchestrator: WakeOrchestrator | None = None,
        validator: TelemetryValidator | None = None,
        primary: HealthScoringEngine | None = None,
        secondary: ChargeHistoryAlgorithm | None = None,
        observer: TraceObserver | None = None,
    ) -> None:
        self._config = config or HealthConfig()
        self._orchestrator = orchestrator or WakeOrchestrator(client, self._config, observer=observer)
        self._validator = validator or TelemetryValidator()
        self._primary = primary or HealthScoringEngine(observer=observer)
        self._secondary = secondary or ChargeHistoryAlgorithm(observer=observer)
        self._observer = observer

    async def compare(
        self,
        device_id: str,
        *,
        history: ChargeHistory | None = None,
        cancel: asyncio.Event | None = None,
    ) -> ComparisonResult:
        result = await self._run_orchestrator(device_id, cancel)
        state = result.state

        if result.ok:
            snapshot = self._validator.validate(result.snapshot)
            is_synthetic = False
            likelihood = WakeLikelihood.NONE
            message = result.message
            reason = None
        else:
            snapshot = baseline_snapshot()
            is_synthetic = True
            known = state or DeviceStatus.unknown()
            likelihood = wake_likelihood(known)
            message = status_message(known)
            reason = result.message
            _logger.info(
                "Vehicle %s unavailable (%s), comparing baseline data", mask_identifier(device_id), result.outcome
            )

        primary = self._primary.score(snapshot)
        history_synthesized = history is None
        if history is None:
            history = synthesize_history(
                snapshot,
                seed=self._config.synthetic_seed,
                custom_capacity_kwh=self._config.custom_capacity_kwh,
                custom_max_range_km=self._config.custom_max_range_km,
            )
        secondary = self._secondary.evaluate(history)

        if is_synthetic:
            note = SYNTHETIC_NOTE
        elif history_synthesized:
            note = SYNTHESIZED_HISTORY_NOTE
        else:
            note = RECORDED_HISTORY_NOTE
        quality = DataQuality(
            confidence=Confidence.LOW if is_synthetic else secondary.confidence,
            is_synthetic=is_synthetic,
            history_synthesized=history_synthesized,
            valid_charges=secondary.valid_charges,
            valid_sessions=secondary.valid_sessions,
            total_data_points=history.total_data_points,
            note=note,
        )
        comparison = ComparisonResult(
            device_id=device_id,
            primary=primary,
            secondary=secondary,
            differences=metric_differences(primary, secondary),
            data_quality=quality,
            wake_outcome=result.outcome,
            wake_likelihood=likelihood,
            status_message=message,
            reason=reason,
        )
        emit(
            self._observer,
            "comparison.done",
            device_id=device_id,
            synthetic=is_synthetic,
            primary_score=primary.overall_score,
            secondary_health=secondary.health_percent,
        )
        return comparison

    async def _run_orchestrator(self, device_id: str, cancel: asyncio.Event | None) -> WakeResult:
        try:
            return await self._orchestrator.run(device_id, cancel=cancel)
        except Exception as err:
            _logger.debug("Orchestration for %s raised", mask_identifier(device_id), exc_info=True)
            return WakeResult(
                device_id=device_id,
                outcome=WakeOutcome.ERROR,
                attempt=WakeAttempt(started_at=datetime.now(UTC), outcome=WakeOutcome.ERROR),
                cause=err,
            )

