"""Optional tracing hooks.

Orchestration and scoring code never writes narration to a console;
instead it emits :class:`TraceEvent` values to an injectable observer.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

_logger = logging.getLogger(__name__)


class TraceEvent(BaseModel):
    """A single step of an orchestration or scoring run."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Dotted event name, e.g. 'wake.command_sent'")
    device_id: str | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


TraceObserver = Callable[[TraceEvent], None]


def emit(observer: TraceObserver | None, name: str, *, device_id: str | None = None, **attributes: Any) -> None:
    """Deliver an event to *observer*; observer failures never propagate."""
    if observer is None:
        return
    try:
        observer(TraceEvent(name=name, device_id=device_id, attributes=attributes))
    except Exception:
        _logger.debug("Trace observer failed for %s", name, exc_info=True)
