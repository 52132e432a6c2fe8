"""Base model and enum for pyevhealth value objects.

Every value object inherits from :class:`EvBaseModel` which is frozen
(a new assessment is a new value, never a mutated one) and ignores
unknown keys so API additions never break parsing.

State enums inherit from :class:`EvEnum` whose ``_missing_`` hook
resolves unmapped values to ``UNKNOWN`` (or to the first member when
the enum has no ``UNKNOWN``) instead of raising ``ValueError``.
"""

from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class EvEnum(enum.StrEnum):
    """Base for string-valued state enums.

    Lookup is case-insensitive and ignores spaces, dashes and
    underscores, so ``"model_3"``, ``"Model 3"`` and ``"MODEL3"``
    resolve to the same member.
    """

    @classmethod
    def _missing_(cls, value: object) -> EvEnum:
        if isinstance(value, str):
            wanted = _fold(value)
            for member in cls:
                if _fold(member.value) == wanted or _fold(member.name) == wanted:
                    return member
        if "UNKNOWN" in cls.__members__:
            return cls.__members__["UNKNOWN"]
        # Fallback: return first member
        return next(iter(cls))

    @classmethod
    def coerce(cls, value: Any) -> EvEnum:
        """Resolve any value (including ``None``) to a member."""
        if isinstance(value, cls):
            return value
        return cls(str(value) if value is not None else "")


def _fold(text: str) -> str:
    return "".join(ch for ch in text.lower() if ch.isalnum())


class EvBaseModel(BaseModel):
    """Base for immutable pyevhealth records."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )
