"""Device list and reachability models."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, Field, field_validator, model_validator

from pyevhealth.ingestion.normalize import as_mapping, parse_timestamp, safe_float, safe_str
from pyevhealth.models._base import EvBaseModel, EvEnum


class DeviceState(EvEnum):
    """Reachability of a vehicle as reported by the device list."""

    ONLINE = "online"
    ASLEEP = "asleep"
    OFFLINE = "offline"
    UNKNOWN = "unknown"


class DeviceStatus(EvBaseModel):
    """Reachability of one device, derived from its latest list entry."""

    state: DeviceState = DeviceState.UNKNOWN
    last_seen: datetime | None = None
    """When the device last reported to the API (UTC)."""
    battery_level: float | None = Field(default=None, ge=0, le=100)
    """Last known state of charge in percent."""

    @classmethod
    def unknown(cls) -> DeviceStatus:
        return cls()


class DeviceListEntry(EvBaseModel):
    """One vehicle of the account's device list.

    Accepts the Fleet API ``/vehicles`` item shape (``id_s``, ``id``,
    ``state``, ``last_seen``) as well as already-normalized keys.
    """

    id: str = Field(default="", validation_alias=AliasChoices("id_s", "id", "device_id"))
    """Device identifier used by snapshot and wake endpoints."""
    vehicle_id: str = Field(default="", validation_alias=AliasChoices("vehicle_id"))
    """Secondary identifier some endpoints accept."""
    vin: str = Field(default="", validation_alias=AliasChoices("vin"))
    display_name: str = Field(default="", validation_alias=AliasChoices("display_name", "name"))
    state: DeviceState = DeviceState.UNKNOWN
    last_seen: datetime | None = None
    battery_level: float | None = None

    @model_validator(mode="before")
    @classmethod
    def _lift_charge_state(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        if values.get("battery_level") is None:
            charge = as_mapping(values.get("charge_state"))
            if "battery_level" in charge:
                merged = dict(values)
                merged["battery_level"] = charge["battery_level"]
                return merged
        return values

    @field_validator("id", "vehicle_id", "vin", "display_name", mode="before")
    @classmethod
    def _coerce_str(cls, value: Any) -> str:
        return safe_str(value) or ""

    @field_validator("state", mode="before")
    @classmethod
    def _coerce_state(cls, value: Any) -> DeviceState:
        return DeviceState.coerce(value)

    @field_validator("last_seen", mode="before")
    @classmethod
    def _coerce_last_seen(cls, value: Any) -> datetime | None:
        return parse_timestamp(value)

    @field_validator("battery_level", mode="before")
    @classmethod
    def _coerce_battery(cls, value: Any) -> float | None:
        parsed = safe_float(value)
        if parsed is None:
            return None
        return max(0.0, min(100.0, parsed))

    def matches(self, device_id: str) -> bool:
        """Whether *device_id* refers to this entry (id, vehicle id or VIN)."""
        wanted = str(device_id).strip()
        if not wanted:
            return False
        return wanted in {self.id, self.vehicle_id, self.vin}

    def to_status(self) -> DeviceStatus:
        return DeviceStatus(state=self.state, last_seen=self.last_seen, battery_level=self.battery_level)
