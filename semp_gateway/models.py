"""
Pydantic value types shared by the registry, translator and adapters.

Static device capabilities (DeviceInfo) and runtime flags (DeviceStatus)
are frozen models: a Device swaps whole instances under its lock, so any
reference handed out is a consistent value. DeviceCreate and DeviceUpdate
are the decoded forms of management payloads and use the camelCase field
names of the REST surface as aliases.

CHANGELOG:
- 2026-10-14: Add PlanningState for the advisory planning lifecycle (STORY-009)
- 2026-10-12: Reject explicit nulls in DeviceUpdate (STORY-006)
- 2026-10-10: Initial creation (STORY-002)

TODO:
- None
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class OperatingStatus(StrEnum):
    """SEMP DeviceStatus/Status values."""

    ON = "On"
    OFF = "Off"
    OFFLINE = "Offline"


class MeasurementMethod(StrEnum):
    """SEMP Capabilities/CurrentPower/Method values."""

    MEASUREMENT = "Measurement"
    ESTIMATION = "Estimation"
    NONE = "None"


class PlanningState(StrEnum):
    """Advisory planning lifecycle of a device (derived, never stored)."""

    IDLE = "Idle"
    REQUESTED = "Requested"
    RECOMMENDED = "Recommended"


# ---------------------------------------------------------------------------
# Device state
# ---------------------------------------------------------------------------


class DeviceInfo(BaseModel):
    """Static capability attributes of a device.

    Attributes:
        name: Human readable device name (SEMP DeviceName).
        device_type: SEMP DeviceType, e.g. ``DishWasher`` or ``EVCharger``.
        measurement_method: How current power is obtained.
        interruptions_allowed: Whether a running program may be paused.
        max_power: Maximum power consumption in watts.
        vendor: Device vendor.
        serial_nr: Vendor serial number.
        absolute_timestamps: Planning window bounds are absolute epoch
            seconds instead of offsets from now.
        optional_energy: Device accepts optional-energy planning requests.
        min_on_time: Minimum on-time in seconds, if constrained.
        min_off_time: Minimum off-time in seconds, if constrained.
        url: Optional external reference URL for the device.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    device_type: str = "Other"
    measurement_method: MeasurementMethod = MeasurementMethod.ESTIMATION
    interruptions_allowed: bool = True
    max_power: int = Field(ge=0)
    vendor: str = ""
    serial_nr: str = ""
    absolute_timestamps: bool = False
    optional_energy: bool = False
    min_on_time: int | None = Field(default=None, ge=0)
    min_off_time: int | None = Field(default=None, ge=0)
    url: str | None = None


class DeviceStatus(BaseModel):
    """Mutable operational flags of a device."""

    model_config = ConfigDict(frozen=True)

    status: OperatingStatus = OperatingStatus.OFF
    em_signals_accepted: bool = True


class Timeframe(BaseModel):
    """A planning window: interval plus running-time bounds, in seconds."""

    model_config = ConfigDict(frozen=True)

    earliest_start: int = Field(ge=0)
    latest_end: int = Field(ge=0)
    min_running_time: int = Field(ge=0)
    max_running_time: int = Field(ge=0)

    @model_validator(mode="after")
    def _check_bounds(self) -> Timeframe:
        if self.earliest_start > self.latest_end:
            raise ValueError("EarliestStart must not be after LatestEnd")
        if self.min_running_time > self.max_running_time:
            raise ValueError("MinRunningTime must not exceed MaxRunningTime")
        return self


class PowerReading(BaseModel):
    """Most recent measured power consumption in watts."""

    model_config = ConfigDict(frozen=True)

    watts: int = Field(ge=0)
    min_power: int = Field(ge=0)
    max_power: int = Field(ge=0)


class Recommendation(BaseModel):
    """Outcome of the last control directive applied to a device."""

    model_config = ConfigDict(frozen=True)

    on: bool
    recommended_power: int
    timestamp: int

    def to_control_dict(self, device_id: str) -> dict:
        """Render as a SEMP DeviceControl-shaped dict for JSON consumers."""
        return {
            "DeviceId": device_id,
            "On": self.on,
            "RecommendedPowerConsumption": self.recommended_power,
            "Timestamp": self.timestamp,
        }


class ControlDirective(BaseModel):
    """Decoded EM2Device/DeviceControl message, consumed once."""

    model_config = ConfigDict(frozen=True)

    device_id: str = Field(min_length=1)
    on: bool
    recommended_power: int
    timestamp: int

    def to_recommendation(self) -> Recommendation:
        return Recommendation(
            on=self.on,
            recommended_power=self.recommended_power,
            timestamp=self.timestamp,
        )


class DeviceSnapshot(BaseModel):
    """Consistent read-only copy of a device taken under its lock."""

    model_config = ConfigDict(frozen=True)

    device_id: str
    info: DeviceInfo
    status: DeviceStatus
    planning_windows: tuple[Timeframe, ...] = ()
    last_recommendation: Recommendation | None = None
    last_power: PowerReading | None = None
    notification_target: str | None = None
    planning_state: PlanningState = PlanningState.IDLE


# ---------------------------------------------------------------------------
# Management payloads
# ---------------------------------------------------------------------------

_STATUS_FIELDS = frozenset({"status", "em_signals_accepted"})


class DeviceCreate(BaseModel):
    """Attributes of a device registered through the management surface."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    device_id: str = Field(min_length=1)
    name: str
    type: str = "Other"
    measurement_method: MeasurementMethod = MeasurementMethod.ESTIMATION
    interruptions_allowed: bool = True
    max_power: int = Field(ge=0)
    em_signals_accepted: bool = True
    status: OperatingStatus = OperatingStatus.OFF
    vendor: str = ""
    serial_nr: str = ""
    absolute_timestamps: bool = False
    optional_energy: bool = False
    min_on_time: int | None = Field(default=None, ge=0)
    min_off_time: int | None = Field(default=None, ge=0)
    url: str | None = None

    def build_info(self) -> DeviceInfo:
        return DeviceInfo(
            name=self.name,
            device_type=self.type,
            measurement_method=self.measurement_method,
            interruptions_allowed=self.interruptions_allowed,
            max_power=self.max_power,
            vendor=self.vendor,
            serial_nr=self.serial_nr,
            absolute_timestamps=self.absolute_timestamps,
            optional_energy=self.optional_energy,
            min_on_time=self.min_on_time,
            min_off_time=self.min_off_time,
            url=self.url,
        )

    def build_status(self) -> DeviceStatus:
        return DeviceStatus(
            status=self.status,
            em_signals_accepted=self.em_signals_accepted,
        )


class DeviceUpdate(BaseModel):
    """Partial device update.

    Only fields present in the payload are applied; ``model_fields_set``
    tells an omitted field apart from one set to ``0`` or ``false``.
    Explicit nulls are rejected.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str | None = None
    interruptions_allowed: bool | None = None
    max_power: int | None = Field(default=None, ge=0)
    em_signals_accepted: bool | None = None
    status: OperatingStatus | None = None
    optional_energy: bool | None = None
    min_on_time: int | None = Field(default=None, ge=0)
    min_off_time: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _reject_nulls(self) -> DeviceUpdate:
        for name in self.model_fields_set:
            if getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} must not be null")
        return self

    def info_changes(self) -> dict[str, Any]:
        """Return the DeviceInfo fields explicitly set in this update."""
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if name not in _STATUS_FIELDS
        }

    def status_changes(self) -> dict[str, Any]:
        """Return the DeviceStatus fields explicitly set in this update."""
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if name in _STATUS_FIELDS
        }
