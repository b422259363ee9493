"""
Management REST endpoints for operators (prefix ``/api``).

Every response uses the envelope ``{"status": int, "message": str,
"data"?: any}``. Gateway errors raised by the registry or a device are
turned into envelopes by the exception handlers installed in
``semp_gateway.api.app``.

CHANGELOG:
- 2026-10-14: Expose planningState in the device representation (STORY-009)
- 2026-10-13: Add hook, recommendation and lastPower routes (STORY-010)
- 2026-10-12: Add planning request routes (STORY-006)
- 2026-10-12: Initial creation (STORY-006)

TODO:
- None
"""

import logging
from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from semp_gateway.api.deps import Registry, TargetDevice
from semp_gateway.models import DeviceCreate, DeviceSnapshot, DeviceUpdate, Timeframe

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["management"])


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------


class CreateDeviceRequest(BaseModel):
    """Body of POST /api/devices."""

    device: DeviceCreate


class UpdateDeviceRequest(BaseModel):
    """Body of PUT /api/devices/{id}."""

    device: DeviceUpdate


class PlanningWindowIn(BaseModel):
    """Planning window bounds as posted by operators.

    Fields are optional here so that a missing bound is reported by the
    device's own window validation rather than as a schema error.
    """

    model_config = ConfigDict(populate_by_name=True)

    earliest_start: int | None = Field(default=None, alias="EarliestStart")
    latest_end: int | None = Field(default=None, alias="LatestEnd")
    min_running_time: int | None = Field(default=None, alias="MinRunningTime")
    max_running_time: int | None = Field(default=None, alias="MaxRunningTime")


class PlanningRequestBody(BaseModel):
    """Body of POST /api/devices/{id}/planningRequests."""

    planning: PlanningWindowIn = PlanningWindowIn()


class HookIn(BaseModel):
    """Body of POST /api/devices/{id}/hook."""

    model_config = ConfigDict(populate_by_name=True)

    hook_url: str | None = Field(default=None, alias="hookURL")


class PowerIn(BaseModel):
    """Last measured power as posted by operators."""

    model_config = ConfigDict(populate_by_name=True)

    watts: int | None = Field(default=None, alias="Watts")
    min_power: int | None = Field(default=None, alias="MinPower")
    max_power: int | None = Field(default=None, alias="MaxPower")


class LastPowerBody(BaseModel):
    """Body of PUT /api/devices/{id}/lastPower."""

    power: PowerIn = PowerIn()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def envelope(status: int, message: str, data: Any = None) -> JSONResponse:
    """Build a management response envelope.

    ``data`` is omitted from the body when it is None.
    """
    content: dict[str, Any] = {"status": status, "message": message}
    if data is not None:
        content["data"] = data
    return JSONResponse(status_code=status, content=content)


def _device_to_rest(snap: DeviceSnapshot) -> dict:
    """Serialise a device snapshot to the camelCase REST representation."""
    info = snap.info
    return {
        "deviceId": snap.device_id,
        "name": info.name,
        "type": info.device_type,
        "measurementMethod": info.measurement_method.value,
        "interruptionsAllowed": info.interruptions_allowed,
        "maxPower": info.max_power,
        "emSignalsAccepted": snap.status.em_signals_accepted,
        "status": snap.status.status.value,
        "vendor": info.vendor,
        "serialNr": info.serial_nr,
        "absoluteTimestamps": info.absolute_timestamps,
        "optionalEnergy": info.optional_energy,
        "minOnTime": info.min_on_time,
        "minOffTime": info.min_off_time,
        "url": info.url,
        "hookURL": snap.notification_target,
        "planningState": snap.planning_state.value,
    }


def _window_to_rest(device_id: str, window: Timeframe) -> dict:
    return {
        "DeviceId": device_id,
        "EarliestStart": window.earliest_start,
        "LatestEnd": window.latest_end,
        "MinRunningTime": window.min_running_time,
        "MaxRunningTime": window.max_running_time,
    }


# ---------------------------------------------------------------------------
# Devices
# ---------------------------------------------------------------------------


@router.get("/devices")
async def list_devices(registry: Registry) -> JSONResponse:
    devices = registry.get_all()
    return envelope(200, "OK", [_device_to_rest(d.snapshot()) for d in devices])


@router.post("/devices")
async def create_device(body: CreateDeviceRequest, registry: Registry) -> JSONResponse:
    """Register a new device; 405 if the id is already taken."""
    registry.create(body.device.device_id, body.device)
    return envelope(200, "OK")


@router.get("/devices/{device_id}")
async def get_device(device: TargetDevice) -> JSONResponse:
    return envelope(200, "OK", _device_to_rest(device.snapshot()))


@router.put("/devices/{device_id}")
async def update_device(
    device_id: str,
    body: UpdateDeviceRequest,
    registry: Registry,
) -> JSONResponse:
    """Apply a partial update; only fields present in the body change."""
    registry.replace_or_update(device_id, body.device)
    return envelope(200, "OK")


@router.delete("/devices/{device_id}")
async def delete_device(device_id: str, registry: Registry) -> JSONResponse:
    """Delete a device. Unknown ids are accepted as already deleted."""
    registry.delete(device_id)
    return envelope(200, "OK")


# ---------------------------------------------------------------------------
# Planning requests
# ---------------------------------------------------------------------------


@router.get("/devices/{device_id}/planningRequests")
async def list_planning_requests(device: TargetDevice) -> JSONResponse:
    windows = device.get_planning_windows()
    return envelope(200, "OK", [_window_to_rest(device.id, w) for w in windows])


@router.post("/devices/{device_id}/planningRequests")
async def add_planning_request(
    device: TargetDevice,
    body: PlanningRequestBody,
) -> JSONResponse:
    """Queue a planning window; 400 if a bound is missing or inverted."""
    planning = body.planning
    device.add_planning_window(
        planning.earliest_start,
        planning.latest_end,
        planning.min_running_time,
        planning.max_running_time,
    )
    return envelope(200, "OK")


@router.delete("/devices/{device_id}/planningRequests")
async def clear_planning_requests(device: TargetDevice) -> JSONResponse:
    device.clear_planning_windows()
    return envelope(200, "OK")


# ---------------------------------------------------------------------------
# Hooks, recommendation, last power
# ---------------------------------------------------------------------------


@router.post("/devices/{device_id}/hook")
async def set_hook(device: TargetDevice, body: HookIn) -> JSONResponse:
    device.set_notification_target(body.hook_url)
    logger.info("Registered hook for device %s", device.id)
    return envelope(200, "OK")


@router.delete("/devices/{device_id}/hook")
async def unset_hook(device: TargetDevice) -> JSONResponse:
    device.clear_notification_target()
    return envelope(200, "OK")


@router.get("/devices/{device_id}/recommendation")
async def get_recommendation(device: TargetDevice) -> JSONResponse:
    """Return the last recommendation, or 404 if none was received yet."""
    recommendation = device.last_recommendation
    if recommendation is None:
        return envelope(404, "No recommendation for device found")
    return envelope(200, "OK", recommendation.to_control_dict(device.id))


@router.put("/devices/{device_id}/lastPower")
async def set_last_power(device: TargetDevice, body: LastPowerBody) -> JSONResponse:
    power = body.power
    device.set_last_power(power.watts, power.min_power, power.max_power)
    return envelope(200, "OK")
