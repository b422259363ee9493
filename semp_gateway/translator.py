"""
Pure translation between device snapshots and the SEMP wire schema.

Outbound: ``to_wire_document(devices)`` turns registry devices into a
typed Device2EM document. Every device contributes one DeviceInfo and one
DeviceStatus block; a PlanningRequest block is emitted only for devices
with at least one queued planning window.

Inbound: ``from_control_message(tree)`` decodes a parsed EM2Device element
tree into a ControlDirective. Any missing or mistyped field raises
ControlMessageError; no partial directive is ever returned.

No I/O, no registry access, no clock. XML text encoding lives in
``semp_gateway.xml_codec``.

CHANGELOG:
- 2026-10-14: Accept namespaced EM2Device trees (STORY-008)
- 2026-10-12: Emit PowerConsumption from the last power reading (STORY-007)
- 2026-10-11: Initial creation (STORY-005)

TODO:
- None
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from xml.etree.ElementTree import Element

from pydantic import BaseModel, ConfigDict

from semp_gateway.device import Device
from semp_gateway.errors import ControlMessageError
from semp_gateway.models import ControlDirective, DeviceSnapshot

logger = logging.getLogger(__name__)

SEMP_NAMESPACE = "http://www.sma.de/communication/schema/SEMP/v1"

# PowerInfo values the gateway does not measure itself.
_POWER_TIMESTAMP = 0
_AVERAGING_INTERVAL_S = 60

_TRUE_VALUES = frozenset({"true", "1"})
_FALSE_VALUES = frozenset({"false", "0"})


# ---------------------------------------------------------------------------
# Wire document types
# ---------------------------------------------------------------------------


class _WireModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class WireDeviceInfo(_WireModel):
    """Device2EM/DeviceInfo block."""

    device_id: str
    device_name: str
    device_type: str
    device_serial: str
    device_vendor: str
    device_url: str | None = None
    max_power_consumption: int
    min_on_time: int | None = None
    min_off_time: int | None = None
    current_power_method: str
    absolute_timestamps: bool
    interruptions_allowed: bool
    optional_energy: bool


class WirePowerInfo(_WireModel):
    """DeviceStatus/PowerConsumption/PowerInfo block."""

    average_power: int
    min_power: int
    max_power: int
    timestamp: int = _POWER_TIMESTAMP
    averaging_interval: int = _AVERAGING_INTERVAL_S


class WireDeviceStatus(_WireModel):
    """Device2EM/DeviceStatus block."""

    device_id: str
    em_signals_accepted: bool
    status: str
    power_info: WirePowerInfo | None = None


class WireTimeframe(_WireModel):
    """PlanningRequest/Timeframe block."""

    device_id: str
    earliest_start: int
    latest_end: int
    min_running_time: int
    max_running_time: int


class WirePlanningRequest(_WireModel):
    """Device2EM/PlanningRequest block for one device."""

    device_id: str
    timeframes: tuple[WireTimeframe, ...]


class WireDocument(_WireModel):
    """Typed Device2EM document ready for XML encoding."""

    namespace: str = SEMP_NAMESPACE
    device_info: tuple[WireDeviceInfo, ...] = ()
    device_status: tuple[WireDeviceStatus, ...] = ()
    planning_requests: tuple[WirePlanningRequest, ...] = ()


# ---------------------------------------------------------------------------
# Outbound: devices -> Device2EM
# ---------------------------------------------------------------------------


def _info_block(snap: DeviceSnapshot) -> WireDeviceInfo:
    info = snap.info
    return WireDeviceInfo(
        device_id=snap.device_id,
        device_name=info.name,
        device_type=info.device_type,
        device_serial=info.serial_nr,
        device_vendor=info.vendor,
        device_url=info.url,
        max_power_consumption=info.max_power,
        min_on_time=info.min_on_time,
        min_off_time=info.min_off_time,
        current_power_method=info.measurement_method.value,
        absolute_timestamps=info.absolute_timestamps,
        interruptions_allowed=info.interruptions_allowed,
        optional_energy=info.optional_energy,
    )


def _status_block(snap: DeviceSnapshot) -> WireDeviceStatus:
    power_info = None
    if snap.last_power is not None:
        power_info = WirePowerInfo(
            average_power=snap.last_power.watts,
            min_power=snap.last_power.min_power,
            max_power=snap.last_power.max_power,
        )
    return WireDeviceStatus(
        device_id=snap.device_id,
        em_signals_accepted=snap.status.em_signals_accepted,
        status=snap.status.status.value,
        power_info=power_info,
    )


def _planning_block(snap: DeviceSnapshot) -> WirePlanningRequest:
    return WirePlanningRequest(
        device_id=snap.device_id,
        timeframes=tuple(
            WireTimeframe(
                device_id=snap.device_id,
                earliest_start=window.earliest_start,
                latest_end=window.latest_end,
                min_running_time=window.min_running_time,
                max_running_time=window.max_running_time,
            )
            for window in snap.planning_windows
        ),
    )


def to_wire_document(devices: Iterable[Device | DeviceSnapshot]) -> WireDocument:
    """Build the Device2EM document for *devices*, preserving their order.

    Devices whose planning-window queue is empty contribute no
    PlanningRequest block at all.

    Args:
        devices: Registry devices (or snapshots) in enumeration order.

    Returns:
        WireDocument: Typed document carrying the SEMP v1 namespace.
    """
    infos: list[WireDeviceInfo] = []
    statuses: list[WireDeviceStatus] = []
    planning: list[WirePlanningRequest] = []

    for device in devices:
        snap = device if isinstance(device, DeviceSnapshot) else device.snapshot()
        infos.append(_info_block(snap))
        statuses.append(_status_block(snap))
        if snap.planning_windows:
            planning.append(_planning_block(snap))

    return WireDocument(
        device_info=tuple(infos),
        device_status=tuple(statuses),
        planning_requests=tuple(planning),
    )


# ---------------------------------------------------------------------------
# Inbound: EM2Device -> ControlDirective
# ---------------------------------------------------------------------------


def _local_name(tag: str) -> str:
    """Strip an ElementTree ``{namespace}`` prefix from *tag*."""
    return tag.rsplit("}", 1)[-1]


def _children(element: Element, name: str) -> list[Element]:
    return [child for child in element if _local_name(child.tag) == name]


def _field_text(control: Element, name: str) -> str:
    found = _children(control, name)
    if not found:
        raise ControlMessageError(f"DeviceControl/{name} is missing")
    text = (found[0].text or "").strip()
    if not text:
        raise ControlMessageError(f"DeviceControl/{name} is empty")
    return text


def _parse_bool(name: str, text: str) -> bool:
    lowered = text.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ControlMessageError(f"DeviceControl/{name} is not a boolean: {text!r}")


def _parse_uint(name: str, text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise ControlMessageError(
            f"DeviceControl/{name} is not an integer: {text!r}"
        ) from None
    if value < 0:
        raise ControlMessageError(f"DeviceControl/{name} must be >= 0")
    return value


def from_control_message(tree: Element) -> ControlDirective:
    """Decode an ``EM2Device`` element tree into a ControlDirective.

    Reads ``EM2Device/DeviceControl/{DeviceId, On,
    RecommendedPowerConsumption, Timestamp}``. Namespaces on the elements
    are ignored.

    Args:
        tree: Root element of the parsed control message.

    Returns:
        ControlDirective: The decoded directive.

    Raises:
        ControlMessageError: If the root is not EM2Device, there is not
            exactly one DeviceControl, or any field is missing or mistyped.
    """
    if _local_name(tree.tag) != "EM2Device":
        raise ControlMessageError(
            f"Expected EM2Device root element, got {_local_name(tree.tag)!r}"
        )

    controls = _children(tree, "DeviceControl")
    if len(controls) != 1:
        raise ControlMessageError(
            f"Expected exactly one DeviceControl element, got {len(controls)}"
        )
    control = controls[0]

    directive = ControlDirective(
        device_id=_field_text(control, "DeviceId"),
        on=_parse_bool("On", _field_text(control, "On")),
        recommended_power=_parse_uint(
            "RecommendedPowerConsumption",
            _field_text(control, "RecommendedPowerConsumption"),
        ),
        timestamp=_parse_uint("Timestamp", _field_text(control, "Timestamp")),
    )
    logger.debug("Decoded control directive: %s", directive)
    return directive
