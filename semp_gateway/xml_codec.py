"""
XML text encoding for the SEMP listener.

- encode_wire_document(doc): WireDocument -> Device2EM XML bytes.
- parse_control_message(body): raw POST body -> EM2Device element tree.
- build_description_xml(...): UPnP device description advertising the
  SEMP service base URL.

Uses xml.etree.ElementTree; element order follows the SEMP v1 schema
sequence.

CHANGELOG:
- 2026-10-16: Add UPnP description document (STORY-012)
- 2026-10-11: Initial creation (STORY-005)

TODO:
- None
"""

from __future__ import annotations

import xml.etree.ElementTree as ET

from semp_gateway.errors import ControlMessageError
from semp_gateway.translator import (
    WireDeviceInfo,
    WireDeviceStatus,
    WireDocument,
    WirePlanningRequest,
)

UPNP_DEVICE_NAMESPACE = "urn:schemas-upnp-org:device-1-0"
SEMP_SERVICE_NAMESPACE = "urn:schemas-simple-energy-management-protocol:service-1-0"
SEMP_DEVICE_TYPE = "urn:schemas-simple-energy-management-protocol:device:Gateway:1"
SEMP_BASE_PATH = "/semp"
SEMP_WS_VERSION = "1.1.0"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _text(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _add(parent: ET.Element, tag: str, value: object | None = None) -> ET.Element:
    element = ET.SubElement(parent, tag)
    if value is not None:
        element.text = _text(value)
    return element


def _serialize(root: ET.Element, default_namespace: str | None = None) -> bytes:
    ET.indent(root, space="    ")
    return ET.tostring(
        root,
        encoding="utf-8",
        xml_declaration=True,
        default_namespace=default_namespace,
    )


# ---------------------------------------------------------------------------
# Device2EM
# ---------------------------------------------------------------------------


def _encode_info(parent: ET.Element, info: WireDeviceInfo) -> None:
    block = _add(parent, "DeviceInfo")

    ident = _add(block, "Identification")
    _add(ident, "DeviceId", info.device_id)
    _add(ident, "DeviceName", info.device_name)
    _add(ident, "DeviceType", info.device_type)
    _add(ident, "DeviceSerial", info.device_serial)
    _add(ident, "DeviceVendor", info.device_vendor)
    if info.device_url:
        _add(ident, "DeviceURL", info.device_url)

    chars = _add(block, "Characteristics")
    _add(chars, "MaxPowerConsumption", info.max_power_consumption)
    if info.min_on_time is not None:
        _add(chars, "MinOnTime", info.min_on_time)
    if info.min_off_time is not None:
        _add(chars, "MinOffTime", info.min_off_time)

    caps = _add(block, "Capabilities")
    _add(_add(caps, "CurrentPower"), "Method", info.current_power_method)
    _add(_add(caps, "Timestamps"), "AbsoluteTimestamps", info.absolute_timestamps)
    _add(_add(caps, "Interruptions"), "InterruptionsAllowed", info.interruptions_allowed)
    _add(_add(caps, "Requests"), "OptionalEnergy", info.optional_energy)


def _encode_status(parent: ET.Element, status: WireDeviceStatus) -> None:
    block = _add(parent, "DeviceStatus")
    _add(block, "DeviceId", status.device_id)
    _add(block, "EMSignalsAccepted", status.em_signals_accepted)
    _add(block, "Status", status.status)
    if status.power_info is not None:
        power = _add(_add(block, "PowerConsumption"), "PowerInfo")
        _add(power, "AveragePower", status.power_info.average_power)
        _add(power, "MinPower", status.power_info.min_power)
        _add(power, "MaxPower", status.power_info.max_power)
        _add(power, "Timestamp", status.power_info.timestamp)
        _add(power, "AveragingInterval", status.power_info.averaging_interval)


def _encode_planning(parent: ET.Element, request: WirePlanningRequest) -> None:
    block = _add(parent, "PlanningRequest")
    for frame in request.timeframes:
        tf = _add(block, "Timeframe")
        _add(tf, "DeviceId", frame.device_id)
        _add(tf, "EarliestStart", frame.earliest_start)
        _add(tf, "LatestEnd", frame.latest_end)
        _add(tf, "MinRunningTime", frame.min_running_time)
        _add(tf, "MaxRunningTime", frame.max_running_time)


def encode_wire_document(doc: WireDocument) -> bytes:
    """Encode a WireDocument as a UTF-8 Device2EM XML document.

    Child elements are written unprefixed under the default SEMP
    namespace declared on the root.

    Args:
        doc: Document produced by ``translator.to_wire_document``.

    Returns:
        bytes: Indented XML including the ``<?xml ...?>`` declaration.
    """
    root = ET.Element("Device2EM", {"xmlns": doc.namespace})
    for info in doc.device_info:
        _encode_info(root, info)
    for status in doc.device_status:
        _encode_status(root, status)
    for request in doc.planning_requests:
        _encode_planning(root, request)
    return _serialize(root)


# ---------------------------------------------------------------------------
# EM2Device
# ---------------------------------------------------------------------------


def parse_control_message(body: bytes | str) -> ET.Element:
    """Parse a raw EM2Device POST body into an element tree.

    Raises:
        ControlMessageError: If the body is empty or not well-formed XML.
    """
    if not body or not body.strip():
        raise ControlMessageError("Empty control message")
    try:
        return ET.fromstring(body)
    except ET.ParseError as exc:
        raise ControlMessageError(f"Malformed control message XML: {exc}") from exc


# ---------------------------------------------------------------------------
# UPnP description
# ---------------------------------------------------------------------------


def build_description_xml(
    *,
    uuid: str,
    ip_address: str,
    port: int,
    friendly_name: str,
    manufacturer: str,
) -> bytes:
    """Build the UPnP ``description.xml`` advertising the SEMP service.

    Args:
        uuid: Globally unique gateway uuid (without the ``uuid:`` prefix).
        ip_address: Address the energy manager should contact.
        port: Port of the SEMP listener.
        friendly_name: Human readable gateway name.
        manufacturer: Manufacturer string.

    Returns:
        bytes: UTF-8 encoded description document.
    """
    ET.register_namespace("semp", SEMP_SERVICE_NAMESPACE)

    def upnp(tag: str) -> str:
        return f"{{{UPNP_DEVICE_NAMESPACE}}}{tag}"

    def semp(tag: str) -> str:
        return f"{{{SEMP_SERVICE_NAMESPACE}}}{tag}"

    root = ET.Element(upnp("root"))
    spec_version = _add(root, upnp("specVersion"))
    _add(spec_version, upnp("major"), 1)
    _add(spec_version, upnp("minor"), 0)

    device = _add(root, upnp("device"))
    _add(device, upnp("deviceType"), SEMP_DEVICE_TYPE)
    _add(device, upnp("friendlyName"), friendly_name)
    _add(device, upnp("manufacturer"), manufacturer)
    _add(device, upnp("modelName"), friendly_name)
    _add(device, upnp("UDN"), f"uuid:{uuid}")

    service = _add(device, semp("X_SEMPSERVICE"))
    _add(service, semp("server"), f"http://{ip_address}:{port}")
    _add(service, semp("basePath"), SEMP_BASE_PATH)
    _add(service, semp("transport"), "HTTP/Pull")
    _add(service, semp("exchangeFormat"), "XML")
    _add(service, semp("wsVersion"), SEMP_WS_VERSION)

    return _serialize(root, default_namespace=UPNP_DEVICE_NAMESPACE)
