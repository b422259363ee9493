"""
Tests for XML encoding of Device2EM, EM2Device parsing and description.xml.

CHANGELOG:
- 2026-10-16: Add description.xml tests (STORY-012)
- 2026-10-11: Initial creation (STORY-005)

TODO:
- None
"""

from __future__ import annotations

import xml.etree.ElementTree as ET

import pytest

from semp_gateway.device import Device
from semp_gateway.errors import ControlMessageError
from semp_gateway.models import DeviceInfo
from semp_gateway.translator import SEMP_NAMESPACE, to_wire_document
from semp_gateway.xml_codec import (
    SEMP_SERVICE_NAMESPACE,
    UPNP_DEVICE_NAMESPACE,
    build_description_xml,
    encode_wire_document,
    parse_control_message,
)

NS = {"s": SEMP_NAMESPACE}


def _encode(*devices: Device) -> ET.Element:
    return ET.fromstring(encode_wire_document(to_wire_document(devices)))


def _make_device(device_id: str, **overrides: object) -> Device:
    fields: dict[str, object] = {"name": f"Device {device_id}", "max_power": 2000}
    fields.update(overrides)
    return Device(device_id, info=DeviceInfo(**fields))


class TestEncodeWireDocument:
    def test_declaration_and_root(self) -> None:
        raw = encode_wire_document(to_wire_document([]))
        assert raw.startswith(b"<?xml")
        root = ET.fromstring(raw)
        assert root.tag == f"{{{SEMP_NAMESPACE}}}Device2EM"

    def test_block_order_and_counts(self) -> None:
        a, b = _make_device("a"), _make_device("b")
        b.add_planning_window(0, 3600, 600, 1200)

        root = _encode(a, b)

        tags = [child.tag.split("}")[1] for child in root]
        assert tags == [
            "DeviceInfo",
            "DeviceInfo",
            "DeviceStatus",
            "DeviceStatus",
            "PlanningRequest",
        ]

    def test_no_planning_request_when_all_empty(self) -> None:
        root = _encode(_make_device("a"), _make_device("b"))
        assert root.findall("s:PlanningRequest", NS) == []

    def test_device_info_content(self) -> None:
        root = _encode(_make_device("a", interruptions_allowed=False, min_off_time=300))
        info = root.find("s:DeviceInfo", NS)
        assert info is not None
        assert info.findtext("s:Identification/s:DeviceId", namespaces=NS) == "a"
        assert info.findtext("s:Identification/s:DeviceName", namespaces=NS) == "Device a"
        assert (
            info.findtext("s:Characteristics/s:MaxPowerConsumption", namespaces=NS)
            == "2000"
        )
        assert info.findtext("s:Characteristics/s:MinOffTime", namespaces=NS) == "300"
        assert info.find("s:Characteristics/s:MinOnTime", NS) is None
        assert info.find("s:Identification/s:DeviceURL", NS) is None
        assert (
            info.findtext(
                "s:Capabilities/s:Interruptions/s:InterruptionsAllowed", namespaces=NS
            )
            == "false"
        )
        assert (
            info.findtext("s:Capabilities/s:CurrentPower/s:Method", namespaces=NS)
            == "Estimation"
        )

    def test_device_status_with_power(self) -> None:
        device = _make_device("a")
        device.set_last_power(300, 100, 500)
        status = _encode(device).find("s:DeviceStatus", NS)
        assert status is not None
        assert status.findtext("s:EMSignalsAccepted", namespaces=NS) == "true"
        assert status.findtext("s:Status", namespaces=NS) == "Off"
        power = status.find("s:PowerConsumption/s:PowerInfo", NS)
        assert power is not None
        assert power.findtext("s:AveragePower", namespaces=NS) == "300"
        assert power.findtext("s:MinPower", namespaces=NS) == "100"
        assert power.findtext("s:MaxPower", namespaces=NS) == "500"
        assert power.findtext("s:AveragingInterval", namespaces=NS) == "60"

    def test_device_status_without_power(self) -> None:
        status = _encode(_make_device("a")).find("s:DeviceStatus", NS)
        assert status is not None
        assert status.find("s:PowerConsumption", NS) is None

    def test_timeframes(self) -> None:
        device = _make_device("a")
        device.add_planning_window(0, 3600, 600, 1200)
        device.add_planning_window(7200, 10800, 60, 120)

        frames = _encode(device).findall("s:PlanningRequest/s:Timeframe", NS)

        assert len(frames) == 2
        assert frames[0].findtext("s:DeviceId", namespaces=NS) == "a"
        assert frames[0].findtext("s:LatestEnd", namespaces=NS) == "3600"
        assert frames[1].findtext("s:EarliestStart", namespaces=NS) == "7200"
        assert frames[1].findtext("s:MaxRunningTime", namespaces=NS) == "120"


class TestParseControlMessage:
    def test_parses_with_declaration(self) -> None:
        body = (
            b'<?xml version="1.0" encoding="utf-8"?>'
            b'<EM2Device xmlns="http://www.sma.de/communication/schema/SEMP/v1">'
            b"<DeviceControl><DeviceId>a</DeviceId></DeviceControl></EM2Device>"
        )
        root = parse_control_message(body)
        assert root.tag.endswith("EM2Device")

    @pytest.mark.parametrize("body", [b"", b"   "])
    def test_empty_body_rejected(self, body: bytes) -> None:
        with pytest.raises(ControlMessageError, match="Empty"):
            parse_control_message(body)

    def test_malformed_body_rejected(self) -> None:
        with pytest.raises(ControlMessageError, match="Malformed"):
            parse_control_message(b"<EM2Device><DeviceControl>")


class TestDescriptionXml:
    def test_description_content(self) -> None:
        raw = build_description_xml(
            uuid="abc-123",
            ip_address="192.168.1.5",
            port=9980,
            friendly_name="Test Gateway",
            manufacturer="test-vendor",
        )
        ns = {"u": UPNP_DEVICE_NAMESPACE, "semp": SEMP_SERVICE_NAMESPACE}
        root = ET.fromstring(raw)

        assert root.tag == f"{{{UPNP_DEVICE_NAMESPACE}}}root"
        assert root.findtext("u:device/u:UDN", namespaces=ns) == "uuid:abc-123"
        assert root.findtext("u:device/u:friendlyName", namespaces=ns) == "Test Gateway"
        assert (
            root.findtext("u:device/semp:X_SEMPSERVICE/semp:server", namespaces=ns)
            == "http://192.168.1.5:9980"
        )
        assert (
            root.findtext("u:device/semp:X_SEMPSERVICE/semp:basePath", namespaces=ns)
            == "/semp"
        )
