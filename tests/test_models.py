"""
Tests for the pydantic value types.

Validates planning window bounds, management payload aliases, and the
omitted-vs-set distinction of partial device updates.

CHANGELOG:
- 2026-10-12: Add DeviceUpdate null rejection tests (STORY-006)
- 2026-10-10: Initial creation (STORY-002)

TODO:
- None
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from semp_gateway.models import (
    ControlDirective,
    DeviceCreate,
    DeviceUpdate,
    MeasurementMethod,
    OperatingStatus,
    Recommendation,
    Timeframe,
)


class TestTimeframe:
    """Timeframe enforces ordered, non-negative bounds."""

    def test_valid_window(self) -> None:
        tf = Timeframe(
            earliest_start=0, latest_end=3600, min_running_time=600, max_running_time=1200
        )
        assert tf.latest_end == 3600

    def test_equal_bounds_allowed(self) -> None:
        tf = Timeframe(
            earliest_start=10, latest_end=10, min_running_time=5, max_running_time=5
        )
        assert tf.earliest_start == tf.latest_end

    def test_inverted_interval_rejected(self) -> None:
        with pytest.raises(ValidationError, match="EarliestStart"):
            Timeframe(
                earliest_start=10, latest_end=5, min_running_time=0, max_running_time=1
            )

    def test_inverted_running_time_rejected(self) -> None:
        with pytest.raises(ValidationError, match="MinRunningTime"):
            Timeframe(
                earliest_start=0, latest_end=100, min_running_time=50, max_running_time=10
            )

    def test_negative_value_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Timeframe(
                earliest_start=-1, latest_end=100, min_running_time=0, max_running_time=10
            )

    def test_frozen(self) -> None:
        tf = Timeframe(
            earliest_start=0, latest_end=1, min_running_time=0, max_running_time=1
        )
        with pytest.raises(ValidationError):
            tf.latest_end = 2  # type: ignore[misc]


class TestDeviceCreate:
    """DeviceCreate decodes the camelCase REST body."""

    def test_camel_case_aliases(self) -> None:
        create = DeviceCreate.model_validate(
            {
                "deviceId": "F-11223344-112233445566-00",
                "name": "Dishwasher",
                "type": "DishWasher",
                "measurementMethod": "Measurement",
                "interruptionsAllowed": False,
                "maxPower": 2200,
                "emSignalsAccepted": True,
                "status": "Off",
                "vendor": "ACME",
                "serialNr": "SN-1",
                "absoluteTimestamps": False,
                "optionalEnergy": True,
                "minOnTime": 1800,
                "minOffTime": 600,
                "url": "http://dishwasher.local",
            }
        )
        info = create.build_info()
        assert info.device_type == "DishWasher"
        assert info.measurement_method is MeasurementMethod.MEASUREMENT
        assert info.interruptions_allowed is False
        assert info.serial_nr == "SN-1"
        assert info.min_on_time == 1800
        assert create.build_status().status is OperatingStatus.OFF

    def test_defaults_for_optional_fields(self) -> None:
        create = DeviceCreate.model_validate(
            {"deviceId": "dev-1", "name": "Heater", "maxPower": 1000}
        )
        info = create.build_info()
        assert info.device_type == "Other"
        assert info.min_on_time is None
        assert info.url is None
        status = create.build_status()
        assert status.em_signals_accepted is True

    def test_missing_device_id_rejected(self) -> None:
        with pytest.raises(ValidationError):
            DeviceCreate.model_validate({"name": "Heater", "maxPower": 1000})

    def test_unknown_status_rejected(self) -> None:
        with pytest.raises(ValidationError):
            DeviceCreate.model_validate(
                {"deviceId": "d", "name": "n", "maxPower": 1, "status": "Broken"}
            )


class TestDeviceUpdate:
    """DeviceUpdate distinguishes omitted fields from falsy values."""

    def test_only_set_fields_reported(self) -> None:
        update = DeviceUpdate.model_validate({"maxPower": 0, "interruptionsAllowed": False})
        assert update.info_changes() == {"max_power": 0, "interruptions_allowed": False}
        assert update.status_changes() == {}

    def test_status_fields_split_out(self) -> None:
        update = DeviceUpdate.model_validate({"status": "On", "emSignalsAccepted": False})
        assert update.info_changes() == {}
        assert update.status_changes() == {
            "status": OperatingStatus.ON,
            "em_signals_accepted": False,
        }

    def test_empty_update(self) -> None:
        update = DeviceUpdate.model_validate({})
        assert update.info_changes() == {}
        assert update.status_changes() == {}

    def test_explicit_null_rejected(self) -> None:
        with pytest.raises(ValidationError, match="name must not be null"):
            DeviceUpdate.model_validate({"name": None})

    def test_invalid_max_power_rejected(self) -> None:
        with pytest.raises(ValidationError):
            DeviceUpdate.model_validate({"maxPower": "lots"})


class TestRecommendation:
    def test_directive_to_recommendation(self) -> None:
        directive = ControlDirective(
            device_id="dev-1", on=True, recommended_power=500, timestamp=0
        )
        assert directive.to_recommendation() == Recommendation(
            on=True, recommended_power=500, timestamp=0
        )

    def test_to_control_dict(self) -> None:
        rec = Recommendation(on=False, recommended_power=0, timestamp=42)
        assert rec.to_control_dict("dev-1") == {
            "DeviceId": "dev-1",
            "On": False,
            "RecommendedPowerConsumption": 0,
            "Timestamp": 42,
        }

    def test_empty_device_id_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ControlDirective(device_id="", on=True, recommended_power=1, timestamp=0)
