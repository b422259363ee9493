"""
Error taxonomy for the SEMP gateway core.

Every failure the registry, device or translator can report is a subclass
of GatewayError. Adapters map the concrete classes onto HTTP status codes:

- DeviceNotFoundError   -> 404
- DeviceConflictError   -> 405
- DeviceValidationError -> 400 (PlanningWindowError, PowerReadingError, HookError)
- ControlMessageError   -> 400

CHANGELOG:
- 2026-10-12: Split DeviceValidationError into window/power/hook kinds (STORY-006)
- 2026-10-10: Initial creation (STORY-002)

TODO:
- None
"""

from __future__ import annotations


class GatewayError(Exception):
    """Base class for all errors raised by the gateway core."""


class DeviceNotFoundError(GatewayError):
    """No device is registered under the requested id."""

    def __init__(self, device_id: str) -> None:
        super().__init__(f"Device '{device_id}' not found")
        self.device_id = device_id


class DeviceConflictError(GatewayError):
    """A device with the requested id is already registered."""

    def __init__(self, device_id: str) -> None:
        super().__init__(
            f"Device '{device_id}' already exists. Use update request."
        )
        self.device_id = device_id


class DeviceValidationError(GatewayError):
    """A device mutation was rejected before any state was changed."""


class PlanningWindowError(DeviceValidationError):
    """Planning window bounds are missing or inconsistent."""


class PowerReadingError(DeviceValidationError):
    """Last-power payload is missing a field or has a malformed value."""


class HookError(DeviceValidationError):
    """Notification hook URL is missing or blank."""


class ControlMessageError(GatewayError):
    """Inbound EM2Device control message could not be decoded."""
