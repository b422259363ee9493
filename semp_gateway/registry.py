"""
In-memory device registry shared by the SEMP and management listeners.

The registry is constructed once at startup and handed to both listeners.
It owns every Device; callers only hold a reference for the duration of a
request.

Locking:
- ``_lock`` guards the id -> Device mapping and is held only for dict
  operations.
- Each Device carries its own lock, so mutations of different devices
  run in parallel and mutations of one device are serialised.
- The notifier is invoked after every lock has been released.

CHANGELOG:
- 2026-10-18: Reject control for a device deleted mid-apply (STORY-014)
- 2026-10-15: Invoke notifier outside the registry lock (STORY-011)
- 2026-10-13: Add apply_control with notifier dispatch (STORY-010)
- 2026-10-10: Initial creation (STORY-004)

TODO:
- None
"""

from __future__ import annotations

import logging
import threading

from semp_gateway.device import Device
from semp_gateway.errors import DeviceConflictError, DeviceNotFoundError
from semp_gateway.models import (
    ControlDirective,
    DeviceCreate,
    DeviceUpdate,
    Recommendation,
)
from semp_gateway.notifier import Notifier, NullNotifier

logger = logging.getLogger(__name__)


class DeviceRegistry:
    """Authoritative store of all devices, keyed by id in insertion order.

    Args:
        notifier: Capability called with ``(device_id, recommendation,
            target)`` after a control directive is applied. Defaults to a
            NullNotifier.

    Usage::

        registry = DeviceRegistry(notifier=HookNotifier())
        registry.create("F-11223344-112233445566-00", DeviceCreate(...))
        registry.apply_control(directive)
    """

    def __init__(self, notifier: Notifier | None = None) -> None:
        self._devices: dict[str, Device] = {}
        self._lock = threading.Lock()
        self._notifier: Notifier = notifier if notifier is not None else NullNotifier()

    def __len__(self) -> int:
        with self._lock:
            return len(self._devices)

    def __contains__(self, device_id: object) -> bool:
        with self._lock:
            return device_id in self._devices

    # -----------------------------------------------------------------------
    # Lookup
    # -----------------------------------------------------------------------

    def get(self, device_id: str) -> Device:
        """Return the device registered under *device_id*.

        Raises:
            DeviceNotFoundError: If no such device exists.
        """
        with self._lock:
            device = self._devices.get(device_id)
        if device is None:
            raise DeviceNotFoundError(device_id)
        return device

    def get_all(self) -> list[Device]:
        """Return all devices in registration order."""
        with self._lock:
            return list(self._devices.values())

    # -----------------------------------------------------------------------
    # Mutation
    # -----------------------------------------------------------------------

    def create(self, device_id: str, attributes: DeviceCreate) -> Device:
        """Register a new device.

        Args:
            device_id: Id for the new device.
            attributes: Initial capability and status attributes.

        Returns:
            Device: The newly registered device.

        Raises:
            DeviceConflictError: If *device_id* is already registered. The
                existing device is left untouched.
        """
        device = Device(
            device_id,
            info=attributes.build_info(),
            status=attributes.build_status(),
        )
        with self._lock:
            if device_id in self._devices:
                raise DeviceConflictError(device_id)
            self._devices[device_id] = device
        logger.info("Added device %s", device_id)
        return device

    def replace_or_update(self, device_id: str, changes: DeviceUpdate) -> Device:
        """Apply a partial update to an existing device.

        Raises:
            DeviceNotFoundError: If no such device exists.
        """
        device = self.get(device_id)
        device.update(changes)
        logger.info(
            "Updated device %s (fields: %s)",
            device_id,
            ", ".join(sorted(changes.model_fields_set)) or "none",
        )
        return device

    def delete(self, device_id: str) -> None:
        """Remove a device. Removing an unknown id is a no-op."""
        with self._lock:
            removed = self._devices.pop(device_id, None)
        if removed is not None:
            logger.info("Deleted device %s", device_id)
        else:
            logger.debug("Delete of unknown device %s ignored", device_id)

    def apply_control(self, directive: ControlDirective) -> Recommendation:
        """Store a control directive as the target device's recommendation.

        The target device's recommendation and status are updated under
        its lock; then the notifier is called outside every lock. Notifier
        failures are logged and never propagate.

        Args:
            directive: Decoded EM2Device control directive.

        Returns:
            Recommendation: The recommendation now stored on the device.

        Raises:
            DeviceNotFoundError: If the directive targets an unknown device.
                Nothing is mutated in that case. Also raised, without
                notifying, if the device is deleted while the directive
                is being applied.
        """
        device = self.get(directive.device_id)
        recommendation = directive.to_recommendation()
        target = device.apply_recommendation(recommendation)
        with self._lock:
            still_registered = self._devices.get(directive.device_id) is device
        if not still_registered:
            # Deleted (or replaced) while the directive was being applied.
            raise DeviceNotFoundError(directive.device_id)
        logger.info(
            "Applied control for device %s: on=%s recommended_power=%d",
            directive.device_id,
            recommendation.on,
            recommendation.recommended_power,
        )

        try:
            self._notifier.notify(directive.device_id, recommendation, target)
        except Exception:
            logger.warning(
                "Notifier failed for device %s",
                directive.device_id,
                exc_info=True,
            )
        return recommendation
