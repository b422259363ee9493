"""
Device entity: capabilities, status, planning windows and recommendation.

Each Device guards its own state with a lock so that mutations of one
device are serialised while different devices can be mutated in parallel.
Readers take a DeviceSnapshot, which is built under the same lock and is
therefore never a half-applied mutation.

Operations:
- add_planning_window / clear_planning_windows / get_planning_windows
- set_last_power
- set_notification_target / clear_notification_target
- update(DeviceUpdate)
- apply_recommendation(Recommendation)
- snapshot()

CHANGELOG:
- 2026-10-18: Return the hook target from apply_recommendation; reset planning state on new windows (STORY-014)
- 2026-10-14: Track advisory planning state (STORY-009)
- 2026-10-12: Validate planning windows and power readings before mutating (STORY-006)
- 2026-10-10: Initial creation (STORY-003)

TODO:
- None
"""

from __future__ import annotations

import logging
import threading

from pydantic import ValidationError

from semp_gateway.errors import HookError, PlanningWindowError, PowerReadingError
from semp_gateway.models import (
    DeviceInfo,
    DeviceSnapshot,
    DeviceStatus,
    DeviceUpdate,
    OperatingStatus,
    PlanningState,
    PowerReading,
    Recommendation,
    Timeframe,
)

logger = logging.getLogger(__name__)


class Device:
    """A device known to the gateway.

    The id is fixed at construction. ``info`` and ``status`` are frozen
    pydantic models that are replaced as a whole on update.

    Args:
        device_id: Unique SEMP device id.
        info: Static capability attributes.
        status: Initial runtime status; defaults to Off, signals accepted.
    """

    def __init__(
        self,
        device_id: str,
        info: DeviceInfo,
        status: DeviceStatus | None = None,
    ) -> None:
        self._id = device_id
        self._lock = threading.RLock()
        self._info = info
        self._status = status if status is not None else DeviceStatus()
        self._windows: list[Timeframe] = []
        self._last_recommendation: Recommendation | None = None
        self._last_power: PowerReading | None = None
        self._notification_target: str | None = None
        # Set when a recommendation arrives while windows are queued.
        self._recommended = False

    def __repr__(self) -> str:
        return f"Device(id={self._id!r}, name={self._info.name!r})"

    # -----------------------------------------------------------------------
    # Read access
    # -----------------------------------------------------------------------

    @property
    def id(self) -> str:
        return self._id

    @property
    def info(self) -> DeviceInfo:
        with self._lock:
            return self._info

    @property
    def status(self) -> DeviceStatus:
        with self._lock:
            return self._status

    @property
    def last_recommendation(self) -> Recommendation | None:
        with self._lock:
            return self._last_recommendation

    @property
    def last_power(self) -> PowerReading | None:
        with self._lock:
            return self._last_power

    @property
    def notification_target(self) -> str | None:
        with self._lock:
            return self._notification_target

    @property
    def planning_state(self) -> PlanningState:
        with self._lock:
            return self._planning_state()

    def _planning_state(self) -> PlanningState:
        if not self._windows:
            return PlanningState.IDLE
        if self._recommended:
            return PlanningState.RECOMMENDED
        return PlanningState.REQUESTED

    def snapshot(self) -> DeviceSnapshot:
        """Return a consistent frozen copy of the whole device state."""
        with self._lock:
            return DeviceSnapshot(
                device_id=self._id,
                info=self._info,
                status=self._status,
                planning_windows=tuple(self._windows),
                last_recommendation=self._last_recommendation,
                last_power=self._last_power,
                notification_target=self._notification_target,
                planning_state=self._planning_state(),
            )

    # -----------------------------------------------------------------------
    # Planning windows
    # -----------------------------------------------------------------------

    def add_planning_window(
        self,
        earliest_start: int | None,
        latest_end: int | None,
        min_running_time: int | None,
        max_running_time: int | None,
    ) -> Timeframe:
        """Validate and append a planning window.

        Args:
            earliest_start: Earliest start, seconds (relative or absolute).
            latest_end: Latest end, seconds (relative or absolute).
            min_running_time: Minimum running time in seconds.
            max_running_time: Maximum running time in seconds.

        Returns:
            Timeframe: The window that was queued.

        Raises:
            PlanningWindowError: If a bound is missing, negative, or the
                window is inverted. The window queue is left unchanged.
        """
        try:
            window = Timeframe(
                earliest_start=earliest_start,
                latest_end=latest_end,
                min_running_time=min_running_time,
                max_running_time=max_running_time,
            )
        except ValidationError as exc:
            raise PlanningWindowError(
                f"Invalid planning window: {_first_error(exc)}"
            ) from exc

        with self._lock:
            self._windows.append(window)
            # A new window has not been recommended on yet.
            self._recommended = False
        logger.debug("Queued planning window for device %s: %s", self._id, window)
        return window

    def clear_planning_windows(self) -> None:
        with self._lock:
            self._windows.clear()
            self._recommended = False

    def get_planning_windows(self) -> tuple[Timeframe, ...]:
        with self._lock:
            return tuple(self._windows)

    # -----------------------------------------------------------------------
    # Power, hook, recommendation
    # -----------------------------------------------------------------------

    def set_last_power(
        self,
        watts: int | None,
        min_power: int | None,
        max_power: int | None,
    ) -> PowerReading:
        """Overwrite the last measured power reading.

        Raises:
            PowerReadingError: If any value is missing or not a
                non-negative integer.
        """
        try:
            reading = PowerReading(
                watts=watts, min_power=min_power, max_power=max_power
            )
        except ValidationError as exc:
            raise PowerReadingError(
                f"Invalid power reading: {_first_error(exc)}"
            ) from exc

        with self._lock:
            self._last_power = reading
        return reading

    def set_notification_target(self, url: str | None) -> None:
        if url is None or not url.strip():
            raise HookError("HookURL not specified")
        with self._lock:
            self._notification_target = url.strip()

    def clear_notification_target(self) -> None:
        with self._lock:
            self._notification_target = None

    def apply_recommendation(self, recommendation: Recommendation) -> str | None:
        """Store a recommendation and mirror its on/off flag into the status.

        Returns:
            str | None: The notification target, read under the same lock.
        """
        status = OperatingStatus.ON if recommendation.on else OperatingStatus.OFF
        with self._lock:
            self._last_recommendation = recommendation
            self._status = self._status.model_copy(update={"status": status})
            if self._windows:
                self._recommended = True
            return self._notification_target

    # -----------------------------------------------------------------------
    # Management update
    # -----------------------------------------------------------------------

    def update(self, changes: DeviceUpdate) -> None:
        """Apply the fields explicitly present in *changes*."""
        info_changes = changes.info_changes()
        status_changes = changes.status_changes()
        with self._lock:
            if info_changes:
                self._info = self._info.model_copy(update=info_changes)
            if status_changes:
                self._status = self._status.model_copy(update=status_changes)


def _first_error(exc: ValidationError) -> str:
    """Render the first pydantic error as ``field: message``."""
    err = exc.errors()[0]
    loc = ".".join(str(part) for part in err.get("loc", ()))
    msg = err.get("msg", "invalid value")
    return f"{loc}: {msg}" if loc else msg
