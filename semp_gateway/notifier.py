"""
Recommendation-change notifiers.

The registry calls ``notify(device_id, recommendation, target)`` after a
control directive has been stored and all locks are released. Notification
is fire-and-forget: the return value is ignored and no exception may reach
the caller.

Implementations:
- NullNotifier: does nothing (tests, or hooks disabled).
- HookNotifier: POSTs the recommendation as JSON to the device's hook URL
  on a background thread pool using httpx.

CHANGELOG:
- 2026-10-15: Dispatch hook POSTs on a thread pool (STORY-011)
- 2026-10-13: Initial creation (STORY-010)

TODO:
- None
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Protocol

import httpx

from semp_gateway.models import Recommendation

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT_S = 5.0
_DEFAULT_WORKERS = 4


class Notifier(Protocol):
    """Capability invoked when a device's recommendation changes."""

    def notify(
        self,
        device_id: str,
        recommendation: Recommendation,
        target: str | None,
    ) -> None: ...


class NullNotifier:
    """Notifier that ignores every notification."""

    def notify(
        self,
        device_id: str,
        recommendation: Recommendation,
        target: str | None,
    ) -> None:
        return None

    def close(self) -> None:
        return None


def build_hook_payload(device_id: str, recommendation: Recommendation) -> dict:
    """Build the JSON body posted to a device hook.

    Args:
        device_id: The device whose recommendation changed.
        recommendation: The newly stored recommendation.

    Returns:
        dict: DeviceControl-shaped body, e.g. ``{"DeviceId": ..., "On": true,
        "RecommendedPowerConsumption": 500, "Timestamp": 0}``.
    """
    return recommendation.to_control_dict(device_id)


class HookNotifier:
    """POSTs recommendation changes to per-device hook URLs.

    Devices without a hook URL are skipped. Each POST runs on a worker
    thread so the request that applied the control directive returns
    without waiting for the hook. Non-2xx responses and transport errors
    are logged and dropped; there is no retry.

    Args:
        timeout_s: Per-request timeout for the hook POST.
        max_workers: Size of the dispatch thread pool.
        client: Optional pre-built ``httpx.Client`` (used by tests).

    Usage::

        notifier = HookNotifier(timeout_s=5.0)
        registry = DeviceRegistry(notifier=notifier)
        ...
        notifier.close()
    """

    def __init__(
        self,
        timeout_s: float = _DEFAULT_TIMEOUT_S,
        max_workers: int = _DEFAULT_WORKERS,
        client: httpx.Client | None = None,
    ) -> None:
        if timeout_s <= 0:
            raise ValueError("Hook timeout must be > 0")
        self._client = client if client is not None else httpx.Client(timeout=timeout_s)
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="semp-hook",
        )

    def notify(
        self,
        device_id: str,
        recommendation: Recommendation,
        target: str | None,
    ) -> Future | None:
        """Schedule a hook POST for *device_id* if it has a target.

        Returns:
            Future | None: The pending dispatch, or None when skipped.
        """
        if not target:
            logger.debug("No hook registered for device %s, skipping", device_id)
            return None
        payload = build_hook_payload(device_id, recommendation)
        return self._executor.submit(self._post, device_id, target, payload)

    def close(self) -> None:
        """Wait for pending POSTs, then release the pool and HTTP client."""
        self._executor.shutdown(wait=True)
        self._client.close()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _post(self, device_id: str, target: str, payload: dict) -> bool:
        try:
            response = self._client.post(target, json=payload)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("Hook for device %s failed (network error): %s", device_id, exc)
            return False

        if response.is_success:
            logger.info("Notified hook for device %s (HTTP %d)", device_id, response.status_code)
            return True

        logger.warning(
            "Hook for device %s returned HTTP %d",
            device_id,
            response.status_code,
        )
        return False
