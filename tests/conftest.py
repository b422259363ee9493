"""
Shared test fixtures for the SEMP gateway tests.

Provides an isolated environment for GatewaySettings, a registry wired to
a recording notifier, and TestClients for both listeners.

CHANGELOG:
- 2026-10-16: Add semp_client fixture with fixed UPnP settings (STORY-012)
- 2026-10-12: Add api_client fixture (STORY-006)
- 2026-10-10: Initial creation (STORY-001)

TODO:
- None
"""

from __future__ import annotations

import threading
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from semp_gateway.api import create_api_app, create_semp_app
from semp_gateway.config import GatewaySettings
from semp_gateway.models import Recommendation
from semp_gateway.registry import DeviceRegistry

# All GatewaySettings environment variable names, used for cleanup.
_ALL_GATEWAY_ENV_VARS = (
    "GATEWAY_HOST",
    "ADVERTISED_IP",
    "SEMP_PORT",
    "API_PORT",
    "GATEWAY_UUID",
    "FRIENDLY_NAME",
    "MANUFACTURER",
    "HOOK_TIMEOUT_S",
    "HOOK_WORKERS",
    "LOG_LEVEL",
)


class RecordingNotifier:
    """Notifier double that records every call."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Recommendation, str | None]] = []
        self._lock = threading.Lock()

    def notify(
        self,
        device_id: str,
        recommendation: Recommendation,
        target: str | None,
    ) -> None:
        with self._lock:
            self.calls.append((device_id, recommendation, target))


@pytest.fixture(autouse=True)
def _clean_gateway_env(monkeypatch: pytest.MonkeyPatch, tmp_path: str) -> None:
    """Remove all gateway env vars and isolate from .env files before each test."""
    for var in _ALL_GATEWAY_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def registry(notifier: RecordingNotifier) -> DeviceRegistry:
    """Empty registry wired to the recording notifier."""
    return DeviceRegistry(notifier=notifier)


@pytest.fixture()
def settings() -> GatewaySettings:
    """Settings with fixed UPnP identity for deterministic description.xml."""
    return GatewaySettings(
        gateway_uuid="2fac1234-31f8-11b4-a222-08002b34c003",
        advertised_ip="192.168.1.5",
        semp_port=9980,
        api_port=9981,
        friendly_name="Test Gateway",
        manufacturer="test-vendor",
    )


@pytest.fixture()
def api_client(registry: DeviceRegistry) -> Generator[TestClient, None, None]:
    """TestClient for the management listener."""
    with TestClient(create_api_app(registry)) as test_client:
        yield test_client


@pytest.fixture()
def semp_client(
    registry: DeviceRegistry,
    settings: GatewaySettings,
) -> Generator[TestClient, None, None]:
    """TestClient for the SEMP listener."""
    with TestClient(create_semp_app(registry, settings)) as test_client:
        yield test_client
