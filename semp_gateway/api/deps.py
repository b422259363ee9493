"""
FastAPI dependency injection providers.

The registry is attached to ``app.state.registry`` by the app factories;
these providers hand it (or one of its devices) to route handlers.

CHANGELOG:
- 2026-10-13: Add get_device path-parameter dependency (STORY-006)
- 2026-10-11: Initial creation (STORY-005)
"""

from typing import Annotated

from fastapi import Depends, Request

from semp_gateway.device import Device
from semp_gateway.registry import DeviceRegistry


def get_registry(request: Request) -> DeviceRegistry:
    """Return the registry the application was constructed with."""
    return request.app.state.registry


# Type alias for injecting the registry via FastAPI Depends().
# Usage in route handlers:
#   async def my_route(registry: Registry):
#       devices = registry.get_all()
Registry = Annotated[DeviceRegistry, Depends(get_registry)]


def get_device(device_id: str, registry: Registry) -> Device:
    """Resolve the ``{device_id}`` path parameter to a registered device.

    Raises:
        DeviceNotFoundError: If the id is unknown (mapped to 404).
    """
    return registry.get(device_id)


TargetDevice = Annotated[Device, Depends(get_device)]
