"""
HTTP adapters for the SEMP gateway.

Exports the factories for the SEMP protocol listener and the management
listener.

CHANGELOG:
- 2026-10-11: Initial creation (STORY-005)

TODO:
- None
"""

from semp_gateway.api.app import create_api_app, create_semp_app

__all__ = ["create_api_app", "create_semp_app"]
