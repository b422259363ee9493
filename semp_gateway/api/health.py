"""
Liveness probe mounted on both the SEMP and the management listener.

GET /health answers from the listener's own event loop without touching
the registry, so a container healthcheck can tell which of the two
listeners has stopped accepting connections.

CHANGELOG:
- 2026-10-16: Initial creation (STORY-013)

TODO:
- None
"""

from fastapi import APIRouter

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, str]:
    """Report that this listener is serving requests."""
    return {"status": "ok"}
