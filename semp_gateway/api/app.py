"""
Application factories for the SEMP and management listeners.

Both factories take the shared DeviceRegistry explicitly and store it on
``app.state.registry``; route handlers reach it through
``semp_gateway.api.deps``. The management app translates gateway errors
into response envelopes:

- DeviceNotFoundError            -> 404
- DeviceConflictError            -> 405
- DeviceValidationError          -> 400
- ControlMessageError            -> 400
- request body validation errors -> 400
- unknown routes and methods     -> 404 "Route not found"

CHANGELOG:
- 2026-10-18: Answer wrong-method requests with 404 "Route not found" (STORY-014)
- 2026-10-16: Add description.xml to the SEMP app state (STORY-012)
- 2026-10-13: Map gateway errors to envelopes (STORY-006)
- 2026-10-11: Initial creation (STORY-005)

TODO:
- None
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from semp_gateway.api.health import router as health_router
from semp_gateway.api.management import envelope
from semp_gateway.api.management import router as management_router
from semp_gateway.api.semp import router as semp_router
from semp_gateway.config import GatewaySettings
from semp_gateway.errors import (
    ControlMessageError,
    DeviceConflictError,
    DeviceNotFoundError,
    DeviceValidationError,
)
from semp_gateway.registry import DeviceRegistry
from semp_gateway.xml_codec import build_description_xml

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"


def create_semp_app(registry: DeviceRegistry, settings: GatewaySettings) -> FastAPI:
    """Build the SEMP protocol listener.

    Args:
        registry: The shared device registry.
        settings: Gateway settings; used for the UPnP description.

    Returns:
        FastAPI: Application serving description.xml and /semp/.
    """
    app = FastAPI(
        title="SEMP Gateway",
        description="SMA SEMP endpoint for the energy manager.",
        version=API_VERSION,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.registry = registry
    app.state.description_xml = build_description_xml(
        uuid=settings.gateway_uuid,
        ip_address=settings.advertised_ip,
        port=settings.semp_port,
        friendly_name=settings.friendly_name,
        manufacturer=settings.manufacturer,
    )

    app.include_router(health_router)
    # Registered last: its catch-all route swallows every other path.
    app.include_router(semp_router)
    return app


def create_api_app(registry: DeviceRegistry) -> FastAPI:
    """Build the management (REST) listener.

    Args:
        registry: The shared device registry.

    Returns:
        FastAPI: Application serving /api/devices and friends.
    """
    app = FastAPI(
        title="SEMP Gateway Management API",
        description="Register and control devices exposed over SEMP.",
        version=API_VERSION,
    )
    app.state.registry = registry

    app.include_router(health_router)
    app.include_router(management_router)
    _install_error_handlers(app)
    return app


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(DeviceNotFoundError)
    async def _not_found(request: Request, exc: DeviceNotFoundError) -> JSONResponse:
        return envelope(404, "Device not found")

    @app.exception_handler(DeviceConflictError)
    async def _conflict(request: Request, exc: DeviceConflictError) -> JSONResponse:
        logger.info("Rejected create for existing device %s", exc.device_id)
        return envelope(405, str(exc))

    @app.exception_handler(DeviceValidationError)
    async def _invalid(request: Request, exc: DeviceValidationError) -> JSONResponse:
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc)
        return envelope(400, str(exc))

    @app.exception_handler(ControlMessageError)
    async def _bad_control(request: Request, exc: ControlMessageError) -> JSONResponse:
        return envelope(400, str(exc))

    @app.exception_handler(RequestValidationError)
    async def _bad_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        detail = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}"
            for err in errors
        )
        logger.info("Rejected %s %s: %s", request.method, request.url.path, detail)
        return envelope(400, f"Invalid request. {detail}")

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # 405 is reserved for duplicate creates; wrong methods are unknown routes.
        if exc.status_code in (404, 405):
            return envelope(404, "Route not found")
        return envelope(exc.status_code, str(exc.detail))
