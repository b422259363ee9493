"""
SEMP protocol endpoints consumed by the energy manager.

- GET  /description.xml : UPnP description pointing at the SEMP base path.
- GET  /semp/           : Device2EM document for every registered device.
- POST /semp/           : EM2Device control message for one device.
- anything else         : logged as unmatched, empty 404.

Handlers only move bytes: decoding and encoding go through
``semp_gateway.xml_codec`` and ``semp_gateway.translator``, state through
the registry on ``app.state``.

CHANGELOG:
- 2026-10-16: Serve description.xml from app.state (STORY-012)
- 2026-10-14: Return 400/404 for rejected control messages (STORY-008)
- 2026-10-11: Initial creation (STORY-005)

TODO:
- None
"""

import logging

from fastapi import APIRouter, Request, Response

from semp_gateway.api.deps import Registry
from semp_gateway.errors import ControlMessageError, DeviceNotFoundError
from semp_gateway.translator import from_control_message, to_wire_document
from semp_gateway.xml_codec import encode_wire_document, parse_control_message

logger = logging.getLogger(__name__)

router = APIRouter(tags=["semp"])

XML_MEDIA_TYPE = "text/xml"


@router.get("/description.xml")
async def description(request: Request) -> Response:
    """Return the UPnP device description built at startup."""
    return Response(
        content=request.app.state.description_xml,
        media_type=XML_MEDIA_TYPE,
    )


@router.get("/semp")
@router.get("/semp/")
async def get_devices(registry: Registry) -> Response:
    """Return the Device2EM document for all registered devices.

    Args:
        registry: The shared device registry.

    Returns:
        Response: UTF-8 XML with DeviceInfo, DeviceStatus and, for devices
            with queued windows, PlanningRequest blocks.
    """
    devices = registry.get_all()
    document = to_wire_document(devices)
    logger.info(
        "Serving Device2EM for %d device(s), %d planning request(s)",
        len(document.device_info),
        len(document.planning_requests),
    )
    return Response(content=encode_wire_document(document), media_type=XML_MEDIA_TYPE)


@router.post("/semp")
@router.post("/semp/")
async def post_control(request: Request, registry: Registry) -> Response:
    """Apply an EM2Device control message.

    The body is decoded completely before the registry is touched; a
    malformed message is discarded.

    Returns:
        Response: Empty 200 on success.
            Empty 400 if the message cannot be decoded.
            Empty 404 if it targets an unknown device.
    """
    body = await request.body()
    try:
        directive = from_control_message(parse_control_message(body))
    except ControlMessageError as exc:
        logger.warning("Rejected control message: %s", exc)
        return Response(status_code=400)

    try:
        registry.apply_control(directive)
    except DeviceNotFoundError:
        logger.warning(
            "Control message for unknown device %s ignored",
            directive.device_id,
        )
        return Response(status_code=404)

    return Response(status_code=200)


@router.api_route(
    "/{path:path}",
    methods=["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"],
    include_in_schema=False,
)
async def unmatched(request: Request, path: str) -> Response:
    """Log requests the SEMP listener does not serve."""
    logger.info("Unmatched url... %s", request.url.path)
    if request.query_params:
        logger.info("Query: %s", dict(request.query_params))
    return Response(status_code=404)
