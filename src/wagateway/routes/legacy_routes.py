"""
Single-session routes kept for existing clients.

Every handler here acts on the ``default`` session.
"""

from starlette.requests import Request
from starlette.responses import JSONResponse

from wagateway.config import DEFAULT_SESSION_ID
from wagateway.errors import GatewayError
from wagateway.models import (
    LegacySendMediaRequest,
    LegacySendMessageRequest,
    PairingCodeRequest,
)
from wagateway.routes._common import (
    BadRequest,
    bad_request,
    error_response,
    get_registry,
    not_initialized,
    parse_body,
)
from wagateway.routes.message_routes import deliver


async def get_qr(request: Request) -> JSONResponse:
    """GET /qr"""
    registry = get_registry(request)
    record = registry.find(DEFAULT_SESSION_ID) if registry is not None else None
    if record is None or not record.qr_code:
        return JSONResponse(
            {"error": "No QR code available", "code": "not_found"}, status_code=404
        )
    return JSONResponse({"qr": record.qr_code})


async def request_pairing_code(request: Request) -> JSONResponse:
    """POST /pairing-code — Body: {"phoneNumber": "..."}"""
    registry = get_registry(request)
    if registry is None:
        return not_initialized()

    try:
        body = await parse_body(request, PairingCodeRequest)
        code = await registry.request_pairing_code(
            DEFAULT_SESSION_ID, body.phone_number
        )
    except BadRequest as e:
        return bad_request(e)
    except GatewayError as e:
        return error_response(e)
    return JSONResponse({"code": code})


async def send_message(request: Request) -> JSONResponse:
    """POST /send-message — Body: {"jid": "...", "message": "..."}"""
    try:
        body = await parse_body(request, LegacySendMessageRequest)
    except BadRequest as e:
        return bad_request(e)
    return await deliver(request, DEFAULT_SESSION_ID, body.jid, {"text": body.message})


async def send_media(request: Request) -> JSONResponse:
    """POST /send-media — Body: {"jid", "mediaUrl", "caption?", "mediaType?"}"""
    try:
        body = await parse_body(request, LegacySendMediaRequest)
    except BadRequest as e:
        return bad_request(e)
    return await deliver(request, DEFAULT_SESSION_ID, body.jid, body.to_content())
