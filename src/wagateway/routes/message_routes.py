"""
Routes for sending messages through a session.

- POST /api/messages/send
- POST /api/messages/send-media
"""

from typing import Any

from starlette.requests import Request
from starlette.responses import JSONResponse

from wagateway.errors import GatewayError
from wagateway.logger import get_logger
from wagateway.models import SendMediaRequest, SendMessageRequest, SendMessageResponse
from wagateway.routes._common import (
    BadRequest,
    bad_request,
    error_response,
    get_registry,
    not_initialized,
    parse_body,
)

logger = get_logger(__name__)


async def deliver(
    request: Request, session_id: str, recipient: str, content: dict[str, Any]
) -> JSONResponse:
    """Send ``content`` through the session and build the API answer."""
    registry = get_registry(request)
    if registry is None:
        return not_initialized()

    try:
        message_id = await registry.send_message(session_id, recipient, content)
    except GatewayError as e:
        return error_response(e)

    logger.info(f"Sent message {message_id} via session '{session_id}'")
    resp = SendMessageResponse(message_id=message_id)
    return JSONResponse(resp.model_dump(by_alias=True))


async def send_message(request: Request) -> JSONResponse:
    """
    POST /api/messages/send

    Body: {"sessionId": "default", "to": "123@s.whatsapp.net", "message": "hi"}
    """
    try:
        body = await parse_body(request, SendMessageRequest)
    except BadRequest as e:
        return bad_request(e)
    return await deliver(request, body.session_id, body.to, {"text": body.message})


async def send_media(request: Request) -> JSONResponse:
    """
    POST /api/messages/send-media

    Body: {"sessionId": "default", "to": "...", "mediaUrl": "https://...",
           "caption": "optional", "mediaType": "image|video|audio"}
    """
    try:
        body = await parse_body(request, SendMediaRequest)
    except BadRequest as e:
        return bad_request(e)
    return await deliver(request, body.session_id, body.to, body.to_content())
