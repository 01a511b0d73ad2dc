"""
Routes for the webhook destination.
"""

from starlette.requests import Request
from starlette.responses import JSONResponse

from wagateway.routes._common import (
    BadRequest,
    bad_request,
    get_dispatcher,
    not_initialized,
    parse_body,
)
from wagateway.models import RegisterWebhookRequest


async def register_webhook(request: Request) -> JSONResponse:
    """POST /api/webhook/register — Body: {"url": "https://...", "secret": "..."}"""
    dispatcher = get_dispatcher(request)
    if dispatcher is None:
        return not_initialized()

    try:
        body = await parse_body(request, RegisterWebhookRequest)
    except BadRequest as e:
        return bad_request(e)

    config = dispatcher.configure(body.url, body.secret)
    return JSONResponse(
        {"success": True, "url": config.url, "hasSecret": bool(config.secret)}
    )


async def get_webhook(request: Request) -> JSONResponse:
    """GET /api/webhook — Current destination (the secret is never returned)."""
    dispatcher = get_dispatcher(request)
    if dispatcher is None:
        return not_initialized()

    config = dispatcher.config
    return JSONResponse({"url": config.url, "hasSecret": bool(config.secret)})
