"""
Shared helpers for route handlers.
"""

import json
from typing import Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse

from wagateway.errors import GatewayError
from wagateway.sessions.registry import SessionRegistry
from wagateway.webhooks.dispatcher import WebhookDispatcher

ModelT = TypeVar("ModelT", bound=BaseModel)


class BadRequest(Exception):
    pass


def get_registry(request: Request) -> Optional[SessionRegistry]:
    """Get the SessionRegistry from app state."""
    return getattr(request.app.state, "registry", None)


def get_dispatcher(request: Request) -> Optional[WebhookDispatcher]:
    return getattr(request.app.state, "dispatcher", None)


def error_response(error: GatewayError) -> JSONResponse:
    return JSONResponse(error.to_dict(), status_code=error.status_code)


def not_initialized() -> JSONResponse:
    return JSONResponse(
        {"error": "Gateway not initialized", "code": "not_initialized"},
        status_code=503,
    )


async def parse_body(request: Request, model: Type[ModelT]) -> ModelT:
    """
    Validate the JSON body against ``model``.

    Raises:
        BadRequest: With a readable message when the body is unusable.
    """
    raw = await request.body()
    try:
        body = json.loads(raw) if raw.strip() else {}
    except ValueError:
        raise BadRequest("Invalid JSON body") from None

    if body is None:
        body = {}
    if not isinstance(body, dict):
        raise BadRequest("JSON body must be an object")

    try:
        return model.model_validate(body)
    except ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'body'}: {err['msg']}"
            for err in e.errors()
        )
        raise BadRequest(details) from None


def bad_request(error: BadRequest) -> JSONResponse:
    return JSONResponse({"error": str(error), "code": "bad_request"}, status_code=400)
