"""
Routes for session management.

- POST   /api/sessions/create
- GET    /api/sessions
- GET    /api/sessions/{session_id}/status
- GET    /api/sessions/{session_id}/qr
- POST   /api/sessions/{session_id}/pairing-code
- DELETE /api/sessions/{session_id}
"""

from starlette.requests import Request
from starlette.responses import JSONResponse

from wagateway.errors import GatewayError, NotFound
from wagateway.models import (
    CreateSessionRequest,
    PairingCodeRequest,
    SessionInfo,
    SessionListResponse,
)
from wagateway.routes._common import (
    BadRequest,
    bad_request,
    error_response,
    get_registry,
    not_initialized,
    parse_body,
)


async def create_session(request: Request) -> JSONResponse:
    """POST /api/sessions/create — Body: {"sessionId": "optional-id"}"""
    registry = get_registry(request)
    if registry is None:
        return not_initialized()

    try:
        body = await parse_body(request, CreateSessionRequest)
        record = await registry.create(body.session_id)
    except BadRequest as e:
        return bad_request(e)
    except GatewayError as e:
        return error_response(e)

    return JSONResponse(
        {
            "success": True,
            "sessionId": record.id,
            "status": record.status.value,
            "createdAt": record.created_at.isoformat(),
        },
        status_code=201,
    )


async def list_sessions(request: Request) -> JSONResponse:
    """GET /api/sessions — List all sessions."""
    registry = get_registry(request)
    if registry is None:
        return not_initialized()

    records = registry.list()
    resp = SessionListResponse(
        sessions=[SessionInfo.model_validate(r.to_dict()) for r in records],
        count=len(records),
    )
    return JSONResponse(resp.model_dump(by_alias=True))


async def get_session_status(request: Request) -> JSONResponse:
    """GET /api/sessions/{session_id}/status"""
    registry = get_registry(request)
    if registry is None:
        return not_initialized()

    try:
        record = registry.get(request.path_params["session_id"])
    except GatewayError as e:
        return error_response(e)
    return JSONResponse(record.to_dict())


async def get_session_qr(request: Request) -> JSONResponse:
    """GET /api/sessions/{session_id}/qr — Current QR reference, if any."""
    registry = get_registry(request)
    if registry is None:
        return not_initialized()

    session_id = request.path_params["session_id"]
    try:
        record = registry.get(session_id)
        if not record.qr_code:
            raise NotFound(f"No QR code available for session '{session_id}'")
    except GatewayError as e:
        return error_response(e)
    return JSONResponse({"qr": record.qr_code})


async def request_session_pairing_code(request: Request) -> JSONResponse:
    """POST /api/sessions/{session_id}/pairing-code — Body: {"phoneNumber": "..."}"""
    registry = get_registry(request)
    if registry is None:
        return not_initialized()

    session_id = request.path_params["session_id"]
    try:
        body = await parse_body(request, PairingCodeRequest)
        code = await registry.request_pairing_code(session_id, body.phone_number)
    except BadRequest as e:
        return bad_request(e)
    except GatewayError as e:
        return error_response(e)
    return JSONResponse({"code": code})


async def delete_session(request: Request) -> JSONResponse:
    """DELETE /api/sessions/{session_id} — Log out and remove a session."""
    registry = get_registry(request)
    if registry is None:
        return not_initialized()

    session_id = request.path_params["session_id"]
    try:
        await registry.delete(session_id)
    except GatewayError as e:
        return error_response(e)
    return JSONResponse({"success": True, "sessionId": session_id})
