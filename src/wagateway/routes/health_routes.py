"""
Health check and default-session status endpoints.

Both always answer 200 and report a degraded state instead of failing.
"""

import time
from datetime import datetime, timezone

from starlette.requests import Request
from starlette.responses import JSONResponse

from wagateway.config import DEFAULT_SESSION_ID
from wagateway.logger import get_logger
from wagateway.routes._common import get_registry
from wagateway.sessions.record import SessionStatus

logger = get_logger(__name__)
start_time = time.time()


async def health_check(request: Request) -> JSONResponse:
    """
    GET /health

    Reports the default session's state and per-status session counts.
    """
    whatsapp = SessionStatus.DISCONNECTED.value
    counts = {status.value: 0 for status in SessionStatus}
    status = "ok"

    try:
        registry = get_registry(request)
        if registry is None:
            status = "degraded"
        else:
            for record in registry.list():
                counts[record.status.value] += 1
            default = registry.find(DEFAULT_SESSION_ID)
            if default is not None:
                whatsapp = default.status.value
    except Exception as e:
        logger.error(f"Health check failed to read sessions: {e}")
        status = "degraded"

    return JSONResponse(
        {
            "status": status,
            "whatsapp": whatsapp,
            "sessions": counts,
            "uptime_seconds": int(time.time() - start_time),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    )


async def default_status(request: Request) -> JSONResponse:
    """GET /status — Connection status of the default session."""
    try:
        registry = get_registry(request)
        record = registry.find(DEFAULT_SESSION_ID) if registry is not None else None
    except Exception as e:
        logger.error(f"Status check failed: {e}")
        record = None

    if record is None:
        return JSONResponse(
            {
                "connected": False,
                "status": SessionStatus.DISCONNECTED.value,
                "hasQR": False,
            }
        )

    return JSONResponse(
        {
            "connected": record.connected,
            "status": record.status.value,
            "hasQR": record.has_qr,
        }
    )
