"""
Session registry and per-session connection lifecycle.
"""

from wagateway.sessions.controller import SessionController
from wagateway.sessions.record import SessionRecord, SessionStatus
from wagateway.sessions.registry import SessionRegistry, validate_session_id

__all__ = [
    "SessionController",
    "SessionRecord",
    "SessionRegistry",
    "SessionStatus",
    "validate_session_id",
]
