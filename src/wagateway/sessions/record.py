"""
In-memory state of one session.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from wagateway.transport.base import SessionTransport

if TYPE_CHECKING:
    from wagateway.sessions.controller import SessionController


class SessionStatus(str, Enum):
    INITIALIZING = "initializing"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


@dataclass
class SessionRecord:
    """
    One registry entry.

    ``status``, ``qr_code``, ``pairing_code`` and ``user`` are written only by
    the session's controller. ``closing`` is set once, by deletion.
    """

    id: str
    status: SessionStatus = SessionStatus.INITIALIZING
    transport: Optional[SessionTransport] = field(default=None, repr=False)
    qr_code: Optional[str] = None
    pairing_code: Optional[str] = None
    user: Optional[dict[str, Any]] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    closing: bool = False
    controller: Optional["SessionController"] = field(
        default=None, repr=False, compare=False
    )

    @property
    def connected(self) -> bool:
        return self.status == SessionStatus.CONNECTED

    @property
    def has_qr(self) -> bool:
        return self.qr_code is not None

    def clear_artifacts(self) -> None:
        self.qr_code = None
        self.pairing_code = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API responses."""
        return {
            "sessionId": self.id,
            "status": self.status.value,
            "connected": self.connected,
            "hasQR": self.has_qr,
            "user": self.user,
            "createdAt": self.created_at.isoformat(),
        }
