"""
Tagged events emitted by a session transport.

A transport pushes these onto its event stream in the order they happen; the
session controller consumes them one at a time.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Optional, Union


class DisconnectReason(IntEnum):
    """Close reason codes reported with a ``close`` connection update."""

    CONNECTION_CLOSED = 428
    CONNECTION_LOST = 408
    CONNECTION_REPLACED = 440
    LOGGED_OUT = 401
    FORBIDDEN = 403
    MULTIDEVICE_MISMATCH = 411
    BAD_SESSION = 500
    UNAVAILABLE_SERVICE = 503
    RESTART_REQUIRED = 515

    @classmethod
    def describe(cls, code: Optional[int]) -> str:
        if code is None:
            return "unknown"
        try:
            return cls(code).name.lower()
        except ValueError:
            return f"code_{code}"


@dataclass
class QrEvent:
    """A new (or refreshed) QR pairing reference."""

    qr: str


@dataclass
class PairingCodeEvent:
    """A pairing code to be typed on the primary device."""

    code: str


@dataclass
class ConnectionUpdate:
    """
    Connection state change.

    ``state`` is one of ``connecting``, ``open`` or ``close``. On close,
    ``reason_code`` tells the controller whether to reconnect.
    """

    state: str
    reason_code: Optional[int] = None
    error: Optional[str] = None
    user: Optional[dict[str, Any]] = None


@dataclass
class CredsUpdate:
    """Partial credentials update to persist."""

    data: dict[str, Any]


@dataclass
class MessageKey:
    id: str
    remote_jid: str
    from_me: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "remoteJid": self.remote_jid, "fromMe": self.from_me}


@dataclass
class InboundMessage:
    key: MessageKey
    message: Optional[dict[str, Any]] = None
    timestamp: Optional[int] = None
    push_name: Optional[str] = None


@dataclass
class MessagesUpsert:
    messages: list[InboundMessage] = field(default_factory=list)


@dataclass
class MessagesUpdate:
    """Delivery/read status changes, forwarded verbatim."""

    updates: list[dict[str, Any]] = field(default_factory=list)


TransportEvent = Union[
    QrEvent,
    PairingCodeEvent,
    ConnectionUpdate,
    CredsUpdate,
    MessagesUpsert,
    MessagesUpdate,
]
