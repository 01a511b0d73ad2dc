"""
In-process transport.

Behaves like a real device link from the gateway's point of view: it asks for
pairing with a QR reference, opens once paired, and reports closes with reason
codes. Nothing leaves the process. The ``pair``/``drop``/``receive`` helpers
drive it from tests or a development shell.
"""

import secrets
import time
import uuid
from typing import Any, Optional

from wagateway.errors import TransportError
from wagateway.logger import get_logger
from wagateway.retry_cache import MessageRetryCache
from wagateway.transport.base import SessionTransport
from wagateway.transport.events import (
    ConnectionUpdate,
    CredsUpdate,
    DisconnectReason,
    InboundMessage,
    MessageKey,
    MessagesUpdate,
    MessagesUpsert,
    PairingCodeEvent,
    QrEvent,
)

logger = get_logger(__name__)

PAIRING_CODE_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTVWXYZ"


class LoopbackTransport(SessionTransport):
    """A transport that pairs, sends and receives entirely in memory."""

    def __init__(
        self,
        session_id: str,
        credentials: Optional[dict[str, Any]] = None,
        retry_cache: Optional[MessageRetryCache] = None,
    ):
        super().__init__(session_id, credentials, retry_cache)
        self.is_open = False
        self.sent: list[dict[str, Any]] = []
        self.logged_out = False

    @property
    def user(self) -> Optional[dict[str, Any]]:
        return self.credentials.get("me")

    async def connect(self) -> None:
        if self.closed:
            raise TransportError("Transport is closed")

        self.emit(ConnectionUpdate(state="connecting"))
        if self.registered:
            self._open()
        else:
            self.emit(QrEvent(qr=f"2@{secrets.token_urlsafe(24)}"))

    def _open(self) -> None:
        self.is_open = True
        self.emit(ConnectionUpdate(state="open", user=self.user))

    async def send(self, recipient: str, content: dict[str, Any]) -> str:
        if not self.is_open:
            raise TransportError("Connection is not open")

        message_id = uuid.uuid4().hex[:20].upper()
        self.sent.append({"id": message_id, "to": recipient, "content": content})
        self.emit(
            MessagesUpdate(
                updates=[
                    {
                        "key": {"id": message_id, "remoteJid": recipient, "fromMe": True},
                        "update": {"status": "SERVER_ACK"},
                    }
                ]
            )
        )
        return message_id

    async def logout(self) -> None:
        if self.closed:
            raise TransportError("Transport is closed")

        self.logged_out = True
        self.is_open = False
        self.credentials = {}
        self.emit(
            ConnectionUpdate(
                state="close",
                reason_code=DisconnectReason.LOGGED_OUT,
                error="Intentional Logout",
            )
        )

    async def request_pairing_code(self, phone_number: str) -> str:
        if self.registered:
            raise TransportError("Credentials are already registered")

        code = "".join(secrets.choice(PAIRING_CODE_ALPHABET) for _ in range(8))
        self.credentials["pairing_phone_number"] = phone_number
        self.emit(PairingCodeEvent(code=code))
        return code

    # -- Simulation helpers ---------------------------------------------------

    def pair(self, user_id: str, name: Optional[str] = None) -> None:
        """Complete pairing as if the QR/pairing code had been accepted."""
        me = {"id": user_id, "name": name}
        self.credentials.update({"registered": True, "me": me})
        self.emit(CredsUpdate(data={"registered": True, "me": me}))
        self._open()

    def drop(self, reason_code: Optional[int], error: Optional[str] = None) -> None:
        """Report a connection close with the given reason code."""
        self.is_open = False
        self.emit(
            ConnectionUpdate(
                state="close",
                reason_code=reason_code,
                error=error or DisconnectReason.describe(reason_code),
            )
        )

    def receive(
        self,
        sender: str,
        text: str,
        from_me: bool = False,
        push_name: Optional[str] = None,
    ) -> InboundMessage:
        """Deliver an inbound text message."""
        message = InboundMessage(
            key=MessageKey(
                id=uuid.uuid4().hex[:20].upper(), remote_jid=sender, from_me=from_me
            ),
            message={"conversation": text},
            timestamp=int(time.time()),
            push_name=push_name,
        )
        self.emit(MessagesUpsert(messages=[message]))
        return message
