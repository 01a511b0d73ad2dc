"""
Registry of live sessions.

The single source of truth for which sessions exist. Map mutations are
serialized by one lock; transport I/O and webhook delivery happen outside it.
"""

import asyncio
import re
import uuid
from typing import Any, Optional

from wagateway.credentials import CredentialStore
from wagateway.errors import AlreadyExists, InvalidSessionId, NotFound
from wagateway.logger import get_logger
from wagateway.retry_cache import MessageRetryCache
from wagateway.sessions.controller import DEFAULT_RECONNECT_DELAY, SessionController
from wagateway.sessions.record import SessionRecord
from wagateway.transport.base import TransportFactory
from wagateway.webhooks.dispatcher import WebhookDispatcher

logger = get_logger(__name__)

SESSION_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def validate_session_id(session_id: str) -> str:
    if not isinstance(session_id, str) or not SESSION_ID_PATTERN.match(session_id):
        raise InvalidSessionId(
            "Session id must be 1-64 characters of letters, digits, '-' or '_'"
        )
    return session_id


class SessionRegistry:
    """
    Owns every ``SessionRecord`` and starts one controller per record.

    Deleted records are flagged ``closing`` before teardown and stay reserved
    until teardown finishes, so neither a racing reconnect nor a new ``create``
    can bring up a second transport for the same id.
    """

    def __init__(
        self,
        transport_factory: TransportFactory,
        credential_store: CredentialStore,
        dispatcher: WebhookDispatcher,
        retry_cache: Optional[MessageRetryCache] = None,
        reconnect_delay: float = DEFAULT_RECONNECT_DELAY,
    ):
        self.transport_factory = transport_factory
        self.credential_store = credential_store
        self.dispatcher = dispatcher
        self.retry_cache = retry_cache or MessageRetryCache()
        self.reconnect_delay = reconnect_delay
        self._sessions: dict[str, SessionRecord] = {}
        self._lock = asyncio.Lock()

    async def create(self, session_id: Optional[str] = None) -> SessionRecord:
        """
        Register a new session and start connecting it in the background.

        Raises:
            AlreadyExists: If the id is taken (or still being deleted).
            InvalidSessionId: If the id is malformed.
        """
        session_id = validate_session_id(session_id or uuid.uuid4().hex)

        async with self._lock:
            existing = self._sessions.get(session_id)
            if existing is not None:
                if existing.closing:
                    raise AlreadyExists(f"Session '{session_id}' is being deleted")
                raise AlreadyExists(f"Session '{session_id}' already exists")

            record = SessionRecord(id=session_id)
            record.controller = SessionController(
                record,
                registry=self,
                transport_factory=self.transport_factory,
                credential_store=self.credential_store,
                dispatcher=self.dispatcher,
                retry_cache=self.retry_cache,
                reconnect_delay=self.reconnect_delay,
            )
            self._sessions[session_id] = record

        logger.info(f"Created session '{session_id}'")
        record.controller.start()
        return record

    def find(self, session_id: str) -> Optional[SessionRecord]:
        record = self._sessions.get(session_id)
        if record is None or record.closing:
            return None
        return record

    def get(self, session_id: str) -> SessionRecord:
        record = self.find(session_id)
        if record is None:
            raise NotFound(f"Session '{session_id}' not found")
        return record

    def list(self) -> list[SessionRecord]:
        return [r for r in self._sessions.values() if not r.closing]

    def __contains__(self, session_id: str) -> bool:
        return self.find(session_id) is not None

    def __len__(self) -> int:
        return len(self.list())

    async def delete(self, session_id: str) -> None:
        """
        Log the session out and remove it.

        Logout is best-effort: failures are logged and the session is removed
        regardless.

        Raises:
            NotFound: If no such session exists.
        """
        async with self._lock:
            record = self._sessions.get(session_id)
            if record is None or record.closing:
                raise NotFound(f"Session '{session_id}' not found")
            record.closing = True

        try:
            await self._teardown(record, logout=True)
        finally:
            await self.discard(record)
        logger.info(f"Deleted session '{session_id}'")

    async def discard(self, record: SessionRecord) -> None:
        """Drop ``record`` from the map if it is still the registered one."""
        async with self._lock:
            if self._sessions.get(record.id) is record:
                del self._sessions[record.id]

    async def send_message(
        self, session_id: str, recipient: str, content: dict[str, Any]
    ) -> str:
        record = self.get(session_id)
        return await record.controller.send(recipient, content)

    async def request_pairing_code(self, session_id: str, phone_number: str) -> str:
        record = self.get(session_id)
        return await record.controller.request_pairing_code(phone_number)

    async def shutdown(self) -> None:
        """
        Stop every session without logging out, keeping credentials valid.

        Process shutdown never sends a remote logout, so a restart reconnects
        with the stored credentials instead of asking for a new QR scan. Only
        ``delete`` or a remote "logged out" close invalidates a session.
        """
        async with self._lock:
            records = list(self._sessions.values())
            for record in records:
                record.closing = True
            self._sessions.clear()

        await asyncio.gather(
            *(self._teardown(r, logout=False) for r in records),
            return_exceptions=True,
        )
        if records:
            logger.info(f"Stopped {len(records)} session(s)")

    async def _teardown(self, record: SessionRecord, logout: bool) -> None:
        if record.controller:
            await record.controller.stop()

        transport = record.transport
        record.transport = None

        if logout:
            if transport is not None:
                try:
                    await transport.logout()
                except Exception as e:
                    logger.warning(f"Logout of session '{record.id}' failed: {e}")
            try:
                await self.credential_store.remove(record.id)
            except Exception as e:
                logger.warning(f"Removing credentials of '{record.id}' failed: {e}")

        if transport is None:
            return
        try:
            await transport.close()
        except Exception as e:
            logger.warning(f"Closing transport of session '{record.id}' failed: {e}")
