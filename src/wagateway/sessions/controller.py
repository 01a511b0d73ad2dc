"""
Connection lifecycle controller.

One controller runs per session. It owns the session's transport, consumes the
transport's event stream in order, and is the only writer of the record's
status and pairing artifacts.

State machine::

    initializing -> connecting -> connected
    connecting/connected -> disconnected
    disconnected -> connecting            (any close reason except logged out)
    disconnected -> removed from registry (logged out)
"""

import asyncio
import contextlib
from typing import TYPE_CHECKING, Any, Optional

from wagateway.credentials import CredentialStore
from wagateway.errors import AlreadyRegistered, NotConnected, TransportError
from wagateway.logger import get_logger
from wagateway.retry_cache import MessageRetryCache
from wagateway.sessions.record import SessionRecord, SessionStatus
from wagateway.transport.base import TransportFactory
from wagateway.transport.events import (
    ConnectionUpdate,
    CredsUpdate,
    DisconnectReason,
    MessagesUpdate,
    MessagesUpsert,
    PairingCodeEvent,
    QrEvent,
    TransportEvent,
)
from wagateway.webhooks.dispatcher import WebhookDispatcher

if TYPE_CHECKING:
    from wagateway.sessions.registry import SessionRegistry

logger = get_logger(__name__)

DEFAULT_RECONNECT_DELAY = 3.0


class SessionController:
    """Drives one session's transport and mirrors its state onto the record."""

    def __init__(
        self,
        record: SessionRecord,
        registry: "SessionRegistry",
        transport_factory: TransportFactory,
        credential_store: CredentialStore,
        dispatcher: WebhookDispatcher,
        retry_cache: MessageRetryCache,
        reconnect_delay: float = DEFAULT_RECONNECT_DELAY,
    ):
        self.record = record
        self.registry = registry
        self.transport_factory = transport_factory
        self.credential_store = credential_store
        self.dispatcher = dispatcher
        self.retry_cache = retry_cache
        self.reconnect_delay = reconnect_delay
        self.attempts = 0
        self._task: Optional[asyncio.Task] = None
        self._reconnect_pending = False

    @property
    def session_id(self) -> str:
        return self.record.id

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def reconnect_pending(self) -> bool:
        """True while the controller is waiting out the reconnect delay."""
        return self._reconnect_pending

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(
            self._run(), name=f"session-{self.session_id}"
        )

    async def stop(self) -> None:
        """Cancel the event loop and any pending reconnect."""
        task = self._task
        if task is None:
            return
        if task is asyncio.current_task():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        self._reconnect_pending = False

    # -- Outbound operations --------------------------------------------------

    async def send(self, recipient: str, content: dict[str, Any]) -> str:
        transport = self.record.transport
        if self.record.status != SessionStatus.CONNECTED or transport is None:
            raise NotConnected(f"Session '{self.session_id}' is not connected")

        try:
            return await transport.send(recipient, content)
        except TransportError as e:
            logger.error(f"Send failed on session '{self.session_id}': {e}")
            raise
        except Exception as e:
            logger.error(f"Send failed on session '{self.session_id}': {e}")
            raise TransportError("Failed to send message") from e

    async def request_pairing_code(self, phone_number: str) -> str:
        """
        Ask the transport for a pairing code.

        The code also reaches the record (and the webhook) through the
        ``PairingCodeEvent`` the transport emits.
        """
        transport = self.record.transport
        if transport is None:
            raise NotConnected(f"Session '{self.session_id}' is not initialized")
        if transport.registered:
            raise AlreadyRegistered(f"Session '{self.session_id}' is already registered")

        try:
            return await transport.request_pairing_code(phone_number)
        except TransportError:
            raise
        except Exception as e:
            logger.error(f"Pairing code request failed on '{self.session_id}': {e}")
            raise TransportError("Failed to request pairing code") from e

    # -- Main loop ------------------------------------------------------------

    async def _run(self) -> None:
        try:
            while not self.record.closing:
                terminal = await self._run_connection()
                if terminal or self.record.closing:
                    break

                logger.info(
                    f"Reconnecting session '{self.session_id}' "
                    f"in {self.reconnect_delay}s"
                )
                self._reconnect_pending = True
                try:
                    await asyncio.sleep(self.reconnect_delay)
                finally:
                    self._reconnect_pending = False
        except asyncio.CancelledError:
            logger.debug(f"Controller for session '{self.session_id}' cancelled")
            raise
        except Exception as e:
            logger.exception(f"Controller for session '{self.session_id}' crashed: {e}")

    async def _run_connection(self) -> bool:
        """
        Connect once and process events until the connection closes.

        Returns:
            True if the close was terminal and the session must not reconnect.
        """
        await self._release_transport()
        self._set_status(SessionStatus.CONNECTING)
        self.attempts += 1

        try:
            credentials = await self.credential_store.load(self.session_id)
            transport = self.transport_factory(
                self.session_id, credentials, self.retry_cache
            )
            self.record.transport = transport
            await transport.connect()
        except Exception as e:
            logger.error(f"Session '{self.session_id}' failed to connect: {e}")
            return await self._handle_close(
                ConnectionUpdate(state="close", error="Failed to connect")
            )

        async with contextlib.aclosing(transport.events()) as events:
            async for event in events:
                if self.record.closing:
                    return True
                try:
                    terminal = await self._handle_event(event)
                except Exception as e:
                    logger.error(
                        f"Error handling {type(event).__name__} "
                        f"on session '{self.session_id}': {e}"
                    )
                    continue
                if terminal is not None:
                    return terminal

        if self.record.closing:
            return True
        return await self._handle_close(
            ConnectionUpdate(state="close", error="Event stream ended")
        )

    async def _handle_event(self, event: TransportEvent) -> Optional[bool]:
        """Apply one event. Returns a terminal flag only for close events."""
        if isinstance(event, QrEvent):
            self._on_qr(event)
        elif isinstance(event, PairingCodeEvent):
            self._on_pairing_code(event)
        elif isinstance(event, ConnectionUpdate):
            if event.state == "close":
                return await self._handle_close(event)
            if event.state == "open":
                self._on_open(event)
            elif event.state == "connecting":
                self._set_status(SessionStatus.CONNECTING)
        elif isinstance(event, CredsUpdate):
            await self._on_creds_update(event)
        elif isinstance(event, MessagesUpsert):
            self._on_messages_upsert(event)
        elif isinstance(event, MessagesUpdate):
            self._on_messages_update(event)
        else:
            logger.warning(f"Unknown transport event: {type(event).__name__}")
        return None

    # -- Event handlers -------------------------------------------------------

    def _on_qr(self, event: QrEvent) -> None:
        if self.record.status == SessionStatus.CONNECTED:
            logger.warning(f"Ignoring QR for connected session '{self.session_id}'")
            return
        self._set_status(SessionStatus.CONNECTING)
        self.record.qr_code = event.qr
        logger.info(f"QR code updated for session '{self.session_id}'")
        self.dispatcher.dispatch("qr", {"qr": event.qr}, self.session_id)

    def _on_pairing_code(self, event: PairingCodeEvent) -> None:
        if self.record.status == SessionStatus.CONNECTED:
            logger.warning(
                f"Ignoring pairing code for connected session '{self.session_id}'"
            )
            return
        self._set_status(SessionStatus.CONNECTING)
        self.record.pairing_code = event.code
        logger.info(f"Pairing code issued for session '{self.session_id}'")
        self.dispatcher.dispatch("qr", {"pairingCode": event.code}, self.session_id)

    def _on_open(self, event: ConnectionUpdate) -> None:
        self.record.clear_artifacts()
        self.record.user = event.user
        self._set_status(SessionStatus.CONNECTED)
        self.dispatcher.dispatch(
            "connected", {"status": "connected", "user": event.user}, self.session_id
        )

    async def _handle_close(self, event: ConnectionUpdate) -> bool:
        terminal = event.reason_code == DisconnectReason.LOGGED_OUT
        reason_name = DisconnectReason.describe(event.reason_code)

        self.record.clear_artifacts()
        self._set_status(SessionStatus.DISCONNECTED)
        logger.info(
            f"Session '{self.session_id}' closed ({reason_name}: {event.error}), "
            f"reconnecting: {not terminal}"
        )
        self.dispatcher.dispatch(
            "disconnected",
            {
                "reason": event.reason_code,
                "reasonName": reason_name,
                "error": event.error,
                "willReconnect": not terminal,
            },
            self.session_id,
        )

        await self._release_transport()

        if terminal:
            try:
                await self.credential_store.remove(self.session_id)
            except Exception as e:
                logger.error(
                    f"Failed to remove credentials of '{self.session_id}': {e}"
                )
            await self.registry.discard(self.record)
            logger.info(f"Session '{self.session_id}' logged out and removed")

        return terminal

    async def _on_creds_update(self, event: CredsUpdate) -> None:
        try:
            await self.credential_store.save(self.session_id, event.data)
        except Exception as e:
            logger.error(f"Failed to save credentials of '{self.session_id}': {e}")

    def _on_messages_upsert(self, event: MessagesUpsert) -> None:
        for message in event.messages:
            if message.key.from_me or not message.message:
                continue
            self.dispatcher.dispatch(
                "message",
                {
                    "key": message.key.to_dict(),
                    "message": message.message,
                    "messageTimestamp": message.timestamp,
                    "pushName": message.push_name,
                },
                self.session_id,
            )

    def _on_messages_update(self, event: MessagesUpdate) -> None:
        for update in event.updates:
            self.dispatcher.dispatch("status", update, self.session_id)

    # -- Helpers --------------------------------------------------------------

    def _set_status(self, status: SessionStatus) -> None:
        previous = self.record.status
        if previous == status:
            return
        self.record.status = status
        logger.info(
            f"Session '{self.session_id}': {previous.value} -> {status.value}"
        )

    async def _release_transport(self) -> None:
        transport = self.record.transport
        self.record.transport = None
        if transport is None:
            return
        try:
            await transport.close()
        except Exception as e:
            logger.warning(
                f"Error closing transport of session '{self.session_id}': {e}"
            )
