"""
Base class for session transports.

A transport is the opaque protocol connection for one session (handshake,
encryption, framing). The gateway only sees the primitives below and an
ordered stream of ``TransportEvent`` objects.
"""

import asyncio
import importlib
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Callable, Optional

from wagateway.errors import TransportError
from wagateway.retry_cache import MessageRetryCache
from wagateway.transport.events import TransportEvent

_STREAM_END = object()


class SessionTransport(ABC):
    """
    Abstract transport handle.

    Subclasses call ``emit`` from their protocol callbacks; the controller
    reads ``events()`` until the stream ends, which happens after ``close``.
    """

    def __init__(
        self,
        session_id: str,
        credentials: Optional[dict[str, Any]] = None,
        retry_cache: Optional[MessageRetryCache] = None,
    ):
        self.session_id = session_id
        self.credentials: dict[str, Any] = dict(credentials or {})
        self.retry_cache = retry_cache or MessageRetryCache()
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    @property
    def registered(self) -> bool:
        """Whether the credentials already belong to a paired device."""
        return bool(self.credentials.get("registered"))

    @property
    def closed(self) -> bool:
        return self._closed

    @abstractmethod
    async def connect(self) -> None:
        """Start the handshake. Progress is reported through events."""
        pass

    @abstractmethod
    async def send(self, recipient: str, content: dict[str, Any]) -> str:
        """
        Send a message.

        Returns:
            The message key id assigned by the transport.

        Raises:
            TransportError: If the message could not be sent.
        """
        pass

    @abstractmethod
    async def logout(self) -> None:
        """Invalidate the credentials on the remote side."""
        pass

    async def request_pairing_code(self, phone_number: str) -> str:
        raise TransportError("This transport does not support pairing codes")

    def emit(self, event: TransportEvent) -> None:
        """Queue an event for the controller. Ignored once closed."""
        if self._closed:
            return
        self._queue.put_nowait(event)

    async def events(self) -> AsyncIterator[TransportEvent]:
        """Yield events in emission order until the transport is closed."""
        while True:
            event = await self._queue.get()
            if event is _STREAM_END:
                return
            yield event

    async def close(self) -> None:
        """Release the connection and end the event stream."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_STREAM_END)


TransportFactory = Callable[
    [str, Optional[dict[str, Any]], MessageRetryCache], SessionTransport
]


def load_transport_factory(path: str) -> TransportFactory:
    """
    Resolve a ``module.path:attribute`` string to a transport factory.

    Any callable taking ``(session_id, credentials, retry_cache)`` and
    returning a ``SessionTransport`` works, including the class itself.
    """
    module_path, sep, attr = path.partition(":")
    if not sep or not module_path or not attr:
        raise ValueError(
            f"Transport factory must look like 'package.module:Name', got {path!r}"
        )

    module = importlib.import_module(module_path)
    try:
        factory = getattr(module, attr)
    except AttributeError:
        raise ValueError(f"Module '{module_path}' has no attribute '{attr}'") from None

    if not callable(factory):
        raise ValueError(f"Transport factory {path!r} is not callable")
    return factory
