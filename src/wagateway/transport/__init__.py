"""
Session transports.

A transport is the protocol connection of one session. The gateway talks to it
only through ``SessionTransport`` and the tagged events it emits.
"""

from wagateway.transport.base import (
    SessionTransport,
    TransportFactory,
    load_transport_factory,
)
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
    TransportEvent,
)

__all__ = [
    "SessionTransport",
    "TransportFactory",
    "load_transport_factory",
    "ConnectionUpdate",
    "CredsUpdate",
    "DisconnectReason",
    "InboundMessage",
    "MessageKey",
    "MessagesUpdate",
    "MessagesUpsert",
    "PairingCodeEvent",
    "QrEvent",
    "TransportEvent",
]
