"""
Error taxonomy for the gateway.

Every error carries the HTTP status the API layer answers with and a stable
machine-readable code. Messages are human-readable and never include raw
transport internals.
"""


class GatewayError(Exception):
    """Base class for all gateway errors."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code}


class NotFound(GatewayError):
    """Unknown session id (or missing artifact for a known one)."""

    status_code = 404
    code = "not_found"


class AlreadyExists(GatewayError):
    """A session with the requested id is already registered."""

    status_code = 409
    code = "already_exists"


class InvalidSessionId(GatewayError):
    status_code = 400
    code = "invalid_session_id"


class NotConnected(GatewayError):
    """The operation needs an open transport."""

    status_code = 503
    code = "not_connected"


class AlreadyRegistered(GatewayError):
    """Pairing was requested for a session whose credentials are registered."""

    status_code = 400
    code = "already_registered"


class TransportError(GatewayError):
    """Any failure reported by the transport layer (connect, send, logout)."""

    status_code = 502
    code = "transport_error"


class DispatchFailure(GatewayError):
    """Webhook delivery failed. Logged by the dispatcher, never propagated."""

    code = "dispatch_failure"
