"""
Signed, best-effort webhook delivery.

Each call to ``dispatch`` wraps the payload in an envelope, signs the exact
body bytes with HMAC-SHA256 and POSTs it once in a background task. Failures
are logged and dropped: there is no queue and no retry.
"""

import asyncio
import hashlib
import hmac
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

from wagateway.errors import DispatchFailure
from wagateway.logger import get_logger

logger = get_logger(__name__)

SIGNATURE_HEADER = "x-webhook-signature"
DEFAULT_TIMEOUT = 5.0

WEBHOOK_EVENTS = frozenset({"qr", "status", "message", "connected", "disconnected"})


def sign_payload(secret: str, body: bytes) -> str:
    """Hex HMAC-SHA256 of ``body`` keyed with ``secret``."""
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_signature(secret: str, body: bytes, signature: str) -> bool:
    """Constant-time check of a received signature header."""
    return hmac.compare_digest(sign_payload(secret, body), signature)


def build_envelope(event: str, payload: Any, session_id: str) -> dict[str, Any]:
    return {
        "sessionId": session_id,
        "event": event,
        "data": payload,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def encode_envelope(envelope: dict[str, Any]) -> bytes:
    return json.dumps(envelope, separators=(",", ":"), default=str).encode("utf-8")


@dataclass(frozen=True)
class WebhookConfig:
    """Immutable destination snapshot. Replaced whole on every update."""

    url: Optional[str] = None
    secret: Optional[str] = None


class WebhookDispatcher:
    """
    Delivers gateway events to a single configured HTTP endpoint.

    The destination is swapped atomically by ``configure``; every dispatch
    reads one snapshot when it is called, so an update applies from the next
    dispatch on.
    """

    def __init__(
        self,
        config: Optional[WebhookConfig] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._config = config or WebhookConfig()
        self.timeout = timeout
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self._inflight: set[asyncio.Task] = set()

    @property
    def config(self) -> WebhookConfig:
        return self._config

    def configure(self, url: Optional[str], secret: Optional[str]) -> WebhookConfig:
        """Replace the destination URL and secret."""
        self._config = WebhookConfig(url=url or None, secret=secret or None)
        logger.info(f"Webhook destination set to {self._config.url or '<none>'}")
        return self._config

    def dispatch(
        self, event: str, payload: Any, session_id: str
    ) -> Optional[asyncio.Task]:
        """
        Fire-and-forget delivery of one event.

        Returns:
            The delivery task, or None when no destination is configured.
        """
        if event not in WEBHOOK_EVENTS:
            raise ValueError(f"Unknown webhook event: {event}")

        config = self._config
        if not config.url:
            logger.debug(f"No webhook configured, dropping '{event}' for {session_id}")
            return None

        envelope = build_envelope(event, payload, session_id)
        task = asyncio.create_task(self.deliver(envelope, config))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return task

    async def deliver(self, envelope: dict[str, Any], config: WebhookConfig) -> bool:
        """POST one envelope. Returns True on a 2xx answer; never raises."""
        try:
            await self._post(envelope, config)
            return True
        except DispatchFailure as e:
            logger.warning(
                f"Webhook '{envelope['event']}' for session "
                f"'{envelope['sessionId']}' not delivered: {e}"
            )
            return False

    async def _post(self, envelope: dict[str, Any], config: WebhookConfig) -> None:
        try:
            body = encode_envelope(envelope)
        except (TypeError, ValueError) as e:
            raise DispatchFailure(f"payload is not serializable: {e}") from None

        headers = {"content-type": "application/json"}
        if config.secret:
            headers[SIGNATURE_HEADER] = sign_payload(config.secret, body)

        try:
            response = await self._client.post(config.url, content=body, headers=headers)
        except httpx.TimeoutException:
            raise DispatchFailure(f"timed out after {self.timeout}s") from None
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise DispatchFailure(f"{type(e).__name__}: {e}") from None

        if not response.is_success:
            raise DispatchFailure(f"endpoint answered HTTP {response.status_code}")

        logger.debug(
            f"Webhook '{envelope['event']}' delivered for {envelope['sessionId']}"
        )

    @property
    def pending(self) -> int:
        return len(self._inflight)

    async def drain(self) -> None:
        """Wait for every in-flight delivery to finish."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    async def aclose(self) -> None:
        await self.drain()
        await self._client.aclose()
