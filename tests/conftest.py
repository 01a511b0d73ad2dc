"""Shared pytest fixtures and configuration."""

import asyncio
import json
from typing import Any, Optional

import httpx
import pytest
import pytest_asyncio

from wagateway.credentials import MemoryCredentialStore
from wagateway.retry_cache import MessageRetryCache
from wagateway.sessions.registry import SessionRegistry
from wagateway.transport.loopback import LoopbackTransport
from wagateway.webhooks.dispatcher import WebhookConfig, WebhookDispatcher

WEBHOOK_URL = "http://consumer.test/hooks"
WEBHOOK_SECRET = "test-secret"


class WebhookRecorder:
    """httpx.MockTransport handler that records every webhook POST."""

    def __init__(self, status_code: int = 200):
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json={"ok": True})

    @property
    def envelopes(self) -> list[dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests]

    def events(
        self, session_id: Optional[str] = None, event: Optional[str] = None
    ) -> list[dict[str, Any]]:
        return [
            e
            for e in self.envelopes
            if (session_id is None or e["sessionId"] == session_id)
            and (event is None or e["event"] == event)
        ]


class TransportRecorder:
    """Transport factory that keeps every LoopbackTransport it builds."""

    def __init__(self):
        self.created: dict[str, list[LoopbackTransport]] = {}

    def __call__(self, session_id, credentials, retry_cache) -> LoopbackTransport:
        transport = LoopbackTransport(session_id, credentials, retry_cache)
        self.created.setdefault(session_id, []).append(transport)
        return transport

    def latest(self, session_id: str) -> LoopbackTransport:
        return self.created[session_id][-1]

    def count(self, session_id: str) -> int:
        return len(self.created.get(session_id, []))


@pytest.fixture
def webhook_recorder():
    return WebhookRecorder()


@pytest_asyncio.fixture
async def dispatcher(webhook_recorder):
    """Dispatcher pointed at the recorder through httpx.MockTransport."""
    dispatcher = WebhookDispatcher(
        WebhookConfig(url=WEBHOOK_URL, secret=WEBHOOK_SECRET),
        transport=httpx.MockTransport(webhook_recorder),
    )
    yield dispatcher
    await dispatcher.aclose()


@pytest.fixture
def transports():
    return TransportRecorder()


@pytest.fixture
def credential_store():
    return MemoryCredentialStore()


@pytest_asyncio.fixture
async def registry(transports, credential_store, dispatcher):
    """Registry with a near-instant reconnect delay."""
    registry = SessionRegistry(
        transport_factory=transports,
        credential_store=credential_store,
        dispatcher=dispatcher,
        retry_cache=MessageRetryCache(),
        reconnect_delay=0.01,
    )
    yield registry
    await registry.shutdown()


@pytest.fixture
def eventually():
    """Poll a predicate until it holds, failing after ``timeout`` seconds."""

    async def wait(predicate, timeout: float = 2.0, interval: float = 0.005):
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while True:
            result = predicate()
            if result:
                return result
            if loop.time() > deadline:
                raise AssertionError(f"Condition not met within {timeout}s")
            await asyncio.sleep(interval)

    return wait
