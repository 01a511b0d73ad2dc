"""
Unit tests for the session registry.
"""

import asyncio

import pytest

from wagateway.errors import AlreadyExists, InvalidSessionId, NotFound
from wagateway.retry_cache import MessageRetryCache
from wagateway.sessions.record import SessionStatus
from wagateway.sessions.registry import SessionRegistry, validate_session_id
from wagateway.transport.events import DisconnectReason


class TestValidateSessionId:
    def test_accepts_simple_ids(self):
        assert validate_session_id("default") == "default"
        assert validate_session_id("shop-01_a") == "shop-01_a"

    @pytest.mark.parametrize("bad", ["", "has space", "../etc", "x" * 65, "a/b"])
    def test_rejects_unsafe_ids(self, bad):
        with pytest.raises(InvalidSessionId):
            validate_session_id(bad)


class TestCreate:
    @pytest.mark.asyncio
    async def test_create_then_get(self, registry):
        record = await registry.create("s1")
        fetched = registry.get("s1")

        assert fetched is record
        assert fetched.status in (SessionStatus.INITIALIZING, SessionStatus.CONNECTING)
        assert fetched.created_at is not None

    @pytest.mark.asyncio
    async def test_generated_id(self, registry):
        record = await registry.create()
        assert len(record.id) == 32
        assert record.id in registry

    @pytest.mark.asyncio
    async def test_duplicate_rejected(self, registry):
        original = await registry.create("s1")
        with pytest.raises(AlreadyExists):
            await registry.create("s1")
        assert registry.get("s1") is original

    @pytest.mark.asyncio
    async def test_invalid_id_rejected(self, registry):
        with pytest.raises(InvalidSessionId):
            await registry.create("not valid!")
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_create_starts_connecting(self, registry, transports, eventually):
        record = await registry.create("s1")
        await eventually(lambda: record.qr_code is not None)

        assert record.status == SessionStatus.CONNECTING
        assert transports.count("s1") == 1
        assert record.transport is transports.latest("s1")


class TestGetAndList:
    def test_get_unknown(self, registry):
        with pytest.raises(NotFound):
            registry.get("missing")
        assert registry.find("missing") is None

    @pytest.mark.asyncio
    async def test_list(self, registry):
        await registry.create("a")
        await registry.create("b")
        assert sorted(r.id for r in registry.list()) == ["a", "b"]
        assert len(registry) == 2


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete_unknown_has_no_side_effects(self, registry):
        await registry.create("keep")
        with pytest.raises(NotFound):
            await registry.delete("missing")
        assert [r.id for r in registry.list()] == ["keep"]

    @pytest.mark.asyncio
    async def test_delete_logs_out_and_removes(
        self, registry, transports, credential_store, eventually
    ):
        record = await registry.create("s1")
        await eventually(lambda: record.qr_code is not None)
        transport = transports.latest("s1")
        transport.pair("111@s.whatsapp.net")
        await eventually(lambda: record.status == SessionStatus.CONNECTED)

        await registry.delete("s1")

        assert "s1" not in registry
        assert transport.logged_out
        assert transport.closed
        assert record.closing
        assert "s1" not in credential_store.data

        await asyncio.sleep(0.05)
        assert transports.count("s1") == 1

    @pytest.mark.asyncio
    async def test_delete_twice(self, registry):
        await registry.create("s1")
        await registry.delete("s1")
        with pytest.raises(NotFound):
            await registry.delete("s1")

    @pytest.mark.asyncio
    async def test_logout_failure_is_not_propagated(
        self, registry, transports, eventually
    ):
        record = await registry.create("s1")
        await eventually(lambda: record.transport is not None)

        async def broken_logout():
            raise RuntimeError("socket gone")

        transports.latest("s1").logout = broken_logout
        await registry.delete("s1")
        assert "s1" not in registry

    @pytest.mark.asyncio
    async def test_delete_cancels_pending_reconnect(
        self, transports, credential_store, dispatcher, eventually
    ):
        registry = SessionRegistry(
            transports, credential_store, dispatcher, MessageRetryCache(),
            reconnect_delay=30,
        )
        record = await registry.create("s1")
        await eventually(lambda: record.qr_code is not None)

        transports.latest("s1").drop(DisconnectReason.CONNECTION_LOST)
        await eventually(lambda: record.controller.reconnect_pending)

        await asyncio.wait_for(registry.delete("s1"), timeout=1)

        assert not record.controller.running
        assert not record.controller.reconnect_pending
        assert transports.count("s1") == 1
        assert "s1" not in registry

    @pytest.mark.asyncio
    async def test_recreate_after_delete(self, registry, transports, eventually):
        deleted = await registry.create("s1")
        await eventually(lambda: transports.count("s1") == 1)
        await registry.delete("s1")

        record = await registry.create("s1")
        await eventually(lambda: record.qr_code is not None)
        assert record is not deleted
        assert registry.get("s1") is record
        assert transports.count("s1") == 2
        assert transports.created["s1"][0].closed
        assert not transports.latest("s1").closed

    @pytest.mark.asyncio
    async def test_delete_before_first_connect(self, registry, transports):
        await registry.create("s1")
        await registry.delete("s1")

        await asyncio.sleep(0.05)
        assert "s1" not in registry
        assert transports.count("s1") <= 1


class TestShutdown:
    @pytest.mark.asyncio
    async def test_shutdown_closes_without_logout(
        self, registry, transports, eventually
    ):
        record = await registry.create("s1")
        await eventually(lambda: record.transport is not None)
        transport = transports.latest("s1")

        await registry.shutdown()

        assert len(registry) == 0
        assert transport.closed
        assert not transport.logged_out
        assert not record.controller.running
