"""Tests for the credential stores."""

import json

import pytest

from wagateway.credentials import (
    CREDS_FILENAME,
    FileCredentialStore,
    MemoryCredentialStore,
)


class TestFileCredentialStore:
    @pytest.mark.asyncio
    async def test_load_missing(self, tmp_path):
        store = FileCredentialStore(tmp_path)
        assert await store.load("s1") is None

    @pytest.mark.asyncio
    async def test_save_merges_updates(self, tmp_path):
        store = FileCredentialStore(tmp_path)
        await store.save("s1", {"registered": False, "noiseKey": "abc"})
        await store.save("s1", {"registered": True, "me": {"id": "1@s.whatsapp.net"}})

        creds = await store.load("s1")
        assert creds == {
            "registered": True,
            "noiseKey": "abc",
            "me": {"id": "1@s.whatsapp.net"},
        }
        on_disk = json.loads((tmp_path / "s1" / CREDS_FILENAME).read_text())
        assert on_disk == creds

    @pytest.mark.asyncio
    async def test_sessions_are_isolated(self, tmp_path):
        store = FileCredentialStore(tmp_path)
        await store.save("a", {"registered": True})
        await store.save("b", {"registered": False})

        assert (await store.load("a"))["registered"] is True
        assert (await store.load("b"))["registered"] is False

    @pytest.mark.asyncio
    async def test_remove(self, tmp_path):
        store = FileCredentialStore(tmp_path)
        await store.save("s1", {"registered": True})
        await store.remove("s1")

        assert not (tmp_path / "s1").exists()
        assert await store.load("s1") is None
        # removing twice is harmless
        await store.remove("s1")

    @pytest.mark.asyncio
    async def test_corrupt_file_treated_as_fresh(self, tmp_path):
        (tmp_path / "s1").mkdir()
        (tmp_path / "s1" / CREDS_FILENAME).write_text("{truncated")

        store = FileCredentialStore(tmp_path)
        assert await store.load("s1") is None

        await store.save("s1", {"registered": True})
        assert await store.load("s1") == {"registered": True}

    @pytest.mark.asyncio
    async def test_no_temp_files_left(self, tmp_path):
        store = FileCredentialStore(tmp_path)
        await store.save("s1", {"registered": True})
        assert [p.name for p in (tmp_path / "s1").iterdir()] == [CREDS_FILENAME]


class TestMemoryCredentialStore:
    @pytest.mark.asyncio
    async def test_load_returns_copy(self):
        store = MemoryCredentialStore()
        await store.save("s1", {"registered": True})

        creds = await store.load("s1")
        creds["registered"] = False
        assert store.data["s1"]["registered"] is True

    @pytest.mark.asyncio
    async def test_remove(self):
        store = MemoryCredentialStore()
        await store.save("s1", {"registered": True})
        await store.remove("s1")
        assert await store.load("s1") is None
