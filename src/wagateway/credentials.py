"""
Per-session credential persistence.

Credentials are an opaque JSON document owned by the transport. The store only
loads, merges and saves it, keyed by session id.
"""

import asyncio
import json
import os
import shutil
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

from wagateway.logger import get_logger

logger = get_logger(__name__)

CREDS_FILENAME = "creds.json"


class CredentialStore(ABC):
    """Load/save authentication material keyed by session id."""

    @abstractmethod
    async def load(self, session_id: str) -> Optional[dict[str, Any]]:
        """Return the stored credentials, or None for a fresh session."""

    @abstractmethod
    async def save(self, session_id: str, update: dict[str, Any]) -> None:
        """Merge a credentials update into the stored document."""

    @abstractmethod
    async def remove(self, session_id: str) -> None:
        """Forget everything stored for the session."""


class MemoryCredentialStore(CredentialStore):
    """Keeps credentials in a dict. Used in tests and throwaway runs."""

    def __init__(self):
        self.data: dict[str, dict[str, Any]] = {}

    async def load(self, session_id: str) -> Optional[dict[str, Any]]:
        creds = self.data.get(session_id)
        return dict(creds) if creds is not None else None

    async def save(self, session_id: str, update: dict[str, Any]) -> None:
        self.data.setdefault(session_id, {}).update(update)

    async def remove(self, session_id: str) -> None:
        self.data.pop(session_id, None)


class FileCredentialStore(CredentialStore):
    """
    One directory per session under ``base_dir`` holding ``creds.json``.

    Writes go through a temporary file and ``os.replace`` so a crash never
    leaves a half-written document. File I/O runs in a worker thread.
    """

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)

    def _session_dir(self, session_id: str) -> Path:
        return self.base_dir / session_id

    def _read(self, session_id: str) -> Optional[dict[str, Any]]:
        path = self._session_dir(session_id) / CREDS_FILENAME
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Corrupt credentials for session '{session_id}': {e}")
            return None

    def _write(self, session_id: str, update: dict[str, Any]) -> None:
        session_dir = self._session_dir(session_id)
        session_dir.mkdir(parents=True, exist_ok=True)

        creds = self._read(session_id) or {}
        creds.update(update)

        fd, tmp_path = tempfile.mkstemp(dir=session_dir, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(creds, f)
            os.replace(tmp_path, session_dir / CREDS_FILENAME)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def _delete(self, session_id: str) -> None:
        shutil.rmtree(self._session_dir(session_id), ignore_errors=True)

    async def load(self, session_id: str) -> Optional[dict[str, Any]]:
        return await asyncio.to_thread(self._read, session_id)

    async def save(self, session_id: str, update: dict[str, Any]) -> None:
        await asyncio.to_thread(self._write, session_id, update)
        logger.debug(f"Saved credentials for session '{session_id}'")

    async def remove(self, session_id: str) -> None:
        await asyncio.to_thread(self._delete, session_id)
        logger.info(f"Removed credentials for session '{session_id}'")
