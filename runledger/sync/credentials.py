"""Server credential storage.

Absence of credentials is the "not connected" state, not an error: every
reader gets ``None`` and decides what that means.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from runledger.storage import read_json, remove_file, write_json_atomic

logger = logging.getLogger("runledger.sync.credentials")


@dataclass(frozen=True)
class ServerCredentials:
    """Base URL of the run log plus its bearer token.

    Attributes:
        base_url: API root, stored without a trailing slash.
        token:    Personal access token sent as ``Authorization: Bearer``.
    """

    base_url: str
    token: str

    @classmethod
    def create(cls, base_url: str, token: str) -> "ServerCredentials":
        return cls(base_url=base_url.strip().rstrip("/"), token=token.strip())


class CredentialsStore(ABC):
    """Where the active server credentials live."""

    @abstractmethod
    async def get(self) -> ServerCredentials | None:
        """Return the stored credentials, or None when disconnected."""

    @abstractmethod
    async def save(self, base_url: str, token: str) -> ServerCredentials:
        """Persist new credentials, replacing any previous pair."""

    @abstractmethod
    async def clear(self) -> None:
        """Forget the stored credentials."""


class InMemoryCredentialsStore(CredentialsStore):
    """Process-local store, used when nothing should touch disk."""

    def __init__(self, credentials: ServerCredentials | None = None) -> None:
        self._credentials = credentials

    async def get(self) -> ServerCredentials | None:
        return self._credentials

    async def save(self, base_url: str, token: str) -> ServerCredentials:
        self._credentials = ServerCredentials.create(base_url, token)
        return self._credentials

    async def clear(self) -> None:
        self._credentials = None


class FileCredentialsStore(CredentialsStore):
    """JSON file readable only by the owning user (mode 0600).

    An unreadable or malformed file reads as "not connected".
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = asyncio.Lock()

    async def get(self) -> ServerCredentials | None:
        raw = await asyncio.to_thread(read_json, self._path)
        if not isinstance(raw, dict):
            return None
        base_url = raw.get("base_url")
        token = raw.get("token")
        if not isinstance(base_url, str) or not isinstance(token, str) or not base_url or not token:
            logger.warning("Credentials file %s is incomplete; treating as disconnected", self._path)
            return None
        return ServerCredentials(base_url=base_url, token=token)

    async def save(self, base_url: str, token: str) -> ServerCredentials:
        credentials = ServerCredentials.create(base_url, token)
        async with self._lock:
            await asyncio.to_thread(
                write_json_atomic,
                self._path,
                {"base_url": credentials.base_url, "token": credentials.token},
                0o600,
            )
        logger.info("Saved server credentials for %s", credentials.base_url)
        return credentials

    async def clear(self) -> None:
        async with self._lock:
            await asyncio.to_thread(remove_file, self._path)
        logger.info("Cleared server credentials")
