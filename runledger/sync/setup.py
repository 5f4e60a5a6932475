"""Pairing with and unpairing from a run log server.

Pairing data arrives either typed in by hand or as the JSON payload of the
server's pairing QR code::

    {"token": "1|abc...", "base_url": "https://runs.example.com/api/v1"}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from pydantic import ValidationError

from runledger.models.api import ConnectionPayload
from runledger.sessions.repository import RunSessionRepository
from runledger.sync.api_client import ApiClient, ConnectionTestError
from runledger.sync.credentials import CredentialsStore, ServerCredentials
from runledger.sync.scheduler import SyncScheduler
from runledger.sync.status_store import SyncStatusStore

logger = logging.getLogger("runledger.sync.setup")


class SetupState:
    """Outcome of a pairing attempt."""

    __slots__ = ()


@dataclass(frozen=True)
class SetupSuccess(SetupState):
    credentials: ServerCredentials


@dataclass(frozen=True)
class SetupError(SetupState):
    message: str


def parse_connection_payload(raw: str | bytes) -> ConnectionPayload:
    """Parse a pairing payload.

    Raises:
        ValueError: If the payload is not JSON or lacks ``token``/``base_url``.
    """
    try:
        return ConnectionPayload.model_validate_json(raw)
    except ValidationError as exc:
        raise ValueError(f"Invalid connection payload: {exc.error_count()} error(s)") from exc


class SetupService:
    """Connects to and disconnects from the run log.

    Args:
        api_client:        Used to probe the server before saving credentials.
        credentials_store: Receives the credentials on success.
        status_store:      Wiped on disconnect.
        scheduler:         Started on connect, cancelled on disconnect.
        sessions:          Its background syncs are cancelled on disconnect.
    """

    def __init__(
        self,
        api_client: ApiClient,
        credentials_store: CredentialsStore,
        status_store: SyncStatusStore,
        scheduler: SyncScheduler,
        sessions: RunSessionRepository | None = None,
    ) -> None:
        self._api_client = api_client
        self._credentials = credentials_store
        self._status_store = status_store
        self._scheduler = scheduler
        self._sessions = sessions

    async def connect(self, base_url: str, token: str) -> SetupState:
        """Test the credentials, save them and start syncing.

        Nothing is saved unless the server accepts the token.
        """
        if not base_url.strip() or not token.strip():
            return SetupError("Server URL and token are required")

        try:
            await self._api_client.test_connection(base_url, token)
        except ConnectionTestError as exc:
            logger.warning("Pairing with %s failed: %s", base_url, exc)
            return SetupError(str(exc) or "Connection failed")

        credentials = await self._credentials.save(base_url, token)
        self._scheduler.schedule_periodic()
        self._scheduler.enqueue_one_time()
        logger.info("Connected to %s", credentials.base_url)
        return SetupSuccess(credentials)

    async def connect_with_payload(self, raw: str | bytes) -> SetupState:
        try:
            payload = parse_connection_payload(raw)
        except ValueError as exc:
            return SetupError(str(exc))
        return await self.connect(payload.base_url, payload.token)

    async def disconnect(self) -> None:
        """Stop syncing, forget all sync state and remove the credentials."""
        await self._scheduler.cancel_all()
        if self._sessions is not None:
            await self._sessions.cancel_background()
        await self._status_store.clear_all()
        await self._credentials.clear()
        logger.info("Disconnected from run log")
