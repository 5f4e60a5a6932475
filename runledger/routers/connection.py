"""Pairing with and unpairing from the run log server."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Request

from runledger.dependencies import AppServices
from runledger.models.sync import ConnectionCreate, ConnectionRead
from runledger.sync.setup import SetupError, SetupState, SetupSuccess

router = APIRouter(prefix="/connection", tags=["connection"])


def _connection_read(state: SetupState) -> ConnectionRead:
    if isinstance(state, SetupSuccess):
        return ConnectionRead(is_connected=True, server_url=state.credentials.base_url)
    if isinstance(state, SetupError):
        raise HTTPException(status_code=400, detail=state.message)
    raise HTTPException(status_code=500, detail="Unexpected setup state")


@router.post("", response_model=ConnectionRead)
async def connect(services: AppServices, body: ConnectionCreate) -> Any:
    return _connection_read(await services.setup.connect(body.base_url, body.token))


@router.post("/payload", response_model=ConnectionRead)
async def connect_with_payload(services: AppServices, request: Request) -> Any:
    """Pair from the raw JSON of the server's pairing QR code."""
    raw = await request.body()
    return _connection_read(await services.setup.connect_with_payload(raw))


@router.delete("", status_code=204)
async def disconnect(services: AppServices) -> None:
    await services.setup.disconnect()
