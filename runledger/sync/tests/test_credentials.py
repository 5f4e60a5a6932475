"""Tests for credential storage."""

from __future__ import annotations

import json
import os
import stat
from pathlib import Path

import pytest

from runledger.sync.credentials import FileCredentialsStore, ServerCredentials


def test_create_normalizes_input() -> None:
    creds = ServerCredentials.create("  https://runs.example.com/api/v1/ ", " tok ")
    assert creds == ServerCredentials(base_url="https://runs.example.com/api/v1", token="tok")


class TestFileCredentialsStore:
    @pytest.mark.asyncio
    async def test_missing_file_is_disconnected(self, tmp_path: Path) -> None:
        store = FileCredentialsStore(tmp_path / "credentials.json")
        assert await store.get() is None

    @pytest.mark.asyncio
    async def test_save_and_get(self, tmp_path: Path) -> None:
        store = FileCredentialsStore(tmp_path / "credentials.json")

        saved = await store.save("https://runs.example.com/api/v1/", "1|abc")

        assert saved.base_url == "https://runs.example.com/api/v1"
        assert await store.get() == saved

    @pytest.mark.asyncio
    @pytest.mark.skipif(os.name != "posix", reason="POSIX permissions only")
    async def test_file_is_private(self, tmp_path: Path) -> None:
        path = tmp_path / "credentials.json"
        await FileCredentialsStore(path).save("https://runs.example.com", "1|abc")

        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    @pytest.mark.asyncio
    async def test_clear(self, tmp_path: Path) -> None:
        path = tmp_path / "credentials.json"
        store = FileCredentialsStore(path)
        await store.save("https://runs.example.com", "1|abc")

        await store.clear()
        await store.clear()

        assert not path.exists()
        assert await store.get() is None

    @pytest.mark.asyncio
    async def test_incomplete_file_is_disconnected(self, tmp_path: Path) -> None:
        path = tmp_path / "credentials.json"
        path.write_text(json.dumps({"base_url": "https://runs.example.com"}), encoding="utf-8")

        assert await FileCredentialsStore(path).get() is None
