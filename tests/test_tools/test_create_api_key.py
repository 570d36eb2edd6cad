"""Tests for the create_api_key command line tool."""

from __future__ import annotations

import asyncio
import sys

import pytest

from cardano_scanner.config.settings import DatabaseConfig
from cardano_scanner.datastore.client import Datastore
from cardano_scanner.engine.repository import ApiKeyRepository
from cardano_scanner.tools import create_api_key
from cardano_scanner.utils.crypto import sha256_hex


@pytest.fixture
def db_dsn(tmp_path, monkeypatch) -> str:
    dsn = f"sqlite+aiosqlite:///{tmp_path / 'scanner.db'}"
    monkeypatch.setenv("SCANNER_DB__DSN", dsn)
    monkeypatch.setenv("SCANNER_BLOCKFROST__PROJECT_ID", "")
    monkeypatch.delenv("SCANNER_CONFIG_PATH", raising=False)
    return dsn


def _printed_key(output: str) -> str:
    lines = [line.strip() for line in output.splitlines()]
    return lines[lines.index("") + 1]


async def _lookup(dsn: str, plain: str):
    ds = Datastore(DatabaseConfig(dsn=dsn))
    await ds.open()
    try:
        return await ApiKeyRepository(ds).get_active_by_hash(sha256_hex(plain))
    finally:
        await ds.close()


class TestCreateApiKeyTool:
    def test_creates_key(self, db_dsn, monkeypatch, capsys) -> None:
        monkeypatch.setattr(sys, "argv", ["create_api_key", "ci-bot", "WRITE"])
        create_api_key.main()
        out = capsys.readouterr().out
        assert "API key created: ci-bot" in out
        assert "Permissions:     write" in out

        stored = asyncio.run(_lookup(db_dsn, _printed_key(out)))
        assert stored is not None
        assert stored.name == "ci-bot"
        assert stored.permissions == ["write"]

    def test_usage_without_name(self, db_dsn, monkeypatch, capsys) -> None:
        monkeypatch.setattr(sys, "argv", ["create_api_key"])
        with pytest.raises(SystemExit) as exc_info:
            create_api_key.main()
        assert exc_info.value.code == 1
        assert "NAME [PERMISSION ...]" in capsys.readouterr().out

    def test_unknown_permission(self, db_dsn, monkeypatch, capsys) -> None:
        monkeypatch.setattr(sys, "argv", ["create_api_key", "x", "root"])
        with pytest.raises(SystemExit):
            create_api_key.main()
        assert "unknown permissions: root" in capsys.readouterr().out
