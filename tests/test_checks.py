"""Tests for the built-in checks."""

from __future__ import annotations

import socket
import sqlite3
from collections.abc import Generator
from pathlib import Path
from unittest.mock import MagicMock, patch

import httpx
import pytest

from rxprobe.health.checks import (
    DatabaseCheck,
    FileSystemCheck,
    GenericCheck,
    HttpCheck,
    TcpCheck,
)


# ── Filesystem ───────────────────────────────────────────────────────────────


class TestFileSystemCheck:
    def test_default_name_and_success(self) -> None:
        result = FileSystemCheck().check()
        assert result.name == "fs"
        assert result.ok is True
        assert result.duration is not None and result.duration >= 0

    def test_custom_directory(self, tmp_path: Path) -> None:
        assert FileSystemCheck(directory=str(tmp_path)).check().ok is True

    def test_missing_directory_fails(self, tmp_path: Path) -> None:
        result = FileSystemCheck(directory=str(tmp_path / "nope")).check()
        assert result.ok is False
        assert "Error" in result.message


# ── Database ─────────────────────────────────────────────────────────────────


class TestDatabaseCheck:
    def test_in_memory_sqlite(self) -> None:
        result = DatabaseCheck().check()
        assert result.name == "database"
        assert result.ok is True

    def test_sqlite_file(self, tmp_path: Path) -> None:
        db = tmp_path / "app.db"
        sqlite3.connect(db).close()
        assert DatabaseCheck(name="db", dsn=str(db)).check().ok is True

    def test_missing_sqlite_file_fails_and_is_not_created(self, tmp_path: Path) -> None:
        db = tmp_path / "absent.db"
        result = DatabaseCheck(dsn=str(db)).check()
        assert result.ok is False
        assert "OperationalError" in result.message
        assert not db.exists()

    def test_unreachable_database(self, tmp_path: Path) -> None:
        result = DatabaseCheck(dsn=str(tmp_path / "missing" / "app.db")).check()
        assert result.ok is False
        assert "OperationalError" in result.message

    def test_custom_connect_factory(self) -> None:
        conn = sqlite3.connect(":memory:")
        wrapper = MagicMock(wraps=conn)
        result = DatabaseCheck(name="pg", connect=lambda: wrapper).check()
        assert result.ok is True
        wrapper.close.assert_called_once()

    def test_connect_error(self) -> None:
        def refuse() -> None:
            raise ConnectionRefusedError("db down")

        result = DatabaseCheck(connect=refuse).check()
        assert result.ok is False
        assert result.message == "ConnectionRefusedError: db down"


# ── HTTP ─────────────────────────────────────────────────────────────────────


def _mock_http(status_code: int) -> MagicMock:
    client = MagicMock()
    client.__enter__.return_value = client
    client.__exit__.return_value = None
    client.request.return_value = MagicMock(status_code=status_code)
    return client


class TestHttpCheck:
    @patch("rxprobe.health.checks.httpx.Client")
    def test_expected_status(self, mock_client_cls: MagicMock) -> None:
        client = _mock_http(200)
        mock_client_cls.return_value = client

        result = HttpCheck("api", "http://localhost/health", timeout_ms=3000).check()
        assert result.ok is True
        client.request.assert_called_once_with("GET", "http://localhost/health")
        assert mock_client_cls.call_args.kwargs["timeout"] == 3.0

    @patch("rxprobe.health.checks.httpx.Client")
    def test_unexpected_status(self, mock_client_cls: MagicMock) -> None:
        mock_client_cls.return_value = _mock_http(503)
        result = HttpCheck("api", "http://localhost/health").check()
        assert result.ok is False
        assert result.message == "CheckFailed: Expected 200, got 503"

    @patch("rxprobe.health.checks.httpx.Client")
    def test_connect_error(self, mock_client_cls: MagicMock) -> None:
        client = _mock_http(200)
        client.request.side_effect = httpx.ConnectError("connection refused")
        mock_client_cls.return_value = client

        result = HttpCheck("api", "http://localhost/health").check()
        assert result.ok is False
        assert result.message.startswith("ConnectError")


# ── TCP ──────────────────────────────────────────────────────────────────────


@pytest.fixture
def listening_port() -> Generator[int, None, None]:
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen(1)
    try:
        yield server.getsockname()[1]
    finally:
        server.close()


@pytest.fixture
def closed_port() -> int:
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    return port


class TestTcpCheck:
    def test_open_port(self, listening_port: int) -> None:
        result = TcpCheck("local", "127.0.0.1", listening_port, timeout_ms=2000).check()
        assert result.ok is True

    def test_closed_port(self, closed_port: int) -> None:
        result = TcpCheck("local", "127.0.0.1", closed_port, timeout_ms=2000).check()
        assert result.ok is False
        assert result.message


# ── Generic ──────────────────────────────────────────────────────────────────


class TestGenericCheck:
    def test_truthy(self) -> None:
        assert GenericCheck("flag", lambda: True).check().ok is True

    def test_falsy(self) -> None:
        assert GenericCheck("flag", lambda: 0).check().ok is False

    def test_raises(self) -> None:
        def boom() -> bool:
            raise KeyError("missing")

        result = GenericCheck("flag", boom).check()
        assert result.ok is False
        assert result.name == "flag"
        assert result.message.startswith("KeyError")
