"""Built-in checks — filesystem, database, HTTP(S), TCP and generic callables.

Each check is a small object with a ``name`` and a ``check()`` that returns a
Result. The probe bodies raise on failure; ``Result.from_call`` turns that
into a failing Result with the exception text as the message.
"""

from __future__ import annotations

import socket
import sqlite3
import tempfile
from collections.abc import Callable
from typing import Any

import httpx

from .engine import Result


class CheckFailed(Exception):
    """Raised by a probe body to report a failure with a readable message."""


class FileSystemCheck:
    """Write a small temp file and read it back."""

    FILENAME = "rxprobe-fs-check"

    def __init__(self, name: str = "fs", directory: str | None = None) -> None:
        self.name = name
        self.directory = directory

    def check(self) -> Result:
        return Result.from_call(self.name, self._probe)

    def _probe(self) -> bool:
        with tempfile.TemporaryFile(mode="w+", prefix=self.FILENAME, dir=self.directory) as f:
            f.write("ok")
            f.flush()
            f.seek(0)
            return f.read() == "ok"


class DatabaseCheck:
    """Open a DB-API connection and run ``SELECT 1``.

    ``connect`` is any zero-arg factory returning a DB-API connection. When it
    is omitted, ``dsn`` is opened read-only with sqlite3, so a missing
    database file fails the check instead of being created.
    """

    def __init__(
        self,
        name: str = "database",
        dsn: str = ":memory:",
        connect: Callable[[], Any] | None = None,
        timeout_ms: int = 5_000,
    ) -> None:
        self.name = name
        self.dsn = dsn
        self.timeout_ms = timeout_ms
        self._connect = connect or self._sqlite_connect

    def _sqlite_connect(self) -> sqlite3.Connection:
        timeout = self.timeout_ms / 1000
        if self.dsn == ":memory:":
            return sqlite3.connect(self.dsn, timeout=timeout)
        return sqlite3.connect(f"file:{self.dsn}?mode=ro", timeout=timeout, uri=True)

    def check(self) -> Result:
        return Result.from_call(self.name, self._probe)

    def _probe(self) -> bool:
        conn = self._connect()
        try:
            cursor = conn.cursor()
            cursor.execute("SELECT 1")
            row = cursor.fetchone()
        finally:
            conn.close()
        return row is not None


class HttpCheck:
    """HTTP(S) check — ok when the response status matches ``expected_status``."""

    def __init__(
        self,
        name: str,
        url: str,
        method: str = "GET",
        expected_status: int = 200,
        timeout_ms: int = 10_000,
    ) -> None:
        self.name = name
        self.url = url
        self.method = method
        self.expected_status = expected_status
        self.timeout_ms = timeout_ms

    def check(self) -> Result:
        return Result.from_call(self.name, self._probe)

    def _probe(self) -> bool:
        with httpx.Client(timeout=self.timeout_ms / 1000, follow_redirects=True) as client:
            resp = client.request(self.method, self.url)
        if resp.status_code != self.expected_status:
            raise CheckFailed(f"Expected {self.expected_status}, got {resp.status_code}")
        return True


class TcpCheck:
    """Raw TCP port connectivity check."""

    def __init__(self, name: str, hostname: str, port: int, timeout_ms: int = 5_000) -> None:
        self.name = name
        self.hostname = hostname
        self.port = port
        self.timeout_ms = timeout_ms

    def check(self) -> Result:
        return Result.from_call(self.name, self._probe)

    def _probe(self) -> bool:
        sock = socket.create_connection((self.hostname, self.port), timeout=self.timeout_ms / 1000)
        sock.close()
        return True


class GenericCheck:
    """Wrap any zero-arg callable; a truthy return value means ok."""

    def __init__(self, name: str, fn: Callable[[], Any]) -> None:
        self.name = name
        self._fn = fn

    def check(self) -> Result:
        return Result.from_call(self.name, self._fn)

    def __repr__(self) -> str:
        return f"GenericCheck(name={self.name!r})"
